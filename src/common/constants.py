# src/common/constants.py
"""
Common constants and enumerations.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Log message types."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class UserRole(str, Enum):
    """Roles carried in access tokens."""
    CUSTOMER = "customer"
    DRIVER = "driver"
    SUPER_ADMIN = "super_admin"
    STAFF = "staff"


class AdminRole(str, Enum):
    """Roles stored on admin accounts."""
    ADMIN = "admin"
    STAFF = "staff"


class AccountKind(str, Enum):
    """Account tables that support phone/password sign-in."""
    CUSTOMER = "customer"
    DRIVER = "driver"
    ADMIN = "admin"


class BookingStatus(str, Enum):
    """Booking lifecycle states."""
    PENDING = "pending"
    CONNECTED = "connected"
    ACCEPTED = "accepted"
    ON_TRIP = "on_trip"
    COMPLETED = "completed"
    CANCELED = "canceled"


# A customer may hold at most one booking in any of these states
ACTIVE_BOOKING_STATUSES: tuple[BookingStatus, ...] = (
    BookingStatus.PENDING,
    BookingStatus.CONNECTED,
    BookingStatus.ACCEPTED,
    BookingStatus.ON_TRIP,
)

CANCELABLE_BOOKING_STATUSES: tuple[BookingStatus, ...] = (
    BookingStatus.PENDING,
    BookingStatus.CONNECTED,
    BookingStatus.ACCEPTED,
)


class TripStatus(str, Enum):
    """Trip states."""
    PENDING = "pending"
    DRIVING = "driving"
    WAITING = "waiting"
    FINISHED = "finished"


END_ELIGIBLE_TRIP_STATUSES: tuple[TripStatus, ...] = (
    TripStatus.PENDING,
    TripStatus.DRIVING,
    TripStatus.WAITING,
)


class DriverStatus(str, Enum):
    """Driver availability."""
    ACTIVE = "active"
    BUSY = "busy"
    ON_TRIP = "on_trip"
    OFFLINE = "offline"


class CommissionRateType(str, Enum):
    """How the platform commission is computed."""
    FIXED = "fixed"
    PERCENTAGE = "percentage"


class TransactionType(str, Enum):
    """Driver wallet transaction types."""
    COMMISSION = "commission"
    CASH_IN = "cash_in"


class TransactionStatus(str, Enum):
    """Driver wallet transaction states."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class NotificationChannel(str, Enum):
    """Push channels (android channel id / apns sound name)."""
    DEFAULT = "default"
    BOOKING = "booking"
    TRANSACTION = "transaction"


class NotificationType(str, Enum):
    """Categories of persisted driver notifications."""
    TRIP = "trip"
    TRANSACTION = "transaction"


class SocketEvent(str, Enum):
    """Real-time event names shared with the mobile apps."""
    DRIVER_LOCATION = "driverLocation"
    ALL_DRIVER_LOCATION = "allDriverLocation"
    JOIN_BOOKING_REQUEST = "joinBookingRequest"
    JOIN_TRIP = "joinTrip"
    CONNECTED_TRIP_UPDATE = "connectedTripUpdate"
    CONNECTED_TRIP = "connectedTrip"
    BOOKING_REQUEST = "bookingRequest"
    BOOKING_STATUS = "bookingStatus"


def driver_room(driver_id: int) -> str:
    """Room a driver app joins to receive booking requests."""
    return f"driver:{driver_id}"


def booking_room(booking_id: int) -> str:
    """Room the customer and driver join to follow a booking."""
    return f"booking:{booking_id}"
