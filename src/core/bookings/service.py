# src/core/bookings/service.py
"""
Booking service.
Creation, dispatch and the driver/customer driven transitions.
"""

from __future__ import annotations

from typing import Any, Optional

from src.common.constants import (
    ACTIVE_BOOKING_STATUSES,
    BookingStatus,
    DriverStatus,
    NotificationChannel,
    TypeMsg,
)
from src.common.errors import Conflict, InvalidStateTransition, NotFound
from src.common.logger import log_info, log_warning
from src.common.validators import validate_coordinates
from src.core.bookings.models import Booking, BookingCreateDTO, DispatchResult
from src.core.bookings.repository import BookingRepository
from src.core.bookings.state_machine import BookingStateMachine
from src.core.matching.service import MatchingService
from src.core.notifications.service import NotificationService
from src.core.presence.registry import PresenceRegistry
from src.core.users.repository import CustomerRepository, DriverRepository
from src.infra.database import DatabaseManager
from src.infra.event_bus import EventBus
from src.services.realtime_ws.broadcaster import RealtimeBroadcaster
from src.shared.events import BookingCreated, BookingStatusChanged, DriverDispatched

# Bookings a driver can act on
DRIVER_BOOKING_STATUSES = (
    BookingStatus.CONNECTED,
    BookingStatus.ACCEPTED,
    BookingStatus.ON_TRIP,
)


class BookingService:
    """
    Booking lifecycle.

    Every transition is a conditional update inside one transaction; socket
    events, pushes and bus events follow the commit and never undo it.
    """

    def __init__(
        self,
        db: DatabaseManager,
        registry: PresenceRegistry,
        matching: MatchingService,
        notifications: NotificationService,
        broadcaster: RealtimeBroadcaster,
        event_bus: EventBus,
    ) -> None:
        self._db = db
        self._bookings = BookingRepository(db)
        self._customers = CustomerRepository(db)
        self._drivers = DriverRepository(db)
        self._registry = registry
        self._matching = matching
        self._notifications = notifications
        self._broadcaster = broadcaster
        self._event_bus = event_bus

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    async def get_customer_booking(self, customer_id: int) -> Booking:
        booking = await self._bookings.get_by_customer(customer_id, ACTIVE_BOOKING_STATUSES)
        if booking is None:
            raise NotFound("You have no active booking")
        return booking

    async def get_driver_booking(self, driver_id: int) -> Booking:
        booking = await self._bookings.get_by_driver(driver_id, DRIVER_BOOKING_STATUSES)
        if booking is None:
            raise NotFound("no active booking")
        return booking

    async def _move(
        self,
        booking: Booking,
        target: BookingStatus,
        conn: Any,
        **changes: Any,
    ) -> Booking:
        BookingStateMachine.ensure_transition(booking.status, target)
        updated = await self._bookings.update_status(booking.id, booking.status, target, conn, **changes)
        if updated is None:
            raise InvalidStateTransition(
                "Booking was changed by another request",
                details={"booking_id": booking.id, "expected": booking.status.value},
            )
        return updated

    async def publish_transition(self, before: Booking, after: Booking) -> None:
        """Socket and bus events for a committed transition."""
        await self._broadcaster.booking_status(after.id, after.status.value)
        await self._event_bus.publish(BookingStatusChanged(
            booking_id=after.id,
            old_status=before.status.value,
            new_status=after.status.value,
            driver_id=after.driver_id,
        ))
        await log_info(
            f"Booking {after.id}: {before.status.value} -> {after.status.value}",
            type_msg=TypeMsg.INFO,
        )

    async def _push_customer(self, booking: Booking, title_key: str, body_key: str) -> None:
        await self._notifications.push_to_customer(
            booking.customer_id,
            self._notifications.text(title_key),
            self._notifications.text(body_key),
            NotificationChannel.BOOKING,
        )

    async def _push_driver(self, driver_id: int, title_key: str, body_key: str) -> None:
        await self._notifications.notify_driver(
            driver_id,
            self._notifications.text(title_key),
            self._notifications.text(body_key),
            NotificationChannel.BOOKING,
        )

    # =========================================================================
    # CUSTOMER ACTIONS
    # =========================================================================

    async def create(
        self,
        customer_id: int,
        start_lat: Any,
        start_lng: Any,
        end_lat: Any,
        end_lng: Any,
        start_location: Optional[str] = None,
        end_location: Optional[str] = None,
    ) -> Booking:
        """
        Creates a pending booking.

        Raises:
            ValidationError: bad coordinates
            Conflict: the customer already has an active booking
        """
        s_lat, s_lng = validate_coordinates(start_lat, start_lng, label="Start location:")
        e_lat, e_lng = validate_coordinates(end_lat, end_lng, label="End location:")

        async with self._db.transaction() as conn:
            # Serialises concurrent creates of the same customer
            if not await self._customers.lock(customer_id, conn):
                raise NotFound("Customer not found")

            existing = await self._bookings.get_by_customer(customer_id, ACTIVE_BOOKING_STATUSES, conn)
            if existing is not None:
                raise Conflict(
                    "You already have active booking",
                    details={"booking_id": existing.id, "status": existing.status.value},
                )

            booking = await self._bookings.create(
                BookingCreateDTO(
                    customer_id=customer_id,
                    start_lat=s_lat,
                    start_lng=s_lng,
                    end_lat=e_lat,
                    end_lng=e_lng,
                    start_location=start_location,
                    end_location=end_location,
                ),
                conn,
            )

        await self._event_bus.publish(BookingCreated(
            booking_id=booking.id,
            customer_id=customer_id,
            start_lat=s_lat,
            start_lng=s_lng,
            end_lat=e_lat,
            end_lng=e_lng,
        ))
        await log_info(f"Booking {booking.id} created by customer {customer_id}", type_msg=TypeMsg.INFO)
        return booking

    async def search_driver(self, customer_id: int) -> DispatchResult:
        """
        Dispatch: matches the customer's pending booking with the nearest
        available driver (pending -> connected).

        The chosen driver is re-checked against the database in the same
        transaction that commits the match. A failed re-check is reported as
        no match; there is no automatic retry.
        """
        booking = await self.get_customer_booking(customer_id)
        BookingStateMachine.ensure_transition(booking.status, BookingStatus.CONNECTED)

        no_match = DispatchResult(success=False, message="no nearby driver found", booking_id=booking.id)

        candidate = await self._matching.find_nearest(booking.start_lat, booking.start_lng)
        if candidate is None:
            return no_match

        async with self._db.transaction() as conn:
            claimed = await self._drivers.claim_for_dispatch(candidate.driver_id, conn)
            if claimed:
                connected = await self._move(booking, BookingStatus.CONNECTED, conn, driver_id=candidate.driver_id)

        if not claimed:
            await log_warning(
                f"Driver {candidate.driver_id} is no longer available in the database, booking {booking.id} not matched"
            )
            return no_match

        await self._registry.set_status(candidate.driver_id, DriverStatus.BUSY)
        await self._broadcaster.booking_request(candidate.driver_id)
        await self.publish_transition(booking, connected)
        await self._event_bus.publish(DriverDispatched(
            booking_id=booking.id,
            driver_id=candidate.driver_id,
            distance_km=candidate.distance_km,
        ))
        await self._push_driver(candidate.driver_id, "BOOKING_REQUEST_TITLE", "BOOKING_REQUEST_BODY")

        return DispatchResult(
            success=True,
            message="connected with driver",
            booking_id=booking.id,
            driver_id=candidate.driver_id,
            distance_km=candidate.distance_km,
        )

    async def cancel(self, customer_id: int) -> Booking:
        """
        Customer cancels a pending, connected or accepted booking.
        An assigned driver becomes available again.
        """
        booking = await self.get_customer_booking(customer_id)
        driver_id = booking.driver_id if booking.status != BookingStatus.PENDING else None

        async with self._db.transaction() as conn:
            canceled = await self._move(booking, BookingStatus.CANCELED, conn)
            if driver_id is not None:
                await self._drivers.set_status(driver_id, DriverStatus.ACTIVE, conn)

        if driver_id is not None:
            await self._registry.set_status(driver_id, DriverStatus.ACTIVE)
            await self._broadcaster.booking_request(driver_id)
        await self.publish_transition(booking, canceled)
        if driver_id is not None:
            await self._push_driver(driver_id, "BOOKING_CANCELED_TITLE", "BOOKING_CANCELED_BODY")
        return canceled

    # =========================================================================
    # DRIVER ACTIONS
    # =========================================================================

    async def accept(self, driver_id: int) -> Booking:
        """connected -> accepted, by the assigned driver only."""
        booking = await self.get_driver_booking(driver_id)

        async with self._db.transaction() as conn:
            accepted = await self._move(booking, BookingStatus.ACCEPTED, conn)

        await self.publish_transition(booking, accepted)
        await self._push_customer(accepted, "BOOKING_ACCEPTED_TITLE", "BOOKING_ACCEPTED_BODY")
        return accepted

    async def pickup(self, driver_id: int) -> Booking:
        """accepted -> on_trip."""
        booking = await self.get_driver_booking(driver_id)

        async with self._db.transaction() as conn:
            picked_up = await self._move(booking, BookingStatus.ON_TRIP, conn)

        await self.publish_transition(booking, picked_up)
        await self._push_customer(picked_up, "CUSTOMER_PICKED_UP_TITLE", "CUSTOMER_PICKED_UP_BODY")
        return picked_up

    async def reject(self, driver_id: int) -> Booking:
        """
        connected -> pending. The driver is released and the booking goes
        back to the matching pool.
        """
        booking = await self.get_driver_booking(driver_id)

        async with self._db.transaction() as conn:
            released = await self._move(booking, BookingStatus.PENDING, conn, driver_id=None)
            await self._drivers.set_status(driver_id, DriverStatus.ACTIVE, conn)

        await self._registry.set_status(driver_id, DriverStatus.ACTIVE)
        await self.publish_transition(booking, released)
        return released

    # =========================================================================
    # SETTLEMENT HOOK
    # =========================================================================

    async def complete(self, booking: Booking, conn: Any) -> Booking:
        """on_trip -> completed inside the settlement transaction."""
        return await self._move(booking, BookingStatus.COMPLETED, conn)
