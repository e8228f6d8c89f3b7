# src/core/trips/settlement.py
"""
Trip settlement.
Prices a finished trip and books the commission in one transaction.
"""

from __future__ import annotations

from typing import Optional, Sequence

from src.common.constants import (
    DriverStatus,
    NotificationChannel,
    NotificationType,
    TransactionStatus,
    TransactionType,
    TypeMsg,
)
from src.common.errors import AlreadySettled
from src.common.logger import log_info, log_warning
from src.core.billing.repository import TransactionRepository
from src.core.bookings.models import Booking
from src.core.bookings.service import BookingService
from src.core.fees.calculator import FeeConfig, TimeFeeWindow, calculate_trip_fees
from src.core.notifications.service import NotificationService
from src.core.presence.registry import PresenceRegistry
from src.core.trips.models import SettlementResult, Trip, TripMeasurements
from src.core.trips.repository import TripRepository
from src.core.users.repository import DriverRepository
from src.infra.database import DatabaseManager
from src.infra.event_bus import EventBus
from src.shared.events import TripSettled


class SettlementService:
    """
    Settles trips.

    The trip row lock serialises concurrent end-trip calls; the status
    predicate on the final update makes a second call fail with
    ``AlreadySettled`` instead of debiting the driver twice.
    """

    def __init__(
        self,
        db: DatabaseManager,
        registry: PresenceRegistry,
        notifications: NotificationService,
        bookings: BookingService,
        event_bus: EventBus,
        timezone: str | None = None,
        currency: str | None = None,
        brand: str | None = None,
    ) -> None:
        if timezone is None or currency is None or brand is None:
            from src.config import settings
            timezone = timezone or settings.domain.TIMEZONE
            currency = currency or settings.domain.CURRENCY
            brand = brand or settings.system.BRAND_NAME

        self._db = db
        self._trips = TripRepository(db)
        self._transactions = TransactionRepository(db)
        self._drivers = DriverRepository(db)
        self._registry = registry
        self._notifications = notifications
        self._bookings = bookings
        self._event_bus = event_bus
        self._timezone = timezone
        self._currency = currency
        self._brand = brand

    async def settle(
        self,
        trip: Trip,
        config: FeeConfig,
        windows: Sequence[TimeFeeWindow],
        measurements: TripMeasurements,
        end_location: Optional[str] = None,
        booking: Optional[Booking] = None,
    ) -> SettlementResult:
        """
        Finishes ``trip`` and debits the commission from the driver.

        Args:
            trip: Trip located by the caller (re-read under lock here)
            config: Current fee configuration
            windows: Time-of-day surcharge windows of ``config``
            measurements: Validated end-of-trip numbers
            end_location: Reverse-geocoded end address
            booking: Booking in on_trip to complete with the trip

        Raises:
            AlreadySettled: the trip was finished by a concurrent call
        """
        async with self._db.transaction() as conn:
            locked = await self._trips.lock(trip.id, conn)
            if locked is None or not locked.can_end:
                raise AlreadySettled(details={"trip_id": trip.id})

            started_at = locked.pricing_start
            fees = calculate_trip_fees(
                config,
                distance_km=measurements.distance_km,
                waiting_seconds=measurements.waiting_sec,
                extra_fee=measurements.extra_fee,
                trip_start=started_at,
                windows=windows,
                tz_name=self._timezone,
            )

            finished = await self._trips.finish(
                locked.id, config, fees, measurements, end_location, started_at, conn,
            )
            if not finished:
                raise AlreadySettled(details={"trip_id": trip.id})

            transaction_id = await self._transactions.create(
                locked.driver_id,
                fees.commission_fee,
                TransactionType.COMMISSION,
                TransactionStatus.COMPLETED,
                conn,
            )
            await self._transactions.record_commission(
                transaction_id, config.commission_rate, config.commission_rate_type, locked.id, conn,
            )
            balance = await self._drivers.adjust_balance(
                locked.driver_id, -fees.commission_fee, conn, status=DriverStatus.ACTIVE,
            )

            completed = None
            if booking is not None:
                completed = await self._bookings.complete(booking, conn)

        await log_info(
            f"Trip {locked.id} settled: total {fees.customer_total}, commission {fees.commission_fee}, "
            f"driver {locked.driver_id} balance {balance}",
            type_msg=TypeMsg.INFO,
        )

        try:
            await self._after_commit(locked, fees.driver_received_amount, booking, completed)
        except Exception as e:
            await log_warning(f"Post-settlement notifications for trip {locked.id} incomplete: {e}")
        await self._event_bus.publish(TripSettled(
            trip_id=locked.id,
            driver_id=locked.driver_id,
            booking_id=booking.id if booking else None,
            total_amount=fees.customer_total,
            commission_fee=fees.commission_fee,
            driver_received_amount=fees.driver_received_amount,
        ))

        return SettlementResult(
            trip_id=locked.id,
            driver_id=locked.driver_id,
            booking_id=booking.id if booking else None,
            fees=fees,
            balance=balance,
        )

    async def _after_commit(
        self,
        trip: Trip,
        earned: int,
        booking: Optional[Booking],
        completed: Optional[Booking],
    ) -> None:
        try:
            await self._registry.set_status(trip.driver_id, DriverStatus.ACTIVE)
        except Exception as e:
            await log_warning(f"Presence of driver {trip.driver_id} not reset after trip {trip.id}: {e}")

        if booking is not None and completed is not None:
            await self._bookings.publish_transition(booking, completed)

        await self._notifications.notify_driver(
            trip.driver_id,
            self._notifications.text("TRIP_ENDED_TITLE"),
            self._notifications.text("TRIP_ENDED_BODY", amount=earned, currency=self._currency),
            NotificationChannel.DEFAULT,
            notification_type=NotificationType.TRIP,
            detail_id=trip.id,
        )

        if booking is not None:
            await self._notifications.push_to_customer(
                booking.customer_id,
                self._notifications.text("RIDE_FINISHED_TITLE"),
                self._notifications.text("RIDE_FINISHED_BODY", brand=self._brand),
                NotificationChannel.BOOKING,
            )
