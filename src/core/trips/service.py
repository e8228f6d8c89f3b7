# src/core/trips/service.py
"""
Trip service.
Starting and ending street-hail and booked trips.
"""

from __future__ import annotations

from typing import Any, Optional

from src.common.constants import BookingStatus, DriverStatus, TypeMsg
from src.common.errors import Conflict, InvalidStateTransition, NoActiveTrip, NotFound
from src.common.logger import log_info
from src.common.validators import (
    validate_coordinates,
    validate_distance,
    validate_duration,
    validate_numeric,
    validate_optional_coordinates,
)
from src.core.bookings.models import Booking
from src.core.bookings.repository import BookingRepository
from src.core.fees.calculator import validate_commission_type
from src.core.fees.repository import FeeConfigRepository
from src.core.geo.service import GeoService
from src.core.presence.registry import PresenceRegistry
from src.core.trips.models import EndTripInput, SettlementResult, Trip, TripMeasurements
from src.core.trips.repository import TripRepository
from src.core.trips.settlement import SettlementService
from src.core.users.repository import DriverRepository
from src.infra.database import DatabaseManager
from src.infra.event_bus import EventBus
from src.shared.events import TripStarted


def validate_end_trip(data: EndTripInput, limits: Any = None) -> TripMeasurements:
    """
    Checks an end-of-trip report against the configured bounds.

    Args:
        data: Raw report
        limits: TripLimitSettings (taken from settings when None)

    Raises:
        ValidationError: first failing field
    """
    if limits is None:
        from src.config import settings
        limits = settings.trip_limits

    end_lat, end_lng = validate_optional_coordinates(data.end_lat, data.end_lng)
    distance = validate_distance(data.distance, limits.MAX_TRIP_DISTANCE_KM)
    duration = validate_duration(data.duration, limits.MAX_TRIP_DURATION_SEC)
    waiting = validate_duration(data.waiting_time, limits.MAX_WAITING_TIME_SEC, field="Waiting time")
    extra = validate_numeric(
        data.extra_fee if data.extra_fee is not None else 0,
        "Extra fee",
        max_value=limits.MAX_EXTRA_FEE,
    )

    return TripMeasurements(
        distance_km=distance,
        duration_sec=duration,
        waiting_sec=waiting,
        extra_fee=extra,
        end_lat=end_lat,
        end_lng=end_lng,
        extra_list=data.extra_list,
        location_points=data.location_points,
        gps_gaps=data.gps_gaps,
        gps_gap_details=data.gps_gap_details,
    )


class TripService:
    """
    Trip lifecycle for drivers.

    Input is validated before anything is read or written. Pricing and the
    ledger are handled by ``SettlementService``.
    """

    def __init__(
        self,
        db: DatabaseManager,
        registry: PresenceRegistry,
        geo: GeoService,
        settlement: SettlementService,
        event_bus: EventBus,
    ) -> None:
        self._db = db
        self._trips = TripRepository(db)
        self._fees = FeeConfigRepository(db)
        self._drivers = DriverRepository(db)
        self._bookings = BookingRepository(db)
        self._registry = registry
        self._geo = geo
        self._settlement = settlement
        self._event_bus = event_bus

    async def _booking_on_trip(self, driver_id: int) -> Booking:
        booking = await self._bookings.get_by_driver(driver_id, (BookingStatus.ON_TRIP,))
        if booking is None:
            raise NoActiveTrip("no active booking")
        return booking

    async def _open_trip(
        self,
        driver_id: int,
        lat: Any,
        lng: Any,
        booking: Optional[Booking] = None,
    ) -> Trip:
        latitude, longitude = validate_coordinates(lat, lng)

        if await self._trips.get_active_by_driver(driver_id) is not None:
            raise Conflict("You already have an active trip", details={"driver_id": driver_id})

        config = await self._fees.get_config()
        start_location = await self._geo.reverse_geocode(latitude, longitude)

        async with self._db.transaction() as conn:
            # Serialises concurrent starts of the same driver
            if not await self._drivers.lock(driver_id, conn):
                raise NotFound("Driver not found")
            if await self._trips.get_active_by_driver(driver_id, conn) is not None:
                raise Conflict("You already have an active trip", details={"driver_id": driver_id})

            trip = await self._trips.create(driver_id, latitude, longitude, start_location, config, conn)
            if booking is not None:
                attached = await self._bookings.attach_trip(booking.id, trip.id, conn)
                if attached is None:
                    raise InvalidStateTransition(
                        "Booking is no longer on trip",
                        details={"booking_id": booking.id},
                    )
            await self._drivers.set_status(driver_id, DriverStatus.ON_TRIP, conn)

        await self._registry.set_status(driver_id, DriverStatus.ON_TRIP)
        await self._event_bus.publish(TripStarted(
            trip_id=trip.id,
            driver_id=driver_id,
            booking_id=booking.id if booking else None,
        ))
        await log_info(f"Trip {trip.id} started by driver {driver_id}", type_msg=TypeMsg.INFO)
        return trip

    async def start_trip(self, driver_id: int, lat: Any, lng: Any) -> Trip:
        """Street-hail trip."""
        return await self._open_trip(driver_id, lat, lng)

    async def start_booked_trip(self, driver_id: int, lat: Any, lng: Any) -> Trip:
        """
        Trip for the driver's booking in on_trip; the booking keeps a
        reference to it.
        """
        validate_coordinates(lat, lng)
        booking = await self._booking_on_trip(driver_id)
        return await self._open_trip(driver_id, lat, lng, booking)

    async def _close_trip(
        self,
        driver_id: int,
        data: EndTripInput,
        booked: bool,
    ) -> SettlementResult:
        measurements = validate_end_trip(data)

        booking = await self._booking_on_trip(driver_id) if booked else None

        trip = await self._trips.get_active_by_driver(driver_id)
        if trip is None:
            raise NoActiveTrip()
        if booking is None:
            # Trips started for a booking complete it on either end route
            booking = await self._bookings.get_by_trip(trip.id)

        config, windows = await self._fees.load()
        validate_commission_type(config)

        end_location = await self._geo.reverse_geocode(measurements.end_lat, measurements.end_lng)

        return await self._settlement.settle(
            trip, config, windows, measurements, end_location=end_location, booking=booking,
        )

    async def end_trip(self, driver_id: int, data: EndTripInput) -> SettlementResult:
        return await self._close_trip(driver_id, data, booked=False)

    async def end_booked_trip(self, driver_id: int, data: EndTripInput) -> SettlementResult:
        """Ends the trip and completes the driver's booking with it."""
        return await self._close_trip(driver_id, data, booked=True)
