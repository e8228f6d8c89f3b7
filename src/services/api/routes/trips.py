# src/services/api/routes/trips.py
"""
Trip and booking routes.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from src.core.bookings.models import Booking
from src.core.bookings.service import BookingService
from src.core.trips.models import EndTripInput
from src.core.trips.service import TripService
from src.core.users.models import TokenClaims
from src.services.api.auth import require_customer, require_driver
from src.services.api.dependencies import get_booking_service, get_trip_service
from src.services.api.schemas import (
    BookedResponse,
    BookingActionResponse,
    BookRequest,
    EndTripRequest,
    SearchDriverResponse,
    StartTripRequest,
    TripEndedResponse,
    TripStartedResponse,
)

router = APIRouter(prefix="/trip", tags=["Trips"])


def _action(message: str, booking: Booking) -> BookingActionResponse:
    return BookingActionResponse(message=message, booking_id=booking.id, status=booking.status.value)


# =============================================================================
# DRIVER: TRIPS
# =============================================================================

@router.post("/start", response_model=TripStartedResponse)
async def start_trip(
    body: StartTripRequest,
    claims: TokenClaims = Depends(require_driver),
    service: TripService = Depends(get_trip_service),
):
    trip = await service.start_trip(claims.user_id, body.lat, body.lng)
    return TripStartedResponse(trip_id=trip.id)


@router.post("/end", response_model=TripEndedResponse)
async def end_trip(
    body: EndTripRequest,
    claims: TokenClaims = Depends(require_driver),
    service: TripService = Depends(get_trip_service),
):
    result = await service.end_trip(claims.user_id, EndTripInput(**body.model_dump()))
    return result.to_response()


@router.post("/start-booked-trip", response_model=TripStartedResponse)
async def start_booked_trip(
    body: StartTripRequest,
    claims: TokenClaims = Depends(require_driver),
    service: TripService = Depends(get_trip_service),
):
    trip = await service.start_booked_trip(claims.user_id, body.lat, body.lng)
    return TripStartedResponse(trip_id=trip.id)


@router.post("/end-booked-trip", response_model=TripEndedResponse)
async def end_booked_trip(
    body: EndTripRequest,
    claims: TokenClaims = Depends(require_driver),
    service: TripService = Depends(get_trip_service),
):
    result = await service.end_booked_trip(claims.user_id, EndTripInput(**body.model_dump()))
    return result.to_response()


# =============================================================================
# CUSTOMER: BOOKINGS
# =============================================================================

@router.post("/book", response_model=BookedResponse)
async def book(
    body: BookRequest,
    claims: TokenClaims = Depends(require_customer),
    service: BookingService = Depends(get_booking_service),
):
    booking = await service.create(
        claims.user_id,
        body.start_lat,
        body.start_lng,
        body.end_lat,
        body.end_lng,
        body.start_location,
        body.end_location,
    )
    return BookedResponse(id=booking.id)


@router.post("/search-driver", response_model=SearchDriverResponse)
async def search_driver(
    claims: TokenClaims = Depends(require_customer),
    service: BookingService = Depends(get_booking_service),
):
    result = await service.search_driver(claims.user_id)
    return SearchDriverResponse(
        success=result.success,
        message=result.message,
        driver_id=result.driver_id,
        distance_km=result.distance_km,
    )


@router.post("/cancel", response_model=BookingActionResponse)
async def cancel(
    claims: TokenClaims = Depends(require_customer),
    service: BookingService = Depends(get_booking_service),
):
    return _action("booking canceled", await service.cancel(claims.user_id))


# =============================================================================
# DRIVER: BOOKINGS
# =============================================================================

@router.post("/accept", response_model=BookingActionResponse)
async def accept(
    claims: TokenClaims = Depends(require_driver),
    service: BookingService = Depends(get_booking_service),
):
    return _action("booking accepted", await service.accept(claims.user_id))


@router.post("/pickup", response_model=BookingActionResponse)
async def pickup(
    claims: TokenClaims = Depends(require_driver),
    service: BookingService = Depends(get_booking_service),
):
    return _action("customer picked up", await service.pickup(claims.user_id))


@router.post("/reject", response_model=BookingActionResponse)
async def reject(
    claims: TokenClaims = Depends(require_driver),
    service: BookingService = Depends(get_booking_service),
):
    return _action("booking rejected", await service.reject(claims.user_id))
