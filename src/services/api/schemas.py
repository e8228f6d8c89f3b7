# src/services/api/schemas.py
"""
Request and response bodies.
Numeric fields are accepted loosely and checked by the domain validators so
that range errors share one message format.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


# =============================================================================
# AUTH
# =============================================================================

class SigninRequest(BaseModel):
    phone: Optional[str] = None
    password: Optional[str] = None
    fcm_token: Optional[str] = None


class CustomerSignupRequest(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    fcm_token: Optional[str] = None
    profile_picture_url: Optional[str] = None


class DriverSignupRequest(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None


class AdminSigninRequest(BaseModel):
    phone: Optional[str] = None
    password: Optional[str] = None


class AdminSignupRequest(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None


class UpdatePasswordRequest(BaseModel):
    old_password: Optional[str] = None
    new_password: Optional[str] = None
    confirm_password: Optional[str] = None


class UpdateUserPasswordRequest(BaseModel):
    user_id: Optional[int] = None
    new_password: Optional[str] = None
    confirm_password: Optional[str] = None


class CreateDriverRequest(BaseModel):
    driver_id: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    vehicle_number: Optional[str] = None
    password: Optional[str] = None
    driving_license_number: Optional[str] = None
    vehicle_model: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None


class TokenResponse(BaseModel):
    token: str


class DriverTokenResponse(TokenResponse):
    disabled: bool = False


class MessageResponse(BaseModel):
    message: str


# =============================================================================
# TRIPS AND BOOKINGS
# =============================================================================

class StartTripRequest(BaseModel):
    lat: Any = None
    lng: Any = None


class EndTripRequest(BaseModel):
    distance: Any = None
    duration: Any = None
    waiting_time: Any = None
    extra_fee: Any = 0
    end_lat: Any = None
    end_lng: Any = None
    extra_list: Optional[list[Any]] = None
    location_points: Optional[list[Any]] = None
    gps_gaps: Optional[int] = None
    gps_gap_details: Optional[list[Any]] = None


class BookRequest(BaseModel):
    start_lat: Any = None
    start_lng: Any = None
    end_lat: Any = None
    end_lng: Any = None
    start_location: Optional[str] = None
    end_location: Optional[str] = None


class TripStartedResponse(BaseModel):
    message: str = "trip started"
    trip_id: int


class TripEndedResponse(BaseModel):
    trip_id: int
    total_amount: int
    driver_received_amount: int
    commission_fee: int
    waiting_fee: int
    distance_fee: int
    extra_fee: int
    initial_fee: int
    time_based_fee: int
    platform_fee: int
    insurance_fee: int


class BookedResponse(BaseModel):
    message: str = "trip booked"
    id: int


class SearchDriverResponse(BaseModel):
    success: bool
    message: str
    driver_id: Optional[int] = None
    distance_km: Optional[float] = None


class BookingActionResponse(BaseModel):
    message: str
    booking_id: int
    status: str


# =============================================================================
# TRANSACTIONS
# =============================================================================

class DriverCashInRequest(BaseModel):
    payment_method: Optional[str] = None
    receipt_photo_url: Optional[str] = None


class ReviewCashInRequest(BaseModel):
    driver_transaction_id: int
    amount: Any = None
    accepted: bool = Field(..., description="True to credit the driver")


class AdminCashInRequest(BaseModel):
    driver_id: int
    amount: Any = None
    payment_method: Optional[str] = None
    receipt_photo_url: Optional[str] = None


class CashInResponse(BaseModel):
    message: str
    transaction_id: int
