# src/core/bookings/models.py
"""
Booking models.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from src.common.constants import BookingStatus


class Booking(BaseModel):
    """A customer's ride request before and during the trip."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    booking_id: str = Field(..., description="Public booking code")
    customer_id: int
    driver_id: Optional[int] = None
    trip_id: Optional[int] = None
    status: BookingStatus = BookingStatus.PENDING

    start_lat: float
    start_lng: float
    end_lat: float
    end_lng: float
    start_location: Optional[str] = None
    end_location: Optional[str] = None

    created_at: Optional[datetime] = None


class BookingCreateDTO(BaseModel):
    customer_id: int
    start_lat: float
    start_lng: float
    end_lat: float
    end_lng: float
    start_location: Optional[str] = None
    end_location: Optional[str] = None


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of a driver search. No match is a normal result, not an error."""
    success: bool
    message: str
    booking_id: Optional[int] = None
    driver_id: Optional[int] = None
    distance_km: Optional[float] = None
