# src/core/trips/models.py
"""
Trip models.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.common.constants import END_ELIGIBLE_TRIP_STATUSES, TripStatus
from src.core.fees.calculator import FeeBreakdown


class Trip(BaseModel):
    """A priced ride. Fee columns hold the configuration used for pricing."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    trip_id: str = Field(..., description="Public trip code")
    driver_id: int
    status: TripStatus = TripStatus.DRIVING

    start_lat: Optional[float] = None
    start_lng: Optional[float] = None
    start_location: Optional[str] = None
    end_lat: Optional[float] = None
    end_lng: Optional[float] = None
    end_location: Optional[str] = None

    total_amount: Optional[float] = None
    commission_fee: Optional[float] = None
    driver_received_amount: Optional[float] = None

    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def can_end(self) -> bool:
        return self.status in END_ELIGIBLE_TRIP_STATUSES

    @property
    def pricing_start(self) -> Optional[datetime]:
        """Moment the time-of-day surcharge is evaluated at."""
        return self.started_at or self.created_at


class EndTripInput(BaseModel):
    """
    End-of-trip report from the driver app.

    Numbers arrive unchecked; bounds are applied by the trip service before
    anything is written.
    """

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


@dataclass(frozen=True)
class TripMeasurements:
    """Validated end-of-trip numbers."""
    distance_km: float
    duration_sec: float
    waiting_sec: float
    extra_fee: float
    end_lat: Optional[float]
    end_lng: Optional[float]
    extra_list: Optional[list[Any]] = None
    location_points: Optional[list[Any]] = None
    gps_gaps: Optional[int] = None
    gps_gap_details: Optional[list[Any]] = None


@dataclass(frozen=True)
class SettlementResult:
    trip_id: int
    driver_id: int
    booking_id: Optional[int]
    fees: FeeBreakdown
    balance: Optional[float] = None

    def to_response(self) -> dict[str, Any]:
        """Response body of the end-trip endpoints."""
        return {
            "trip_id": self.trip_id,
            "total_amount": self.fees.customer_total,
            "driver_received_amount": self.fees.driver_received_amount,
            "commission_fee": self.fees.commission_fee,
            "waiting_fee": self.fees.waiting_fee,
            "distance_fee": self.fees.distance_fee,
            "extra_fee": self.fees.extra_fee,
            "initial_fee": self.fees.base_initial_fee,
            "time_based_fee": self.fees.time_based_fee,
            "platform_fee": self.fees.platform_fee,
            "insurance_fee": self.fees.insurance_fee,
        }
