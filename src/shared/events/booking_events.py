# src/shared/events/booking_events.py
"""
Booking domain events.
"""

from __future__ import annotations

from typing import Literal

from src.shared.events.base import DomainEvent


class BookingCreated(DomainEvent):
    event_type: Literal["booking.created"] = "booking.created"

    booking_id: int
    customer_id: int
    start_lat: float
    start_lng: float
    end_lat: float
    end_lng: float


class BookingStatusChanged(DomainEvent):
    """A booking moved between two states."""

    event_type: Literal["booking.status_changed"] = "booking.status_changed"

    booking_id: int
    old_status: str
    new_status: str
    driver_id: int | None = None


class DriverDispatched(DomainEvent):
    """Dispatch matched a driver to a pending booking."""

    event_type: Literal["driver.dispatched"] = "driver.dispatched"

    booking_id: int
    driver_id: int
    distance_km: float
