# src/shared/events/trip_events.py
"""
Trip and wallet domain events.
"""

from __future__ import annotations

from typing import Literal

from src.shared.events.base import DomainEvent


class TripStarted(DomainEvent):
    event_type: Literal["trip.started"] = "trip.started"

    trip_id: int
    driver_id: int
    booking_id: int | None = None


class TripSettled(DomainEvent):
    """Trip finished and commission booked."""

    event_type: Literal["trip.settled"] = "trip.settled"

    trip_id: int
    driver_id: int
    booking_id: int | None = None
    total_amount: int
    commission_fee: int
    driver_received_amount: int


class CashInRequested(DomainEvent):
    event_type: Literal["cashin.requested"] = "cashin.requested"

    transaction_id: int
    driver_id: int


class CashInReviewed(DomainEvent):
    """Admin accepted or rejected a top-up (or credited one directly)."""

    event_type: Literal["cashin.reviewed"] = "cashin.reviewed"

    transaction_id: int
    driver_id: int
    amount: float
    accepted: bool
    admin_id: int
