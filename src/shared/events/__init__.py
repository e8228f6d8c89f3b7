# src/shared/events/__init__.py
"""
Domain event schemas published on RabbitMQ.

Every event carries an event_id for deduplication.
"""

from src.shared.events.base import DomainEvent, EventMetadata
from src.shared.events.booking_events import (
    BookingCreated,
    BookingStatusChanged,
    DriverDispatched,
)
from src.shared.events.trip_events import (
    CashInRequested,
    CashInReviewed,
    TripSettled,
    TripStarted,
)

__all__ = [
    "DomainEvent",
    "EventMetadata",
    "BookingCreated",
    "BookingStatusChanged",
    "DriverDispatched",
    "TripStarted",
    "TripSettled",
    "CashInRequested",
    "CashInReviewed",
]
