# src/core/bookings/state_machine.py
"""
Booking lifecycle.

pending -> connected -> accepted -> on_trip -> completed
connected -> pending      (driver rejects)
pending/connected/accepted -> canceled   (customer cancels)
"""

from __future__ import annotations

from src.common.constants import BookingStatus
from src.common.errors import InvalidStateTransition


class BookingStateMachine:
    """Legal booking transitions."""

    ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
        BookingStatus.PENDING: frozenset({BookingStatus.CONNECTED, BookingStatus.CANCELED}),
        BookingStatus.CONNECTED: frozenset({
            BookingStatus.ACCEPTED,
            BookingStatus.PENDING,
            BookingStatus.CANCELED,
        }),
        BookingStatus.ACCEPTED: frozenset({BookingStatus.ON_TRIP, BookingStatus.CANCELED}),
        BookingStatus.ON_TRIP: frozenset({BookingStatus.COMPLETED}),
        BookingStatus.COMPLETED: frozenset(),
        BookingStatus.CANCELED: frozenset(),
    }

    @classmethod
    def can_transition(cls, current: BookingStatus, target: BookingStatus) -> bool:
        return target in cls.ALLOWED_TRANSITIONS.get(current, frozenset())

    @classmethod
    def ensure_transition(cls, current: BookingStatus, target: BookingStatus) -> None:
        """
        Raises:
            InvalidStateTransition: target is not reachable from current
        """
        if not cls.can_transition(current, target):
            raise InvalidStateTransition(
                f"Cannot move booking from '{current.value}' to '{target.value}'",
                details={"current": current.value, "target": target.value},
            )

    @classmethod
    def is_terminal(cls, status: BookingStatus) -> bool:
        return not cls.ALLOWED_TRANSITIONS.get(status)
