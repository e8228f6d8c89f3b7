# tests/core/test_booking_state_machine.py
"""
Tests for booking transitions.
"""

from __future__ import annotations

import pytest

from src.common.constants import BookingStatus
from src.common.errors import InvalidStateTransition
from src.core.bookings.state_machine import BookingStateMachine

S = BookingStatus


class TestBookingStateMachine:

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (S.PENDING, S.CONNECTED),
            (S.CONNECTED, S.ACCEPTED),
            (S.CONNECTED, S.PENDING),
            (S.ACCEPTED, S.ON_TRIP),
            (S.ON_TRIP, S.COMPLETED),
            (S.PENDING, S.CANCELED),
            (S.CONNECTED, S.CANCELED),
            (S.ACCEPTED, S.CANCELED),
        ],
    )
    def test_allowed(self, current: BookingStatus, target: BookingStatus) -> None:
        assert BookingStateMachine.can_transition(current, target)
        BookingStateMachine.ensure_transition(current, target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (S.PENDING, S.ACCEPTED),
            (S.PENDING, S.ON_TRIP),
            (S.ACCEPTED, S.PENDING),
            (S.ON_TRIP, S.CANCELED),
            (S.COMPLETED, S.PENDING),
            (S.CANCELED, S.PENDING),
        ],
    )
    def test_rejected(self, current: BookingStatus, target: BookingStatus) -> None:
        assert not BookingStateMachine.can_transition(current, target)
        with pytest.raises(InvalidStateTransition) as exc_info:
            BookingStateMachine.ensure_transition(current, target)
        assert exc_info.value.details == {"current": current.value, "target": target.value}

    def test_terminal_states(self) -> None:
        assert BookingStateMachine.is_terminal(S.COMPLETED)
        assert BookingStateMachine.is_terminal(S.CANCELED)
        assert not BookingStateMachine.is_terminal(S.ON_TRIP)

    def test_every_state_has_an_entry(self) -> None:
        assert set(BookingStateMachine.ALLOWED_TRANSITIONS) == set(BookingStatus)
