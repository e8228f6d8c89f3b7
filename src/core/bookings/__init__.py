# src/core/bookings/__init__.py
"""
Bookings.
"""

from src.core.bookings.models import Booking, DispatchResult
from src.core.bookings.repository import BookingRepository
from src.core.bookings.service import BookingService
from src.core.bookings.state_machine import BookingStateMachine

__all__ = [
    "Booking",
    "DispatchResult",
    "BookingRepository",
    "BookingService",
    "BookingStateMachine",
]
