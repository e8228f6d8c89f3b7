# src/core/__init__.py
"""
Domain layer.
Bookings, trips, fees, driver wallet and accounts.
"""

from src.core.billing import CashInService
from src.core.bookings import BookingService
from src.core.matching import MatchingService
from src.core.trips import SettlementService, TripService
from src.core.users import AuthService

__all__ = [
    "AuthService",
    "BookingService",
    "CashInService",
    "MatchingService",
    "SettlementService",
    "TripService",
]
