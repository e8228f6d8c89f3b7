# src/core/trips/__init__.py
"""
Trips: start, end and settlement.
"""

from src.core.trips.models import EndTripInput, SettlementResult, Trip, TripMeasurements
from src.core.trips.repository import TripRepository
from src.core.trips.service import TripService, validate_end_trip
from src.core.trips.settlement import SettlementService

__all__ = [
    "EndTripInput",
    "SettlementResult",
    "Trip",
    "TripMeasurements",
    "TripRepository",
    "TripService",
    "validate_end_trip",
    "SettlementService",
]
