# src/core/fees/__init__.py
"""Trip pricing."""

from src.core.fees.calculator import (
    FeeBreakdown,
    FeeConfig,
    TimeFeeWindow,
    applicable_time_fee,
    calculate_trip_fees,
    commission_fee,
    distance_fee,
    driver_received,
    waiting_fee,
)
from src.core.fees.repository import FeeConfigRepository

__all__ = [
    "FeeBreakdown",
    "FeeConfig",
    "TimeFeeWindow",
    "applicable_time_fee",
    "calculate_trip_fees",
    "commission_fee",
    "distance_fee",
    "driver_received",
    "waiting_fee",
    "FeeConfigRepository",
]
