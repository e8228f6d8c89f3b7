# src/core/fees/calculator.py
"""
Trip fee engine.
Pure functions: tiered distance pricing, waiting fee, time-of-day surcharge
and the commission split. No I/O.

Every monetary output is floored to whole currency units.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import datetime, time
from typing import Iterable, Sequence
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field

from src.common.constants import CommissionRateType
from src.common.errors import ConfigError

# Distance billed at the base per-km rate
BASE_DISTANCE_KM = 25
# Flat per-km surcharge beyond BASE_DISTANCE_KM
LONG_DISTANCE_SURCHARGE_PER_KM = 100


class FeeConfig(BaseModel):
    """Fee configuration snapshot (first fee_configs row)."""

    id: int | None = None
    initial_fee: float = Field(0, ge=0)
    distance_fee_per_km: float = Field(0, ge=0)
    waiting_fee_per_minute: float = Field(0, ge=0)
    free_waiting_minute: int = Field(0, ge=0)
    commission_rate: float = 0
    commission_rate_type: str = CommissionRateType.FIXED.value
    platform_fee: float = Field(0, ge=0)
    insurance_fee: float = Field(0, ge=0)


class TimeFeeWindow(BaseModel):
    """Surcharge added to the initial fee for trips starting in [start_time, end_time)."""

    start_time: time
    end_time: time
    fee_delta: float = 0

    def contains(self, moment: time) -> bool:
        if self.start_time <= self.end_time:
            return self.start_time <= moment < self.end_time
        # Window wraps midnight, e.g. 22:00-05:00
        return moment >= self.start_time or moment < self.end_time


@dataclass(frozen=True)
class FeeBreakdown:
    """Result of pricing a finished trip."""
    base_initial_fee: int
    time_based_fee: int
    adjusted_initial_fee: int
    distance_fee: int
    waiting_fee: int
    extra_fee: int
    platform_fee: int
    insurance_fee: int
    driver_total: int
    customer_total: int
    commission_fee: int
    driver_received_amount: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def _floor(value: float) -> int:
    return int(math.floor(value))


def distance_fee(distance_km: float, config: FeeConfig) -> int:
    """
    Tiered distance fee.

    Args:
        distance_km: Driven distance in kilometres
        config: Fee configuration

    Returns:
        First 25 km at ``distance_fee_per_km``, every further km at
        ``distance_fee_per_km + 100``.

    Example:
        >>> distance_fee(30, FeeConfig(distance_fee_per_km=1000))
        30500
    """
    rate = config.distance_fee_per_km
    if distance_km <= BASE_DISTANCE_KM:
        return _floor(distance_km * rate)

    extra_km = distance_km - BASE_DISTANCE_KM
    return _floor(BASE_DISTANCE_KM * rate + extra_km * (rate + LONG_DISTANCE_SURCHARGE_PER_KM))


def waiting_fee(waiting_seconds: float, config: FeeConfig) -> int:
    """
    Waiting fee. Free minutes are a grace window, not a discount.

    Example:
        >>> waiting_fee(900, FeeConfig(free_waiting_minute=10, waiting_fee_per_minute=200))
        1000
    """
    billable_minutes = max(0, math.floor(waiting_seconds / 60) - config.free_waiting_minute)
    return _floor(billable_minutes * config.waiting_fee_per_minute)


def local_time_of_day(moment: datetime, tz_name: str) -> time:
    """Wall-clock time of ``moment`` in ``tz_name`` (naive values are taken as UTC)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=ZoneInfo("UTC"))
    return moment.astimezone(ZoneInfo(tz_name)).time()


def applicable_time_fee(
    trip_start: datetime | time | None,
    windows: Iterable[TimeFeeWindow],
    tz_name: str = "UTC",
) -> int:
    """
    Surcharge of the first window (by start_time) containing the trip start.

    Args:
        trip_start: Trip start moment or a bare time of day
        windows: Configured windows
        tz_name: Timezone the windows are expressed in

    Returns:
        The window's fee_delta, or 0 when none matches
    """
    if trip_start is None:
        return 0

    moment = trip_start if isinstance(trip_start, time) else local_time_of_day(trip_start, tz_name)

    for window in sorted(windows, key=lambda w: w.start_time):
        if window.contains(moment):
            return _floor(window.fee_delta)
    return 0


def _rate_type(config: FeeConfig) -> CommissionRateType:
    try:
        return CommissionRateType(config.commission_rate_type)
    except ValueError:
        raise ConfigError(
            "Invalid commission rate type. Must be 'fixed' or 'percentage'.",
            details={"commission_rate_type": config.commission_rate_type},
        ) from None


def commission_fee(driver_total: float, config: FeeConfig) -> int:
    """
    Platform commission on the driver-side total.

    Fixed commission is returned verbatim and is not capped at the driver total.
    """
    if _rate_type(config) is CommissionRateType.FIXED:
        return _floor(config.commission_rate)
    return _floor(driver_total * config.commission_rate / 100)


def driver_received(driver_total: float, config: FeeConfig) -> int:
    """Driver-side total minus the floored commission."""
    return _floor(driver_total) - commission_fee(driver_total, config)


def validate_commission_type(config: FeeConfig) -> None:
    """Raises ConfigError for an unknown commission_rate_type."""
    _rate_type(config)


def calculate_trip_fees(
    config: FeeConfig,
    *,
    distance_km: float,
    waiting_seconds: float,
    extra_fee: float = 0,
    trip_start: datetime | time | None = None,
    windows: Sequence[TimeFeeWindow] = (),
    tz_name: str = "UTC",
) -> FeeBreakdown:
    """
    Prices a trip.

    Insurance and platform fees are charged to the customer only; the
    driver-side total excludes them.

    Example:
        >>> cfg = FeeConfig(initial_fee=3000, distance_fee_per_km=1000, commission_rate=100)
        >>> fees = calculate_trip_fees(cfg, distance_km=10, waiting_seconds=0)
        >>> fees.customer_total, fees.driver_received_amount
        (13000, 12900)
    """
    time_fee = applicable_time_fee(trip_start, windows, tz_name)
    base_initial = _floor(config.initial_fee)
    adjusted_initial = base_initial + time_fee

    dist_fee = distance_fee(distance_km, config)
    wait_fee = waiting_fee(waiting_seconds, config)
    extra = _floor(extra_fee)
    platform = _floor(config.platform_fee)
    insurance = _floor(config.insurance_fee)

    driver_total = adjusted_initial + dist_fee + wait_fee + extra
    customer_total = driver_total + insurance + platform
    commission = commission_fee(driver_total, config)

    return FeeBreakdown(
        base_initial_fee=base_initial,
        time_based_fee=time_fee,
        adjusted_initial_fee=adjusted_initial,
        distance_fee=dist_fee,
        waiting_fee=wait_fee,
        extra_fee=extra,
        platform_fee=platform,
        insurance_fee=insurance,
        driver_total=driver_total,
        customer_total=customer_total,
        commission_fee=commission,
        driver_received_amount=driver_total - commission,
    )
