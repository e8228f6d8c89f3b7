# src/core/matching/service.py
"""
Nearest-driver search over the presence registry.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from src.common.logger import log_debug
from src.core.geo.utils import calculate_distance
from src.core.presence.registry import PresenceRegistry


@dataclass(frozen=True)
class DriverCandidate:
    """Driver chosen for a booking."""
    driver_id: int
    distance_km: float


class MatchingService:
    """
    Finds the closest available driver to a pickup point.

    Candidates are online, ``active`` and have a known location. Only
    distances strictly below the search radius qualify. Drivers are scanned
    in driver_id order and the first one at the minimum distance wins.
    """

    def __init__(self, registry: PresenceRegistry, radius_km: float | None = None) -> None:
        """
        Args:
            registry: Presence registry
            radius_km: Search radius (from config when None)
        """
        if radius_km is None:
            from src.config import settings
            radius_km = settings.dispatch.DRIVER_SEARCH_RADIUS_KM

        self._registry = registry
        self._radius_km = radius_km

    @property
    def radius_km(self) -> float:
        return self._radius_km

    async def find_nearest(self, latitude: float, longitude: float) -> Optional[DriverCandidate]:
        """
        Args:
            latitude: Pickup latitude
            longitude: Pickup longitude

        Returns:
            Nearest candidate, or None when nobody is in range
        """
        nearest: Optional[DriverCandidate] = None

        for entry in await self._registry.snapshot():
            if not entry.is_available:
                continue

            distance = calculate_distance(latitude, longitude, entry.latitude, entry.longitude)
            if distance >= self._radius_km:
                continue
            if nearest is None or distance < nearest.distance_km:
                nearest = DriverCandidate(driver_id=entry.driver_id, distance_km=distance)

        if nearest is None:
            await log_debug(f"No driver within {self._radius_km} km of ({latitude}, {longitude})")
        return nearest
