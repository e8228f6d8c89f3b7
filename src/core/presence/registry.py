# src/core/presence/registry.py
"""
In-memory registry of connected drivers.
Process-local and never persisted; owned by the API lifespan.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Optional

from src.common.constants import DriverStatus
from src.common.logger import log_debug
from src.core.presence.models import DriverPresence


class PresenceRegistry:
    """
    driver_id -> DriverPresence map guarded by an asyncio.Lock.

    Writers key by driver, so concurrent reports for different drivers never
    clobber each other; for the same driver the last write wins.
    """

    def __init__(self) -> None:
        self._entries: dict[int, DriverPresence] = {}
        self._lock = asyncio.Lock()
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        self._running = True
        await log_debug("Presence registry started")

    async def stop(self) -> None:
        async with self._lock:
            self._entries.clear()
        self._running = False
        await log_debug("Presence registry stopped")

    async def update(self, entry: DriverPresence) -> DriverPresence:
        """Creates or overwrites the driver's entry."""
        async with self._lock:
            self._entries[entry.driver_id] = entry
        return entry

    async def remove_connection(self, connection_id: str) -> list[int]:
        """
        Drops every entry reported over a closed connection.

        Returns:
            Removed driver ids
        """
        async with self._lock:
            removed = [
                driver_id for driver_id, entry in self._entries.items()
                if entry.connection_id == connection_id
            ]
            for driver_id in removed:
                del self._entries[driver_id]
        return removed

    async def get(self, driver_id: int) -> Optional[DriverPresence]:
        async with self._lock:
            return self._entries.get(driver_id)

    async def snapshot(self) -> list[DriverPresence]:
        """Copy of all entries ordered by driver_id."""
        async with self._lock:
            return [self._entries[driver_id] for driver_id in sorted(self._entries)]

    async def set_status(self, driver_id: int, status: DriverStatus) -> bool:
        """
        Updates a connected driver's availability.

        Returns:
            False when the driver is not connected
        """
        async with self._lock:
            entry = self._entries.get(driver_id)
            if entry is None:
                return False
            self._entries[driver_id] = entry.model_copy(
                update={"status": status, "last_update": datetime.now(timezone.utc)},
            )
        return True

    def __len__(self) -> int:
        return len(self._entries)
