# src/services/realtime_ws/broadcaster.py
"""
Real-time broadcast used by the domain services.
"""

from __future__ import annotations

from typing import Any

from src.common.constants import SocketEvent, booking_room, driver_room
from src.common.logger import log_warning
from src.services.realtime_ws.connection_manager import ConnectionManager


class RealtimeBroadcaster:
    """
    Emits socket events on behalf of services.

    Emission is fire-and-forget: a failure is logged and never reaches the
    caller, so a committed state transition is never undone by it.
    """

    def __init__(self, manager: ConnectionManager) -> None:
        self._manager = manager

    async def emit_to_room(self, room: str, event: SocketEvent | str, data: Any) -> None:
        name = event.value if isinstance(event, SocketEvent) else event
        try:
            await self._manager.emit_to_room(room, name, data)
        except Exception as e:
            await log_warning(f"Socket emit {name} to {room} failed: {e}")

    async def emit_all(self, event: SocketEvent | str, data: Any) -> None:
        name = event.value if isinstance(event, SocketEvent) else event
        try:
            await self._manager.emit_all(name, data)
        except Exception as e:
            await log_warning(f"Socket broadcast {name} failed: {e}")

    async def booking_status(self, booking_id: int, status: str) -> None:
        await self.emit_to_room(
            booking_room(booking_id),
            SocketEvent.BOOKING_STATUS,
            {"bookingId": booking_id, "status": status},
        )

    async def booking_request(self, driver_id: int) -> None:
        """Tells a driver app to refresh its booking request."""
        await self.emit_to_room(
            driver_room(driver_id),
            SocketEvent.BOOKING_REQUEST,
            {"driverId": driver_id},
        )
