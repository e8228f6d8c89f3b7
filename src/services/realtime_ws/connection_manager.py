# src/services/realtime_ws/connection_manager.py
"""
WebSocket connection manager.
Rooms, per-room fan-out and broadcast.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from fastapi import WebSocket

from src.common.logger import log_warning


@dataclass
class ConnectionInfo:
    websocket: WebSocket
    connection_id: str
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    rooms: set[str] = field(default_factory=set)


def envelope(event: str, data: Any) -> dict[str, Any]:
    """Frame sent to socket clients."""
    return {"event": event, "data": data}


class ConnectionManager:
    """
    WebSocket connection manager.

    Supports:
    - Connect/disconnect by connection id
    - Joining rooms (driver:{id}, booking:{id})
    - Emitting to a room or to every connection
    """

    def __init__(self) -> None:
        # connection_id -> ConnectionInfo
        self._connections: dict[str, ConnectionInfo] = {}

        # room -> set of connection_ids
        self._rooms: dict[str, set[str]] = {}


    @property
    def active_connections(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> str:
        """
        Accepts a socket.

        Returns:
            New connection id
        """
        await websocket.accept()
        connection_id = uuid4().hex
        self._connections[connection_id] = ConnectionInfo(websocket=websocket, connection_id=connection_id)
        return connection_id

    async def disconnect(self, connection_id: str) -> None:
        conn = self._connections.pop(connection_id, None)
        if conn is None:
            return
        for room in list(conn.rooms):
            self._leave_room(connection_id, room)

    async def join(self, connection_id: str, room: str) -> None:
        if connection_id not in self._connections:
            return
        self._connections[connection_id].rooms.add(room)
        self._rooms.setdefault(room, set()).add(connection_id)

    async def leave(self, connection_id: str, room: str) -> None:
        self._leave_room(connection_id, room)

    def _leave_room(self, connection_id: str, room: str) -> None:
        if connection_id in self._connections:
            self._connections[connection_id].rooms.discard(room)

        if room in self._rooms:
            self._rooms[room].discard(connection_id)
            if not self._rooms[room]:
                del self._rooms[room]

    async def send_personal(self, connection_id: str, event: str, data: Any) -> bool:
        """
        Returns:
            False when the connection is gone
        """
        conn = self._connections.get(connection_id)
        if conn is None:
            return False
        return await self._send(conn, envelope(event, data))

    async def emit_to_room(self, room: str, event: str, data: Any) -> int:
        """
        Sends an event to every connection in ``room``.

        Returns:
            Number of deliveries
        """
        message = envelope(event, data)
        sent_count = 0
        for connection_id in list(self._rooms.get(room, ())):
            conn = self._connections.get(connection_id)
            if conn is not None and await self._send(conn, message):
                sent_count += 1
        return sent_count

    async def emit_all(self, event: str, data: Any) -> int:
        message = envelope(event, data)
        sent_count = 0
        for conn in list(self._connections.values()):
            if await self._send(conn, message):
                sent_count += 1
        return sent_count

    async def _send(self, conn: ConnectionInfo, message: dict[str, Any]) -> bool:
        try:
            await conn.websocket.send_json(message)
        except Exception as e:
            # Broken socket
            await log_warning(f"Dropping socket {conn.connection_id}: {e}")
            await self.disconnect(conn.connection_id)
            return False
        return True

    def get_rooms(self, connection_id: str) -> set[str]:
        if connection_id in self._connections:
            return self._connections[connection_id].rooms.copy()
        return set()

    def get_room_members(self, room: str) -> set[str]:
        return self._rooms.get(room, set()).copy()
