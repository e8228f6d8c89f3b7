# src/services/api/realtime.py
"""
WebSocket endpoint for the driver and customer apps.

Frames in both directions are ``{"event": name, "data": payload}``.

Incoming events:
- driverLocation {driver: {id, status, ...}, gps: {latitude, longitude}}
- joinBookingRequest {driverId}
- joinTrip {bookingId}
- connectedTripUpdate {bookingId, driverId, ...}
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError

from src.common.constants import DriverStatus, SocketEvent, booking_room, driver_room
from src.common.logger import log_debug, log_warning
from src.core.presence.models import DriverPresence
from src.core.presence.registry import PresenceRegistry
from src.core.users.repository import DriverRepository
from src.services.api.dependencies import get_connection_manager, get_driver_repository, get_registry
from src.services.realtime_ws.connection_manager import ConnectionManager

router = APIRouter()


def parse_driver_location(connection_id: str, data: dict[str, Any]) -> DriverPresence:
    """
    Builds a presence entry from a driverLocation payload.

    Raises:
        ValueError: no driver id
        pydantic.ValidationError: coordinates or status out of range
    """
    driver = dict(data.get("driver") or {})
    gps = data.get("gps") or {}
    driver_id = driver.pop("id", None)
    if driver_id is None:
        raise ValueError("driverLocation without driver.id")

    status = driver.pop("status", None) or DriverStatus.ACTIVE.value
    is_online = driver.pop("is_online", True)

    return DriverPresence(
        driver_id=driver_id,
        connection_id=connection_id,
        latitude=gps.get("latitude"),
        longitude=gps.get("longitude"),
        status=status,
        is_online=is_online,
        profile=driver,
    )


async def broadcast_locations(manager: ConnectionManager, registry: PresenceRegistry) -> None:
    entries = await registry.snapshot()
    await manager.emit_all(SocketEvent.ALL_DRIVER_LOCATION.value, [entry.to_payload() for entry in entries])


async def persist_online(drivers: DriverRepository, driver_id: int, online: bool) -> None:
    """Mirrors socket presence onto the driver row, which dispatch claims check."""
    try:
        if not await drivers.set_online(driver_id, online):
            await log_warning(f"Online state of unknown driver {driver_id} not stored")
    except Exception as e:
        await log_warning(f"Online state of driver {driver_id} not stored: {e}")


async def handle_frame(
    connection_id: str,
    frame: dict[str, Any],
    manager: ConnectionManager,
    registry: PresenceRegistry,
    drivers: DriverRepository,
) -> None:
    event = frame.get("event")
    data = frame.get("data") or {}

    if event == SocketEvent.DRIVER_LOCATION.value:
        try:
            entry = parse_driver_location(connection_id, data)
        except (ValueError, PydanticValidationError) as e:
            await log_warning(f"Invalid driverLocation from {connection_id}: {e}")
            return
        previous = await registry.get(entry.driver_id)
        await registry.update(entry)
        if previous is None or previous.is_online != entry.is_online:
            await persist_online(drivers, entry.driver_id, entry.is_online)
        await broadcast_locations(manager, registry)

    elif event == SocketEvent.JOIN_BOOKING_REQUEST.value:
        if data.get("driverId") is not None:
            await manager.join(connection_id, driver_room(data["driverId"]))

    elif event == SocketEvent.JOIN_TRIP.value:
        if data.get("bookingId") is not None:
            await manager.join(connection_id, booking_room(data["bookingId"]))

    elif event == SocketEvent.CONNECTED_TRIP_UPDATE.value:
        booking_id = data.get("bookingId")
        if booking_id is None:
            return
        payload = dict(data)
        entry = await registry.get(data.get("driverId"))
        if entry is not None:
            payload.update(entry.to_payload())
        await manager.emit_to_room(booking_room(booking_id), SocketEvent.CONNECTED_TRIP.value, payload)

    else:
        await log_debug(f"Unknown socket event from {connection_id}: {event}")


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    manager: ConnectionManager = Depends(get_connection_manager),
    registry: PresenceRegistry = Depends(get_registry),
    drivers: DriverRepository = Depends(get_driver_repository),
) -> None:
    connection_id = await manager.connect(websocket)
    try:
        while True:
            frame = await websocket.receive_json()
            if isinstance(frame, dict):
                await handle_frame(connection_id, frame, manager, registry, drivers)
    except WebSocketDisconnect:
        pass
    except ValueError as e:
        # Non-JSON frame
        await log_warning(f"Socket {connection_id} sent an unreadable frame: {e}")
    finally:
        await manager.disconnect(connection_id)
        removed = await registry.remove_connection(connection_id)
        for driver_id in removed:
            await persist_online(drivers, driver_id, False)
        if removed:
            await broadcast_locations(manager, registry)
