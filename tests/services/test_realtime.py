# tests/services/test_realtime.py
"""
Tests for the socket layer: connection manager, broadcaster and frame handling.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from src.common.constants import DriverStatus
from src.core.bookings.models import Booking
from src.core.bookings.service import BookingService
from src.core.matching.service import MatchingService
from src.core.presence.registry import PresenceRegistry
from src.services.api.app import app
from src.services.api.dependencies import get_connection_manager, get_driver_repository, get_registry
from src.services.api.realtime import handle_frame, parse_driver_location
from src.services.realtime_ws.broadcaster import RealtimeBroadcaster
from src.services.realtime_ws.connection_manager import ConnectionManager


def fake_socket() -> AsyncMock:
    websocket = AsyncMock()
    websocket.send_json = AsyncMock(return_value=None)
    return websocket


def location_frame(driver_id: int, lat: float = 16.84, lng: float = 96.17, **driver) -> dict:
    return {
        "event": "driverLocation",
        "data": {"driver": {"id": driver_id, **driver}, "gps": {"latitude": lat, "longitude": lng}},
    }


def sent_events(websocket: AsyncMock) -> list[str]:
    return [c.args[0]["event"] for c in websocket.send_json.call_args_list]


class TestConnectionManager:

    @pytest.fixture
    def manager(self) -> ConnectionManager:
        return ConnectionManager()

    @pytest.mark.asyncio
    async def test_connect_and_disconnect(self, manager: ConnectionManager) -> None:
        websocket = fake_socket()

        connection_id = await manager.connect(websocket)
        await manager.join(connection_id, "booking:55")

        websocket.accept.assert_awaited_once()
        assert manager.get_room_members("booking:55") == {connection_id}

        await manager.disconnect(connection_id)

        assert manager.active_connections == 0
        assert manager.get_room_members("booking:55") == set()

    @pytest.mark.asyncio
    async def test_emit_to_room_only_reaches_members(self, manager: ConnectionManager) -> None:
        inside, outside = fake_socket(), fake_socket()
        inside_id = await manager.connect(inside)
        await manager.connect(outside)
        await manager.join(inside_id, "driver:7")

        delivered = await manager.emit_to_room("driver:7", "bookingRequest", {"driverId": 7})

        assert delivered == 1
        inside.send_json.assert_awaited_once_with({"event": "bookingRequest", "data": {"driverId": 7}})
        outside.send_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_broken_socket_is_dropped(self, manager: ConnectionManager) -> None:
        broken = fake_socket()
        broken.send_json = AsyncMock(side_effect=RuntimeError("closed"))
        healthy = fake_socket()
        await manager.connect(broken)
        await manager.connect(healthy)

        assert await manager.emit_all("allDriverLocation", []) == 1
        assert manager.active_connections == 1

    @pytest.mark.asyncio
    async def test_send_personal_to_unknown(self, manager: ConnectionManager) -> None:
        assert not await manager.send_personal("missing", "x", {})


class TestRealtimeBroadcaster:

    @pytest.mark.asyncio
    async def test_booking_status_goes_to_booking_room(self) -> None:
        manager = MagicMock()
        manager.emit_to_room = AsyncMock(return_value=1)

        await RealtimeBroadcaster(manager).booking_status(55, "accepted")

        manager.emit_to_room.assert_awaited_once_with(
            "booking:55", "bookingStatus", {"bookingId": 55, "status": "accepted"},
        )

    @pytest.mark.asyncio
    async def test_failures_are_swallowed(self) -> None:
        manager = MagicMock()
        manager.emit_to_room = AsyncMock(side_effect=RuntimeError("boom"))

        await RealtimeBroadcaster(manager).booking_request(7)


class TestParseDriverLocation:

    def test_profile_fields_are_kept(self) -> None:
        entry = parse_driver_location("c1", location_frame(7, name="Ko Aung", status="busy")["data"])

        assert entry.driver_id == 7
        assert entry.status == DriverStatus.BUSY
        assert entry.profile == {"name": "Ko Aung"}
        assert entry.to_payload()["driver"]["name"] == "Ko Aung"

    def test_requires_driver_id(self) -> None:
        with pytest.raises(ValueError):
            parse_driver_location("c1", {"driver": {}, "gps": {"latitude": 1, "longitude": 1}})


class TestHandleFrame:

    @pytest.fixture
    def manager(self) -> ConnectionManager:
        return ConnectionManager()

    @pytest.fixture
    def registry(self) -> PresenceRegistry:
        return PresenceRegistry()

    @pytest.fixture
    def drivers(self, driver_table):
        return driver_table

    @pytest.mark.asyncio
    async def test_driver_location_updates_and_broadcasts(
        self,
        manager: ConnectionManager,
        registry: PresenceRegistry,
        drivers,
    ) -> None:
        driver_socket, customer_socket = fake_socket(), fake_socket()
        driver_conn = await manager.connect(driver_socket)
        await manager.connect(customer_socket)

        await handle_frame(driver_conn, location_frame(7), manager, registry, drivers)

        entry = await registry.get(7)
        assert entry.connection_id == driver_conn
        message = customer_socket.send_json.call_args.args[0]
        assert message["event"] == "allDriverLocation"
        assert message["data"][0]["driver"]["id"] == 7

    @pytest.mark.asyncio
    async def test_first_location_marks_driver_online(
        self,
        manager: ConnectionManager,
        registry: PresenceRegistry,
        drivers,
    ) -> None:
        conn = await manager.connect(fake_socket())

        await handle_frame(conn, location_frame(7), manager, registry, drivers)

        assert drivers.rows[7]["is_online"] is True

    @pytest.mark.asyncio
    async def test_online_state_written_only_on_change(
        self,
        manager: ConnectionManager,
        registry: PresenceRegistry,
    ) -> None:
        drivers = AsyncMock()
        drivers.set_online = AsyncMock(return_value=True)
        conn = await manager.connect(fake_socket())

        await handle_frame(conn, location_frame(7), manager, registry, drivers)
        await handle_frame(conn, location_frame(7, lat=16.85), manager, registry, drivers)
        await handle_frame(conn, location_frame(7, is_online=False), manager, registry, drivers)

        assert [c.args for c in drivers.set_online.call_args_list] == [(7, True), (7, False)]

    @pytest.mark.asyncio
    async def test_online_write_failure_keeps_presence(
        self,
        manager: ConnectionManager,
        registry: PresenceRegistry,
    ) -> None:
        drivers = AsyncMock()
        drivers.set_online = AsyncMock(side_effect=ConnectionError("db down"))
        customer_socket = fake_socket()
        conn = await manager.connect(fake_socket())
        await manager.connect(customer_socket)

        await handle_frame(conn, location_frame(7), manager, registry, drivers)

        assert await registry.get(7) is not None
        assert sent_events(customer_socket) == ["allDriverLocation"]

    @pytest.mark.asyncio
    async def test_invalid_location_is_ignored(
        self,
        manager: ConnectionManager,
        registry: PresenceRegistry,
        drivers,
    ) -> None:
        conn = await manager.connect(fake_socket())

        await handle_frame(conn, location_frame(7, lat=123.0), manager, registry, drivers)

        assert await registry.get(7) is None
        assert drivers.rows[7]["is_online"] is False

    @pytest.mark.asyncio
    async def test_join_rooms(self, manager: ConnectionManager, registry: PresenceRegistry, drivers) -> None:
        conn = await manager.connect(fake_socket())

        await handle_frame(conn, {"event": "joinBookingRequest", "data": {"driverId": 7}}, manager, registry, drivers)
        await handle_frame(conn, {"event": "joinTrip", "data": {"bookingId": 55}}, manager, registry, drivers)

        assert manager.get_rooms(conn) == {"driver:7", "booking:55"}

    @pytest.mark.asyncio
    async def test_connected_trip_update_merges_driver_entry(
        self,
        manager: ConnectionManager,
        registry: PresenceRegistry,
        drivers,
    ) -> None:
        driver_socket, customer_socket = fake_socket(), fake_socket()
        driver_conn = await manager.connect(driver_socket)
        customer_conn = await manager.connect(customer_socket)
        await handle_frame(driver_conn, location_frame(7), manager, registry, drivers)
        await handle_frame(
            customer_conn, {"event": "joinTrip", "data": {"bookingId": 55}}, manager, registry, drivers,
        )
        customer_socket.send_json.reset_mock()

        await handle_frame(
            driver_conn,
            {"event": "connectedTripUpdate", "data": {"bookingId": 55, "driverId": 7, "eta": 4}},
            manager,
            registry,
            drivers,
        )

        message = customer_socket.send_json.call_args.args[0]
        assert message["event"] == "connectedTrip"
        assert message["data"]["eta"] == 4
        assert message["data"]["gps"] == {"latitude": 16.84, "longitude": 96.17}
        assert "connectedTrip" not in sent_events(driver_socket)

    @pytest.mark.asyncio
    async def test_unknown_event(self, manager: ConnectionManager, registry: PresenceRegistry, drivers) -> None:
        conn = await manager.connect(fake_socket())

        await handle_frame(conn, {"event": "dance", "data": {}}, manager, registry, drivers)


class TestPresenceToDispatch:
    """Socket presence feeds the database predicate that dispatch claims check."""

    @pytest.fixture
    def registry(self) -> PresenceRegistry:
        return PresenceRegistry()

    @pytest.fixture
    def service(
        self,
        mock_db: AsyncMock,
        registry: PresenceRegistry,
        mock_notifications: MagicMock,
        mock_broadcaster: AsyncMock,
        mock_event_bus: AsyncMock,
        driver_table,
        sample_booking_data: dict,
    ) -> BookingService:
        service = BookingService(
            db=mock_db,
            registry=registry,
            matching=MatchingService(registry, radius_km=3),
            notifications=mock_notifications,
            broadcaster=mock_broadcaster,
            event_bus=mock_event_bus,
        )
        service._drivers = driver_table
        service._bookings = AsyncMock()
        service._bookings.get_by_customer = AsyncMock(return_value=Booking(**sample_booking_data))
        service._bookings.update_status = AsyncMock(
            return_value=Booking(**{**sample_booking_data, "status": "connected", "driver_id": 7}),
        )
        return service

    @pytest.mark.asyncio
    async def test_connected_driver_is_dispatched(
        self,
        service: BookingService,
        registry: PresenceRegistry,
        driver_table,
    ) -> None:
        manager = ConnectionManager()
        conn = await manager.connect(fake_socket())

        await handle_frame(conn, location_frame(7), manager, registry, driver_table)
        result = await service.search_driver(3)

        assert result.success
        assert result.driver_id == 7
        assert driver_table.rows[7]["status"] == DriverStatus.BUSY.value
        assert (await registry.get(7)).status == DriverStatus.BUSY

    @pytest.mark.asyncio
    async def test_claim_fails_once_driver_goes_offline(
        self,
        service: BookingService,
        registry: PresenceRegistry,
        driver_table,
    ) -> None:
        manager = ConnectionManager()
        conn = await manager.connect(fake_socket())
        await handle_frame(conn, location_frame(7), manager, registry, driver_table)

        # The database row goes offline while the registry still holds the driver
        await driver_table.set_online(7, False)
        result = await service.search_driver(3)

        assert not result.success
        assert driver_table.rows[7]["status"] == DriverStatus.ACTIVE.value
        service._bookings.update_status.assert_not_awaited()


class TestWebSocketEndpoint:

    @pytest.fixture
    def wiring(self, driver_table):
        manager = ConnectionManager()
        registry = PresenceRegistry()
        app.dependency_overrides[get_connection_manager] = lambda: manager
        app.dependency_overrides[get_registry] = lambda: registry
        app.dependency_overrides[get_driver_repository] = lambda: driver_table
        yield manager, registry, driver_table
        app.dependency_overrides.clear()

    def test_disconnect_removes_driver(self, wiring) -> None:
        manager, registry, drivers = wiring
        client = TestClient(app)

        with client.websocket_connect("/ws") as websocket:
            websocket.send_json(location_frame(7))
            reply = websocket.receive_json()
            assert reply["event"] == "allDriverLocation"
            assert len(registry) == 1
            assert drivers.rows[7]["is_online"] is True

        assert len(registry) == 0
        assert manager.active_connections == 0
        assert drivers.rows[7]["is_online"] is False
        assert not asyncio.run(drivers.claim_for_dispatch(7, None))
