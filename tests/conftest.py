# tests/conftest.py
"""
Shared fixtures and test settings.
"""

from __future__ import annotations

import json
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

# Environment must be set before src.config is imported
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("REDIS_PASSWORD", "")
os.environ.setdefault("JWT_SECRET", "test_jwt_secret")
os.environ.setdefault("GOOGLE_MAPS_API_KEY", "")

from src.common.constants import DriverStatus, TripStatus  # noqa: E402
from src.core.fees.calculator import FeeConfig  # noqa: E402
from src.core.trips.models import Trip  # noqa: E402


# =============================================================================
# CONFIGURATION FIXTURES
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    return project_root / "config" / "config.json"


@pytest.fixture(scope="session")
def lang_dict_path(project_root: Path) -> Path:
    return project_root / "config" / "lang_dict.json"


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Minimal config.json contents."""
    return {
        "_comment_system": "System",
        "PROJECT_NAME": "tuktuk_test",
        "BRAND_NAME": "Test Tuk Tuk",
        "VERSION": "1.0.0-test",
        "DEBUG": True,
        "ENVIRONMENT": "test",
        "LOG_LEVEL": "DEBUG",
        "LOG_TO_FILE": False,
        "LOG_FORMAT": "colored",
        "API_PORT": 9001,
        "ALLOWED_ORIGINS": ["http://localhost:3000"],
        "TIMEZONE": "Asia/Yangon",
        "CURRENCY": "ks",
        "DB_HOST": "db.test",
        "DB_PORT": 5433,
        "DB_NAME": "tuktuk_test",
        "DB_USER": "tester",
        "REDIS_HOST": "redis.test",
        "REDIS_NAMESPACE": "tuktuk_test",
        "RABBITMQ_EXCHANGE": "tuktuk.test",
        "JWT_EXPIRE_DAYS": 7,
        "AUTH_RATE_LIMIT_ATTEMPTS": 3,
        "DRIVER_SEARCH_RADIUS_KM": 2.5,
        "MAX_TRIP_DISTANCE_KM": 500,
        "DRIVER_OPENING_BALANCE": 10000,
    }


@pytest.fixture
def mock_lang_dict() -> dict[str, dict[str, str]]:
    return {
        "GREETING": {"en": "Hello, {name}!", "my": "မင်္ဂလာပါ {name}"},
        "ONLY_MY": {"my": "မြန်မာ"},
        "TRIP_ENDED_BODY": {"en": "Your trip is complete. You earned {amount} {currency}"},
    }


@pytest.fixture
def temp_config_file(tmp_path: Path, mock_config: dict[str, Any]) -> Path:
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(mock_config, ensure_ascii=False, indent=2))
    return config_file


@pytest.fixture
def temp_lang_dict_file(tmp_path: Path, mock_lang_dict: dict[str, dict[str, str]]) -> Path:
    lang_file = tmp_path / "lang_dict.json"
    lang_file.write_text(json.dumps(mock_lang_dict, ensure_ascii=False, indent=2))
    return lang_file


# =============================================================================
# INFRASTRUCTURE FIXTURES (MOCKS)
# =============================================================================

@pytest.fixture
def mock_conn() -> AsyncMock:
    """Connection handed out by ``mock_db.transaction()``."""
    conn = AsyncMock()
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetch = AsyncMock(return_value=[])
    conn.execute = AsyncMock(return_value="UPDATE 1")
    conn.fetchval = AsyncMock(return_value=None)
    return conn


@pytest.fixture
def mock_db(mock_conn: AsyncMock) -> AsyncMock:
    """Database manager mock; ``transaction()`` yields ``mock_conn``."""
    db = AsyncMock()
    db.fetchrow = AsyncMock(return_value=None)
    db.fetch = AsyncMock(return_value=[])
    db.execute = AsyncMock(return_value="INSERT 0 1")
    db.fetchval = AsyncMock(return_value=None)

    @asynccontextmanager
    async def transaction():
        yield mock_conn

    db.transaction = transaction
    return db


@pytest.fixture
def mock_redis() -> AsyncMock:
    redis = AsyncMock()
    redis.incr_window = AsyncMock(return_value=1)
    redis.health_check = AsyncMock(return_value=True)
    redis.is_connected = True
    return redis


@pytest.fixture
def mock_event_bus() -> AsyncMock:
    event_bus = AsyncMock()
    event_bus.publish = AsyncMock(return_value=None)
    event_bus.is_connected = True
    return event_bus


@pytest.fixture
def mock_broadcaster() -> AsyncMock:
    broadcaster = AsyncMock()
    broadcaster.booking_status = AsyncMock(return_value=None)
    broadcaster.booking_request = AsyncMock(return_value=None)
    return broadcaster


@pytest.fixture
def mock_notifications() -> MagicMock:
    """Notification service mock; ``text`` echoes the key."""
    notifications = MagicMock()
    notifications.text = MagicMock(side_effect=lambda key, **kwargs: key)
    notifications.push = AsyncMock(return_value=True)
    notifications.push_to_customer = AsyncMock(return_value=True)
    notifications.notify_driver = AsyncMock(return_value=None)
    notifications.record_driver_notification = AsyncMock(return_value=True)
    return notifications


# =============================================================================
# DOMAIN FIXTURES
# =============================================================================

@pytest.fixture
def fee_config() -> FeeConfig:
    """Reference configuration: 10 km -> 13000 customer / 12900 driver."""
    return FeeConfig(
        id=1,
        initial_fee=3000,
        distance_fee_per_km=1000,
        waiting_fee_per_minute=200,
        free_waiting_minute=10,
        commission_rate=100,
        commission_rate_type="fixed",
        platform_fee=0,
        insurance_fee=0,
    )


@pytest.fixture
def sample_driver_data() -> dict[str, Any]:
    return {
        "id": 7,
        "driver_id": "7B007",
        "name": "Ko Aung",
        "phone": "0912345678",
        "fcm_token": "driver-device-token",
        "vehicle_number": "YGN-1234",
        "vehicle_model": "Bajaj RE",
        "driving_license_number": "LIC-77",
        "address": "Main st, Yangon",
        "balance": 50000,
        "status": "active",
        "is_online": True,
        "verified": True,
        "disabled": False,
        "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }


@pytest.fixture
def sample_booking_data() -> dict[str, Any]:
    return {
        "id": 55,
        "booking_id": "BK12345678",
        "customer_id": 3,
        "driver_id": None,
        "trip_id": None,
        "status": "pending",
        "start_lat": 16.8409,
        "start_lng": 96.1735,
        "end_lat": 16.7800,
        "end_lng": 96.1500,
        "start_location": "Sule Pagoda",
        "end_location": "Airport",
        "created_at": datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc),
    }


@pytest.fixture
def sample_trip() -> Trip:
    return Trip(
        id=101,
        trip_id="TRIP000101",
        driver_id=7,
        status=TripStatus.DRIVING,
        start_lat=16.8409,
        start_lng=96.1735,
        started_at=datetime(2024, 1, 1, 3, 0, tzinfo=timezone.utc),
        created_at=datetime(2024, 1, 1, 3, 0, tzinfo=timezone.utc),
    )


# =============================================================================
# IN-MEMORY LEDGER
# =============================================================================

class InMemoryLedger:
    """
    Stand-in for the trip, ledger and driver repositories used by
    settlement. Mirrors the status-predicated updates of the SQL versions.
    """

    def __init__(self, trip: Trip, balance: float = 50000) -> None:
        self.trips: dict[int, Trip] = {trip.id: trip}
        self.finished: dict[int, dict[str, Any]] = {}
        self.transactions: list[dict[str, Any]] = []
        self.commissions: list[dict[str, Any]] = []
        self.balances: dict[int, float] = {trip.driver_id: balance}
        self.driver_status: dict[int, str] = {trip.driver_id: "on_trip"}

    # TripRepository
    async def lock(self, trip_id: int, conn: Any) -> Trip | None:
        return self.trips.get(trip_id)

    async def finish(self, trip_id, config, fees, measurements, end_location, started_at, conn) -> bool:
        trip = self.trips[trip_id]
        if not trip.can_end:
            return False
        self.trips[trip_id] = trip.model_copy(update={
            "status": TripStatus.FINISHED,
            "started_at": started_at,
            "end_location": end_location,
            "total_amount": fees.customer_total,
        })
        self.finished[trip_id] = {"fees": fees, "started_at": started_at}
        return True

    # TransactionRepository
    async def create(self, driver_id, amount, transaction_type, status, conn) -> int:
        self.transactions.append({
            "driver_id": driver_id,
            "amount": amount,
            "type": transaction_type.value,
            "status": status.value,
        })
        return len(self.transactions)

    async def record_commission(self, transaction_id, commission_rate, commission_rate_type, trip_id, conn) -> int:
        self.commissions.append({
            "driver_transaction_id": transaction_id,
            "commission_rate": commission_rate,
            "commission_rate_type": commission_rate_type,
            "trip_id": trip_id,
        })
        return len(self.commissions)

    # DriverRepository
    async def adjust_balance(self, driver_id, delta, conn, status=None) -> float:
        self.balances[driver_id] += delta
        if status is not None:
            self.driver_status[driver_id] = status.value
        return self.balances[driver_id]


@pytest.fixture
def ledger(sample_trip: Trip) -> InMemoryLedger:
    return InMemoryLedger(sample_trip)


# =============================================================================
# IN-MEMORY DRIVER TABLE
# =============================================================================

class DriverTable:
    """
    Stand-in for the availability columns of the drivers table. Mirrors the
    predicates of the DriverRepository updates.
    """

    def __init__(self, *driver_ids: int) -> None:
        self.rows: dict[int, dict[str, Any]] = {
            driver_id: {"status": DriverStatus.ACTIVE.value, "is_online": False, "disabled": False}
            for driver_id in driver_ids
        }

    async def set_online(self, driver_id: int, online: bool, conn: Any = None) -> bool:
        row = self.rows.get(driver_id)
        if row is None:
            return False
        row["is_online"] = online
        return True

    async def set_status(self, driver_id: int, status: DriverStatus, conn: Any = None) -> bool:
        row = self.rows.get(driver_id)
        if row is None:
            return False
        row["status"] = status.value
        return True

    async def claim_for_dispatch(self, driver_id: int, conn: Any) -> bool:
        row = self.rows.get(driver_id)
        if row is None or row["disabled"] or not row["is_online"]:
            return False
        if row["status"] != DriverStatus.ACTIVE.value:
            return False
        row["status"] = DriverStatus.BUSY.value
        return True


@pytest.fixture
def driver_table() -> DriverTable:
    return DriverTable(7)
