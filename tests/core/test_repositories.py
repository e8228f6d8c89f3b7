# tests/core/test_repositories.py
"""
Tests for the SQL repositories against a mocked connection.
"""

from __future__ import annotations

from datetime import time
from unittest.mock import AsyncMock

import asyncpg
import pytest

from src.common.constants import BookingStatus, DriverStatus, TransactionStatus
from src.common.errors import ConfigMissing, DuplicateKey
from src.core.billing.repository import TransactionRepository
from src.core.bookings.repository import BookingRepository, generate_code
from src.core.fees.repository import FeeConfigRepository
from src.core.users.models import DriverCreateDTO
from src.core.users.repository import CustomerRepository, DriverRepository


class TestBookingRepository:

    def test_generate_code(self) -> None:
        code = generate_code()

        assert len(code) == 10
        assert code.isalnum() and code.upper() == code

    @pytest.mark.asyncio
    async def test_update_status_is_conditional(self, mock_db: AsyncMock, mock_conn: AsyncMock) -> None:
        mock_conn.fetchrow = AsyncMock(return_value=None)

        result = await BookingRepository(mock_db).update_status(
            55, BookingStatus.CONNECTED, BookingStatus.ACCEPTED, mock_conn,
        )

        assert result is None
        query, *args = mock_conn.fetchrow.call_args.args
        assert "WHERE id = $1 AND status = $2" in query
        assert "driver_id" not in query.split("WHERE")[0]
        assert args == [55, "connected", "accepted"]

    @pytest.mark.asyncio
    async def test_update_status_can_clear_driver(
        self,
        mock_db: AsyncMock,
        mock_conn: AsyncMock,
        sample_booking_data: dict,
    ) -> None:
        mock_conn.fetchrow = AsyncMock(return_value=sample_booking_data)

        result = await BookingRepository(mock_db).update_status(
            55, BookingStatus.CONNECTED, BookingStatus.PENDING, mock_conn, driver_id=None,
        )

        assert result.id == 55
        query, *args = mock_conn.fetchrow.call_args.args
        assert "driver_id = $4" in query
        assert args[-1] is None

    @pytest.mark.asyncio
    async def test_get_by_customer_filters_statuses(self, mock_db: AsyncMock) -> None:
        await BookingRepository(mock_db).get_by_customer(3, (BookingStatus.PENDING, BookingStatus.ON_TRIP))

        assert mock_db.fetchrow.call_args.args[1:] == (3, ["pending", "on_trip"])

    @pytest.mark.asyncio
    async def test_get_by_trip_only_on_trip(self, mock_db: AsyncMock, sample_booking_data: dict) -> None:
        mock_db.fetchrow = AsyncMock(return_value={**sample_booking_data, "status": "on_trip", "trip_id": 101})

        booking = await BookingRepository(mock_db).get_by_trip(101)

        assert booking.trip_id == 101
        query, *args = mock_db.fetchrow.call_args.args
        assert "WHERE trip_id = $1 AND status = $2" in query
        assert args == [101, "on_trip"]


class TestDriverRepository:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("tag", "claimed"), [("UPDATE 1", True), ("UPDATE 0", False)])
    async def test_claim_for_dispatch(self, mock_db: AsyncMock, mock_conn: AsyncMock, tag: str, claimed: bool) -> None:
        mock_conn.execute = AsyncMock(return_value=tag)

        assert await DriverRepository(mock_db).claim_for_dispatch(7, mock_conn) is claimed
        query, *args = mock_conn.execute.call_args.args
        assert "is_online AND NOT disabled" in query
        assert args == [7, "busy", "active"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("online", [True, False])
    async def test_set_online(self, mock_db: AsyncMock, online: bool) -> None:
        mock_db.execute = AsyncMock(return_value="UPDATE 1")

        assert await DriverRepository(mock_db).set_online(7, online)
        query, *args = mock_db.execute.call_args.args
        assert "SET is_online = $2" in query
        assert args == [7, online]

    @pytest.mark.asyncio
    async def test_lock_uses_row_lock(self, mock_db: AsyncMock, mock_conn: AsyncMock) -> None:
        mock_conn.fetchrow = AsyncMock(return_value=None)

        assert not await DriverRepository(mock_db).lock(7, mock_conn)
        assert "FROM drivers WHERE id = $1 FOR UPDATE" in mock_conn.fetchrow.call_args.args[0]

    @pytest.mark.asyncio
    async def test_adjust_balance_with_status(self, mock_db: AsyncMock, mock_conn: AsyncMock) -> None:
        mock_conn.fetchval = AsyncMock(return_value=49900)

        balance = await DriverRepository(mock_db).adjust_balance(7, -100, mock_conn, status=DriverStatus.ACTIVE)

        assert balance == 49900
        assert mock_conn.fetchval.call_args.args[1:] == (7, -100, "active")

    @pytest.mark.asyncio
    async def test_create_duplicate(self, mock_db: AsyncMock) -> None:
        mock_db.fetchrow = AsyncMock(side_effect=asyncpg.UniqueViolationError("duplicate key"))
        dto = DriverCreateDTO(driver_id="7B001", name="Ko", phone="0912345678", vehicle_number="A", password="abc123")

        with pytest.raises(DuplicateKey):
            await DriverRepository(mock_db).create(dto, "hash", balance=0, verified=False)

    @pytest.mark.asyncio
    async def test_latest_code_pattern(self, mock_db: AsyncMock) -> None:
        mock_db.fetchval = AsyncMock(return_value="7B042")

        assert await DriverRepository(mock_db).latest_code("7B") == "7B042"
        assert mock_db.fetchval.call_args.args[1] == "^7B[0-9]{3}$"


class TestCustomerRepository:

    @pytest.mark.asyncio
    async def test_lock_uses_row_lock(self, mock_db: AsyncMock, mock_conn: AsyncMock) -> None:
        mock_conn.fetchrow = AsyncMock(return_value={"id": 3})

        assert await CustomerRepository(mock_db).lock(3, mock_conn)
        assert "FOR UPDATE" in mock_conn.fetchrow.call_args.args[0]


class TestTransactionRepository:

    @pytest.mark.asyncio
    async def test_settle_pending_cash_in_is_conditional(self, mock_db: AsyncMock, mock_conn: AsyncMock) -> None:
        mock_conn.fetchval = AsyncMock(return_value=None)

        driver_id = await TransactionRepository(mock_db).settle_pending_cash_in(
            900, 15000, TransactionStatus.COMPLETED, mock_conn,
        )

        assert driver_id is None
        assert mock_conn.fetchval.call_args.args[1:] == (900, 15000, "completed", "pending", "cash_in")


class TestFeeConfigRepository:

    @pytest.mark.asyncio
    async def test_missing_config(self, mock_db: AsyncMock) -> None:
        mock_db.fetchrow = AsyncMock(return_value=None)

        with pytest.raises(ConfigMissing):
            await FeeConfigRepository(mock_db).get_config()

    @pytest.mark.asyncio
    async def test_load_with_windows(self, mock_db: AsyncMock) -> None:
        mock_db.fetchrow = AsyncMock(return_value={
            "id": 1,
            "initial_fee": 3000,
            "distance_fee_per_km": 1000,
            "waiting_fee_per_minute": 200,
            "free_waiting_minute": 10,
            "commission_rate": 100,
            "commission_rate_type": "fixed",
            "platform_fee": 0,
            "insurance_fee": 0,
        })
        mock_db.fetch = AsyncMock(return_value=[
            {"start_time": time(22, 0), "end_time": time(5, 0), "fee_delta": 500},
        ])

        config, windows = await FeeConfigRepository(mock_db).load()

        assert config.initial_fee == 3000
        assert windows[0].fee_delta == 500
        assert mock_db.fetch.call_args.args[1] == 1
