# tests/core/test_settlement.py
"""
Tests for trip settlement against an in-memory ledger.
"""

from __future__ import annotations

import asyncio
from datetime import time
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.common.constants import BookingStatus, DriverStatus, NotificationType, TripStatus
from src.common.errors import AlreadySettled
from src.core.bookings.models import Booking
from src.core.fees.calculator import FeeConfig, TimeFeeWindow
from src.core.trips.models import Trip, TripMeasurements
from src.core.trips.settlement import SettlementService
from src.shared.events import TripSettled


def ten_km() -> TripMeasurements:
    return TripMeasurements(
        distance_km=10,
        duration_sec=1200,
        waiting_sec=0,
        extra_fee=0,
        end_lat=16.78,
        end_lng=96.15,
    )


class TestSettlementService:

    @pytest.fixture
    def registry(self) -> AsyncMock:
        registry = AsyncMock()
        registry.set_status = AsyncMock(return_value=None)
        return registry

    @pytest.fixture
    def bookings(self) -> AsyncMock:
        bookings = AsyncMock()
        bookings.complete = AsyncMock(return_value=None)
        bookings.publish_transition = AsyncMock(return_value=None)
        return bookings

    @pytest.fixture
    def service(
        self,
        mock_db: AsyncMock,
        registry: AsyncMock,
        bookings: AsyncMock,
        mock_notifications: MagicMock,
        mock_event_bus: AsyncMock,
        ledger,
    ) -> SettlementService:
        service = SettlementService(
            db=mock_db,
            registry=registry,
            notifications=mock_notifications,
            bookings=bookings,
            event_bus=mock_event_bus,
            timezone="Asia/Yangon",
            currency="ks",
            brand="Test Tuk Tuk",
        )
        service._trips = ledger
        service._transactions = ledger
        service._drivers = ledger
        return service

    @pytest.mark.asyncio
    async def test_reference_trip(
        self,
        service: SettlementService,
        ledger,
        sample_trip: Trip,
        fee_config: FeeConfig,
    ) -> None:
        result = await service.settle(sample_trip, fee_config, [], ten_km(), end_location="Airport")

        assert result.fees.customer_total == 13000
        assert result.fees.driver_received_amount == 12900
        assert result.fees.commission_fee == 100
        assert result.balance == 49900
        assert ledger.trips[101].status == TripStatus.FINISHED
        assert ledger.driver_status[7] == DriverStatus.ACTIVE.value

        response = result.to_response()
        assert response["total_amount"] == 13000
        assert response["initial_fee"] == 3000
        assert response["distance_fee"] == 10000

    @pytest.mark.asyncio
    async def test_commission_is_booked(
        self,
        service: SettlementService,
        ledger,
        sample_trip: Trip,
        fee_config: FeeConfig,
    ) -> None:
        await service.settle(sample_trip, fee_config, [], ten_km())

        assert ledger.transactions == [
            {"driver_id": 7, "amount": 100, "type": "commission", "status": "completed"},
        ]
        assert ledger.commissions[0]["trip_id"] == 101
        assert ledger.commissions[0]["commission_rate_type"] == "fixed"

    @pytest.mark.asyncio
    async def test_second_settle_is_rejected(
        self,
        service: SettlementService,
        ledger,
        sample_trip: Trip,
        fee_config: FeeConfig,
    ) -> None:
        await service.settle(sample_trip, fee_config, [], ten_km())

        with pytest.raises(AlreadySettled):
            await service.settle(sample_trip, fee_config, [], ten_km())

        assert ledger.balances[7] == 49900
        assert len(ledger.transactions) == 1

    @pytest.mark.asyncio
    async def test_concurrent_settles_debit_once(
        self,
        service: SettlementService,
        ledger,
        sample_trip: Trip,
        fee_config: FeeConfig,
    ) -> None:
        results = await asyncio.gather(
            service.settle(sample_trip, fee_config, [], ten_km()),
            service.settle(sample_trip, fee_config, [], ten_km()),
            return_exceptions=True,
        )

        assert sum(isinstance(r, AlreadySettled) for r in results) == 1
        assert ledger.balances[7] == 49900

    @pytest.mark.asyncio
    async def test_start_time_is_preserved(
        self,
        service: SettlementService,
        ledger,
        sample_trip: Trip,
        fee_config: FeeConfig,
    ) -> None:
        await service.settle(sample_trip, fee_config, [], ten_km())

        assert ledger.finished[101]["started_at"] == sample_trip.started_at
        assert ledger.trips[101].started_at == sample_trip.started_at

    @pytest.mark.asyncio
    async def test_surcharge_uses_trip_start_in_local_time(
        self,
        service: SettlementService,
        sample_trip: Trip,
        fee_config: FeeConfig,
    ) -> None:
        # 03:00 UTC is 09:30 in Yangon
        windows = [
            TimeFeeWindow(start_time=time(9, 0), end_time=time(10, 0), fee_delta=500),
            TimeFeeWindow(start_time=time(3, 0), end_time=time(4, 0), fee_delta=9999),
        ]

        result = await service.settle(sample_trip, fee_config, windows, ten_km())

        assert result.fees.time_based_fee == 500
        assert result.fees.customer_total == 13500

    @pytest.mark.asyncio
    async def test_notifies_driver_after_commit(
        self,
        service: SettlementService,
        registry: AsyncMock,
        mock_notifications: MagicMock,
        mock_event_bus: AsyncMock,
        sample_trip: Trip,
        fee_config: FeeConfig,
    ) -> None:
        await service.settle(sample_trip, fee_config, [], ten_km())

        registry.set_status.assert_awaited_once_with(7, DriverStatus.ACTIVE)
        kwargs = mock_notifications.notify_driver.call_args.kwargs
        assert kwargs["notification_type"] == NotificationType.TRIP
        assert kwargs["detail_id"] == 101
        event = mock_event_bus.publish.call_args.args[0]
        assert isinstance(event, TripSettled)
        assert event.commission_fee == 100

    @pytest.mark.asyncio
    async def test_notification_failure_keeps_settlement(
        self,
        service: SettlementService,
        ledger,
        mock_notifications: MagicMock,
        sample_trip: Trip,
        fee_config: FeeConfig,
    ) -> None:
        mock_notifications.notify_driver = AsyncMock(side_effect=RuntimeError("fcm down"))

        result = await service.settle(sample_trip, fee_config, [], ten_km())

        assert result.fees.customer_total == 13000
        assert ledger.trips[101].status == TripStatus.FINISHED

    @pytest.mark.asyncio
    async def test_booked_trip_completes_booking(
        self,
        service: SettlementService,
        bookings: AsyncMock,
        mock_notifications: MagicMock,
        sample_trip: Trip,
        sample_booking_data: dict,
        fee_config: FeeConfig,
    ) -> None:
        on_trip = Booking(**{**sample_booking_data, "status": "on_trip", "driver_id": 7, "trip_id": 101})
        completed = on_trip.model_copy(update={"status": BookingStatus.COMPLETED})
        bookings.complete = AsyncMock(return_value=completed)

        result = await service.settle(sample_trip, fee_config, [], ten_km(), booking=on_trip)

        assert result.booking_id == 55
        bookings.complete.assert_awaited_once()
        bookings.publish_transition.assert_awaited_once_with(on_trip, completed)
        assert mock_notifications.push_to_customer.call_args.args[:2] == (3, "RIDE_FINISHED_TITLE")

    @pytest.mark.asyncio
    async def test_percentage_commission(
        self,
        service: SettlementService,
        ledger,
        sample_trip: Trip,
    ) -> None:
        config = FeeConfig(
            initial_fee=1000,
            distance_fee_per_km=500,
            commission_rate=10,
            commission_rate_type="percentage",
        )

        result = await service.settle(sample_trip, config, [], ten_km())

        # driver total 6000, 10% commission
        assert result.fees.commission_fee == 600
        assert result.fees.driver_received_amount == 5400
        assert ledger.balances[7] == 49400
