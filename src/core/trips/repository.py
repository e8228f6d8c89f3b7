# src/core/trips/repository.py
"""
Trip storage.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional

from src.common.constants import END_ELIGIBLE_TRIP_STATUSES, TripStatus
from src.core.bookings.repository import generate_code
from src.core.fees.calculator import FeeBreakdown, FeeConfig
from src.core.trips.models import Trip, TripMeasurements
from src.infra.database import DatabaseManager, affected_rows

TRIP_COLUMNS = """
    id, trip_id, driver_id, status, start_lat, start_lng, start_location,
    end_lat, end_lng, end_location, total_amount, commission_fee,
    driver_received_amount, started_at, ended_at, created_at
"""

_END_ELIGIBLE = [status.value for status in END_ELIGIBLE_TRIP_STATUSES]


def _json(value: Any) -> Optional[str]:
    return json.dumps(value) if value is not None else None


class TripRepository:
    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def get(self, trip_id: int, conn: Any | None = None) -> Optional[Trip]:
        executor = conn or self._db
        row = await executor.fetchrow(f"SELECT {TRIP_COLUMNS} FROM trips WHERE id = $1", trip_id)
        return Trip(**dict(row)) if row else None

    async def get_active_by_driver(self, driver_id: int, conn: Any | None = None) -> Optional[Trip]:
        """Latest trip of the driver that can still be ended."""
        executor = conn or self._db
        row = await executor.fetchrow(
            f"""
            SELECT {TRIP_COLUMNS} FROM trips
            WHERE driver_id = $1 AND status = ANY($2::text[])
            ORDER BY created_at DESC, id DESC
            LIMIT 1
            """,
            driver_id,
            _END_ELIGIBLE,
        )
        return Trip(**dict(row)) if row else None

    async def create(
        self,
        driver_id: int,
        start_lat: float,
        start_lng: float,
        start_location: Optional[str],
        config: FeeConfig,
        conn: Any,
    ) -> Trip:
        """Inserts a driving trip stamped with the current fee configuration."""
        row = await conn.fetchrow(
            f"""
            INSERT INTO trips (
                trip_id, driver_id, status, start_lat, start_lng, start_location,
                initial_fee, distance_fee_per_km, waiting_fee_per_minute, free_waiting_minute,
                commission_rate, commission_rate_type, platform_fee, insurance_fee, started_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, NOW())
            RETURNING {TRIP_COLUMNS}
            """,
            generate_code(),
            driver_id,
            TripStatus.DRIVING.value,
            start_lat,
            start_lng,
            start_location,
            config.initial_fee,
            config.distance_fee_per_km,
            config.waiting_fee_per_minute,
            config.free_waiting_minute,
            config.commission_rate,
            config.commission_rate_type,
            config.platform_fee,
            config.insurance_fee,
        )
        return Trip(**dict(row))

    async def lock(self, trip_id: int, conn: Any) -> Optional[Trip]:
        """Row-locks the trip until the surrounding transaction ends."""
        row = await conn.fetchrow(f"SELECT {TRIP_COLUMNS} FROM trips WHERE id = $1 FOR UPDATE", trip_id)
        return Trip(**dict(row)) if row else None

    async def finish(
        self,
        trip_id: int,
        config: FeeConfig,
        fees: FeeBreakdown,
        measurements: TripMeasurements,
        end_location: Optional[str],
        started_at: Optional[datetime],
        conn: Any,
    ) -> bool:
        """
        Writes the priced result and marks the trip finished.

        Returns:
            False when the trip had already left the end-eligible states
        """
        result = await conn.execute(
            """
            UPDATE trips SET
                status = $2,
                end_lat = $3, end_lng = $4, end_location = $5,
                initial_fee = $6, distance_fee_per_km = $7, waiting_fee_per_minute = $8,
                free_waiting_minute = $9, commission_rate = $10, commission_rate_type = $11,
                platform_fee = $12, insurance_fee = $13, time_based_fee = $14,
                distance_fee = $15, waiting_fee = $16, extra_fee = $17,
                commission_fee = $18, driver_received_amount = $19, total_amount = $20,
                distance_km = $21, duration_sec = $22, waiting_time_sec = $23,
                extra_list = $24::jsonb, location_points = $25::jsonb,
                gps_gaps = $26, gps_gap_details = $27::jsonb,
                started_at = $28, ended_at = NOW()
            WHERE id = $1 AND status = ANY($29::text[])
            """,
            trip_id,
            TripStatus.FINISHED.value,
            measurements.end_lat,
            measurements.end_lng,
            end_location,
            fees.base_initial_fee,
            config.distance_fee_per_km,
            config.waiting_fee_per_minute,
            config.free_waiting_minute,
            config.commission_rate,
            config.commission_rate_type,
            fees.platform_fee,
            fees.insurance_fee,
            fees.time_based_fee,
            fees.distance_fee,
            fees.waiting_fee,
            fees.extra_fee,
            fees.commission_fee,
            fees.driver_received_amount,
            fees.customer_total,
            measurements.distance_km,
            int(measurements.duration_sec),
            int(measurements.waiting_sec),
            _json(measurements.extra_list),
            _json(measurements.location_points),
            measurements.gps_gaps,
            _json(measurements.gps_gap_details),
            started_at,
            _END_ELIGIBLE,
        )
        return affected_rows(result) == 1
