# src/core/bookings/repository.py
"""
Booking storage.
"""

from __future__ import annotations

import secrets
import string
from typing import Any, Iterable, Optional

from src.common.constants import BookingStatus
from src.core.bookings.models import Booking, BookingCreateDTO
from src.infra.database import DatabaseManager

BOOKING_COLUMNS = """
    id, booking_id, customer_id, driver_id, trip_id, status,
    start_lat, start_lng, end_lat, end_lng, start_location, end_location, created_at
"""

CODE_ALPHABET = string.ascii_uppercase + string.digits

# Marks "leave driver_id as it is"
_KEEP = object()


def generate_code(length: int = 10) -> str:
    """Random public code for bookings and trips."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


class BookingRepository:
    """Bookings table. Status changes are conditional on the current status."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def get(self, booking_id: int, conn: Any | None = None) -> Optional[Booking]:
        executor = conn or self._db
        row = await executor.fetchrow(f"SELECT {BOOKING_COLUMNS} FROM bookings WHERE id = $1", booking_id)
        return Booking(**dict(row)) if row else None

    async def get_by_customer(
        self,
        customer_id: int,
        statuses: Iterable[BookingStatus],
        conn: Any | None = None,
    ) -> Optional[Booking]:
        """Latest booking of the customer in one of ``statuses``."""
        executor = conn or self._db
        row = await executor.fetchrow(
            f"""
            SELECT {BOOKING_COLUMNS} FROM bookings
            WHERE customer_id = $1 AND status = ANY($2::text[])
            ORDER BY created_at DESC, id DESC
            LIMIT 1
            """,
            customer_id,
            [status.value for status in statuses],
        )
        return Booking(**dict(row)) if row else None

    async def get_by_driver(
        self,
        driver_id: int,
        statuses: Iterable[BookingStatus],
        conn: Any | None = None,
    ) -> Optional[Booking]:
        executor = conn or self._db
        row = await executor.fetchrow(
            f"""
            SELECT {BOOKING_COLUMNS} FROM bookings
            WHERE driver_id = $1 AND status = ANY($2::text[])
            ORDER BY created_at DESC, id DESC
            LIMIT 1
            """,
            driver_id,
            [status.value for status in statuses],
        )
        return Booking(**dict(row)) if row else None

    async def get_by_trip(self, trip_id: int, conn: Any | None = None) -> Optional[Booking]:
        """Booking in on_trip that the trip was started for."""
        executor = conn or self._db
        row = await executor.fetchrow(
            f"SELECT {BOOKING_COLUMNS} FROM bookings WHERE trip_id = $1 AND status = $2",
            trip_id,
            BookingStatus.ON_TRIP.value,
        )
        return Booking(**dict(row)) if row else None

    async def create(self, dto: BookingCreateDTO, conn: Any) -> Booking:
        row = await conn.fetchrow(
            f"""
            INSERT INTO bookings (
                booking_id, customer_id, status, start_lat, start_lng,
                end_lat, end_lng, start_location, end_location
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
            RETURNING {BOOKING_COLUMNS}
            """,
            generate_code(),
            dto.customer_id,
            BookingStatus.PENDING.value,
            dto.start_lat,
            dto.start_lng,
            dto.end_lat,
            dto.end_lng,
            dto.start_location,
            dto.end_location,
        )
        return Booking(**dict(row))

    async def update_status(
        self,
        booking_id: int,
        from_status: BookingStatus,
        to_status: BookingStatus,
        conn: Any,
        *,
        driver_id: Any = _KEEP,
    ) -> Optional[Booking]:
        """
        Moves a booking from ``from_status`` to ``to_status``.

        Args:
            driver_id: New driver (None clears it); untouched when omitted

        Returns:
            Updated booking, or None when the stored status was not ``from_status``
        """
        if driver_id is _KEEP:
            row = await conn.fetchrow(
                f"""
                UPDATE bookings SET status = $3, updated_at = NOW()
                WHERE id = $1 AND status = $2
                RETURNING {BOOKING_COLUMNS}
                """,
                booking_id,
                from_status.value,
                to_status.value,
            )
        else:
            row = await conn.fetchrow(
                f"""
                UPDATE bookings SET status = $3, driver_id = $4, updated_at = NOW()
                WHERE id = $1 AND status = $2
                RETURNING {BOOKING_COLUMNS}
                """,
                booking_id,
                from_status.value,
                to_status.value,
                driver_id,
            )
        return Booking(**dict(row)) if row else None

    async def attach_trip(self, booking_id: int, trip_id: int, conn: Any) -> Optional[Booking]:
        row = await conn.fetchrow(
            f"""
            UPDATE bookings SET trip_id = $2, updated_at = NOW()
            WHERE id = $1 AND status = $3
            RETURNING {BOOKING_COLUMNS}
            """,
            booking_id,
            trip_id,
            BookingStatus.ON_TRIP.value,
        )
        return Booking(**dict(row)) if row else None
