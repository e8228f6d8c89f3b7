# src/core/billing/repository.py
"""
Driver wallet ledger: driver_transactions, commissions and top_ups.
"""

from __future__ import annotations

import secrets
from typing import Any, Optional

from src.common.constants import TransactionStatus, TransactionType
from src.infra.database import DatabaseManager, affected_rows


def generate_transaction_number(length: int = 20) -> str:
    """Random numeric transaction number; never starts with zero."""
    first = str(secrets.randbelow(9) + 1)
    return first + "".join(str(secrets.randbelow(10)) for _ in range(length - 1))


class TransactionRepository:
    """
    Ledger rows. Every write takes an explicit connection so it joins the
    caller's transaction.
    """

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def create(
        self,
        driver_id: int,
        amount: Optional[float],
        transaction_type: TransactionType,
        status: TransactionStatus,
        conn: Any,
    ) -> int:
        return await conn.fetchval(
            """
            INSERT INTO driver_transactions (driver_id, amount, transaction_type, transaction_number, status)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING id
            """,
            driver_id,
            amount,
            transaction_type.value,
            generate_transaction_number(),
            status.value,
        )

    async def record_commission(
        self,
        transaction_id: int,
        commission_rate: float,
        commission_rate_type: str,
        trip_id: int,
        conn: Any,
    ) -> int:
        return await conn.fetchval(
            """
            INSERT INTO commissions (driver_transaction_id, commission_rate, commission_rate_type, trip_id)
            VALUES ($1, $2, $3, $4)
            RETURNING id
            """,
            transaction_id,
            commission_rate,
            commission_rate_type,
            trip_id,
        )

    async def create_top_up(
        self,
        transaction_id: int,
        payment_method: Optional[str],
        receipt_photo_url: Optional[str],
        conn: Any,
        approved_admin_id: Optional[int] = None,
    ) -> int:
        return await conn.fetchval(
            """
            INSERT INTO top_ups (driver_transaction_id, payment_method, receipt_photo_url, approved_admin_id)
            VALUES ($1, $2, $3, $4)
            RETURNING id
            """,
            transaction_id,
            payment_method,
            receipt_photo_url,
            approved_admin_id,
        )

    async def settle_pending_cash_in(
        self,
        transaction_id: int,
        amount: float,
        status: TransactionStatus,
        conn: Any,
    ) -> Optional[int]:
        """
        Closes a pending cash-in request.

        Returns:
            The driver id, or None when the transaction is unknown or was
            already processed
        """
        return await conn.fetchval(
            """
            UPDATE driver_transactions
            SET amount = $2, status = $3, updated_at = NOW()
            WHERE id = $1 AND status = $4 AND transaction_type = $5
            RETURNING driver_id
            """,
            transaction_id,
            amount,
            status.value,
            TransactionStatus.PENDING.value,
            TransactionType.CASH_IN.value,
        )

    async def approve_top_up(self, transaction_id: int, admin_id: int, conn: Any) -> bool:
        result = await conn.execute(
            "UPDATE top_ups SET approved_admin_id = $2 WHERE driver_transaction_id = $1",
            transaction_id,
            admin_id,
        )
        return affected_rows(result) > 0
