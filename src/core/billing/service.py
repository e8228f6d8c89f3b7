# src/core/billing/service.py
"""
Cash-in service.
Drivers prepay commission by topping up their wallet; admins confirm.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from src.common.constants import (
    NotificationChannel,
    NotificationType,
    TransactionStatus,
    TransactionType,
    TypeMsg,
)
from src.common.errors import NotFound
from src.common.logger import log_info
from src.common.validators import validate_amount
from src.core.billing.repository import TransactionRepository
from src.core.notifications.service import NotificationService
from src.core.users.repository import DriverRepository
from src.infra.database import DatabaseManager
from src.infra.event_bus import EventBus
from src.shared.events import CashInRequested, CashInReviewed


@dataclass
class CashInResult:
    transaction_id: int
    driver_id: int
    balance: Optional[float] = None


class CashInService:
    """
    Driver wallet top-ups.

    Ledger rows and the balance change commit together; the driver is
    notified afterwards.
    """

    def __init__(
        self,
        db: DatabaseManager,
        notifications: NotificationService,
        event_bus: EventBus,
    ) -> None:
        self._db = db
        self._transactions = TransactionRepository(db)
        self._drivers = DriverRepository(db)
        self._notifications = notifications
        self._event_bus = event_bus

    async def _notify(
        self,
        driver_id: int,
        title_key: str,
        body_key: str,
        transaction_id: int,
        **params: Any,
    ) -> None:
        await self._notifications.notify_driver(
            driver_id,
            self._notifications.text(title_key),
            self._notifications.text(body_key, **params),
            NotificationChannel.TRANSACTION,
            notification_type=NotificationType.TRANSACTION,
            detail_id=transaction_id,
        )

    async def request_cash_in(
        self,
        driver_id: int,
        payment_method: Optional[str],
        receipt_photo_url: Optional[str],
    ) -> CashInResult:
        """Driver submits a receipt; the amount is filled in on review."""
        async with self._db.transaction() as conn:
            transaction_id = await self._transactions.create(
                driver_id, None, TransactionType.CASH_IN, TransactionStatus.PENDING, conn,
            )
            await self._transactions.create_top_up(transaction_id, payment_method, receipt_photo_url, conn)

        await log_info(f"Cash-in {transaction_id} requested by driver {driver_id}", type_msg=TypeMsg.INFO)
        await self._notify(driver_id, "TOP_UP_REQUEST_TITLE", "TOP_UP_REQUEST_BODY", transaction_id)
        await self._event_bus.publish(CashInRequested(transaction_id=transaction_id, driver_id=driver_id))
        return CashInResult(transaction_id=transaction_id, driver_id=driver_id)

    async def review_cash_in(
        self,
        admin_id: int,
        transaction_id: int,
        amount: Any,
        accepted: bool,
    ) -> CashInResult:
        """
        Accepts or rejects a pending cash-in.

        Raises:
            ValidationError: amount is not a positive number
            NotFound: unknown transaction or already processed
        """
        value = validate_amount(amount)
        status = TransactionStatus.COMPLETED if accepted else TransactionStatus.FAILED

        balance = None
        async with self._db.transaction() as conn:
            driver_id = await self._transactions.settle_pending_cash_in(transaction_id, value, status, conn)
            if driver_id is None:
                raise NotFound(
                    "invalid transaction id or already processed",
                    details={"transaction_id": transaction_id},
                )
            await self._transactions.approve_top_up(transaction_id, admin_id, conn)
            if accepted:
                balance = await self._drivers.adjust_balance(driver_id, value, conn)

        await log_info(
            f"Cash-in {transaction_id} {status.value} by admin {admin_id}, amount {value:g}",
            type_msg=TypeMsg.INFO,
        )
        if accepted:
            await self._notify(
                driver_id, "TOP_UP_CONFIRMED_TITLE", "TOP_UP_ADDED_BODY", transaction_id, amount=int(value),
            )
        else:
            await self._notify(driver_id, "TOP_UP_REJECTED_TITLE", "TOP_UP_FAILED_BODY", transaction_id)
        await self._event_bus.publish(CashInReviewed(
            transaction_id=transaction_id,
            driver_id=driver_id,
            amount=value,
            accepted=accepted,
            admin_id=admin_id,
        ))
        return CashInResult(transaction_id=transaction_id, driver_id=driver_id, balance=balance)

    async def admin_cash_in(
        self,
        admin_id: int,
        driver_id: int,
        amount: Any,
        payment_method: Optional[str],
        receipt_photo_url: Optional[str],
    ) -> CashInResult:
        """Admin tops up a driver directly (completed immediately)."""
        value = validate_amount(amount)

        async with self._db.transaction() as conn:
            if await self._drivers.get(driver_id, conn) is None:
                raise NotFound("Driver not found", details={"driver_id": driver_id})
            transaction_id = await self._transactions.create(
                driver_id, value, TransactionType.CASH_IN, TransactionStatus.COMPLETED, conn,
            )
            await self._transactions.create_top_up(
                transaction_id, payment_method, receipt_photo_url, conn, approved_admin_id=admin_id,
            )
            balance = await self._drivers.adjust_balance(driver_id, value, conn)

        await log_info(
            f"Admin {admin_id} topped up driver {driver_id} by {value:g}",
            type_msg=TypeMsg.INFO,
        )
        await self._notify(
            driver_id, "TOP_UP_SUCCESS_TITLE", "TOP_UP_ADDED_BODY", transaction_id, amount=int(value),
        )
        await self._event_bus.publish(CashInReviewed(
            transaction_id=transaction_id,
            driver_id=driver_id,
            amount=value,
            accepted=True,
            admin_id=admin_id,
        ))
        return CashInResult(transaction_id=transaction_id, driver_id=driver_id, balance=balance)
