# src/core/notifications/service.py
"""
Notification service.
Push messages and persisted driver notifications, both best-effort.
"""

from __future__ import annotations

from typing import Any, Optional

from src.common.constants import NotificationChannel, NotificationType
from src.common.localization import get_text
from src.common.logger import log_debug, log_warning
from src.core.notifications.push import PushNotifier
from src.core.users.repository import CustomerRepository, DriverRepository
from src.infra.database import DatabaseManager

# Device tokens shorter than this are placeholders left by old app builds
MIN_TOKEN_LENGTH = 6


class NotificationService:
    """
    Sends pushes and records driver notifications.

    Every public method swallows and logs its own failures: notifications
    never fail or roll back the operation that triggered them.
    """

    def __init__(
        self,
        db: DatabaseManager,
        notifier: PushNotifier,
        language: str | None = None,
    ) -> None:
        """
        Args:
            db: Database manager
            notifier: Push transport
            language: Message language (DEFAULT_LANGUAGE when None)
        """
        if language is None:
            from src.config import settings
            language = settings.domain.DEFAULT_LANGUAGE

        self._db = db
        self._customers = CustomerRepository(db)
        self._drivers = DriverRepository(db)
        self._notifier = notifier
        self._language = language

    def text(self, key: str, **kwargs: Any) -> str:
        return get_text(key, self._language, **kwargs)

    async def push(
        self,
        token: Optional[str],
        title: str,
        body: str,
        channel: NotificationChannel = NotificationChannel.DEFAULT,
        data: dict[str, Any] | None = None,
    ) -> bool:
        """
        Sends one push.

        Returns:
            True when the transport accepted it
        """
        if not token or len(token) < MIN_TOKEN_LENGTH:
            await log_debug(f"No usable device token, push skipped: {title}")
            return False

        try:
            return await self._notifier.send(title, body, channel.value, token, data)
        except Exception as e:
            await log_warning(f"Push '{title}' failed (non-critical): {e}")
            return False

    async def record_driver_notification(
        self,
        driver_id: int,
        title: str,
        body: str,
        notification_type: NotificationType,
        detail_id: int | None = None,
    ) -> bool:
        try:
            await self._db.execute(
                """
                INSERT INTO driver_notifications (driver_id, title, body, notification_type, detail_id)
                VALUES ($1, $2, $3, $4, $5)
                """,
                driver_id,
                title,
                body,
                notification_type.value,
                detail_id,
            )
            return True
        except Exception as e:
            await log_warning(f"Driver notification for {driver_id} not stored (non-critical): {e}")
            return False

    async def push_to_customer(
        self,
        customer_id: int,
        title: str,
        body: str,
        channel: NotificationChannel = NotificationChannel.DEFAULT,
        data: dict[str, Any] | None = None,
    ) -> bool:
        """Looks up the customer's device token and pushes to it."""
        try:
            token = await self._customers.get_fcm_token(customer_id)
        except Exception as e:
            await log_warning(f"Device token for customer {customer_id} unavailable (non-critical): {e}")
            return False
        return await self.push(token, title, body, channel, data)

    async def notify_driver(
        self,
        driver_id: int,
        title: str,
        body: str,
        channel: NotificationChannel = NotificationChannel.DEFAULT,
        notification_type: NotificationType | None = None,
        detail_id: int | None = None,
    ) -> None:
        """Push to a driver and, when a type is given, keep it in the driver's inbox."""
        data = {"detailId": detail_id} if detail_id is not None else None
        try:
            token = await self._drivers.get_fcm_token(driver_id)
        except Exception as e:
            await log_warning(f"Device token for driver {driver_id} unavailable (non-critical): {e}")
            token = None
        await self.push(token, title, body, channel, data)
        if notification_type is not None:
            await self.record_driver_notification(driver_id, title, body, notification_type, detail_id)
