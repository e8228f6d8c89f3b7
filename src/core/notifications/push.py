# src/core/notifications/push.py
"""
Push delivery through Firebase Cloud Messaging.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any, Protocol

import firebase_admin
from firebase_admin import credentials, messaging

from src.common.logger import log_debug


class PushNotifier(Protocol):
    """Anything able to deliver a push to a device token."""

    async def send(
        self,
        title: str,
        body: str,
        channel: str,
        token: str,
        data: dict[str, str] | None = None,
    ) -> bool:
        ...


class FirebasePushNotifier:
    """
    FCM adapter.

    The channel doubles as the android notification channel id and as the
    APNs sound name (``<channel>.wav``).
    """

    def __init__(self, enabled: bool | None = None, credentials_path: str | None = None) -> None:
        if enabled is None:
            from src.config import settings
            enabled = settings.firebase.FIREBASE_ENABLED
            credentials_path = settings.firebase.FIREBASE_CREDENTIALS_PATH

        self._enabled = enabled
        self._credentials_path = credentials_path or ""

    def _ensure_app(self) -> None:
        if firebase_admin._apps:
            return
        if self._credentials_path and os.path.exists(self._credentials_path):
            firebase_admin.initialize_app(credentials.Certificate(self._credentials_path))
        else:
            # Application default credentials
            firebase_admin.initialize_app()

    @staticmethod
    def build_message(
        title: str,
        body: str,
        channel: str,
        token: str,
        data: dict[str, str] | None = None,
    ) -> messaging.Message:
        return messaging.Message(
            notification=messaging.Notification(title=title, body=body),
            android=messaging.AndroidConfig(
                notification=messaging.AndroidNotification(channel_id=channel),
            ),
            apns=messaging.APNSConfig(
                payload=messaging.APNSPayload(aps=messaging.Aps(sound=f"{channel}.wav")),
            ),
            data=data,
            token=token,
        )

    async def send(
        self,
        title: str,
        body: str,
        channel: str,
        token: str,
        data: dict[str, Any] | None = None,
    ) -> bool:
        if not self._enabled:
            await log_debug(f"Push disabled, skipped: {title}")
            return False

        self._ensure_app()
        message = self.build_message(
            title, body, channel, token,
            {key: str(value) for key, value in data.items()} if data else None,
        )
        # firebase_admin is synchronous
        message_id = await asyncio.to_thread(messaging.send, message)
        await log_debug(f"Push sent: {title} ({message_id})")
        return True
