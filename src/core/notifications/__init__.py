# src/core/notifications/__init__.py
"""
Notifications.
"""

from src.core.notifications.push import FirebasePushNotifier, PushNotifier
from src.core.notifications.service import NotificationService

__all__ = [
    "FirebasePushNotifier",
    "NotificationService",
    "PushNotifier",
]
