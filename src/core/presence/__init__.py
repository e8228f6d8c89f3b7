# src/core/presence/__init__.py
"""Driver presence."""

from src.core.presence.models import DriverPresence
from src.core.presence.registry import PresenceRegistry

__all__ = ["DriverPresence", "PresenceRegistry"]
