# src/services/realtime_ws/__init__.py
"""
Real-time WebSocket layer.
"""

from src.services.realtime_ws.broadcaster import RealtimeBroadcaster
from src.services.realtime_ws.connection_manager import ConnectionManager

__all__ = ["ConnectionManager", "RealtimeBroadcaster"]
