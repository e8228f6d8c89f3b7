# src/services/__init__.py
"""
Service layer.

- api: REST routes under /api/v1 and the /ws socket endpoint
- realtime_ws: socket connections, rooms and broadcast
"""

__all__: list[str] = []
