# src/services/api/__init__.py
"""
HTTP and WebSocket API.
"""
