# src/shared/models/__init__.py
"""
Shared pydantic models.
"""

from src.shared.models.common import ErrorResponse, HealthStatus

__all__ = ["ErrorResponse", "HealthStatus"]
