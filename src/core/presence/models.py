# src/core/presence/models.py
"""
Driver presence entity.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field

from src.common.constants import DriverStatus


class DriverPresence(BaseModel):
    """Last known location and availability of a connected driver."""

    driver_id: int = Field(..., description="Driver primary key")
    connection_id: str = Field(..., description="Socket connection that reported it")
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    status: DriverStatus = DriverStatus.ACTIVE
    is_online: bool = True
    last_update: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Extra fields the driver app sends along (name, vehicle number, ...)
    profile: dict[str, Any] = Field(default_factory=dict)

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def is_available(self) -> bool:
        """Eligible for dispatch."""
        return self.is_online and self.status == DriverStatus.ACTIVE and self.has_location

    def to_payload(self) -> dict[str, Any]:
        """Shape broadcast to socket clients."""
        return {
            "driver": {
                **self.profile,
                "id": self.driver_id,
                "status": self.status.value,
                "is_online": self.is_online,
            },
            "gps": {"latitude": self.latitude, "longitude": self.longitude},
            "socketId": self.connection_id,
            "lastUpdate": self.last_update.isoformat(),
        }
