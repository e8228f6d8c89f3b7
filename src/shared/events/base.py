# src/shared/events/base.py
"""
Base classes for domain events.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TypeVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class EventMetadata(BaseModel):
    """Tracing and deduplication metadata."""

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    correlation_id: str | None = None
    source_service: str = "tuktuk-api"
    version: int = 1


class DomainEvent(BaseModel):
    """
    Base for all domain events.

    Events are immutable, JSON-serialisable and carry an event_id so that
    consumers can process them idempotently.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    event_type: str = ""
    metadata: EventMetadata = Field(default_factory=EventMetadata)

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str | bytes) -> "DomainEvent":
        return cls.model_validate_json(data)

    @property
    def event_id(self) -> str:
        return self.metadata.event_id

    @property
    def timestamp(self) -> datetime:
        return self.metadata.timestamp


EventT = TypeVar("EventT", bound=DomainEvent)
