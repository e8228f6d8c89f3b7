# src/infra/event_bus.py
"""
RabbitMQ event bus.
Publishes domain events to a topic exchange after state changes commit.
"""

from __future__ import annotations

from datetime import datetime, timezone
import aio_pika
from aio_pika import ExchangeType, Message
from aio_pika.abc import AbstractChannel, AbstractConnection, AbstractExchange

from src.common.constants import TypeMsg
from src.common.logger import log_debug, log_error, log_info
from src.shared.events.base import DomainEvent


class EventTypes:
    """Routing keys."""
    BOOKING_CREATED = "booking.created"
    BOOKING_STATUS_CHANGED = "booking.status_changed"
    DRIVER_DISPATCHED = "driver.dispatched"
    TRIP_STARTED = "trip.started"
    TRIP_SETTLED = "trip.settled"
    CASHIN_REQUESTED = "cashin.requested"
    CASHIN_REVIEWED = "cashin.reviewed"


class EventBus:
    """
    RabbitMQ event bus (singleton).

    Publishing never raises: a missing connection or a broker error is logged
    and the caller carries on.
    """

    _instance: EventBus | None = None
    _connection: AbstractConnection | None = None
    _channel: AbstractChannel | None = None
    _exchange: AbstractExchange | None = None

    def __new__(cls) -> EventBus:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._connection = None
        self._channel = None
        self._exchange = None
        self._exchange_name = "tuktuk.events"

    @property
    def is_connected(self) -> bool:
        return self._connection is not None and not self._connection.is_closed

    async def connect(
        self,
        url: str | None = None,
        exchange_name: str | None = None,
        prefetch_count: int = 10,
    ) -> None:
        """
        Connects to RabbitMQ and declares the topic exchange.

        Args:
            url: AMQP URL (taken from settings when None)
            exchange_name: Exchange name
            prefetch_count: Consumer prefetch
        """
        if self.is_connected:
            return

        if url is None:
            from src.config import settings
            url = settings.rabbitmq.url
            exchange_name = settings.rabbitmq.RABBITMQ_EXCHANGE
            prefetch_count = settings.rabbitmq.RABBITMQ_PREFETCH_COUNT

        if exchange_name:
            self._exchange_name = exchange_name

        await log_info("Connecting to RabbitMQ...", type_msg=TypeMsg.INFO)

        self._connection = await aio_pika.connect_robust(url)
        self._channel = await self._connection.channel()
        await self._channel.set_qos(prefetch_count=prefetch_count)

        self._exchange = await self._channel.declare_exchange(
            self._exchange_name,
            ExchangeType.TOPIC,
            durable=True,
        )

        await log_info("RabbitMQ connection established", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            self._channel = None
            self._exchange = None
            await log_info("RabbitMQ connection closed", type_msg=TypeMsg.INFO)

    async def publish(self, event: DomainEvent) -> None:
        """
        Publishes an event, using its event_type as routing key.

        Args:
            event: Domain event
        """
        if not self.is_connected or self._exchange is None:
            await log_debug(f"Event bus offline, event dropped: {event.event_type}")
            return

        try:
            message = Message(
                body=event.to_json().encode(),
                content_type="application/json",
                message_id=event.event_id,
                timestamp=datetime.now(timezone.utc),
            )
            await self._exchange.publish(message, routing_key=event.event_type)
            await log_debug(f"Event published: {event.event_type}")
        except Exception as e:
            await log_error(f"Failed to publish event {event.event_type}: {e}")

    async def health_check(self) -> bool:
        return self.is_connected


_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


async def init_event_bus() -> None:
    from src.config import settings

    event_bus = get_event_bus()
    await event_bus.connect(
        url=settings.rabbitmq.url,
        exchange_name=settings.rabbitmq.RABBITMQ_EXCHANGE,
        prefetch_count=settings.rabbitmq.RABBITMQ_PREFETCH_COUNT,
    )


async def close_event_bus() -> None:
    await get_event_bus().disconnect()
