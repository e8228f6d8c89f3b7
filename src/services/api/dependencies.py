# src/services/api/dependencies.py
"""
Dependency injection for the API.
Process-wide components are created once in the lifespan; request handlers
get them through the ``get_*`` functions (overridable in tests).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.core.billing.service import CashInService
    from src.core.bookings.service import BookingService
    from src.core.geo.service import GeoService
    from src.core.presence.registry import PresenceRegistry
    from src.core.trips.service import TripService
    from src.core.users.repository import DriverRepository
    from src.core.users.security import TokenIssuer
    from src.core.users.service import AuthService
    from src.infra.redis_client import RedisClient
    from src.services.api.rate_limit import AuthRateLimiter
    from src.services.realtime_ws.connection_manager import ConnectionManager


_registry: "PresenceRegistry | None" = None
_manager: "ConnectionManager | None" = None
_geo: "GeoService | None" = None
_tokens: "TokenIssuer | None" = None
_drivers: "DriverRepository | None" = None
_auth_service: "AuthService | None" = None
_booking_service: "BookingService | None" = None
_trip_service: "TripService | None" = None
_cash_in_service: "CashInService | None" = None
_rate_limiter: "AuthRateLimiter | None" = None


async def init_dependencies(redis: "RedisClient") -> None:
    """Wires services over the already connected infrastructure."""
    global _registry, _manager, _geo, _tokens, _drivers
    global _auth_service, _booking_service, _trip_service, _cash_in_service, _rate_limiter

    from src.config import settings
    from src.core.billing.service import CashInService
    from src.core.bookings.service import BookingService
    from src.core.geo.service import GeoService
    from src.core.matching.service import MatchingService
    from src.core.notifications.push import FirebasePushNotifier
    from src.core.notifications.service import NotificationService
    from src.core.presence.registry import PresenceRegistry
    from src.core.trips.service import TripService
    from src.core.trips.settlement import SettlementService
    from src.core.users.repository import DriverRepository
    from src.core.users.security import TokenIssuer
    from src.core.users.service import AuthService
    from src.infra.database import get_db
    from src.infra.event_bus import get_event_bus
    from src.services.api.rate_limit import AuthRateLimiter
    from src.services.realtime_ws.broadcaster import RealtimeBroadcaster
    from src.services.realtime_ws.connection_manager import ConnectionManager

    db = get_db()
    event_bus = get_event_bus()

    _registry = PresenceRegistry()
    await _registry.start()
    _manager = ConnectionManager()
    broadcaster = RealtimeBroadcaster(_manager)
    _geo = GeoService()
    _tokens = TokenIssuer()
    _drivers = DriverRepository(db)

    notifications = NotificationService(db, FirebasePushNotifier())
    matching = MatchingService(_registry)

    _auth_service = AuthService(db, _tokens)
    _booking_service = BookingService(db, _registry, matching, notifications, broadcaster, event_bus)
    settlement = SettlementService(db, _registry, notifications, _booking_service, event_bus)
    _trip_service = TripService(db, _registry, _geo, settlement, event_bus)
    _cash_in_service = CashInService(db, notifications, event_bus)
    _rate_limiter = AuthRateLimiter(
        redis,
        attempts=settings.auth.AUTH_RATE_LIMIT_ATTEMPTS,
        window_seconds=settings.auth.AUTH_RATE_LIMIT_WINDOW_SECONDS,
    )


async def cleanup_dependencies() -> None:
    global _geo, _registry
    if _geo is not None:
        await _geo.close()
        _geo = None
    if _registry is not None:
        await _registry.stop()
        _registry = None


def _require(component, name: str):
    if component is None:
        raise RuntimeError(f"{name} is not initialised. Call init_dependencies() first.")
    return component


def get_registry() -> "PresenceRegistry":
    return _require(_registry, "PresenceRegistry")


def get_connection_manager() -> "ConnectionManager":
    return _require(_manager, "ConnectionManager")


def get_driver_repository() -> "DriverRepository":
    return _require(_drivers, "DriverRepository")


def get_token_issuer() -> "TokenIssuer":
    return _require(_tokens, "TokenIssuer")


def get_auth_service() -> "AuthService":
    return _require(_auth_service, "AuthService")


def get_booking_service() -> "BookingService":
    return _require(_booking_service, "BookingService")


def get_trip_service() -> "TripService":
    return _require(_trip_service, "TripService")


def get_cash_in_service() -> "CashInService":
    return _require(_cash_in_service, "CashInService")


def get_rate_limiter() -> "AuthRateLimiter":
    return _require(_rate_limiter, "AuthRateLimiter")
