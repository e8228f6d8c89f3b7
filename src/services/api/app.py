# src/services/api/app.py
"""
FastAPI application.

REST routes under /api/v1, the /ws socket endpoint and /health.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from src.common.constants import TypeMsg
from src.common.logger import log_debug, log_info, log_warning, set_request_id
from src.config import settings
from src.infra.database import close_db, get_db, init_db
from src.infra.event_bus import close_event_bus, get_event_bus, init_event_bus
from src.infra.redis_client import close_redis, get_redis, init_redis
from src.services.api.dependencies import cleanup_dependencies, init_dependencies
from src.services.api.errors import register_exception_handlers
from src.services.api.realtime import router as realtime_router
from src.services.api.routes import api_router
from src.shared.models.common import HealthStatus

REQUEST_ID_HEADER = "X-Request-ID"

_started_at = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    await init_redis()
    try:
        await init_event_bus()
    except Exception as e:
        # Events are fire-and-forget; the API serves without the broker
        await log_warning(f"Event bus unavailable, continuing without it: {e}")
    await init_dependencies(get_redis())
    await log_info(f"{settings.system.PROJECT_NAME} API started", type_msg=TypeMsg.INFO)

    yield

    await cleanup_dependencies()
    await close_event_bus()
    await close_redis()
    await close_db()


app = FastAPI(
    title=f"{settings.system.BRAND_NAME} API",
    version=settings.system.VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.api.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Correlation id and access log for every request."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
    set_request_id(request_id)
    started = time.perf_counter()

    response = await call_next(request)

    duration_ms = (time.perf_counter() - started) * 1000
    response.headers[REQUEST_ID_HEADER] = request_id
    message = f"{request.method} {request.url.path} {response.status_code} {duration_ms:.0f}ms"
    if response.status_code >= 400:
        await log_warning(message)
    else:
        await log_debug(message)
    return response


register_exception_handlers(app)

app.include_router(api_router, prefix="/api/v1")
app.include_router(realtime_router)


@app.get("/health", response_model=HealthStatus, tags=["Health"])
async def health_check() -> HealthStatus:
    db_ok = await get_db().health_check()
    redis_client = get_redis()
    redis_ok = redis_client.is_connected and await redis_client.health_check()
    bus_ok = await get_event_bus().health_check()

    dependencies = {
        "postgres": "ok" if db_ok else "down",
        "redis": "ok" if redis_ok else "down",
        "rabbitmq": "ok" if bus_ok else "down",
    }
    return HealthStatus(
        service=settings.system.PROJECT_NAME,
        status="healthy" if db_ok and redis_ok else "degraded",
        version=settings.system.VERSION,
        uptime_seconds=round(time.monotonic() - _started_at, 1),
        dependencies=dependencies,
    )
