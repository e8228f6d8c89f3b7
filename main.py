#!/usr/bin/env python3
# main.py
"""
Application entry point.
Sets up logging and serves the API with uvicorn.
"""

from __future__ import annotations

import asyncio
import sys

import uvicorn

from src.common.constants import TypeMsg
from src.common.logger import log_error, log_info, setup_logging
from src.config import settings


async def run_api() -> None:
    """Serves src.services.api.app:app until interrupted."""
    await log_info(
        f"Starting {settings.system.BRAND_NAME} API on {settings.api.API_HOST}:{settings.api.API_PORT} "
        f"({settings.system.ENVIRONMENT})",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "src.services.api.app:app",
        host=settings.api.API_HOST,
        port=settings.api.API_PORT,
        reload=settings.system.DEBUG,
        log_level="debug" if settings.system.DEBUG else "info",
    )

    server = uvicorn.Server(config)
    try:
        await server.serve()
    except asyncio.CancelledError:
        await log_info("API: graceful shutdown", type_msg=TypeMsg.DEBUG)
        await server.shutdown()


def print_usage() -> None:
    print(f"""
{settings.system.BRAND_NAME} backend v{settings.system.VERSION}

Usage:
    python main.py            # serve the API
    python main.py api        # same
    python main.py --help     # this message

Admin bootstrap:
    python create_admin.py --phone 0987654321 --name "Admin User" --password secret --role admin
    """)


if __name__ == "__main__":
    if len(sys.argv) > 1:
        arg = sys.argv[1].lower()
        if arg in ("--help", "-h"):
            print_usage()
            sys.exit(0)
        if arg != "api":
            print(f"Unknown mode '{arg}'")
            print_usage()
            sys.exit(1)

    setup_logging()
    try:
        asyncio.run(run_api())
    except KeyboardInterrupt:
        pass
    except Exception as e:
        asyncio.run(log_error(f"Fatal error: {e}", exc_info=True))
        raise
