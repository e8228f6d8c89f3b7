# src/services/api/errors.py
"""
Exception handlers.
Every error leaves the API as an ``ErrorResponse``.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.common.errors import AppError
from src.common.logger import get_request_id, log_error, log_warning
from src.shared.models.common import ErrorResponse


def _response(status_code: int, error_code: str, message: str, details=None) -> JSONResponse:
    body = ErrorResponse(
        error_code=error_code,
        message=message,
        details=details,
        request_id=get_request_id(),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        await log_error(f"{request.method} {request.url.path}: {exc.error_code} {exc.message}")
    return _response(exc.status_code, exc.error_code, exc.message, exc.details)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in error.get("loc", ())[1:]), "message": error.get("msg")}
        for error in exc.errors()
    ]
    await log_warning(f"{request.method} {request.url.path}: invalid request body")
    return _response(400, "VALIDATION_ERROR", "Invalid request", {"errors": errors})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    await log_error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return _response(500, "INTERNAL_ERROR", "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
