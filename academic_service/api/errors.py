# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exception handlers rendering every error as the response envelope.

Errors raised by services carry their own status and envelope code. Errors
of collaborators (database, Redis, remote HTTP services) are mapped here;
anything else collapses to a generic internal error after being logged
with its traceback.
"""

import logging
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from academic_service.core.constants import ResponseCode, ResponseMessage
from academic_service.core.errors import AcademicServiceError, ServiceUnavailableError, ValidationError
from academic_service.infrastructure.cache import RedisError
from academic_service.infrastructure.database import DatabaseError

logger = logging.getLogger(__name__)


def _envelope(status_code: int, body: dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body)


def _validation_issues(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Convert pydantic errors into ``{code, message, path}`` issues."""
    return [
        {
            "code": error.get("type", "invalid"),
            "message": error.get("msg", ""),
            "path": [part for part in error.get("loc", ()) if part not in ("body", "query", "path")],
        }
        for error in exc.errors()
    ]


async def academic_service_error_handler(request: Request, exc: AcademicServiceError) -> JSONResponse:
    """Render a service error with its own status and code."""
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
    return _envelope(exc.status_code, exc.response_body())


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request schema violations as VALIDATION_ERROR."""
    error = ValidationError(_validation_issues(exc))
    return _envelope(error.status_code, error.response_body())


async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    """Render database failures.

    Constraint violations come from client input (a duplicate invitation,
    a dangling reference) and are reported as validation errors; any other
    database failure makes the service unavailable.
    """
    if isinstance(exc.original_error, IntegrityError):
        logger.info("%s %s violated a constraint: %s", request.method, request.url.path, exc.original_error)
        error: AcademicServiceError = ValidationError(
            [{"code": "constraint", "message": "Conflicting or dangling reference", "path": []}]
        )
        return _envelope(error.status_code, error.response_body())

    logger.error("%s %s database failure: %s", request.method, request.url.path, exc, exc_info=exc)
    error = ServiceUnavailableError("Database", exc)
    return _envelope(error.status_code, error.response_body())


async def dependency_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render an unreachable cache or remote service as 503."""
    logger.error("%s %s dependency unavailable: %s", request.method, request.url.path, exc)
    error = ServiceUnavailableError(type(exc).__name__, exc)
    return _envelope(error.status_code, error.response_body())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _envelope(
        500,
        {
            "code": int(ResponseCode.INTERNAL_SERVER_ERROR),
            "message": ResponseMessage.INTERNAL_SERVER_ERROR.value,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install all exception handlers on the application."""
    app.add_exception_handler(AcademicServiceError, academic_service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(DatabaseError, database_error_handler)
    app.add_exception_handler(RedisError, dependency_unavailable_handler)
    app.add_exception_handler(httpx.TransportError, dependency_unavailable_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
