# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints.

This module provides health and readiness endpoints for the API.
"""

import logging
import time
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from academic_service import __version__
from academic_service.core.config import get_settings
from academic_service.infrastructure.cache import RedisError, get_redis
from academic_service.infrastructure.database import check_database_connection
from academic_service.utils.datetime import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = Field(description="Overall health status")
    timestamp: datetime = Field(description="Current server timestamp")
    version: str = Field(description="Service version")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    ready: bool = Field(description="Whether the service is ready")
    checks: dict[str, Any] = Field(description="Individual check results")


async def check_redis() -> bool:
    try:
        return await get_redis().ping()
    except RedisError as e:
        logger.error("Redis health check failed: %s", e)
        return False


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness probe; does not touch collaborators."""
    settings = get_settings()
    return HealthResponse(
        status="healthy",
        timestamp=utc_now(),
        version=__version__,
        environment=settings.environment,
        uptime_seconds=int(time.time() - _server_start_time),
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> JSONResponse:
    """Readiness probe.

    The service is ready once the policy table is published and the
    database and Redis answer.
    """
    checks = {
        "database": await check_database_connection(),
        "redis": await check_redis(),
        "policy_published": getattr(request.app.state, "role_ids", None) is not None,
    }
    ready = all(checks.values())
    body = ReadinessResponse(ready=ready, checks=checks)
    return JSONResponse(status_code=200 if ready else 503, content=body.model_dump())
