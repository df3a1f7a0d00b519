# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the academic service.

Example:
    uvicorn academic_service.api.app:create_app --factory --port 34000
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from academic_service import __version__
from academic_service.api.errors import register_exception_handlers
from academic_service.api.middleware import RequestContextMiddleware
from academic_service.api.routes import health
from academic_service.api.v1 import OPERATIONS, build_router
from academic_service.core.config import get_settings
from academic_service.domains.access_control import (
    AuthorizationGate,
    PolicyRegistry,
    RelationshipGraphClient,
    close_access_control,
    init_access_control,
)
from academic_service.infrastructure.cache import close_redis, init_redis
from academic_service.infrastructure.database import close_database, get_sessionmaker, init_database
from academic_service.infrastructure.external import CommunicationClient, ImageHostClient, register_service
from academic_service.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events for the application.
    Initializes and cleans up:
    - Database connections
    - Redis cache
    - Access-control client, with the policy table published
    - Image host and communication clients

    A policy table that cannot be published is fatal: the service would
    otherwise deny every protected request.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info(
        "Starting academic service",
        extra={"environment": settings.environment, "debug": settings.debug},
    )

    # =========================================================================
    # Startup
    # =========================================================================

    await init_database(settings)
    logger.info("Database connections initialized")

    await init_redis(settings)
    logger.info("Redis connection initialized")

    client = await init_access_control(settings.access_control)

    if settings.access_point.enabled:
        await register_service(settings)
        logger.info("Registered with access point")

    registry = PolicyRegistry.from_operations(OPERATIONS)
    role_ids = await registry.publish(
        client,
        attempts=settings.access_control.publish_attempts,
        backoff_seconds=settings.access_control.publish_backoff_seconds,
    )

    app.state.role_ids = role_ids
    app.state.graph = RelationshipGraphClient(client)
    app.state.gate = AuthorizationGate(client, role_ids, get_sessionmaker())
    app.state.image_host = ImageHostClient(settings.image_host)
    app.state.communication = CommunicationClient(settings.communication)

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================

    await app.state.communication.close()
    await app.state.image_host.close()
    logger.info("External clients closed")

    await close_access_control()
    logger.info("Access-control client closed")

    await close_redis()
    logger.info("Redis connection closed")

    await close_database()
    logger.info("Database connections closed")

    logger.info("Shutting down academic service")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    This factory function creates a new FastAPI instance with all
    middleware, routes, and configurations applied.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Academic Service",
        description="Schools, classes, profiles and invitations",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        redirect_slashes=False,
    )

    # =========================================================================
    # Exception handlers
    # =========================================================================
    register_exception_handlers(app)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================

    app.add_middleware(RequestContextMiddleware)

    # CORS middleware (should be last to execute first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(build_router(settings.base_path))

    return app
