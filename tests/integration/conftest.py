# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Fixtures serving the v1 routers through a TestClient.

The application is assembled like create_app() does, without the lifespan:
collaborators that are built at boot are put on app.state directly, and the
database session is the mock_db fixture.
"""

import uuid
from typing import Any, Optional
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from academic_service.api.dependencies import get_code_service, get_db
from academic_service.api.errors import register_exception_handlers
from academic_service.api.middleware import RequestContextMiddleware
from academic_service.api.routes import health
from academic_service.api.v1 import build_router
from academic_service.core.errors import ForbiddenError
from academic_service.domains.access_control import ProtectedOperation, RequestContext
from academic_service.domains.invitation import InvitationCodeService
from academic_service.infrastructure.database.models import Profile

API = "/api/v1"


class StubGate:
    """AuthorizationGate double.

    Public operations only need a user; protected ones are granted to
    ``profile`` unless ``deny`` is set.

    Attributes:
        profile: Acting profile put on the context when authorized.
        deny: Whether the authorizer refuses protected operations.
        actions: Actions enforced, in order.
        contexts: Contexts seen, in order.
    """

    def __init__(self) -> None:
        self.profile: Optional[Profile] = None
        self.deny = False
        self.actions: list[str] = []
        self.contexts: list[RequestContext] = []

    async def enforce(
        self,
        operation: ProtectedOperation,
        request: Any,
        context: RequestContext,
        session: Any,
    ) -> None:
        self.actions.append(operation.action)
        self.contexts.append(context)
        context.require_user()
        if operation.is_public:
            return
        if self.deny or self.profile is None:
            raise ForbiddenError()
        context.profile = self.profile


@pytest.fixture
def gate() -> StubGate:
    return StubGate()


@pytest.fixture
def app(mock_db, graph, cache, gate, invitation_settings) -> FastAPI:
    app = FastAPI(redirect_slashes=False)
    register_exception_handlers(app)
    app.add_middleware(RequestContextMiddleware)
    app.include_router(health.router)
    app.include_router(build_router(API))

    app.state.gate = gate
    app.state.graph = graph
    app.state.communication = AsyncMock()
    app.state.image_host = AsyncMock()

    async def session():
        yield mock_db

    app.dependency_overrides[get_db] = session
    app.dependency_overrides[get_code_service] = lambda: InvitationCodeService(cache, invitation_settings)
    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def headers(user) -> dict[str, str]:
    """Identity headers forwarded by the gateway."""
    return {
        "X-User-Id": user.id,
        "X-User-Role": str(int(user.role)),
        "X-User-Name": user.name,
        "X-Profile-Id": str(uuid.uuid4()),
    }
