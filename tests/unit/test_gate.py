# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the per-request authorization gate."""

import asyncio
import json
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from starlette.requests import Request

from academic_service.core.config import AccessControlSettings
from academic_service.core.constants import ProfileRole, Relationship
from academic_service.core.errors import BadRequestError, ForbiddenError
from academic_service.domains.access_control import (
    AccessControlClient,
    AuthorizationGate,
    ProtectedOperation,
    RequestContext,
    RoleIdMap,
    path_param,
)
from academic_service.infrastructure.database.models import Profile

from fakes import FakeResult, make_profile

pytestmark = pytest.mark.unit

ROLE_IDS = RoleIdMap({role: f"id-{role.value}" for role in ProfileRole})

UPDATE_SCHOOL = ProtectedOperation.declare(
    "update-school",
    {ProfileRole.EXECUTIVE: (Relationship.CREATOR, Relationship.MANAGES)},
    target=path_param("school_id"),
)
ADD_SCHOOL = ProtectedOperation.declare("add-school")


class SessionFactory:
    """async_sessionmaker stand-in serving one profile lookup."""

    def __init__(self, profile: Optional[Profile]) -> None:
        self.session = AsyncMock()
        self.session.execute = AsyncMock(return_value=FakeResult([profile] if profile else []))
        self.session.expunge = MagicMock()
        self.opened = 0

    def __call__(self):
        self.opened += 1
        return self

    async def __aenter__(self):
        return self.session

    async def __aexit__(self, *exc_info):
        return False


class Authorizer:
    """MockTransport handler for POST /access/authorize."""

    def __init__(self, code: int = 0, error: Optional[Exception] = None) -> None:
        self.code = code
        self.error = error
        self.bodies: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if self.error is not None:
            raise self.error
        self.bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"code": self.code, "message": "decision"})


def make_gate(authorizer: Authorizer, sessions: SessionFactory) -> AuthorizationGate:
    client = AccessControlClient(
        AccessControlSettings(url="http://access-control.test"),
        transport=httpx.MockTransport(authorizer),
    )
    return AuthorizationGate(client, ROLE_IDS, sessions)


def make_request(school_id: Optional[str] = "s1") -> Request:
    scope = {
        "type": "http",
        "method": "PATCH",
        "path": f"/schools/{school_id}",
        "headers": [],
        "query_string": b"",
        "path_params": {"school_id": school_id} if school_id else {},
    }
    return Request(scope)


@pytest.fixture
def executive(user):
    return make_profile(ProfileRole.EXECUTIVE, ProfileRole.TEACHER, user_id=user.id)


def context_for(user, profile_id) -> RequestContext:
    return RequestContext(request_id="req-1", user=user, profile_id=profile_id)


class TestAuthorizationGate:
    """Tests for the decision procedure."""

    @pytest.mark.asyncio
    async def test_authorized(self, user, executive):
        authorizer = Authorizer()
        gate = make_gate(authorizer, SessionFactory(executive))
        context = context_for(user, executive.id)

        await gate.enforce(UPDATE_SCHOOL, make_request(), context, AsyncMock())

        assert context.profile is executive
        assert context.target_id == "s1"
        assert authorizer.bodies == [
            {
                "fromId": executive.id,
                "toId": "s1",
                "fromRoleIds": ["id-Executive", "id-Teacher"],
                "action": "update-school",
            }
        ]

    @pytest.mark.asyncio
    async def test_no_user_is_forbidden(self, executive):
        authorizer = Authorizer()
        gate = make_gate(authorizer, SessionFactory(executive))

        with pytest.raises(ForbiddenError):
            await gate.enforce(UPDATE_SCHOOL, make_request(), RequestContext("req-1"), AsyncMock())

        assert authorizer.bodies == []

    @pytest.mark.asyncio
    async def test_public_operation_only_needs_user(self, user):
        sessions = SessionFactory(None)
        gate = make_gate(Authorizer(code=3), sessions)
        context = RequestContext(request_id="req-1", user=user)

        await gate.enforce(ADD_SCHOOL, make_request(None), context, AsyncMock())

        assert sessions.opened == 0
        assert context.profile is None

    @pytest.mark.asyncio
    async def test_missing_profile_id_is_forbidden(self, user):
        gate = make_gate(Authorizer(), SessionFactory(None))

        with pytest.raises(ForbiddenError):
            await gate.enforce(UPDATE_SCHOOL, make_request(), context_for(user, None), AsyncMock())

    @pytest.mark.asyncio
    async def test_profile_of_another_user_is_forbidden_not_found(self, user):
        authorizer = Authorizer()
        gate = make_gate(authorizer, SessionFactory(None))

        with pytest.raises(ForbiddenError):
            await gate.enforce(UPDATE_SCHOOL, make_request(), context_for(user, "p-other"), AsyncMock())

        assert authorizer.bodies == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", [3, 4, 100])
    async def test_any_other_code_denies(self, user, executive, code):
        gate = make_gate(Authorizer(code=code), SessionFactory(executive))
        context = context_for(user, executive.id)

        with pytest.raises(ForbiddenError):
            await gate.enforce(UPDATE_SCHOOL, make_request(), context, AsyncMock())

        assert context.profile is None

    @pytest.mark.asyncio
    async def test_unreachable_authorizer_fails_closed(self, user, executive):
        gate = make_gate(Authorizer(error=httpx.ConnectTimeout("timeout")), SessionFactory(executive))

        with pytest.raises(ForbiddenError):
            await gate.enforce(UPDATE_SCHOOL, make_request(), context_for(user, executive.id), AsyncMock())

    @pytest.mark.asyncio
    async def test_unresolvable_target(self, user, executive):
        authorizer = Authorizer()
        gate = make_gate(authorizer, SessionFactory(executive))

        with pytest.raises(BadRequestError):
            await gate.enforce(UPDATE_SCHOOL, make_request(None), context_for(user, executive.id), AsyncMock())

        assert authorizer.bodies == []

    @pytest.mark.asyncio
    async def test_resolves_target_and_profile_concurrently(self, user, executive):
        started: list[str] = []
        both_started = asyncio.Event()

        async def slow_resolver(request, context, session):
            started.append("target")
            if len(started) == 2:
                both_started.set()
            await asyncio.wait_for(both_started.wait(), timeout=1)
            return "s1"

        sessions = SessionFactory(executive)
        original_execute = sessions.session.execute

        async def execute(statement):
            started.append("profile")
            if len(started) == 2:
                both_started.set()
            await asyncio.wait_for(both_started.wait(), timeout=1)
            return await original_execute(statement)

        sessions.session.execute = execute
        operation = ProtectedOperation.declare(
            "update-school", {ProfileRole.EXECUTIVE: (Relationship.MANAGES,)}, target=slow_resolver
        )
        gate = make_gate(Authorizer(), sessions)
        context = context_for(user, executive.id)

        await gate.enforce(operation, make_request(), context, AsyncMock())

        assert sorted(started) == ["profile", "target"]
        assert context.target_id == "s1"
