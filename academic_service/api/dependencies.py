# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions
- Get the request context and run the authorization gate
- Get boot-time collaborators stored on app.state
- Get service instances

Example:
    @router.patch("/{school_id}")
    async def update_school(
        data: SchoolUpdateRequest,
        context: RequestContext = Depends(require(UPDATE_SCHOOL)),
        service: SchoolService = Depends(get_school_service),
    ):
        ...
"""

import logging
from typing import AsyncGenerator, Awaitable, Callable

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from academic_service.api.middleware.request_context import get_request_context
from academic_service.core.config import Settings, get_settings
from academic_service.core.errors import ServiceUnavailableError
from academic_service.domains.access_control import (
    AuthorizationGate,
    CurrentUser,
    ProtectedOperation,
    RelationshipGraphClient,
    RequestContext,
)
from academic_service.domains.avatar import AvatarService
from academic_service.domains.class_ import ClassService
from academic_service.domains.content import (
    CommentService,
    GradeService,
    NewsService,
    PartyService,
    RollCallService,
    SubjectService,
)
from academic_service.domains.invitation import InvitationCodeService, InvitationService
from academic_service.domains.profile import ProfileService
from academic_service.domains.school import SchoolService
from academic_service.infrastructure.cache import get_redis
from academic_service.infrastructure.database import get_session
from academic_service.infrastructure.external import CommunicationClient, ImageHostClient

logger = logging.getLogger(__name__)


def get_settings_dep() -> Settings:
    return get_settings()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session committed when the request succeeds.

    Yields:
        AsyncSession for the academic store.
    """
    async with get_session() as session:
        yield session


def get_context(request: Request) -> RequestContext:
    return get_request_context(request)


def get_current_user(context: RequestContext = Depends(get_context)) -> CurrentUser:
    """Get the authenticated user of lookups that need no relationship.

    Raises:
        ForbiddenError: If the request carries no valid identity.
    """
    return context.require_user()


# =========================================================================
# Boot-time collaborators
# =========================================================================


def _app_state(request: Request, name: str) -> object:
    value = getattr(request.app.state, name, None)
    if value is None:
        raise ServiceUnavailableError(name)
    return value


def get_gate(request: Request) -> AuthorizationGate:
    return _app_state(request, "gate")


def get_graph(request: Request) -> RelationshipGraphClient:
    return _app_state(request, "graph")


def get_image_host(request: Request) -> ImageHostClient:
    return _app_state(request, "image_host")


def get_communication(request: Request) -> CommunicationClient:
    return _app_state(request, "communication")


# =========================================================================
# Authorization
# =========================================================================


def require(operation: ProtectedOperation) -> Callable[..., Awaitable[RequestContext]]:
    """Build a dependency that runs the authorization gate for an operation.

    The handler only runs once the gate has authorized the request; the
    returned context then carries the acting profile and resolved target.

    Args:
        operation: The protected operation of the endpoint.

    Returns:
        A FastAPI dependency yielding the authorized RequestContext.
    """

    async def authorize(
        request: Request,
        context: RequestContext = Depends(get_context),
        db: AsyncSession = Depends(get_db),
        gate: AuthorizationGate = Depends(get_gate),
    ) -> RequestContext:
        await gate.enforce(operation, request, context, db)
        return context

    return authorize


# =========================================================================
# Services
# =========================================================================


def get_code_service(settings: Settings = Depends(get_settings_dep)) -> InvitationCodeService:
    return InvitationCodeService(get_redis(), settings.invitation)


def get_school_service(
    db: AsyncSession = Depends(get_db),
    graph: RelationshipGraphClient = Depends(get_graph),
    codes: InvitationCodeService = Depends(get_code_service),
) -> SchoolService:
    return SchoolService(db, graph, codes)


def get_class_service(
    db: AsyncSession = Depends(get_db),
    graph: RelationshipGraphClient = Depends(get_graph),
    codes: InvitationCodeService = Depends(get_code_service),
) -> ClassService:
    return ClassService(db, graph, codes)


def get_profile_service(
    db: AsyncSession = Depends(get_db),
    graph: RelationshipGraphClient = Depends(get_graph),
) -> ProfileService:
    return ProfileService(db, graph)


def get_invitation_service(
    db: AsyncSession = Depends(get_db),
    graph: RelationshipGraphClient = Depends(get_graph),
    codes: InvitationCodeService = Depends(get_code_service),
    communication: CommunicationClient = Depends(get_communication),
    settings: Settings = Depends(get_settings_dep),
) -> InvitationService:
    return InvitationService(db, graph, codes, communication, settings.invitation)


def get_avatar_service(
    db: AsyncSession = Depends(get_db),
    image_host: ImageHostClient = Depends(get_image_host),
) -> AvatarService:
    return AvatarService(db, image_host)


def get_party_service(db: AsyncSession = Depends(get_db)) -> PartyService:
    return PartyService(db)


def get_subject_service(db: AsyncSession = Depends(get_db)) -> SubjectService:
    return SubjectService(db)


def get_grade_service(
    db: AsyncSession = Depends(get_db),
    graph: RelationshipGraphClient = Depends(get_graph),
) -> GradeService:
    return GradeService(db, graph)


def get_news_service(
    db: AsyncSession = Depends(get_db),
    graph: RelationshipGraphClient = Depends(get_graph),
    image_host: ImageHostClient = Depends(get_image_host),
) -> NewsService:
    return NewsService(db, graph, image_host)


def get_comment_service(db: AsyncSession = Depends(get_db)) -> CommentService:
    return CommentService(db)


def get_roll_call_service(db: AsyncSession = Depends(get_db)) -> RollCallService:
    return RollCallService(db)
