# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Per-request authorization gate.

The gate runs before a protected handler. For a RoleRelationship
requirement it resolves the target and loads the acting profile
concurrently, then asks the access-control service whether the profile's
roles grant the action through an edge to the target. It fails closed:
anything but an explicit SUCCESS from the authorizer denies the request.

Example:
    gate = AuthorizationGate(client, role_ids, get_sessionmaker())
    await gate.enforce(UPDATE_SCHOOL, request, context, session)
    profile = context.require_profile()
"""

import asyncio
import logging
from typing import Optional, Sequence

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from academic_service.core.constants import ResponseCode
from academic_service.core.errors import ForbiddenError, ServiceResponseError, ServiceUnavailableError
from academic_service.domains.access_control.client import AccessControlClient
from academic_service.domains.access_control.context import RequestContext
from academic_service.domains.access_control.policy import RoleIdMap
from academic_service.domains.access_control.requirements import NoAuth, ProtectedOperation
from academic_service.infrastructure.database.models import Profile

logger = logging.getLogger(__name__)


class AuthorizationGate:
    """Decides whether the acting profile may perform an operation.

    Attributes:
        _client: Access-control HTTP client.
        _role_ids: Published role ids.
        _session_factory: Opens the session used to load the acting
            profile; the handler's session cannot be shared with the
            concurrently running target resolver.
    """

    def __init__(
        self,
        client: AccessControlClient,
        role_ids: RoleIdMap,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        self._client = client
        self._role_ids = role_ids
        self._session_factory = session_factory

    async def authorize(
        self,
        profile_id: str,
        target_id: str,
        action: str,
        role_ids: Sequence[str],
    ) -> bool:
        """Ask the access-control service for a decision.

        Returns:
            True only if the service answered SUCCESS.
        """
        try:
            envelope = await self._client.send(
                "POST",
                "/access/authorize",
                "authorize",
                json={
                    "fromId": profile_id,
                    "toId": target_id,
                    "fromRoleIds": list(role_ids),
                    "action": action,
                },
            )
        except (ServiceUnavailableError, ServiceResponseError) as e:
            logger.warning("Authorization of '%s' on %s failed: %s", action, target_id, e)
            return False

        if envelope["code"] != ResponseCode.SUCCESS:
            logger.warning(
                "Authorization of '%s' on %s denied for profile %s (code=%s)",
                action,
                target_id,
                profile_id,
                envelope["code"],
            )
            return False
        return True

    async def enforce(
        self,
        operation: ProtectedOperation,
        request: Request,
        context: RequestContext,
        session: AsyncSession,
    ) -> None:
        """Authorize the request or raise.

        On success, context.profile and context.target_id are set.

        Raises:
            ForbiddenError: If the request is not authorized.
            BadRequestError: If the target cannot be resolved from the request.
        """
        user = context.require_user()

        requirement = operation.requirement
        if isinstance(requirement, NoAuth):
            return

        profile_id = context.profile_id
        if not profile_id:
            raise ForbiddenError("Profile id is required")

        target_id, profile = await asyncio.gather(
            requirement.target_resolver(request, context, session),
            self._fetch_profile(profile_id, user.id),
        )

        if profile is None:
            logger.warning("Profile %s does not belong to user %s", profile_id, user.id)
            raise ForbiddenError()

        role_ids = self._role_ids.ids_for(profile.role_set)
        if not await self.authorize(profile.id, target_id, operation.action, role_ids):
            raise ForbiddenError()

        context.profile = profile
        context.target_id = target_id

    async def _fetch_profile(self, profile_id: str, user_id: str) -> Optional[Profile]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Profile).where(Profile.id == profile_id, Profile.user_id == user_id)
            )
            profile = result.scalar_one_or_none()
            if profile is not None:
                session.expunge(profile)
            return profile
