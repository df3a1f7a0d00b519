# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Ephemeral invitation codes stored in Redis.

A group has at most one live code. Two keys share one TTL:

    group_code:<code>      -> InvitationCodeData (JSON)
    group_code:<group_id>  -> <code>

Expiry relies entirely on the Redis TTL; nothing sweeps codes.

Example:
    >>> codes = InvitationCodeService(get_redis(), settings.invitation)
    >>> code = await codes.generate(class_id, GroupType.CLASS, ProfileRole.STUDENT, school_id)
    >>> data = await codes.redeem(code)
"""

import logging
import secrets
import string
from typing import TYPE_CHECKING, Optional

from pydantic import ValidationError as PydanticValidationError

from academic_service.core.constants import GROUP_CODE_KEY_PREFIX, GroupType, ProfileRole
from academic_service.core.errors import BadRequestError, ServiceResponseError
from academic_service.infrastructure.cache import RedisClient
from academic_service.models.invitation import InvitationCodeData

if TYPE_CHECKING:
    from academic_service.core.config.settings import InvitationSettings

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_random_code(length: int) -> str:
    """Draw a code of upper-case letters and digits."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def _key(suffix: str) -> str:
    return f"{GROUP_CODE_KEY_PREFIX}:{suffix}"


class InvitationCodeService:
    """Issues, redeems and removes group invitation codes.

    Attributes:
        _cache: Redis client.
        _settings: Code length, collision attempts and default lifetime.
    """

    def __init__(self, cache: RedisClient, settings: "InvitationSettings") -> None:
        self._cache = cache
        self._settings = settings

    async def generate(
        self,
        group_id: str,
        group_type: GroupType,
        new_profile_role: ProfileRole,
        school_id: Optional[str] = None,
        expire_minutes: Optional[int] = None,
    ) -> str:
        """Return the group's live code, or issue a new one.

        A live code is returned unchanged and its TTL is not reset, even if
        the requested role or lifetime differ.

        Args:
            group_id: Group the code admits to.
            group_type: Type of the group.
            new_profile_role: Role granted on redemption.
            school_id: Parent school of a school class.
            expire_minutes: Lifetime of a new code.

        Returns:
            The invitation code.

        Raises:
            ServiceResponseError: If no unused code was found within the
                configured number of attempts.
        """
        existing = await self._cache.get_raw(_key(group_id))
        if existing:
            return existing

        code = await self._draw_unused_code()
        expire_minutes = expire_minutes or self._settings.default_code_expire_minutes
        payload = InvitationCodeData(
            group_id=group_id,
            group_type=group_type,
            new_profile_role=new_profile_role,
            school_id=school_id,
            expire_minutes=expire_minutes,
        )

        await self._cache.set_many(
            {
                _key(code): payload.model_dump(mode="json", by_alias=True),
                _key(group_id): code,
            },
            expire_seconds=expire_minutes * 60,
        )
        logger.info("Invitation code issued for %s %s (%d min)", group_type.value, group_id, expire_minutes)
        return code

    async def redeem(self, code: str) -> InvitationCodeData:
        """Read the payload of a code without consuming it.

        Raises:
            BadRequestError: If the code is unknown or expired.
        """
        code = code.strip().upper()
        data = await self._cache.get(_key(code))
        if not isinstance(data, dict):
            raise BadRequestError("Invalid code")

        try:
            return InvitationCodeData.model_validate(data)
        except PydanticValidationError as e:
            raise ServiceResponseError(
                "InvitationService", "getInvitationData", "Malformed invitation code data", data
            ) from e

    async def remove(self, group_id: str) -> None:
        """Remove the group's live code, if any."""
        code = await self._cache.get_raw(_key(group_id))
        if not code:
            return

        await self._cache.delete(_key(code), _key(group_id))
        logger.info("Invitation code removed for group %s", group_id)

    async def remove_many(self, group_ids: list[str]) -> None:
        for group_id in group_ids:
            await self.remove(group_id)

    async def _draw_unused_code(self) -> str:
        for _ in range(self._settings.max_code_generation_attempts):
            code = generate_random_code(self._settings.code_length)
            if not await self._cache.exists(_key(code)):
                return code

        raise ServiceResponseError(
            "InvitationService", "generateInvitationCode", "Failed to generate unique code"
        )
