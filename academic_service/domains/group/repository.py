# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lookups of schools and classes by group type."""

from typing import Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from academic_service.core.constants import GroupType
from academic_service.core.errors import BadRequestError, NotFoundError
from academic_service.infrastructure.database.models import School, SchoolClass

Group = Union[School, SchoolClass]


async def get_group(session: AsyncSession, group_type: GroupType | str, group_id: str) -> Optional[Group]:
    """Load a school or a class, or None when it does not exist.

    Raises:
        BadRequestError: If the group type is unknown.
    """
    try:
        group_type = GroupType(group_type)
    except ValueError:
        raise BadRequestError("Invalid group type") from None

    model = School if group_type == GroupType.SCHOOL else SchoolClass
    return await session.get(model, group_id)


async def require_group(session: AsyncSession, group_type: GroupType | str, group_id: str) -> Group:
    """Load a school or a class.

    Raises:
        NotFoundError: If the group does not exist.
    """
    group = await get_group(session, group_type, group_id)
    if group is None:
        label = "School" if GroupType(group_type) == GroupType.SCHOOL else "Class"
        raise NotFoundError(f"{label} not found")
    return group
