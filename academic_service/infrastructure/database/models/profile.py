# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Profile model: a user's role-bearing membership in one group."""

from typing import Optional

from sqlalchemy import Index, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from academic_service.core.constants import GroupType, ProfileRole
from academic_service.core.roles import get_highest_priority_role
from academic_service.infrastructure.database.models.base import Base, IdMixin, TimestampMixin

DEFAULT_PROFILE_AVATAR_URL = "https://i.ibb.co/default-profile.png"


class Profile(IdMixin, TimestampMixin, Base):
    """A profile bound to exactly one school or class.

    Roles are stored by name; opaque role ids only exist at the
    access-control boundary.
    """

    __tablename__ = "profiles"
    __table_args__ = (Index("ix_profiles_group", "group_id", "group_type"),)

    user_id: Mapped[Optional[str]] = mapped_column(UUID(as_uuid=False), nullable=True, index=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar_url: Mapped[str] = mapped_column(
        String(500), nullable=False, default=DEFAULT_PROFILE_AVATAR_URL
    )
    roles: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    group_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False)
    group_type: Mapped[str] = mapped_column(String(10), nullable=False)

    @property
    def role_set(self) -> list[ProfileRole]:
        return [ProfileRole(role) for role in self.roles]

    @property
    def priority_role(self) -> ProfileRole:
        return get_highest_priority_role(self.role_set)

    @property
    def group(self) -> GroupType:
        return GroupType(self.group_type)
