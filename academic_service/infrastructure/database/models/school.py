# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School and class models.

Groups reference their creator profile by id only; the profile lives in the
group (schools) or, for school classes, in the parent school.
"""

from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from academic_service.infrastructure.database.models.base import Base, IdMixin, TimestampMixin

DEFAULT_SCHOOL_AVATAR_URL = "https://i.ibb.co/default-school.png"
DEFAULT_CLASS_AVATAR_URL = "https://i.ibb.co/default-class.png"


class School(IdMixin, TimestampMixin, Base):
    """A school: top-level group owning classes and profiles."""

    __tablename__ = "schools"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    avatar_url: Mapped[str] = mapped_column(
        String(500), nullable=False, default=DEFAULT_SCHOOL_AVATAR_URL
    )
    creator_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False, index=True)


class SchoolClass(IdMixin, TimestampMixin, Base):
    """A class: personal (school_id is None) or belonging to a school."""

    __tablename__ = "classes"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar_url: Mapped[str] = mapped_column(
        String(500), nullable=False, default=DEFAULT_CLASS_AVATAR_URL
    )
    school_id: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False), nullable=True, index=True
    )
    creator_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False, index=True)

    @property
    def is_personal(self) -> bool:
        return self.school_id is None
