# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Group content models.

Content that lives inside schools and classes: parties,
subjects and their grades, news and their comments, roll-call sessions and
their entries.
"""

from datetime import date
from typing import Optional

from sqlalchemy import Date, Float, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from academic_service.core.constants import RollCallStatus
from academic_service.infrastructure.database.models.base import Base, IdMixin, TimestampMixin


class Party(IdMixin, TimestampMixin, Base):
    """A named group of class members."""

    __tablename__ = "parties"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    class_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    member_ids: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    created_by: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False)


class Subject(IdMixin, TimestampMixin, Base):
    """A subject taught in a class, with its grade types."""

    __tablename__ = "subjects"

    class_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    grade_types: Mapped[list[dict]] = mapped_column(JSONB, nullable=False, default=list)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class Grade(IdMixin, TimestampMixin, Base):
    """A student's grade in a subject."""

    __tablename__ = "grades"

    student_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False, index=True)
    subject_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False, index=True)
    grade_type_id: Mapped[str] = mapped_column(String(36), nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class News(IdMixin, TimestampMixin, Base):
    """A news post in a school or class."""

    __tablename__ = "news"

    content: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    target_roles: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    creator_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False)
    group_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False, index=True)


class Comment(IdMixin, TimestampMixin, Base):
    """A comment on a news post."""

    __tablename__ = "comments"

    news_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False, index=True)
    creator_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")


class RollCallSession(IdMixin, TimestampMixin, Base):
    """One attendance session of a class on a date."""

    __tablename__ = "roll_call_sessions"
    __table_args__ = (UniqueConstraint("class_id", "date", name="uq_roll_call_sessions_class_date"),)

    class_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False, index=True)
    created_by: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False)


class RollCallEntry(IdMixin, TimestampMixin, Base):
    """A profile's attendance in a roll-call session."""

    __tablename__ = "roll_call_entries"
    __table_args__ = (
        UniqueConstraint("session_id", "profile_id", name="uq_roll_call_entries_session_profile"),
    )

    session_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False, index=True)
    profile_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False, index=True)
    class_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(10), nullable=False, default=RollCallStatus.ABSENT.value
    )
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
