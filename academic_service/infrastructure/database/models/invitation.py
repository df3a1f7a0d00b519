# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Mail invitation model."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from academic_service.infrastructure.database.models.base import Base, IdMixin, TimestampMixin


class Invitation(IdMixin, TimestampMixin, Base):
    """An invitation mailed to an address to join a group with a role.

    When profile_id is set, accepting the invitation attaches the accepting
    user to that existing (user-less) profile instead of creating one.
    """

    __tablename__ = "invitations"
    __table_args__ = (
        UniqueConstraint("email", "group_id", name="uq_invitations_email_group"),
        Index("ix_invitations_group", "group_id", "group_type"),
    )

    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    group_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False)
    group_type: Mapped[str] = mapped_column(String(10), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    school_id: Mapped[Optional[str]] = mapped_column(UUID(as_uuid=False), nullable=True)
    profile_id: Mapped[Optional[str]] = mapped_column(UUID(as_uuid=False), nullable=True)
    sender_id: Mapped[str] = mapped_column(UUID(as_uuid=False), nullable=False)
    expired_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
