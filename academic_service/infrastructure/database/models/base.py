# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Declarative base and shared columns for ORM models."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from academic_service.utils.datetime import utc_now


def new_id() -> str:
    """Generate a primary key client-side so it is known before flush."""
    return str(uuid4())


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class IdMixin:
    """String UUID primary key."""

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=new_id)


class TimestampMixin:
    """created_at / updated_at columns maintained by the ORM."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )
