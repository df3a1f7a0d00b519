# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""ORM models of the academic store."""

from academic_service.infrastructure.database.models.base import Base, new_id
from academic_service.infrastructure.database.models.content import (
    Comment,
    Grade,
    News,
    Party,
    RollCallEntry,
    RollCallSession,
    Subject,
)
from academic_service.infrastructure.database.models.invitation import Invitation
from academic_service.infrastructure.database.models.profile import Profile
from academic_service.infrastructure.database.models.school import School, SchoolClass

__all__ = [
    "Base",
    "new_id",
    "School",
    "SchoolClass",
    "Profile",
    "Invitation",
    "Party",
    "Subject",
    "Grade",
    "News",
    "Comment",
    "RollCallSession",
    "RollCallEntry",
]
