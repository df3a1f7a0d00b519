# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Group content domain package."""

from academic_service.domains.content.comment import CommentService
from academic_service.domains.content.grade import GradeService
from academic_service.domains.content.news import NewsService
from academic_service.domains.content.party import PartyService
from academic_service.domains.content.roll_call import RollCallService
from academic_service.domains.content.service import GroupContentService
from academic_service.domains.content.subject import SubjectService

__all__ = [
    "GroupContentService",
    "PartyService",
    "SubjectService",
    "GradeService",
    "NewsService",
    "CommentService",
    "RollCallService",
]
