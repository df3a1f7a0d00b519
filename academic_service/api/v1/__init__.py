# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain, and declares
the protected operations of its endpoints in OPERATIONS.

Modules:
    schools: School endpoints (create, view, update, avatar, delete, classes).
    classes: Class endpoints (create, view, update, avatar, delete).
    profiles: Profile endpoints (lookups, add, update, avatar, delete).
    invitations: Invitation code and mail invitation endpoints.
    parties: Party endpoints of a class, with membership.
    subjects: Subject endpoints of a class, with grade types.
    grades: Grade endpoints by subject and by student.
    news: News feed and post endpoints of schools and classes.
    comments: Comment endpoints of news posts.
    roll_calls: Roll-call session and attendance endpoints.

OPERATIONS aggregates every declaration; it is the policy table published
to the access-control service at boot.
"""

from fastapi import APIRouter

from academic_service.api.v1 import (
    classes,
    comments,
    grades,
    invitations,
    news,
    parties,
    profiles,
    roll_calls,
    schools,
    subjects,
)

OPERATIONS = (
    *schools.OPERATIONS,
    *classes.OPERATIONS,
    *profiles.OPERATIONS,
    *invitations.OPERATIONS,
    *parties.OPERATIONS,
    *subjects.OPERATIONS,
    *grades.OPERATIONS,
    *news.OPERATIONS,
    *comments.OPERATIONS,
    *roll_calls.OPERATIONS,
)


def build_router(prefix: str = "/api/v1") -> APIRouter:
    """Create the v1 router mounted under the configured base path."""
    router = APIRouter(prefix=prefix)
    router.include_router(schools.router, prefix="/schools", tags=["Schools"])
    router.include_router(classes.router, prefix="/classes", tags=["Classes"])
    router.include_router(profiles.router, prefix="/profiles", tags=["Profiles"])
    router.include_router(invitations.router, prefix="/invitations", tags=["Invitations"])
    router.include_router(parties.router, prefix="/parties", tags=["Parties"])
    router.include_router(subjects.router, prefix="/subjects", tags=["Subjects"])
    router.include_router(grades.router, prefix="/grades", tags=["Grades"])
    router.include_router(news.router, prefix="/news", tags=["News"])
    router.include_router(comments.router, prefix="/comments", tags=["Comments"])
    router.include_router(roll_calls.router, prefix="/rollcalls", tags=["Roll-calls"])
    return router
