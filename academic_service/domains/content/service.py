# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cascade deletion of group content.

When a school or class goes away, everything hanging off it goes too:
parties, subjects and their grades, news and their comments, roll-call
sessions and their entries, and pending mail invitations.

Statements run sequentially on the caller's session and are committed (or
rolled back) with the rest of the caller's transaction.

Example:
    >>> content = GroupContentService(db)
    >>> await content.delete_for_groups(class_ids=class_ids, group_ids=[school_id, *class_ids])
"""

import logging
from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from academic_service.infrastructure.database.models import (
    Comment,
    Grade,
    Invitation,
    News,
    Party,
    RollCallEntry,
    RollCallSession,
    Subject,
)

logger = logging.getLogger(__name__)


class GroupContentService:
    """Deletes the content of schools and classes.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def delete_by_class_ids(self, class_ids: Sequence[str]) -> None:
        """Delete parties, subjects, grades and roll-calls of classes."""
        if not class_ids:
            return

        subject_ids = select(Subject.id).where(Subject.class_id.in_(class_ids))
        session_ids = select(RollCallSession.id).where(RollCallSession.class_id.in_(class_ids))

        await self._db.execute(delete(Grade).where(Grade.subject_id.in_(subject_ids)))
        await self._db.execute(delete(Subject).where(Subject.class_id.in_(class_ids)))
        await self._db.execute(delete(Party).where(Party.class_id.in_(class_ids)))
        await self._db.execute(delete(RollCallEntry).where(RollCallEntry.session_id.in_(session_ids)))
        await self._db.execute(delete(RollCallSession).where(RollCallSession.class_id.in_(class_ids)))

    async def delete_by_group_ids(self, group_ids: Sequence[str]) -> None:
        """Delete news, their comments and mail invitations of groups."""
        if not group_ids:
            return

        news_ids = select(News.id).where(News.group_id.in_(group_ids))

        await self._db.execute(delete(Comment).where(Comment.news_id.in_(news_ids)))
        await self._db.execute(delete(News).where(News.group_id.in_(group_ids)))
        await self._db.execute(delete(Invitation).where(Invitation.group_id.in_(group_ids)))

    async def delete_for_groups(
        self,
        *,
        class_ids: Sequence[str],
        group_ids: Sequence[str],
    ) -> None:
        """Delete all content of the given classes and groups.

        Args:
            class_ids: Classes whose class-only content is deleted.
            group_ids: Schools and classes whose news and invitations are deleted.
        """
        await self.delete_by_class_ids(class_ids)
        await self.delete_by_group_ids(group_ids)
        logger.info(
            "Deleted content of %d groups (%d classes)", len(group_ids), len(class_ids)
        )
