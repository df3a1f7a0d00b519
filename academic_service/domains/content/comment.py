# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Comment service.

Comments are visible to whoever may see their news post. Only the author
edits a comment; deletion by others follows the same rank rule as news.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academic_service.core.constants import ProfileRole
from academic_service.core.errors import ConflictError, ForbiddenError, NotFoundError
from academic_service.core.roles import is_allowed_to_view
from academic_service.domains.content.news import ensure_may_delete
from academic_service.infrastructure.database.models import Comment, News, Profile, new_id

logger = logging.getLogger(__name__)


class CommentService:
    """Service for comments on news posts."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def list_comments(
        self,
        requestor: Profile,
        news_id: str,
        *,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[Comment]:
        """List the comments of a post, oldest first.

        Raises:
            NotFoundError: If the news does not exist.
            ForbiddenError: If the post is not addressed to the requestor.
        """
        await self._visible_news(requestor, news_id, "Comment not accessible to the requestor")

        stmt = select(Comment).where(Comment.news_id == news_id).order_by(Comment.created_at).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._db.execute(stmt)
        return list(result.scalars().all())

    async def add_comment(self, requestor: Profile, news_id: str, content: str) -> Comment:
        await self._visible_news(requestor, news_id, "Comment for this news is not accessible to the requestor")

        comment = Comment(id=new_id(), news_id=news_id, creator_id=requestor.id, content=content)
        self._db.add(comment)
        await self._db.commit()
        logger.info("Comment added: %s on news %s", comment.id, news_id)
        return comment

    async def update_comment(self, requestor: Profile, news_id: str, comment_id: str, content: str) -> Comment:
        """Edit a comment; only its author may.

        Raises:
            ForbiddenError: If the requestor did not write the comment.
        """
        comment = await self._get_comment(requestor, news_id, comment_id)
        if comment.creator_id != requestor.id:
            raise ForbiddenError("Cannot update comment created by others")

        comment.content = content
        await self._db.commit()
        logger.info("Comment updated: %s", comment_id)
        return comment

    async def delete_comment(self, requestor: Profile, news_id: str, comment_id: str) -> Comment:
        comment = await self._get_comment(requestor, news_id, comment_id)
        await ensure_may_delete(self._db, requestor, comment.creator_id, "Cannot delete comment created by others")

        await self._db.delete(comment)
        await self._db.commit()
        logger.info("Comment deleted: %s by %s", comment_id, requestor.id)
        return comment

    async def _visible_news(self, requestor: Profile, news_id: str, message: str) -> News:
        news = await self._db.get(News, news_id)
        if news is None:
            raise NotFoundError("News not found")
        if not is_allowed_to_view(requestor.role_set, (ProfileRole(r) for r in news.target_roles)):
            raise ForbiddenError(message)
        return news

    async def _get_comment(self, requestor: Profile, news_id: str, comment_id: str) -> Comment:
        await self._visible_news(requestor, news_id, "Comment for this news is not accessible to the requestor")

        comment = await self._db.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")
        if comment.news_id != news_id:
            raise ConflictError("Comment's newsId does not match the request.")
        return comment
