# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""News service.

News is posted in a school or class and addressed to target roles. An
empty audience means everyone in the group; a non-empty one always includes
the creator's priority role. Executives see every post of their groups.

An attached image is uploaded to the image host first; if persisting the
post fails the upload is deleted again.

Example:
    >>> service = NewsService(db, graph, image_host)
    >>> news = await service.create_news(requestor, class_id, NewsDraft(content="Exam on Monday"))
"""

import logging
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from academic_service.core.constants import ProfileRole, Relationship
from academic_service.core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from academic_service.core.roles import dedupe_roles, is_allowed_to_assign_roles, is_allowed_to_view, outranks
from academic_service.domains.access_control.graph import RelationshipGraphClient
from academic_service.domains.orchestration import CompensatingTransaction
from academic_service.infrastructure.database.models import Comment, News, Profile, new_id
from academic_service.infrastructure.external.image_host import ImageHostClient, UploadedImage
from academic_service.models.content import NewsDraft

logger = logging.getLogger(__name__)

# Relationships through which a profile follows the news of a group
FEED_RELATIONSHIPS = (
    Relationship.CREATOR,
    Relationship.MANAGES,
    Relationship.EMPLOYED_AT,
    Relationship.STUDIES_AT,
    Relationship.ENROLLED_IN,
    Relationship.HAS_CHILD_IN,
    Relationship.ASSOCIATED_WITH,
)

_UNPRIVILEGED = {ProfileRole.STUDENT, ProfileRole.PARENT}


async def ensure_may_delete(db: AsyncSession, requestor: Profile, creator_id: str, message: str) -> None:
    """Check that a requestor may delete content created by someone else.

    Content of Students and Parents is only deleted by its creator; other
    content by a profile whose priority role is strictly higher than the
    creator's. Content of a deleted profile may be removed by anyone
    authorized for the action.

    Raises:
        ForbiddenError: With the given message, if the requestor may not.
    """
    if creator_id == requestor.id:
        return

    creator = await db.get(Profile, creator_id)
    if creator is None:
        return
    if creator.priority_role in _UNPRIVILEGED or not outranks(requestor.role_set, creator.role_set):
        raise ForbiddenError(message)


class NewsService:
    """Service for school and class news.

    Attributes:
        _db: Async database session.
        _graph: Relationship graph client.
        _image_host: Image host client for attached images.
    """

    def __init__(self, db: AsyncSession, graph: RelationshipGraphClient, image_host: ImageHostClient) -> None:
        self._db = db
        self._graph = graph
        self._image_host = image_host

    async def create_news(
        self,
        requestor: Profile,
        group_id: str,
        draft: NewsDraft,
        image: Optional[bytes] = None,
    ) -> News:
        """Post news in a group.

        Raises:
            BadRequestError: If the post has no content.
            ConflictError: If both an image and an image URL are given.
            ForbiddenError: If a target role outranks the requestor.
        """
        if not draft.content:
            raise BadRequestError("Content is required")

        news = News(
            id=new_id(),
            content=draft.content,
            image_url=draft.image_url,
            target_roles=self._audience(requestor, draft, image),
            creator_id=requestor.id,
            group_id=group_id,
        )

        async with CompensatingTransaction(self._db, "create-news") as tx:
            if image is not None:
                news.image_url = await self._upload(tx, image)
            self._db.add(news)
            await self._db.flush()

        logger.info("News created: %s in group %s by %s", news.id, group_id, requestor.id)
        return news

    async def update_news(
        self,
        requestor: Profile,
        group_id: str,
        news_id: str,
        draft: NewsDraft,
        image: Optional[bytes] = None,
    ) -> News:
        """Update a post; only its creator may.

        Raises:
            NotFoundError: If the news does not exist.
            ConflictError: If the news belongs to another group, or both an
                image and an image URL are given.
            ForbiddenError: If the requestor did not create the news, or a
                target role outranks the requestor.
        """
        news = await self._get_in_group(group_id, news_id)
        if news.creator_id != requestor.id:
            raise ForbiddenError("Cannot update news created by others")

        target_roles = self._audience(requestor, draft, image)

        async with CompensatingTransaction(self._db, "update-news") as tx:
            if draft.content:
                news.content = draft.content
            if draft.target_roles is not None:
                news.target_roles = target_roles
            if image is not None:
                news.image_url = await self._upload(tx, image)
            elif draft.image_url is not None:
                news.image_url = draft.image_url
            await self._db.flush()

        logger.info("News updated: %s", news_id)
        return news

    async def delete_news(self, requestor: Profile, group_id: str, news_id: str) -> News:
        """Delete a post with its comments.

        Raises:
            NotFoundError: If the news does not exist.
            ConflictError: If the news belongs to another group.
            ForbiddenError: If the requestor may not delete the creator's news.
        """
        news = await self._get_in_group(group_id, news_id)
        await ensure_may_delete(self._db, requestor, news.creator_id, "Cannot delete news created by others")

        await self._db.execute(delete(Comment).where(Comment.news_id == news_id))
        await self._db.delete(news)
        await self._db.commit()
        logger.info("News deleted: %s by %s", news_id, requestor.id)
        return news

    async def get_news(self, requestor: Profile, group_id: str, news_id: str) -> News:
        """Get a post visible to the requestor.

        Raises:
            NotFoundError: If the news does not exist.
            ConflictError: If the news belongs to another group.
            ForbiddenError: If the post is not addressed to the requestor.
        """
        news = await self._db.get(News, news_id)
        if news is None:
            raise NotFoundError("News not found")
        if news.group_id != group_id:
            raise ConflictError("News not found in the group")
        if not is_allowed_to_view(requestor.role_set, (ProfileRole(r) for r in news.target_roles)):
            raise ForbiddenError("News not accessible to the requestor")
        return news

    async def get_feed(
        self,
        requestor: Profile,
        *,
        before: Optional[datetime] = None,
        limit: int = 10,
        target_roles: Optional[Sequence[ProfileRole]] = None,
    ) -> list[News]:
        """List the newest posts of every group the requestor follows.

        Args:
            requestor: Acting profile.
            before: Only posts created strictly before this instant.
            limit: Maximum number of posts.
            target_roles: Only posts addressed to one of these roles.
        """
        edges = await self._graph.query_by_from(requestor.id, FEED_RELATIONSHIPS)
        group_ids = list(dict.fromkeys([requestor.group_id, *(edge.to_id for edge in edges)]))

        stmt = select(News).where(News.group_id.in_(group_ids))
        if requestor.priority_role != ProfileRole.EXECUTIVE:
            stmt = stmt.where(
                or_(
                    func.jsonb_array_length(News.target_roles) == 0,
                    *(News.target_roles.contains([role.value]) for role in requestor.role_set),
                )
            )
        if target_roles:
            stmt = stmt.where(or_(*(News.target_roles.contains([role.value]) for role in target_roles)))

        return await self._page(stmt, before, limit)

    async def get_own(self, requestor: Profile, *, before: Optional[datetime] = None, limit: int = 10) -> list[News]:
        """List the newest posts created by the requestor."""
        stmt = select(News).where(News.creator_id == requestor.id)
        return await self._page(stmt, before, limit)

    async def _page(self, stmt, before: Optional[datetime], limit: int) -> list[News]:
        if before is not None:
            stmt = stmt.where(News.created_at < before)
        result = await self._db.execute(stmt.order_by(News.created_at.desc()).limit(limit))
        return list(result.scalars().all())

    async def _get_in_group(self, group_id: str, news_id: str) -> News:
        news = await self._db.get(News, news_id)
        if news is None:
            raise NotFoundError("News not found")
        if news.group_id != group_id:
            raise ConflictError("News's groupId does not match the request.")
        return news

    async def _upload(self, tx: CompensatingTransaction, image: bytes) -> str:
        uploaded: UploadedImage = await tx.step(
            "upload-image",
            self._image_host.upload(image),
            compensate=lambda: self._image_host.delete(uploaded),
        )
        return uploaded.url

    @staticmethod
    def _audience(requestor: Profile, draft: NewsDraft, image: Optional[bytes]) -> list[str]:
        if image is not None and draft.image_url:
            raise ConflictError("Cannot upload image and use imageUrl at the same time")
        if not draft.target_roles:
            return []
        if not is_allowed_to_assign_roles(requestor.role_set, draft.target_roles):
            raise ForbiddenError("Cannot assign roles higher than your own")
        return [role.value for role in dedupe_roles([*draft.target_roles, requestor.priority_role])]
