# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""News API endpoints.

This module provides endpoints for school and class news:
- GET / - News feed of every group the requestor follows
- GET /me - News created by the requestor
- POST /{group_id} - Post news, optionally with an uploaded image
- GET /{group_id}/{news_id} - Get a post
- PATCH /{group_id}/{news_id} - Update a post
- DELETE /{group_id}/{news_id} - Delete a post and its comments

Posts are sent as multipart forms so an image can be attached; an image
and an image_url are mutually exclusive.

Example:
    GET /api/v1/news?from=2025-03-01T08:00:00Z&limit=20
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from academic_service.api.dependencies import get_news_service, require
from academic_service.core.constants import ProfileRole, Relationship
from academic_service.domains.access_control import (
    ProtectedOperation,
    RequestContext,
    acting_profile,
    path_param,
)
from academic_service.domains.content import NewsService
from academic_service.infrastructure.database.models import News
from academic_service.models.common import ApiResponse, success
from academic_service.models.content import NewsDraft, NewsResponse

logger = logging.getLogger(__name__)

router = APIRouter()

_MANAGERS = {ProfileRole.TEACHER: (Relationship.CREATOR, Relationship.MANAGES)}
# School and class relationships together: a group id names either
NEWS_READERS = {
    ProfileRole.TEACHER: (Relationship.CREATOR, Relationship.MANAGES, Relationship.EMPLOYED_AT),
    ProfileRole.STUDENT: (Relationship.STUDIES_AT, Relationship.ENROLLED_IN),
    ProfileRole.PARENT: (Relationship.ASSOCIATED_WITH, Relationship.HAS_CHILD_IN),
}
_GROUP = path_param("group_id")

ADD_NEWS = ProtectedOperation.declare("add-news", _MANAGERS, target=_GROUP)
UPDATE_NEWS = ProtectedOperation.declare("update-news", _MANAGERS, target=_GROUP)
DELETE_NEWS = ProtectedOperation.declare("delete-news", _MANAGERS, target=_GROUP)
VIEW_NEWS = ProtectedOperation.declare("view-news", NEWS_READERS, target=_GROUP)
VIEW_NEWS_FEED = ProtectedOperation.declare(
    "view-news-feed",
    {role: (Relationship.OWN,) for role in ProfileRole},
    target=acting_profile(),
)

OPERATIONS = (ADD_NEWS, UPDATE_NEWS, DELETE_NEWS, VIEW_NEWS, VIEW_NEWS_FEED)


def _render(news: list[News]) -> list[NewsResponse]:
    return [NewsResponse.model_validate(n) for n in news]


async def _read(image: Optional[UploadFile]) -> Optional[bytes]:
    return await image.read() if image is not None else None


@router.get(
    "",
    response_model=ApiResponse[list[NewsResponse]],
    summary="News feed",
)
async def get_feed(
    before: Optional[datetime] = Query(None, alias="from", description="Only news created before this instant"),
    limit: int = Query(10, ge=1, le=100, description="Maximum number of news"),
    target_roles: Optional[list[ProfileRole]] = Query(None, description="Only news addressed to these roles"),
    context: RequestContext = Depends(require(VIEW_NEWS_FEED)),
    service: NewsService = Depends(get_news_service),
) -> dict:
    """List the newest posts of the requestor's schools and classes.

    Posts addressed to other roles are left out, except for executives.
    """
    news = await service.get_feed(
        context.require_profile(), before=before, limit=limit, target_roles=target_roles
    )
    return success(_render(news))


@router.get(
    "/me",
    response_model=ApiResponse[list[NewsResponse]],
    summary="List own news",
)
async def get_own_news(
    before: Optional[datetime] = Query(None, alias="from", description="Only news created before this instant"),
    limit: int = Query(10, ge=1, le=100, description="Maximum number of news"),
    context: RequestContext = Depends(require(VIEW_NEWS_FEED)),
    service: NewsService = Depends(get_news_service),
) -> dict:
    news = await service.get_own(context.require_profile(), before=before, limit=limit)
    return success(_render(news))


@router.post(
    "/{group_id}",
    response_model=ApiResponse[NewsResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Post news",
)
async def create_news(
    group_id: UUID,
    content: str = Form(..., min_length=1, description="News text"),
    image_url: Optional[str] = Form(None, description="Image URL, exclusive with image"),
    target_roles: Optional[list[ProfileRole]] = Form(None, description="Audience, everyone when empty"),
    image: Optional[UploadFile] = File(None, description="Image to upload"),
    context: RequestContext = Depends(require(ADD_NEWS)),
    service: NewsService = Depends(get_news_service),
) -> dict:
    requestor = context.require_profile()
    logger.info("Posting news: group=%s, by=%s", group_id, requestor.id)

    draft = NewsDraft(content=content, image_url=image_url, target_roles=target_roles)
    news = await service.create_news(requestor, str(group_id), draft, await _read(image))
    return success(NewsResponse.model_validate(news))


@router.get(
    "/{group_id}/{news_id}",
    response_model=ApiResponse[NewsResponse],
    summary="Get news",
)
async def get_news(
    group_id: UUID,
    news_id: UUID,
    context: RequestContext = Depends(require(VIEW_NEWS)),
    service: NewsService = Depends(get_news_service),
) -> dict:
    news = await service.get_news(context.require_profile(), str(group_id), str(news_id))
    return success(NewsResponse.model_validate(news))


@router.patch(
    "/{group_id}/{news_id}",
    response_model=ApiResponse[NewsResponse],
    summary="Update news",
)
async def update_news(
    group_id: UUID,
    news_id: UUID,
    content: Optional[str] = Form(None, description="News text"),
    image_url: Optional[str] = Form(None, description="Image URL, exclusive with image"),
    target_roles: Optional[list[ProfileRole]] = Form(None, description="Audience, everyone when empty"),
    image: Optional[UploadFile] = File(None, description="Image to upload"),
    context: RequestContext = Depends(require(UPDATE_NEWS)),
    service: NewsService = Depends(get_news_service),
) -> dict:
    """Update a post; only its creator may."""
    draft = NewsDraft(content=content, image_url=image_url, target_roles=target_roles)
    news = await service.update_news(
        context.require_profile(), str(group_id), str(news_id), draft, await _read(image)
    )
    return success(NewsResponse.model_validate(news))


@router.delete(
    "/{group_id}/{news_id}",
    response_model=ApiResponse[NewsResponse],
    summary="Delete news",
)
async def delete_news(
    group_id: UUID,
    news_id: UUID,
    context: RequestContext = Depends(require(DELETE_NEWS)),
    service: NewsService = Depends(get_news_service),
) -> dict:
    """Delete a post with its comments.

    Others' posts may only be deleted by a higher-ranking profile, and
    posts of Students and Parents only by their creator.
    """
    requestor = context.require_profile()
    logger.info("Deleting news: id=%s, by=%s", news_id, requestor.id)

    news = await service.delete_news(requestor, str(group_id), str(news_id))
    return success(NewsResponse.model_validate(news))
