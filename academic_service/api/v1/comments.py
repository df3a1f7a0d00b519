# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Comment API endpoints.

This module provides endpoints for comments on news posts:
- GET /{news_id} - List the comments of a post
- POST /{news_id} - Comment on a post
- PATCH /{news_id}/{comment_id} - Edit a comment
- DELETE /{news_id}/{comment_id} - Delete a comment

Every route is authorized against the group of the post, like reading it.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from academic_service.api.dependencies import get_comment_service, require
from academic_service.api.v1.news import NEWS_READERS
from academic_service.domains.access_control import ProtectedOperation, RequestContext, owner_of
from academic_service.domains.content import CommentService
from academic_service.infrastructure.database.models import News
from academic_service.models.common import ApiResponse, success
from academic_service.models.content import CommentRequest, CommentResponse

logger = logging.getLogger(__name__)

router = APIRouter()

_NEWS_GROUP = owner_of(News, "news_id", "group_id", "News not found")

VIEW_COMMENT = ProtectedOperation.declare("view-comment", NEWS_READERS, target=_NEWS_GROUP)
ADD_COMMENT = ProtectedOperation.declare("add-comment", NEWS_READERS, target=_NEWS_GROUP)
UPDATE_COMMENT = ProtectedOperation.declare("update-comment", NEWS_READERS, target=_NEWS_GROUP)
DELETE_COMMENT = ProtectedOperation.declare("delete-comment", NEWS_READERS, target=_NEWS_GROUP)

OPERATIONS = (VIEW_COMMENT, ADD_COMMENT, UPDATE_COMMENT, DELETE_COMMENT)


@router.get(
    "/{news_id}",
    response_model=ApiResponse[list[CommentResponse]],
    summary="List comments of a post",
)
async def list_comments(
    news_id: UUID,
    offset: int = Query(0, ge=0, description="Comments to skip"),
    limit: Optional[int] = Query(None, ge=1, le=100, description="Maximum number of comments"),
    context: RequestContext = Depends(require(VIEW_COMMENT)),
    service: CommentService = Depends(get_comment_service),
) -> dict:
    comments = await service.list_comments(context.require_profile(), str(news_id), offset=offset, limit=limit)
    return success([CommentResponse.model_validate(c) for c in comments])


@router.post(
    "/{news_id}",
    response_model=ApiResponse[CommentResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a post",
)
async def add_comment(
    news_id: UUID,
    data: CommentRequest,
    context: RequestContext = Depends(require(ADD_COMMENT)),
    service: CommentService = Depends(get_comment_service),
) -> dict:
    comment = await service.add_comment(context.require_profile(), str(news_id), data.content)
    return success(CommentResponse.model_validate(comment))


@router.patch(
    "/{news_id}/{comment_id}",
    response_model=ApiResponse[CommentResponse],
    summary="Edit comment",
)
async def update_comment(
    news_id: UUID,
    comment_id: UUID,
    data: CommentRequest,
    context: RequestContext = Depends(require(UPDATE_COMMENT)),
    service: CommentService = Depends(get_comment_service),
) -> dict:
    comment = await service.update_comment(
        context.require_profile(), str(news_id), str(comment_id), data.content
    )
    return success(CommentResponse.model_validate(comment))


@router.delete(
    "/{news_id}/{comment_id}",
    response_model=ApiResponse[CommentResponse],
    summary="Delete comment",
)
async def delete_comment(
    news_id: UUID,
    comment_id: UUID,
    context: RequestContext = Depends(require(DELETE_COMMENT)),
    service: CommentService = Depends(get_comment_service),
) -> dict:
    requestor = context.require_profile()
    logger.info("Deleting comment: id=%s, by=%s", comment_id, requestor.id)

    comment = await service.delete_comment(requestor, str(news_id), str(comment_id))
    return success(CommentResponse.model_validate(comment))
