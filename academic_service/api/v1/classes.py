# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class management API endpoints.

This module provides endpoints for class management:
- POST / - Create a personal class, or a class of a school
- GET /{class_id} - Get class details
- PATCH /{class_id} - Update class
- PATCH /{class_id}/avatar - Upload a new class avatar
- DELETE /{class_id} - Delete the class and its content

A class without school_id is personal: the requestor becomes its teacher.
A school class can only be created by an executive of the school, who then
manages it together with every other executive.

Example:
    POST /api/v1/classes
    {
        "name": "5-A",
        "school_id": "4b0c1f0e-..."
    }
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile, status

from academic_service.api.dependencies import get_avatar_service, get_class_service, require
from academic_service.core.constants import ProfileRole, Relationship
from academic_service.domains.access_control import ProtectedOperation, RequestContext, path_param
from academic_service.domains.avatar import AvatarService
from academic_service.domains.class_ import ClassService
from academic_service.infrastructure.database.models import SchoolClass
from academic_service.models.common import ApiResponse, AvatarResponse, success
from academic_service.models.school import ClassCreateRequest, ClassResponse, ClassUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter()

_CLASS_MANAGERS = (Relationship.CREATOR, Relationship.MANAGES)

ADD_CLASS = ProtectedOperation.declare("add-class")
VIEW_CLASS = ProtectedOperation.declare(
    "view-class",
    {
        ProfileRole.TEACHER: _CLASS_MANAGERS,
        ProfileRole.STUDENT: (Relationship.ENROLLED_IN,),
        ProfileRole.PARENT: (Relationship.HAS_CHILD_IN,),
    },
    target=path_param("class_id"),
)
UPDATE_CLASS = ProtectedOperation.declare(
    "update-class",
    {ProfileRole.TEACHER: _CLASS_MANAGERS},
    target=path_param("class_id"),
)
# Executives manage school classes without being teachers of them
UPDATE_CLASS_AVATAR = ProtectedOperation.declare(
    "update-class",
    {ProfileRole.TEACHER: _CLASS_MANAGERS, ProfileRole.EXECUTIVE: _CLASS_MANAGERS},
    target=path_param("class_id"),
)
DELETE_CLASS = ProtectedOperation.declare(
    "delete-class",
    {ProfileRole.TEACHER: (Relationship.CREATOR,)},
    target=path_param("class_id"),
)

OPERATIONS = (ADD_CLASS, VIEW_CLASS, UPDATE_CLASS, UPDATE_CLASS_AVATAR, DELETE_CLASS)


@router.post(
    "",
    response_model=ApiResponse[ClassResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create class",
)
async def create_class(
    data: ClassCreateRequest,
    context: RequestContext = Depends(require(ADD_CLASS)),
    service: ClassService = Depends(get_class_service),
) -> dict:
    """Create a class; a school class requires an executive of the school."""
    user = context.require_user()
    logger.info("Creating class: name=%s, school=%s, by=%s", data.name, data.school_id, user.id)

    school_class = await service.create_class(user, data)
    return success(ClassResponse.model_validate(school_class))


@router.get(
    "/{class_id}",
    response_model=ApiResponse[ClassResponse],
    summary="Get class",
)
async def get_class(
    class_id: UUID,
    context: RequestContext = Depends(require(VIEW_CLASS)),
    service: ClassService = Depends(get_class_service),
) -> dict:
    school_class = await service.get_class(str(class_id))
    return success(ClassResponse.model_validate(school_class))


@router.patch(
    "/{class_id}",
    response_model=ApiResponse[ClassResponse],
    summary="Update class",
)
async def update_class(
    class_id: UUID,
    data: ClassUpdateRequest,
    context: RequestContext = Depends(require(UPDATE_CLASS)),
    service: ClassService = Depends(get_class_service),
) -> dict:
    school_class = await service.update_class(str(class_id), data)
    return success(ClassResponse.model_validate(school_class))


@router.patch(
    "/{class_id}/avatar",
    response_model=ApiResponse[AvatarResponse],
    summary="Update class avatar",
)
async def update_class_avatar(
    class_id: UUID,
    image: UploadFile = File(..., description="Avatar image"),
    context: RequestContext = Depends(require(UPDATE_CLASS_AVATAR)),
    service: AvatarService = Depends(get_avatar_service),
) -> dict:
    url = await service.update(SchoolClass, str(class_id), await image.read())
    return success(AvatarResponse(url=url))


@router.delete(
    "/{class_id}",
    response_model=ApiResponse[ClassResponse],
    summary="Delete class",
)
async def delete_class(
    class_id: UUID,
    context: RequestContext = Depends(require(DELETE_CLASS)),
    service: ClassService = Depends(get_class_service),
) -> dict:
    """Delete a class with its content.

    Only the creator of the class may delete it.
    """
    requestor = context.require_profile()
    logger.info("Deleting class: id=%s, by=%s", class_id, requestor.id)

    school_class = await service.delete_class(requestor.id, str(class_id))
    return success(ClassResponse.model_validate(school_class))
