# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School management API endpoints.

This module provides endpoints for school management:
- POST / - Create a school; the requestor becomes its creator executive
- GET /{school_id} - Get school details
- PATCH /{school_id} - Update school
- PATCH /{school_id}/avatar - Upload a new school avatar
- DELETE /{school_id} - Delete the school and everything in it
- GET /{school_id}/classes - List the classes visible to the requestor

Every endpoint but creation is authorized against the relationship graph:
the acting profile (X-Profile-Id) must hold one of the declared
relationships to the school.

Example:
    POST /api/v1/schools
    {
        "name": "Primary School One",
        "address": "1 School Street"
    }
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile, status

from academic_service.api.dependencies import (
    get_avatar_service,
    get_class_service,
    get_school_service,
    require,
)
from academic_service.core.constants import ProfileRole, Relationship
from academic_service.domains.access_control import ProtectedOperation, RequestContext, path_param
from academic_service.domains.avatar import AvatarService
from academic_service.domains.class_ import ClassService
from academic_service.domains.school import SchoolService
from academic_service.infrastructure.database.models import School
from academic_service.models.common import ApiResponse, AvatarResponse, success
from academic_service.models.school import (
    ClassResponse,
    SchoolCreateRequest,
    SchoolResponse,
    SchoolUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_SCHOOL_MEMBERS = {
    ProfileRole.EXECUTIVE: (Relationship.CREATOR, Relationship.MANAGES),
    ProfileRole.TEACHER: (Relationship.EMPLOYED_AT,),
    ProfileRole.STUDENT: (Relationship.STUDIES_AT,),
    ProfileRole.PARENT: (Relationship.ASSOCIATED_WITH,),
}

ADD_SCHOOL = ProtectedOperation.declare("add-school")
VIEW_SCHOOL = ProtectedOperation.declare("view-school", _SCHOOL_MEMBERS, target=path_param("school_id"))
UPDATE_SCHOOL = ProtectedOperation.declare(
    "update-school",
    {ProfileRole.EXECUTIVE: (Relationship.CREATOR, Relationship.MANAGES)},
    target=path_param("school_id"),
)
DELETE_SCHOOL = ProtectedOperation.declare(
    "delete-school",
    {ProfileRole.EXECUTIVE: (Relationship.CREATOR,)},
    target=path_param("school_id"),
)
VIEW_CLASSES = ProtectedOperation.declare("view-classes", _SCHOOL_MEMBERS, target=path_param("school_id"))

OPERATIONS = (ADD_SCHOOL, VIEW_SCHOOL, UPDATE_SCHOOL, DELETE_SCHOOL, VIEW_CLASSES)


@router.post(
    "",
    response_model=ApiResponse[SchoolResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create school",
)
async def create_school(
    data: SchoolCreateRequest,
    context: RequestContext = Depends(require(ADD_SCHOOL)),
    service: SchoolService = Depends(get_school_service),
) -> dict:
    """Create a school with the requestor as its creator executive."""
    user = context.require_user()
    logger.info("Creating school: name=%s, by=%s", data.name, user.id)

    school = await service.create_school(user, data)
    return success(SchoolResponse.model_validate(school))


@router.get(
    "/{school_id}",
    response_model=ApiResponse[SchoolResponse],
    summary="Get school",
)
async def get_school(
    school_id: UUID,
    context: RequestContext = Depends(require(VIEW_SCHOOL)),
    service: SchoolService = Depends(get_school_service),
) -> dict:
    school = await service.get_school(str(school_id))
    return success(SchoolResponse.model_validate(school))


@router.patch(
    "/{school_id}",
    response_model=ApiResponse[SchoolResponse],
    summary="Update school",
)
async def update_school(
    school_id: UUID,
    data: SchoolUpdateRequest,
    context: RequestContext = Depends(require(UPDATE_SCHOOL)),
    service: SchoolService = Depends(get_school_service),
) -> dict:
    school = await service.update_school(str(school_id), data)
    return success(SchoolResponse.model_validate(school))


@router.patch(
    "/{school_id}/avatar",
    response_model=ApiResponse[AvatarResponse],
    summary="Update school avatar",
)
async def update_school_avatar(
    school_id: UUID,
    image: UploadFile = File(..., description="Avatar image"),
    context: RequestContext = Depends(require(UPDATE_SCHOOL)),
    service: AvatarService = Depends(get_avatar_service),
) -> dict:
    url = await service.update(School, str(school_id), await image.read())
    return success(AvatarResponse(url=url))


@router.delete(
    "/{school_id}",
    response_model=ApiResponse[SchoolResponse],
    summary="Delete school",
)
async def delete_school(
    school_id: UUID,
    context: RequestContext = Depends(require(DELETE_SCHOOL)),
    service: SchoolService = Depends(get_school_service),
) -> dict:
    """Delete a school with its profiles, classes and content.

    Only the creator of the school may delete it.
    """
    requestor = context.require_profile()
    logger.info("Deleting school: id=%s, by=%s", school_id, requestor.id)

    school = await service.delete_school(requestor.id, str(school_id))
    return success(SchoolResponse.model_validate(school))


@router.get(
    "/{school_id}/classes",
    response_model=ApiResponse[list[ClassResponse]],
    summary="List school classes",
)
async def list_school_classes(
    school_id: UUID,
    context: RequestContext = Depends(require(VIEW_CLASSES)),
    service: ClassService = Depends(get_class_service),
) -> dict:
    """List the classes of a school the requestor can see.

    Executives see every class; other members see the classes they are
    related to.
    """
    classes = await service.get_by_school(context.require_profile(), str(school_id))
    return success([ClassResponse.model_validate(c) for c in classes])
