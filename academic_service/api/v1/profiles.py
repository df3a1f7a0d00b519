# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Profile API endpoints.

This module provides endpoints for profiles:
- GET /me - List the requestor's own profiles
- GET /{profile_id} - Get profile details
- GET /{profile_id}/related - List profiles related to a profile
- GET /{group_type}/{group_id} - List the profiles of a school or class
- POST /{group_type}/{group_id} - Add profiles to a school or class
- PATCH /{profile_id} - Update display name, roles or owning user
- PATCH /{profile_id}/avatar - Upload a new profile avatar
- DELETE /{profile_id} - Delete a profile

Roles given to new or updated profiles must be assignable by the acting
profile, and Student never combines with another role.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, File, Query, UploadFile, status

from academic_service.api.dependencies import (
    get_avatar_service,
    get_current_user,
    get_profile_service,
    require,
)
from academic_service.core.constants import GroupType, ProfileRole, Relationship
from academic_service.domains.access_control import CurrentUser, ProtectedOperation, RequestContext, path_param
from academic_service.domains.avatar import AvatarService
from academic_service.domains.profile import ProfileService
from academic_service.infrastructure.database.models import Profile
from academic_service.models.common import ApiResponse, AvatarResponse, success
from academic_service.models.profile import ProfileInsertRequest, ProfileResponse, ProfileUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter()

_PROFILE_SUPERVISORS = {
    ProfileRole.EXECUTIVE: (Relationship.SUPERVISES_TEACHERS,),
    ProfileRole.TEACHER: (Relationship.OWN, Relationship.TEACHES, Relationship.SUPERVISES_PARENTS),
}

ADD_PROFILE = ProtectedOperation.declare(
    "add-profile",
    {
        ProfileRole.EXECUTIVE: (Relationship.CREATOR,),
        ProfileRole.TEACHER: (Relationship.MANAGES,),
    },
    target=path_param("group_id"),
)
VIEW_GROUP_PROFILES = ProtectedOperation.declare(
    "view-group-profiles",
    {
        ProfileRole.EXECUTIVE: (Relationship.CREATOR, Relationship.MANAGES),
        ProfileRole.TEACHER: (Relationship.CREATOR, Relationship.MANAGES, Relationship.EMPLOYED_AT),
        ProfileRole.STUDENT: (Relationship.STUDIES_AT, Relationship.ENROLLED_IN),
        ProfileRole.PARENT: (Relationship.ASSOCIATED_WITH, Relationship.HAS_CHILD_IN),
    },
    target=path_param("group_id"),
)
VIEW_RELATED_PROFILES = ProtectedOperation.declare(
    "view-related-profiles",
    {role: (Relationship.OWN,) for role in ProfileRole},
    target=path_param("profile_id"),
)
UPDATE_PROFILE = ProtectedOperation.declare(
    "update-profile", _PROFILE_SUPERVISORS, target=path_param("profile_id")
)
DELETE_PROFILE = ProtectedOperation.declare(
    "delete-profile", _PROFILE_SUPERVISORS, target=path_param("profile_id")
)

OPERATIONS = (ADD_PROFILE, VIEW_GROUP_PROFILES, VIEW_RELATED_PROFILES, UPDATE_PROFILE, DELETE_PROFILE)


def _render(profiles: list[Profile]) -> list[ProfileResponse]:
    return [ProfileResponse.model_validate(p) for p in profiles]


@router.get(
    "/me",
    response_model=ApiResponse[list[ProfileResponse]],
    summary="List own profiles",
)
async def list_own_profiles(
    roles: Optional[list[ProfileRole]] = Query(None, description="Only profiles holding one of these roles"),
    user: CurrentUser = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
) -> dict:
    profiles = await service.list_by_user(user.id, roles)
    return success(_render(profiles))


@router.get(
    "/{profile_id}",
    response_model=ApiResponse[ProfileResponse],
    summary="Get profile",
)
async def get_profile(
    profile_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
) -> dict:
    profile = await service.get_by_id(str(profile_id))
    return success(ProfileResponse.model_validate(profile))


@router.get(
    "/{profile_id}/related",
    response_model=ApiResponse[list[ProfileResponse]],
    summary="List related profiles",
)
async def list_related_profiles(
    profile_id: UUID,
    roles: Optional[list[ProfileRole]] = Query(None, description="Roles whose relationships to follow"),
    context: RequestContext = Depends(require(VIEW_RELATED_PROFILES)),
    service: ProfileService = Depends(get_profile_service),
) -> dict:
    """List profiles connected to the requestor's own profile.

    Follows the relationships derived between roles (a teacher teaching a
    student, a parent of a student, and so on).
    """
    profiles = await service.get_related(str(profile_id), roles)
    return success(_render(profiles))


@router.get(
    "/{group_type}/{group_id}",
    response_model=ApiResponse[list[ProfileResponse]],
    summary="List group profiles",
)
async def list_group_profiles(
    group_type: GroupType,
    group_id: UUID,
    roles: Optional[list[ProfileRole]] = Query(None, description="Only profiles holding one of these roles"),
    context: RequestContext = Depends(require(VIEW_GROUP_PROFILES)),
    service: ProfileService = Depends(get_profile_service),
) -> dict:
    profiles = await service.get_by_group(group_type, str(group_id), roles)
    return success(_render(profiles))


@router.post(
    "/{group_type}/{group_id}",
    response_model=ApiResponse[list[ProfileResponse]],
    status_code=status.HTTP_201_CREATED,
    summary="Add profiles",
)
async def add_profiles(
    group_type: GroupType,
    group_id: UUID,
    data: list[ProfileInsertRequest] = Body(..., min_length=1),
    context: RequestContext = Depends(require(ADD_PROFILE)),
    service: ProfileService = Depends(get_profile_service),
) -> dict:
    """Add profiles to a school or class.

    Executives cannot be added to a class. Each profile is bound to the
    group with the relationship of its highest role.
    """
    requestor = context.require_profile()
    logger.info("Adding %d profiles to %s %s, by=%s", len(data), group_type.value, group_id, requestor.id)

    profiles = await service.insert_profiles(requestor, group_type, str(group_id), data)
    return success(_render(profiles))


@router.patch(
    "/{profile_id}",
    response_model=ApiResponse[ProfileResponse],
    summary="Update profile",
)
async def update_profile(
    profile_id: UUID,
    data: ProfileUpdateRequest,
    context: RequestContext = Depends(require(UPDATE_PROFILE)),
    service: ProfileService = Depends(get_profile_service),
) -> dict:
    profile = await service.update_profile(context.require_profile(), str(profile_id), data)
    return success(ProfileResponse.model_validate(profile))


@router.patch(
    "/{profile_id}/avatar",
    response_model=ApiResponse[AvatarResponse],
    summary="Update profile avatar",
)
async def update_profile_avatar(
    profile_id: UUID,
    image: UploadFile = File(..., description="Avatar image"),
    context: RequestContext = Depends(require(UPDATE_PROFILE)),
    service: AvatarService = Depends(get_avatar_service),
) -> dict:
    url = await service.update(Profile, str(profile_id), await image.read())
    return success(AvatarResponse(url=url))


@router.delete(
    "/{profile_id}",
    response_model=ApiResponse[ProfileResponse],
    summary="Delete profile",
)
async def delete_profile(
    profile_id: UUID,
    context: RequestContext = Depends(require(DELETE_PROFILE)),
    service: ProfileService = Depends(get_profile_service),
) -> dict:
    """Delete a profile.

    The creator profile of a group cannot be deleted, and a teacher cannot
    delete another teacher of a school.
    """
    requestor = context.require_profile()
    logger.info("Deleting profile: id=%s, by=%s", profile_id, requestor.id)

    profile = await service.delete_profile(requestor, str(profile_id))
    return success(ProfileResponse.model_validate(profile))
