# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Subject API endpoints.

This module provides endpoints for the subjects of a class:
- GET /{class_id} - List the subjects of a class
- GET /{class_id}/{subject_id} - Get subject details
- POST /{class_id} - Create a subject
- PATCH /{class_id}/{subject_id} - Update a subject
- PATCH /{class_id}/{subject_id}/grade-types - Add grade types
- DELETE /{class_id}/{subject_id}/grade-types - Remove grade types and their grades
- DELETE /{class_id}/{subject_id} - Delete a subject and its grades
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status

from academic_service.api.dependencies import get_subject_service, require
from academic_service.core.constants import ProfileRole, Relationship
from academic_service.domains.access_control import ProtectedOperation, RequestContext, path_param
from academic_service.domains.content import SubjectService
from academic_service.models.common import ApiResponse, success
from academic_service.models.content import (
    GradeTypesAddRequest,
    GradeTypesRemoveRequest,
    SubjectCreateRequest,
    SubjectResponse,
    SubjectUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_MANAGERS = {ProfileRole.TEACHER: (Relationship.CREATOR, Relationship.MANAGES)}
_MEMBERS = {
    **_MANAGERS,
    ProfileRole.STUDENT: (Relationship.ENROLLED_IN,),
    ProfileRole.PARENT: (Relationship.HAS_CHILD_IN,),
}
_CLASS = path_param("class_id")

VIEW_SUBJECTS = ProtectedOperation.declare("view-subjects", _MEMBERS, target=_CLASS)
VIEW_SUBJECT = ProtectedOperation.declare("view-subject", _MEMBERS, target=_CLASS)
ADD_SUBJECT = ProtectedOperation.declare("add-subject", _MANAGERS, target=_CLASS)
UPDATE_SUBJECT = ProtectedOperation.declare("update-subject", _MANAGERS, target=_CLASS)
ADD_GRADE_TYPES = ProtectedOperation.declare("add-grade-types", _MANAGERS, target=_CLASS)
REMOVE_GRADE_TYPES = ProtectedOperation.declare("remove-grade-types", _MANAGERS, target=_CLASS)
DELETE_SUBJECT = ProtectedOperation.declare("delete-subject", _MANAGERS, target=_CLASS)

OPERATIONS = (
    VIEW_SUBJECTS,
    VIEW_SUBJECT,
    ADD_SUBJECT,
    UPDATE_SUBJECT,
    ADD_GRADE_TYPES,
    REMOVE_GRADE_TYPES,
    DELETE_SUBJECT,
)


@router.get(
    "/{class_id}",
    response_model=ApiResponse[list[SubjectResponse]],
    summary="List subjects of a class",
)
async def list_subjects(
    class_id: UUID,
    context: RequestContext = Depends(require(VIEW_SUBJECTS)),
    service: SubjectService = Depends(get_subject_service),
) -> dict:
    subjects = await service.list_subjects(str(class_id))
    return success([SubjectResponse.model_validate(s) for s in subjects])


@router.get(
    "/{class_id}/{subject_id}",
    response_model=ApiResponse[SubjectResponse],
    summary="Get subject",
)
async def get_subject(
    class_id: UUID,
    subject_id: UUID,
    context: RequestContext = Depends(require(VIEW_SUBJECT)),
    service: SubjectService = Depends(get_subject_service),
) -> dict:
    subject = await service.get_subject(str(class_id), str(subject_id))
    return success(SubjectResponse.model_validate(subject))


@router.post(
    "/{class_id}",
    response_model=ApiResponse[SubjectResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create subject",
)
async def create_subject(
    class_id: UUID,
    data: SubjectCreateRequest,
    context: RequestContext = Depends(require(ADD_SUBJECT)),
    service: SubjectService = Depends(get_subject_service),
) -> dict:
    logger.info("Creating subject: name=%s, class=%s", data.name, class_id)
    subject = await service.create_subject(str(class_id), data)
    return success(SubjectResponse.model_validate(subject))


@router.patch(
    "/{class_id}/{subject_id}",
    response_model=ApiResponse[SubjectResponse],
    summary="Update subject",
)
async def update_subject(
    class_id: UUID,
    subject_id: UUID,
    data: SubjectUpdateRequest,
    context: RequestContext = Depends(require(UPDATE_SUBJECT)),
    service: SubjectService = Depends(get_subject_service),
) -> dict:
    subject = await service.update_subject(str(class_id), str(subject_id), data)
    return success(SubjectResponse.model_validate(subject))


@router.patch(
    "/{class_id}/{subject_id}/grade-types",
    response_model=ApiResponse[SubjectResponse],
    summary="Add grade types",
)
async def add_grade_types(
    class_id: UUID,
    subject_id: UUID,
    data: GradeTypesAddRequest,
    context: RequestContext = Depends(require(ADD_GRADE_TYPES)),
    service: SubjectService = Depends(get_subject_service),
) -> dict:
    subject = await service.add_grade_types(str(class_id), str(subject_id), data.names)
    return success(SubjectResponse.model_validate(subject))


@router.delete(
    "/{class_id}/{subject_id}/grade-types",
    response_model=ApiResponse[SubjectResponse],
    summary="Remove grade types",
)
async def remove_grade_types(
    class_id: UUID,
    subject_id: UUID,
    data: GradeTypesRemoveRequest,
    context: RequestContext = Depends(require(REMOVE_GRADE_TYPES)),
    service: SubjectService = Depends(get_subject_service),
) -> dict:
    """Remove grade types; grades given under them are deleted."""
    subject = await service.remove_grade_types(str(class_id), str(subject_id), data.ids)
    return success(SubjectResponse.model_validate(subject))


@router.delete(
    "/{class_id}/{subject_id}",
    response_model=ApiResponse[SubjectResponse],
    summary="Delete subject",
)
async def delete_subject(
    class_id: UUID,
    subject_id: UUID,
    context: RequestContext = Depends(require(DELETE_SUBJECT)),
    service: SubjectService = Depends(get_subject_service),
) -> dict:
    subject = await service.delete_subject(str(class_id), str(subject_id))
    return success(SubjectResponse.model_validate(subject))
