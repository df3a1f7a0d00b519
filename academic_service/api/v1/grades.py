# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade API endpoints.

This module provides endpoints for grades:
- POST /subject/{subject_id} - Grade students of the subject's class
- GET /subject/{subject_id} - List the grades of a subject
- GET /subject/{subject_id}/{grade_type_id} - List the grades of one grade type
- PATCH /subject/{subject_id}/{grade_id} - Update a grade
- DELETE /subject/{subject_id}/{grade_id} - Delete a grade
- GET /student/{student_id} - List the grades of a student
- GET /student/{student_id}/subject/{subject_id} - List a student's grades in a subject

Subject routes are authorized against the class of the subject; student
routes against the student, who is reachable by its teachers, itself and
its parents.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, status

from academic_service.api.dependencies import get_grade_service, require
from academic_service.core.constants import ProfileRole, Relationship
from academic_service.domains.access_control import ProtectedOperation, RequestContext, owner_of, path_param
from academic_service.domains.content import GradeService
from academic_service.infrastructure.database.models import Grade, Subject
from academic_service.models.common import ApiResponse, success
from academic_service.models.content import GradeCreateRequest, GradeResponse, GradeUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter()

_MANAGERS = {ProfileRole.TEACHER: (Relationship.CREATOR, Relationship.MANAGES)}
_MEMBERS = {
    **_MANAGERS,
    ProfileRole.STUDENT: (Relationship.ENROLLED_IN,),
    ProfileRole.PARENT: (Relationship.HAS_CHILD_IN,),
}
_SUBJECT_CLASS = owner_of(Subject, "subject_id", "class_id", "Subject not found")

ADD_GRADE = ProtectedOperation.declare("add-grade", _MANAGERS, target=_SUBJECT_CLASS)
UPDATE_GRADE = ProtectedOperation.declare("update-grade", _MANAGERS, target=_SUBJECT_CLASS)
DELETE_GRADE = ProtectedOperation.declare("delete-grade", _MANAGERS, target=_SUBJECT_CLASS)
VIEW_SUBJECT_GRADES = ProtectedOperation.declare("view-grade", _MEMBERS, target=_SUBJECT_CLASS)
VIEW_STUDENT_GRADES = ProtectedOperation.declare(
    "view-grade",
    {
        ProfileRole.TEACHER: (Relationship.TEACHES,),
        ProfileRole.STUDENT: (Relationship.OWN,),
        ProfileRole.PARENT: (Relationship.PARENT_OF,),
    },
    target=path_param("student_id"),
)

OPERATIONS = (ADD_GRADE, UPDATE_GRADE, DELETE_GRADE, VIEW_SUBJECT_GRADES, VIEW_STUDENT_GRADES)


def _render(grades: list[Grade]) -> list[GradeResponse]:
    return [GradeResponse.model_validate(g) for g in grades]


@router.post(
    "/subject/{subject_id}",
    response_model=ApiResponse[list[GradeResponse]],
    status_code=status.HTTP_201_CREATED,
    summary="Add grades",
)
async def add_grades(
    subject_id: UUID,
    data: list[GradeCreateRequest] = Body(..., min_length=1),
    context: RequestContext = Depends(require(ADD_GRADE)),
    service: GradeService = Depends(get_grade_service),
) -> dict:
    logger.info("Adding grades: count=%d, subject=%s", len(data), subject_id)
    grades = await service.add_grades(str(subject_id), data)
    return success(_render(grades))


@router.get(
    "/subject/{subject_id}",
    response_model=ApiResponse[list[GradeResponse]],
    summary="List grades of a subject",
)
async def get_subject_grades(
    subject_id: UUID,
    context: RequestContext = Depends(require(VIEW_SUBJECT_GRADES)),
    service: GradeService = Depends(get_grade_service),
) -> dict:
    return success(_render(await service.get_subject_grades(str(subject_id))))


@router.get(
    "/subject/{subject_id}/{grade_type_id}",
    response_model=ApiResponse[list[GradeResponse]],
    summary="List grades of a grade type",
)
async def get_grade_type_grades(
    subject_id: UUID,
    grade_type_id: str,
    context: RequestContext = Depends(require(VIEW_SUBJECT_GRADES)),
    service: GradeService = Depends(get_grade_service),
) -> dict:
    return success(_render(await service.get_subject_grades(str(subject_id), grade_type_id)))


@router.patch(
    "/subject/{subject_id}/{grade_id}",
    response_model=ApiResponse[GradeResponse],
    summary="Update grade",
)
async def update_grade(
    subject_id: UUID,
    grade_id: UUID,
    data: GradeUpdateRequest,
    context: RequestContext = Depends(require(UPDATE_GRADE)),
    service: GradeService = Depends(get_grade_service),
) -> dict:
    grade = await service.update_grade(str(subject_id), str(grade_id), data)
    return success(GradeResponse.model_validate(grade))


@router.delete(
    "/subject/{subject_id}/{grade_id}",
    response_model=ApiResponse[GradeResponse],
    summary="Delete grade",
)
async def delete_grade(
    subject_id: UUID,
    grade_id: UUID,
    context: RequestContext = Depends(require(DELETE_GRADE)),
    service: GradeService = Depends(get_grade_service),
) -> dict:
    grade = await service.delete_grade(str(subject_id), str(grade_id))
    return success(GradeResponse.model_validate(grade))


@router.get(
    "/student/{student_id}",
    response_model=ApiResponse[list[GradeResponse]],
    summary="List grades of a student",
)
async def get_student_grades(
    student_id: UUID,
    context: RequestContext = Depends(require(VIEW_STUDENT_GRADES)),
    service: GradeService = Depends(get_grade_service),
) -> dict:
    return success(_render(await service.get_student_grades(str(student_id))))


@router.get(
    "/student/{student_id}/subject/{subject_id}",
    response_model=ApiResponse[list[GradeResponse]],
    summary="List grades of a student in a subject",
)
async def get_student_subject_grades(
    student_id: UUID,
    subject_id: UUID,
    context: RequestContext = Depends(require(VIEW_STUDENT_GRADES)),
    service: GradeService = Depends(get_grade_service),
) -> dict:
    return success(_render(await service.get_student_grades(str(student_id), str(subject_id))))
