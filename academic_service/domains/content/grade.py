# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade service.

Grades are given to students enrolled in the subject's class, under one of
the subject's grade types. Enrollment is read from the relationship graph.
"""

import logging
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academic_service.core.constants import Relationship
from academic_service.core.errors import BadRequestError, ConflictError, NotFoundError
from academic_service.domains.access_control.graph import RelationshipGraphClient
from academic_service.infrastructure.database.models import Grade, Subject, new_id
from academic_service.models.content import GradeCreateRequest, GradeUpdateRequest

logger = logging.getLogger(__name__)


class GradeService:
    """Service for the grades of subjects.

    Attributes:
        _db: Async database session.
        _graph: Relationship graph client.
    """

    def __init__(self, db: AsyncSession, graph: RelationshipGraphClient) -> None:
        self._db = db
        self._graph = graph

    async def add_grades(self, subject_id: str, requests: Sequence[GradeCreateRequest]) -> list[Grade]:
        """Grade students of the subject's class.

        Raises:
            NotFoundError: If the subject does not exist.
            BadRequestError: If a grade type is not one of the subject's, or
                a student is not enrolled in the class.
        """
        subject = await self._get_subject(subject_id)
        grade_type_ids = {t["id"] for t in subject.grade_types}
        enrolled = {
            edge.from_id
            for edge in await self._graph.query_by_to(subject.class_id, [Relationship.ENROLLED_IN])
        }

        grades = []
        for request in requests:
            if request.grade_type_id not in grade_type_ids:
                raise BadRequestError("Invalid gradeTypeId")
            if str(request.student_id) not in enrolled:
                raise BadRequestError("Invalid studentId")
            grades.append(
                Grade(
                    id=new_id(),
                    student_id=str(request.student_id),
                    subject_id=subject_id,
                    grade_type_id=request.grade_type_id,
                    value=request.value,
                    comment=request.comment,
                )
            )

        self._db.add_all(grades)
        await self._db.commit()
        logger.info("Grades added: %d in subject %s", len(grades), subject_id)
        return grades

    async def get_subject_grades(self, subject_id: str, grade_type_id: Optional[str] = None) -> list[Grade]:
        """List the grades of a subject, optionally of one grade type.

        Raises:
            NotFoundError: If the subject or grade type does not exist.
        """
        subject = await self._get_subject(subject_id)
        stmt = select(Grade).where(Grade.subject_id == subject_id)

        if grade_type_id is not None:
            if grade_type_id not in {t["id"] for t in subject.grade_types}:
                raise NotFoundError("Grade type not found in the subject")
            stmt = stmt.where(Grade.grade_type_id == grade_type_id)

        result = await self._db.execute(stmt.order_by(Grade.created_at))
        return list(result.scalars().all())

    async def get_student_grades(self, student_id: str, subject_id: Optional[str] = None) -> list[Grade]:
        stmt = select(Grade).where(Grade.student_id == student_id)
        if subject_id is not None:
            stmt = stmt.where(Grade.subject_id == subject_id)

        result = await self._db.execute(stmt.order_by(Grade.created_at))
        return list(result.scalars().all())

    async def update_grade(self, subject_id: str, grade_id: str, request: GradeUpdateRequest) -> Grade:
        grade = await self._get_grade(subject_id, grade_id)

        for field, value in request.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(grade, field, value)

        await self._db.commit()
        logger.info("Grade updated: %s", grade_id)
        return grade

    async def delete_grade(self, subject_id: str, grade_id: str) -> Grade:
        grade = await self._get_grade(subject_id, grade_id)

        await self._db.delete(grade)
        await self._db.commit()
        logger.info("Grade deleted: %s", grade_id)
        return grade

    async def _get_subject(self, subject_id: str) -> Subject:
        subject = await self._db.get(Subject, subject_id)
        if subject is None:
            raise NotFoundError("Subject not found")
        return subject

    async def _get_grade(self, subject_id: str, grade_id: str) -> Grade:
        grade = await self._db.get(Grade, grade_id)
        if grade is None:
            raise NotFoundError("Grade not found")
        if grade.subject_id != subject_id:
            raise ConflictError("Grade's subjectId does not match the request.")
        return grade
