# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Subject service.

A subject carries its grade types as a JSONB list of ``{id, name}``.
Removing a grade type, or the subject, deletes the grades given with it.
"""

import logging
from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from academic_service.core.errors import ConflictError, NotFoundError
from academic_service.infrastructure.database.models import Grade, Subject, new_id
from academic_service.models.content import SubjectCreateRequest, SubjectUpdateRequest

logger = logging.getLogger(__name__)


def new_grade_types(names: Sequence[str]) -> list[dict]:
    return [{"id": new_id(), "name": name} for name in names]


class SubjectService:
    """Service for the subjects of a class."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def list_subjects(self, class_id: str) -> list[Subject]:
        result = await self._db.execute(
            select(Subject).where(Subject.class_id == class_id).order_by(Subject.name)
        )
        return list(result.scalars().all())

    async def get_subject(self, class_id: str, subject_id: str) -> Subject:
        """Get a subject of a class.

        Raises:
            NotFoundError: If the subject does not exist.
            ConflictError: If the subject belongs to another class.
        """
        subject = await self._db.get(Subject, subject_id)
        if subject is None:
            raise NotFoundError("Subject not found")
        if subject.class_id != class_id:
            raise ConflictError("Subject's classId does not match the request.")
        return subject

    async def create_subject(self, class_id: str, request: SubjectCreateRequest) -> Subject:
        subject = Subject(
            id=new_id(),
            class_id=class_id,
            name=request.name,
            avatar_url=request.avatar_url,
            description=request.description,
            grade_types=new_grade_types(request.grade_types),
        )
        self._db.add(subject)
        await self._db.commit()
        logger.info("Subject created: %s in class %s", subject.id, class_id)
        return subject

    async def update_subject(self, class_id: str, subject_id: str, request: SubjectUpdateRequest) -> Subject:
        subject = await self.get_subject(class_id, subject_id)

        for field, value in request.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(subject, field, value)

        await self._db.commit()
        logger.info("Subject updated: %s", subject_id)
        return subject

    async def add_grade_types(self, class_id: str, subject_id: str, names: Sequence[str]) -> Subject:
        subject = await self.get_subject(class_id, subject_id)

        subject.grade_types = [*subject.grade_types, *new_grade_types(names)]
        await self._db.commit()
        logger.info("Grade types added: %s (+%d)", subject_id, len(names))
        return subject

    async def remove_grade_types(self, class_id: str, subject_id: str, ids: Sequence[str]) -> Subject:
        """Remove grade types from a subject, with their grades.

        Unknown ids are ignored.
        """
        subject = await self.get_subject(class_id, subject_id)
        removed = set(ids)

        subject.grade_types = [t for t in subject.grade_types if t["id"] not in removed]
        await self._db.execute(
            delete(Grade).where(Grade.subject_id == subject_id, Grade.grade_type_id.in_(list(removed)))
        )
        await self._db.commit()
        logger.info("Grade types removed: %s (-%d)", subject_id, len(removed))
        return subject

    async def delete_subject(self, class_id: str, subject_id: str) -> Subject:
        subject = await self.get_subject(class_id, subject_id)

        await self._db.execute(delete(Grade).where(Grade.subject_id == subject_id))
        await self._db.delete(subject)
        await self._db.commit()
        logger.info("Subject deleted: %s", subject_id)
        return subject
