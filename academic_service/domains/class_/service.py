# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class service.

A class is either personal (no school; its creator is a new Teacher profile
living in the class) or a school class (its members are school profiles,
linked to the class by relationship edges only).

Example:
    >>> service = ClassService(db, graph, codes)
    >>> school_class = await service.create_class(user, ClassCreateRequest(name="7A", school_id=school_id))
"""

import asyncio
import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from academic_service.core.constants import GroupType, ProfileRole, Relationship
from academic_service.core.errors import ForbiddenError, NotFoundError
from academic_service.domains.access_control.context import CurrentUser
from academic_service.domains.access_control.graph import Edge, EntityRelationship, RelationshipGraphClient
from academic_service.domains.content import GroupContentService
from academic_service.domains.group import CLASS_RELATIONS
from academic_service.domains.invitation.code_service import InvitationCodeService
from academic_service.domains.orchestration import CompensatingTransaction
from academic_service.infrastructure.database.models import Profile, School, SchoolClass, new_id
from academic_service.infrastructure.database.models.school import DEFAULT_CLASS_AVATAR_URL
from academic_service.models.school import ClassCreateRequest, ClassUpdateRequest

logger = logging.getLogger(__name__)

CREATOR_DISPLAY_NAME = "Creator"

# Relationships through which each role sees a class of its school
CLASS_VISIBILITY: dict[ProfileRole, tuple[Relationship, ...]] = {
    ProfileRole.EXECUTIVE: (Relationship.CREATOR, Relationship.MANAGES),
    ProfileRole.TEACHER: (Relationship.MANAGES,),
    ProfileRole.STUDENT: (Relationship.ENROLLED_IN,),
    ProfileRole.PARENT: (Relationship.HAS_CHILD_IN,),
}


class ClassService:
    """Service for personal and school classes.

    Attributes:
        _db: Async database session.
        _graph: Relationship graph client.
        _codes: Invitation code service.
    """

    def __init__(
        self,
        db: AsyncSession,
        graph: RelationshipGraphClient,
        codes: InvitationCodeService,
    ) -> None:
        self._db = db
        self._graph = graph
        self._codes = codes

    async def create_class(self, user: CurrentUser, request: ClassCreateRequest) -> SchoolClass:
        """Create a personal class or a class of a school.

        Personal class: a new Teacher profile is created in the class and
        gets MANAGES, CREATOR and OWN. School class: the requestor must be an
        executive of the school; every executive of the school gets MANAGES
        and the requestor gets CREATOR.

        Raises:
            NotFoundError: If the school does not exist.
            ForbiddenError: If the user is not an executive of the school.
        """
        class_id = new_id()
        school_id = str(request.school_id) if request.school_id else None
        new_profiles: list[Profile] = []

        if school_id is None:
            creator = Profile(
                id=new_id(),
                user_id=user.id,
                display_name=user.name or CREATOR_DISPLAY_NAME,
                roles=[ProfileRole.TEACHER.value],
                group_id=class_id,
                group_type=GroupType.CLASS.value,
            )
            new_profiles.append(creator)
            edges = [
                Edge(creator.id, class_id, Relationship.MANAGES),
                Edge(creator.id, creator.id, Relationship.OWN),
            ]
        else:
            executives = await self._school_executives(school_id)
            creator = next((e for e in executives if e.user_id == user.id), None)
            if creator is None:
                raise ForbiddenError("Only executives of the school can create school classes")
            edges = [Edge(e.id, class_id, Relationship.MANAGES) for e in executives]

        edges.append(Edge(creator.id, class_id, Relationship.CREATOR))
        school_class = SchoolClass(
            id=class_id,
            name=request.name,
            avatar_url=request.avatar_url or DEFAULT_CLASS_AVATAR_URL,
            school_id=school_id,
            creator_id=creator.id,
        )

        async with CompensatingTransaction(self._db, "create-class") as tx:
            self._db.add_all([school_class, *new_profiles])
            await self._db.flush()
            await tx.step(
                "upsert-class-edges",
                self._graph.upsert(edges),
                compensate=lambda: self._graph.delete_edges(edges),
            )

        logger.info(
            "Class created: %s (school=%s, creator=%s)", class_id, school_id or "personal", creator.id
        )
        return school_class

    async def get_class(self, class_id: str) -> SchoolClass:
        """Get a class by ID.

        Raises:
            NotFoundError: If the class does not exist.
        """
        school_class = await self._db.get(SchoolClass, class_id)
        if school_class is None:
            raise NotFoundError("Class not found")
        return school_class

    async def get_by_school(self, requestor: Profile, school_id: str) -> list[SchoolClass]:
        """List the classes of a school visible to the requestor.

        Executives see every class; other profiles only the classes they
        are related to through their roles.
        """
        stmt = select(SchoolClass).where(SchoolClass.school_id == school_id).order_by(SchoolClass.name)

        if requestor.priority_role == ProfileRole.EXECUTIVE:
            result = await self._db.execute(stmt)
            return list(result.scalars().all())

        relationships = [rel for role in requestor.role_set for rel in CLASS_VISIBILITY[role]]
        result, edges = await asyncio.gather(
            self._db.execute(stmt),
            self._graph.query_by_from(requestor.id, dict.fromkeys(relationships)),
        )
        related_ids = {edge.to_id for edge in edges}
        return [c for c in result.scalars().all() if c.id in related_ids]

    async def update_class(self, class_id: str, request: ClassUpdateRequest) -> SchoolClass:
        """Update a class.

        Raises:
            NotFoundError: If the class does not exist.
        """
        school_class = await self.get_class(class_id)

        for field, value in request.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(school_class, field, value)

        await self._db.commit()
        logger.info("Class updated: %s", class_id)
        return school_class

    async def delete_class(self, requestor_id: str, class_id: str) -> SchoolClass:
        """Delete a class created by the requestor, with its content.

        Personal class: its profiles are deleted and their edges purged after
        commit. School class: every member is unbound from the class, the
        class being unbound as a whole.

        Raises:
            NotFoundError: If the class does not exist or was not created
                by the requestor.
            ServiceUnavailableError: If purging the graph fails; the
                deletion is already committed.
        """
        async with CompensatingTransaction(self._db, "delete-class") as tx:
            school_class = await self._db.get(SchoolClass, class_id)
            if school_class is None or school_class.creator_id != requestor_id:
                raise NotFoundError("Class not found or you don't have permission to delete this class")

            purge_ids = [class_id]
            if school_class.is_personal:
                profile_ids = list(
                    (await self._db.execute(select(Profile.id).where(Profile.group_id == class_id))).scalars()
                )
                await self._db.execute(delete(Profile).where(Profile.group_id == class_id))
                purge_ids.extend(profile_ids)

            await GroupContentService(self._db).delete_for_groups(class_ids=[class_id], group_ids=[class_id])
            await self._db.delete(school_class)
            await self._db.flush()

            if not school_class.is_personal:
                members = [
                    EntityRelationship(edge.from_id, edge.relationship)
                    for edge in await self._graph.query_by_to(class_id)
                ]
                await tx.step(
                    "unbind-class-members",
                    self._graph.unbind(
                        members,
                        class_id,
                        is_target_unbound=True,
                        conditions=CLASS_RELATIONS.conditions,
                    ),
                    compensate=lambda: self._graph.bind(members, class_id, CLASS_RELATIONS.conditions),
                )

            tx.after_commit("remove-invitation-code", lambda: self._codes.remove(class_id), best_effort=True)
            tx.after_commit("purge-relationships", lambda: self._graph.delete_by_entity_ids(purge_ids))

        logger.info("Class deleted: %s", class_id)
        return school_class

    async def _school_executives(self, school_id: str) -> list[Profile]:
        school: Optional[School] = await self._db.get(School, school_id)
        if school is None:
            raise NotFoundError("School not found")

        result = await self._db.execute(
            select(Profile).where(
                Profile.group_id == school_id,
                Profile.group_type == GroupType.SCHOOL.value,
                Profile.roles.contains([ProfileRole.EXECUTIVE.value]),
            )
        )
        return list(result.scalars().all())
