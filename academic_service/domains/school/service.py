# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School service.

This module provides the SchoolService that handles:
- School creation with its creator profile and creator edges
- School lookups and updates
- School deletion, cascading to classes, profiles, content, invitation
  codes and relationship edges

Example:
    >>> school_service = SchoolService(db, graph, codes)
    >>> school = await school_service.create_school(user, request)
    >>> await school_service.delete_school(requestor.id, school.id)
"""

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from academic_service.core.constants import GroupType, ProfileRole, Relationship
from academic_service.core.errors import NotFoundError
from academic_service.domains.access_control.context import CurrentUser
from academic_service.domains.access_control.graph import Edge, RelationshipGraphClient
from academic_service.domains.content import GroupContentService
from academic_service.domains.invitation.code_service import InvitationCodeService
from academic_service.domains.orchestration import CompensatingTransaction
from academic_service.infrastructure.database.models import Profile, School, SchoolClass, new_id
from academic_service.infrastructure.database.models.school import DEFAULT_SCHOOL_AVATAR_URL
from academic_service.models.school import SchoolCreateRequest, SchoolUpdateRequest

logger = logging.getLogger(__name__)

CREATOR_DISPLAY_NAME = "Creator"


class SchoolService:
    """Service for schools.

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

    async def create_school(self, user: CurrentUser, request: SchoolCreateRequest) -> School:
        """Create a school and make the user its creator executive.

        The creator profile gets CREATOR and MANAGES on the school and OWN on
        itself.

        Args:
            user: Authenticated user creating the school.
            request: School creation request.

        Returns:
            The created school.
        """
        school_id = new_id()
        creator = Profile(
            id=new_id(),
            user_id=user.id,
            display_name=user.name or CREATOR_DISPLAY_NAME,
            roles=[ProfileRole.EXECUTIVE.value],
            group_id=school_id,
            group_type=GroupType.SCHOOL.value,
        )
        school = School(
            id=school_id,
            name=request.name,
            address=request.address,
            phone_number=request.phone_number,
            avatar_url=request.avatar_url or DEFAULT_SCHOOL_AVATAR_URL,
            creator_id=creator.id,
        )
        edges = [
            Edge(creator.id, school_id, Relationship.CREATOR),
            Edge(creator.id, school_id, Relationship.MANAGES),
            Edge(creator.id, creator.id, Relationship.OWN),
        ]

        async with CompensatingTransaction(self._db, "create-school") as tx:
            self._db.add_all([school, creator])
            await self._db.flush()
            await tx.step(
                "upsert-creator-edges",
                self._graph.upsert(edges),
                compensate=lambda: self._graph.delete_edges(edges),
            )

        logger.info("School created: %s (creator=%s)", school.id, creator.id)
        return school

    async def get_school(self, school_id: str) -> School:
        """Get a school by ID.

        Raises:
            NotFoundError: If the school does not exist.
        """
        school = await self._db.get(School, school_id)
        if school is None:
            raise NotFoundError("School not found")
        return school

    async def update_school(self, school_id: str, request: SchoolUpdateRequest) -> School:
        """Update a school.

        Raises:
            NotFoundError: If the school does not exist.
        """
        school = await self.get_school(school_id)

        for field, value in request.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(school, field, value)

        await self._db.commit()
        logger.info("School updated: %s", school_id)
        return school

    async def delete_school(self, requestor_id: str, school_id: str) -> School:
        """Delete a school created by the requestor, with everything in it.

        Profiles, classes and content are deleted in one transaction.
        Invitation codes and relationship edges of everything removed are
        purged once the deletion is committed.

        Raises:
            NotFoundError: If the school does not exist or was not created
                by the requestor.
            ServiceUnavailableError: If purging the graph fails; the
                deletion is already committed.
        """
        async with CompensatingTransaction(self._db, "delete-school") as tx:
            school = await self._db.get(School, school_id)
            if school is None or school.creator_id != requestor_id:
                raise NotFoundError("School not found or you don't have permission to delete this school")

            profile_ids = list(
                (await self._db.execute(select(Profile.id).where(Profile.group_id == school_id))).scalars()
            )
            class_ids = list(
                (await self._db.execute(select(SchoolClass.id).where(SchoolClass.school_id == school_id))).scalars()
            )
            group_ids = [school_id, *class_ids]

            await self._db.execute(delete(Profile).where(Profile.group_id == school_id))
            await self._db.execute(delete(SchoolClass).where(SchoolClass.school_id == school_id))
            await GroupContentService(self._db).delete_for_groups(class_ids=class_ids, group_ids=group_ids)
            await self._db.delete(school)
            await self._db.flush()

            tx.after_commit(
                "remove-invitation-codes", lambda: self._codes.remove_many(group_ids), best_effort=True
            )
            tx.after_commit(
                "purge-relationships",
                lambda: self._graph.delete_by_entity_ids([*profile_ids, *group_ids]),
            )

        logger.info(
            "School deleted: %s (%d profiles, %d classes)", school_id, len(profile_ids), len(class_ids)
        )
        return school
