# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Profile service: membership of users in schools and classes.

This module provides the ProfileService that handles:
- Profile lookups (by id, user, group, relationships)
- Adding profiles to a group and binding their relationships
- Role changes, which rebind the profile when its priority role changes
- Profile deletion with creator protection

Example:
    >>> service = ProfileService(db, graph)
    >>> profiles = await service.insert_profiles(requestor, GroupType.CLASS, class_id, items)
"""

import logging
from typing import Optional, Sequence

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from academic_service.core.constants import GroupType, ProfileRole, Relationship
from academic_service.core.errors import (
    BadRequestError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from academic_service.core.roles import (
    dedupe_roles,
    is_allowed_to_assign_roles,
    is_roles_valid,
)
from academic_service.domains.access_control.graph import Edge, EntityRelationship, RelationshipGraphClient
from academic_service.domains.group import (
    establish_memberships,
    get_group,
    related_relationships,
    relations_for,
    require_group,
    unbind_memberships,
)
from academic_service.domains.orchestration import CompensatingTransaction, Step
from academic_service.infrastructure.database.models import Profile, SchoolClass, new_id
from academic_service.infrastructure.database.models.profile import DEFAULT_PROFILE_AVATAR_URL
from academic_service.models.profile import ProfileInsertRequest, ProfileUpdateRequest

logger = logging.getLogger(__name__)


def own_edges(profiles: Sequence[Profile]) -> list[Edge]:
    """OWN self-edges letting each profile act on itself."""
    return [Edge(p.id, p.id, Relationship.OWN) for p in profiles]


def validate_role_assignment(assigner: Profile, roles: Sequence[ProfileRole], message: str) -> list[ProfileRole]:
    """Deduplicate roles and check that the assigner may grant them.

    Raises:
        ForbiddenError: If the assigner may not grant the roles.
        ValidationError: If the role set mixes Student with another role.
    """
    roles = dedupe_roles(roles)
    if not is_allowed_to_assign_roles(assigner.role_set, roles):
        raise ForbiddenError()
    if not is_roles_valid(roles):
        raise ValidationError(
            [{"code": "custom", "message": message, "path": ["roles"]}],
            "Invalid role",
        )
    return roles


class ProfileService:
    """Service for profiles and their group relationships.

    Attributes:
        _db: Async database session.
        _graph: Relationship graph client.
    """

    def __init__(self, db: AsyncSession, graph: RelationshipGraphClient) -> None:
        self._db = db
        self._graph = graph

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_by_id(self, profile_id: str) -> Profile:
        """Get a profile by ID.

        Raises:
            NotFoundError: If the profile does not exist.
        """
        profile = await self._db.get(Profile, profile_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    async def get_by_ids(self, profile_ids: Sequence[str]) -> list[Profile]:
        if not profile_ids:
            return []
        result = await self._db.execute(select(Profile).where(Profile.id.in_(profile_ids)))
        return list(result.scalars().all())

    async def get_by_user_group_ids(self, user_id: str, group_id: str) -> Optional[Profile]:
        result = await self._db.execute(
            select(Profile).where(Profile.user_id == user_id, Profile.group_id == group_id)
        )
        return result.scalars().first()

    async def list_by_user(
        self,
        user_id: str,
        roles: Optional[Sequence[ProfileRole]] = None,
    ) -> list[Profile]:
        """List the profiles of a user, optionally holding any of the roles."""
        stmt = select(Profile).where(Profile.user_id == user_id)
        if roles:
            stmt = stmt.where(_has_any_role(roles))
        result = await self._db.execute(stmt.order_by(Profile.created_at.asc()))
        return list(result.scalars().all())

    async def get_by_group(
        self,
        group_type: GroupType,
        group_id: str,
        roles: Optional[Sequence[ProfileRole]] = None,
    ) -> list[Profile]:
        """List the profiles of a group.

        Members of a school class are school profiles; they are found
        through their relationship edges to the class.

        Raises:
            NotFoundError: If the class does not exist.
        """
        member_ids: Optional[set[str]] = None

        if group_type == GroupType.CLASS:
            school_class = await self._db.get(SchoolClass, group_id)
            if school_class is None:
                raise NotFoundError("Class not found")

            if school_class.school_id:
                edges = await self._graph.query_by_to(school_class.id)
                member_ids = {edge.from_id for edge in edges}
                group_id = school_class.school_id
                group_type = GroupType.SCHOOL

        stmt = select(Profile).where(Profile.group_id == group_id, Profile.group_type == group_type.value)
        if roles:
            stmt = stmt.where(_has_any_role(roles))
        result = await self._db.execute(stmt)
        profiles = list(result.scalars().all())

        if member_ids is not None:
            profiles = [p for p in profiles if p.id in member_ids]
        return profiles

    async def get_related(
        self,
        profile_id: str,
        roles: Optional[Sequence[ProfileRole]] = None,
    ) -> list[Profile]:
        """List profiles linked to a profile by role-derived relationships.

        Args:
            profile_id: Profile the relationships point to.
            roles: Restrict to relationships involving these roles.
        """
        edges = await self._graph.query_by_to(profile_id, related_relationships(roles))
        related_ids = list(dict.fromkeys(edge.from_id for edge in edges if edge.from_id != profile_id))
        return await self.get_by_ids(related_ids)

    # =========================================================================
    # Mutations
    # =========================================================================

    async def insert_profiles(
        self,
        requestor: Profile,
        group_type: GroupType,
        group_id: str,
        items: Sequence[ProfileInsertRequest],
    ) -> list[Profile]:
        """Add profiles to a group and bind them to it.

        Raises:
            BadRequestError: If an Executive is added to a class.
            ForbiddenError: If the requestor may not grant a role.
            ValidationError: If a role set is invalid.
            NotFoundError: If the group does not exist.
        """
        if group_type == GroupType.CLASS and any(ProfileRole.EXECUTIVE in item.roles for item in items):
            raise BadRequestError("Class group type is not allowed for executive role")

        profiles = [
            Profile(
                id=new_id(),
                user_id=str(item.user_id) if item.user_id else None,
                display_name=item.display_name,
                avatar_url=item.avatar_url or DEFAULT_PROFILE_AVATAR_URL,
                roles=[
                    role.value
                    for role in validate_role_assignment(
                        requestor, item.roles, "Student role cannot assigned with other roles"
                    )
                ],
                group_id=group_id,
                group_type=group_type.value,
            )
            for item in items
        ]
        await require_group(self._db, group_type, group_id)

        edges = own_edges(profiles)
        async with CompensatingTransaction(self._db, "add-profile") as tx:
            self._db.add_all(profiles)
            await self._db.flush()
            await tx.gather(
                Step("bind-memberships", establish_memberships(self._graph, profiles, group_type, group_id)),
                Step("upsert-own-edges", self._graph.upsert(edges), lambda: self._graph.delete_edges(edges)),
            )

        logger.info("Added %d profiles to %s %s", len(profiles), group_type.value, group_id)
        return profiles

    async def update_profile(
        self,
        requestor: Profile,
        profile_id: str,
        data: ProfileUpdateRequest,
    ) -> Profile:
        """Update a profile, rebinding it when its priority role changes.

        Raises:
            NotFoundError: If the profile does not exist.
            ForbiddenError: If the requestor may not grant the roles.
            ValidationError: If the role set is invalid.
        """
        roles = None
        if data.roles:
            roles = validate_role_assignment(requestor, data.roles, "Invalid role value")

        async with CompensatingTransaction(self._db, "update-profile") as tx:
            profile = await self.get_by_id(profile_id)
            old_priority = profile.priority_role

            if data.display_name is not None:
                profile.display_name = data.display_name
            if data.user_id is not None:
                profile.user_id = str(data.user_id)
            if roles is not None:
                profile.roles = [role.value for role in roles]
            await self._db.flush()

            if roles is not None:
                await self.rebind_priority(tx, profile, old_priority)

        return profile

    async def rebind_priority(
        self,
        tx: CompensatingTransaction,
        profile: Profile,
        old_priority: ProfileRole,
    ) -> None:
        """Move a profile's group edge to the relationship of its new priority role.

        The old relationship is always unbound before the new one is bound.
        """
        new_priority = profile.priority_role
        if new_priority == old_priority:
            return

        relations = relations_for(profile.group_type)
        old_membership = [EntityRelationship(profile.id, relations.relationship_for(old_priority))]
        new_membership = [EntityRelationship(profile.id, relations.relationship_for(new_priority))]

        await tx.step(
            "unbind-old-role",
            unbind_memberships(self._graph, old_membership, profile.group_type, profile.group_id),
            compensate=lambda: self._graph.bind(old_membership, profile.group_id, relations.conditions),
        )
        await tx.step(
            "bind-new-role",
            self._graph.bind(new_membership, profile.group_id, relations.conditions),
        )
        logger.info(
            "Profile %s rebound from %s to %s", profile.id, old_priority.value, new_priority.value
        )

    async def delete_profile(self, requestor: Profile, profile_id: str) -> Profile:
        """Delete a profile and purge its edges once the delete is durable.

        Raises:
            NotFoundError: If the profile or its group does not exist.
            ForbiddenError: If the profile created its group, or a teacher
                deletes a teacher of a school.
            ServiceUnavailableError: If purging the graph fails after commit.
        """
        async with CompensatingTransaction(self._db, "delete-profile") as tx:
            target = await self.get_by_id(profile_id)
            await self._db.delete(target)
            await self._db.flush()

            group = await get_group(self._db, target.group_type, target.group_id)
            if group is None:
                raise NotFoundError("Group not found")
            if group.creator_id == target.id:
                raise ForbiddenError("Cannot delete creator of group")

            if (
                requestor.priority_role == ProfileRole.TEACHER
                and ProfileRole.TEACHER in target.role_set
                and target.group == GroupType.SCHOOL
            ):
                raise ForbiddenError("Teachers are not allowed to delete teacher profiles in a school group")

            tx.after_commit(
                "purge-relationships",
                lambda: self._graph.delete_by_entity_ids([target.id]),
            )

        logger.info("Profile deleted: %s", profile_id)
        return target


def _has_any_role(roles: Sequence[ProfileRole]):
    return or_(*(Profile.roles.contains([role.value]) for role in roles))
