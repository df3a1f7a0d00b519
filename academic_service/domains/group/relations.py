# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Relationship rules of schools and classes.

A profile is bound to its group with the relationship its priority role
maps to. Binding also derives edges between the group's members through the
group's conditions, e.g. in a school every manager TEACHES every student.

    role        School            Class
    Executive   MANAGES           MANAGES
    Teacher     EMPLOYED_AT       MANAGES
    Student     STUDIES_AT        ENROLLED_IN
    Parent      ASSOCIATED_WITH   HAS_CHILD_IN
"""

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence

from academic_service.core.constants import GroupType, ProfileRole, Relationship
from academic_service.core.errors import BadRequestError
from academic_service.domains.access_control.graph import (
    EntityRelationship,
    RelationshipCondition,
    RelationshipGraphClient,
)
from academic_service.infrastructure.database.models import Profile


@dataclass(frozen=True)
class GroupRelations:
    """Role-to-relationship map and derivation conditions of a group type."""

    group_type: GroupType
    role_relationships: Mapping[ProfileRole, Relationship]
    conditions: tuple[RelationshipCondition, ...]

    def relationship_for(self, role: ProfileRole) -> Relationship:
        return self.role_relationships[role]

    def memberships(self, profiles: Iterable[Profile]) -> list[EntityRelationship]:
        """Map profiles to the relationship of their priority role."""
        return [
            EntityRelationship(profile.id, self.relationship_for(profile.priority_role))
            for profile in profiles
        ]


SCHOOL_RELATIONS = GroupRelations(
    group_type=GroupType.SCHOOL,
    role_relationships={
        ProfileRole.EXECUTIVE: Relationship.MANAGES,
        ProfileRole.TEACHER: Relationship.EMPLOYED_AT,
        ProfileRole.STUDENT: Relationship.STUDIES_AT,
        ProfileRole.PARENT: Relationship.ASSOCIATED_WITH,
    },
    conditions=(
        RelationshipCondition(Relationship.MANAGES, Relationship.STUDIES_AT, Relationship.TEACHES),
        RelationshipCondition(
            Relationship.MANAGES, Relationship.EMPLOYED_AT, Relationship.SUPERVISES_TEACHERS
        ),
        RelationshipCondition(
            Relationship.MANAGES, Relationship.ASSOCIATED_WITH, Relationship.SUPERVISES_PARENTS
        ),
    ),
)

CLASS_RELATIONS = GroupRelations(
    group_type=GroupType.CLASS,
    role_relationships={
        ProfileRole.EXECUTIVE: Relationship.MANAGES,
        ProfileRole.TEACHER: Relationship.MANAGES,
        ProfileRole.STUDENT: Relationship.ENROLLED_IN,
        ProfileRole.PARENT: Relationship.HAS_CHILD_IN,
    },
    conditions=(
        RelationshipCondition(Relationship.MANAGES, Relationship.ENROLLED_IN, Relationship.TEACHES),
        RelationshipCondition(
            Relationship.MANAGES, Relationship.ASSOCIATED_WITH, Relationship.SUPERVISES_PARENTS
        ),
        RelationshipCondition(
            Relationship.MANAGES, Relationship.HAS_CHILD_IN, Relationship.SUPERVISES_PARENTS
        ),
    ),
)

_RELATIONS_BY_TYPE = {
    GroupType.SCHOOL: SCHOOL_RELATIONS,
    GroupType.CLASS: CLASS_RELATIONS,
}

# Relationship a profile of the first role holds towards one of the second
PROFILE_RELATIONSHIPS: dict[ProfileRole, dict[ProfileRole, Relationship]] = {
    ProfileRole.EXECUTIVE: {
        ProfileRole.TEACHER: Relationship.SUPERVISES_TEACHERS,
        ProfileRole.STUDENT: Relationship.TEACHES,
        ProfileRole.PARENT: Relationship.SUPERVISES_PARENTS,
    },
    ProfileRole.TEACHER: {
        ProfileRole.STUDENT: Relationship.TEACHES,
        ProfileRole.PARENT: Relationship.SUPERVISES_PARENTS,
    },
    ProfileRole.STUDENT: {
        ProfileRole.PARENT: Relationship.GUARDED_BY,
    },
    ProfileRole.PARENT: {
        ProfileRole.STUDENT: Relationship.PARENT_OF,
    },
}


def relations_for(group_type: GroupType | str) -> GroupRelations:
    """Return the relationship rules of a group type.

    Raises:
        BadRequestError: If the group type is unknown.
    """
    try:
        return _RELATIONS_BY_TYPE[GroupType(group_type)]
    except ValueError:
        raise BadRequestError("Invalid groupType") from None


def relationship_between_roles(role_a: ProfileRole, role_b: ProfileRole) -> Optional[Relationship]:
    return PROFILE_RELATIONSHIPS.get(role_a, {}).get(role_b)


def related_relationships(roles: Optional[Sequence[ProfileRole]] = None) -> list[Relationship]:
    """Relationships linking profiles of the given roles to any other role.

    Both directions are included. None or an empty list means every role.
    """
    all_roles = list(ProfileRole)
    query_roles = roles or all_roles

    relationships: list[Relationship] = []
    for role in query_roles:
        for other in all_roles:
            for relationship in (
                relationship_between_roles(role, other),
                relationship_between_roles(other, role),
            ):
                if relationship is not None and relationship not in relationships:
                    relationships.append(relationship)
    return relationships


# ========== Graph helpers ==========


async def establish_memberships(
    graph: RelationshipGraphClient,
    profiles: Sequence[Profile],
    group_type: GroupType | str,
    group_id: str,
) -> None:
    """Bind profiles to a group with their role relationships."""
    relations = relations_for(group_type)
    await graph.bind(relations.memberships(profiles), group_id, relations.conditions)


async def unbind_memberships(
    graph: RelationshipGraphClient,
    memberships: Sequence[EntityRelationship],
    group_type: GroupType | str,
    group_id: str,
    *,
    is_target_unbound: bool = False,
) -> None:
    """Unbind memberships from a group, removing the edges they derived."""
    relations = relations_for(group_type)
    await graph.unbind(
        memberships,
        group_id,
        is_target_unbound=is_target_unbound,
        conditions=relations.conditions,
    )
