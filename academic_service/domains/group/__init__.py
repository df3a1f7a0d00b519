# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Group domain package: relationship rules and lookups of schools and classes."""

from academic_service.domains.group.relations import (
    CLASS_RELATIONS,
    PROFILE_RELATIONSHIPS,
    SCHOOL_RELATIONS,
    GroupRelations,
    establish_memberships,
    related_relationships,
    relations_for,
    relationship_between_roles,
    unbind_memberships,
)
from academic_service.domains.group.repository import Group, get_group, require_group

__all__ = [
    "CLASS_RELATIONS",
    "PROFILE_RELATIONSHIPS",
    "SCHOOL_RELATIONS",
    "GroupRelations",
    "establish_memberships",
    "related_relationships",
    "relations_for",
    "relationship_between_roles",
    "unbind_memberships",
    "Group",
    "get_group",
    "require_group",
]
