# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Profile role rules.

Roles are totally ordered: Executive > Teacher > Student > Parent. A
profile's priority role (the highest it holds) decides which relationship
binds it to its group.

Example:
    >>> get_highest_priority_role([ProfileRole.PARENT, ProfileRole.TEACHER])
    <ProfileRole.TEACHER: 'Teacher'>
    >>> is_roles_valid([ProfileRole.STUDENT, ProfileRole.PARENT])
    False
"""

from typing import Iterable

from academic_service.core.constants import ProfileRole
from academic_service.core.errors import BadRequestError

ROLE_PRIORITY: dict[ProfileRole, int] = {
    ProfileRole.EXECUTIVE: 4,
    ProfileRole.TEACHER: 3,
    ProfileRole.STUDENT: 2,
    ProfileRole.PARENT: 1,
}


def dedupe_roles(roles: Iterable[ProfileRole]) -> list[ProfileRole]:
    """Drop repeated roles, keeping first-seen order."""
    return list(dict.fromkeys(roles))


def get_highest_priority_role(roles: Iterable[ProfileRole]) -> ProfileRole:
    """Return the highest-priority role of a role set.

    Args:
        roles: Roles held by a profile.

    Returns:
        The role with the highest priority.

    Raises:
        BadRequestError: If the role set is empty.
    """
    roles = list(roles)
    if not roles:
        raise BadRequestError("Profile must hold at least one role")
    return max(roles, key=ROLE_PRIORITY.__getitem__)


def get_lower_roles(role: ProfileRole) -> list[ProfileRole]:
    """Return the roles strictly below the given role."""
    return [r for r, priority in ROLE_PRIORITY.items() if priority < ROLE_PRIORITY[role]]


def is_roles_valid(roles: Iterable[ProfileRole]) -> bool:
    """Check that a role set never mixes Student with another role.

    A role set is valid if it excludes Student, or is exactly {Student}.
    """
    role_set = set(roles)
    return ProfileRole.STUDENT not in role_set or role_set == {ProfileRole.STUDENT}


def is_allowed_to_assign_roles(
    assigner_roles: Iterable[ProfileRole],
    roles: Iterable[ProfileRole],
) -> bool:
    """Check whether a profile may grant the given roles.

    Decided by the assigner's priority role: an Executive may assign any
    role, a Teacher any role except Executive, Students and Parents none.

    Args:
        assigner_roles: Roles of the profile granting roles.
        roles: Roles being granted.

    Returns:
        True if every role may be assigned.
    """
    assigner_roles = list(assigner_roles)
    if not assigner_roles:
        return False

    highest = get_highest_priority_role(assigner_roles)
    if highest == ProfileRole.EXECUTIVE:
        return True
    if highest == ProfileRole.TEACHER:
        return ProfileRole.EXECUTIVE not in set(roles)
    return False


def outranks(roles: Iterable[ProfileRole], other_roles: Iterable[ProfileRole]) -> bool:
    """Check whether one role set's priority role is strictly above another's."""
    return get_highest_priority_role(other_roles) in get_lower_roles(get_highest_priority_role(roles))


def is_allowed_to_view(viewer_roles: Iterable[ProfileRole], target_roles: Iterable[ProfileRole]) -> bool:
    """Check whether a profile may see content addressed to target roles.

    Content without target roles is visible to everyone. Executives see all
    content; anyone else needs one of the target roles.
    """
    targets = set(target_roles)
    if not targets:
        return True
    viewer = set(viewer_roles)
    return ProfileRole.EXECUTIVE in viewer or bool(viewer & targets)
