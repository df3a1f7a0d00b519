# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared enumerations of the academic service.

These values travel over the wire (response envelopes, relationship names,
role names) and are shared with the access-control service, so their values
must not change.
"""

from enum import Enum, IntEnum


class ResponseCode(IntEnum):
    """Response envelope codes."""

    SUCCESS = 0
    UNAUTHORIZED = 1
    FORBIDDEN = 3
    NOT_FOUND = 4
    BAD_REQUEST = 5
    CONFLICT = 6
    VALIDATION_ERROR = 8
    TOO_MANY_REQUESTS = 9
    SERVICE_UNAVAILABLE = 99
    INTERNAL_SERVER_ERROR = 100


class ResponseMessage(str, Enum):
    """Default messages paired with ResponseCode."""

    SUCCESS = "Operation completed successfully"
    UNAUTHORIZED = "Access denied! Please provide valid authentication"
    FORBIDDEN = "You don't have permission to access this resource"
    NOT_FOUND = "Resource not found! Please check your data"
    BAD_REQUEST = "The request could not be understood or was missing required parameters"
    CONFLICT = "The request conflicts with the current state of the resource"
    VALIDATION_ERROR = "Input validation failed! Please check your data"
    TOO_MANY_REQUESTS = "Too many requests! Please try again later"
    SERVICE_UNAVAILABLE = "Service is temporarily unavailable! Please try again later"
    INTERNAL_SERVER_ERROR = "An unexpected error occurred! Please try again later."


class UserRole(IntEnum):
    """Platform-level role of the authenticated user (set by the gateway)."""

    ADMIN = 0
    USER = 1


class ProfileRole(str, Enum):
    """Role a profile holds inside its group."""

    EXECUTIVE = "Executive"
    TEACHER = "Teacher"
    STUDENT = "Student"
    PARENT = "Parent"


class Relationship(str, Enum):
    """Edge types of the relationship graph."""

    CREATOR = "Creator"
    MANAGES = "Manages"
    OWN = "Own"
    EMPLOYED_AT = "EmployedAt"
    STUDIES_AT = "StudiesAt"
    ASSOCIATED_WITH = "AssociatedWith"
    ENROLLED_IN = "EnrolledIn"
    HAS_CHILD_IN = "HasChildIn"
    TEACHES = "Teaches"
    SUPERVISES_TEACHERS = "SupervisesTeachers"
    SUPERVISES_PARENTS = "SupervisesParents"
    PARENT_OF = "ParentOf"
    GUARDED_BY = "GuardedBy"


class GroupType(str, Enum):
    """Kind of group a profile belongs to."""

    SCHOOL = "School"
    CLASS = "Class"


class RollCallStatus(str, Enum):
    """Attendance status of a roll-call entry."""

    PRESENT = "Present"
    ABSENT = "Absent"
    LATE = "Late"
    EXCUSED = "Excused"


# Cache key prefix shared by both directions of an invitation code
GROUP_CODE_KEY_PREFIX = "group_code"
