# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Access-control domain package.

This package provides the integration with the access-control service:
- Envelope-aware HTTP client
- Relationship graph client
- Declarative policy table and its publication
- Per-request authorization gate
"""

from academic_service.domains.access_control.client import (
    AccessControlClient,
    close_access_control,
    init_access_control,
)
from academic_service.domains.access_control.context import CurrentUser, RequestContext
from academic_service.domains.access_control.gate import AuthorizationGate
from academic_service.domains.access_control.graph import (
    Edge,
    EntityRelationship,
    RelationshipCondition,
    RelationshipGraphClient,
)
from academic_service.domains.access_control.policy import (
    PolicyPublicationError,
    PolicyRegistry,
    Privilege,
    RoleIdMap,
)
from academic_service.domains.access_control.requirements import (
    NO_AUTH,
    AuthzRequirement,
    NoAuth,
    ProtectedOperation,
    RolePolicy,
    RoleRelationship,
    TargetResolver,
    acting_profile,
    body_field,
    owner_of,
    path_param,
)

__all__ = [
    "AccessControlClient",
    "init_access_control",
    "close_access_control",
    "CurrentUser",
    "RequestContext",
    "AuthorizationGate",
    "Edge",
    "EntityRelationship",
    "RelationshipCondition",
    "RelationshipGraphClient",
    "PolicyPublicationError",
    "PolicyRegistry",
    "Privilege",
    "RoleIdMap",
    "NO_AUTH",
    "AuthzRequirement",
    "NoAuth",
    "ProtectedOperation",
    "RolePolicy",
    "RoleRelationship",
    "TargetResolver",
    "acting_profile",
    "body_field",
    "owner_of",
    "path_param",
]
