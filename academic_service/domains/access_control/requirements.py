# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Declarative authorization requirements of protected operations.

Every protected endpoint declares a ProtectedOperation at import time:

    UPDATE_SCHOOL = ProtectedOperation.declare(
        "update-school",
        {ProfileRole.EXECUTIVE: (Relationship.CREATOR, Relationship.MANAGES)},
        target=path_param("school_id"),
    )

The requirement is either NoAuth (only an authenticated user is needed,
reserved for creating ownerless top-level entities) or RoleRelationship
(the acting profile must hold one of the listed relationships to the
resolved target). Inconsistent declarations raise ConfigurationError when
the module is imported, never per request.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping, Sequence, Union

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from academic_service.core.constants import ProfileRole, Relationship
from academic_service.core.errors import BadRequestError, ConfigurationError, NotFoundError

if TYPE_CHECKING:
    from academic_service.domains.access_control.context import RequestContext

TargetResolver = Callable[[Request, "RequestContext", AsyncSession], Awaitable[str]]


@dataclass(frozen=True)
class RolePolicy:
    """A role and the relationships that grant it an action on a target."""

    role: ProfileRole
    relationships: tuple[Relationship, ...]

    def __post_init__(self) -> None:
        if not self.relationships:
            raise ConfigurationError(f"Role {self.role.value} declares no relationships")


@dataclass(frozen=True)
class NoAuth:
    """Requirement satisfied by any authenticated user."""


NO_AUTH = NoAuth()


@dataclass(frozen=True)
class RoleRelationship:
    """Requirement satisfied by a relationship edge from actor to target."""

    pairs: tuple[RolePolicy, ...]
    target_resolver: TargetResolver

    def __post_init__(self) -> None:
        if not self.pairs:
            raise ConfigurationError("A role/relationship requirement needs at least one pair")
        if isinstance(self.target_resolver, NoAuth) or not callable(self.target_resolver):
            raise ConfigurationError("A role/relationship requirement needs a target resolver")


AuthzRequirement = Union[NoAuth, RoleRelationship]


@dataclass(frozen=True)
class ProtectedOperation:
    """An action name bound to its authorization requirement."""

    action: str
    requirement: AuthzRequirement

    def __post_init__(self) -> None:
        if not self.action or not self.action.strip():
            raise ConfigurationError("Protected operation action must not be empty")
        if not isinstance(self.requirement, (NoAuth, RoleRelationship)):
            raise ConfigurationError(f"Invalid requirement for action '{self.action}'")

    @property
    def is_public(self) -> bool:
        return isinstance(self.requirement, NoAuth)

    @classmethod
    def declare(
        cls,
        action: str,
        pairs: Mapping[ProfileRole, Sequence[Relationship]] | Sequence[RolePolicy] | None = None,
        *,
        target: TargetResolver | NoAuth = NO_AUTH,
    ) -> "ProtectedOperation":
        """Declare a protected operation.

        Args:
            action: Action name registered with the access-control service.
            pairs: Role to allowed-relationships mapping, or RolePolicy items.
            target: Target resolver, or NO_AUTH for ownerless creation.

        Returns:
            The declared operation.

        Raises:
            ConfigurationError: If NO_AUTH is combined with pairs, or a
                resolver is given without pairs.
        """
        if pairs is None:
            policies: tuple[RolePolicy, ...] = ()
        elif isinstance(pairs, Mapping):
            policies = tuple(RolePolicy(role, tuple(rels)) for role, rels in pairs.items())
        else:
            policies = tuple(pairs)

        if isinstance(target, NoAuth):
            if policies:
                raise ConfigurationError(
                    f"Action '{action}' combines NoAuth with role/relationship pairs"
                )
            return cls(action, NO_AUTH)

        return cls(action, RoleRelationship(policies, target))


# ========== Target resolvers ==========


def path_param(name: str) -> TargetResolver:
    """Resolve the target id from a path parameter."""

    async def resolve(request: Request, context: "RequestContext", session: AsyncSession) -> str:
        value = request.path_params.get(name)
        if not value:
            raise BadRequestError(f"Missing path parameter: {name}")
        return str(value)

    return resolve


def body_field(name: str) -> TargetResolver:
    """Resolve the target id from a top-level field of the JSON body."""

    async def resolve(request: Request, context: "RequestContext", session: AsyncSession) -> str:
        try:
            body = await request.json()
        except ValueError as e:
            raise BadRequestError("Request body must be valid JSON") from e

        value = body.get(name) if isinstance(body, dict) else None
        if not value:
            raise BadRequestError(f"{name} is required")
        return str(value)

    return resolve


def acting_profile() -> TargetResolver:
    """Resolve the target to the acting profile itself.

    Paired with the OWN relationship, this admits any profile to operations
    scoped to the requestor, such as its own feed.
    """

    async def resolve(request: Request, context: "RequestContext", session: AsyncSession) -> str:
        if not context.profile_id:
            raise BadRequestError("Profile id is required")
        return context.profile_id

    return resolve


def owner_of(model: type[Any], param: str, attribute: str, not_found: str) -> TargetResolver:
    """Resolve the target to an attribute of the entity a path parameter names.

    Content is authorized against the group it belongs to, e.g. a grade
    against the class of its subject:

        target=owner_of(Subject, "subject_id", "class_id", "Subject not found")

    Raises:
        NotFoundError: If the entity does not exist.
    """
    path_value = path_param(param)

    async def resolve(request: Request, context: "RequestContext", session: AsyncSession) -> str:
        entity_id = await path_value(request, context, session)
        entity = await session.get(model, entity_id)
        if entity is None:
            raise NotFoundError(not_found)
        return str(getattr(entity, attribute))

    return resolve
