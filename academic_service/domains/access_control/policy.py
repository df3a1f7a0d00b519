# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Policy table and its one-shot publication.

The policy table is assembled from the ProtectedOperation declarations of
every router, validated, and published once at boot to the access-control
service as a role tree:

    Teacher
    └── Executive      (Executive inherits Teacher's privileges)
    Student
    Parent

Publication returns an opaque id per role name. Those ids are frozen into a
RoleIdMap, stored on app.state and injected into request handlers; the
accumulated tree is discarded.

Example:
    registry = PolicyRegistry.from_operations(api.OPERATIONS)
    role_ids = await registry.publish(access_control_client, attempts=5, backoff_seconds=5.0)
    app.state.role_ids = role_ids
"""

import asyncio
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Sequence

from academic_service.core.constants import ProfileRole, Relationship
from academic_service.core.errors import (
    ConfigurationError,
    ServiceResponseError,
    ServiceUnavailableError,
)
from academic_service.domains.access_control.client import SERVICE_NAME, AccessControlClient
from academic_service.domains.access_control.requirements import ProtectedOperation, RoleRelationship
from academic_service.utils.retry import Sleep, retry_with_backoff

logger = logging.getLogger(__name__)

# Parent role -> roles inheriting its privileges
ROLE_CHILDREN: dict[ProfileRole, tuple[ProfileRole, ...]] = {
    ProfileRole.TEACHER: (ProfileRole.EXECUTIVE,),
}


class PolicyPublicationError(ConfigurationError):
    """Raised when the policy table could not be published at boot."""

    pass


@dataclass(frozen=True)
class Privilege:
    """Permission to perform an action through a relationship."""

    action: str
    relationship: Relationship

    def to_wire(self) -> dict[str, str]:
        return {"action": self.action, "relationship": self.relationship.value}


class RoleIdMap(Mapping[ProfileRole, str]):
    """Immutable mapping from role names to their published ids."""

    def __init__(self, ids: Mapping[ProfileRole, str]) -> None:
        missing = [role.value for role in ProfileRole if role not in ids]
        if missing:
            raise ConfigurationError(f"Missing role ids for: {', '.join(missing)}")

        self._ids = MappingProxyType(dict(ids))

    @classmethod
    def from_published(cls, data: Any) -> "RoleIdMap":
        """Build the map from the roles returned by publication.

        Args:
            data: List of ``{_id|id, name, ...}`` role objects.

        Raises:
            ServiceResponseError: If the response does not describe every role.
        """
        if not isinstance(data, list):
            raise ServiceResponseError(SERVICE_NAME, "registerRoles", "Expected a list of roles", data)

        ids: dict[ProfileRole, str] = {}
        for item in data:
            if not isinstance(item, dict):
                continue
            role_id = item.get("_id") or item.get("id")
            try:
                role = ProfileRole(item.get("name"))
            except ValueError:
                logger.debug("Ignoring unknown role in publication response: %s", item.get("name"))
                continue
            if role_id:
                ids[role] = str(role_id)

        try:
            return cls(ids)
        except ConfigurationError as e:
            raise ServiceResponseError(SERVICE_NAME, "registerRoles", str(e), data) from e

    def __getitem__(self, role: ProfileRole) -> str:
        return self._ids[role]

    def __iter__(self) -> Iterator[ProfileRole]:
        return iter(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def ids_for(self, roles: Iterable[ProfileRole]) -> list[str]:
        return [self._ids[role] for role in roles]


class PolicyRegistry:
    """Boot-time accumulator of role privileges.

    Write-once: register() may be called any number of times until
    publish() succeeds; afterwards the registry refuses further use.
    """

    def __init__(self) -> None:
        self._privileges: dict[ProfileRole, list[Privilege]] = {role: [] for role in ProfileRole}
        self._published = False

    @classmethod
    def from_operations(cls, operations: Iterable[ProtectedOperation]) -> "PolicyRegistry":
        """Assemble the policy table from operation declarations.

        NoAuth operations contribute nothing. The same action may be
        declared by several endpoints; their privileges are merged.
        """
        registry = cls()
        for operation in operations:
            requirement = operation.requirement
            if not isinstance(requirement, RoleRelationship):
                continue
            for pair in requirement.pairs:
                registry.register(pair.role, operation.action, pair.relationships)
        return registry

    @property
    def is_published(self) -> bool:
        return self._published

    def register(
        self,
        role: ProfileRole,
        action: str,
        relationships: Sequence[Relationship],
    ) -> None:
        """Grant a role an action through any of the relationships.

        Raises:
            ConfigurationError: If the table was already published, or the
                declaration is empty.
        """
        if self._published:
            raise ConfigurationError("Policy table is already published")
        if not action:
            raise ConfigurationError("Action must not be empty")
        if not relationships:
            raise ConfigurationError(f"Action '{action}' for {role.value} declares no relationships")

        privileges = self._privileges[role]
        for relationship in relationships:
            privilege = Privilege(action, relationship)
            if privilege not in privileges:
                privileges.append(privilege)

    def privileges_of(self, role: ProfileRole) -> list[Privilege]:
        return list(self._privileges.get(role, ()))

    def build_tree(self) -> list[dict[str, Any]]:
        """Build the role tree sent to the access-control service."""
        inherited = {child for children in ROLE_CHILDREN.values() for child in children}

        def node(role: ProfileRole) -> dict[str, Any]:
            return {
                "role": {
                    "name": role.value,
                    "privileges": [p.to_wire() for p in self._privileges[role]],
                },
                "child": [node(child) for child in ROLE_CHILDREN.get(role, ())],
            }

        return [node(role) for role in ProfileRole if role not in inherited]

    async def publish(
        self,
        client: AccessControlClient,
        *,
        attempts: int = 5,
        backoff_seconds: float = 5.0,
        sleep: Sleep = asyncio.sleep,
    ) -> RoleIdMap:
        """Publish the policy table and return the resulting role ids.

        Transport failures and rejected responses are retried with a fixed
        backoff. The tree is discarded once publication succeeds.

        Args:
            client: Access-control HTTP client.
            attempts: Total number of attempts.
            backoff_seconds: Delay between attempts.
            sleep: Awaitable sleep, replaceable in tests.

        Returns:
            Immutable map of role ids.

        Raises:
            ConfigurationError: If the table was already published.
            PolicyPublicationError: If every attempt failed.
        """
        if self._published:
            raise ConfigurationError("Policy table is already published")

        payload = {"roles": self.build_tree()}

        async def register_roles() -> RoleIdMap:
            data = await client.request("POST", "/roles/register", "registerRoles", json=payload)
            return RoleIdMap.from_published(data)

        try:
            role_ids = await retry_with_backoff(
                register_roles,
                attempts=attempts,
                backoff_seconds=backoff_seconds,
                description="Policy publication",
                retry_on=(ServiceUnavailableError, ServiceResponseError),
                sleep=sleep,
            )
        except (ServiceUnavailableError, ServiceResponseError) as e:
            raise PolicyPublicationError(
                f"Failed to publish policy table after {attempts} attempts: {e}"
            ) from e

        self._published = True
        self._privileges = {}
        logger.info("Policy table published: %d roles", len(role_ids))
        return role_ids
