# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Typed client for the remote relationship graph.

The graph stores directed, typed edges ``(from, to, relationship)``; an edge
is identified by that triple, so several relationship types may link the
same pair of entities.

bind and unbind carry derivation conditions. For each condition
``(from_rel, to_rel, result_rel)`` the remote service also links every
initiator holding ``from_rel`` on the target to every entity already holding
``to_rel`` on it, with ``result_rel``; unbind removes exactly those derived
edges. Derivation and idempotency are the remote service's contract: this
client only transmits the conditions.

Each method is one remote round-trip and is never retried. Transport
failures raise ServiceUnavailableError; rejected requests raise
ServiceResponseError.

Example:
    graph = RelationshipGraphClient(client)
    await graph.bind(
        [EntityRelationship(teacher_id, Relationship.MANAGES)],
        class_id,
        CLASS_CONDITIONS,
    )
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from academic_service.core.constants import Relationship
from academic_service.core.errors import ConflictError, ServiceResponseError
from academic_service.domains.access_control.client import SERVICE_NAME, AccessControlClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Edge:
    """A directed, typed edge of the relationship graph."""

    from_id: str
    to_id: str
    relationship: Relationship

    def to_wire(self) -> dict[str, str]:
        return {"from": self.from_id, "to": self.to_id, "relationship": self.relationship.value}

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> "Edge":
        """Parse an edge from the service, tolerating extra keys like _id."""
        try:
            return cls(
                from_id=str(data["from"]),
                to_id=str(data["to"]),
                relationship=Relationship(data["relationship"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ServiceResponseError(SERVICE_NAME, "parseEdge", "Malformed relationship", data) from e


@dataclass(frozen=True)
class EntityRelationship:
    """An entity and the relationship it binds to (or unbinds from) a target."""

    entity_id: str
    relationship: Relationship

    def to_wire(self) -> dict[str, str]:
        return {"entityId": self.entity_id, "relationship": self.relationship.value}


@dataclass(frozen=True)
class RelationshipCondition:
    """Derivation rule: ``(from_rel, to_rel) => result_rel``."""

    from_rel: Relationship
    to_rel: Relationship
    result_rel: Relationship

    def to_wire(self) -> dict[str, str]:
        return {
            "fromRel": self.from_rel.value,
            "toRel": self.to_rel.value,
            "resultRel": self.result_rel.value,
        }


def _relationship_filter(relationships: Optional[Iterable[Relationship]]) -> Optional[dict[str, str]]:
    """Encode a relationship filter as ``?relationships=a,b``; None means all."""
    if relationships is None:
        return None
    values = [rel.value for rel in relationships]
    if not values:
        return None
    return {"relationships": ",".join(values)}


def _parse_edges(data: Any, operation: str) -> list[Edge]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise ServiceResponseError(SERVICE_NAME, operation, "Expected a list of relationships", data)
    return [Edge.from_wire(item) for item in data]


class RelationshipGraphClient:
    """Typed wrapper over the relationship graph endpoints.

    Attributes:
        _client: Envelope-aware access-control HTTP client.
    """

    def __init__(self, client: AccessControlClient) -> None:
        self._client = client

    async def bind(
        self,
        initiators: Sequence[EntityRelationship],
        target_id: str,
        conditions: Sequence[RelationshipCondition] = (),
    ) -> None:
        """Bind initiators to a target, fanning out derived edges.

        Args:
            initiators: Entities and the relationship each binds with.
            target_id: Entity the initiators bind to.
            conditions: Derivation conditions applied at the target.
        """
        if not initiators:
            return

        await self._client.request(
            "POST",
            "/relationships/bind",
            "bind",
            json={
                "initiators": [i.to_wire() for i in initiators],
                "targetId": target_id,
                "conditions": [c.to_wire() for c in conditions],
            },
        )
        logger.debug("Bound %d entities to %s", len(initiators), target_id)

    async def unbind(
        self,
        terminators: Sequence[EntityRelationship],
        target_id: str,
        *,
        is_target_unbound: bool = False,
        conditions: Sequence[RelationshipCondition] = (),
    ) -> None:
        """Unbind terminators from a target, removing the derived edges.

        Args:
            terminators: Entities and the relationship each unbinds.
            target_id: Entity the terminators are unbound from.
            is_target_unbound: True when the target itself is being removed.
            conditions: Derivation conditions whose derived edges go too.
        """
        if not terminators:
            return

        await self._client.request(
            "DELETE",
            "/relationships/unbind",
            "unbind",
            json={
                "terminators": [t.to_wire() for t in terminators],
                "targetId": target_id,
                "isTargetUnbound": is_target_unbound,
                "conditions": [c.to_wire() for c in conditions],
            },
        )
        logger.debug("Unbound %d entities from %s", len(terminators), target_id)

    async def query_by_from(
        self,
        entity_id: str,
        relationships: Optional[Iterable[Relationship]] = None,
    ) -> list[Edge]:
        """List edges leaving an entity, optionally filtered by type."""
        data = await self._client.request(
            "GET",
            f"/relationships/from/{entity_id}",
            "queryByFrom",
            params=_relationship_filter(relationships),
        )
        return _parse_edges(data, "queryByFrom")

    async def query_by_to(
        self,
        entity_id: str,
        relationships: Optional[Iterable[Relationship]] = None,
    ) -> list[Edge]:
        """List edges reaching an entity, optionally filtered by type."""
        data = await self._client.request(
            "GET",
            f"/relationships/to/{entity_id}",
            "queryByTo",
            params=_relationship_filter(relationships),
        )
        return _parse_edges(data, "queryByTo")

    async def query_between(self, from_id: str, to_id: str) -> list[Edge]:
        """List every edge from one entity to another."""
        data = await self._client.request(
            "GET",
            f"/relationships/from/{from_id}/to/{to_id}",
            "queryBetween",
        )
        return _parse_edges(data, "queryBetween")

    async def upsert(self, edges: Sequence[Edge]) -> None:
        """Create edges that do not exist yet."""
        if not edges:
            return

        await self._client.request(
            "POST",
            "/relationships",
            "upsert",
            json=[edge.to_wire() for edge in edges],
        )

    async def update(self, edge: Edge, new_relationship: Relationship) -> None:
        """Change the type of a single edge.

        The CREATOR relationship is never overwritten, nor created this way.

        Raises:
            ConflictError: If either side of the update is CREATOR.
        """
        if Relationship.CREATOR in (edge.relationship, new_relationship):
            raise ConflictError("The Creator relationship cannot be overwritten")

        await self._client.request(
            "PATCH",
            "/relationships",
            "update",
            json={**edge.to_wire(), "newRelationship": new_relationship.value},
        )

    async def delete_edges(self, edges: Sequence[Edge]) -> None:
        """Delete edges by their (from, to, relationship) identity."""
        if not edges:
            return

        await self._client.request(
            "DELETE",
            "/relationships",
            "deleteEdges",
            json=[edge.to_wire() for edge in edges],
        )

    async def delete_by_entity_ids(self, ids: Sequence[str]) -> None:
        """Purge every edge starting or ending at any of the entities."""
        if not ids:
            return

        await self._client.request(
            "DELETE",
            "/relationships/entities",
            "deleteByEntityIds",
            json={"ids": list(ids)},
        )
        logger.info("Purged relationships of %d entities", len(ids))
