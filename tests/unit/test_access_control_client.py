# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the access-control HTTP client and the graph client."""

import json

import httpx
import pytest

from academic_service.core.config import AccessControlSettings
from academic_service.core.constants import Relationship
from academic_service.core.errors import ConflictError, ServiceResponseError, ServiceUnavailableError
from academic_service.domains.access_control import (
    AccessControlClient,
    Edge,
    EntityRelationship,
    RelationshipCondition,
    RelationshipGraphClient,
)

pytestmark = pytest.mark.unit


def envelope(data=None, code=0, message="Operation completed successfully"):
    body = {"code": code, "message": message}
    if data is not None:
        body["data"] = data
    return body


class Recorder:
    """MockTransport handler answering canned envelopes and recording requests."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if self.responses else envelope()
        if isinstance(response, Exception):
            raise response
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self):
        return json.loads(self.last.content)


def make_client(recorder: Recorder) -> AccessControlClient:
    return AccessControlClient(
        AccessControlSettings(url="http://access-control.test/api/v1"),
        transport=httpx.MockTransport(recorder),
    )


class TestAccessControlClient:
    """Tests for envelope handling."""

    @pytest.mark.asyncio
    async def test_request_returns_data(self):
        recorder = Recorder(envelope({"ok": True}))
        client = make_client(recorder)

        data = await client.request("GET", "/ping", "ping")

        assert data == {"ok": True}
        assert recorder.last.url.path == "/api/v1/ping"
        await client.close()

    @pytest.mark.asyncio
    async def test_non_success_code_raises(self):
        client = make_client(Recorder(envelope(code=5, message="rejected")))

        with pytest.raises(ServiceResponseError) as exc_info:
            await client.request("POST", "/relationships", "upsert", json=[])

        assert exc_info.value.operation == "upsert"
        assert exc_info.value.description == "rejected"

    @pytest.mark.asyncio
    async def test_error_status_with_envelope_is_not_transport_failure(self):
        response = httpx.Response(403, json=envelope(code=3, message="Forbidden"))
        client = make_client(Recorder(response))

        body = await client.send("POST", "/access/authorize", "authorize", json={})

        assert body["code"] == 3

    @pytest.mark.asyncio
    async def test_non_envelope_body_raises(self):
        client = make_client(Recorder(httpx.Response(502, text="<html>bad gateway</html>")))

        with pytest.raises(ServiceResponseError):
            await client.send("GET", "/ping", "ping")

    @pytest.mark.asyncio
    async def test_transport_error_is_unavailable(self):
        client = make_client(Recorder(httpx.ConnectError("connection refused")))

        with pytest.raises(ServiceUnavailableError) as exc_info:
            await client.request("GET", "/ping", "ping")

        assert isinstance(exc_info.value.original_error, httpx.ConnectError)


class TestRelationshipGraphClient:
    """Tests for the wire format of graph operations."""

    @pytest.mark.asyncio
    async def test_bind(self):
        recorder = Recorder()
        graph = RelationshipGraphClient(make_client(recorder))
        condition = RelationshipCondition(Relationship.MANAGES, Relationship.ENROLLED_IN, Relationship.TEACHES)

        await graph.bind([EntityRelationship("p1", Relationship.ENROLLED_IN)], "c1", [condition])

        assert recorder.last.method == "POST"
        assert recorder.last.url.path.endswith("/relationships/bind")
        assert recorder.last_json() == {
            "initiators": [{"entityId": "p1", "relationship": "EnrolledIn"}],
            "targetId": "c1",
            "conditions": [{"fromRel": "Manages", "toRel": "EnrolledIn", "resultRel": "Teaches"}],
        }

    @pytest.mark.asyncio
    async def test_bind_nothing_makes_no_call(self):
        recorder = Recorder()
        graph = RelationshipGraphClient(make_client(recorder))

        await graph.bind([], "c1")

        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_unbind(self):
        recorder = Recorder()
        graph = RelationshipGraphClient(make_client(recorder))

        await graph.unbind(
            [EntityRelationship("p1", Relationship.MANAGES)],
            "c1",
            is_target_unbound=True,
        )

        assert recorder.last.method == "DELETE"
        assert recorder.last.url.path.endswith("/relationships/unbind")
        assert recorder.last_json()["isTargetUnbound"] is True
        assert recorder.last_json()["terminators"] == [{"entityId": "p1", "relationship": "Manages"}]

    @pytest.mark.asyncio
    async def test_query_by_from_with_filter(self):
        recorder = Recorder(
            envelope([{"_id": "x", "from": "p1", "to": "s1", "relationship": "Manages"}])
        )
        graph = RelationshipGraphClient(make_client(recorder))

        edges = await graph.query_by_from("p1", [Relationship.MANAGES, Relationship.CREATOR])

        assert edges == [Edge("p1", "s1", Relationship.MANAGES)]
        assert recorder.last.url.path.endswith("/relationships/from/p1")
        assert recorder.last.url.params["relationships"] == "Manages,Creator"

    @pytest.mark.asyncio
    async def test_query_by_to_without_filter(self):
        recorder = Recorder(envelope([]))
        graph = RelationshipGraphClient(make_client(recorder))

        assert await graph.query_by_to("c1") == []
        assert "relationships" not in recorder.last.url.params

    @pytest.mark.asyncio
    async def test_query_between(self):
        recorder = Recorder(envelope([{"from": "p1", "to": "c1", "relationship": "EnrolledIn"}]))
        graph = RelationshipGraphClient(make_client(recorder))

        edges = await graph.query_between("p1", "c1")

        assert edges == [Edge("p1", "c1", Relationship.ENROLLED_IN)]
        assert recorder.last.url.path.endswith("/relationships/from/p1/to/c1")

    @pytest.mark.asyncio
    async def test_malformed_edge_raises(self):
        recorder = Recorder(envelope([{"from": "p1", "relationship": "Nope"}]))
        graph = RelationshipGraphClient(make_client(recorder))

        with pytest.raises(ServiceResponseError):
            await graph.query_by_from("p1")

    @pytest.mark.asyncio
    async def test_upsert_and_delete_edges(self):
        recorder = Recorder()
        graph = RelationshipGraphClient(make_client(recorder))
        edges = [Edge("p1", "p1", Relationship.OWN)]

        await graph.upsert(edges)
        upsert = recorder.last
        await graph.delete_edges(edges)

        assert upsert.method == "POST"
        assert json.loads(upsert.content) == [{"from": "p1", "to": "p1", "relationship": "Own"}]
        assert recorder.last.method == "DELETE"
        assert recorder.last.url.path.endswith("/relationships")

    @pytest.mark.asyncio
    async def test_update(self):
        recorder = Recorder()
        graph = RelationshipGraphClient(make_client(recorder))

        await graph.update(Edge("p1", "c1", Relationship.ENROLLED_IN), Relationship.MANAGES)

        assert recorder.last.method == "PATCH"
        assert recorder.last_json()["newRelationship"] == "Manages"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "edge, new_relationship",
        [
            (Edge("p1", "s1", Relationship.CREATOR), Relationship.MANAGES),
            (Edge("p1", "s1", Relationship.MANAGES), Relationship.CREATOR),
        ],
    )
    async def test_update_never_touches_creator(self, edge, new_relationship):
        recorder = Recorder()
        graph = RelationshipGraphClient(make_client(recorder))

        with pytest.raises(ConflictError):
            await graph.update(edge, new_relationship)

        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_delete_by_entity_ids(self):
        recorder = Recorder()
        graph = RelationshipGraphClient(make_client(recorder))

        await graph.delete_by_entity_ids(["p1", "s1"])

        assert recorder.last.url.path.endswith("/relationships/entities")
        assert recorder.last_json() == {"ids": ["p1", "s1"]}

    @pytest.mark.asyncio
    async def test_rejected_write_raises(self):
        graph = RelationshipGraphClient(make_client(Recorder(envelope(code=6))))

        with pytest.raises(ServiceResponseError):
            await graph.upsert([Edge("p1", "p1", Relationship.OWN)])
