# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for outbound service clients and avatar replacement."""

import base64
import json
from datetime import datetime, timezone
from urllib.parse import parse_qs
from unittest.mock import AsyncMock

import httpx
import pytest
from pydantic import SecretStr

from academic_service.core.config import (
    AccessControlSettings,
    AccessPointSettings,
    CommunicationSettings,
    ImageHostSettings,
    Settings,
)
from academic_service.core.errors import NotFoundError, ServiceResponseError, ServiceUnavailableError
from academic_service.domains.avatar import AvatarService
from academic_service.infrastructure.database.models import School
from academic_service.infrastructure.external import (
    CommunicationClient,
    ImageHostClient,
    InvitationMail,
    InvitationRecipient,
    UploadedImage,
    register_service,
)

from fakes import make_school, stored

pytestmark = pytest.mark.unit

UPLOAD_URL = "https://images.test/1/upload"


def image_host(handler) -> ImageHostClient:
    return ImageHostClient(
        ImageHostSettings(api_url=UPLOAD_URL, api_key=SecretStr("img-key")),
        transport=httpx.MockTransport(handler),
    )


def uploaded_response(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "data": {
                "url": "https://images.test/avatar.png",
                "delete_url": "https://images.test/delete/abc",
            },
            "success": True,
        },
    )


class TestImageHostClient:
    """Tests for avatar uploads."""

    @pytest.mark.asyncio
    async def test_upload_posts_base64_form(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return uploaded_response(request)

        uploaded = await image_host(handler).upload(b"\x89PNG")

        [request] = requests
        assert request.method == "POST"
        assert request.url.params["key"] == "img-key"
        form = parse_qs(request.content.decode())
        assert form["image"] == [base64.b64encode(b"\x89PNG").decode()]
        assert uploaded == UploadedImage(
            url="https://images.test/avatar.png",
            delete_url="https://images.test/delete/abc",
        )

    @pytest.mark.asyncio
    async def test_upload_rejected(self):
        client = image_host(lambda request: httpx.Response(400, json={"error": {"message": "bad"}}))

        with pytest.raises(ServiceResponseError):
            await client.upload(b"data")

    @pytest.mark.asyncio
    async def test_upload_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused")

        with pytest.raises(ServiceUnavailableError):
            await image_host(handler).upload(b"data")

    @pytest.mark.asyncio
    async def test_delete_follows_delete_link(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200)

        await image_host(handler).delete(UploadedImage("https://images.test/a.png", "https://images.test/delete/abc"))

        assert [(r.method, str(r.url)) for r in requests] == [("GET", "https://images.test/delete/abc")]


class TestCommunicationClient:
    """Tests for invitation mail delivery."""

    MAIL = InvitationMail(
        group_name="Primary School One",
        group_type="School",
        sender_name="Principal Skinner",
        recipients=[
            InvitationRecipient(
                email="grace@example.org",
                name="grace",
                role="Teacher",
                expired_at=datetime(2030, 1, 1, tzinfo=timezone.utc),
                navigate_url="https://academic.example.org/invitation/i1",
            )
        ],
    )

    def client(self, handler) -> CommunicationClient:
        return CommunicationClient(
            CommunicationSettings(url="http://communication.test/api/v1"),
            transport=httpx.MockTransport(handler),
        )

    @pytest.mark.asyncio
    async def test_send_invitation(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"code": 0, "message": "Success"})

        await self.client(handler).send_invitation("user-1", self.MAIL)

        [request] = requests
        assert request.url.path == "/api/v1/mail/send-invitation"
        assert request.headers["x-user-id"] == "user-1"
        body = json.loads(request.content)
        assert body["groupName"] == "Primary School One"
        assert body["senderName"] == "Principal Skinner"
        assert body["recipients"][0]["navigateUrl"] == "https://academic.example.org/invitation/i1"
        assert body["recipients"][0]["expiredAt"].startswith("2030-01-01T00:00:00")

    @pytest.mark.asyncio
    async def test_rejected(self):
        client = self.client(lambda request: httpx.Response(200, json={"code": 5, "message": "Nope"}))

        with pytest.raises(ServiceResponseError):
            await client.send_invitation("user-1", self.MAIL)

    @pytest.mark.asyncio
    async def test_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timeout")

        with pytest.raises(ServiceUnavailableError):
            await self.client(handler).send_invitation("user-1", self.MAIL)


class TestRegisterService:
    """Tests for access point registration."""

    @staticmethod
    def settings() -> Settings:
        return Settings(
            environment="staging",
            access_point=AccessPointSettings(url="http://gateway.test", registry_key=SecretStr("registry-key")),
            access_control=AccessControlSettings(publish_attempts=3, publish_backoff_seconds=2.0),
        )

    @pytest.mark.asyncio
    async def test_registers_once(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"code": 0})

        await register_service(self.settings(), transport=httpx.MockTransport(handler), sleep=AsyncMock())

        [request] = requests
        assert request.url.path == "/applications/register"
        assert request.headers["x-app-registry-key"] == "registry-key"
        body = json.loads(request.content)
        assert body["basePath"] == "/api/v1"
        assert body["protocol"] == "https"

    @pytest.mark.asyncio
    async def test_retries_until_accepted(self):
        codes = iter([1, 1, 0])
        sleep = AsyncMock()

        await register_service(
            self.settings(),
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"code": next(codes)})),
            sleep=sleep,
        )

        assert sleep.await_count == 2
        sleep.assert_awaited_with(2.0)

    @pytest.mark.asyncio
    async def test_gives_up(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused")

        sleep = AsyncMock()

        with pytest.raises(ServiceUnavailableError):
            await register_service(self.settings(), transport=httpx.MockTransport(handler), sleep=sleep)

        assert sleep.await_count == 2


class TestAvatarService:
    """Upload first, then persist; a failed persist deletes the upload."""

    @pytest.fixture
    def host(self):
        host = AsyncMock()
        host.upload = AsyncMock(return_value=UploadedImage("https://images.test/new.png", "https://images.test/delete/new"))
        return host

    @pytest.mark.asyncio
    async def test_replaces_avatar(self, mock_db, host):
        school = make_school("p1")
        stored(mock_db, school)

        url = await AvatarService(mock_db, host).update(School, school.id, b"png")

        assert url == school.avatar_url == "https://images.test/new.png"
        mock_db.commit.assert_awaited_once()
        host.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_commit_deletes_upload(self, mock_db, host):
        school = make_school("p1")
        stored(mock_db, school)
        mock_db.commit = AsyncMock(side_effect=RuntimeError("connection lost"))

        with pytest.raises(RuntimeError):
            await AvatarService(mock_db, host).update(School, school.id, b"png")

        host.delete.assert_awaited_once_with(host.upload.return_value)

    @pytest.mark.asyncio
    async def test_missing_entity(self, mock_db, host):
        with pytest.raises(NotFoundError, match="School not found"):
            await AvatarService(mock_db, host).update(School, "missing", b"png")

        host.upload.assert_not_called()
