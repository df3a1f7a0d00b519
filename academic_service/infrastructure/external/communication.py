# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Client for the communication service that delivers invitation mails."""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from academic_service.core.constants import ResponseCode
from academic_service.core.errors import ServiceResponseError, ServiceUnavailableError

if TYPE_CHECKING:
    from academic_service.core.config.settings import CommunicationSettings

logger = logging.getLogger(__name__)

SERVICE_NAME = "CommunicationService"


class InvitationRecipient(BaseModel):
    """One addressee of an invitation mail."""

    model_config = ConfigDict(populate_by_name=True)

    email: str
    name: str
    role: str
    expired_at: datetime = Field(serialization_alias="expiredAt")
    navigate_url: str = Field(serialization_alias="navigateUrl")


class InvitationMail(BaseModel):
    """Invitation mail request for a batch of recipients."""

    model_config = ConfigDict(populate_by_name=True)

    group_name: str = Field(serialization_alias="groupName")
    group_type: str = Field(serialization_alias="groupType")
    sender_name: str = Field(serialization_alias="senderName")
    recipients: list[InvitationRecipient]


class CommunicationClient:
    """Async client for the communication service."""

    def __init__(
        self,
        settings: "CommunicationSettings",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=settings.url,
            timeout=settings.timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def send_invitation(self, user_id: str, mail: InvitationMail) -> None:
        """Ask the communication service to send invitation mails.

        Args:
            user_id: Id of the user sending the invitations.
            mail: Mail content and recipients.

        Raises:
            ServiceUnavailableError: If the service cannot be reached.
            ServiceResponseError: If the service rejects the request.
        """
        try:
            response = await self._client.post(
                "/mail/send-invitation",
                headers={"x-user-id": user_id},
                json=mail.model_dump(mode="json", by_alias=True),
            )
        except httpx.TransportError as e:
            raise ServiceUnavailableError(SERVICE_NAME, e) from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict) or body.get("code") != ResponseCode.SUCCESS:
            raise ServiceResponseError(
                SERVICE_NAME,
                "sendInvitation",
                "Failed to send invitation mails",
                body if body is not None else {"status_code": response.status_code},
            )

        logger.info("Invitation mails queued: %d recipients", len(mail.recipients))
