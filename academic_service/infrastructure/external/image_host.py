# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Image host client used for avatars.

Uploads are base64-encoded and posted as a form. The host answers with the
public URL and a delete link; the delete link is how an upload is undone
when the local update fails afterwards.
"""

import base64
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import httpx

from academic_service.core.errors import ServiceResponseError, ServiceUnavailableError

if TYPE_CHECKING:
    from academic_service.core.config.settings import ImageHostSettings

logger = logging.getLogger(__name__)

SERVICE_NAME = "ImageHostService"


@dataclass(frozen=True)
class UploadedImage:
    """An uploaded image and the link that deletes it."""

    url: str
    delete_url: str


class ImageHostClient:
    """Async client for the image host."""

    def __init__(
        self,
        settings: "ImageHostSettings",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_url = settings.api_url
        self._api_key = settings.api_key.get_secret_value()
        self._client = httpx.AsyncClient(
            timeout=settings.timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def upload(self, image: bytes) -> UploadedImage:
        """Upload an image.

        Raises:
            ServiceUnavailableError: If the host cannot be reached.
            ServiceResponseError: If the host rejects the upload.
        """
        try:
            response = await self._client.post(
                self._api_url,
                params={"key": self._api_key},
                data={"image": base64.b64encode(image).decode("ascii")},
            )
        except httpx.TransportError as e:
            raise ServiceUnavailableError(SERVICE_NAME, e) from e

        try:
            body = response.json()
            data = body["data"]
            uploaded = UploadedImage(url=data["url"], delete_url=data["delete_url"])
        except (ValueError, KeyError, TypeError) as e:
            raise ServiceResponseError(
                SERVICE_NAME,
                "uploadImage",
                "Failed to upload image",
                {"status_code": response.status_code, "body": response.text[:500]},
            ) from e

        logger.debug("Image uploaded: %s", uploaded.url)
        return uploaded

    async def delete(self, image: UploadedImage) -> None:
        """Delete an uploaded image through its delete link.

        Raises:
            ServiceUnavailableError: If the host cannot be reached.
        """
        try:
            await self._client.get(image.delete_url)
        except httpx.TransportError as e:
            raise ServiceUnavailableError(SERVICE_NAME, e) from e
        logger.info("Image deleted: %s", image.url)
