# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Registration of this service with the access point (API gateway).

Registration runs once at boot, with the same bounded retry as the policy
publication.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Optional

import httpx

from academic_service import __version__
from academic_service.core.constants import ResponseCode
from academic_service.core.errors import ServiceResponseError, ServiceUnavailableError
from academic_service.utils.retry import Sleep, retry_with_backoff

if TYPE_CHECKING:
    from academic_service.core.config.settings import Settings

logger = logging.getLogger(__name__)

SERVICE_NAME = "AccessPointService"

SERVICE_DESCRIPTION = "The Academic Service is responsible for managing academic data."


async def register_service(
    settings: "Settings",
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    sleep: Sleep = asyncio.sleep,
) -> None:
    """Announce this service to the access point.

    Args:
        settings: Application settings.
        transport: Optional transport, used by tests.
        sleep: Awaitable sleep, replaceable in tests.

    Raises:
        ServiceUnavailableError: If the access point stays unreachable.
        ServiceResponseError: If the access point keeps rejecting the service.
    """
    access_point = settings.access_point
    payload = {
        "name": "Academic Service",
        "description": SERVICE_DESCRIPTION,
        "basePath": settings.base_path,
        "protocol": "http" if settings.is_development else "https",
        "origin": access_point.origin,
        "version": __version__,
        "paradigm": 0,
    }

    async with httpx.AsyncClient(
        base_url=access_point.url,
        timeout=settings.access_control.timeout,
        transport=transport,
    ) as client:

        async def register() -> None:
            try:
                response = await client.post(
                    "/applications/register",
                    headers={"x-app-registry-key": access_point.registry_key.get_secret_value()},
                    json=payload,
                )
            except httpx.TransportError as e:
                raise ServiceUnavailableError(SERVICE_NAME, e) from e

            try:
                body = response.json()
            except ValueError:
                body = None
            if not isinstance(body, dict) or body.get("code") != ResponseCode.SUCCESS:
                raise ServiceResponseError(
                    SERVICE_NAME, "serviceRegistry", "Failed to register service", body
                )

        await retry_with_backoff(
            register,
            attempts=settings.access_control.publish_attempts,
            backoff_seconds=settings.access_control.publish_backoff_seconds,
            description="Access point registration",
            retry_on=(ServiceUnavailableError, ServiceResponseError),
            sleep=sleep,
        )

    logger.info("Registered with access point at %s", access_point.url)
