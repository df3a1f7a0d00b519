# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""HTTP client for the access-control service.

Every response of the access-control service is a JSON envelope
``{code, message, data?, error?}``. Only ``code == SUCCESS`` guarantees
usable ``data``. This client maps:

- transport failures (connection refused, timeouts, ...) to
  ServiceUnavailableError
- envelopes with any other code, or bodies that are not envelopes, to
  ServiceResponseError

No call is retried here; callers decide what a failure means.

Example:
    client = AccessControlClient(settings.access_control)
    data = await client.request("GET", "/relationships/from/abc", "queryByFrom")
    await client.close()
"""

import logging
from typing import TYPE_CHECKING, Any, Optional

import httpx

from academic_service.core.constants import ResponseCode
from academic_service.core.errors import ServiceResponseError, ServiceUnavailableError

if TYPE_CHECKING:
    from academic_service.core.config.settings import AccessControlSettings

logger = logging.getLogger(__name__)

SERVICE_NAME = "AccessControlService"

# Module-level state
_access_control_client: Optional["AccessControlClient"] = None


class AccessControlClient:
    """Envelope-aware async HTTP client for the access-control service.

    Attributes:
        base_url: Base URL of the access-control service.
    """

    def __init__(
        self,
        settings: "AccessControlSettings",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Access-control settings (url, timeout).
            transport: Optional transport, used by tests to stub the service.
        """
        self.base_url = settings.url
        self._client = httpx.AsyncClient(
            base_url=settings.url,
            timeout=settings.timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def send(
        self,
        method: str,
        path: str,
        operation: str,
        *,
        json: Any = None,
        params: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """Send a request and return the raw envelope, whatever its code.

        Args:
            method: HTTP method.
            path: Path relative to the base URL.
            operation: Operation name for errors and logs.
            json: Optional JSON body (also sent for DELETE).
            params: Optional query parameters.

        Returns:
            The decoded envelope.

        Raises:
            ServiceUnavailableError: If the service cannot be reached.
            ServiceResponseError: If the body is not an envelope.
        """
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.TransportError as e:
            logger.error("%s.%s transport error: %s", SERVICE_NAME, operation, e)
            raise ServiceUnavailableError(SERVICE_NAME, e) from e

        return self._parse_envelope(response, operation)

    async def request(
        self,
        method: str,
        path: str,
        operation: str,
        *,
        json: Any = None,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Send a request and return the envelope's data.

        Raises:
            ServiceUnavailableError: If the service cannot be reached.
            ServiceResponseError: If the envelope code is not SUCCESS.
        """
        envelope = await self.send(method, path, operation, json=json, params=params)
        if envelope["code"] != ResponseCode.SUCCESS:
            raise ServiceResponseError(
                SERVICE_NAME,
                operation,
                envelope.get("message") or f"Unexpected response code {envelope['code']}",
                envelope,
            )
        return envelope.get("data")

    def _parse_envelope(self, response: httpx.Response, operation: str) -> dict[str, Any]:
        """Decode a response body into an envelope.

        Error statuses still carry envelopes, so the HTTP status is not
        checked here; the envelope code decides.
        """
        try:
            body = response.json()
        except ValueError as e:
            raise ServiceResponseError(
                SERVICE_NAME,
                operation,
                "Response body is not JSON",
                {"status_code": response.status_code, "body": response.text[:500]},
            ) from e

        if not isinstance(body, dict) or not isinstance(body.get("code"), int):
            raise ServiceResponseError(
                SERVICE_NAME,
                operation,
                "Response body is not an envelope",
                {"status_code": response.status_code, "body": body},
            )
        return body


# ========== Module-level functions ==========


async def init_access_control(
    settings: "AccessControlSettings",
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AccessControlClient:
    """Create the global access-control client.

    Args:
        settings: Access-control settings.
        transport: Optional transport override.

    Returns:
        The created client.
    """
    global _access_control_client

    _access_control_client = AccessControlClient(settings, transport=transport)
    return _access_control_client


async def close_access_control() -> None:
    """Close the global access-control client."""
    global _access_control_client

    if _access_control_client is not None:
        await _access_control_client.close()
        _access_control_client = None

