# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request context middleware.

The upstream gateway authenticates the caller and forwards its identity as
headers:

    X-User-Id       user id (UUID)
    X-User-Role     platform role (integer)
    X-User-Name     display name (optional)
    X-Profile-Id    acting profile claimed by the caller (optional)
    X-Error         set by the gateway when authentication failed

The middleware builds a RequestContext from them and stores it in
request.state.context. A missing or malformed identity leaves the user
unset; protected handlers then answer Forbidden. The request id, user id
and profile id are bound to the structlog context for the duration of the
request.
"""

import logging
import uuid
from typing import Callable, Optional
from uuid import UUID

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from academic_service.core.constants import UserRole
from academic_service.domains.access_control.context import CurrentUser, RequestContext
from academic_service.utils.logging import bind_context, clear_context

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"
USER_NAME_HEADER = "X-User-Name"
PROFILE_ID_HEADER = "X-Profile-Id"
ERROR_HEADER = "X-Error"
REQUEST_ID_HEADER = "X-Request-Id"


def _parse_user(request: Request) -> Optional[CurrentUser]:
    """Read the gateway identity headers.

    Returns:
        The user, or None when the headers are absent, malformed or
        flagged by the gateway.
    """
    if request.headers.get(ERROR_HEADER):
        logger.debug("Gateway flagged request: %s", request.headers.get(ERROR_HEADER))
        return None

    raw_id = request.headers.get(USER_ID_HEADER)
    raw_role = request.headers.get(USER_ROLE_HEADER)
    if not raw_id or raw_role is None:
        return None

    try:
        user_id = str(UUID(raw_id))
        role = UserRole(int(raw_role))
    except ValueError:
        logger.debug("Malformed identity headers: id=%s role=%s", raw_id, raw_role)
        return None

    return CurrentUser(id=user_id, role=role, name=request.headers.get(USER_NAME_HEADER) or None)


def _parse_profile_id(request: Request) -> Optional[str]:
    raw = request.headers.get(PROFILE_ID_HEADER)
    if not raw:
        return None
    try:
        return str(UUID(raw))
    except ValueError:
        logger.debug("Malformed profile id header: %s", raw)
        return None


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Populates request.state.context from gateway headers."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        context = RequestContext(
            request_id=request_id,
            user=_parse_user(request),
            profile_id=_parse_profile_id(request),
        )
        request.state.context = context

        bind_context(
            request_id=request_id,
            user_id=context.user.id if context.user else None,
            profile_id=context.profile_id,
            method=request.method,
            path=request.url.path,
        )
        try:
            response = await call_next(request)
        finally:
            clear_context()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def get_request_context(request: Request) -> RequestContext:
    """Get the request context set by the middleware.

    Requests that bypassed the middleware get an anonymous context.
    """
    context = getattr(request.state, "context", None)
    if context is None:
        context = RequestContext(request_id=str(uuid.uuid4()))
        request.state.context = context
    return context
