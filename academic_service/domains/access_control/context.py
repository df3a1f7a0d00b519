# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request-scoped context.

Built by the request context middleware from gateway headers, completed by
the authorization gate, read by handlers.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from academic_service.core.constants import UserRole
from academic_service.core.errors import ForbiddenError, ServiceResponseError

if TYPE_CHECKING:
    from academic_service.infrastructure.database.models import Profile


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated user as asserted by the upstream gateway.

    Attributes:
        id: User id.
        role: Platform role of the user.
        name: Display name, when the gateway forwards one.
    """

    id: str
    role: UserRole
    name: Optional[str] = None


@dataclass
class RequestContext:
    """Per-request authorization state.

    Attributes:
        request_id: Correlation id of the request.
        user: Authenticated user, None when the gateway headers are invalid.
        profile_id: Acting profile id claimed by the caller.
        profile: Acting profile, set once authorization succeeds.
        target_id: Resolved target of the protected operation.
        extras: Facts a target resolver looked up for the handler to reuse.
    """

    request_id: str
    user: Optional[CurrentUser] = None
    profile_id: Optional[str] = None
    profile: Optional["Profile"] = None
    target_id: Optional[str] = None
    extras: dict[str, Any] = field(default_factory=dict)

    def require_user(self) -> CurrentUser:
        """Return the authenticated user.

        Raises:
            ForbiddenError: If the request carries no valid identity.
        """
        if self.user is None:
            raise ForbiddenError()
        return self.user

    def require_profile(self) -> "Profile":
        """Return the authorized acting profile.

        Raises:
            ServiceResponseError: If called on a route the gate did not
                resolve a profile for.
        """
        if self.profile is None:
            raise ServiceResponseError(
                "AcademicService",
                "requestContext",
                "Requestor profile is not resolved",
                {"profile_id": self.profile_id},
            )
        return self.profile
