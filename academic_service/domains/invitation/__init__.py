# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Invitation domain package.

This package provides:
- Ephemeral invitation codes in Redis
- Mail invitations
- Joining groups through either
"""

from academic_service.domains.invitation.code_service import InvitationCodeService, generate_random_code
from academic_service.domains.invitation.service import InvitationService

__all__ = ["InvitationCodeService", "InvitationService", "generate_random_code"]
