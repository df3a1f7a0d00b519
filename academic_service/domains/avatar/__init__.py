# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Avatar domain package."""

from academic_service.domains.avatar.service import AvatarService

__all__ = ["AvatarService"]
