# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Profile domain package."""

from academic_service.domains.profile.service import ProfileService, own_edges, validate_role_assignment

__all__ = ["ProfileService", "own_edges", "validate_role_assignment"]
