# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class domain package.

This package provides class management functionality including:
- Personal and school class creation
- Class visibility by relationship
- Cascading class deletion
"""

from academic_service.domains.class_.service import ClassService

__all__ = ["ClassService"]
