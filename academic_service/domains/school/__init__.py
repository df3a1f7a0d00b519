# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School domain package.

This package provides school management functionality including:
- School creation with its creator profile
- School updates
- Cascading school deletion
"""

from academic_service.domains.school.service import SchoolService

__all__ = ["SchoolService"]
