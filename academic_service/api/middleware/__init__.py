# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware package."""

from academic_service.api.middleware.request_context import RequestContextMiddleware, get_request_context

__all__ = ["RequestContextMiddleware", "get_request_context"]
