# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cross-cutting utilities.

- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
- retry: Bounded retry for boot-time calls
"""

from academic_service.utils.datetime import ensure_utc, is_expired, minutes_from_now, utc_now
from academic_service.utils.logging import bind_context, clear_context, get_logger, setup_logging
from academic_service.utils.retry import retry_with_backoff

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    # Datetime
    "utc_now",
    "ensure_utc",
    "minutes_from_now",
    "is_expired",
    # Retry
    "retry_with_backoff",
]
