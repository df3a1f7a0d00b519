# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Redis cache used for invitation codes."""

from academic_service.infrastructure.cache.redis_client import (
    RedisClient,
    RedisError,
    close_redis,
    get_redis,
    init_redis,
)

__all__ = [
    "RedisClient",
    "RedisError",
    "init_redis",
    "get_redis",
    "close_redis",
]
