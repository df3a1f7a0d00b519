# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Redis client for ephemeral invitation state.

This module provides an async Redis client wrapper. Values are JSON
serialized; keys written together through set_many share one expiry so
that paired entries (an invitation code and its reverse index) expire at
the same moment.

Example:
    from academic_service.infrastructure.cache import init_redis, get_redis

    # Initialize at startup
    await init_redis(settings)

    # Use the client
    redis = get_redis()
    await redis.set_many({"group_code:ABC123": payload, "group_code:<id>": "ABC123"}, 3600)
"""

import json
from typing import TYPE_CHECKING, Any, Mapping, Optional

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError as BaseRedisError

if TYPE_CHECKING:
    from academic_service.core.config.settings import Settings

# Module-level state
_redis_client: Optional["RedisClient"] = None


class RedisError(Exception):
    """Exception raised for Redis operation failures.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying Redis error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class RedisClient:
    """Async Redis client.

    This client wraps the redis-py async client and provides:
    - Connection pooling
    - JSON serialization/deserialization
    - Atomic multi-key writes sharing one expiry

    Example:
        client = RedisClient(settings)
        await client.connect()

        await client.set("key", "value", expire_seconds=60)
        value = await client.get("key")

        await client.close()
    """

    def __init__(self, settings: "Settings") -> None:
        """Initialize the Redis client.

        Args:
            settings: Application settings containing Redis configuration.
        """
        self._settings = settings
        self._pool: Optional[ConnectionPool] = None
        self._redis: Optional[Redis] = None

    async def connect(self) -> None:
        """Create the Redis connection pool.

        Raises:
            RedisError: If connection fails.
        """
        try:
            self._pool = ConnectionPool.from_url(
                self._settings.redis.url,
                max_connections=self._settings.redis.max_connections,
                decode_responses=True,
            )
            self._redis = Redis(connection_pool=self._pool)

            # Verify connection
            await self._redis.ping()
        except BaseRedisError as e:
            raise RedisError("Failed to connect to Redis", e) from e

    async def close(self) -> None:
        """Close the Redis connection pool."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

        if self._pool is not None:
            await self._pool.disconnect()
            self._pool = None

    def _ensure_connected(self) -> Redis:
        """Ensure the client is connected.

        Raises:
            RedisError: If not connected.
        """
        if self._redis is None:
            raise RedisError("Redis client not connected. Call connect() first.")
        return self._redis

    def _serialize(self, value: Any) -> str:
        if isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False, default=str)

    def _deserialize(self, value: Optional[str]) -> Any:
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value

    async def set(
        self,
        key: str,
        value: Any,
        expire_seconds: Optional[int] = None,
    ) -> None:
        """Set a key-value pair.

        Args:
            key: The key.
            value: The value (will be JSON serialized if not a string).
            expire_seconds: Optional expiration time in seconds.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        try:
            await redis.set(key, self._serialize(value), ex=expire_seconds)
        except BaseRedisError as e:
            raise RedisError(f"Failed to set key: {key}", e) from e

    async def set_many(self, entries: Mapping[str, Any], expire_seconds: int) -> None:
        """Set several keys in one MULTI/EXEC with the same expiry.

        Args:
            entries: Keys and values to write.
            expire_seconds: Expiration time in seconds applied to every key.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        try:
            async with redis.pipeline(transaction=True) as pipe:
                for key, value in entries.items():
                    pipe.set(key, self._serialize(value), ex=expire_seconds)
                await pipe.execute()
        except BaseRedisError as e:
            raise RedisError(f"Failed to set keys: {', '.join(entries)}", e) from e

    async def get(self, key: str) -> Any:
        """Get a value by key.

        Args:
            key: The key.

        Returns:
            The deserialized value or None if not found.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        try:
            value = await redis.get(key)
            return self._deserialize(value)
        except BaseRedisError as e:
            raise RedisError(f"Failed to get key: {key}", e) from e

    async def get_raw(self, key: str) -> Optional[str]:
        """Get a value by key without JSON decoding.

        Invitation codes are all-digit strings at times; decoding them would
        turn "004211" into an int.
        """
        redis = self._ensure_connected()
        try:
            return await redis.get(key)
        except BaseRedisError as e:
            raise RedisError(f"Failed to get key: {key}", e) from e

    async def delete(self, *keys: str) -> int:
        """Delete one or more keys.

        Args:
            keys: The keys to delete.

        Returns:
            Number of keys that existed and were deleted.

        Raises:
            RedisError: If the operation fails.
        """
        if not keys:
            return 0
        redis = self._ensure_connected()
        try:
            return await redis.delete(*keys)
        except BaseRedisError as e:
            raise RedisError(f"Failed to delete keys: {', '.join(keys)}", e) from e

    async def exists(self, key: str) -> bool:
        """Check if a key exists.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        try:
            result = await redis.exists(key)
            return result > 0
        except BaseRedisError as e:
            raise RedisError(f"Failed to check key existence: {key}", e) from e

    async def ping(self) -> bool:
        """Check if Redis is reachable.

        Returns:
            True if Redis responds to ping, False otherwise.
        """
        try:
            redis = self._ensure_connected()
            await redis.ping()
            return True
        except (RedisError, BaseRedisError):
            return False


# ========== Module-level functions ==========


async def init_redis(settings: "Settings") -> None:
    """Initialize the global Redis client.

    This should be called once at application startup.

    Raises:
        RedisError: If connection fails.
    """
    global _redis_client

    _redis_client = RedisClient(settings)
    await _redis_client.connect()


async def close_redis() -> None:
    """Close the global Redis client."""
    global _redis_client

    if _redis_client is not None:
        await _redis_client.close()
        _redis_client = None


def get_redis() -> RedisClient:
    """Get the global Redis client.

    Raises:
        RedisError: If Redis has not been initialized.
    """
    if _redis_client is None:
        raise RedisError("Redis not initialized. Call init_redis() first.")
    return _redis_client
