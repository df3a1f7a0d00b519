# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Bounded retry for boot-time calls.

Only boot-time registration calls retry. Request-time calls to the
relationship graph, the authorizer and the cache never do.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int,
    backoff_seconds: float,
    description: str,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Run an operation, retrying with a fixed delay between attempts.

    Args:
        operation: Zero-argument coroutine function to run.
        attempts: Total number of attempts, at least 1.
        backoff_seconds: Delay between two attempts.
        description: What is being attempted, for the log.
        retry_on: Exception types that trigger another attempt.
        sleep: Awaitable sleep, replaceable in tests.

    Returns:
        The operation's result.

    Raises:
        Exception: The last error once every attempt has failed.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except retry_on as e:
            if attempt == attempts:
                logger.error("%s failed after %d attempts: %s", description, attempts, e)
                raise
            logger.warning(
                "%s failed (attempt %d/%d), retrying in %.1fs: %s",
                description,
                attempt,
                attempts,
                backoff_seconds,
                e,
            )
            await sleep(backoff_seconds)

    raise AssertionError("unreachable")
