# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Compensating unit of work over a local session and remote calls.

A membership change writes to the local database and to the remote
relationship graph, which does not take part in the database transaction.
CompensatingTransaction keeps the two consistent on failure:

- local writes go through the session and commit on success
- remote steps record an optional compensation
- after_commit actions run only once local writes are durable; a failed
  required action is raised after every action has run, a failed
  best-effort action is only logged
- on failure the session rolls back, compensations run in reverse order,
  and completed steps without a compensation are reported as residuals

Example:
    async with CompensatingTransaction(session, "create-school") as tx:
        session.add(school)
        await session.flush()
        await tx.step("upsert-edges", graph.upsert(edges), compensate=lambda: graph.delete_edges(edges))
        tx.after_commit("purge-codes", lambda: codes.remove(school.id), best_effort=True)
"""

import asyncio
import logging
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Awaitable, Callable, Optional, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

T = TypeVar("T")

Compensation = Callable[[], Awaitable[Any]]


@dataclass
class Step:
    """A named forward action and its optional compensation."""

    name: str
    action: Awaitable[Any]
    compensate: Optional[Compensation] = None


@dataclass(frozen=True)
class _CompletedStep:
    name: str
    compensate: Optional[Compensation]


class CompensatingTransaction:
    """Async context manager driving one compensating unit of work.

    Attributes:
        name: Operation name used in logs.
        uncompensated: Names of completed steps left in place after a failure.
        failed_after_commit: Names of after-commit actions that failed.
    """

    def __init__(self, session: AsyncSession, name: str) -> None:
        self._session = session
        self.name = name
        self._completed: list[_CompletedStep] = []
        self._after_commit: list[tuple[str, Callable[[], Awaitable[Any]], bool]] = []
        self.uncompensated: list[str] = []
        self.failed_after_commit: list[str] = []

    async def __aenter__(self) -> "CompensatingTransaction":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> bool:
        if exc is not None:
            await self._abort(exc)
            return False

        try:
            await self._session.commit()
        except Exception as e:
            await self._abort(e)
            raise

        await self._run_after_commit()
        return False

    async def step(
        self,
        name: str,
        action: Awaitable[T],
        compensate: Optional[Compensation] = None,
    ) -> T:
        """Run a forward action and record it as completed.

        Args:
            name: Step name for logs.
            action: Awaitable performing the remote call.
            compensate: Zero-argument coroutine function undoing the action,
                or None when the action cannot be undone.

        Returns:
            The action's result.
        """
        result = await action
        self._completed.append(_CompletedStep(name, compensate))
        return result

    async def gather(self, *steps: Step) -> list[Any]:
        """Run independent steps concurrently.

        Every step that succeeds is recorded, even when a sibling fails, so
        that an abort compensates it.

        Returns:
            The results, in step order.

        Raises:
            Exception: The first failure, in step order.
        """
        results = await asyncio.gather(*(s.action for s in steps), return_exceptions=True)

        first_error: Optional[BaseException] = None
        for step, result in zip(steps, results):
            if isinstance(result, BaseException):
                logger.warning("Step '%s' of %s failed: %s", step.name, self.name, result)
                if first_error is None:
                    first_error = result
            else:
                self._completed.append(_CompletedStep(step.name, step.compensate))

        if first_error is not None:
            raise first_error
        return list(results)

    def after_commit(
        self,
        name: str,
        action: Callable[[], Awaitable[Any]],
        *,
        best_effort: bool = False,
    ) -> None:
        """Defer an action until the local transaction has committed.

        Args:
            name: Action name for logs.
            action: Zero-argument coroutine function.
            best_effort: When True a failure is logged and recorded only.
                Otherwise the failure is raised once all deferred actions
                have run, since the committed local state and the remote
                state then disagree.
        """
        self._after_commit.append((name, action, best_effort))

    async def _abort(self, error: BaseException) -> None:
        logger.warning("Aborting %s: %s", self.name, error)
        self._after_commit.clear()

        try:
            await self._session.rollback()
        except Exception:
            logger.exception("Rollback of %s failed", self.name)

        for completed in reversed(self._completed):
            if completed.compensate is None:
                self.uncompensated.append(completed.name)
                logger.error(
                    "Step '%s' of %s has no compensation and remains applied",
                    completed.name,
                    self.name,
                )
                continue
            try:
                await completed.compensate()
                logger.info("Compensated step '%s' of %s", completed.name, self.name)
            except Exception:
                self.uncompensated.append(completed.name)
                logger.exception("Compensation of step '%s' of %s failed", completed.name, self.name)

        self._completed.clear()

    async def _run_after_commit(self) -> None:
        # Local writes are durable: a failure here cannot undo them
        first_error: Optional[Exception] = None
        for name, action, best_effort in self._after_commit:
            try:
                await action()
            except Exception as e:
                self.failed_after_commit.append(name)
                if best_effort:
                    logger.exception("After-commit action '%s' of %s failed", name, self.name)
                    continue
                logger.error(
                    "After-commit action '%s' of %s failed; local changes are committed "
                    "but remote state is inconsistent: %s",
                    name,
                    self.name,
                    e,
                )
                if first_error is None:
                    first_error = e
        self._after_commit.clear()

        if first_error is not None:
            raise first_error
