# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Roll-call service.

A class has at most one roll-call session per date. Entries record the
attendance of one profile in a session and carry the session's class so
they can be authorized without loading the session.
"""

import logging
from datetime import date
from typing import Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from academic_service.core.errors import ConflictError, NotFoundError
from academic_service.infrastructure.database.models import RollCallEntry, RollCallSession, new_id
from academic_service.models.content import RollCallEntryRequest, RollCallEntryUpdateRequest
from academic_service.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class RollCallService:
    """Service for roll-call sessions and their entries."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def create_session(self, creator_id: str, class_id: str, on: Optional[date] = None) -> RollCallSession:
        """Open a roll-call session of a class, today by default.

        Raises:
            ConflictError: If the class already has a session on that date.
        """
        session_date = on or utc_now().date()
        existing = await self._db.execute(
            select(RollCallSession.id).where(
                RollCallSession.class_id == class_id, RollCallSession.date == session_date
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("Roll-call session already exists on this date")

        session = RollCallSession(id=new_id(), class_id=class_id, created_by=creator_id, date=session_date)
        self._db.add(session)
        try:
            await self._db.commit()
        except IntegrityError as e:
            # Lost a race against a concurrent request for the same date
            await self._db.rollback()
            raise ConflictError("Roll-call session already exists on this date") from e

        logger.info("Roll-call session created: %s (class=%s, date=%s)", session.id, class_id, session_date)
        return session

    async def list_sessions(
        self,
        class_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[RollCallSession]:
        """List the sessions of a class between two dates, both inclusive.

        Both bounds default to today.
        """
        today = utc_now().date()
        result = await self._db.execute(
            select(RollCallSession)
            .where(
                RollCallSession.class_id == class_id,
                RollCallSession.date >= (start_date or today),
                RollCallSession.date <= (end_date or today),
            )
            .order_by(RollCallSession.date)
        )
        return list(result.scalars().all())

    async def remove_session(self, requestor_id: str, session_id: str) -> RollCallSession:
        """Delete a session created by the requestor, with its entries.

        Raises:
            NotFoundError: If the session does not exist or was not created
                by the requestor.
        """
        session = await self._db.get(RollCallSession, session_id)
        if session is None or session.created_by != requestor_id:
            raise NotFoundError("Roll-call session not found or you don't have permission to delete it")

        await self._db.execute(delete(RollCallEntry).where(RollCallEntry.session_id == session_id))
        await self._db.delete(session)
        await self._db.commit()
        logger.info("Roll-call session removed: %s", session_id)
        return session

    async def insert_entries(self, session_id: str, requests: Sequence[RollCallEntryRequest]) -> list[RollCallEntry]:
        """Record attendance in a session.

        Raises:
            NotFoundError: If the session does not exist.
        """
        session = await self._get_session(session_id)
        entries = [
            RollCallEntry(
                id=new_id(),
                session_id=session_id,
                class_id=session.class_id,
                profile_id=str(request.profile_id),
                status=request.status.value,
                remarks=request.remarks,
            )
            for request in requests
        ]

        self._db.add_all(entries)
        await self._db.commit()
        logger.info("Roll-call entries inserted: %d in session %s", len(entries), session_id)
        return entries

    async def list_entries(self, session_id: str) -> list[RollCallEntry]:
        await self._get_session(session_id)
        result = await self._db.execute(select(RollCallEntry).where(RollCallEntry.session_id == session_id))
        return list(result.scalars().all())

    async def update_entry(self, entry_id: str, request: RollCallEntryUpdateRequest) -> RollCallEntry:
        entry = await self._get_entry(entry_id)

        changes = request.model_dump(exclude_unset=True, exclude_none=True, mode="json")
        for field, value in changes.items():
            setattr(entry, field, value)

        await self._db.commit()
        logger.info("Roll-call entry updated: %s", entry_id)
        return entry

    async def delete_entry(self, entry_id: str) -> RollCallEntry:
        entry = await self._get_entry(entry_id)

        await self._db.delete(entry)
        await self._db.commit()
        logger.info("Roll-call entry deleted: %s", entry_id)
        return entry

    async def _get_session(self, session_id: str) -> RollCallSession:
        session = await self._db.get(RollCallSession, session_id)
        if session is None:
            raise NotFoundError("Roll-call session not found")
        return session

    async def _get_entry(self, entry_id: str) -> RollCallEntry:
        entry = await self._db.get(RollCallEntry, entry_id)
        if entry is None:
            raise NotFoundError("Roll-call entry not found")
        return entry
