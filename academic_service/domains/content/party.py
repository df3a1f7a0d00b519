# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Party service.

A party is a named subset of a class's profiles, e.g. a project team.
Member ids must name existing profiles; membership lists never repeat an id.
"""

import logging
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academic_service.core.errors import BadRequestError, ConflictError, NotFoundError
from academic_service.infrastructure.database.models import Party, Profile, new_id
from academic_service.models.content import PartyCreateRequest, PartyUpdateRequest

logger = logging.getLogger(__name__)


class PartyService:
    """Service for the parties of a class."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def list_parties(self, class_id: str) -> list[Party]:
        result = await self._db.execute(
            select(Party).where(Party.class_id == class_id).order_by(Party.name)
        )
        return list(result.scalars().all())

    async def get_party(self, class_id: str, party_id: str) -> Party:
        """Get a party of a class.

        Raises:
            NotFoundError: If the party does not exist.
            ConflictError: If the party belongs to another class.
        """
        party = await self._db.get(Party, party_id)
        if party is None:
            raise NotFoundError("Party not found")
        if party.class_id != class_id:
            raise ConflictError("Party's classId does not match the request.")
        return party

    async def create_parties(
        self,
        creator_id: str,
        class_id: str,
        requests: Sequence[PartyCreateRequest],
    ) -> list[Party]:
        """Create parties in a class.

        Raises:
            BadRequestError: If a member id names no profile.
        """
        parties = []
        for request in requests:
            member_ids = await self._existing_members([str(m) for m in request.member_ids])
            parties.append(
                Party(
                    id=new_id(),
                    name=request.name,
                    description=request.description,
                    class_id=class_id,
                    member_ids=member_ids,
                    created_by=creator_id,
                )
            )

        self._db.add_all(parties)
        await self._db.commit()
        logger.info("Parties created: %d in class %s", len(parties), class_id)
        return parties

    async def update_party(self, class_id: str, party_id: str, request: PartyUpdateRequest) -> Party:
        party = await self.get_party(class_id, party_id)

        for field, value in request.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(party, field, value)

        await self._db.commit()
        logger.info("Party updated: %s", party_id)
        return party

    async def upsert_members(self, class_id: str, party_id: str, member_ids: Sequence[str]) -> Party:
        """Add profiles to a party; ids already present are kept once."""
        party = await self.get_party(class_id, party_id)
        added = await self._existing_members(member_ids)

        # JSONB columns only notice reassignment
        party.member_ids = list(dict.fromkeys([*party.member_ids, *added]))
        await self._db.commit()
        logger.info("Party members upserted: %s (+%d)", party_id, len(added))
        return party

    async def remove_members(self, class_id: str, party_id: str, member_ids: Sequence[str]) -> Party:
        party = await self.get_party(class_id, party_id)
        removed = set(member_ids)

        party.member_ids = [m for m in party.member_ids if m not in removed]
        await self._db.commit()
        logger.info("Party members removed: %s (-%d)", party_id, len(removed))
        return party

    async def delete_party(self, class_id: str, party_id: str) -> Party:
        party = await self.get_party(class_id, party_id)

        await self._db.delete(party)
        await self._db.commit()
        logger.info("Party deleted: %s", party_id)
        return party

    async def _existing_members(self, member_ids: Sequence[str]) -> list[str]:
        unique = list(dict.fromkeys(member_ids))
        if not unique:
            return []

        result = await self._db.execute(select(Profile.id).where(Profile.id.in_(unique)))
        if len(set(result.scalars().all())) != len(unique):
            raise BadRequestError("MemberIds do not exist")
        return unique
