# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Avatar replacement for schools, classes and profiles.

The image is uploaded first, then the new URL is persisted. If persisting
fails, the upload is deleted again through its delete link.
"""

import logging
from typing import Union

from sqlalchemy.ext.asyncio import AsyncSession

from academic_service.core.errors import NotFoundError
from academic_service.domains.orchestration import CompensatingTransaction
from academic_service.infrastructure.database.models import Profile, School, SchoolClass
from academic_service.infrastructure.external.image_host import ImageHostClient, UploadedImage

logger = logging.getLogger(__name__)

AvatarOwner = Union[type[School], type[SchoolClass], type[Profile]]

_LABELS = {School: "School", SchoolClass: "Class", Profile: "Profile"}


class AvatarService:
    """Uploads avatars and stores their URL on the owning entity."""

    def __init__(self, db: AsyncSession, image_host: ImageHostClient) -> None:
        self._db = db
        self._image_host = image_host

    async def update(self, model: AvatarOwner, entity_id: str, image: bytes) -> str:
        """Replace the avatar of an entity.

        Args:
            model: School, SchoolClass or Profile.
            entity_id: Entity ID.
            image: Raw image bytes.

        Returns:
            Public URL of the new avatar.

        Raises:
            NotFoundError: If the entity does not exist.
        """
        entity = await self._db.get(model, entity_id)
        if entity is None:
            raise NotFoundError(f"{_LABELS[model]} not found")

        async with CompensatingTransaction(self._db, "update-avatar") as tx:
            uploaded: UploadedImage = await tx.step(
                "upload-image",
                self._image_host.upload(image),
                compensate=lambda: self._image_host.delete(uploaded),
            )
            entity.avatar_url = uploaded.url
            await self._db.flush()

        logger.info("Avatar updated: %s %s", _LABELS[model], entity_id)
        return uploaded.url
