# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Clients of external collaborators: image host, mail, access point."""

from academic_service.infrastructure.external.access_point import register_service
from academic_service.infrastructure.external.communication import (
    CommunicationClient,
    InvitationMail,
    InvitationRecipient,
)
from academic_service.infrastructure.external.image_host import ImageHostClient, UploadedImage

__all__ = [
    "register_service",
    "CommunicationClient",
    "InvitationMail",
    "InvitationRecipient",
    "ImageHostClient",
    "UploadedImage",
]
