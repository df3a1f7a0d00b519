# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Profile request/response schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from academic_service.core.constants import GroupType, ProfileRole


class ProfileInsertRequest(BaseModel):
    """A profile to add to a group.

    user_id may be omitted for profiles a user claims later through a mail
    invitation.
    """

    display_name: str = Field(..., min_length=1, max_length=255, description="Display name")
    roles: list[ProfileRole] = Field(..., min_length=1, description="Roles in the group")
    user_id: Optional[UUID] = Field(None, description="Owning user ID")
    avatar_url: Optional[str] = Field(None, max_length=500, description="Avatar URL")


class ProfileUpdateRequest(BaseModel):
    """Request to update a profile; omitted fields are left unchanged."""

    display_name: Optional[str] = Field(None, min_length=1, max_length=255, description="Display name")
    roles: Optional[list[ProfileRole]] = Field(None, min_length=1, description="New roles")
    user_id: Optional[UUID] = Field(None, description="Owning user ID")


class ProfileResponse(BaseModel):
    """Profile details."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Profile ID")
    user_id: Optional[str] = Field(None, description="Owning user ID")
    display_name: str = Field(..., description="Display name")
    avatar_url: str = Field(..., description="Avatar URL")
    roles: list[ProfileRole] = Field(..., description="Roles in the group")
    group_id: str = Field(..., description="Group ID")
    group_type: GroupType = Field(..., description="Group type")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
