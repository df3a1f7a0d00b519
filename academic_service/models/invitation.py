# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Invitation code and mail invitation schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from academic_service.core.constants import GroupType, ProfileRole


class GroupTarget(BaseModel):
    """Group an invitation admits to.

    A school class invitation carries its school: the joining profile lives
    in the school and is bound to the class on top.
    """

    model_config = ConfigDict(populate_by_name=True)

    group_id: str = Field(..., alias="groupId")
    group_type: GroupType = Field(..., alias="groupType")
    school_id: Optional[str] = Field(None, alias="schoolId")

    @property
    def is_school_class(self) -> bool:
        return self.school_id is not None and self.group_type == GroupType.CLASS

    @property
    def membership_group_id(self) -> str:
        """Group the joining profile lives in: the school for school classes."""
        return self.school_id or self.group_id

    @property
    def membership_group_type(self) -> GroupType:
        return GroupType.SCHOOL if self.school_id else self.group_type


class InvitationCodeData(GroupTarget):
    """Payload stored under an invitation code.

    Stored as a JSON object with camelCase keys: groupId, groupType,
    newProfileRole, schoolId (null outside school classes) and
    expireMinutes.
    """

    new_profile_role: ProfileRole = Field(..., alias="newProfileRole")
    expire_minutes: int = Field(..., gt=0, alias="expireMinutes")


class GenerateGroupCodeRequest(BaseModel):
    """Request to issue an invitation code for a group."""

    group_id: UUID = Field(..., description="Group ID")
    group_type: GroupType = Field(..., description="Group type")
    new_profile_role: ProfileRole = Field(..., description="Role granted by the code")
    expire_minutes: Optional[int] = Field(None, gt=0, description="Code lifetime in minutes")


class GroupCodeResponse(BaseModel):
    """An issued invitation code."""

    code: str = Field(..., description="Invitation code")


class SendInvitationMailsRequest(BaseModel):
    """Request to invite addresses to a group by mail."""

    group_id: UUID = Field(..., description="Group ID")
    group_type: GroupType = Field(..., description="Group type")
    role: ProfileRole = Field(..., description="Role granted on acceptance")
    emails: list[EmailStr] = Field(..., min_length=1, description="Addresses to invite")
    profile_id: Optional[UUID] = Field(None, description="Existing profile claimed on acceptance")
    expire_minutes: Optional[int] = Field(None, gt=0, description="Invitation lifetime in minutes")


class RemoveInvitationRequest(BaseModel):
    """Request to withdraw a mail invitation."""

    group_id: UUID = Field(..., description="Group ID")
    group_type: GroupType = Field(..., description="Group type")
    email: EmailStr = Field(..., description="Invited address")


class InvitationResponse(BaseModel):
    """Mail invitation details."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Invitation ID")
    email: str = Field(..., description="Invited address")
    group_id: str = Field(..., description="Group ID")
    group_type: GroupType = Field(..., description="Group type")
    role: ProfileRole = Field(..., description="Role granted on acceptance")
    school_id: Optional[str] = Field(None, description="School of a school class")
    profile_id: Optional[str] = Field(None, description="Existing profile claimed on acceptance")
    sender_id: str = Field(..., description="Sender profile ID")
    expired_at: datetime = Field(..., description="Expiry timestamp")
