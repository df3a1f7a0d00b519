# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Group content request/response schemas.

Parties, subjects, grades, news, comments and roll-calls. Update requests
leave omitted fields unchanged.
"""

from datetime import date as Date
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from academic_service.core.constants import ProfileRole, RollCallStatus


# ========== Parties ==========


class PartyCreateRequest(BaseModel):
    """Request to create a party in a class."""

    name: str = Field(..., min_length=1, max_length=255, description="Party name")
    description: Optional[str] = Field(None, description="Party description")
    member_ids: list[UUID] = Field(default_factory=list, description="Member profile IDs")


class PartyUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255, description="Party name")
    description: Optional[str] = Field(None, description="Party description")


class PartyMembersRequest(BaseModel):
    """Profiles to add to or remove from a party."""

    member_ids: list[UUID] = Field(..., min_length=1, description="Member profile IDs")


class PartyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Party ID")
    name: str = Field(..., description="Party name")
    class_id: str = Field(..., description="Class ID")
    description: Optional[str] = Field(None, description="Party description")
    member_ids: list[str] = Field(default_factory=list, description="Member profile IDs")
    created_by: str = Field(..., description="Creator profile ID")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


# ========== Subjects ==========


class GradeType(BaseModel):
    """A kind of grade given in a subject, e.g. "Midterm"."""

    id: str = Field(..., description="Grade type ID")
    name: str = Field(..., description="Grade type name")


class SubjectCreateRequest(BaseModel):
    """Request to create a subject; each grade type name gets a fresh ID."""

    name: str = Field(..., min_length=1, max_length=255, description="Subject name")
    avatar_url: Optional[str] = Field(None, max_length=500, description="Avatar URL")
    description: Optional[str] = Field(None, description="Subject description")
    grade_types: list[str] = Field(default_factory=list, description="Grade type names")


class SubjectUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255, description="Subject name")
    avatar_url: Optional[str] = Field(None, max_length=500, description="Avatar URL")
    description: Optional[str] = Field(None, description="Subject description")


class GradeTypesAddRequest(BaseModel):
    names: list[str] = Field(..., min_length=1, description="Grade type names")


class GradeTypesRemoveRequest(BaseModel):
    """Grade types to remove; their grades are deleted with them."""

    ids: list[str] = Field(..., min_length=1, description="Grade type IDs")


class SubjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Subject ID")
    class_id: str = Field(..., description="Class ID")
    name: str = Field(..., description="Subject name")
    avatar_url: Optional[str] = Field(None, description="Avatar URL")
    description: Optional[str] = Field(None, description="Subject description")
    grade_types: list[GradeType] = Field(default_factory=list, description="Grade types")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


# ========== Grades ==========


class GradeCreateRequest(BaseModel):
    student_id: UUID = Field(..., description="Student profile ID")
    grade_type_id: str = Field(..., description="Grade type ID of the subject")
    value: float = Field(..., ge=0, description="Grade value")
    comment: Optional[str] = Field(None, description="Teacher comment")


class GradeUpdateRequest(BaseModel):
    value: Optional[float] = Field(None, ge=0, description="Grade value")
    comment: Optional[str] = Field(None, description="Teacher comment")


class GradeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Grade ID")
    student_id: str = Field(..., description="Student profile ID")
    subject_id: str = Field(..., description="Subject ID")
    grade_type_id: str = Field(..., description="Grade type ID")
    value: float = Field(..., description="Grade value")
    comment: Optional[str] = Field(None, description="Teacher comment")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


# ========== News and comments ==========


class NewsDraft(BaseModel):
    """News fields gathered from a multipart form.

    target_roles narrows the audience; the creator's own priority role is
    always added to a non-empty audience. An empty audience means everyone.
    """

    content: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=500)
    target_roles: Optional[list[ProfileRole]] = None


class NewsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="News ID")
    content: str = Field(..., description="News text")
    image_url: Optional[str] = Field(None, description="Image URL")
    target_roles: list[ProfileRole] = Field(default_factory=list, description="Audience, empty for everyone")
    creator_id: str = Field(..., description="Creator profile ID")
    group_id: str = Field(..., description="School or class ID")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class CommentRequest(BaseModel):
    content: str = Field(..., min_length=1, description="Comment text")


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Comment ID")
    news_id: str = Field(..., description="News ID")
    creator_id: str = Field(..., description="Creator profile ID")
    content: str = Field(..., description="Comment text")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


# ========== Roll-calls ==========


class RollCallSessionRequest(BaseModel):
    """Request to open a roll-call session; defaults to today."""

    date: Optional[Date] = Field(None, description="Session date")


class RollCallSessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Session ID")
    class_id: str = Field(..., description="Class ID")
    created_by: str = Field(..., description="Creator profile ID")
    date: Date = Field(..., description="Session date")
    created_at: datetime = Field(..., description="Creation timestamp")


class RollCallEntryRequest(BaseModel):
    profile_id: UUID = Field(..., description="Attending profile ID")
    status: RollCallStatus = Field(RollCallStatus.ABSENT, description="Attendance status")
    remarks: Optional[str] = Field(None, description="Remarks")


class RollCallEntryUpdateRequest(BaseModel):
    status: Optional[RollCallStatus] = Field(None, description="Attendance status")
    remarks: Optional[str] = Field(None, description="Remarks")


class RollCallEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Entry ID")
    session_id: str = Field(..., description="Session ID")
    profile_id: str = Field(..., description="Attending profile ID")
    class_id: str = Field(..., description="Class ID")
    status: RollCallStatus = Field(..., description="Attendance status")
    remarks: Optional[str] = Field(None, description="Remarks")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
