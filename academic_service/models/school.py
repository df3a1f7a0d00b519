# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School and class request/response schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SchoolCreateRequest(BaseModel):
    """Request to create a school."""

    name: str = Field(..., min_length=1, max_length=255, description="School name")
    address: Optional[str] = Field(None, max_length=500, description="Postal address")
    phone_number: Optional[str] = Field(None, max_length=20, description="Contact phone number")
    avatar_url: Optional[str] = Field(None, max_length=500, description="Avatar URL")


class SchoolUpdateRequest(BaseModel):
    """Request to update a school; omitted fields are left unchanged."""

    name: Optional[str] = Field(None, min_length=1, max_length=255, description="School name")
    address: Optional[str] = Field(None, max_length=500, description="Postal address")
    phone_number: Optional[str] = Field(None, max_length=20, description="Contact phone number")


class SchoolResponse(BaseModel):
    """School details."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="School ID")
    name: str = Field(..., description="School name")
    address: Optional[str] = Field(None, description="Postal address")
    phone_number: Optional[str] = Field(None, description="Contact phone number")
    avatar_url: str = Field(..., description="Avatar URL")
    creator_id: str = Field(..., description="Creator profile ID")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class ClassCreateRequest(BaseModel):
    """Request to create a class.

    Without school_id the class is personal and the requestor becomes its
    teacher; with school_id the requestor must be an executive of the school.
    """

    name: str = Field(..., min_length=1, max_length=255, description="Class name")
    avatar_url: Optional[str] = Field(None, max_length=500, description="Avatar URL")
    school_id: Optional[UUID] = Field(None, description="Parent school ID")


class ClassUpdateRequest(BaseModel):
    """Request to update a class."""

    name: Optional[str] = Field(None, min_length=1, max_length=255, description="Class name")


class ClassResponse(BaseModel):
    """Class details."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Class ID")
    name: str = Field(..., description="Class name")
    avatar_url: str = Field(..., description="Avatar URL")
    school_id: Optional[str] = Field(None, description="Parent school ID, None for personal classes")
    creator_id: str = Field(..., description="Creator profile ID")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
