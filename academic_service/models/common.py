# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Response envelope shared by every endpoint."""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

from academic_service.core.constants import ResponseCode, ResponseMessage

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope ``{code, message, data?}`` wrapping every response."""

    code: int = Field(default=int(ResponseCode.SUCCESS), description="Response code")
    message: str = Field(default=ResponseMessage.SUCCESS.value, description="Response message")
    data: Optional[T] = Field(None, description="Response payload")


class AvatarResponse(BaseModel):
    """URL of an uploaded avatar."""

    url: str = Field(..., description="Public URL of the uploaded image")


def success(data: Any = None) -> dict[str, Any]:
    """Build a success envelope."""
    return {"code": int(ResponseCode.SUCCESS), "message": ResponseMessage.SUCCESS.value, "data": data}
