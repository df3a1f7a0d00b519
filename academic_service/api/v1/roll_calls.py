# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Roll-call API endpoints.

This module provides endpoints for class attendance:
- POST /class/{class_id} - Open the roll-call session of a date
- GET /class/{class_id} - List sessions between two dates
- DELETE /{session_id} - Remove a session created by the requestor
- POST /{session_id} - Record attendance entries
- GET /{session_id} - List the entries of a session
- PATCH /entry/{entry_id} - Update an entry
- DELETE /entry/{entry_id} - Delete an entry

Sessions and entries are authorized against their class.
"""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, status

from academic_service.api.dependencies import get_roll_call_service, require
from academic_service.core.constants import ProfileRole, Relationship
from academic_service.domains.access_control import ProtectedOperation, RequestContext, owner_of, path_param
from academic_service.domains.content import RollCallService
from academic_service.infrastructure.database.models import RollCallEntry, RollCallSession
from academic_service.models.common import ApiResponse, success
from academic_service.models.content import (
    RollCallEntryRequest,
    RollCallEntryResponse,
    RollCallEntryUpdateRequest,
    RollCallSessionRequest,
    RollCallSessionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_MANAGERS = {ProfileRole.TEACHER: (Relationship.CREATOR, Relationship.MANAGES)}
_MEMBERS = {
    **_MANAGERS,
    ProfileRole.STUDENT: (Relationship.ENROLLED_IN,),
    ProfileRole.PARENT: (Relationship.HAS_CHILD_IN,),
}
_CLASS = path_param("class_id")
_SESSION_CLASS = owner_of(RollCallSession, "session_id", "class_id", "Roll-call session not found")
_ENTRY_CLASS = owner_of(RollCallEntry, "entry_id", "class_id", "Roll-call entry not found")

CREATE_SESSIONS = ProtectedOperation.declare("create-roll-call-sessions", _MANAGERS, target=_CLASS)
VIEW_SESSIONS = ProtectedOperation.declare("view-roll-call-sessions", _MEMBERS, target=_CLASS)
REMOVE_SESSION = ProtectedOperation.declare("remove-roll-call-session", _MANAGERS, target=_SESSION_CLASS)
INSERT_ENTRIES = ProtectedOperation.declare("insert-roll-call-entries", _MANAGERS, target=_SESSION_CLASS)
VIEW_ENTRIES = ProtectedOperation.declare("view-roll-call-entries", _MEMBERS, target=_SESSION_CLASS)
UPDATE_ENTRY = ProtectedOperation.declare("update-roll-call-entry", _MANAGERS, target=_ENTRY_CLASS)
DELETE_ENTRY = ProtectedOperation.declare("delete-roll-call-entry", _MANAGERS, target=_ENTRY_CLASS)

OPERATIONS = (
    CREATE_SESSIONS,
    VIEW_SESSIONS,
    REMOVE_SESSION,
    INSERT_ENTRIES,
    VIEW_ENTRIES,
    UPDATE_ENTRY,
    DELETE_ENTRY,
)


@router.post(
    "/class/{class_id}",
    response_model=ApiResponse[RollCallSessionResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Open roll-call session",
)
async def create_session(
    class_id: UUID,
    data: Optional[RollCallSessionRequest] = Body(None),
    context: RequestContext = Depends(require(CREATE_SESSIONS)),
    service: RollCallService = Depends(get_roll_call_service),
) -> dict:
    """Open the session of a date, today when no date is given."""
    requestor = context.require_profile()
    session = await service.create_session(requestor.id, str(class_id), data.date if data else None)
    return success(RollCallSessionResponse.model_validate(session))


@router.get(
    "/class/{class_id}",
    response_model=ApiResponse[list[RollCallSessionResponse]],
    summary="List roll-call sessions",
)
async def list_sessions(
    class_id: UUID,
    start_date: Optional[date] = Query(None, description="First date, today by default"),
    end_date: Optional[date] = Query(None, description="Last date, today by default"),
    context: RequestContext = Depends(require(VIEW_SESSIONS)),
    service: RollCallService = Depends(get_roll_call_service),
) -> dict:
    sessions = await service.list_sessions(str(class_id), start_date, end_date)
    return success([RollCallSessionResponse.model_validate(s) for s in sessions])


@router.delete(
    "/{session_id}",
    response_model=ApiResponse[RollCallSessionResponse],
    summary="Remove roll-call session",
)
async def remove_session(
    session_id: UUID,
    context: RequestContext = Depends(require(REMOVE_SESSION)),
    service: RollCallService = Depends(get_roll_call_service),
) -> dict:
    """Remove a session with its entries; only its creator may."""
    requestor = context.require_profile()
    logger.info("Removing roll-call session: id=%s, by=%s", session_id, requestor.id)

    session = await service.remove_session(requestor.id, str(session_id))
    return success(RollCallSessionResponse.model_validate(session))


@router.post(
    "/{session_id}",
    response_model=ApiResponse[list[RollCallEntryResponse]],
    status_code=status.HTTP_201_CREATED,
    summary="Record attendance",
)
async def insert_entries(
    session_id: UUID,
    data: list[RollCallEntryRequest] = Body(..., min_length=1),
    context: RequestContext = Depends(require(INSERT_ENTRIES)),
    service: RollCallService = Depends(get_roll_call_service),
) -> dict:
    entries = await service.insert_entries(str(session_id), data)
    return success([RollCallEntryResponse.model_validate(e) for e in entries])


@router.get(
    "/{session_id}",
    response_model=ApiResponse[list[RollCallEntryResponse]],
    summary="List attendance",
)
async def list_entries(
    session_id: UUID,
    context: RequestContext = Depends(require(VIEW_ENTRIES)),
    service: RollCallService = Depends(get_roll_call_service),
) -> dict:
    entries = await service.list_entries(str(session_id))
    return success([RollCallEntryResponse.model_validate(e) for e in entries])


@router.patch(
    "/entry/{entry_id}",
    response_model=ApiResponse[RollCallEntryResponse],
    summary="Update attendance entry",
)
async def update_entry(
    entry_id: UUID,
    data: RollCallEntryUpdateRequest,
    context: RequestContext = Depends(require(UPDATE_ENTRY)),
    service: RollCallService = Depends(get_roll_call_service),
) -> dict:
    entry = await service.update_entry(str(entry_id), data)
    return success(RollCallEntryResponse.model_validate(entry))


@router.delete(
    "/entry/{entry_id}",
    response_model=ApiResponse[RollCallEntryResponse],
    summary="Delete attendance entry",
)
async def delete_entry(
    entry_id: UUID,
    context: RequestContext = Depends(require(DELETE_ENTRY)),
    service: RollCallService = Depends(get_roll_call_service),
) -> dict:
    entry = await service.delete_entry(str(entry_id))
    return success(RollCallEntryResponse.model_validate(entry))
