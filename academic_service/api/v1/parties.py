# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Party API endpoints.

This module provides endpoints for the parties of a class:
- GET /{class_id} - List the parties of a class
- GET /{class_id}/{party_id} - Get party details
- POST /{class_id} - Create one or several parties
- PATCH /{class_id}/{party_id} - Update name or description
- PATCH /{class_id}/{party_id}/members - Add members
- DELETE /{class_id}/{party_id}/members - Remove members
- DELETE /{class_id}/{party_id} - Delete a party

Example:
    POST /api/v1/parties/{class_id}
    [{"name": "Robotics team", "member_ids": ["5e1c...", "a07d..."]}]
"""

import logging
from typing import Union
from uuid import UUID

from fastapi import APIRouter, Body, Depends, status

from academic_service.api.dependencies import get_party_service, require
from academic_service.core.constants import ProfileRole, Relationship
from academic_service.domains.access_control import ProtectedOperation, RequestContext, path_param
from academic_service.domains.content import PartyService
from academic_service.models.common import ApiResponse, success
from academic_service.models.content import (
    PartyCreateRequest,
    PartyMembersRequest,
    PartyResponse,
    PartyUpdateRequest,
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

VIEW_PARTIES = ProtectedOperation.declare("view-parties", _MEMBERS, target=_CLASS)
VIEW_PARTY = ProtectedOperation.declare("view-party", _MEMBERS, target=_CLASS)
ADD_PARTY = ProtectedOperation.declare("add-party", _MANAGERS, target=_CLASS)
UPDATE_PARTY = ProtectedOperation.declare("update-party", _MANAGERS, target=_CLASS)
UPSERT_PARTY_MEMBERS = ProtectedOperation.declare("upsert-party-members", _MANAGERS, target=_CLASS)
REMOVE_PARTY_MEMBERS = ProtectedOperation.declare("remove-party-members", _MANAGERS, target=_CLASS)
DELETE_PARTY = ProtectedOperation.declare("delete-party", _MANAGERS, target=_CLASS)

OPERATIONS = (
    VIEW_PARTIES,
    VIEW_PARTY,
    ADD_PARTY,
    UPDATE_PARTY,
    UPSERT_PARTY_MEMBERS,
    REMOVE_PARTY_MEMBERS,
    DELETE_PARTY,
)


@router.get(
    "/{class_id}",
    response_model=ApiResponse[list[PartyResponse]],
    summary="List parties of a class",
)
async def list_parties(
    class_id: UUID,
    context: RequestContext = Depends(require(VIEW_PARTIES)),
    service: PartyService = Depends(get_party_service),
) -> dict:
    parties = await service.list_parties(str(class_id))
    return success([PartyResponse.model_validate(p) for p in parties])


@router.get(
    "/{class_id}/{party_id}",
    response_model=ApiResponse[PartyResponse],
    summary="Get party",
)
async def get_party(
    class_id: UUID,
    party_id: UUID,
    context: RequestContext = Depends(require(VIEW_PARTY)),
    service: PartyService = Depends(get_party_service),
) -> dict:
    party = await service.get_party(str(class_id), str(party_id))
    return success(PartyResponse.model_validate(party))


@router.post(
    "/{class_id}",
    response_model=ApiResponse[list[PartyResponse]],
    status_code=status.HTTP_201_CREATED,
    summary="Create parties",
)
async def create_parties(
    class_id: UUID,
    data: Union[list[PartyCreateRequest], PartyCreateRequest] = Body(...),
    context: RequestContext = Depends(require(ADD_PARTY)),
    service: PartyService = Depends(get_party_service),
) -> dict:
    """Create a party, or several from a list."""
    requestor = context.require_profile()
    requests = data if isinstance(data, list) else [data]
    logger.info("Creating parties: count=%d, class=%s, by=%s", len(requests), class_id, requestor.id)

    parties = await service.create_parties(requestor.id, str(class_id), requests)
    return success([PartyResponse.model_validate(p) for p in parties])


@router.patch(
    "/{class_id}/{party_id}",
    response_model=ApiResponse[PartyResponse],
    summary="Update party",
)
async def update_party(
    class_id: UUID,
    party_id: UUID,
    data: PartyUpdateRequest,
    context: RequestContext = Depends(require(UPDATE_PARTY)),
    service: PartyService = Depends(get_party_service),
) -> dict:
    party = await service.update_party(str(class_id), str(party_id), data)
    return success(PartyResponse.model_validate(party))


@router.patch(
    "/{class_id}/{party_id}/members",
    response_model=ApiResponse[PartyResponse],
    summary="Add party members",
)
async def upsert_party_members(
    class_id: UUID,
    party_id: UUID,
    data: PartyMembersRequest,
    context: RequestContext = Depends(require(UPSERT_PARTY_MEMBERS)),
    service: PartyService = Depends(get_party_service),
) -> dict:
    party = await service.upsert_members(str(class_id), str(party_id), [str(m) for m in data.member_ids])
    return success(PartyResponse.model_validate(party))


@router.delete(
    "/{class_id}/{party_id}/members",
    response_model=ApiResponse[PartyResponse],
    summary="Remove party members",
)
async def remove_party_members(
    class_id: UUID,
    party_id: UUID,
    data: PartyMembersRequest,
    context: RequestContext = Depends(require(REMOVE_PARTY_MEMBERS)),
    service: PartyService = Depends(get_party_service),
) -> dict:
    party = await service.remove_members(str(class_id), str(party_id), [str(m) for m in data.member_ids])
    return success(PartyResponse.model_validate(party))


@router.delete(
    "/{class_id}/{party_id}",
    response_model=ApiResponse[PartyResponse],
    summary="Delete party",
)
async def delete_party(
    class_id: UUID,
    party_id: UUID,
    context: RequestContext = Depends(require(DELETE_PARTY)),
    service: PartyService = Depends(get_party_service),
) -> dict:
    party = await service.delete_party(str(class_id), str(party_id))
    return success(PartyResponse.model_validate(party))
