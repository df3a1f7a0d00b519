# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Invitation API endpoints.

This module provides endpoints for joining groups:
- POST /code - Issue (or return the live) invitation code of a group
- POST /code/{code} - Join the group of an invitation code
- DELETE /code/{group_id} - Revoke the invitation code of a group
- POST /mail - Invite addresses by mail
- DELETE /mail - Withdraw a mail invitation
- POST /mail/{invitation_id}/accept - Join the group of a mail invitation

Issuing and revoking invitations requires a teacher (or executive) managing
the group; joining only requires an authenticated user.

Example:
    POST /api/v1/invitations/code
    {
        "group_id": "4b0c1f0e-...",
        "group_type": "Class",
        "new_profile_role": "Student"
    }
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status

from academic_service.api.dependencies import get_invitation_service, require
from academic_service.core.constants import ProfileRole, Relationship
from academic_service.domains.access_control import ProtectedOperation, RequestContext, body_field, path_param
from academic_service.domains.invitation import InvitationService
from academic_service.models.common import ApiResponse, success
from academic_service.models.invitation import (
    GenerateGroupCodeRequest,
    GroupCodeResponse,
    InvitationResponse,
    RemoveInvitationRequest,
    SendInvitationMailsRequest,
)
from academic_service.models.profile import ProfileResponse

logger = logging.getLogger(__name__)

router = APIRouter()

_GROUP_MANAGERS = {ProfileRole.TEACHER: (Relationship.CREATOR, Relationship.MANAGES)}

GENERATE_GROUP_CODE = ProtectedOperation.declare(
    "generate-group-code", _GROUP_MANAGERS, target=body_field("group_id")
)
REMOVE_GROUP_CODE = ProtectedOperation.declare(
    "remove-group-code", _GROUP_MANAGERS, target=path_param("group_id")
)
SUBMIT_CODE = ProtectedOperation.declare("submit-code")
SEND_INVITATION_MAILS = ProtectedOperation.declare(
    "send-invitation-mails", _GROUP_MANAGERS, target=body_field("group_id")
)
REMOVE_INVITATION = ProtectedOperation.declare(
    "remove-invitation", _GROUP_MANAGERS, target=body_field("group_id")
)
ACCEPT_INVITATION = ProtectedOperation.declare("accept-invitation")

OPERATIONS = (
    GENERATE_GROUP_CODE,
    REMOVE_GROUP_CODE,
    SUBMIT_CODE,
    SEND_INVITATION_MAILS,
    REMOVE_INVITATION,
    ACCEPT_INVITATION,
)


# =========================================================================
# Invitation codes
# =========================================================================


@router.post(
    "/code",
    response_model=ApiResponse[GroupCodeResponse],
    summary="Generate group code",
)
async def generate_group_code(
    data: GenerateGroupCodeRequest,
    context: RequestContext = Depends(require(GENERATE_GROUP_CODE)),
    service: InvitationService = Depends(get_invitation_service),
) -> dict:
    """Issue an invitation code for a group.

    A group has at most one live code; asking again returns it unchanged.
    """
    code = await service.generate_group_code(context.require_profile(), data)
    return success(GroupCodeResponse(code=code))


@router.post(
    "/code/{code}",
    response_model=ApiResponse[ProfileResponse],
    summary="Submit group code",
)
async def submit_code(
    code: str,
    context: RequestContext = Depends(require(SUBMIT_CODE)),
    service: InvitationService = Depends(get_invitation_service),
) -> dict:
    """Join a group with an invitation code.

    The user's profile in the group gains the invited role, or a new
    profile is created. The code stops working once the join is committed.
    """
    profile = await service.submit_code(context.require_user(), code)
    return success(ProfileResponse.model_validate(profile))


@router.delete(
    "/code/{group_id}",
    response_model=ApiResponse[None],
    summary="Remove group code",
)
async def remove_group_code(
    group_id: UUID,
    context: RequestContext = Depends(require(REMOVE_GROUP_CODE)),
    service: InvitationService = Depends(get_invitation_service),
) -> dict:
    await service.remove_group_code(str(group_id))
    return success()


# =========================================================================
# Mail invitations
# =========================================================================


@router.post(
    "/mail",
    response_model=ApiResponse[list[InvitationResponse]],
    status_code=status.HTTP_201_CREATED,
    summary="Send invitation mails",
)
async def send_invitation_mails(
    data: SendInvitationMailsRequest,
    context: RequestContext = Depends(require(SEND_INVITATION_MAILS)),
    service: InvitationService = Depends(get_invitation_service),
) -> dict:
    requestor = context.require_profile()
    logger.info(
        "Sending %d invitations to %s %s, by=%s",
        len(data.emails),
        data.group_type.value,
        data.group_id,
        requestor.id,
    )

    invitations = await service.send_invitation_mails(context.require_user(), requestor, data)
    return success([InvitationResponse.model_validate(i) for i in invitations])


@router.delete(
    "/mail",
    response_model=ApiResponse[InvitationResponse],
    summary="Remove invitation",
)
async def remove_invitation(
    data: RemoveInvitationRequest,
    context: RequestContext = Depends(require(REMOVE_INVITATION)),
    service: InvitationService = Depends(get_invitation_service),
) -> dict:
    invitation = await service.remove_invitation(data)
    return success(InvitationResponse.model_validate(invitation))


@router.post(
    "/mail/{invitation_id}/accept",
    response_model=ApiResponse[ProfileResponse],
    summary="Accept invitation",
)
async def accept_invitation(
    invitation_id: UUID,
    context: RequestContext = Depends(require(ACCEPT_INVITATION)),
    service: InvitationService = Depends(get_invitation_service),
) -> dict:
    profile = await service.accept_invitation(context.require_user(), str(invitation_id))
    return success(ProfileResponse.model_validate(profile))
