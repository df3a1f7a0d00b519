# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Invitation service: joining groups through codes and mail invitations.

Both ways of joining end in the same membership change:

- a user with a profile in the group gains the invited role
- a mail invitation may target an existing user-less profile, which the
  accepting user claims
- otherwise a new profile is created; invitations to a school class create
  the profile in the school and bind it to both the class and the school

Invitation codes are removed only once the membership change is committed.

Example:
    >>> service = InvitationService(db, graph, codes, communication, settings.invitation)
    >>> profile = await service.submit_code(user, "K7Q2ZD")
"""

import logging
from typing import TYPE_CHECKING, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academic_service.core.constants import GroupType, ProfileRole
from academic_service.core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from academic_service.core.roles import dedupe_roles, is_allowed_to_assign_roles, is_roles_valid
from academic_service.domains.access_control.context import CurrentUser
from academic_service.domains.access_control.graph import RelationshipGraphClient
from academic_service.domains.group import establish_memberships, require_group
from academic_service.domains.invitation.code_service import InvitationCodeService
from academic_service.domains.orchestration import CompensatingTransaction, Step
from academic_service.domains.profile.service import ProfileService, own_edges
from academic_service.infrastructure.database.models import Invitation, Profile, SchoolClass, new_id
from academic_service.infrastructure.external.communication import (
    CommunicationClient,
    InvitationMail,
    InvitationRecipient,
)
from academic_service.models.invitation import (
    GenerateGroupCodeRequest,
    GroupTarget,
    RemoveInvitationRequest,
    SendInvitationMailsRequest,
)
from academic_service.utils.datetime import is_expired, minutes_from_now

if TYPE_CHECKING:
    from academic_service.core.config.settings import InvitationSettings

logger = logging.getLogger(__name__)

MEMBER_DISPLAY_NAME = "Member"


class InvitationService:
    """Service for invitation codes and mail invitations.

    Attributes:
        _db: Async database session.
        _graph: Relationship graph client.
        _codes: Invitation code service.
        _communication: Mail delivery client.
        _settings: Invitation settings.
    """

    def __init__(
        self,
        db: AsyncSession,
        graph: RelationshipGraphClient,
        codes: InvitationCodeService,
        communication: CommunicationClient,
        settings: "InvitationSettings",
    ) -> None:
        self._db = db
        self._graph = graph
        self._codes = codes
        self._communication = communication
        self._settings = settings
        self._profiles = ProfileService(db, graph)

    # =========================================================================
    # Invitation codes
    # =========================================================================

    async def generate_group_code(self, requestor: Profile, request: GenerateGroupCodeRequest) -> str:
        """Issue (or return the live) invitation code of a group.

        Raises:
            ForbiddenError: If the requestor may not grant the role.
            NotFoundError: If the group does not exist.
        """
        _require_assignable(requestor, request.new_profile_role)

        group_id = str(request.group_id)
        group = await require_group(self._db, request.group_type, group_id)
        school_id = group.school_id if isinstance(group, SchoolClass) else None

        return await self._codes.generate(
            group_id,
            request.group_type,
            request.new_profile_role,
            school_id,
            request.expire_minutes,
        )

    async def remove_group_code(self, group_id: str) -> None:
        await self._codes.remove(group_id)

    async def submit_code(self, user: CurrentUser, code: str) -> Profile:
        """Join the group an invitation code admits to.

        Raises:
            BadRequestError: If the code is unknown or expired.
            ConflictError: If the invited role cannot be combined with the
                user's existing roles.
        """
        data = await self._codes.redeem(code)

        async with CompensatingTransaction(self._db, "submit-code") as tx:
            profile = await self._join_group(tx, user, data, data.new_profile_role)
            tx.after_commit(
                "remove-invitation-code", lambda: self._codes.remove(data.group_id), best_effort=True
            )

        logger.info("Code redeemed by user %s into %s %s", user.id, data.group_type.value, data.group_id)
        return profile

    # =========================================================================
    # Mail invitations
    # =========================================================================

    async def send_invitation_mails(
        self,
        user: CurrentUser,
        requestor: Profile,
        request: SendInvitationMailsRequest,
    ) -> list[Invitation]:
        """Record mail invitations and have them delivered.

        Raises:
            ForbiddenError: If the requestor may not grant the role.
            NotFoundError: If the group does not exist.
        """
        _require_assignable(requestor, request.role)

        group_id = str(request.group_id)
        group = await require_group(self._db, request.group_type, group_id)
        school_id = group.school_id if isinstance(group, SchoolClass) else None
        expire_minutes = request.expire_minutes or self._settings.default_mail_expire_minutes

        invitations = [
            Invitation(
                id=new_id(),
                email=str(email),
                group_id=group_id,
                group_type=request.group_type.value,
                role=request.role.value,
                school_id=school_id,
                profile_id=str(request.profile_id) if request.profile_id else None,
                sender_id=requestor.id,
                expired_at=minutes_from_now(expire_minutes),
            )
            for email in dict.fromkeys(request.emails)
        ]
        mail = InvitationMail(
            group_name=group.name,
            group_type=request.group_type.value,
            sender_name=requestor.display_name,
            recipients=[
                InvitationRecipient(
                    email=invitation.email,
                    name=invitation.email.split("@")[0],
                    role=invitation.role,
                    expired_at=invitation.expired_at,
                    navigate_url=f"{self._settings.client_url}/invitation/{invitation.id}",
                )
                for invitation in invitations
            ],
        )

        async with CompensatingTransaction(self._db, "send-invitation-mails") as tx:
            self._db.add_all(invitations)
            await self._db.flush()
            await tx.step("send-mails", self._communication.send_invitation(user.id, mail))

        return invitations

    async def remove_invitation(self, request: RemoveInvitationRequest) -> Invitation:
        """Withdraw a mail invitation.

        Raises:
            NotFoundError: If no such invitation exists.
        """
        result = await self._db.execute(
            select(Invitation).where(
                Invitation.email == str(request.email),
                Invitation.group_id == str(request.group_id),
                Invitation.group_type == request.group_type.value,
            )
        )
        invitation = result.scalar_one_or_none()
        if invitation is None:
            raise NotFoundError("Invitation not found")

        await self._db.delete(invitation)
        await self._db.commit()
        return invitation

    async def accept_invitation(self, user: CurrentUser, invitation_id: str) -> Profile:
        """Join the group of a mail invitation, then discard the invitation.

        Raises:
            NotFoundError: If the invitation does not exist.
            BadRequestError: If the invitation has expired.
            ForbiddenError: If the invitation targets another profile.
            ConflictError: If the invited role cannot be combined with the
                user's existing roles.
        """
        invitation = await self._db.get(Invitation, invitation_id)
        if invitation is None:
            raise NotFoundError("Invitation not found")
        if is_expired(invitation.expired_at):
            raise BadRequestError("Invitation has expired")

        async with CompensatingTransaction(self._db, "accept-invitation") as tx:
            target = GroupTarget(
                group_id=invitation.group_id,
                group_type=GroupType(invitation.group_type),
                school_id=invitation.school_id,
            )
            profile = await self._join_group(
                tx, user, target, ProfileRole(invitation.role), claim_profile_id=invitation.profile_id
            )
            await self._db.delete(invitation)
            await self._db.flush()

        logger.info("Invitation %s accepted by user %s", invitation_id, user.id)
        return profile

    # =========================================================================
    # Membership
    # =========================================================================

    async def _join_group(
        self,
        tx: CompensatingTransaction,
        user: CurrentUser,
        target: GroupTarget,
        role: ProfileRole,
        claim_profile_id: Optional[str] = None,
    ) -> Profile:
        membership_id = target.membership_group_id
        membership_type = target.membership_group_type

        existing = await self._profiles.get_by_user_group_ids(user.id, membership_id)
        if existing is not None:
            if claim_profile_id and existing.id != claim_profile_id:
                raise ForbiddenError("Profile id does not match with the invitation")
            await self._add_role(tx, existing, role)
            if target.is_school_class:
                await self._bind_to_class(tx, existing, target.group_id)
            return existing

        if claim_profile_id:
            claimed = await self._profiles.get_by_id(claim_profile_id)
            if claimed.group_id != membership_id or claimed.user_id not in (None, user.id):
                raise ForbiddenError("Profile cannot be claimed with this invitation")
            claimed.user_id = user.id
            await self._add_role(tx, claimed, role)
            if target.is_school_class:
                await self._bind_to_class(tx, claimed, target.group_id)
            return claimed

        profile = Profile(
            id=new_id(),
            user_id=user.id,
            display_name=user.name or MEMBER_DISPLAY_NAME,
            roles=[role.value],
            group_id=membership_id,
            group_type=membership_type.value,
        )
        self._db.add(profile)
        await self._db.flush()

        edges = own_edges([profile])
        steps = [
            Step(
                f"bind-{membership_type.value.lower()}",
                establish_memberships(self._graph, [profile], membership_type, membership_id),
            ),
            Step("upsert-own-edge", self._graph.upsert(edges), lambda: self._graph.delete_edges(edges)),
        ]
        if target.is_school_class:
            steps.append(
                Step(
                    "bind-class",
                    establish_memberships(self._graph, [profile], GroupType.CLASS, target.group_id),
                )
            )
        await tx.gather(*steps)
        return profile

    async def _add_role(self, tx: CompensatingTransaction, profile: Profile, role: ProfileRole) -> None:
        """Grant an invited role to an existing profile."""
        roles = dedupe_roles([*profile.role_set, role])
        if not is_roles_valid(roles):
            raise ConflictError("Invalid roles invoked by the invitation")

        if role in profile.role_set:
            await self._db.flush()
            return

        old_priority = profile.priority_role
        profile.roles = [r.value for r in roles]
        await self._db.flush()
        await self._profiles.rebind_priority(tx, profile, old_priority)

    async def _bind_to_class(self, tx: CompensatingTransaction, profile: Profile, class_id: str) -> None:
        """Bind a school profile to a class of its school, unless already linked."""
        if await self._graph.query_between(profile.id, class_id):
            return
        await tx.step(
            "bind-class",
            establish_memberships(self._graph, [profile], GroupType.CLASS, class_id),
        )


def _require_assignable(requestor: Profile, role: ProfileRole) -> None:
    if not is_allowed_to_assign_roles(requestor.role_set, [role]):
        raise ForbiddenError("Requestor is not allowed to assign the specified role")
