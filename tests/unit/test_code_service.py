# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for invitation codes."""

import re
from unittest.mock import patch

import pytest

from academic_service.core.constants import GroupType, ProfileRole
from academic_service.core.errors import BadRequestError, ServiceResponseError
from academic_service.domains.invitation import InvitationCodeService, generate_random_code
from academic_service.models.invitation import GroupTarget

pytestmark = pytest.mark.unit

CODE_PATTERN = re.compile(r"^[A-Z0-9]{6}$")


@pytest.fixture
def codes(cache, invitation_settings):
    return InvitationCodeService(cache, invitation_settings)


class TestGenerateRandomCode:
    def test_alphabet_and_length(self):
        for _ in range(50):
            assert CODE_PATTERN.match(generate_random_code(6))

    def test_length(self):
        assert len(generate_random_code(9)) == 9


class TestGenerate:
    """Tests for issuing codes."""

    @pytest.mark.asyncio
    async def test_stores_both_directions_with_one_ttl(self, codes, cache):
        code = await codes.generate("c1", GroupType.CLASS, ProfileRole.STUDENT, "s1", 30)

        assert CODE_PATTERN.match(code)
        assert cache.values["group_code:c1"] == code
        assert cache.values[f"group_code:{code}"] == {
            "groupId": "c1",
            "groupType": "Class",
            "newProfileRole": "Student",
            "schoolId": "s1",
            "expireMinutes": 30,
        }
        assert cache.ttls["group_code:c1"] == cache.ttls[f"group_code:{code}"] == 1800

    @pytest.mark.asyncio
    async def test_default_lifetime(self, codes, cache, invitation_settings):
        code = await codes.generate("s1", GroupType.SCHOOL, ProfileRole.TEACHER)

        assert cache.ttls[f"group_code:{code}"] == invitation_settings.default_code_expire_minutes * 60

    @pytest.mark.asyncio
    async def test_live_code_is_returned_unchanged(self, codes, cache):
        first = await codes.generate("c1", GroupType.CLASS, ProfileRole.STUDENT, None, 30)
        ttl = cache.ttls[f"group_code:{first}"]

        second = await codes.generate("c1", GroupType.CLASS, ProfileRole.PARENT, None, 120)

        assert second == first
        assert cache.ttls[f"group_code:{first}"] == ttl
        assert cache.values[f"group_code:{first}"]["newProfileRole"] == "Student"

    @pytest.mark.asyncio
    async def test_collision_redraws(self, codes, cache):
        cache.values["group_code:AAAAAA"] = {"groupId": "other"}

        with patch(
            "academic_service.domains.invitation.code_service.generate_random_code",
            side_effect=["AAAAAA", "BBBBBB"],
        ):
            code = await codes.generate("c1", GroupType.CLASS, ProfileRole.STUDENT)

        assert code == "BBBBBB"
        assert cache.values["group_code:AAAAAA"] == {"groupId": "other"}

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, codes, cache, invitation_settings):
        cache.values["group_code:AAAAAA"] = {"groupId": "other"}

        with patch(
            "academic_service.domains.invitation.code_service.generate_random_code",
            return_value="AAAAAA",
        ) as draw:
            with pytest.raises(ServiceResponseError):
                await codes.generate("c1", GroupType.CLASS, ProfileRole.STUDENT)

        assert draw.call_count == invitation_settings.max_code_generation_attempts
        assert "group_code:c1" not in cache.values


class TestRedeem:
    """Tests for reading codes."""

    @pytest.mark.asyncio
    async def test_redeem_does_not_consume(self, codes, cache):
        code = await codes.generate("c1", GroupType.CLASS, ProfileRole.STUDENT, "s1")

        data = await codes.redeem(code.lower())

        assert data.group_id == "c1"
        assert data.group_type == GroupType.CLASS
        assert data.new_profile_role == ProfileRole.STUDENT
        assert data.membership_group_id == "s1"
        assert data.membership_group_type == GroupType.SCHOOL
        assert f"group_code:{code}" in cache.values

    @pytest.mark.asyncio
    async def test_unknown_code(self, codes):
        with pytest.raises(BadRequestError, match="Invalid code"):
            await codes.redeem("ZZZZZZ")

    @pytest.mark.asyncio
    async def test_malformed_payload(self, codes, cache):
        cache.values["group_code:ABC123"] = {"groupId": "c1"}

        with pytest.raises(ServiceResponseError):
            await codes.redeem("ABC123")


class TestRemove:
    @pytest.mark.asyncio
    async def test_remove_both_keys(self, codes, cache):
        code = await codes.generate("c1", GroupType.CLASS, ProfileRole.STUDENT)

        await codes.remove("c1")

        assert cache.values == {}
        with pytest.raises(BadRequestError):
            await codes.redeem(code)

    @pytest.mark.asyncio
    async def test_remove_absent_is_noop(self, codes, cache):
        await codes.remove("c1")

        assert cache.values == {}

    @pytest.mark.asyncio
    async def test_remove_many(self, codes, cache):
        await codes.generate("s1", GroupType.SCHOOL, ProfileRole.TEACHER)
        await codes.generate("c1", GroupType.CLASS, ProfileRole.STUDENT, "s1")

        await codes.remove_many(["s1", "c1", "c2"])

        assert cache.values == {}


class TestExpiry:
    """Tests for codes outliving their TTL."""

    @pytest.mark.asyncio
    async def test_code_is_live_until_its_ttl_elapses(self, codes, cache):
        code = await codes.generate("c1", GroupType.CLASS, ProfileRole.STUDENT, None, 30)

        cache.advance(30 * 60 - 1)

        assert (await codes.redeem(code)).group_id == "c1"

    @pytest.mark.asyncio
    async def test_expired_code_is_invalid_and_group_gets_a_new_one(self, codes, cache):
        code = await codes.generate("c1", GroupType.CLASS, ProfileRole.STUDENT, None, 30)

        cache.advance(30 * 60)

        with pytest.raises(BadRequestError, match="Invalid code"):
            await codes.redeem(code)

        with patch(
            "academic_service.domains.invitation.code_service.generate_random_code",
            return_value="NEW123",
        ):
            renewed = await codes.generate("c1", GroupType.CLASS, ProfileRole.PARENT, None, 10)

        assert renewed == "NEW123"
        assert (await codes.redeem(renewed)).new_profile_role == ProfileRole.PARENT
        assert cache.ttls["group_code:c1"] == 600


class TestGroupTarget:
    """Tests for where a joining profile lives."""

    def test_school_class_lives_in_school(self):
        target = GroupTarget(group_id="c1", group_type=GroupType.CLASS, school_id="s1")

        assert target.is_school_class
        assert target.membership_group_id == "s1"
        assert target.membership_group_type == GroupType.SCHOOL

    def test_personal_class_lives_in_itself(self):
        target = GroupTarget(group_id="c1", group_type=GroupType.CLASS)

        assert not target.is_school_class
        assert target.membership_group_id == "c1"
        assert target.membership_group_type == GroupType.CLASS
