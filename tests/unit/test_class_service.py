# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for Class service."""

import pytest

from academic_service.core.constants import GroupType, ProfileRole, Relationship
from academic_service.core.errors import ForbiddenError, NotFoundError, ServiceUnavailableError
from academic_service.domains.access_control import Edge
from academic_service.domains.class_ import ClassService
from academic_service.domains.group import establish_memberships
from academic_service.domains.invitation import InvitationCodeService
from academic_service.infrastructure.database.models import Profile
from academic_service.models.school import ClassCreateRequest, ClassUpdateRequest

from fakes import FakeResult, make_class, make_profile, make_school, queued_results, stored

pytestmark = pytest.mark.unit


@pytest.fixture
def codes(cache, invitation_settings):
    return InvitationCodeService(cache, invitation_settings)


@pytest.fixture
def class_service(mock_db, graph, codes):
    return ClassService(mock_db, graph, codes)


def added(mock_db) -> list:
    return [entity for call in mock_db.add_all.call_args_list for entity in call.args[0]]


class TestCreatePersonalClass:
    @pytest.mark.asyncio
    async def test_creator_becomes_teacher_of_the_class(self, class_service, mock_db, graph, user):
        school_class = await class_service.create_class(user, ClassCreateRequest(name="Piano"))

        teacher = next(e for e in added(mock_db) if isinstance(e, Profile))
        assert school_class.is_personal
        assert school_class.creator_id == teacher.id
        assert teacher.roles == ["Teacher"]
        assert teacher.group == GroupType.CLASS
        assert teacher.group_id == school_class.id
        assert teacher.display_name == user.name
        assert graph.edges == {
            Edge(teacher.id, school_class.id, Relationship.MANAGES),
            Edge(teacher.id, school_class.id, Relationship.CREATOR),
            Edge(teacher.id, teacher.id, Relationship.OWN),
        }
        mock_db.commit.assert_awaited_once()


class TestCreateSchoolClass:
    """School classes are managed by every executive of the school."""

    @pytest.mark.asyncio
    async def test_executives_manage_and_creator_creates(self, class_service, mock_db, graph, user):
        school = make_school("p-first")
        creator = make_profile(ProfileRole.EXECUTIVE, group_id=school.id, user_id=user.id)
        colleague = make_profile(ProfileRole.EXECUTIVE, ProfileRole.TEACHER, group_id=school.id)
        stored(mock_db, school)
        mock_db.execute = queued_results(FakeResult([creator, colleague]))

        school_class = await class_service.create_class(
            user, ClassCreateRequest(name="7A", school_id=school.id)
        )

        assert school_class.school_id == school.id
        assert school_class.creator_id == creator.id
        assert [e for e in added(mock_db) if isinstance(e, Profile)] == []
        assert graph.edges == {
            Edge(creator.id, school_class.id, Relationship.MANAGES),
            Edge(colleague.id, school_class.id, Relationship.MANAGES),
            Edge(creator.id, school_class.id, Relationship.CREATOR),
        }

    @pytest.mark.asyncio
    async def test_non_executive_is_forbidden(self, class_service, mock_db, graph, user):
        school = make_school("p-first")
        stored(mock_db, school)
        mock_db.execute = queued_results(FakeResult([make_profile(ProfileRole.EXECUTIVE, group_id=school.id)]))

        with pytest.raises(ForbiddenError):
            await class_service.create_class(user, ClassCreateRequest(name="7A", school_id=school.id))

        mock_db.add_all.assert_not_called()
        assert graph.calls == []

    @pytest.mark.asyncio
    async def test_missing_school(self, class_service, user):
        with pytest.raises(NotFoundError, match="School not found"):
            await class_service.create_class(
                user, ClassCreateRequest(name="7A", school_id="0b7c5a36-7a5e-4f8e-a8c1-0d3b0f7c9a11")
            )


class TestGetBySchool:
    """Visibility of school classes."""

    @pytest.mark.asyncio
    async def test_executive_sees_every_class(self, class_service, mock_db, graph):
        executive = make_profile(ProfileRole.EXECUTIVE)
        classes = [make_class(executive.id, executive.group_id, name=n) for n in ("7A", "7B")]
        mock_db.execute.return_value = FakeResult(classes)

        assert await class_service.get_by_school(executive, executive.group_id) == classes
        assert graph.calls == []

    @pytest.mark.asyncio
    async def test_student_sees_enrolled_classes(self, class_service, mock_db, graph):
        student = make_profile(ProfileRole.STUDENT)
        enrolled, other = (make_class("p-exec", student.group_id, name=n) for n in ("7A", "7B"))
        mock_db.execute.return_value = FakeResult([enrolled, other])
        await graph.upsert(
            [
                Edge(student.id, enrolled.id, Relationship.ENROLLED_IN),
                Edge(student.id, other.id, Relationship.HAS_CHILD_IN),
            ]
        )

        assert await class_service.get_by_school(student, student.group_id) == [enrolled]


class TestUpdateClass:
    @pytest.mark.asyncio
    async def test_rename(self, class_service, mock_db):
        school_class = make_class("p1")
        stored(mock_db, school_class)

        updated = await class_service.update_class(school_class.id, ClassUpdateRequest(name="8A"))

        assert updated.name == "8A"
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_class(self, class_service):
        with pytest.raises(NotFoundError):
            await class_service.update_class("missing", ClassUpdateRequest(name="8A"))


class TestDeleteClass:
    """Tests for class deletion."""

    @pytest.mark.asyncio
    async def test_personal_class_purges_its_profiles(self, class_service, mock_db, graph, codes, cache):
        school_class = make_class("p-teacher")
        stored(mock_db, school_class)
        mock_db.execute = queued_results(FakeResult(["p-teacher", "p-student"]))
        await codes.generate(school_class.id, GroupType.CLASS, ProfileRole.STUDENT)
        await graph.upsert(
            [
                Edge("p-teacher", school_class.id, Relationship.CREATOR),
                Edge("p-teacher", "p-student", Relationship.TEACHES),
                Edge("p-student", "p-student", Relationship.OWN),
            ]
        )

        deleted = await class_service.delete_class("p-teacher", school_class.id)

        assert deleted is school_class
        mock_db.delete.assert_awaited_once_with(school_class)
        assert graph.edges == set()
        assert cache.values == {}
        assert "unbind" not in graph.calls

    @pytest.mark.asyncio
    async def test_school_class_unbinds_members(self, class_service, mock_db, graph):
        school = make_school("p-exec")
        school_class = make_class("p-exec", school.id)
        stored(mock_db, school, school_class)
        teacher = make_profile(ProfileRole.TEACHER, group_id=school.id)
        student = make_profile(ProfileRole.STUDENT, group_id=school.id)
        await graph.upsert([Edge("p-exec", school_class.id, Relationship.CREATOR)])
        await establish_memberships(graph, [teacher, student], GroupType.CLASS, school_class.id)
        await graph.upsert([Edge(student.id, school.id, Relationship.STUDIES_AT)])

        await class_service.delete_class("p-exec", school_class.id)

        assert graph.edges == {Edge(student.id, school.id, Relationship.STUDIES_AT)}
        assert graph.calls.index("unbind") < graph.calls.index("delete_by_entity_ids")
        mock_db.execute.assert_awaited()

    @pytest.mark.asyncio
    async def test_only_creator_can_delete(self, class_service, mock_db, graph):
        school_class = make_class("p-teacher")
        stored(mock_db, school_class)

        with pytest.raises(NotFoundError):
            await class_service.delete_class("p-other", school_class.id)

        mock_db.delete.assert_not_called()
        mock_db.rollback.assert_awaited_once()
        assert graph.calls == []

    @pytest.mark.asyncio
    async def test_failed_purge_fails_delete_after_commit(self, class_service, mock_db, graph):
        school_class = make_class("p-teacher")
        stored(mock_db, school_class)
        mock_db.execute = queued_results(FakeResult(["p-teacher"]))
        await graph.upsert([Edge("p-teacher", school_class.id, Relationship.CREATOR)])
        graph.fail_on["delete_by_entity_ids"] = ServiceUnavailableError("AccessControlService")

        with pytest.raises(ServiceUnavailableError):
            await class_service.delete_class("p-teacher", school_class.id)

        mock_db.delete.assert_awaited_once_with(school_class)
        mock_db.commit.assert_awaited_once()
        mock_db.rollback.assert_not_called()
        assert graph.has("p-teacher", school_class.id, Relationship.CREATOR)

    @pytest.mark.asyncio
    async def test_failed_unbind_rolls_back(self, class_service, mock_db, graph):
        school_class = make_class("p-exec", "school-1")
        stored(mock_db, school_class)
        await graph.upsert([Edge("p-exec", school_class.id, Relationship.MANAGES)])
        graph.fail_on["unbind"] = RuntimeError("graph down")

        with pytest.raises(RuntimeError):
            await class_service.delete_class("p-exec", school_class.id)

        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_called()
        assert graph.has("p-exec", school_class.id, Relationship.MANAGES)
