# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the group content routers.

Services are replaced with AsyncMocks; the tests check the enforced action,
what the router hands the service and the rendered envelope.
"""

import uuid
from datetime import date
from unittest.mock import AsyncMock

import pytest

from academic_service.api.dependencies import (
    get_comment_service,
    get_grade_service,
    get_news_service,
    get_party_service,
    get_roll_call_service,
    get_subject_service,
)
from academic_service.core.constants import ProfileRole

from fakes import (
    make_comment,
    make_grade,
    make_news,
    make_party,
    make_profile,
    make_roll_call_entry,
    make_roll_call_session,
    make_subject,
)

pytestmark = pytest.mark.integration

API = "/api/v1"


def stub(app, dependency, **returns) -> AsyncMock:
    service = AsyncMock()
    for name, value in returns.items():
        getattr(service, name).return_value = value
    app.dependency_overrides[dependency] = lambda: service
    return service


def uid() -> str:
    return str(uuid.uuid4())


class TestPartyRoutes:
    def test_create_single_party(self, app, client, gate, headers):
        class_id = uid()
        gate.profile = make_profile(ProfileRole.TEACHER, profile_id="p-teacher")
        service = stub(app, get_party_service, create_parties=[make_party(class_id)])

        response = client.post(f"{API}/parties/{class_id}", json={"name": "Robotics"}, headers=headers)

        assert response.status_code == 201
        assert response.json()["data"][0]["class_id"] == class_id
        creator_id, target, requests = service.create_parties.await_args.args
        assert (creator_id, target) == ("p-teacher", class_id)
        assert [r.name for r in requests] == ["Robotics"]
        assert gate.actions == ["add-party"]

    def test_create_party_list(self, app, client, gate, headers):
        class_id = uid()
        gate.profile = make_profile(ProfileRole.TEACHER)
        service = stub(app, get_party_service, create_parties=[make_party(class_id), make_party(class_id)])

        response = client.post(
            f"{API}/parties/{class_id}", json=[{"name": "A"}, {"name": "B"}], headers=headers
        )

        assert response.status_code == 201
        assert len(service.create_parties.await_args.args[2]) == 2

    def test_remove_members(self, app, client, gate, headers):
        class_id, party_id, member = uid(), uid(), uid()
        gate.profile = make_profile(ProfileRole.TEACHER)
        service = stub(app, get_party_service, remove_members=make_party(class_id))

        response = client.request(
            "DELETE",
            f"{API}/parties/{class_id}/{party_id}/members",
            json={"member_ids": [member]},
            headers=headers,
        )

        assert response.status_code == 200
        service.remove_members.assert_awaited_once_with(class_id, party_id, [member])
        assert gate.actions == ["remove-party-members"]

    def test_denied(self, app, client, gate, headers):
        gate.deny = True
        service = stub(app, get_party_service)

        response = client.get(f"{API}/parties/{uid()}", headers=headers)

        assert response.status_code == 403
        service.list_parties.assert_not_awaited()


class TestSubjectRoutes:
    def test_remove_grade_types(self, app, client, gate, headers):
        class_id = uid()
        subject = make_subject(class_id, "Midterm")
        gate.profile = make_profile(ProfileRole.TEACHER)
        service = stub(app, get_subject_service, remove_grade_types=subject)

        response = client.request(
            "DELETE",
            f"{API}/subjects/{class_id}/{subject.id}/grade-types",
            json={"ids": ["gt-1"]},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["grade_types"][0]["name"] == "Midterm"
        service.remove_grade_types.assert_awaited_once_with(class_id, subject.id, ["gt-1"])
        assert gate.actions == ["remove-grade-types"]


class TestGradeRoutes:
    def test_add_grades(self, app, client, gate, headers):
        subject = make_subject(uid(), "Midterm")
        student = uid()
        gate.profile = make_profile(ProfileRole.TEACHER)
        service = stub(app, get_grade_service, add_grades=[make_grade(subject, student)])

        response = client.post(
            f"{API}/grades/subject/{subject.id}",
            json=[{"student_id": student, "grade_type_id": subject.grade_types[0]["id"], "value": 9}],
            headers=headers,
        )

        assert response.status_code == 201
        assert response.json()["data"][0]["student_id"] == student
        assert gate.actions == ["add-grade"]

    def test_student_grades_in_subject(self, app, client, gate, headers):
        student, subject_id = uid(), uid()
        gate.profile = make_profile(ProfileRole.PARENT)
        service = stub(app, get_grade_service, get_student_grades=[])

        response = client.get(f"{API}/grades/student/{student}/subject/{subject_id}", headers=headers)

        assert response.status_code == 200
        service.get_student_grades.assert_awaited_once_with(student, subject_id)
        assert gate.actions == ["view-grade"]


class TestNewsRoutes:
    def test_post_with_image(self, app, client, gate, headers):
        group_id = uid()
        teacher = make_profile(ProfileRole.TEACHER)
        gate.profile = teacher
        service = stub(app, get_news_service, create_news=make_news(teacher.id, group_id))

        response = client.post(
            f"{API}/news/{group_id}",
            data={"content": "Field trip", "target_roles": ["Student", "Parent"]},
            files={"image": ("trip.png", b"\x89PNG", "image/png")},
            headers=headers,
        )

        assert response.status_code == 201
        requestor, target, draft, image = service.create_news.await_args.args
        assert requestor is teacher
        assert target == group_id
        assert draft.content == "Field trip"
        assert draft.target_roles == [ProfileRole.STUDENT, ProfileRole.PARENT]
        assert image == b"\x89PNG"
        assert gate.actions == ["add-news"]

    def test_feed_query(self, app, client, gate, headers):
        gate.profile = make_profile(ProfileRole.STUDENT)
        service = stub(app, get_news_service, get_feed=[make_news("p-teacher", uid())])

        response = client.get(
            f"{API}/news", params={"from": "2025-03-01T08:00:00Z", "limit": 5}, headers=headers
        )

        assert response.status_code == 200
        assert len(response.json()["data"]) == 1
        kwargs = service.get_feed.await_args.kwargs
        assert kwargs["limit"] == 5
        assert kwargs["before"].year == 2025
        assert gate.actions == ["view-news-feed"]

    def test_own_news(self, app, client, gate, headers):
        gate.profile = make_profile(ProfileRole.TEACHER)
        service = stub(app, get_news_service, get_own=[])

        response = client.get(f"{API}/news/me", headers=headers)

        assert response.status_code == 200
        service.get_own.assert_awaited_once()
        assert gate.actions == ["view-news-feed"]


class TestCommentRoutes:
    def test_add_comment(self, app, client, gate, headers):
        news = make_news("p-teacher", uid())
        student = make_profile(ProfileRole.STUDENT)
        gate.profile = student
        service = stub(app, get_comment_service, add_comment=make_comment(news, student.id))

        response = client.post(f"{API}/comments/{news.id}", json={"content": "Great"}, headers=headers)

        assert response.status_code == 201
        service.add_comment.assert_awaited_once_with(student, news.id, "Great")
        assert gate.actions == ["add-comment"]

    def test_empty_comment_is_rejected(self, app, client, gate, headers):
        gate.profile = make_profile(ProfileRole.STUDENT)
        service = stub(app, get_comment_service)

        response = client.post(f"{API}/comments/{uid()}", json={"content": ""}, headers=headers)

        assert response.status_code == 400
        assert response.json()["code"] == 8
        service.add_comment.assert_not_awaited()


class TestRollCallRoutes:
    def test_open_session_on_date(self, app, client, gate, headers):
        class_id = uid()
        gate.profile = make_profile(ProfileRole.TEACHER, profile_id="p-teacher")
        service = stub(
            app, get_roll_call_service, create_session=make_roll_call_session(class_id, on=date(2025, 3, 3))
        )

        response = client.post(f"{API}/rollcalls/class/{class_id}", json={"date": "2025-03-03"}, headers=headers)

        assert response.status_code == 201
        assert response.json()["data"]["date"] == "2025-03-03"
        service.create_session.assert_awaited_once_with("p-teacher", class_id, date(2025, 3, 3))
        assert gate.actions == ["create-roll-call-sessions"]

    def test_update_entry(self, app, client, gate, headers):
        entry = make_roll_call_entry(make_roll_call_session(uid()), uid())
        gate.profile = make_profile(ProfileRole.TEACHER)
        service = stub(app, get_roll_call_service, update_entry=entry)

        response = client.patch(f"{API}/rollcalls/entry/{entry.id}", json={"status": "Present"}, headers=headers)

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "Present"
        assert gate.actions == ["update-roll-call-entry"]
