# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for News service."""

from unittest.mock import AsyncMock

import pytest

from academic_service.core.constants import ProfileRole, Relationship
from academic_service.core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from academic_service.domains.access_control import Edge
from academic_service.domains.content import NewsService
from academic_service.infrastructure.external.image_host import UploadedImage
from academic_service.models.content import NewsDraft

from fakes import FakeResult, make_news, make_profile, queued_results, stored

pytestmark = pytest.mark.unit

UPLOADED = UploadedImage("https://images.test/news.png", "https://images.test/delete/news")


@pytest.fixture
def image_host():
    host = AsyncMock()
    host.upload = AsyncMock(return_value=UPLOADED)
    return host


@pytest.fixture
def news_service(mock_db, graph, image_host):
    return NewsService(mock_db, graph, image_host)


@pytest.fixture
def teacher():
    return make_profile(ProfileRole.TEACHER, group_id="school-1")


class TestCreateNews:
    @pytest.mark.asyncio
    async def test_audience_includes_creator_role(self, news_service, mock_db, teacher):
        news = await news_service.create_news(
            teacher, "c1", NewsDraft(content="Exam on Monday", target_roles=[ProfileRole.STUDENT])
        )

        assert news.target_roles == ["Student", "Teacher"]
        assert news.creator_id == teacher.id
        assert news.group_id == "c1"
        mock_db.add.assert_called_once_with(news)
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_empty_audience_means_everyone(self, news_service, teacher):
        news = await news_service.create_news(teacher, "c1", NewsDraft(content="Hello"))

        assert news.target_roles == []

    @pytest.mark.asyncio
    async def test_teacher_cannot_address_executives(self, news_service, mock_db, teacher):
        with pytest.raises(ForbiddenError, match="higher than your own"):
            await news_service.create_news(
                teacher, "c1", NewsDraft(content="Hi", target_roles=[ProfileRole.EXECUTIVE])
            )

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_image_and_image_url_conflict(self, news_service, image_host, teacher):
        with pytest.raises(ConflictError, match="at the same time"):
            await news_service.create_news(
                teacher, "c1", NewsDraft(content="Hi", image_url="https://x.test/a.png"), b"\x89PNG"
            )

        image_host.upload.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_content_is_required(self, news_service, teacher):
        with pytest.raises(BadRequestError):
            await news_service.create_news(teacher, "c1", NewsDraft())

    @pytest.mark.asyncio
    async def test_uploaded_image_is_used(self, news_service, image_host, teacher):
        news = await news_service.create_news(teacher, "c1", NewsDraft(content="Trip"), b"\x89PNG")

        assert news.image_url == UPLOADED.url
        image_host.upload.assert_awaited_once_with(b"\x89PNG")

    @pytest.mark.asyncio
    async def test_upload_is_deleted_when_persisting_fails(self, news_service, mock_db, image_host, teacher):
        mock_db.flush = AsyncMock(side_effect=RuntimeError("db down"))

        with pytest.raises(RuntimeError):
            await news_service.create_news(teacher, "c1", NewsDraft(content="Trip"), b"\x89PNG")

        image_host.delete.assert_awaited_once_with(UPLOADED)
        mock_db.rollback.assert_awaited_once()


class TestUpdateNews:
    @pytest.mark.asyncio
    async def test_creator_updates(self, news_service, mock_db, teacher):
        news = make_news(teacher.id, "c1", ProfileRole.STUDENT)
        stored(mock_db, news)

        await news_service.update_news(teacher, "c1", news.id, NewsDraft(content="Moved to Tuesday"))

        assert news.content == "Moved to Tuesday"
        assert news.target_roles == ["Student"]

    @pytest.mark.asyncio
    async def test_others_cannot_update(self, news_service, mock_db, teacher):
        news = make_news("p-other", "c1")
        stored(mock_db, news)

        with pytest.raises(ForbiddenError, match="created by others"):
            await news_service.update_news(teacher, "c1", news.id, NewsDraft(content="Mine now"))

    @pytest.mark.asyncio
    async def test_group_mismatch(self, news_service, mock_db, teacher):
        news = make_news(teacher.id, "c-other")
        stored(mock_db, news)

        with pytest.raises(ConflictError, match="groupId does not match"):
            await news_service.update_news(teacher, "c1", news.id, NewsDraft(content="x"))


class TestDeleteNews:
    """Others' news goes only to a higher rank, never Students' or Parents'."""

    @pytest.mark.asyncio
    async def test_creator_deletes_with_comments(self, news_service, mock_db, teacher):
        news = make_news(teacher.id, "c1")
        stored(mock_db, news)

        await news_service.delete_news(teacher, "c1", news.id)

        assert "DELETE FROM comments" in str(mock_db.execute.await_args_list[0].args[0])
        mock_db.delete.assert_awaited_once_with(news)
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_executive_deletes_teacher_news(self, news_service, mock_db, teacher):
        executive = make_profile(ProfileRole.EXECUTIVE)
        news = make_news(teacher.id, "c1")
        stored(mock_db, news, teacher)

        await news_service.delete_news(executive, "c1", news.id)

        mock_db.delete.assert_awaited_once_with(news)

    @pytest.mark.asyncio
    async def test_peer_cannot_delete(self, news_service, mock_db, teacher):
        colleague = make_profile(ProfileRole.TEACHER)
        news = make_news(teacher.id, "c1")
        stored(mock_db, news, teacher)

        with pytest.raises(ForbiddenError, match="Cannot delete news created by others"):
            await news_service.delete_news(colleague, "c1", news.id)

    @pytest.mark.asyncio
    async def test_student_news_is_only_deleted_by_its_creator(self, news_service, mock_db, teacher):
        student = make_profile(ProfileRole.STUDENT)
        news = make_news(student.id, "c1")
        stored(mock_db, news, student)

        with pytest.raises(ForbiddenError):
            await news_service.delete_news(teacher, "c1", news.id)


class TestGetNews:
    @pytest.mark.asyncio
    async def test_addressed_to_requestor(self, news_service, mock_db):
        student = make_profile(ProfileRole.STUDENT)
        news = make_news("p-teacher", "c1", ProfileRole.STUDENT, ProfileRole.TEACHER)
        stored(mock_db, news)

        assert await news_service.get_news(student, "c1", news.id) is news

    @pytest.mark.asyncio
    async def test_not_addressed_to_requestor(self, news_service, mock_db):
        parent = make_profile(ProfileRole.PARENT)
        news = make_news("p-teacher", "c1", ProfileRole.STUDENT, ProfileRole.TEACHER)
        stored(mock_db, news)

        with pytest.raises(ForbiddenError, match="not accessible"):
            await news_service.get_news(parent, "c1", news.id)

    @pytest.mark.asyncio
    async def test_news_of_another_group(self, news_service, mock_db):
        news = make_news("p-teacher", "c-other")
        stored(mock_db, news)

        with pytest.raises(ConflictError, match="News not found in the group"):
            await news_service.get_news(make_profile(ProfileRole.STUDENT), "c1", news.id)

    @pytest.mark.asyncio
    async def test_missing(self, news_service):
        with pytest.raises(NotFoundError, match="News not found"):
            await news_service.get_news(make_profile(ProfileRole.STUDENT), "c1", "missing")


class TestFeed:
    @pytest.mark.asyncio
    async def test_follows_related_groups(self, news_service, mock_db, graph):
        student = make_profile(ProfileRole.STUDENT, group_id="school-1")
        graph.edges.add(Edge(student.id, "c1", Relationship.ENROLLED_IN))
        graph.edges.add(Edge(student.id, "school-1", Relationship.STUDIES_AT))
        news = make_news("p-teacher", "c1")
        mock_db.execute = queued_results(FakeResult([news]))

        feed = await news_service.get_feed(student, limit=5)

        assert feed == [news]
        statement = str(mock_db.execute.await_args.args[0])
        assert "jsonb_array_length" in statement
        assert "ORDER BY news.created_at DESC" in statement

    @pytest.mark.asyncio
    async def test_executive_sees_every_audience(self, news_service, mock_db):
        executive = make_profile(ProfileRole.EXECUTIVE)

        await news_service.get_feed(executive)

        assert "jsonb_array_length" not in str(mock_db.execute.await_args.args[0])

    @pytest.mark.asyncio
    async def test_own_news(self, news_service, mock_db, teacher):
        await news_service.get_own(teacher, limit=3)

        assert "news.creator_id" in str(mock_db.execute.await_args.args[0])
