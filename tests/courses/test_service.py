"""Tests for CourseService."""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from learnhub.courses.models import CourseModule, Resource, ResourceType, dump_modules
from learnhub.courses.schemas import CreateCourseRequest, UpdateCourseRequest
from learnhub.courses.service import (
    CourseNotFoundError,
    CourseService,
    NotCourseOwnerError,
)


@pytest.fixture
def course_service(mock_session) -> CourseService:
    return CourseService(session=mock_session, keyspace="test_keyspace")


@pytest.fixture
def course_row(row):
    def _course_row(coach_id=None, created_at=None, **overrides):
        modules = [
            CourseModule(
                title="A",
                order=0,
                resources=[
                    Resource(
                        type=ResourceType.VIDEO,
                        title="Intro",
                        youtube_url="https://youtu.be/abc",
                    )
                ],
            )
        ]
        values = {
            "id": uuid4(),
            "coach_id": coach_id or uuid4(),
            "title": "Python 101",
            "description": "",
            "thumbnail_url": None,
            "modules": dump_modules(modules),
            "created_at": created_at or datetime(2024, 1, 1),
            "updated_at": None,
        }
        values.update(overrides)
        return row(**values)

    return _course_row


class TestCreateCourse:
    async def test_create_keeps_client_resource_ids(
        self, course_service, mock_session
    ) -> None:
        coach_id = uuid4()
        resource_id = uuid4()
        data = CreateCourseRequest(
            title="  Python 101  ",
            modules=[
                {
                    "title": "A",
                    "order": 0,
                    "resources": [
                        {
                            "id": str(resource_id),
                            "type": "document",
                            "title": "Notes",
                            "content": "text",
                        }
                    ],
                }
            ],
        )

        course = await course_service.create_course(data, coach_id)

        assert course.title == "Python 101"
        assert course.coach_id == coach_id
        assert course.modules[0].resources[0].id == resource_id
        # course row + coach lookup row
        assert mock_session.aexecute.await_count == 2


class TestOwnership:
    async def test_get_owned_course(
        self, course_service, mock_session, result, course_row
    ) -> None:
        coach_id = uuid4()
        mock_session.aexecute = AsyncMock(return_value=result(course_row(coach_id)))

        course = await course_service.get_owned_course(uuid4(), coach_id)

        assert course.coach_id == coach_id

    async def test_other_coach_rejected(
        self, course_service, mock_session, result, course_row
    ) -> None:
        mock_session.aexecute = AsyncMock(return_value=result(course_row()))

        with pytest.raises(NotCourseOwnerError):
            await course_service.get_owned_course(uuid4(), uuid4())

    async def test_missing_course(self, course_service, mock_session, result) -> None:
        mock_session.aexecute = AsyncMock(return_value=result())

        with pytest.raises(CourseNotFoundError):
            await course_service.update_course(uuid4(), UpdateCourseRequest(), uuid4())


class TestUpdateCourse:
    async def test_partial_update(
        self, course_service, mock_session, result, course_row
    ) -> None:
        coach_id = uuid4()
        stored = course_row(coach_id, thumbnail_url="https://img.test/a.png")
        mock_session.aexecute = AsyncMock(side_effect=[result(stored), result()])

        course = await course_service.update_course(
            stored.id, UpdateCourseRequest(title="Python 102"), coach_id
        )

        assert course.title == "Python 102"
        assert course.thumbnail_url == "https://img.test/a.png"
        assert course.total_resources == 1
        assert course.updated_at is not None

    async def test_clear_thumbnail(
        self, course_service, mock_session, result, course_row
    ) -> None:
        coach_id = uuid4()
        stored = course_row(coach_id, thumbnail_url="https://img.test/a.png")
        mock_session.aexecute = AsyncMock(side_effect=[result(stored), result()])

        course = await course_service.update_course(
            stored.id, UpdateCourseRequest(thumbnail_url=None), coach_id
        )

        assert course.thumbnail_url is None


class TestListCourses:
    async def test_newest_first_with_pagination(
        self, course_service, mock_session, result, course_row
    ) -> None:
        base = datetime(2024, 1, 1)
        rows = [course_row(created_at=base + timedelta(days=i)) for i in range(5)]
        mock_session.aexecute = AsyncMock(return_value=result(*rows))

        page, total = await course_service.list_courses(limit=2, offset=1)

        assert total == 5
        assert [c.id for c in page] == [rows[3].id, rows[2].id]

    async def test_by_coach(
        self, course_service, mock_session, result, row, course_row
    ) -> None:
        coach_id = uuid4()
        stored = course_row(coach_id)
        missing_id = uuid4()
        mock_session.aexecute = AsyncMock(
            side_effect=[
                result(row(course_id=stored.id), row(course_id=missing_id)),
                result(stored),
                result(),
            ]
        )

        page, total = await course_service.list_courses(coach_id=coach_id)

        assert total == 2
        assert [c.id for c in page] == [stored.id]


async def test_delete_course(course_service, mock_session, result, course_row):
    coach_id = uuid4()
    stored = course_row(coach_id)
    mock_session.aexecute = AsyncMock(return_value=result(stored))

    await course_service.delete_course(stored.id, coach_id)

    # lookup, course delete, coach lookup delete
    assert mock_session.aexecute.await_count == 3
