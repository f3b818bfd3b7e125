"""Tests for AssignmentService."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from learnhub.assignments.models import (
    Assignment,
    AssignmentType,
    MCQOption,
    MCQQuestion,
)
from learnhub.assignments.schemas import (
    CreateAssignmentRequest,
    UpdateAssignmentRequest,
)
from learnhub.assignments.service import (
    AssignmentNotFoundError,
    AssignmentService,
    InvalidAssignmentError,
    to_response,
)
from learnhub.courses.models import Course
from learnhub.courses.service import NotCourseOwnerError


@pytest.fixture
def course_service() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def assignment_service(mock_session, course_service) -> AssignmentService:
    return AssignmentService(
        session=mock_session, keyspace="test_keyspace", course_service=course_service
    )


def _quiz(course_id=None) -> Assignment:
    return Assignment(
        course_id=course_id or uuid4(),
        title="Quiz",
        type=AssignmentType.MCQ,
        mcq_questions=[
            MCQQuestion(
                question_text="2 + 2?",
                options=[MCQOption(text="3"), MCQOption(text="4", is_correct=True)],
            )
        ],
    )


def _assignment_row(row, assignment: Assignment):
    return row(
        id=assignment.id,
        course_id=assignment.course_id,
        module_id=assignment.module_id,
        title=assignment.title,
        type=assignment.type.value,
        mcq_questions=assignment.mcq_questions_json,
        subjective_questions=assignment.subjective_questions_json,
        created_at=assignment.created_at,
        updated_at=None,
    )


class TestToResponse:
    def test_answer_key_hidden(self) -> None:
        response = to_response(_quiz(), reveal_answers=False)
        options = response.mcq_questions[0].options
        assert [o.is_correct for o in options] == [None, None]
        assert [o.text for o in options] == ["3", "4"]

    def test_answer_key_revealed(self) -> None:
        response = to_response(_quiz(), reveal_answers=True)
        assert [o.is_correct for o in response.mcq_questions[0].options] == [
            False,
            True,
        ]

    def test_hiding_does_not_touch_entity(self) -> None:
        quiz = _quiz()
        to_response(quiz, reveal_answers=False)
        assert quiz.mcq_questions[0].options[1].is_correct is True


class TestCreateAssignment:
    async def test_create(self, assignment_service, course_service, mock_session) -> None:
        coach_id = uuid4()
        course_id = uuid4()
        course_service.get_owned_course.return_value = Course(
            id=course_id, coach_id=coach_id, title="Python"
        )
        data = CreateAssignmentRequest(
            title=" Quiz ",
            type="subjective",
            course_id=course_id,
            subjective_questions=[{"question_text": "Explain GIL", "max_words": 200}],
        )

        assignment = await assignment_service.create_assignment(data, coach_id)

        assert assignment.title == "Quiz"
        assert assignment.subjective_questions[0].max_words == 200
        course_service.get_owned_course.assert_awaited_once_with(course_id, coach_id)
        assert mock_session.aexecute.await_count == 2

    async def test_foreign_course(self, assignment_service, course_service) -> None:
        course_service.get_owned_course.side_effect = NotCourseOwnerError()
        data = CreateAssignmentRequest(
            title="Quiz",
            type="mcq",
            course_id=uuid4(),
            mcq_questions=[
                {
                    "question_text": "?",
                    "options": [{"text": "a", "is_correct": True}, {"text": "b"}],
                }
            ],
        )

        with pytest.raises(NotCourseOwnerError):
            await assignment_service.create_assignment(data, uuid4())


class TestUpdateAssignment:
    async def test_switching_type_needs_questions(
        self, assignment_service, mock_session, result, row
    ) -> None:
        quiz = _quiz()
        mock_session.aexecute = AsyncMock(return_value=result(_assignment_row(row, quiz)))

        with pytest.raises(InvalidAssignmentError, match="Subjective assignments"):
            await assignment_service.update_assignment(
                quiz.id, UpdateAssignmentRequest(type="subjective"), uuid4()
            )

    async def test_rename(self, assignment_service, mock_session, result, row) -> None:
        quiz = _quiz()
        mock_session.aexecute = AsyncMock(
            side_effect=[result(_assignment_row(row, quiz)), result()]
        )

        updated = await assignment_service.update_assignment(
            quiz.id, UpdateAssignmentRequest(title="Final quiz"), uuid4()
        )

        assert updated.title == "Final quiz"
        assert updated.mcq_questions[0].options[1].is_correct
        assert updated.updated_at is not None

    async def test_missing(self, assignment_service, mock_session, result) -> None:
        mock_session.aexecute = AsyncMock(return_value=result())

        with pytest.raises(AssignmentNotFoundError):
            await assignment_service.delete_assignment(uuid4(), uuid4())


async def test_list_by_course_skips_dangling_rows(
    assignment_service, mock_session, result, row
):
    quiz = _quiz()
    mock_session.aexecute = AsyncMock(
        side_effect=[
            result(row(assignment_id=quiz.id), row(assignment_id=uuid4())),
            result(_assignment_row(row, quiz)),
            result(),
        ]
    )

    assignments = await assignment_service.list_by_course(quiz.course_id)

    assert [a.id for a in assignments] == [quiz.id]
