"""Tests for the /v1/assignments endpoints."""

from uuid import uuid4

import pytest

from learnhub.assignments.models import (
    Assignment,
    AssignmentType,
    MCQOption,
    MCQQuestion,
)
from learnhub.assignments.service import InvalidAssignmentError
from learnhub.auth.permissions import UserRole
from learnhub.courses.models import Course
from learnhub.courses.service import NotCourseOwnerError


@pytest.fixture
def quiz_setup(app, coach):
    """A quiz in a course owned by ``coach``, wired into the mocked services."""
    course = Course(coach_id=coach.id, title="Python")
    quiz = Assignment(
        course_id=course.id,
        title="Quiz",
        type=AssignmentType.MCQ,
        mcq_questions=[
            MCQQuestion(
                question_text="2 + 2?",
                options=[MCQOption(text="3"), MCQOption(text="4", is_correct=True)],
            )
        ],
    )
    app.state.course_service.get_course.return_value = course
    app.state.assignment_service.get_assignment.return_value = quiz
    app.state.assignment_service.list_by_course.return_value = [quiz]
    return course, quiz


def _flags(question):
    return [option["is_correct"] for option in question["options"]]


class TestAnswerKey:
    def test_owner_sees_answers(self, client, login, coach, quiz_setup) -> None:
        _, quiz = quiz_setup
        login(coach)

        response = client.get(f"/v1/assignments/{quiz.id}")

        assert response.status_code == 200
        assert _flags(response.json()["mcq_questions"][0]) == [False, True]

    def test_student_does_not(self, client, login, student, quiz_setup) -> None:
        _, quiz = quiz_setup
        login(student)

        response = client.get(f"/v1/assignments/{quiz.id}")

        assert _flags(response.json()["mcq_questions"][0]) == [None, None]

    def test_other_coach_does_not(
        self, client, login, user_factory, quiz_setup
    ) -> None:
        course, _ = quiz_setup
        login(user_factory(UserRole.COACH))

        response = client.get(f"/v1/assignments/course/{course.id}")

        assert response.status_code == 200
        questions = response.json()["assignments"][0]["mcq_questions"]
        assert _flags(questions[0]) == [None, None]


def test_get_requires_login(client):
    assert client.get(f"/v1/assignments/{uuid4()}").status_code == 401


def test_get_missing(app, client, login, student):
    login(student)
    app.state.assignment_service.get_assignment.return_value = None

    response = client.get(f"/v1/assignments/{uuid4()}")

    assert response.status_code == 404


def test_create_in_foreign_course(app, client, login, coach):
    login(coach)
    app.state.assignment_service.create_assignment.side_effect = NotCourseOwnerError()

    response = client.post(
        "/v1/assignments",
        json={
            "title": "Essay",
            "type": "subjective",
            "course_id": str(uuid4()),
            "subjective_questions": [{"question_text": "Why?"}],
        },
    )

    assert response.status_code == 403


def test_update_to_invalid_state(app, client, login, coach):
    login(coach)
    app.state.assignment_service.update_assignment.side_effect = InvalidAssignmentError(
        "Subjective assignments require at least one question"
    )

    response = client.patch(f"/v1/assignments/{uuid4()}", json={"type": "subjective"})

    assert response.status_code == 400
