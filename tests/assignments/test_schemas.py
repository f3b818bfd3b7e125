"""Tests for assignment request validation."""

from uuid import uuid4

import pytest
from pydantic import ValidationError

from learnhub.assignments.models import AssignmentType
from learnhub.assignments.schemas import (
    CreateAssignmentRequest,
    MCQQuestionInput,
    UpdateAssignmentRequest,
)


QUESTION = {
    "question_text": "2 + 2?",
    "options": [{"text": "3"}, {"text": "4", "is_correct": True}],
}


class TestMCQQuestionInput:
    def test_needs_a_correct_option(self) -> None:
        with pytest.raises(ValidationError, match="at least one correct answer"):
            MCQQuestionInput(
                question_text="2 + 2?",
                options=[{"text": "3"}, {"text": "5"}],
            )

    def test_option_count_bounds(self) -> None:
        with pytest.raises(ValidationError):
            MCQQuestionInput(
                question_text="Only one", options=[{"text": "a", "is_correct": True}]
            )
        with pytest.raises(ValidationError):
            MCQQuestionInput(
                question_text="Too many",
                options=[{"text": str(i), "is_correct": i == 0} for i in range(7)],
            )


class TestCreateAssignmentRequest:
    def test_mcq(self) -> None:
        data = CreateAssignmentRequest(
            title="Quiz", type="mcq", course_id=uuid4(), mcq_questions=[QUESTION]
        )
        assert data.type is AssignmentType.MCQ
        assert data.mcq_questions[0].options[1].is_correct

    def test_mcq_without_questions(self) -> None:
        with pytest.raises(ValidationError, match="MCQ assignments require"):
            CreateAssignmentRequest(
                title="Quiz",
                type="mcq",
                course_id=uuid4(),
                subjective_questions=[{"question_text": "Why?"}],
            )

    def test_subjective_without_questions(self) -> None:
        with pytest.raises(ValidationError, match="Subjective assignments require"):
            CreateAssignmentRequest(title="Essay", type="subjective", course_id=uuid4())

    def test_max_words_positive(self) -> None:
        with pytest.raises(ValidationError):
            CreateAssignmentRequest(
                title="Essay",
                type="subjective",
                course_id=uuid4(),
                subjective_questions=[{"question_text": "Why?", "max_words": 0}],
            )


def test_update_cannot_move_course():
    with pytest.raises(ValidationError):
        UpdateAssignmentRequest(course_id=uuid4())
