"""Automatic grading of multiple-choice submissions."""

from dataclasses import dataclass

from learnhub.assignments.models import Assignment, MCQQuestion
from learnhub.utils.percent import round_percent


@dataclass(frozen=True)
class MCQGradeResult:
    score: int
    correct_count: int
    total_questions: int


def is_correct_answer(question: MCQQuestion, answer: int | None) -> bool:
    """Whether ``answer`` selects a correct option of ``question``.

    Missing, negative and out-of-range indices are simply wrong.
    """
    if answer is None or answer < 0 or answer >= len(question.options):
        return False
    return question.options[answer].is_correct


def grade_mcq(assignment: Assignment, answers: list[int]) -> MCQGradeResult:
    """Score answers positionally against the assignment's answer key.

    ``answers[i]`` is the selected option index for question ``i``.
    Extra answers are ignored and missing ones count as incorrect.
    The score is the rounded percentage of correct answers, 0 when
    there are no questions.
    """
    questions = assignment.mcq_questions
    correct = sum(
        1
        for i, question in enumerate(questions)
        if is_correct_answer(question, answers[i] if i < len(answers) else None)
    )
    total = len(questions)
    return MCQGradeResult(
        score=round_percent(correct, total),
        correct_count=correct,
        total_questions=total,
    )
