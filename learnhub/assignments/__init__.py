"""Assignment module.

MCQ and subjective assignments attached to courses, plus automatic
grading of MCQ submissions.
"""

from learnhub.assignments.grading import MCQGradeResult, grade_mcq
from learnhub.assignments.models import Assignment, AssignmentType
from learnhub.assignments.router import router
from learnhub.assignments.service import (
    AssignmentError,
    AssignmentNotFoundError,
    AssignmentService,
)


__all__ = [
    "Assignment",
    "AssignmentError",
    "AssignmentNotFoundError",
    "AssignmentService",
    "AssignmentType",
    "MCQGradeResult",
    "grade_mcq",
    "router",
]
