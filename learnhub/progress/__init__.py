"""Learner progress module.

Provides:
- Course enrollment
- Idempotent video/document completion
- MCQ auto-grading and subjective submissions with coach grading
- Course and path progress percentages
"""

from .aggregation import (
    course_progress_percent,
    courses_completed,
    path_progress_percent,
)
from .models import PROGRESS_TABLES_CQL, Progress, Submission
from .service import (
    AlreadyEnrolledError,
    NotEnrolledError,
    ProgressError,
    ProgressNotFoundError,
    ProgressService,
    SubmissionNotFoundError,
)


__all__ = [
    "PROGRESS_TABLES_CQL",
    "AlreadyEnrolledError",
    "NotEnrolledError",
    "Progress",
    "ProgressError",
    "ProgressNotFoundError",
    "ProgressService",
    "Submission",
    "SubmissionNotFoundError",
    "course_progress_percent",
    "courses_completed",
    "path_progress_percent",
]
