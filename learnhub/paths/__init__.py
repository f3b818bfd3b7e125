"""Learning paths module.

A path is an ordered list of a coach's courses. Learners start a path
and see progress aggregated over its courses.
"""

from .models import PATHS_TABLES_CQL, LearningPath, PathEnrollment
from .service import (
    NotPathOwnerError,
    PathAlreadyStartedError,
    PathCoursesNotFoundError,
    PathCoursesNotOwnedError,
    PathError,
    PathNotFoundError,
    PathNotStartedError,
    PathService,
)


__all__ = [
    "PATHS_TABLES_CQL",
    "LearningPath",
    "NotPathOwnerError",
    "PathAlreadyStartedError",
    "PathCoursesNotFoundError",
    "PathCoursesNotOwnedError",
    "PathEnrollment",
    "PathError",
    "PathNotFoundError",
    "PathNotStartedError",
    "PathService",
]
