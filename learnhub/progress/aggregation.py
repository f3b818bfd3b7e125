"""Progress arithmetic.

Pure functions over already-loaded courses and progress records. Nothing
here is persisted: every view recomputes from current state.
"""

from collections.abc import Iterable, Mapping
from uuid import UUID

from learnhub.courses.models import Course
from learnhub.progress.models import Progress
from learnhub.utils.percent import round_percent


def completed_resources(progress: Progress | None) -> int:
    """Completed videos plus completed documents; 0 without a record."""
    if progress is None:
        return 0
    return progress.completed_count


def course_progress_percent(progress: Progress | None, course: Course) -> int:
    """Completion percentage of a course, 0 for a course without resources."""
    return round_percent(completed_resources(progress), course.total_resources)


def path_progress_percent(
    courses: Iterable[Course],
    progress_by_course: Mapping[UUID, Progress],
) -> int:
    """Completion percentage across all courses of a path.

    Resource counts are summed over the courses before dividing, so large
    courses weigh more than small ones. Courses the learner never enrolled
    in count as zero completed.
    """
    total = 0
    completed = 0
    for course in courses:
        total += course.total_resources
        completed += completed_resources(progress_by_course.get(course.id))
    return round_percent(completed, total)


def courses_completed(
    course_ids: Iterable[UUID],
    progress_by_course: Mapping[UUID, Progress],
) -> int:
    """How many of the courses have a completion timestamp."""
    count = 0
    for course_id in course_ids:
        progress = progress_by_course.get(course_id)
        if progress is not None and progress.is_completed:
            count += 1
    return count
