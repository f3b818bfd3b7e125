"""Database models for learner progress.

Cassandra table definitions for:
- progress: one row per (learner, course); the primary key enforces the
  pair's uniqueness and enrollment inserts with IF NOT EXISTS
- progress_by_id: progress id -> (learner, course), used when a coach
  grades a submission by progress id
- progress_by_course: learners enrolled in a course (coach views)
- progress_submissions: submissions of a progress record, oldest first

Completed resources are ``SET<UUID>`` columns updated with ``col = col + ?``,
so marking a resource twice leaves the set unchanged.
"""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from learnhub.courses.models import ResourceType
from learnhub.utils.dates import ensure_utc_aware, utc_now


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

PROGRESS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.progress (
    user_id UUID,
    course_id UUID,
    progress_id UUID,
    enrolled_at TIMESTAMP,
    completed_at TIMESTAMP,
    completed_videos SET<UUID>,
    completed_documents SET<UUID>,
    updated_at TIMESTAMP,
    PRIMARY KEY (user_id, course_id)
)
"""

PROGRESS_BY_ID_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.progress_by_id (
    progress_id UUID PRIMARY KEY,
    user_id UUID,
    course_id UUID
)
"""

PROGRESS_BY_COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.progress_by_course (
    course_id UUID,
    user_id UUID,
    progress_id UUID,
    enrolled_at TIMESTAMP,
    PRIMARY KEY (course_id, user_id)
)
"""

PROGRESS_SUBMISSIONS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.progress_submissions (
    progress_id UUID,
    submission_id TIMEUUID,
    assignment_id UUID,
    submitted_at TIMESTAMP,
    mcq_answers LIST<INT>,
    subjective_answers LIST<TEXT>,
    score DOUBLE,
    feedback TEXT,
    graded_at TIMESTAMP,
    PRIMARY KEY (progress_id, submission_id)
) WITH CLUSTERING ORDER BY (submission_id ASC)
"""

PROGRESS_TABLES_CQL = [
    PROGRESS_TABLE_CQL,
    PROGRESS_BY_ID_TABLE_CQL,
    PROGRESS_BY_COURSE_TABLE_CQL,
    PROGRESS_SUBMISSIONS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class Submission:
    """Assignment submission inside a progress record.

    Only ``score``, ``feedback`` and ``graded_at`` change after creation.
    """

    def __init__(
        self,
        progress_id: UUID,
        submission_id: UUID,
        assignment_id: UUID,
        submitted_at: datetime | None = None,
        mcq_answers: list[int] | None = None,
        subjective_answers: list[str] | None = None,
        score: float | None = None,
        feedback: str | None = None,
        graded_at: datetime | None = None,
    ):
        self.progress_id = progress_id
        self.submission_id = submission_id
        self.assignment_id = assignment_id
        self.submitted_at = ensure_utc_aware(submitted_at) or utc_now()
        self.mcq_answers = list(mcq_answers) if mcq_answers is not None else None
        self.subjective_answers = (
            list(subjective_answers) if subjective_answers is not None else None
        )
        self.score = score
        self.feedback = feedback
        self.graded_at = ensure_utc_aware(graded_at)

    @classmethod
    def from_row(cls, row: Any) -> "Submission":
        """Create Submission instance from Cassandra row."""
        return cls(
            progress_id=row.progress_id,
            submission_id=row.submission_id,
            assignment_id=row.assignment_id,
            submitted_at=row.submitted_at,
            mcq_answers=row.mcq_answers,
            subjective_answers=row.subjective_answers,
            score=row.score,
            feedback=row.feedback,
            graded_at=row.graded_at,
        )

    @property
    def is_graded(self) -> bool:
        return self.graded_at is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.submission_id,
            "assignment_id": self.assignment_id,
            "submitted_at": self.submitted_at,
            "mcq_answers": self.mcq_answers,
            "subjective_answers": self.subjective_answers,
            "score": self.score,
            "feedback": self.feedback,
            "graded_at": self.graded_at,
        }

    def __repr__(self) -> str:
        return f"<Submission {self.submission_id} score={self.score}>"


class Progress:
    """A learner's progress through one course.

    Attributes:
        id: Progress record identifier
        user_id: Learner
        course_id: Course
        enrolled_at: Enrollment timestamp
        completed_at: Set once when the learner completes the course
        completed_videos: Completed video resource ids
        completed_documents: Completed document resource ids
        submissions: Submissions, oldest first (loaded on demand)
    """

    def __init__(
        self,
        user_id: UUID,
        course_id: UUID,
        id: UUID | None = None,
        enrolled_at: datetime | None = None,
        completed_at: datetime | None = None,
        completed_videos: set[UUID] | None = None,
        completed_documents: set[UUID] | None = None,
        updated_at: datetime | None = None,
        submissions: list[Submission] | None = None,
    ):
        self.id = id or uuid4()
        self.user_id = user_id
        self.course_id = course_id
        self.enrolled_at = ensure_utc_aware(enrolled_at) or utc_now()
        self.completed_at = ensure_utc_aware(completed_at)
        self.completed_videos = set(completed_videos or ())
        self.completed_documents = set(completed_documents or ())
        self.updated_at = ensure_utc_aware(updated_at)
        self.submissions = submissions or []

    @classmethod
    def from_row(cls, row: Any) -> "Progress":
        """Create Progress instance from Cassandra row.

        Empty sets come back from Cassandra as null.
        """
        return cls(
            id=row.progress_id,
            user_id=row.user_id,
            course_id=row.course_id,
            enrolled_at=row.enrolled_at,
            completed_at=row.completed_at,
            completed_videos=row.completed_videos,
            completed_documents=row.completed_documents,
            updated_at=row.updated_at,
        )

    def completed_set(self, resource_type: ResourceType) -> set[UUID]:
        if resource_type == ResourceType.VIDEO:
            return self.completed_videos
        return self.completed_documents

    def mark_completed(self, resource_id: UUID, resource_type: ResourceType) -> bool:
        """Add a resource to its completion set.

        Returns:
            False if it was already there.
        """
        target = self.completed_set(resource_type)
        if resource_id in target:
            return False
        target.add(resource_id)
        return True

    @property
    def completed_count(self) -> int:
        return len(self.completed_videos) + len(self.completed_documents)

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "course_id": self.course_id,
            "enrolled_at": self.enrolled_at,
            "completed_at": self.completed_at,
            "completed_videos": sorted(self.completed_videos, key=str),
            "completed_documents": sorted(self.completed_documents, key=str),
            "submissions": [s.to_dict() for s in self.submissions],
        }

    def __repr__(self) -> str:
        return f"<Progress user={self.user_id} course={self.course_id}>"
