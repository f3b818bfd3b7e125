"""Database models for learning paths.

Cassandra table definitions for:
- learning_paths: curated, ordered list of course ids
- path_enrollments: one row per (learner, path), inserted with
  IF NOT EXISTS when the learner starts the path
- path_enrollments_by_path: learners who started a path, used to remove
  their enrollments when the path is deleted
"""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from learnhub.utils.dates import ensure_utc_aware, utc_now


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

LEARNING_PATH_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.learning_paths (
    id UUID PRIMARY KEY,
    created_by UUID,
    title TEXT,
    description TEXT,
    thumbnail_url TEXT,
    course_ids LIST<UUID>,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

PATH_ENROLLMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.path_enrollments (
    user_id UUID,
    path_id UUID,
    started_at TIMESTAMP,
    completed_at TIMESTAMP,
    PRIMARY KEY (user_id, path_id)
)
"""

PATH_ENROLLMENTS_BY_PATH_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.path_enrollments_by_path (
    path_id UUID,
    user_id UUID,
    PRIMARY KEY (path_id, user_id)
)
"""

PATHS_TABLES_CQL = [
    LEARNING_PATH_TABLE_CQL,
    PATH_ENROLLMENT_TABLE_CQL,
    PATH_ENROLLMENTS_BY_PATH_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class LearningPath:
    """Ordered sequence of courses curated by a coach.

    Attributes:
        id: Path identifier
        created_by: Coach who authored the path
        title: Path title
        course_ids: Courses in path order
    """

    def __init__(
        self,
        created_by: UUID,
        title: str,
        course_ids: list[UUID],
        description: str | None = None,
        thumbnail_url: str | None = None,
        id: UUID | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.created_by = created_by
        self.title = title
        self.course_ids = list(course_ids)
        self.description = description
        self.thumbnail_url = thumbnail_url
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_row(cls, row: Any) -> "LearningPath":
        """Create LearningPath instance from Cassandra row."""
        return cls(
            id=row.id,
            created_by=row.created_by,
            title=row.title,
            course_ids=row.course_ids or [],
            description=row.description,
            thumbnail_url=row.thumbnail_url,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def is_owned_by(self, user_id: UUID) -> bool:
        return self.created_by == user_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "created_by": self.created_by,
            "title": self.title,
            "description": self.description,
            "thumbnail_url": self.thumbnail_url,
            "course_ids": self.course_ids,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<LearningPath {self.title}>"


class PathEnrollment:
    """A learner's start of a learning path."""

    def __init__(
        self,
        user_id: UUID,
        path_id: UUID,
        started_at: datetime | None = None,
        completed_at: datetime | None = None,
    ):
        self.user_id = user_id
        self.path_id = path_id
        self.started_at = ensure_utc_aware(started_at) or utc_now()
        self.completed_at = ensure_utc_aware(completed_at)

    @classmethod
    def from_row(cls, row: Any) -> "PathEnrollment":
        return cls(
            user_id=row.user_id,
            path_id=row.path_id,
            started_at=row.started_at,
            completed_at=row.completed_at,
        )

    def __repr__(self) -> str:
        return f"<PathEnrollment user={self.user_id} path={self.path_id}>"
