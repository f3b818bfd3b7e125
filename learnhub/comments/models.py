"""Database models for course comments.

Cassandra table definitions for:
- course_comments: flat discussion thread per course, partitioned by
  course and clustered newest first so the latest page is a single
  partition slice

Author name, email and role are copied onto the comment when it is
written; later profile changes do not rewrite old comments.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from learnhub.utils.dates import ensure_utc_aware, utc_now


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSE_COMMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_comments (
    course_id UUID,
    created_at TIMESTAMP,
    comment_id UUID,
    author_id UUID,
    author_name TEXT,
    author_email TEXT,
    author_role TEXT,
    content TEXT,
    PRIMARY KEY ((course_id), created_at, comment_id)
) WITH CLUSTERING ORDER BY (created_at DESC, comment_id ASC)
"""

COMMENTS_TABLES_CQL = [
    COURSE_COMMENTS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Comment:
    """Comment on a course."""

    course_id: UUID
    author_id: UUID
    content: str
    author_name: str | None = None
    author_email: str | None = None
    author_role: str | None = None
    comment_id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)

    @classmethod
    def from_row(cls, row: Any) -> "Comment":
        """Create Comment from Cassandra row."""
        return cls(
            comment_id=row.comment_id,
            course_id=row.course_id,
            author_id=row.author_id,
            author_name=row.author_name,
            author_email=row.author_email,
            author_role=row.author_role,
            content=row.content,
            created_at=ensure_utc_aware(row.created_at),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "comment_id": str(self.comment_id),
            "course_id": str(self.course_id),
            "author_id": str(self.author_id),
            "author_name": self.author_name,
            "author_email": self.author_email,
            "author_role": self.author_role,
            "content": self.content,
            "created_at": self.created_at.isoformat(),
        }
