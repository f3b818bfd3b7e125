"""Comment service layer.

Business logic for:
- Posting comments on an existing course
- Cursor pagination by (creation time, id), newest page first
"""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from learnhub.auth.schemas import UserResponse
from learnhub.courses.service import CourseNotFoundError, CourseService

from .models import Comment


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


class CommentService:
    """Service for course comments."""

    def __init__(self, session: "Session", keyspace: str, course_service: CourseService):
        self.session = session
        self.keyspace = keyspace
        self.course_service = course_service
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._insert_comment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.course_comments
            (course_id, created_at, comment_id, author_id, author_name,
             author_email, author_role, content)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._get_comments = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.course_comments
            WHERE course_id = ?
            LIMIT ?
        """)

        self._get_comments_before = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.course_comments
            WHERE course_id = ? AND created_at < ?
            LIMIT ?
        """)

        self._get_comments_at = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.course_comments
            WHERE course_id = ? AND created_at = ? AND comment_id > ?
            LIMIT ?
        """)

    async def list_comments(
        self,
        course_id: UUID,
        limit: int = 50,
        before: datetime | None = None,
        before_id: UUID | None = None,
    ) -> tuple[list[Comment], tuple[datetime, UUID] | None]:
        """Get the newest ``limit`` comments past the ``(before, before_id)`` cursor.

        Comments sharing the cursor's timestamp are kept when their id sorts
        after ``before_id``; without ``before_id`` the whole timestamp is
        skipped.

        Returns:
            The page in chronological order, and the ``(created_at, id)``
            cursor for the next (older) page or None when there is nothing
            older.
        """
        if before is None:
            rows = list(
                await self.session.aexecute(self._get_comments, [course_id, limit + 1])
            )
        else:
            rows = []
            if before_id is not None:
                rows.extend(
                    await self.session.aexecute(
                        self._get_comments_at,
                        [course_id, before, before_id, limit + 1],
                    )
                )
            if len(rows) <= limit:
                rows.extend(
                    await self.session.aexecute(
                        self._get_comments_before,
                        [course_id, before, limit + 1 - len(rows)],
                    )
                )

        comments = [Comment.from_row(row) for row in rows]
        has_more = len(comments) > limit
        comments = comments[:limit]

        cursor = None
        if has_more:
            oldest = comments[-1]
            cursor = (oldest.created_at, oldest.comment_id)
        comments.reverse()
        return comments, cursor

    async def create_comment(
        self,
        course_id: UUID,
        author: UserResponse,
        content: str,
    ) -> Comment:
        """Post a comment on a course.

        Raises:
            CourseNotFoundError: If the course does not exist
        """
        course = await self.course_service.get_course(course_id)
        if not course:
            raise CourseNotFoundError

        comment = Comment(
            course_id=course_id,
            author_id=author.id,
            author_name=author.display_name,
            author_email=author.email,
            author_role=author.role.value if author.role else None,
            content=content.strip(),
        )
        await self.session.aexecute(
            self._insert_comment,
            [
                comment.course_id,
                comment.created_at,
                comment.comment_id,
                comment.author_id,
                comment.author_name,
                comment.author_email,
                comment.author_role,
                comment.content,
            ],
        )

        logger.info(
            "comment_created",
            comment_id=str(comment.comment_id),
            course_id=str(course_id),
            author_id=str(author.id),
        )
        return comment
