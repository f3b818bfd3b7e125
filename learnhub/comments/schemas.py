"""Pydantic schemas for course comments."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from learnhub.auth.permissions import parse_role
from learnhub.auth.schemas import AuthorSummary

from .models import Comment


MAX_COMMENT_LENGTH = 1000


class CreateCommentRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=MAX_COMMENT_LENGTH)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "Comment cannot be empty"
            raise ValueError(msg)
        return v


class CommentResponse(BaseModel):
    id: UUID
    course_id: UUID
    content: str
    author: AuthorSummary
    created_at: datetime

    @classmethod
    def from_comment(cls, comment: Comment) -> "CommentResponse":
        return cls(
            id=comment.comment_id,
            course_id=comment.course_id,
            content=comment.content,
            author=AuthorSummary(
                id=comment.author_id,
                name=comment.author_name or "",
                email=comment.author_email or "",
                role=parse_role(comment.author_role),
            ),
            created_at=comment.created_at,
        )


class CommentListResponse(BaseModel):
    """A page of comments in chronological order.

    Pass ``next_before`` and ``next_before_id`` as ``before`` and
    ``before_id`` to fetch the previous (older) page; both are null when
    there are no older comments.
    """

    comments: list[CommentResponse]
    next_before: datetime | None = None
    next_before_id: UUID | None = None
