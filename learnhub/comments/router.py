"""Course comment API endpoints.

Reading a course's comments is public; any signed-in user may post.
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query, status

from learnhub.auth.dependencies import CurrentUser
from learnhub.courses.dependencies import handle_course_error
from learnhub.courses.service import CourseError

from .dependencies import CommentServiceDep
from .schemas import CommentListResponse, CommentResponse, CreateCommentRequest


router = APIRouter(prefix="/v1/courses/{course_id}/comments", tags=["comments"])


@router.get("", response_model=CommentListResponse, summary="List course comments")
async def list_comments(
    course_id: UUID,
    comment_service: CommentServiceDep,
    limit: int = Query(50, ge=1, le=100),
    before: datetime | None = Query(None, description="Only comments older than this"),
    before_id: UUID | None = Query(
        None, description="Id of the last comment seen at the `before` timestamp"
    ),
) -> CommentListResponse:
    """Get a page of comments, oldest first within the page."""
    comments, cursor = await comment_service.list_comments(
        course_id, limit=limit, before=before, before_id=before_id
    )
    next_before, next_before_id = cursor or (None, None)
    return CommentListResponse(
        comments=[CommentResponse.from_comment(c) for c in comments],
        next_before=next_before,
        next_before_id=next_before_id,
    )


@router.post(
    "",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post comment",
)
async def create_comment(
    course_id: UUID,
    data: CreateCommentRequest,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> CommentResponse:
    try:
        comment = await comment_service.create_comment(course_id, user, data.content)
    except CourseError as e:
        raise handle_course_error(e) from e
    return CommentResponse.from_comment(comment)
