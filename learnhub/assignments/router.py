"""Assignment API endpoints.

Any authenticated user can read assignments; the answer key is only
returned to the coach who owns the course.
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Response, status

from learnhub.assignments.dependencies import (
    AssignmentServiceDep,
    handle_assignment_error,
)
from learnhub.assignments.schemas import (
    AssignmentListResponse,
    AssignmentResponse,
    CreateAssignmentRequest,
    UpdateAssignmentRequest,
)
from learnhub.assignments.service import AssignmentError, to_response
from learnhub.auth.dependencies import CoachUser, CurrentUser
from learnhub.auth.permissions import UserRole
from learnhub.auth.schemas import UserResponse
from learnhub.courses.dependencies import CourseServiceDep, handle_course_error
from learnhub.courses.models import Course
from learnhub.courses.service import CourseError


router = APIRouter(prefix="/v1/assignments", tags=["assignments"])


def _can_see_answers(user: UserResponse, course: Course | None) -> bool:
    return (
        user.role == UserRole.COACH and course is not None and course.is_owned_by(user.id)
    )


@router.get(
    "/course/{course_id}",
    response_model=AssignmentListResponse,
    summary="List course assignments",
)
async def list_course_assignments(
    course_id: UUID,
    assignment_service: AssignmentServiceDep,
    course_service: CourseServiceDep,
    user: CurrentUser,
) -> AssignmentListResponse:
    course = await course_service.get_course(course_id)
    reveal = _can_see_answers(user, course)
    assignments = await assignment_service.list_by_course(course_id)
    return AssignmentListResponse(
        assignments=[to_response(a, reveal_answers=reveal) for a in assignments]
    )


@router.get(
    "/{assignment_id}",
    response_model=AssignmentResponse,
    summary="Get assignment",
)
async def get_assignment(
    assignment_id: UUID,
    assignment_service: AssignmentServiceDep,
    course_service: CourseServiceDep,
    user: CurrentUser,
) -> AssignmentResponse:
    assignment = await assignment_service.get_assignment(assignment_id)
    if not assignment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Assignment not found",
        )
    course = await course_service.get_course(assignment.course_id)
    return to_response(assignment, reveal_answers=_can_see_answers(user, course))


@router.post(
    "",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create assignment",
)
async def create_assignment(
    data: CreateAssignmentRequest,
    assignment_service: AssignmentServiceDep,
    user: CoachUser,
) -> AssignmentResponse:
    """Create an assignment in one of the coach's own courses."""
    try:
        assignment = await assignment_service.create_assignment(data, user.id)
    except CourseError as e:
        raise handle_course_error(e) from e
    return to_response(assignment, reveal_answers=True)


@router.patch(
    "/{assignment_id}",
    response_model=AssignmentResponse,
    summary="Update assignment",
)
async def update_assignment(
    assignment_id: UUID,
    data: UpdateAssignmentRequest,
    assignment_service: AssignmentServiceDep,
    user: CoachUser,
) -> AssignmentResponse:
    try:
        assignment = await assignment_service.update_assignment(
            assignment_id, data, user.id
        )
    except AssignmentError as e:
        raise handle_assignment_error(e) from e
    except CourseError as e:
        raise handle_course_error(e) from e
    return to_response(assignment, reveal_answers=True)


@router.delete(
    "/{assignment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete assignment",
)
async def delete_assignment(
    assignment_id: UUID,
    assignment_service: AssignmentServiceDep,
    user: CoachUser,
) -> Response:
    try:
        await assignment_service.delete_assignment(assignment_id, user.id)
    except AssignmentError as e:
        raise handle_assignment_error(e) from e
    except CourseError as e:
        raise handle_course_error(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)
