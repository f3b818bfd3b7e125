"""Course API endpoints.

Listing and reading courses is public; creating, editing and deleting
is restricted to coaches, and editing/deleting to the owning coach.
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, Response, status

from learnhub.auth.dependencies import CoachUser
from learnhub.courses.dependencies import CourseServiceDep, handle_course_error
from learnhub.courses.schemas import (
    CourseListResponse,
    CourseResponse,
    CreateCourseRequest,
    UpdateCourseRequest,
)
from learnhub.courses.service import CourseError


router = APIRouter(prefix="/v1/courses", tags=["courses"])


@router.get("", response_model=CourseListResponse, summary="List courses")
async def list_courses(
    course_service: CourseServiceDep,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    coach_id: UUID | None = None,
) -> CourseListResponse:
    """List courses, newest first, optionally for a single coach."""
    courses, total = await course_service.list_courses(
        limit=limit, offset=offset, coach_id=coach_id
    )
    return CourseListResponse(
        courses=[CourseResponse.model_validate(c) for c in courses],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{course_id}", response_model=CourseResponse, summary="Get course")
async def get_course(
    course_id: UUID,
    course_service: CourseServiceDep,
) -> CourseResponse:
    course = await course_service.get_course(course_id)
    if not course:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Course not found",
        )
    return CourseResponse.model_validate(course)


@router.post(
    "",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create course",
)
async def create_course(
    data: CreateCourseRequest,
    course_service: CourseServiceDep,
    user: CoachUser,
) -> CourseResponse:
    course = await course_service.create_course(data, user.id)
    return CourseResponse.model_validate(course)


@router.patch("/{course_id}", response_model=CourseResponse, summary="Update course")
async def update_course(
    course_id: UUID,
    data: UpdateCourseRequest,
    course_service: CourseServiceDep,
    user: CoachUser,
) -> CourseResponse:
    """Update a course. Only the owning coach may edit it."""
    try:
        course = await course_service.update_course(course_id, data, user.id)
    except CourseError as e:
        raise handle_course_error(e) from e
    return CourseResponse.model_validate(course)


@router.delete(
    "/{course_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete course",
)
async def delete_course(
    course_id: UUID,
    course_service: CourseServiceDep,
    user: CoachUser,
) -> Response:
    try:
        await course_service.delete_course(course_id, user.id)
    except CourseError as e:
        raise handle_course_error(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)
