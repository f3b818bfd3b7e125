"""Learning path API endpoints.

Browsing paths is public. Coaches curate paths from their own courses;
students start paths and follow their aggregate progress.
"""

from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from learnhub.auth.dependencies import CoachUser, StudentUser

from .dependencies import PathServiceDep, handle_path_error
from .schemas import (
    CreatePathRequest,
    MyPathsResponse,
    PathEnrollmentResponse,
    PathListResponse,
    PathProgressResponse,
    PathResponse,
    StartPathRequest,
    UpdatePathRequest,
)
from .service import PathError, PathNotFoundError


router = APIRouter(prefix="/v1/paths", tags=["paths"])


# ==============================================================================
# Student Endpoints
# ==============================================================================


@router.post(
    "/start",
    response_model=PathEnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start path",
)
async def start_path(
    data: StartPathRequest,
    path_service: PathServiceDep,
    user: StudentUser,
) -> PathEnrollmentResponse:
    """Start a path. Course enrollment stays a separate step."""
    try:
        enrollment = await path_service.start_path(user.id, data.path_id)
    except PathError as e:
        raise handle_path_error(e) from e
    return PathEnrollmentResponse(
        path_id=enrollment.path_id,
        user_id=enrollment.user_id,
        started_at=enrollment.started_at,
        completed_at=enrollment.completed_at,
    )


@router.get("/my-paths", response_model=MyPathsResponse, summary="List my paths")
async def my_paths(
    path_service: PathServiceDep,
    user: StudentUser,
) -> MyPathsResponse:
    items = await path_service.list_my_paths(user.id)
    return MyPathsResponse(paths=items)


@router.get(
    "/{path_id}/progress",
    response_model=PathProgressResponse,
    summary="Get path progress",
)
async def path_progress(
    path_id: UUID,
    path_service: PathServiceDep,
    user: StudentUser,
) -> PathProgressResponse:
    try:
        return await path_service.path_progress_detail(user.id, path_id)
    except PathError as e:
        raise handle_path_error(e) from e


# ==============================================================================
# Public Endpoints
# ==============================================================================


@router.get("", response_model=PathListResponse, summary="List paths")
async def list_paths(
    path_service: PathServiceDep,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> PathListResponse:
    paths, total = await path_service.list_paths(limit=limit, offset=offset)
    return PathListResponse(
        paths=[await path_service.to_response(p) for p in paths],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{path_id}", response_model=PathResponse, summary="Get path")
async def get_path(
    path_id: UUID,
    path_service: PathServiceDep,
) -> PathResponse:
    path = await path_service.get_path(path_id)
    if not path:
        raise handle_path_error(PathNotFoundError())
    return await path_service.to_response(path)


# ==============================================================================
# Coach Endpoints
# ==============================================================================


@router.post(
    "",
    response_model=PathResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create path",
)
async def create_path(
    data: CreatePathRequest,
    path_service: PathServiceDep,
    user: CoachUser,
) -> PathResponse:
    try:
        path = await path_service.create_path(data, user.id)
    except PathError as e:
        raise handle_path_error(e) from e
    return await path_service.to_response(path)


@router.patch("/{path_id}", response_model=PathResponse, summary="Update path")
async def update_path(
    path_id: UUID,
    data: UpdatePathRequest,
    path_service: PathServiceDep,
    user: CoachUser,
) -> PathResponse:
    try:
        path = await path_service.update_path(path_id, data, user.id)
    except PathError as e:
        raise handle_path_error(e) from e
    return await path_service.to_response(path)


@router.delete(
    "/{path_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete path",
)
async def delete_path(
    path_id: UUID,
    path_service: PathServiceDep,
    user: CoachUser,
) -> Response:
    """Delete a path and every learner's enrollment in it."""
    try:
        await path_service.delete_path(path_id, user.id)
    except PathError as e:
        raise handle_path_error(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)
