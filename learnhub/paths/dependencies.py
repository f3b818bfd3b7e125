"""FastAPI dependencies for learning paths."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import PathCoursesNotOwnedError, PathError, PathService


def get_path_service(request: Request) -> PathService:
    """Get PathService from app state."""
    service = getattr(request.app.state, "path_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Path service not available",
        )
    return service


PathServiceDep = Annotated[PathService, Depends(get_path_service)]


def handle_path_error(error: PathError) -> HTTPException:
    """Convert path errors to HTTPException.

    Rejected course ids are returned alongside the message.
    """
    status_map = {
        "path_not_found": status.HTTP_404_NOT_FOUND,
        "path_not_started": status.HTTP_404_NOT_FOUND,
        "not_path_owner": status.HTTP_403_FORBIDDEN,
        "courses_not_owned": status.HTTP_403_FORBIDDEN,
        "courses_not_found": status.HTTP_400_BAD_REQUEST,
        "path_already_started": status.HTTP_409_CONFLICT,
    }
    detail: str | dict = error.message
    if isinstance(error, PathCoursesNotOwnedError):
        detail = {
            "message": error.message,
            "invalid_courses": [str(cid) for cid in error.course_ids],
        }
    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_400_BAD_REQUEST),
        detail=detail,
    )
