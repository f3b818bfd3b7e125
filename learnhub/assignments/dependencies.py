"""FastAPI dependencies for assignments."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from learnhub.assignments.service import AssignmentError, AssignmentService


def get_assignment_service(request: Request) -> AssignmentService:
    """Get AssignmentService from app state."""
    service = getattr(request.app.state, "assignment_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Assignment service not available",
        )
    return service


AssignmentServiceDep = Annotated[AssignmentService, Depends(get_assignment_service)]


def handle_assignment_error(error: AssignmentError) -> HTTPException:
    """Convert AssignmentError to HTTPException."""
    status_map = {
        "assignment_not_found": status.HTTP_404_NOT_FOUND,
        "invalid_assignment": status.HTTP_400_BAD_REQUEST,
    }
    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_400_BAD_REQUEST),
        detail=error.message,
    )
