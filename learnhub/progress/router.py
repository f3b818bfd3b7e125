"""Progress API endpoints.

Learner endpoints (enrollment, completion, submissions) require the
student role; the submission review endpoints require the coach who
owns the course.
"""

from uuid import UUID

from fastapi import APIRouter, status

from learnhub.assignments.dependencies import handle_assignment_error
from learnhub.assignments.service import AssignmentError
from learnhub.auth.dependencies import CoachUser, StudentUser
from learnhub.courses.dependencies import handle_course_error
from learnhub.courses.service import CourseError

from .dependencies import ProgressServiceDep, handle_progress_error
from .schemas import (
    CompleteCourseRequest,
    CourseSubmissionsResponse,
    EnrollRequest,
    GradeSubmissionRequest,
    MarkResourceCompleteRequest,
    MCQSubmissionResult,
    MyCoursesResponse,
    ProgressResponse,
    SubjectiveSubmissionResult,
    SubmissionResponse,
    SubmitMCQRequest,
    SubmitSubjectiveRequest,
)
from .service import ProgressError


router = APIRouter(prefix="/v1/progress", tags=["progress"])


# ==============================================================================
# Enrollment
# ==============================================================================


@router.post(
    "/enroll",
    response_model=ProgressResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll in course",
)
async def enroll(
    data: EnrollRequest,
    progress_service: ProgressServiceDep,
    user: StudentUser,
) -> ProgressResponse:
    try:
        progress = await progress_service.enroll(user.id, data.course_id)
    except ProgressError as e:
        raise handle_progress_error(e) from e
    except CourseError as e:
        raise handle_course_error(e) from e
    return ProgressResponse.from_entity(progress)


@router.get(
    "/my-courses",
    response_model=MyCoursesResponse,
    summary="List my enrolled courses",
)
async def my_courses(
    progress_service: ProgressServiceDep,
    user: StudentUser,
) -> MyCoursesResponse:
    """Enrolled courses with progress, most recently enrolled first."""
    items = await progress_service.list_my_courses(user.id)
    return MyCoursesResponse(courses=items)


@router.get(
    "/{course_id}",
    response_model=ProgressResponse,
    summary="Get course progress",
)
async def get_course_progress(
    course_id: UUID,
    progress_service: ProgressServiceDep,
    user: StudentUser,
) -> ProgressResponse:
    try:
        progress, percent = await progress_service.get_course_progress(
            user.id, course_id
        )
    except ProgressError as e:
        raise handle_progress_error(e) from e
    return ProgressResponse.from_entity(progress, progress_percent=percent)


# ==============================================================================
# Completion
# ==============================================================================


@router.post(
    "/complete-resource",
    response_model=ProgressResponse,
    summary="Mark resource complete",
)
async def complete_resource(
    data: MarkResourceCompleteRequest,
    progress_service: ProgressServiceDep,
    user: StudentUser,
) -> ProgressResponse:
    """Mark a video or document as completed. Repeating the call is a no-op."""
    try:
        progress = await progress_service.mark_resource_complete(
            user.id, data.course_id, data.resource_id, data.resource_type
        )
    except ProgressError as e:
        raise handle_progress_error(e) from e
    return ProgressResponse.from_entity(progress)


@router.post(
    "/complete-course",
    response_model=ProgressResponse,
    summary="Mark course complete",
)
async def complete_course(
    data: CompleteCourseRequest,
    progress_service: ProgressServiceDep,
    user: StudentUser,
) -> ProgressResponse:
    try:
        progress = await progress_service.complete_course(user.id, data.course_id)
    except ProgressError as e:
        raise handle_progress_error(e) from e
    return ProgressResponse.from_entity(progress)


# ==============================================================================
# Submissions
# ==============================================================================


@router.post(
    "/submit-mcq",
    response_model=MCQSubmissionResult,
    summary="Submit MCQ answers",
)
async def submit_mcq(
    data: SubmitMCQRequest,
    progress_service: ProgressServiceDep,
    user: StudentUser,
) -> MCQSubmissionResult:
    """Submit answers to an MCQ assignment and get the score back."""
    try:
        submission, result = await progress_service.submit_mcq(
            user.id, data.course_id, data.assignment_id, data.answers
        )
    except ProgressError as e:
        raise handle_progress_error(e) from e
    except AssignmentError as e:
        raise handle_assignment_error(e) from e
    return MCQSubmissionResult(
        submission_id=submission.submission_id,
        score=result.score,
        correct_count=result.correct_count,
        total_questions=result.total_questions,
    )


@router.post(
    "/submit-subjective",
    response_model=SubjectiveSubmissionResult,
    summary="Submit subjective answers",
)
async def submit_subjective(
    data: SubmitSubjectiveRequest,
    progress_service: ProgressServiceDep,
    user: StudentUser,
) -> SubjectiveSubmissionResult:
    try:
        submission = await progress_service.submit_subjective(
            user.id, data.course_id, data.assignment_id, data.answers
        )
    except ProgressError as e:
        raise handle_progress_error(e) from e
    except AssignmentError as e:
        raise handle_assignment_error(e) from e
    return SubjectiveSubmissionResult(submission_id=submission.submission_id)


@router.get(
    "/course/{course_id}/submissions",
    response_model=CourseSubmissionsResponse,
    summary="List course submissions",
)
async def course_submissions(
    course_id: UUID,
    progress_service: ProgressServiceDep,
    user: CoachUser,
) -> CourseSubmissionsResponse:
    """All submissions in one of the coach's courses, newest first."""
    try:
        items = await progress_service.list_course_submissions(course_id, user.id)
    except CourseError as e:
        raise handle_course_error(e) from e
    return CourseSubmissionsResponse(submissions=items)


@router.patch(
    "/{progress_id}/submissions/{submission_id}/grade",
    response_model=SubmissionResponse,
    summary="Grade submission",
)
async def grade_submission(
    progress_id: UUID,
    submission_id: UUID,
    data: GradeSubmissionRequest,
    progress_service: ProgressServiceDep,
    user: CoachUser,
) -> SubmissionResponse:
    try:
        submission = await progress_service.grade_submission(
            progress_id,
            submission_id,
            user.id,
            score=data.score,
            feedback=data.feedback,
        )
    except ProgressError as e:
        raise handle_progress_error(e) from e
    except CourseError as e:
        raise handle_course_error(e) from e
    return SubmissionResponse.from_entity(submission)
