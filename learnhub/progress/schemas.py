"""Pydantic schemas for learner progress.

Request and response models for:
- Enrollment and course completion
- Resource completion
- MCQ / subjective submissions and grading
- Progress queries for learners and coaches
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from learnhub.auth.schemas import AuthorSummary
from learnhub.courses.models import ResourceType
from learnhub.courses.schemas import CourseSummary

from .models import Progress, Submission


# ==============================================================================
# Request Schemas
# ==============================================================================


class EnrollRequest(BaseModel):
    course_id: UUID


class CompleteCourseRequest(BaseModel):
    course_id: UUID


class MarkResourceCompleteRequest(BaseModel):
    """Mark a video or document of a course as done."""

    course_id: UUID
    resource_id: UUID
    resource_type: ResourceType


class SubmitMCQRequest(BaseModel):
    """Selected option index per question, in question order."""

    course_id: UUID
    assignment_id: UUID
    answers: list[int] = Field(..., min_length=1)


class SubmitSubjectiveRequest(BaseModel):
    """Free-text answer per question, in question order."""

    course_id: UUID
    assignment_id: UUID
    answers: list[str] = Field(..., min_length=1)


class GradeSubmissionRequest(BaseModel):
    """Manual grade. Omitted fields keep their previous value."""

    score: float | None = Field(None, ge=0, le=100)
    feedback: str | None = Field(None, max_length=5000)


# ==============================================================================
# Response Schemas
# ==============================================================================


class SubmissionResponse(BaseModel):
    id: UUID
    assignment_id: UUID
    submitted_at: datetime
    mcq_answers: list[int] | None = None
    subjective_answers: list[str] | None = None
    score: float | None = None
    feedback: str | None = None
    graded_at: datetime | None = None

    @classmethod
    def from_entity(cls, entity: Submission) -> "SubmissionResponse":
        return cls(
            id=entity.submission_id,
            assignment_id=entity.assignment_id,
            submitted_at=entity.submitted_at,
            mcq_answers=entity.mcq_answers,
            subjective_answers=entity.subjective_answers,
            score=entity.score,
            feedback=entity.feedback,
            graded_at=entity.graded_at,
        )


class ProgressResponse(BaseModel):
    """A learner's progress record for one course."""

    id: UUID
    user_id: UUID
    course_id: UUID
    enrolled_at: datetime
    completed_at: datetime | None = None
    completed_videos: list[UUID] = []
    completed_documents: list[UUID] = []
    submissions: list[SubmissionResponse] = []
    progress_percent: int = Field(0, ge=0, description="0-100 percentage")

    @classmethod
    def from_entity(
        cls, entity: Progress, progress_percent: int = 0
    ) -> "ProgressResponse":
        return cls(
            id=entity.id,
            user_id=entity.user_id,
            course_id=entity.course_id,
            enrolled_at=entity.enrolled_at,
            completed_at=entity.completed_at,
            completed_videos=sorted(entity.completed_videos, key=str),
            completed_documents=sorted(entity.completed_documents, key=str),
            submissions=[SubmissionResponse.from_entity(s) for s in entity.submissions],
            progress_percent=progress_percent,
        )


class MyCourseItem(BaseModel):
    """One enrolled course in the learner's dashboard."""

    progress_id: UUID
    course: CourseSummary
    enrolled_at: datetime
    completed_at: datetime | None = None
    progress_percent: int
    completed_videos: int
    completed_documents: int
    submissions_count: int


class MyCoursesResponse(BaseModel):
    courses: list[MyCourseItem]


class MCQSubmissionResult(BaseModel):
    submission_id: UUID
    score: int
    correct_count: int
    total_questions: int


class SubjectiveSubmissionResult(BaseModel):
    submission_id: UUID
    message: str = "Submission received; awaiting grading"


class CourseSubmissionItem(SubmissionResponse):
    """Submission as seen by the coach, with the submitting learner."""

    progress_id: UUID
    student: AuthorSummary | None = None


class CourseSubmissionsResponse(BaseModel):
    submissions: list[CourseSubmissionItem]
