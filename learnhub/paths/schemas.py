"""Pydantic schemas for learning paths."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from learnhub.courses.schemas import CourseSummary


def _blank_to_none(v: str | None) -> str | None:
    if v is None or not v.strip():
        return None
    return v.strip()


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreatePathRequest(BaseModel):
    """Path creation request. Every course must belong to the coach."""

    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field("", max_length=5000)
    thumbnail_url: str | None = Field(None, max_length=500)
    course_ids: list[UUID] = Field(..., min_length=1)

    @field_validator("thumbnail_url")
    @classmethod
    def normalize_thumbnail(cls, v: str | None) -> str | None:
        return _blank_to_none(v)


class UpdatePathRequest(BaseModel):
    """Path update request. Omitted fields are left unchanged."""

    title: str | None = Field(None, min_length=3, max_length=200)
    description: str | None = Field(None, max_length=5000)
    thumbnail_url: str | None = Field(None, max_length=500)
    course_ids: list[UUID] | None = Field(None, min_length=1)

    @field_validator("thumbnail_url")
    @classmethod
    def normalize_thumbnail(cls, v: str | None) -> str | None:
        return _blank_to_none(v)


class StartPathRequest(BaseModel):
    path_id: UUID


# ==============================================================================
# Response Schemas
# ==============================================================================


class PathSummary(BaseModel):
    id: UUID
    title: str
    description: str | None = None
    thumbnail_url: str | None = None
    total_courses: int


class PathResponse(BaseModel):
    """Path with its courses in path order; deleted courses are left out."""

    id: UUID
    created_by: UUID
    title: str
    description: str | None = None
    thumbnail_url: str | None = None
    courses: list[CourseSummary]
    created_at: datetime
    updated_at: datetime | None = None


class PathListResponse(BaseModel):
    paths: list[PathResponse]
    total: int
    limit: int
    offset: int


class PathEnrollmentResponse(BaseModel):
    path_id: UUID
    user_id: UUID
    started_at: datetime
    completed_at: datetime | None = None


class MyPathItem(BaseModel):
    """A started path with the learner's aggregate progress."""

    path: PathSummary
    started_at: datetime
    completed_at: datetime | None = None
    progress_percent: int
    courses_completed: int


class MyPathsResponse(BaseModel):
    paths: list[MyPathItem]


class PathCourseProgress(BaseModel):
    order: int = Field(..., ge=1, description="1-based position in the path")
    course: CourseSummary
    enrolled: bool
    progress_percent: int
    completed_at: datetime | None = None


class PathProgressResponse(BaseModel):
    """Per-course breakdown of a learner's progress through a path."""

    path: PathSummary
    started_at: datetime
    progress_percent: int
    courses_completed: int
    courses: list[PathCourseProgress]
