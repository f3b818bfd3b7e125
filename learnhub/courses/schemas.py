"""Pydantic schemas for courses.

Request and response models for:
- Courses: CRUD and listing
- Modules and resources embedded in a course
"""

from datetime import datetime
from typing import Self
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    field_validator,
    model_validator,
)

from learnhub.courses.models import ResourceType


MAX_DOCUMENT_LENGTH = 50000


def _blank_to_none(v: str | None) -> str | None:
    if v is None or not v.strip():
        return None
    return v.strip()


# ==============================================================================
# Module / Resource Schemas
# ==============================================================================


class ResourceInput(BaseModel):
    """Resource in a course create/update request.

    Pass ``id`` to keep an existing resource's identifier (and with it the
    learners' completion state) when editing a course.
    """

    id: UUID | None = None
    type: ResourceType
    title: str = Field(..., min_length=1, max_length=200)
    youtube_url: HttpUrl | None = None
    content: str | None = Field(None, max_length=MAX_DOCUMENT_LENGTH)

    @model_validator(mode="after")
    def check_payload_for_type(self) -> Self:
        if self.type == ResourceType.VIDEO and not self.youtube_url:
            msg = "Video resources require a YouTube URL"
            raise ValueError(msg)
        if self.type == ResourceType.DOCUMENT and not (
            self.content and self.content.strip()
        ):
            msg = "Document resources require content"
            raise ValueError(msg)
        return self


class ModuleInput(BaseModel):
    """Module in a course create/update request."""

    id: UUID | None = None
    title: str = Field(..., min_length=1, max_length=200)
    order: int = Field(..., ge=0)
    resources: list[ResourceInput] = Field(default_factory=list)
    assignment_id: UUID | None = None

    @model_validator(mode="after")
    def check_not_empty(self) -> Self:
        if not self.resources and self.assignment_id is None:
            msg = "Each module must have at least one resource or an assignment"
            raise ValueError(msg)
        return self


class ResourceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: ResourceType
    title: str
    youtube_url: str | None = None
    content: str | None = None


class ModuleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    order: int
    resources: list[ResourceResponse]
    assignment_id: UUID | None = None


# ==============================================================================
# Course Schemas
# ==============================================================================


class CreateCourseRequest(BaseModel):
    """Course creation request."""

    title: str = Field(..., min_length=3, max_length=200, description="Course title")
    description: str = Field("", max_length=5000, description="Course description")
    thumbnail_url: str | None = Field(
        None, max_length=500, description="Thumbnail image URL"
    )
    modules: list[ModuleInput] = Field(..., min_length=1)

    @field_validator("thumbnail_url")
    @classmethod
    def normalize_thumbnail(cls, v: str | None) -> str | None:
        return _blank_to_none(v)


class UpdateCourseRequest(BaseModel):
    """Course update request. Omitted fields are left unchanged."""

    title: str | None = Field(None, min_length=3, max_length=200)
    description: str | None = Field(None, max_length=5000)
    thumbnail_url: str | None = Field(None, max_length=500)
    modules: list[ModuleInput] | None = Field(None, min_length=1)

    @field_validator("thumbnail_url")
    @classmethod
    def normalize_thumbnail(cls, v: str | None) -> str | None:
        return _blank_to_none(v)


class CourseSummary(BaseModel):
    """Course fields shown in listings and inside paths/progress."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None = None
    thumbnail_url: str | None = None
    coach_id: UUID
    module_count: int = 0
    resource_count: int = 0


class CourseResponse(BaseModel):
    """Course with its modules and resources."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    coach_id: UUID
    title: str
    description: str | None = None
    thumbnail_url: str | None = None
    modules: list[ModuleResponse]
    created_at: datetime
    updated_at: datetime | None = None


class CourseListResponse(BaseModel):
    """Paginated course list response."""

    courses: list[CourseResponse]
    total: int
    limit: int
    offset: int
