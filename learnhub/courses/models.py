"""Database models for courses.

Cassandra table definitions for:
- courses: main course table; the ordered module list is stored as a
  JSON document in ``modules`` since modules and resources are only ever
  read and written together with their course
- courses_by_coach: lookup for a coach's own courses, newest first

Resources are identified by UUIDs that stay stable across course edits;
progress records point at them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

import orjson

from learnhub.utils.dates import ensure_utc_aware, utc_now


class ResourceType(str, Enum):
    """Kind of learning resource inside a module."""

    VIDEO = "video"
    DOCUMENT = "document"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses (
    id UUID PRIMARY KEY,
    coach_id UUID,
    title TEXT,
    description TEXT,
    thumbnail_url TEXT,
    modules TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

COURSES_BY_COACH_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses_by_coach (
    coach_id UUID,
    created_at TIMESTAMP,
    course_id UUID,
    PRIMARY KEY (coach_id, created_at, course_id)
) WITH CLUSTERING ORDER BY (created_at DESC, course_id ASC)
"""

COURSES_TABLES_CQL = [
    COURSE_TABLE_CQL,
    COURSES_BY_COACH_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Resource:
    """A video or document inside a module."""

    type: ResourceType
    title: str
    youtube_url: str | None = None
    content: str | None = None
    id: UUID = field(default_factory=uuid4)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Resource":
        return cls(
            id=UUID(str(data["id"])),
            type=ResourceType(data["type"]),
            title=data["title"],
            youtube_url=data.get("youtube_url"),
            content=data.get("content"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "youtube_url": self.youtube_url,
            "content": self.content,
        }


@dataclass
class CourseModule:
    """Ordered section of a course."""

    title: str
    order: int
    resources: list[Resource] = field(default_factory=list)
    assignment_id: UUID | None = None
    id: UUID = field(default_factory=uuid4)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CourseModule":
        assignment_id = data.get("assignment_id")
        return cls(
            id=UUID(str(data["id"])),
            title=data["title"],
            order=data["order"],
            resources=[Resource.from_dict(r) for r in data.get("resources") or []],
            assignment_id=UUID(str(assignment_id)) if assignment_id else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "order": self.order,
            "resources": [r.to_dict() for r in self.resources],
            "assignment_id": self.assignment_id,
        }


def dump_modules(modules: list[CourseModule]) -> str:
    """Serialize modules for the ``courses.modules`` column."""
    return orjson.dumps([m.to_dict() for m in modules]).decode()


def load_modules(raw: str | None) -> list[CourseModule]:
    """Parse the ``courses.modules`` column."""
    if not raw:
        return []
    return [CourseModule.from_dict(m) for m in orjson.loads(raw)]


class Course:
    """Course entity.

    Attributes:
        id: Unique identifier
        coach_id: Owning coach
        title: Course title
        description: Free-text description
        thumbnail_url: Cover image URL
        modules: Ordered modules with their resources
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        coach_id: UUID,
        title: str,
        modules: list[CourseModule] | None = None,
        description: str | None = None,
        thumbnail_url: str | None = None,
        id: UUID | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.coach_id = coach_id
        self.title = title
        self.description = description
        self.thumbnail_url = thumbnail_url
        self.modules = sorted(modules or [], key=lambda m: m.order)
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_row(cls, row: Any) -> "Course":
        """Create Course instance from Cassandra row."""
        return cls(
            id=row.id,
            coach_id=row.coach_id,
            title=row.title,
            description=row.description,
            thumbnail_url=row.thumbnail_url,
            modules=load_modules(row.modules),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @property
    def total_resources(self) -> int:
        """Number of resources across all modules."""
        return sum(len(module.resources) for module in self.modules)

    def find_resource(self, resource_id: UUID) -> Resource | None:
        for module in self.modules:
            for resource in module.resources:
                if resource.id == resource_id:
                    return resource
        return None

    def is_owned_by(self, user_id: UUID) -> bool:
        return self.coach_id == user_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "coach_id": self.coach_id,
            "title": self.title,
            "description": self.description,
            "thumbnail_url": self.thumbnail_url,
            "modules": [m.to_dict() for m in self.modules],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<Course {self.title} ({len(self.modules)} modules)>"
