"""Database models for assignments.

Cassandra table definitions for:
- assignments: main table; question lists are stored as JSON documents
- assignments_by_course: lookup of a course's assignments
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

import orjson

from learnhub.utils.dates import ensure_utc_aware, utc_now


class AssignmentType(str, Enum):
    """Assignment kind; decides which question list is populated."""

    MCQ = "mcq"
    SUBJECTIVE = "subjective"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

ASSIGNMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.assignments (
    id UUID PRIMARY KEY,
    course_id UUID,
    module_id UUID,
    title TEXT,
    type TEXT,
    mcq_questions TEXT,
    subjective_questions TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

ASSIGNMENTS_BY_COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.assignments_by_course (
    course_id UUID,
    assignment_id UUID,
    PRIMARY KEY (course_id, assignment_id)
)
"""

ASSIGNMENTS_TABLES_CQL = [
    ASSIGNMENT_TABLE_CQL,
    ASSIGNMENTS_BY_COURSE_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class MCQOption:
    text: str
    is_correct: bool = False


@dataclass
class MCQQuestion:
    question_text: str
    options: list[MCQOption] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MCQQuestion":
        return cls(
            question_text=data["question_text"],
            options=[
                MCQOption(text=o["text"], is_correct=bool(o.get("is_correct")))
                for o in data.get("options") or []
            ],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "question_text": self.question_text,
            "options": [
                {"text": o.text, "is_correct": o.is_correct} for o in self.options
            ],
        }


@dataclass
class SubjectiveQuestion:
    question_text: str
    max_words: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SubjectiveQuestion":
        return cls(question_text=data["question_text"], max_words=data.get("max_words"))

    def to_dict(self) -> dict[str, Any]:
        return {"question_text": self.question_text, "max_words": self.max_words}


def _dump(items: list[Any]) -> str | None:
    if not items:
        return None
    return orjson.dumps([item.to_dict() for item in items]).decode()


def _load(raw: str | None, factory: Any) -> list[Any]:
    if not raw:
        return []
    return [factory.from_dict(item) for item in orjson.loads(raw)]


class Assignment:
    """Assignment entity.

    Attributes:
        id: Unique identifier
        course_id: Owning course (immutable)
        module_id: Optional module of the course the assignment belongs to
        title: Assignment title
        type: mcq or subjective
        mcq_questions: Questions with answer key (MCQ only)
        subjective_questions: Free-text questions (subjective only)
    """

    def __init__(
        self,
        course_id: UUID,
        title: str,
        type: AssignmentType | str,
        module_id: UUID | None = None,
        mcq_questions: list[MCQQuestion] | None = None,
        subjective_questions: list[SubjectiveQuestion] | None = None,
        id: UUID | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.course_id = course_id
        self.module_id = module_id
        self.title = title
        self.type = AssignmentType(type)
        self.mcq_questions = mcq_questions or []
        self.subjective_questions = subjective_questions or []
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_row(cls, row: Any) -> "Assignment":
        """Create Assignment instance from Cassandra row."""
        return cls(
            id=row.id,
            course_id=row.course_id,
            module_id=row.module_id,
            title=row.title,
            type=row.type,
            mcq_questions=_load(row.mcq_questions, MCQQuestion),
            subjective_questions=_load(row.subjective_questions, SubjectiveQuestion),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @property
    def mcq_questions_json(self) -> str | None:
        return _dump(self.mcq_questions)

    @property
    def subjective_questions_json(self) -> str | None:
        return _dump(self.subjective_questions)

    @property
    def question_count(self) -> int:
        if self.type == AssignmentType.MCQ:
            return len(self.mcq_questions)
        return len(self.subjective_questions)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "course_id": self.course_id,
            "module_id": self.module_id,
            "title": self.title,
            "type": self.type.value,
            "mcq_questions": [q.to_dict() for q in self.mcq_questions],
            "subjective_questions": [q.to_dict() for q in self.subjective_questions],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<Assignment {self.title} ({self.type.value})>"
