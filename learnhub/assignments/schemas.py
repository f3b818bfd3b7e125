"""Pydantic schemas for assignments."""

from datetime import datetime
from typing import Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from learnhub.assignments.models import AssignmentType


MIN_OPTIONS = 2
MAX_OPTIONS = 6


# ==============================================================================
# Question Schemas
# ==============================================================================


class MCQOptionInput(BaseModel):
    text: str = Field(..., min_length=1, max_length=1000)
    is_correct: bool = False


class MCQQuestionInput(BaseModel):
    question_text: str = Field(..., min_length=1, max_length=5000)
    options: list[MCQOptionInput] = Field(
        ..., min_length=MIN_OPTIONS, max_length=MAX_OPTIONS
    )

    @field_validator("options")
    @classmethod
    def require_correct_option(cls, v: list[MCQOptionInput]) -> list[MCQOptionInput]:
        if not any(option.is_correct for option in v):
            msg = "Each question must have at least one correct answer"
            raise ValueError(msg)
        return v


class SubjectiveQuestionInput(BaseModel):
    question_text: str = Field(..., min_length=1, max_length=5000)
    max_words: int | None = Field(None, gt=0)


def check_questions_for_type(
    type_: AssignmentType | None,
    mcq_questions: list | None,
    subjective_questions: list | None,
) -> None:
    """Raise ValueError unless the list matching ``type_`` is non-empty."""
    if type_ == AssignmentType.MCQ and not mcq_questions:
        msg = "MCQ assignments require at least one question"
        raise ValueError(msg)
    if type_ == AssignmentType.SUBJECTIVE and not subjective_questions:
        msg = "Subjective assignments require at least one question"
        raise ValueError(msg)


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateAssignmentRequest(BaseModel):
    """Assignment creation request."""

    title: str = Field(..., min_length=1, max_length=200)
    type: AssignmentType
    course_id: UUID
    module_id: UUID | None = None
    mcq_questions: list[MCQQuestionInput] | None = None
    subjective_questions: list[SubjectiveQuestionInput] | None = None

    @model_validator(mode="after")
    def check_questions(self) -> Self:
        check_questions_for_type(
            self.type, self.mcq_questions, self.subjective_questions
        )
        return self


class UpdateAssignmentRequest(BaseModel):
    """Partial assignment update. The owning course cannot change."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(None, min_length=1, max_length=200)
    type: AssignmentType | None = None
    module_id: UUID | None = None
    mcq_questions: list[MCQQuestionInput] | None = None
    subjective_questions: list[SubjectiveQuestionInput] | None = None


# ==============================================================================
# Response Schemas
# ==============================================================================


class MCQOptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    text: str
    is_correct: bool | None = None


class MCQQuestionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    question_text: str
    options: list[MCQOptionResponse]


class SubjectiveQuestionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    question_text: str
    max_words: int | None = None


class AssignmentResponse(BaseModel):
    """Assignment; ``is_correct`` is null when the answer key is hidden."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    module_id: UUID | None = None
    title: str
    type: AssignmentType
    mcq_questions: list[MCQQuestionResponse] = []
    subjective_questions: list[SubjectiveQuestionResponse] = []
    created_at: datetime
    updated_at: datetime | None = None


class AssignmentListResponse(BaseModel):
    assignments: list[AssignmentResponse]
