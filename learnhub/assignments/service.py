"""Assignment service layer.

Business logic for:
- Assignment CRUD restricted to the coach owning the course
- Answer-key hiding for everyone else
"""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from learnhub.assignments.models import (
    Assignment,
    MCQOption,
    MCQQuestion,
    SubjectiveQuestion,
)
from learnhub.assignments.schemas import (
    AssignmentResponse,
    CreateAssignmentRequest,
    MCQQuestionInput,
    SubjectiveQuestionInput,
    UpdateAssignmentRequest,
    check_questions_for_type,
)
from learnhub.courses.service import CourseService
from learnhub.utils.dates import utc_now


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class AssignmentError(Exception):
    """Base assignment error."""

    def __init__(self, message: str, code: str = "assignment_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class AssignmentNotFoundError(AssignmentError):
    def __init__(self, message: str = "Assignment not found"):
        super().__init__(message, "assignment_not_found")


class InvalidAssignmentError(AssignmentError):
    def __init__(self, message: str = "Invalid assignment"):
        super().__init__(message, "invalid_assignment")


def _mcq_entities(questions: list[MCQQuestionInput] | None) -> list[MCQQuestion]:
    return [
        MCQQuestion(
            question_text=q.question_text,
            options=[MCQOption(text=o.text, is_correct=o.is_correct) for o in q.options],
        )
        for q in questions or []
    ]


def _subjective_entities(
    questions: list[SubjectiveQuestionInput] | None,
) -> list[SubjectiveQuestion]:
    return [
        SubjectiveQuestion(question_text=q.question_text, max_words=q.max_words)
        for q in questions or []
    ]


def to_response(assignment: Assignment, reveal_answers: bool) -> AssignmentResponse:
    """Build the API view, stripping ``is_correct`` unless revealed."""
    response = AssignmentResponse.model_validate(assignment)
    if not reveal_answers:
        for question in response.mcq_questions:
            for option in question.options:
                option.is_correct = None
    return response


class AssignmentService:
    """Service for assignments."""

    def __init__(self, session: "Session", keyspace: str, course_service: CourseService):
        self.session = session
        self.keyspace = keyspace
        self.course_service = course_service
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_assignment_by_id = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.assignments WHERE id = ?"
        )
        self._insert_assignment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.assignments
            (id, course_id, module_id, title, type, mcq_questions,
             subjective_questions, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._update_assignment = self.session.prepare(f"""
            UPDATE {self.keyspace}.assignments
            SET module_id = ?, title = ?, type = ?, mcq_questions = ?,
                subjective_questions = ?, updated_at = ?
            WHERE id = ?
        """)
        self._delete_assignment = self.session.prepare(
            f"DELETE FROM {self.keyspace}.assignments WHERE id = ?"
        )
        self._get_assignment_ids_by_course = self.session.prepare(
            f"SELECT assignment_id FROM {self.keyspace}.assignments_by_course WHERE course_id = ?"
        )
        self._insert_assignment_by_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.assignments_by_course (course_id, assignment_id)
            VALUES (?, ?)
        """)
        self._delete_assignment_by_course = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.assignments_by_course
            WHERE course_id = ? AND assignment_id = ?
        """)

    # ==========================================================================
    # Lookups
    # ==========================================================================

    async def get_assignment(self, assignment_id: UUID) -> Assignment | None:
        result = await self.session.aexecute(self._get_assignment_by_id, [assignment_id])
        row = result.one()
        return Assignment.from_row(row) if row else None

    async def list_by_course(self, course_id: UUID) -> list[Assignment]:
        """Assignments of a course, oldest first."""
        rows = await self.session.aexecute(
            self._get_assignment_ids_by_course, [course_id]
        )
        assignments = []
        for row in rows:
            assignment = await self.get_assignment(row.assignment_id)
            if assignment:
                assignments.append(assignment)
        return sorted(assignments, key=lambda a: a.created_at)

    async def _get_owned_assignment(
        self, assignment_id: UUID, coach_id: UUID
    ) -> Assignment:
        assignment = await self.get_assignment(assignment_id)
        if not assignment:
            raise AssignmentNotFoundError
        await self.course_service.get_owned_course(assignment.course_id, coach_id)
        return assignment

    # ==========================================================================
    # Mutations
    # ==========================================================================

    async def create_assignment(
        self, data: CreateAssignmentRequest, coach_id: UUID
    ) -> Assignment:
        """Create an assignment in a course the coach owns.

        Raises:
            CourseNotFoundError: If the course does not exist
            NotCourseOwnerError: If another coach owns the course
        """
        await self.course_service.get_owned_course(data.course_id, coach_id)

        assignment = Assignment(
            course_id=data.course_id,
            module_id=data.module_id,
            title=data.title.strip(),
            type=data.type,
            mcq_questions=_mcq_entities(data.mcq_questions),
            subjective_questions=_subjective_entities(data.subjective_questions),
        )
        await self.session.aexecute(
            self._insert_assignment,
            [
                assignment.id,
                assignment.course_id,
                assignment.module_id,
                assignment.title,
                assignment.type.value,
                assignment.mcq_questions_json,
                assignment.subjective_questions_json,
                assignment.created_at,
                assignment.updated_at,
            ],
        )
        await self.session.aexecute(
            self._insert_assignment_by_course, [assignment.course_id, assignment.id]
        )

        logger.info(
            "assignment_created",
            assignment_id=str(assignment.id),
            course_id=str(assignment.course_id),
            type=assignment.type.value,
        )
        return assignment

    async def update_assignment(
        self,
        assignment_id: UUID,
        data: UpdateAssignmentRequest,
        coach_id: UUID,
    ) -> Assignment:
        """Apply a partial update; the merged result must still be valid."""
        assignment = await self._get_owned_assignment(assignment_id, coach_id)

        if data.title is not None:
            assignment.title = data.title.strip()
        if data.type is not None:
            assignment.type = data.type
        if "module_id" in data.model_fields_set:
            assignment.module_id = data.module_id
        if data.mcq_questions is not None:
            assignment.mcq_questions = _mcq_entities(data.mcq_questions)
        if data.subjective_questions is not None:
            assignment.subjective_questions = _subjective_entities(
                data.subjective_questions
            )

        try:
            check_questions_for_type(
                assignment.type,
                assignment.mcq_questions,
                assignment.subjective_questions,
            )
        except ValueError as e:
            raise InvalidAssignmentError(str(e)) from e

        assignment.updated_at = utc_now()
        await self.session.aexecute(
            self._update_assignment,
            [
                assignment.module_id,
                assignment.title,
                assignment.type.value,
                assignment.mcq_questions_json,
                assignment.subjective_questions_json,
                assignment.updated_at,
                assignment.id,
            ],
        )

        logger.info("assignment_updated", assignment_id=str(assignment.id))
        return assignment

    async def delete_assignment(self, assignment_id: UUID, coach_id: UUID) -> None:
        assignment = await self._get_owned_assignment(assignment_id, coach_id)

        await self.session.aexecute(self._delete_assignment, [assignment.id])
        await self.session.aexecute(
            self._delete_assignment_by_course, [assignment.course_id, assignment.id]
        )
        logger.info("assignment_deleted", assignment_id=str(assignment.id))

