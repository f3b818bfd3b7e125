"""Learner progress service layer.

Business logic for:
- Course enrollment (one progress record per learner and course)
- Idempotent resource completion
- MCQ submissions with automatic grading, subjective submissions
- Manual grading by the coach owning the course
- Progress views for learners and coaches
"""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog
from cassandra.util import uuid_from_time

from learnhub.assignments.grading import MCQGradeResult, grade_mcq
from learnhub.assignments.models import Assignment, AssignmentType
from learnhub.assignments.service import AssignmentNotFoundError, AssignmentService
from learnhub.auth.schemas import AuthorSummary
from learnhub.auth.service import AuthService
from learnhub.courses.models import ResourceType
from learnhub.courses.service import CourseNotFoundError, CourseService, to_summary
from learnhub.utils.dates import utc_now

from .aggregation import course_progress_percent
from .models import Progress, Submission
from .schemas import CourseSubmissionItem, MyCourseItem, SubmissionResponse


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class ProgressError(Exception):
    """Base progress error."""

    def __init__(self, message: str, code: str = "progress_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotEnrolledError(ProgressError):
    """Learner has no progress record for the course."""

    def __init__(self, message: str = "Not enrolled in this course"):
        super().__init__(message, "not_enrolled")


class AlreadyEnrolledError(ProgressError):
    def __init__(self, message: str = "Already enrolled"):
        super().__init__(message, "already_enrolled")


class ProgressNotFoundError(ProgressError):
    def __init__(self, message: str = "Progress not found"):
        super().__init__(message, "progress_not_found")


class SubmissionNotFoundError(ProgressError):
    def __init__(self, message: str = "Submission not found"):
        super().__init__(message, "submission_not_found")


# ==============================================================================
# Progress Service
# ==============================================================================


class ProgressService:
    """Service for learner progress."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        course_service: CourseService,
        assignment_service: AssignmentService,
        auth_service: AuthService,
    ):
        self.session = session
        self.keyspace = keyspace
        self.course_service = course_service
        self.assignment_service = assignment_service
        self.auth_service = auth_service
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        # Progress records
        self._get_progress = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.progress
            WHERE user_id = ? AND course_id = ?
        """)
        self._get_user_progress = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.progress WHERE user_id = ?"
        )
        self._insert_progress = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.progress
            (user_id, course_id, progress_id, enrolled_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)
        self._add_completed_video = self.session.prepare(f"""
            UPDATE {self.keyspace}.progress
            SET completed_videos = completed_videos + ?, updated_at = ?
            WHERE user_id = ? AND course_id = ?
        """)
        self._add_completed_document = self.session.prepare(f"""
            UPDATE {self.keyspace}.progress
            SET completed_documents = completed_documents + ?, updated_at = ?
            WHERE user_id = ? AND course_id = ?
        """)
        self._set_completed_at = self.session.prepare(f"""
            UPDATE {self.keyspace}.progress
            SET completed_at = ?, updated_at = ?
            WHERE user_id = ? AND course_id = ?
        """)

        # Lookups
        self._get_progress_key = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.progress_by_id WHERE progress_id = ?"
        )
        self._insert_progress_key = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.progress_by_id (progress_id, user_id, course_id)
            VALUES (?, ?, ?)
        """)
        self._get_course_enrollments = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.progress_by_course WHERE course_id = ?"
        )
        self._insert_course_enrollment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.progress_by_course
            (course_id, user_id, progress_id, enrolled_at)
            VALUES (?, ?, ?, ?)
        """)

        # Submissions
        self._get_submissions = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.progress_submissions WHERE progress_id = ?"
        )
        self._get_submission = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.progress_submissions
            WHERE progress_id = ? AND submission_id = ?
        """)
        self._insert_submission = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.progress_submissions
            (progress_id, submission_id, assignment_id, submitted_at,
             mcq_answers, subjective_answers, score)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)
        self._grade_submission = self.session.prepare(f"""
            UPDATE {self.keyspace}.progress_submissions
            SET score = ?, feedback = ?, graded_at = ?
            WHERE progress_id = ? AND submission_id = ?
        """)

    # ==========================================================================
    # Progress Queries
    # ==========================================================================

    async def get_progress(
        self,
        user_id: UUID,
        course_id: UUID,
        include_submissions: bool = False,
    ) -> Progress | None:
        """Get a learner's progress record for a course."""
        result = await self.session.aexecute(self._get_progress, [user_id, course_id])
        row = result.one()
        if not row:
            return None
        progress = Progress.from_row(row)
        if include_submissions:
            progress.submissions = await self.get_submissions(progress.id)
        return progress

    async def _require_progress(self, user_id: UUID, course_id: UUID) -> Progress:
        progress = await self.get_progress(user_id, course_id)
        if not progress:
            raise NotEnrolledError
        return progress

    async def get_user_progress(self, user_id: UUID) -> list[Progress]:
        """All progress records of a learner, most recently enrolled first."""
        rows = await self.session.aexecute(self._get_user_progress, [user_id])
        records = [Progress.from_row(row) for row in rows]
        return sorted(records, key=lambda p: p.enrolled_at, reverse=True)

    async def get_progress_by_course(
        self, user_id: UUID, course_ids: list[UUID]
    ) -> dict[UUID, Progress]:
        """The learner's progress records for the given courses, by course id."""
        wanted = set(course_ids)
        return {
            progress.course_id: progress
            for progress in await self.get_user_progress(user_id)
            if progress.course_id in wanted
        }

    async def get_submissions(self, progress_id: UUID) -> list[Submission]:
        """Submissions of a progress record, oldest first."""
        rows = await self.session.aexecute(self._get_submissions, [progress_id])
        return [Submission.from_row(row) for row in rows]

    # ==========================================================================
    # Enrollment
    # ==========================================================================

    async def enroll(self, user_id: UUID, course_id: UUID) -> Progress:
        """Create the learner's progress record for a course.

        Raises:
            CourseNotFoundError: If the course does not exist
            AlreadyEnrolledError: If a record already exists for the pair
        """
        course = await self.course_service.get_course(course_id)
        if not course:
            raise CourseNotFoundError

        progress = Progress(user_id=user_id, course_id=course_id)
        result = await self.session.aexecute(
            self._insert_progress,
            [
                progress.user_id,
                progress.course_id,
                progress.id,
                progress.enrolled_at,
                progress.enrolled_at,
            ],
        )
        if not result.was_applied:
            raise AlreadyEnrolledError

        await self.session.aexecute(
            self._insert_progress_key,
            [progress.id, progress.user_id, progress.course_id],
        )
        await self.session.aexecute(
            self._insert_course_enrollment,
            [progress.course_id, progress.user_id, progress.id, progress.enrolled_at],
        )

        logger.info(
            "user_enrolled",
            user_id=str(user_id),
            course_id=str(course_id),
            progress_id=str(progress.id),
        )
        return progress

    async def complete_course(self, user_id: UUID, course_id: UUID) -> Progress:
        """Set the course completion timestamp; repeated calls keep the first."""
        progress = await self._require_progress(user_id, course_id)
        if progress.completed_at is not None:
            return progress

        now = utc_now()
        await self.session.aexecute(
            self._set_completed_at, [now, now, user_id, course_id]
        )
        progress.completed_at = now
        progress.updated_at = now

        logger.info("course_completed", user_id=str(user_id), course_id=str(course_id))
        return progress

    # ==========================================================================
    # Resource Completion
    # ==========================================================================

    async def mark_resource_complete(
        self,
        user_id: UUID,
        course_id: UUID,
        resource_id: UUID,
        resource_type: ResourceType,
    ) -> Progress:
        """Add a resource to the learner's completion set.

        Marking an already completed resource is a no-op. The set union is
        done by Cassandra, so concurrent calls cannot lose updates.

        Raises:
            NotEnrolledError: If the learner is not enrolled in the course
        """
        progress = await self._require_progress(user_id, course_id)
        if not progress.mark_completed(resource_id, resource_type):
            return progress

        statement = (
            self._add_completed_video
            if resource_type == ResourceType.VIDEO
            else self._add_completed_document
        )
        progress.updated_at = utc_now()
        await self.session.aexecute(
            statement, [{resource_id}, progress.updated_at, user_id, course_id]
        )

        logger.info(
            "resource_completed",
            user_id=str(user_id),
            course_id=str(course_id),
            resource_id=str(resource_id),
            resource_type=resource_type.value,
        )
        return progress

    # ==========================================================================
    # Submissions
    # ==========================================================================

    async def _require_assignment(
        self,
        assignment_id: UUID,
        course_id: UUID,
        expected_type: AssignmentType,
    ) -> Assignment:
        assignment = await self.assignment_service.get_assignment(assignment_id)
        if (
            not assignment
            or assignment.type != expected_type
            or assignment.course_id != course_id
        ):
            label = "MCQ" if expected_type == AssignmentType.MCQ else "Subjective"
            raise AssignmentNotFoundError(f"{label} assignment not found")
        return assignment

    async def _store_submission(self, submission: Submission) -> None:
        await self.session.aexecute(
            self._insert_submission,
            [
                submission.progress_id,
                submission.submission_id,
                submission.assignment_id,
                submission.submitted_at,
                submission.mcq_answers,
                submission.subjective_answers,
                submission.score,
            ],
        )

    async def submit_mcq(
        self,
        user_id: UUID,
        course_id: UUID,
        assignment_id: UUID,
        answers: list[int],
    ) -> tuple[Submission, MCQGradeResult]:
        """Grade and store an MCQ submission.

        Every call appends a new submission; earlier ones are kept.

        Raises:
            NotEnrolledError: If the learner is not enrolled in the course
            AssignmentNotFoundError: If no MCQ assignment with this id
                exists in the course
        """
        progress = await self._require_progress(user_id, course_id)
        assignment = await self._require_assignment(
            assignment_id, course_id, AssignmentType.MCQ
        )

        result = grade_mcq(assignment, answers)
        submitted_at = utc_now()
        submission = Submission(
            progress_id=progress.id,
            submission_id=uuid_from_time(submitted_at),
            assignment_id=assignment.id,
            submitted_at=submitted_at,
            mcq_answers=answers,
            score=float(result.score),
        )
        await self._store_submission(submission)

        logger.info(
            "mcq_submitted",
            user_id=str(user_id),
            assignment_id=str(assignment_id),
            score=result.score,
            correct_count=result.correct_count,
            total_questions=result.total_questions,
        )
        return submission, result

    async def submit_subjective(
        self,
        user_id: UUID,
        course_id: UUID,
        assignment_id: UUID,
        answers: list[str],
    ) -> Submission:
        """Store a subjective submission, unscored until a coach grades it."""
        progress = await self._require_progress(user_id, course_id)
        assignment = await self._require_assignment(
            assignment_id, course_id, AssignmentType.SUBJECTIVE
        )

        submitted_at = utc_now()
        submission = Submission(
            progress_id=progress.id,
            submission_id=uuid_from_time(submitted_at),
            assignment_id=assignment.id,
            submitted_at=submitted_at,
            subjective_answers=answers,
        )
        await self._store_submission(submission)

        logger.info(
            "subjective_submitted",
            user_id=str(user_id),
            assignment_id=str(assignment_id),
            answers=len(answers),
        )
        return submission

    # ==========================================================================
    # Grading
    # ==========================================================================

    async def grade_submission(
        self,
        progress_id: UUID,
        submission_id: UUID,
        coach_id: UUID,
        score: float | None = None,
        feedback: str | None = None,
    ) -> Submission:
        """Grade a submission in a course the coach owns.

        Overwrites any previous grade; ``graded_at`` is always refreshed.
        Omitted ``score``/``feedback`` keep their current value.

        Raises:
            ProgressNotFoundError: If the progress record does not exist
            SubmissionNotFoundError: If the submission does not exist
            CourseNotFoundError / NotCourseOwnerError: From the ownership check
        """
        result = await self.session.aexecute(self._get_progress_key, [progress_id])
        key = result.one()
        if not key:
            raise ProgressNotFoundError

        await self.course_service.get_owned_course(key.course_id, coach_id)

        result = await self.session.aexecute(
            self._get_submission, [progress_id, submission_id]
        )
        row = result.one()
        if not row:
            raise SubmissionNotFoundError
        submission = Submission.from_row(row)

        if score is not None:
            submission.score = score
        if feedback is not None:
            submission.feedback = feedback
        submission.graded_at = utc_now()

        await self.session.aexecute(
            self._grade_submission,
            [
                submission.score,
                submission.feedback,
                submission.graded_at,
                progress_id,
                submission_id,
            ],
        )

        logger.info(
            "submission_graded",
            progress_id=str(progress_id),
            submission_id=str(submission_id),
            coach_id=str(coach_id),
            score=submission.score,
        )
        return submission

    # ==========================================================================
    # Views
    # ==========================================================================

    async def list_my_courses(self, user_id: UUID) -> list[MyCourseItem]:
        """Enrolled courses with percent and counts, most recent first.

        Records whose course has been deleted are skipped.
        """
        records = await self.get_user_progress(user_id)
        courses = await self.course_service.get_courses([p.course_id for p in records])

        items = []
        for progress in records:
            course = courses.get(progress.course_id)
            if not course:
                continue
            submissions = await self.get_submissions(progress.id)
            items.append(
                MyCourseItem(
                    progress_id=progress.id,
                    course=to_summary(course),
                    enrolled_at=progress.enrolled_at,
                    completed_at=progress.completed_at,
                    progress_percent=course_progress_percent(progress, course),
                    completed_videos=len(progress.completed_videos),
                    completed_documents=len(progress.completed_documents),
                    submissions_count=len(submissions),
                )
            )
        return items

    async def get_course_progress(
        self, user_id: UUID, course_id: UUID
    ) -> tuple[Progress, int]:
        """Progress record with submissions and its completion percent.

        Raises:
            NotEnrolledError: If the learner is not enrolled in the course
        """
        progress = await self.get_progress(user_id, course_id, include_submissions=True)
        if not progress:
            raise NotEnrolledError

        course = await self.course_service.get_course(course_id)
        percent = course_progress_percent(progress, course) if course else 0
        return progress, percent

    async def list_course_submissions(
        self, course_id: UUID, coach_id: UUID
    ) -> list[CourseSubmissionItem]:
        """All submissions in a course the coach owns, newest first."""
        await self.course_service.get_owned_course(course_id, coach_id)

        rows = await self.session.aexecute(self._get_course_enrollments, [course_id])
        enrollments = list(rows)
        students = await self.auth_service.get_users_by_ids(
            [row.user_id for row in enrollments]
        )

        items = []
        for enrollment in enrollments:
            student = students.get(enrollment.user_id)
            summary = (
                AuthorSummary(
                    id=student.id,
                    name=student.display_name,
                    email=student.email,
                    role=student.role,
                )
                if student
                else None
            )
            for submission in await self.get_submissions(enrollment.progress_id):
                items.append(
                    CourseSubmissionItem(
                        **SubmissionResponse.from_entity(submission).model_dump(),
                        progress_id=enrollment.progress_id,
                        student=summary,
                    )
                )

        return sorted(items, key=lambda item: item.submitted_at, reverse=True)
