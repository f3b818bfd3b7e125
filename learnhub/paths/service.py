"""Learning path service layer.

Business logic for:
- Path CRUD restricted to the authoring coach, over the coach's own courses
- Starting a path (no automatic course enrollment)
- Path-level progress, recomputed from course progress on every read
"""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from learnhub.courses.models import Course
from learnhub.courses.service import CourseService, to_summary
from learnhub.progress.aggregation import (
    course_progress_percent,
    courses_completed,
    path_progress_percent,
)
from learnhub.progress.service import ProgressService
from learnhub.utils.dates import utc_now

from .models import LearningPath, PathEnrollment
from .schemas import (
    CreatePathRequest,
    MyPathItem,
    PathCourseProgress,
    PathProgressResponse,
    PathResponse,
    PathSummary,
    UpdatePathRequest,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class PathError(Exception):
    """Base path error."""

    def __init__(self, message: str, code: str = "path_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class PathNotFoundError(PathError):
    def __init__(self, message: str = "Path not found"):
        super().__init__(message, "path_not_found")


class NotPathOwnerError(PathError):
    def __init__(self, message: str = "You can only modify your own paths"):
        super().__init__(message, "not_path_owner")


class PathCoursesNotFoundError(PathError):
    def __init__(self, message: str = "Some courses not found"):
        super().__init__(message, "courses_not_found")


class PathCoursesNotOwnedError(PathError):
    """Some of the courses belong to another coach."""

    def __init__(self, course_ids: list[UUID]):
        self.course_ids = course_ids
        super().__init__(
            "You can only add your own courses to a path", "courses_not_owned"
        )


class PathAlreadyStartedError(PathError):
    def __init__(self, message: str = "Already started this path"):
        super().__init__(message, "path_already_started")


class PathNotStartedError(PathError):
    def __init__(self, message: str = "Path not started"):
        super().__init__(message, "path_not_started")


def to_path_summary(path: LearningPath) -> PathSummary:
    return PathSummary(
        id=path.id,
        title=path.title,
        description=path.description,
        thumbnail_url=path.thumbnail_url,
        total_courses=len(path.course_ids),
    )


# ==============================================================================
# Path Service
# ==============================================================================


class PathService:
    """Service for learning paths."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        course_service: CourseService,
        progress_service: ProgressService,
    ):
        self.session = session
        self.keyspace = keyspace
        self.course_service = course_service
        self.progress_service = progress_service
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_path = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.learning_paths WHERE id = ?"
        )
        self._get_all_paths = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.learning_paths"
        )
        self._insert_path = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.learning_paths
            (id, created_by, title, description, thumbnail_url, course_ids,
             created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._update_path = self.session.prepare(f"""
            UPDATE {self.keyspace}.learning_paths
            SET title = ?, description = ?, thumbnail_url = ?, course_ids = ?,
                updated_at = ?
            WHERE id = ?
        """)
        self._delete_path = self.session.prepare(
            f"DELETE FROM {self.keyspace}.learning_paths WHERE id = ?"
        )

        # Enrollments
        self._get_enrollment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.path_enrollments
            WHERE user_id = ? AND path_id = ?
        """)
        self._get_user_enrollments = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.path_enrollments WHERE user_id = ?"
        )
        self._insert_enrollment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.path_enrollments (user_id, path_id, started_at)
            VALUES (?, ?, ?)
            IF NOT EXISTS
        """)
        self._delete_enrollment = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.path_enrollments
            WHERE user_id = ? AND path_id = ?
        """)
        self._get_path_learners = self.session.prepare(f"""
            SELECT user_id FROM {self.keyspace}.path_enrollments_by_path
            WHERE path_id = ?
        """)
        self._insert_path_learner = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.path_enrollments_by_path (path_id, user_id)
            VALUES (?, ?)
        """)
        self._delete_path_learners = self.session.prepare(
            f"DELETE FROM {self.keyspace}.path_enrollments_by_path WHERE path_id = ?"
        )

    # ==========================================================================
    # Lookups
    # ==========================================================================

    async def get_path(self, path_id: UUID) -> LearningPath | None:
        """Get path by ID."""
        result = await self.session.aexecute(self._get_path, [path_id])
        row = result.one()
        return LearningPath.from_row(row) if row else None

    async def _require_path(self, path_id: UUID) -> LearningPath:
        path = await self.get_path(path_id)
        if not path:
            raise PathNotFoundError
        return path

    async def _get_owned_path(self, path_id: UUID, coach_id: UUID) -> LearningPath:
        path = await self._require_path(path_id)
        if not path.is_owned_by(coach_id):
            raise NotPathOwnerError
        return path

    async def get_path_courses(self, path: LearningPath) -> list[Course]:
        """Courses of a path in path order; deleted courses are skipped."""
        found = await self.course_service.get_courses(path.course_ids)
        return [found[cid] for cid in path.course_ids if cid in found]

    async def to_response(self, path: LearningPath) -> PathResponse:
        courses = await self.get_path_courses(path)
        return PathResponse(
            id=path.id,
            created_by=path.created_by,
            title=path.title,
            description=path.description,
            thumbnail_url=path.thumbnail_url,
            courses=[to_summary(c) for c in courses],
            created_at=path.created_at,
            updated_at=path.updated_at,
        )

    async def list_paths(
        self, limit: int = 20, offset: int = 0
    ) -> tuple[list[LearningPath], int]:
        """List paths newest first.

        Returns:
            The requested page and the total number of paths.
        """
        rows = await self.session.aexecute(self._get_all_paths)
        paths = sorted(
            (LearningPath.from_row(row) for row in rows),
            key=lambda p: p.created_at,
            reverse=True,
        )
        return paths[offset : offset + limit], len(paths)

    # ==========================================================================
    # Mutations
    # ==========================================================================

    async def _check_courses(self, course_ids: list[UUID], coach_id: UUID) -> None:
        """Every course must exist and belong to the coach.

        Raises:
            PathCoursesNotFoundError: If any course is missing
            PathCoursesNotOwnedError: With the ids of courses owned by others
        """
        found = await self.course_service.get_courses(course_ids)
        if len(found) != len(set(course_ids)):
            raise PathCoursesNotFoundError

        not_owned = [cid for cid, c in found.items() if not c.is_owned_by(coach_id)]
        if not_owned:
            raise PathCoursesNotOwnedError(not_owned)

    async def create_path(self, data: CreatePathRequest, coach_id: UUID) -> LearningPath:
        """Create a path over courses the coach owns."""
        await self._check_courses(data.course_ids, coach_id)

        path = LearningPath(
            created_by=coach_id,
            title=data.title.strip(),
            course_ids=data.course_ids,
            description=data.description,
            thumbnail_url=data.thumbnail_url,
        )
        await self.session.aexecute(
            self._insert_path,
            [
                path.id,
                path.created_by,
                path.title,
                path.description,
                path.thumbnail_url,
                path.course_ids,
                path.created_at,
                path.updated_at,
            ],
        )

        logger.info(
            "path_created",
            path_id=str(path.id),
            coach_id=str(coach_id),
            courses=len(path.course_ids),
        )
        return path

    async def update_path(
        self,
        path_id: UUID,
        data: UpdatePathRequest,
        coach_id: UUID,
    ) -> LearningPath:
        """Apply a partial update to a path the coach authored."""
        path = await self._get_owned_path(path_id, coach_id)

        if data.course_ids is not None:
            await self._check_courses(data.course_ids, coach_id)
            path.course_ids = list(data.course_ids)
        if data.title is not None:
            path.title = data.title.strip()
        if data.description is not None:
            path.description = data.description
        if "thumbnail_url" in data.model_fields_set:
            path.thumbnail_url = data.thumbnail_url
        path.updated_at = utc_now()

        await self.session.aexecute(
            self._update_path,
            [
                path.title,
                path.description,
                path.thumbnail_url,
                path.course_ids,
                path.updated_at,
                path.id,
            ],
        )

        logger.info("path_updated", path_id=str(path.id))
        return path

    async def delete_path(self, path_id: UUID, coach_id: UUID) -> None:
        """Delete a path and every learner's enrollment in it."""
        path = await self._get_owned_path(path_id, coach_id)

        rows = await self.session.aexecute(self._get_path_learners, [path.id])
        learners = [row.user_id for row in rows]
        for user_id in learners:
            await self.session.aexecute(self._delete_enrollment, [user_id, path.id])
        await self.session.aexecute(self._delete_path_learners, [path.id])
        await self.session.aexecute(self._delete_path, [path.id])

        logger.info(
            "path_deleted",
            path_id=str(path.id),
            enrollments_removed=len(learners),
        )

    # ==========================================================================
    # Enrollment
    # ==========================================================================

    async def start_path(self, user_id: UUID, path_id: UUID) -> PathEnrollment:
        """Start a path.

        The learner is not enrolled in the path's courses; that stays an
        explicit per-course action.

        Raises:
            PathNotFoundError: If the path does not exist
            PathAlreadyStartedError: If the learner already started it
        """
        path = await self._require_path(path_id)

        enrollment = PathEnrollment(user_id=user_id, path_id=path.id)
        result = await self.session.aexecute(
            self._insert_enrollment,
            [enrollment.user_id, enrollment.path_id, enrollment.started_at],
        )
        if not result.was_applied:
            raise PathAlreadyStartedError

        await self.session.aexecute(self._insert_path_learner, [path.id, user_id])

        logger.info("path_started", user_id=str(user_id), path_id=str(path_id))
        return enrollment

    async def get_enrollment(self, user_id: UUID, path_id: UUID) -> PathEnrollment | None:
        result = await self.session.aexecute(self._get_enrollment, [user_id, path_id])
        row = result.one()
        return PathEnrollment.from_row(row) if row else None

    # ==========================================================================
    # Progress
    # ==========================================================================

    async def list_my_paths(self, user_id: UUID) -> list[MyPathItem]:
        """Started paths with aggregate progress, most recently started first.

        Enrollments whose path no longer exists are skipped.
        """
        rows = await self.session.aexecute(self._get_user_enrollments, [user_id])
        enrollments = sorted(
            (PathEnrollment.from_row(row) for row in rows),
            key=lambda e: e.started_at,
            reverse=True,
        )

        items = []
        for enrollment in enrollments:
            path = await self.get_path(enrollment.path_id)
            if not path:
                continue
            courses = await self.get_path_courses(path)
            progress = await self.progress_service.get_progress_by_course(
                user_id, path.course_ids
            )
            items.append(
                MyPathItem(
                    path=to_path_summary(path),
                    started_at=enrollment.started_at,
                    completed_at=enrollment.completed_at,
                    progress_percent=path_progress_percent(courses, progress),
                    courses_completed=courses_completed(
                        [c.id for c in courses], progress
                    ),
                )
            )
        return items

    async def path_progress_detail(
        self, user_id: UUID, path_id: UUID
    ) -> PathProgressResponse:
        """Per-course breakdown in path order.

        Raises:
            PathNotStartedError: If the learner has not started the path
            PathNotFoundError: If the path does not exist
        """
        enrollment = await self.get_enrollment(user_id, path_id)
        if not enrollment:
            raise PathNotStartedError
        path = await self._require_path(path_id)

        courses = await self.get_path_courses(path)
        progress = await self.progress_service.get_progress_by_course(
            user_id, path.course_ids
        )

        breakdown = []
        for order, course in enumerate(courses, start=1):
            record = progress.get(course.id)
            breakdown.append(
                PathCourseProgress(
                    order=order,
                    course=to_summary(course),
                    enrolled=record is not None,
                    progress_percent=course_progress_percent(record, course),
                    completed_at=record.completed_at if record else None,
                )
            )

        return PathProgressResponse(
            path=to_path_summary(path),
            started_at=enrollment.started_at,
            progress_percent=path_progress_percent(courses, progress),
            courses_completed=courses_completed([c.id for c in courses], progress),
            courses=breakdown,
        )
