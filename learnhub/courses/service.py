"""Course service layer.

Business logic for:
- Course CRUD with coach ownership checks
- Listing and pagination
- Course lookups used by progress, assignments, paths and comments
"""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from learnhub.courses.models import (
    Course,
    CourseModule,
    Resource,
    dump_modules,
)
from learnhub.courses.schemas import (
    CourseSummary,
    CreateCourseRequest,
    ModuleInput,
    UpdateCourseRequest,
)
from learnhub.utils.dates import utc_now


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CourseError(Exception):
    """Base course error."""

    def __init__(self, message: str, code: str = "course_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class CourseNotFoundError(CourseError):
    """Course not found."""

    def __init__(self, message: str = "Course not found"):
        super().__init__(message, "course_not_found")


class NotCourseOwnerError(CourseError):
    """Coach does not own the course."""

    def __init__(self, message: str = "You can only modify your own courses"):
        super().__init__(message, "not_course_owner")


def build_modules(modules: list[ModuleInput]) -> list[CourseModule]:
    """Turn validated module input into entities, keeping client-sent ids."""
    built = []
    for module in modules:
        resources = []
        for resource in module.resources:
            entity = Resource(
                type=resource.type,
                title=resource.title,
                youtube_url=str(resource.youtube_url) if resource.youtube_url else None,
                content=resource.content,
            )
            if resource.id:
                entity.id = resource.id
            resources.append(entity)

        entity = CourseModule(
            title=module.title,
            order=module.order,
            resources=resources,
            assignment_id=module.assignment_id,
        )
        if module.id:
            entity.id = module.id
        built.append(entity)
    return built


def to_summary(course: Course) -> CourseSummary:
    return CourseSummary(
        id=course.id,
        title=course.title,
        description=course.description,
        thumbnail_url=course.thumbnail_url,
        coach_id=course.coach_id,
        module_count=len(course.modules),
        resource_count=course.total_resources,
    )


class CourseService:
    """Service for courses."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_course_by_id = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.courses WHERE id = ?"
        )
        self._get_all_courses = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.courses"
        )
        self._insert_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses
            (id, coach_id, title, description, thumbnail_url, modules,
             created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._update_course = self.session.prepare(f"""
            UPDATE {self.keyspace}.courses
            SET title = ?, description = ?, thumbnail_url = ?, modules = ?,
                updated_at = ?
            WHERE id = ?
        """)
        self._delete_course = self.session.prepare(
            f"DELETE FROM {self.keyspace}.courses WHERE id = ?"
        )

        self._get_course_ids_by_coach = self.session.prepare(
            f"SELECT course_id FROM {self.keyspace}.courses_by_coach WHERE coach_id = ?"
        )
        self._insert_course_by_coach = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses_by_coach
            (coach_id, created_at, course_id)
            VALUES (?, ?, ?)
        """)
        self._delete_course_by_coach = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.courses_by_coach
            WHERE coach_id = ? AND created_at = ? AND course_id = ?
        """)

    # ==========================================================================
    # Lookups
    # ==========================================================================

    async def get_course(self, course_id: UUID) -> Course | None:
        """Get course by ID."""
        result = await self.session.aexecute(self._get_course_by_id, [course_id])
        row = result.one()
        return Course.from_row(row) if row else None

    async def get_courses(self, course_ids: list[UUID]) -> dict[UUID, Course]:
        """Get several courses by ID; missing ones are left out."""
        courses: dict[UUID, Course] = {}
        for course_id in dict.fromkeys(course_ids):
            course = await self.get_course(course_id)
            if course:
                courses[course_id] = course
        return courses

    async def get_owned_course(self, course_id: UUID, coach_id: UUID) -> Course:
        """Get a course the coach owns.

        Raises:
            CourseNotFoundError: If the course does not exist
            NotCourseOwnerError: If another coach owns it
        """
        course = await self.get_course(course_id)
        if not course:
            raise CourseNotFoundError
        if not course.is_owned_by(coach_id):
            raise NotCourseOwnerError
        return course

    async def list_courses(
        self,
        limit: int = 20,
        offset: int = 0,
        coach_id: UUID | None = None,
    ) -> tuple[list[Course], int]:
        """List courses newest first.

        Returns:
            The requested page and the total number of matching courses.
        """
        if coach_id:
            rows = await self.session.aexecute(
                self._get_course_ids_by_coach, [coach_id]
            )
            course_ids = [row.course_id for row in rows]
            page_ids = course_ids[offset : offset + limit]
            found = await self.get_courses(page_ids)
            return [found[cid] for cid in page_ids if cid in found], len(course_ids)

        rows = await self.session.aexecute(self._get_all_courses)
        courses = sorted(
            (Course.from_row(row) for row in rows),
            key=lambda c: c.created_at,
            reverse=True,
        )
        return courses[offset : offset + limit], len(courses)

    # ==========================================================================
    # Mutations
    # ==========================================================================

    async def create_course(self, data: CreateCourseRequest, coach_id: UUID) -> Course:
        """Create a course owned by ``coach_id``."""
        course = Course(
            coach_id=coach_id,
            title=data.title.strip(),
            description=data.description,
            thumbnail_url=data.thumbnail_url,
            modules=build_modules(data.modules),
        )

        await self.session.aexecute(
            self._insert_course,
            [
                course.id,
                course.coach_id,
                course.title,
                course.description,
                course.thumbnail_url,
                dump_modules(course.modules),
                course.created_at,
                course.updated_at,
            ],
        )
        await self.session.aexecute(
            self._insert_course_by_coach,
            [course.coach_id, course.created_at, course.id],
        )

        logger.info(
            "course_created",
            course_id=str(course.id),
            coach_id=str(coach_id),
            modules=len(course.modules),
        )
        return course

    async def update_course(
        self,
        course_id: UUID,
        data: UpdateCourseRequest,
        coach_id: UUID,
    ) -> Course:
        """Apply a partial update to a course the coach owns."""
        course = await self.get_owned_course(course_id, coach_id)

        if data.title is not None:
            course.title = data.title.strip()
        if data.description is not None:
            course.description = data.description
        if "thumbnail_url" in data.model_fields_set:
            course.thumbnail_url = data.thumbnail_url
        if data.modules is not None:
            course.modules = sorted(build_modules(data.modules), key=lambda m: m.order)
        course.updated_at = utc_now()

        await self.session.aexecute(
            self._update_course,
            [
                course.title,
                course.description,
                course.thumbnail_url,
                dump_modules(course.modules),
                course.updated_at,
                course.id,
            ],
        )

        logger.info("course_updated", course_id=str(course.id))
        return course

    async def delete_course(self, course_id: UUID, coach_id: UUID) -> None:
        """Delete a course the coach owns."""
        course = await self.get_owned_course(course_id, coach_id)

        await self.session.aexecute(self._delete_course, [course.id])
        await self.session.aexecute(
            self._delete_course_by_coach,
            [course.coach_id, course.created_at, course.id],
        )

        logger.info("course_deleted", course_id=str(course.id))
