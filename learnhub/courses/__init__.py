"""Course module.

Courses own an ordered list of modules; each module holds video and
document resources and may point at an assignment.
"""

from learnhub.courses.models import Course, CourseModule, Resource, ResourceType
from learnhub.courses.router import router
from learnhub.courses.service import (
    CourseError,
    CourseNotFoundError,
    CourseService,
    NotCourseOwnerError,
)


__all__ = [
    "Course",
    "CourseError",
    "CourseModule",
    "CourseNotFoundError",
    "CourseService",
    "NotCourseOwnerError",
    "Resource",
    "ResourceType",
    "router",
]
