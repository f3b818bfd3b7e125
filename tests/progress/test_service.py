"""Tests for ProgressService."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from learnhub.assignments.models import (
    Assignment,
    AssignmentType,
    MCQOption,
    MCQQuestion,
    SubjectiveQuestion,
)
from learnhub.assignments.service import AssignmentNotFoundError
from learnhub.auth.models import User
from learnhub.courses.models import Course, CourseModule, Resource, ResourceType
from learnhub.courses.service import CourseNotFoundError, NotCourseOwnerError
from learnhub.progress.service import (
    AlreadyEnrolledError,
    NotEnrolledError,
    ProgressNotFoundError,
    ProgressService,
    SubmissionNotFoundError,
)


@pytest.fixture
def course_service() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def assignment_service() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def auth_service() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def progress_service(
    mock_session, course_service, assignment_service, auth_service
) -> ProgressService:
    return ProgressService(
        session=mock_session,
        keyspace="test_keyspace",
        course_service=course_service,
        assignment_service=assignment_service,
        auth_service=auth_service,
    )


@pytest.fixture
def progress_row(row):
    def _progress_row(user_id, course_id, **overrides):
        values = {
            "progress_id": uuid4(),
            "user_id": user_id,
            "course_id": course_id,
            "enrolled_at": datetime(2024, 1, 1),
            "completed_at": None,
            "completed_videos": None,
            "completed_documents": None,
            "updated_at": None,
        }
        values.update(overrides)
        return row(**values)

    return _progress_row


@pytest.fixture
def submission_row(row):
    def _submission_row(progress_id, **overrides):
        values = {
            "progress_id": progress_id,
            "submission_id": uuid4(),
            "assignment_id": uuid4(),
            "submitted_at": datetime(2024, 1, 2),
            "mcq_answers": None,
            "subjective_answers": ["An essay"],
            "score": None,
            "feedback": None,
            "graded_at": None,
        }
        values.update(overrides)
        return row(**values)

    return _submission_row


def _course(videos: int = 3, documents: int = 2, coach_id=None) -> Course:
    resources = [
        Resource(type=ResourceType.VIDEO, title=f"v{i}", youtube_url="https://youtu.be/x")
        for i in range(videos)
    ] + [
        Resource(type=ResourceType.DOCUMENT, title=f"d{i}", content="text")
        for i in range(documents)
    ]
    return Course(
        coach_id=coach_id or uuid4(),
        title="Python 101",
        modules=[CourseModule(title="A", order=0, resources=resources)],
    )


def _mcq(course_id) -> Assignment:
    return Assignment(
        course_id=course_id,
        title="Quiz",
        type=AssignmentType.MCQ,
        mcq_questions=[
            MCQQuestion(
                question_text=f"Q{i}",
                options=[MCQOption(text="a", is_correct=True), MCQOption(text="b")],
            )
            for i in range(4)
        ],
    )


class TestEnroll:
    async def test_enroll(self, progress_service, course_service, mock_session) -> None:
        course = _course()
        course_service.get_course.return_value = course
        user_id = uuid4()

        progress = await progress_service.enroll(user_id, course.id)

        assert progress.user_id == user_id
        assert progress.course_id == course.id
        assert progress.completed_count == 0
        # progress + progress_by_id + progress_by_course
        assert mock_session.aexecute.await_count == 3

    async def test_already_enrolled(
        self, progress_service, course_service, mock_session, result
    ) -> None:
        course_service.get_course.return_value = _course()
        mock_session.aexecute = AsyncMock(return_value=result(was_applied=False))

        with pytest.raises(AlreadyEnrolledError):
            await progress_service.enroll(uuid4(), uuid4())

        assert mock_session.aexecute.await_count == 1

    async def test_course_missing(
        self, progress_service, course_service, mock_session
    ) -> None:
        course_service.get_course.return_value = None

        with pytest.raises(CourseNotFoundError):
            await progress_service.enroll(uuid4(), uuid4())

        mock_session.aexecute.assert_not_awaited()


class TestMarkResourceComplete:
    async def test_adds_to_matching_set(
        self, progress_service, mock_session, result, progress_row
    ) -> None:
        user_id, course_id, doc_id = uuid4(), uuid4(), uuid4()
        mock_session.aexecute = AsyncMock(
            side_effect=[result(progress_row(user_id, course_id)), result()]
        )

        progress = await progress_service.mark_resource_complete(
            user_id, course_id, doc_id, ResourceType.DOCUMENT
        )

        assert progress.completed_documents == {doc_id}
        assert progress.completed_videos == set()
        statement, params = mock_session.aexecute.await_args.args
        assert "completed_documents = completed_documents + ?" in statement
        assert params[0] == {doc_id}

    async def test_already_completed_is_noop(
        self, progress_service, mock_session, result, progress_row
    ) -> None:
        user_id, course_id, video_id = uuid4(), uuid4(), uuid4()
        stored = progress_row(user_id, course_id, completed_videos={video_id})
        mock_session.aexecute = AsyncMock(return_value=result(stored))

        progress = await progress_service.mark_resource_complete(
            user_id, course_id, video_id, ResourceType.VIDEO
        )

        assert progress.completed_videos == {video_id}
        # only the lookup
        assert mock_session.aexecute.await_count == 1

    async def test_not_enrolled(self, progress_service, mock_session, result) -> None:
        mock_session.aexecute = AsyncMock(return_value=result())

        with pytest.raises(NotEnrolledError):
            await progress_service.mark_resource_complete(
                uuid4(), uuid4(), uuid4(), ResourceType.VIDEO
            )


class TestCompleteCourse:
    async def test_sets_completed_at(
        self, progress_service, mock_session, result, progress_row
    ) -> None:
        user_id, course_id = uuid4(), uuid4()
        mock_session.aexecute = AsyncMock(
            side_effect=[result(progress_row(user_id, course_id)), result()]
        )

        progress = await progress_service.complete_course(user_id, course_id)

        assert progress.is_completed

    async def test_keeps_first_timestamp(
        self, progress_service, mock_session, result, progress_row
    ) -> None:
        user_id, course_id = uuid4(), uuid4()
        first = datetime(2024, 3, 1, tzinfo=UTC)
        stored = progress_row(user_id, course_id, completed_at=first)
        mock_session.aexecute = AsyncMock(return_value=result(stored))

        progress = await progress_service.complete_course(user_id, course_id)

        assert progress.completed_at == first
        assert mock_session.aexecute.await_count == 1


class TestSubmitMCQ:
    async def test_scores_and_stores(
        self, progress_service, assignment_service, mock_session, result, progress_row
    ) -> None:
        user_id, course_id = uuid4(), uuid4()
        quiz = _mcq(course_id)
        assignment_service.get_assignment.return_value = quiz
        stored = progress_row(user_id, course_id)
        mock_session.aexecute = AsyncMock(side_effect=[result(stored), result()])

        submission, grade = await progress_service.submit_mcq(
            user_id, course_id, quiz.id, [0, 0, 0, 1]
        )

        assert grade.score == 75
        assert grade.correct_count == 3
        assert submission.score == 75.0
        assert submission.progress_id == stored.progress_id
        assert submission.submission_id.version == 1
        params = mock_session.aexecute.await_args.args[1]
        assert params[4] == [0, 0, 0, 1]
        assert params[6] == 75.0

    async def test_subjective_assignment_rejected(
        self, progress_service, assignment_service, mock_session, result, progress_row
    ) -> None:
        user_id, course_id = uuid4(), uuid4()
        assignment_service.get_assignment.return_value = Assignment(
            course_id=course_id,
            title="Essay",
            type=AssignmentType.SUBJECTIVE,
            subjective_questions=[SubjectiveQuestion(question_text="Why?")],
        )
        mock_session.aexecute = AsyncMock(
            return_value=result(progress_row(user_id, course_id))
        )

        with pytest.raises(AssignmentNotFoundError, match="MCQ assignment not found"):
            await progress_service.submit_mcq(user_id, course_id, uuid4(), [0])

    async def test_assignment_from_other_course(
        self, progress_service, assignment_service, mock_session, result, progress_row
    ) -> None:
        user_id, course_id = uuid4(), uuid4()
        assignment_service.get_assignment.return_value = _mcq(uuid4())
        mock_session.aexecute = AsyncMock(
            return_value=result(progress_row(user_id, course_id))
        )

        with pytest.raises(AssignmentNotFoundError):
            await progress_service.submit_mcq(user_id, course_id, uuid4(), [0])

    async def test_not_enrolled(
        self, progress_service, assignment_service, mock_session, result
    ) -> None:
        mock_session.aexecute = AsyncMock(return_value=result())

        with pytest.raises(NotEnrolledError):
            await progress_service.submit_mcq(uuid4(), uuid4(), uuid4(), [0])

        assignment_service.get_assignment.assert_not_awaited()


async def test_submit_subjective_is_unscored(
    progress_service, assignment_service, mock_session, result, progress_row
):
    user_id, course_id = uuid4(), uuid4()
    essay = Assignment(
        course_id=course_id,
        title="Essay",
        type=AssignmentType.SUBJECTIVE,
        subjective_questions=[SubjectiveQuestion(question_text="Why?")],
    )
    assignment_service.get_assignment.return_value = essay
    mock_session.aexecute = AsyncMock(
        side_effect=[result(progress_row(user_id, course_id)), result()]
    )

    submission = await progress_service.submit_subjective(
        user_id, course_id, essay.id, ["Because"]
    )

    assert submission.score is None
    assert submission.subjective_answers == ["Because"]
    assert not submission.is_graded


class TestGradeSubmission:
    async def test_grade(
        self, progress_service, course_service, mock_session, result, row, submission_row
    ) -> None:
        progress_id, coach_id, course_id = uuid4(), uuid4(), uuid4()
        stored = submission_row(progress_id)
        mock_session.aexecute = AsyncMock(
            side_effect=[
                result(row(progress_id=progress_id, user_id=uuid4(), course_id=course_id)),
                result(stored),
                result(),
            ]
        )

        submission = await progress_service.grade_submission(
            progress_id, stored.submission_id, coach_id, score=85, feedback="Good"
        )

        course_service.get_owned_course.assert_awaited_once_with(course_id, coach_id)
        assert submission.score == 85
        assert submission.feedback == "Good"
        assert submission.is_graded

    async def test_regrade_keeps_omitted_feedback(
        self, progress_service, mock_session, result, row, submission_row
    ) -> None:
        progress_id = uuid4()
        graded_at = datetime(2024, 1, 3, tzinfo=UTC)
        stored = submission_row(
            progress_id, score=70.0, feedback="Needs work", graded_at=graded_at
        )
        mock_session.aexecute = AsyncMock(
            side_effect=[
                result(row(progress_id=progress_id, user_id=uuid4(), course_id=uuid4())),
                result(stored),
                result(),
            ]
        )

        submission = await progress_service.grade_submission(
            progress_id, stored.submission_id, uuid4(), score=90
        )

        assert submission.score == 90
        assert submission.feedback == "Needs work"
        assert submission.graded_at > graded_at

    async def test_other_coach(
        self, progress_service, course_service, mock_session, result, row
    ) -> None:
        progress_id = uuid4()
        course_service.get_owned_course.side_effect = NotCourseOwnerError()
        mock_session.aexecute = AsyncMock(
            return_value=result(
                row(progress_id=progress_id, user_id=uuid4(), course_id=uuid4())
            )
        )

        with pytest.raises(NotCourseOwnerError):
            await progress_service.grade_submission(progress_id, uuid4(), uuid4(), score=50)

    async def test_unknown_progress(self, progress_service, mock_session, result) -> None:
        mock_session.aexecute = AsyncMock(return_value=result())

        with pytest.raises(ProgressNotFoundError):
            await progress_service.grade_submission(uuid4(), uuid4(), uuid4())

    async def test_unknown_submission(
        self, progress_service, mock_session, result, row
    ) -> None:
        progress_id = uuid4()
        mock_session.aexecute = AsyncMock(
            side_effect=[
                result(row(progress_id=progress_id, user_id=uuid4(), course_id=uuid4())),
                result(),
            ]
        )

        with pytest.raises(SubmissionNotFoundError):
            await progress_service.grade_submission(progress_id, uuid4(), uuid4())


class TestViews:
    async def test_list_my_courses(
        self, progress_service, course_service, mock_session, result, progress_row
    ) -> None:
        user_id = uuid4()
        course = _course(videos=3, documents=2)
        ids = [r.id for r in course.modules[0].resources]
        older = progress_row(
            user_id,
            course.id,
            completed_videos={ids[0], ids[1]},
            completed_documents={ids[3]},
        )
        newer = progress_row(user_id, uuid4(), enrolled_at=datetime(2024, 2, 1))
        course_service.get_courses.return_value = {course.id: course}
        mock_session.aexecute = AsyncMock(side_effect=[result(older, newer), result()])

        items = await progress_service.list_my_courses(user_id)

        # the deleted course is skipped
        assert len(items) == 1
        assert items[0].progress_percent == 60
        assert items[0].completed_videos == 2
        assert items[0].completed_documents == 1
        assert items[0].course.resource_count == 5

    async def test_get_course_progress(
        self,
        progress_service,
        course_service,
        mock_session,
        result,
        progress_row,
        submission_row,
    ) -> None:
        user_id = uuid4()
        course = _course(videos=2, documents=0)
        stored = progress_row(
            user_id, course.id, completed_videos={course.modules[0].resources[0].id}
        )
        course_service.get_course.return_value = course
        mock_session.aexecute = AsyncMock(
            side_effect=[result(stored), result(submission_row(stored.progress_id))]
        )

        progress, percent = await progress_service.get_course_progress(user_id, course.id)

        assert percent == 50
        assert len(progress.submissions) == 1

    async def test_get_course_progress_not_enrolled(
        self, progress_service, mock_session, result
    ) -> None:
        mock_session.aexecute = AsyncMock(return_value=result())

        with pytest.raises(NotEnrolledError):
            await progress_service.get_course_progress(uuid4(), uuid4())

    async def test_list_course_submissions(
        self,
        progress_service,
        auth_service,
        mock_session,
        result,
        row,
        submission_row,
    ) -> None:
        course_id, coach_id = uuid4(), uuid4()
        known = User(subject="sub-1", email="ana@example.com", name="Ana", role="student")
        gone_id = uuid4()
        first = row(course_id=course_id, user_id=known.id, progress_id=uuid4())
        second = row(course_id=course_id, user_id=gone_id, progress_id=uuid4())
        base = datetime(2024, 1, 1)
        auth_service.get_users_by_ids.return_value = {known.id: known}
        mock_session.aexecute = AsyncMock(
            side_effect=[
                result(first, second),
                result(submission_row(first.progress_id, submitted_at=base)),
                result(
                    submission_row(
                        second.progress_id, submitted_at=base + timedelta(days=1)
                    )
                ),
            ]
        )

        items = await progress_service.list_course_submissions(course_id, coach_id)

        assert [i.progress_id for i in items] == [second.progress_id, first.progress_id]
        assert items[0].student is None
        assert items[1].student.name == "Ana"
