"""Tests for gradebook.grading.quiz against a real session."""

from __future__ import annotations

import datetime
import typing as t

import pytest
from sqlalchemy.orm import Session

from gradebook.core import TimestampProvider
from gradebook.grading import quiz as quiz_service
from gradebook.grading import AlreadySubmitted, AttemptConflict, Forbidden, InvalidTransition, MaxAttemptsExceeded, \
    NotAvailable, NotFound, NotPublished, ValidationFailed
from gradebook.model import Course, Quiz, QuizAttempt, QuizStatus, User
from gradebook.storage import attempt as attempt_storage

from ..conftest import sample_questions


def _start(db_session: Session, quiz: Quiz, student: User, now: datetime.datetime) -> QuizAttempt:
    with db_session.begin():
        return quiz_service.start_attempt(quiz.course_id, quiz.quiz_id, student.user_id, now=now, session=db_session)


def _submit(
    db_session: Session, quiz: Quiz, attempt: QuizAttempt, student: User, answers: dict, now: datetime.datetime
) -> QuizAttempt:
    with db_session.begin():
        return quiz_service.submit_attempt(
            quiz.course_id,
            quiz.quiz_id,
            attempt.attempt_id,
            student.user_id,
            answers=answers,
            now=now,
            session=db_session,
        )


def _all_correct(quiz: Quiz) -> dict[str, t.Any]:
    mcq, tf, sa = quiz.questions
    return {mcq.question_id: 1, tf.question_id: False, sa.question_id: " paris "}


class TestCreateQuiz(object):
    def test_assigns_ids_order_and_total(
        self, db_session: Session, test_course: Course, instructor: User, utcnow: TimestampProvider
    ) -> None:
        now = utcnow()
        with db_session.begin():
            quiz = quiz_service.create_quiz(
                test_course.course_id,
                title="Geography",
                questions=sample_questions(),
                available_from=now,
                available_until=now + datetime.timedelta(days=7),
                created_by=instructor.user_id,
                session=db_session,
            )

        assert quiz.status is QuizStatus.Draft
        assert quiz.total_points == 30
        assert [q.order for q in quiz.questions] == [1, 2, 3]
        assert len({q.question_id for q in quiz.questions}) == 3
        assert quiz.total_attempts == 0
        assert quiz.average_score is None

    def test_rejects_inverted_window(
        self, db_session: Session, test_course: Course, instructor: User, utcnow: TimestampProvider
    ) -> None:
        now = utcnow()
        with pytest.raises(ValidationFailed):
            with db_session.begin():
                quiz_service.create_quiz(
                    test_course.course_id,
                    title="Backwards",
                    questions=sample_questions(),
                    available_from=now,
                    available_until=now - datetime.timedelta(minutes=1),
                    created_by=instructor.user_id,
                    session=db_session,
                )

    def test_replacing_questions_recomputes_total(
        self, db_session: Session, quiz_factory: t.Callable[..., Quiz]
    ) -> None:
        quiz = quiz_factory(status=QuizStatus.Draft)
        with db_session.begin():
            updated = quiz_service.update_quiz(
                quiz.course_id,
                quiz.quiz_id,
                questions=sample_questions()[:1],
                title="Shorter",
                session=db_session,
            )

        assert updated.title == "Shorter"
        assert updated.total_points == 10
        assert updated.questions[0].question_id != quiz.questions[0].question_id


class TestStatusTransitions(object):
    def test_draft_published_closed(self, db_session: Session, quiz_factory: t.Callable[..., Quiz]) -> None:
        quiz = quiz_factory(status=QuizStatus.Draft)

        with db_session.begin():
            published = quiz_service.publish_quiz(quiz.course_id, quiz.quiz_id, session=db_session)
        with db_session.begin():
            closed = quiz_service.close_quiz(quiz.course_id, quiz.quiz_id, session=db_session)

        assert published.status is QuizStatus.Published
        assert closed.status is QuizStatus.Closed

    def test_no_reopening(self, db_session: Session, quiz_factory: t.Callable[..., Quiz]) -> None:
        quiz = quiz_factory(status=QuizStatus.Closed)

        with pytest.raises(InvalidTransition, match="from closed to published"):
            with db_session.begin():
                quiz_service.publish_quiz(quiz.course_id, quiz.quiz_id, session=db_session)

    def test_draft_cannot_close(self, db_session: Session, quiz_factory: t.Callable[..., Quiz]) -> None:
        quiz = quiz_factory(status=QuizStatus.Draft)

        with pytest.raises(InvalidTransition):
            with db_session.begin():
                quiz_service.close_quiz(quiz.course_id, quiz.quiz_id, session=db_session)


class TestStartAttempt(object):
    @pytest.mark.parametrize("status", [QuizStatus.Draft, QuizStatus.Closed])
    def test_requires_published(
        self,
        db_session: Session,
        quiz_factory: t.Callable[..., Quiz],
        student: User,
        utcnow: TimestampProvider,
        status: QuizStatus,
    ) -> None:
        quiz = quiz_factory(status=status)
        with pytest.raises(NotPublished):
            _start(db_session, quiz, student, utcnow())

    def test_window(
        self, db_session: Session, quiz_factory: t.Callable[..., Quiz], student: User, utcnow: TimestampProvider
    ) -> None:
        quiz = quiz_factory()

        with pytest.raises(NotAvailable, match="not yet available"):
            _start(db_session, quiz, student, quiz.available_from - datetime.timedelta(seconds=1))
        with pytest.raises(NotAvailable, match="no longer available"):
            _start(db_session, quiz, student, quiz.available_until + datetime.timedelta(seconds=1))

    def test_max_attempts(
        self, db_session: Session, quiz_factory: t.Callable[..., Quiz], student: User, utcnow: TimestampProvider
    ) -> None:
        quiz = quiz_factory(max_attempts=2)

        first = _start(db_session, quiz, student, utcnow())
        second = _start(db_session, quiz, student, utcnow())
        with pytest.raises(MaxAttemptsExceeded, match="Maximum 2 attempts allowed"):
            _start(db_session, quiz, student, utcnow())

        assert (first.attempt_number, second.attempt_number) == (1, 2)
        assert second.max_score == quiz.total_points
        assert second.is_submitted is False

    def test_attempts_counted_per_student(
        self,
        db_session: Session,
        quiz_factory: t.Callable[..., Quiz],
        user_factory: t.Callable[..., User],
        utcnow: TimestampProvider,
    ) -> None:
        quiz = quiz_factory(max_attempts=1)

        a = _start(db_session, quiz, user_factory(), utcnow())
        b = _start(db_session, quiz, user_factory(), utcnow())

        assert a.attempt_number == b.attempt_number == 1

    def test_duplicate_attempt_number_conflicts(
        self,
        db_session: Session,
        quiz_factory: t.Callable[..., Quiz],
        student: User,
        utcnow: TimestampProvider,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Two starts that both counted zero prior attempts cannot both take number 1."""
        quiz = quiz_factory(max_attempts=2)
        _start(db_session, quiz, student, utcnow())

        monkeypatch.setattr(attempt_storage, "count", lambda **_: 0)
        with pytest.raises(AttemptConflict):
            _start(db_session, quiz, student, utcnow())

    def test_unknown_quiz(self, db_session: Session, test_course: Course, student: User) -> None:
        from gradebook.model import QuizID

        with pytest.raises(NotFound, match="Quiz not found"):
            with db_session.begin():
                quiz_service.start_attempt(
                    test_course.course_id,
                    QuizID(),
                    student.user_id,
                    now=datetime.datetime.now(datetime.UTC),
                    session=db_session,
                )


class TestSubmitAttempt(object):
    def test_grades_and_rolls_up(
        self, db_session: Session, quiz_factory: t.Callable[..., Quiz], student: User, utcnow: TimestampProvider
    ) -> None:
        quiz = quiz_factory(passing_score=70)
        started = utcnow()
        attempt = _start(db_session, quiz, student, started)
        mcq, tf, sa = quiz.questions

        result = _submit(
            db_session,
            quiz,
            attempt,
            student,
            {mcq.question_id: 1, tf.question_id: True, sa.question_id: " paris "},
            started + datetime.timedelta(minutes=4, seconds=30),
        )

        assert result.is_submitted and result.auto_graded
        assert result.score == 20
        assert result.percentage == pytest.approx(66.67, abs=0.01)
        assert result.passed is False
        assert result.time_taken_minutes == 5
        assert result.answers[tf.question_id].is_correct is False
        with db_session.begin():
            refreshed = quiz_service.get_quiz(quiz.course_id, quiz.quiz_id, session=db_session)
        assert refreshed.total_attempts == 1
        assert refreshed.average_score == 20

    def test_average_over_submitted_attempts(
        self,
        db_session: Session,
        quiz_factory: t.Callable[..., Quiz],
        user_factory: t.Callable[..., User],
        utcnow: TimestampProvider,
    ) -> None:
        quiz = quiz_factory()
        perfect, blank = user_factory(), user_factory()
        unsubmitted = user_factory()

        _submit(db_session, quiz, _start(db_session, quiz, perfect, utcnow()), perfect, _all_correct(quiz), utcnow())
        _submit(db_session, quiz, _start(db_session, quiz, blank, utcnow()), blank, {}, utcnow())
        _start(db_session, quiz, unsubmitted, utcnow())

        with db_session.begin():
            refreshed = quiz_service.get_quiz(quiz.course_id, quiz.quiz_id, session=db_session)
            everyone = quiz_service.get_all_attempts(quiz.course_id, quiz.quiz_id, session=db_session)
            stats = quiz_service.get_statistics(quiz.course_id, quiz.quiz_id, session=db_session)

        assert refreshed.total_attempts == 2
        assert refreshed.average_score == 15
        assert len(everyone) == 2
        assert stats is not None
        assert stats.unique_students == 2
        assert stats.students_passed == 1

    def test_no_passing_score(
        self, db_session: Session, quiz_factory: t.Callable[..., Quiz], student: User, utcnow: TimestampProvider
    ) -> None:
        quiz = quiz_factory(passing_score=None)
        attempt = _start(db_session, quiz, student, utcnow())

        result = _submit(db_session, quiz, attempt, student, _all_correct(quiz), utcnow())

        assert result.percentage == 100.0
        assert result.passed is None

    def test_twice(
        self, db_session: Session, quiz_factory: t.Callable[..., Quiz], student: User, utcnow: TimestampProvider
    ) -> None:
        quiz = quiz_factory()
        attempt = _start(db_session, quiz, student, utcnow())
        _submit(db_session, quiz, attempt, student, {}, utcnow())

        with pytest.raises(AlreadySubmitted):
            _submit(db_session, quiz, attempt, student, _all_correct(quiz), utcnow())

    def test_someone_elses_attempt(
        self,
        db_session: Session,
        quiz_factory: t.Callable[..., Quiz],
        student: User,
        user_factory: t.Callable[..., User],
        utcnow: TimestampProvider,
    ) -> None:
        quiz = quiz_factory()
        attempt = _start(db_session, quiz, student, utcnow())

        with pytest.raises(Forbidden):
            _submit(db_session, quiz, attempt, user_factory(), {}, utcnow())

    def test_student_attempts_newest_first(
        self, db_session: Session, quiz_factory: t.Callable[..., Quiz], student: User, utcnow: TimestampProvider
    ) -> None:
        quiz = quiz_factory(max_attempts=3)
        for _ in range(3):
            _start(db_session, quiz, student, utcnow())

        with db_session.begin():
            attempts = quiz_service.get_student_attempts(
                quiz.course_id, quiz.quiz_id, student.user_id, session=db_session
            )

        assert [a.attempt_number for a in attempts] == [3, 2, 1]

    def test_statistics_before_submissions(self, db_session: Session, quiz_factory: t.Callable[..., Quiz]) -> None:
        quiz = quiz_factory()
        with db_session.begin():
            assert quiz_service.get_statistics(quiz.course_id, quiz.quiz_id, session=db_session) is None


class TestDeleteQuiz(object):
    def test_removes_attempts(
        self, db_session: Session, quiz_factory: t.Callable[..., Quiz], student: User, utcnow: TimestampProvider
    ) -> None:
        quiz = quiz_factory()
        _start(db_session, quiz, student, utcnow())

        with db_session.begin():
            quiz_service.delete_quiz(quiz.course_id, quiz.quiz_id, session=db_session)
        with db_session.begin():
            assert attempt_storage.find(quiz_id=quiz.quiz_id, session=db_session) == ()
        with pytest.raises(NotFound):
            with db_session.begin():
                quiz_service.get_quiz(quiz.course_id, quiz.quiz_id, session=db_session)
