from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla

from gradebook.core import di
from gradebook.model import CourseID, GradedAnswer, QuestionID, QuizAttempt, QuizAttemptID, QuizID, UserID

from . import Session
from .table import quiz_attempts


def get(
    attempt_id: QuizAttemptID,
    *,
    quiz_id: QuizID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> QuizAttempt | None:
    stmt = sqla.select(quiz_attempts.__table__).where(quiz_attempts.attempt_id == attempt_id)
    if quiz_id is not None:
        stmt = stmt.where(quiz_attempts.quiz_id == quiz_id)
    row = session.execute(stmt).mappings().one_or_none()
    return QuizAttempt(**row) if row else None


def find(
    *,
    quiz_id: QuizID,
    student_id: UserID | None = None,
    submitted: bool | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[QuizAttempt, ...]:
    """A quiz's attempts: submitted ones by submission time, newest first, then the rest by number."""
    stmt = (
        sqla
        .select(quiz_attempts.__table__)
        .where(quiz_attempts.quiz_id == quiz_id)
        .order_by(
            quiz_attempts.submitted_at.desc().nulls_last(),
            quiz_attempts.attempt_number.desc(),
        )
    )
    if student_id is not None:
        stmt = stmt.where(quiz_attempts.student_id == student_id)
    if submitted is not None:
        stmt = stmt.where(quiz_attempts.is_submitted.is_(submitted))
    rows = session.execute(stmt).mappings().all()
    return tuple(QuizAttempt(**row) for row in rows)


def count(
    *,
    quiz_id: QuizID,
    student_id: UserID,
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    """How many attempts the student has started on the quiz, submitted or not."""
    stmt = (
        sqla
        .select(sqla.func.count())
        .select_from(quiz_attempts)
        .where(quiz_attempts.quiz_id == quiz_id, quiz_attempts.student_id == student_id)
    )
    return session.execute(stmt).scalar_one()


def create(
    *,
    quiz_id: QuizID,
    course_id: CourseID,
    student_id: UserID,
    attempt_number: int,
    started_at: datetime.datetime,
    max_score: int,
    session: Session = di.Provide["storage.persistent.session"],
) -> QuizAttempt:
    """Open an attempt.

    Raises:
        sqlalchemy.exc.IntegrityError: if the student already holds this
            attempt number for the quiz
    """
    attempt_id = QuizAttemptID()
    stmt = sqla.insert(quiz_attempts).values(
        attempt_id=attempt_id,
        quiz_id=quiz_id,
        course_id=course_id,
        student_id=student_id,
        attempt_number=attempt_number,
        started_at=started_at,
        max_score=max_score,
        answers={},
        is_submitted=False,
        auto_graded=False,
    )
    session.execute(stmt)
    session.flush()
    result = get(attempt_id, session=session)
    assert result is not None
    return result


def submit(
    attempt_id: QuizAttemptID,
    *,
    answers: t.Mapping[QuestionID, GradedAnswer],
    score: int,
    percentage: float,
    passed: bool | None,
    submitted_at: datetime.datetime,
    time_taken_minutes: int,
    session: Session = di.Provide["storage.persistent.session"],
) -> QuizAttempt:
    """Record the graded answers and close the attempt.

    Only an open attempt is updated, so a concurrent second submission
    finds nothing to close.

    Raises:
        KeyError: If there is no open attempt with this id
    """
    stmt = (
        sqla
        .update(quiz_attempts)
        .where(quiz_attempts.attempt_id == attempt_id, quiz_attempts.is_submitted.is_(False))
        .values(
            answers={str(k): v.model_dump(mode="json") for k, v in answers.items()},
            score=score,
            percentage=percentage,
            passed=passed,
            submitted_at=submitted_at,
            time_taken_minutes=time_taken_minutes,
            is_submitted=True,
            auto_graded=True,
        )
    )
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Quiz attempt {attempt_id} is not open")
    session.flush()

    attempt = get(attempt_id, session=session)
    assert attempt is not None
    return attempt


def rollup(
    quiz_id: QuizID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[int, float | None]:
    """(number of submitted attempts, their mean score) for the quiz, from a full scan."""
    stmt = sqla.select(sqla.func.count(), sqla.func.avg(quiz_attempts.score)).where(
        quiz_attempts.quiz_id == quiz_id, quiz_attempts.is_submitted.is_(True)
    )
    total, average = session.execute(stmt).one()
    return total, (float(average) if average is not None else None)
