from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla

from gradebook.core import di
from gradebook.lib import NotSet
from gradebook.model import CourseID, Quiz, QuizID, QuizQuestion, QuizStatus, UserID

from . import Session
from .table import quiz_attempts, quizzes


def _serialize(questions: t.Sequence[QuizQuestion]) -> list[dict[str, t.Any]]:
    return [q.model_dump(mode="json") for q in questions]


def get(
    quiz_id: QuizID,
    *,
    course_id: CourseID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Quiz | None:
    """Get a quiz, optionally requiring that it belong to ``course_id``."""
    stmt = sqla.select(quizzes.__table__).where(quizzes.quiz_id == quiz_id)
    if course_id is not None:
        stmt = stmt.where(quizzes.course_id == course_id)
    row = session.execute(stmt).mappings().one_or_none()
    return Quiz(**row) if row else None


def find(
    *,
    course_id: CourseID,
    status: QuizStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Quiz, ...]:
    """A course's quizzes, most recently created first."""
    stmt = (
        sqla
        .select(quizzes.__table__)
        .where(quizzes.course_id == course_id)
        .order_by(quizzes.create_time.desc())
    )
    if status is not None:
        stmt = stmt.where(quizzes.status == status.value)
    rows = session.execute(stmt).mappings().all()
    return tuple(Quiz(**row) for row in rows)


def create(
    *,
    course_id: CourseID,
    title: str,
    questions: t.Sequence[QuizQuestion],
    available_from: datetime.datetime,
    available_until: datetime.datetime,
    created_by: UserID,
    description: str | None = None,
    instructions: str | None = None,
    time_limit_minutes: int | None = None,
    max_attempts: int = 1,
    shuffle_questions: bool = False,
    shuffle_options: bool = False,
    show_correct_answers: bool = True,
    show_score_immediately: bool = True,
    passing_score: float | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Quiz:
    """Create a draft quiz; total_points is the sum of its question points."""
    quiz_id = QuizID()
    stmt = sqla.insert(quizzes).values(
        quiz_id=quiz_id,
        course_id=course_id,
        title=title,
        description=description,
        instructions=instructions,
        time_limit_minutes=time_limit_minutes,
        max_attempts=max_attempts,
        shuffle_questions=shuffle_questions,
        shuffle_options=shuffle_options,
        show_correct_answers=show_correct_answers,
        show_score_immediately=show_score_immediately,
        available_from=available_from,
        available_until=available_until,
        total_points=sum(q.points for q in questions),
        passing_score=passing_score,
        questions=_serialize(questions),
        status=QuizStatus.Draft.value,
        total_attempts=0,
        created_by=created_by,
    )
    session.execute(stmt)
    session.flush()
    result = get(quiz_id, session=session)
    assert result is not None
    return result


def update(
    quiz_id: QuizID,
    *,
    title: str | NotSet = NotSet(),
    description: str | None | NotSet = NotSet(),
    instructions: str | None | NotSet = NotSet(),
    time_limit_minutes: int | None | NotSet = NotSet(),
    max_attempts: int | NotSet = NotSet(),
    shuffle_questions: bool | NotSet = NotSet(),
    shuffle_options: bool | NotSet = NotSet(),
    show_correct_answers: bool | NotSet = NotSet(),
    show_score_immediately: bool | NotSet = NotSet(),
    available_from: datetime.datetime | NotSet = NotSet(),
    available_until: datetime.datetime | NotSet = NotSet(),
    passing_score: float | None | NotSet = NotSet(),
    questions: t.Sequence[QuizQuestion] | NotSet = NotSet(),
    status: QuizStatus | NotSet = NotSet(),
    total_attempts: int | NotSet = NotSet(),
    average_score: float | None | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Update a quiz.

    Replacing the questions also recomputes total_points.
    Call get() after if you need the updated entity.

    Raises:
        KeyError: If quiz_id does not correspond to a quiz
    """
    values: dict[str, t.Any] = {}
    for field, value in (
        ("title", title),
        ("description", description),
        ("instructions", instructions),
        ("time_limit_minutes", time_limit_minutes),
        ("max_attempts", max_attempts),
        ("shuffle_questions", shuffle_questions),
        ("shuffle_options", shuffle_options),
        ("show_correct_answers", show_correct_answers),
        ("show_score_immediately", show_score_immediately),
        ("available_from", available_from),
        ("available_until", available_until),
        ("passing_score", passing_score),
        ("total_attempts", total_attempts),
        ("average_score", average_score),
    ):
        if not isinstance(value, NotSet):
            values[field] = value
    if not isinstance(questions, NotSet):
        values["questions"] = _serialize(questions)
        values["total_points"] = sum(q.points for q in questions)
    if not isinstance(status, NotSet):
        values["status"] = status.value

    if not values:
        # No-op update to verify the quiz exists
        values["quiz_id"] = quiz_id

    stmt = sqla.update(quizzes).where(quizzes.quiz_id == quiz_id).values(**values)
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Quiz {quiz_id} not found")

    session.flush()


def delete(
    quiz_id: QuizID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    """Delete a quiz along with its attempts.

    Returns:
        True if a quiz was deleted, False if not found
    """
    session.execute(sqla.delete(quiz_attempts).where(quiz_attempts.quiz_id == quiz_id))
    result = session.execute(sqla.delete(quizzes).where(quizzes.quiz_id == quiz_id))
    return bool(result.rowcount)  # pyright: ignore[reportUnknownArgumentType, reportAttributeAccessIssue]
