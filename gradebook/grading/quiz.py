"""Quiz authoring, attempts and auto-grading."""

from __future__ import annotations

import datetime
import logging
import math
import typing as t

import sqlalchemy.exc

from gradebook.core import di
from gradebook.core.logging import TRACE
from gradebook.lib import NotSet
from gradebook.model import CourseID, QuestionID, Quiz, QuizAttempt, QuizAttemptID, QuizID, QuizQuestion, \
    QuizStatistics, QuizStatus, UserID
from gradebook.storage import attempt as attempt_storage
from gradebook.storage import course as course_storage
from gradebook.storage import quiz as quiz_storage
from gradebook.storage import Session

from .errors import AlreadySubmitted, AttemptConflict, Forbidden, InvalidTransition, MaxAttemptsExceeded, \
    NotAvailable, NotFound, NotPublished, ValidationFailed
from .scoring import score_attempt
from .statistics import quiz_statistics

logger = logging.getLogger(__name__)

# the only moves a quiz's status can make
TRANSITIONS: dict[QuizStatus, frozenset[QuizStatus]] = {
    QuizStatus.Draft: frozenset({QuizStatus.Published}),
    QuizStatus.Published: frozenset({QuizStatus.Closed}),
    QuizStatus.Closed: frozenset(),
}


def build_questions(questions: t.Iterable[t.Mapping[str, t.Any]]) -> list[QuizQuestion]:
    """Give each question a fresh id and its 1-based position as its order."""
    built: list[QuizQuestion] = []
    for i, q in enumerate(questions):
        fields = {k: v for k, v in q.items() if k not in ("question_id", "order")}
        built.append(QuizQuestion(question_id=QuestionID(), order=i + 1, **fields))
    return built


def _check_window(available_from: datetime.datetime, available_until: datetime.datetime) -> None:
    if available_until < available_from:
        raise ValidationFailed("available_until must not be earlier than available_from")


def _require_quiz(course_id: CourseID, quiz_id: QuizID, session: Session) -> Quiz:
    quiz = quiz_storage.get(quiz_id, course_id=course_id, session=session)
    if quiz is None:
        raise NotFound("Quiz not found")
    return quiz


def create_quiz(
    course_id: CourseID,
    *,
    title: str,
    questions: t.Sequence[t.Mapping[str, t.Any]],
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
    """Create a draft quiz; total_points is the sum of the question points."""
    if course_storage.get(course_id, session=session) is None:
        raise NotFound("Course not found")
    _check_window(available_from, available_until)

    quiz = quiz_storage.create(
        course_id=course_id,
        title=title,
        questions=build_questions(questions),
        available_from=available_from,
        available_until=available_until,
        created_by=created_by,
        description=description,
        instructions=instructions,
        time_limit_minutes=time_limit_minutes,
        max_attempts=max_attempts,
        shuffle_questions=shuffle_questions,
        shuffle_options=shuffle_options,
        show_correct_answers=show_correct_answers,
        show_score_immediately=show_score_immediately,
        passing_score=passing_score,
        session=session,
    )
    logger.info(
        "created quiz",
        extra={"course_id": course_id, "quiz_id": quiz.quiz_id, "total_points": quiz.total_points},
    )
    return quiz


def get_quiz(
    course_id: CourseID,
    quiz_id: QuizID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Quiz:
    return _require_quiz(course_id, quiz_id, session)


def list_quizzes(
    course_id: CourseID,
    *,
    status: QuizStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Quiz, ...]:
    return quiz_storage.find(course_id=course_id, status=status, session=session)


def update_quiz(
    course_id: CourseID,
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
    questions: t.Sequence[t.Mapping[str, t.Any]] | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> Quiz:
    """Edit a quiz.

    Supplying questions replaces the whole list; every question gets a new
    id and the total points are recomputed.
    """
    quiz = _require_quiz(course_id, quiz_id, session)
    _check_window(
        quiz.available_from if isinstance(available_from, NotSet) else available_from,
        quiz.available_until if isinstance(available_until, NotSet) else available_until,
    )

    quiz_storage.update(
        quiz_id,
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
        passing_score=passing_score,
        questions=questions if isinstance(questions, NotSet) else build_questions(questions),
        session=session,
    )
    return _require_quiz(course_id, quiz_id, session)


def _transition(course_id: CourseID, quiz_id: QuizID, status: QuizStatus, session: Session) -> Quiz:
    quiz = _require_quiz(course_id, quiz_id, session)
    if status not in TRANSITIONS[quiz.status]:
        raise InvalidTransition(f"Cannot change quiz status from {quiz.status.value} to {status.value}")
    quiz_storage.update(quiz_id, status=status, session=session)
    logger.info(
        "changed quiz status",
        extra={"quiz_id": quiz_id, "from": quiz.status.value, "to": status.value},
    )
    return _require_quiz(course_id, quiz_id, session)


def publish_quiz(
    course_id: CourseID,
    quiz_id: QuizID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Quiz:
    return _transition(course_id, quiz_id, QuizStatus.Published, session)


def close_quiz(
    course_id: CourseID,
    quiz_id: QuizID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Quiz:
    return _transition(course_id, quiz_id, QuizStatus.Closed, session)


def delete_quiz(
    course_id: CourseID,
    quiz_id: QuizID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    _require_quiz(course_id, quiz_id, session)
    quiz_storage.delete(quiz_id, session=session)
    logger.info("deleted quiz", extra={"course_id": course_id, "quiz_id": quiz_id})


# Attempts


def start_attempt(
    course_id: CourseID,
    quiz_id: QuizID,
    student_id: UserID,
    *,
    now: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> QuizAttempt:
    """Open the student's next attempt at a published quiz.

    Raises:
        NotFound: if the quiz does not exist
        NotPublished: if the quiz is a draft or closed
        NotAvailable: if ``now`` is outside the availability window
        MaxAttemptsExceeded: if the student has used every attempt
        AttemptConflict: if a concurrent start took the same attempt number
    """
    quiz = _require_quiz(course_id, quiz_id, session)
    if quiz.status is not QuizStatus.Published:
        raise NotPublished("Quiz is not open for attempts")
    if now < quiz.available_from:
        raise NotAvailable("Quiz is not yet available")
    if now > quiz.available_until:
        raise NotAvailable("Quiz is no longer available")

    prior = attempt_storage.count(quiz_id=quiz_id, student_id=student_id, session=session)
    if prior + 1 > quiz.max_attempts:
        raise MaxAttemptsExceeded(f"Maximum {quiz.max_attempts} attempts allowed")

    try:
        attempt = attempt_storage.create(
            quiz_id=quiz_id,
            course_id=course_id,
            student_id=student_id,
            attempt_number=prior + 1,
            started_at=now,
            max_score=quiz.total_points,
            session=session,
        )
    except sqlalchemy.exc.IntegrityError as e:
        raise AttemptConflict("Another attempt was started at the same time; try again") from e

    logger.info(
        "started quiz attempt",
        extra={
            "quiz_id": quiz_id,
            "student_id": student_id,
            "attempt_id": attempt.attempt_id,
            "attempt_number": attempt.attempt_number,
        },
    )
    return attempt


def submit_attempt(
    course_id: CourseID,
    quiz_id: QuizID,
    attempt_id: QuizAttemptID,
    student_id: UserID,
    *,
    answers: t.Mapping[str, t.Any],
    now: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> QuizAttempt:
    """Grade and close an attempt, then refresh the quiz's rollups.

    Every question of the quiz is graded, answered or not. The rollups are
    recomputed from all submitted attempts of the quiz.

    Raises:
        NotFound: if the quiz or the attempt does not exist
        Forbidden: if the attempt belongs to another student
        AlreadySubmitted: if the attempt was already closed
    """
    quiz = _require_quiz(course_id, quiz_id, session)
    attempt = attempt_storage.get(attempt_id, quiz_id=quiz_id, session=session)
    if attempt is None:
        raise NotFound("Attempt not found")
    if attempt.student_id != student_id:
        raise Forbidden("Not authorized to submit this attempt")
    if attempt.is_submitted:
        raise AlreadySubmitted("Quiz already submitted")

    scored = score_attempt(quiz, answers)
    for graded in scored.answers.values():
        logger.log(
            TRACE,
            "graded answer",
            extra={"attempt_id": attempt_id, "question_id": graded.question_id, "is_correct": graded.is_correct},
        )
    # half a minute rounds up
    minutes = (now - attempt.started_at).total_seconds() / 60
    try:
        submitted = attempt_storage.submit(
            attempt_id,
            answers=scored.answers,
            score=scored.score,
            percentage=scored.percentage,
            passed=scored.passed,
            submitted_at=now,
            time_taken_minutes=math.floor(minutes + 0.5),
            session=session,
        )
    except KeyError as e:
        raise AlreadySubmitted("Quiz already submitted") from e

    total_attempts, average_score = attempt_storage.rollup(quiz_id, session=session)
    quiz_storage.update(quiz_id, total_attempts=total_attempts, average_score=average_score, session=session)

    logger.info(
        "submitted quiz attempt",
        extra={
            "quiz_id": quiz_id,
            "attempt_id": attempt_id,
            "score": scored.score,
            "percentage": scored.percentage,
            "passed": scored.passed,
        },
    )
    logger.debug(
        "updated quiz rollups",
        extra={"quiz_id": quiz_id, "total_attempts": total_attempts, "average_score": average_score},
    )
    return submitted


def get_student_attempts(
    course_id: CourseID,
    quiz_id: QuizID,
    student_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> list[QuizAttempt]:
    """The student's attempts, highest attempt number first."""
    _require_quiz(course_id, quiz_id, session)
    attempts = attempt_storage.find(quiz_id=quiz_id, student_id=student_id, session=session)
    return sorted(attempts, key=lambda a: a.attempt_number, reverse=True)


def get_all_attempts(
    course_id: CourseID,
    quiz_id: QuizID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[QuizAttempt, ...]:
    """Every submitted attempt at the quiz, most recently submitted first."""
    _require_quiz(course_id, quiz_id, session)
    return attempt_storage.find(quiz_id=quiz_id, submitted=True, session=session)


def get_statistics(
    course_id: CourseID,
    quiz_id: QuizID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> QuizStatistics | None:
    quiz = _require_quiz(course_id, quiz_id, session)
    attempts = attempt_storage.find(quiz_id=quiz_id, submitted=True, session=session)
    return quiz_statistics(quiz, attempts)
