"""Quiz routes: authoring, publishing, attempts and statistics."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from gradebook.auth import AuthContext, get_current_user, is_course_staff, require_course, require_course_staff, \
    require_student
from gradebook.core import di, TimestampProvider
from gradebook.grading import NotFound
from gradebook.grading import quiz as quiz_service
from gradebook.model import CourseID, Quiz, QuizAttempt, QuizAttemptID, QuizID, QuizStatistics, QuizStatus

from ..view.quiz import QuizAttemptListResponse, QuizCreateRequest, QuizListResponse, QuizUpdateRequest, \
    SubmitAttemptRequest

router = APIRouter(prefix="/quizzes", tags=["quizzes"])


def _student_view(quiz: Quiz) -> Quiz:
    """A quiz as a student may see it: answer keys stripped unless the quiz shows them."""
    if quiz.show_correct_answers:
        return quiz
    return quiz.model_copy(update={"questions": [q.without_key() for q in quiz.questions]})


@router.post("", operation_id="create_quiz", status_code=status.HTTP_201_CREATED)
@di.inject
def create_quiz(
    request: QuizCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Quiz:
    """Create a draft quiz. Only the course's instructor or an admin may."""
    with session.begin():
        require_course_staff(
            auth, request.course_id, "Not authorized to create quizzes for this course", session=session
        )
        return quiz_service.create_quiz(
            request.course_id,
            title=request.title,
            questions=[q.model_dump() for q in request.questions],
            available_from=request.available_from,
            available_until=request.available_until,
            created_by=auth.user.user_id,
            description=request.description,
            instructions=request.instructions,
            time_limit_minutes=request.time_limit_minutes,
            max_attempts=request.max_attempts,
            shuffle_questions=request.shuffle_questions,
            shuffle_options=request.shuffle_options,
            show_correct_answers=request.show_correct_answers,
            show_score_immediately=request.show_score_immediately,
            passing_score=request.passing_score,
            session=session,
        )


@router.get("/course/{course_id}", operation_id="list_quizzes")
@di.inject
def list_quizzes(
    course_id: CourseID,
    status_filter: QuizStatus | None = Query(None, alias="status"),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> QuizListResponse:
    """List a course's quizzes, newest first.

    Callers who are not course staff never see drafts.
    """
    with session.begin():
        course = require_course(course_id, session=session)
        quizzes = quiz_service.list_quizzes(course_id, status=status_filter, session=session)
    if not is_course_staff(auth, course):
        quizzes = tuple(_student_view(q) for q in quizzes if q.status is not QuizStatus.Draft)
    return QuizListResponse(quizzes=list(quizzes), total=len(quizzes))


@router.get("/{course_id}/{quiz_id}", operation_id="get_quiz")
@di.inject
def get_quiz(
    course_id: CourseID,
    quiz_id: QuizID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Quiz:
    with session.begin():
        course = require_course(course_id, session=session)
        quiz = quiz_service.get_quiz(course_id, quiz_id, session=session)
    if is_course_staff(auth, course):
        return quiz
    if quiz.status is QuizStatus.Draft:
        raise NotFound("Quiz not found")
    return _student_view(quiz)


@router.patch("/{course_id}/{quiz_id}", operation_id="update_quiz")
@di.inject
def update_quiz(
    course_id: CourseID,
    quiz_id: QuizID,
    request: QuizUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Quiz:
    with session.begin():
        require_course_staff(auth, course_id, "Not authorized to update this quiz", session=session)
        return quiz_service.update_quiz(course_id, quiz_id, session=session, **request.changes())


@router.post("/{course_id}/{quiz_id}/publish", operation_id="publish_quiz")
@di.inject
def publish_quiz(
    course_id: CourseID,
    quiz_id: QuizID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Quiz:
    with session.begin():
        require_course_staff(auth, course_id, "Not authorized to publish this quiz", session=session)
        return quiz_service.publish_quiz(course_id, quiz_id, session=session)


@router.post("/{course_id}/{quiz_id}/close", operation_id="close_quiz")
@di.inject
def close_quiz(
    course_id: CourseID,
    quiz_id: QuizID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Quiz:
    with session.begin():
        require_course_staff(auth, course_id, "Not authorized to close this quiz", session=session)
        return quiz_service.close_quiz(course_id, quiz_id, session=session)


@router.delete("/{course_id}/{quiz_id}", operation_id="delete_quiz")
@di.inject
def delete_quiz(
    course_id: CourseID,
    quiz_id: QuizID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> dict[str, str]:
    """Delete a quiz together with its attempts."""
    with session.begin():
        require_course_staff(auth, course_id, "Not authorized to delete this quiz", session=session)
        quiz_service.delete_quiz(course_id, quiz_id, session=session)
    return {"message": "Quiz deleted successfully"}


# Attempts


@router.post("/{course_id}/{quiz_id}/start", operation_id="start_quiz_attempt", status_code=status.HTTP_201_CREATED)
@di.inject
def start_attempt(
    course_id: CourseID,
    quiz_id: QuizID,
    auth: AuthContext = Depends(require_student),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> QuizAttempt:
    """Begin the caller's next attempt at a published quiz."""
    with session.begin():
        return quiz_service.start_attempt(course_id, quiz_id, auth.user.user_id, now=utcnow(), session=session)


@router.post("/{course_id}/{quiz_id}/attempts/{attempt_id}/submit", operation_id="submit_quiz_attempt")
@di.inject
def submit_attempt(
    course_id: CourseID,
    quiz_id: QuizID,
    attempt_id: QuizAttemptID,
    request: SubmitAttemptRequest,
    auth: AuthContext = Depends(require_student),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> QuizAttempt:
    """Grade and close one of the caller's attempts."""
    with session.begin():
        return quiz_service.submit_attempt(
            course_id,
            quiz_id,
            attempt_id,
            auth.user.user_id,
            answers=request.answers,
            now=utcnow(),
            session=session,
        )


@router.get("/{course_id}/{quiz_id}/my-attempts", operation_id="get_my_quiz_attempts")
@di.inject
def get_my_attempts(
    course_id: CourseID,
    quiz_id: QuizID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> QuizAttemptListResponse:
    with session.begin():
        attempts = quiz_service.get_student_attempts(course_id, quiz_id, auth.user.user_id, session=session)
    return QuizAttemptListResponse(attempts=attempts, total=len(attempts))


@router.get("/{course_id}/{quiz_id}/attempts", operation_id="get_all_quiz_attempts")
@di.inject
def get_all_attempts(
    course_id: CourseID,
    quiz_id: QuizID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> QuizAttemptListResponse:
    """Every submitted attempt at the quiz, most recent first."""
    with session.begin():
        require_course_staff(auth, course_id, "Not authorized to view quiz attempts", session=session)
        attempts = quiz_service.get_all_attempts(course_id, quiz_id, session=session)
    return QuizAttemptListResponse(attempts=list(attempts), total=len(attempts))


@router.get("/{course_id}/{quiz_id}/statistics", operation_id="get_quiz_statistics")
@di.inject
def get_statistics(
    course_id: CourseID,
    quiz_id: QuizID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> QuizStatistics:
    with session.begin():
        require_course_staff(auth, course_id, "Not authorized to view quiz statistics", session=session)
        stats = quiz_service.get_statistics(course_id, quiz_id, session=session)
    if stats is None:
        raise NotFound("No statistics available yet")
    return stats
