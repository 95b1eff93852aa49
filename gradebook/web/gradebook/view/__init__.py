"""View models for the gradebook web application."""

__all__ = [
    # Grade views
    "GradeColumnCreateRequest",
    "GradeColumnUpdateRequest",
    "GradeUpdateRequest",
    "GradeColumnListResponse",
    "GradeHistoryListResponse",
    # Quiz views
    "QuestionRequest",
    "QuizCreateRequest",
    "QuizUpdateRequest",
    "SubmitAttemptRequest",
    "QuizListResponse",
    "QuizAttemptListResponse",
]

from .grade import GradeColumnCreateRequest, GradeColumnListResponse, GradeColumnUpdateRequest, \
    GradeHistoryListResponse, GradeUpdateRequest
from .quiz import QuestionRequest, QuizAttemptListResponse, QuizCreateRequest, QuizListResponse, \
    QuizUpdateRequest, SubmitAttemptRequest
