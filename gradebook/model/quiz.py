import datetime
import enum

import typing as t

import pydantic as p

from .base import BaseModel, Percentage, WithTimestamps
from .id import CourseID, QuestionID, QuizAttemptID, QuizID, UserID


class QuizStatus(enum.Enum):
    Draft = "draft"
    Published = "published"
    Closed = "closed"


class QuestionType(enum.Enum):
    MultipleChoice = "multiple_choice"
    TrueFalse = "true_false"
    ShortAnswer = "short_answer"


class QuizQuestion(BaseModel):
    question_id: QuestionID
    type: QuestionType
    question_text: str
    points: int = p.Field(ge=0)
    order: int

    # multiple choice
    options: list[str] | None = None
    correct_option_index: int | None = None

    # true/false
    correct_answer: bool | None = None

    # short answer
    correct_answers: list[str] | None = None
    case_sensitive: bool = False

    explanation: str | None = None

    def without_key(self) -> "QuizQuestion":
        return self.model_copy(
            update={
                "correct_option_index": None,
                "correct_answer": None,
                "correct_answers": None,
                "explanation": None,
            }
        )


class Quiz(WithTimestamps):
    quiz_id: QuizID
    course_id: CourseID
    title: str
    description: str | None = None
    instructions: str | None = None

    time_limit_minutes: int | None = None
    max_attempts: int = 1
    shuffle_questions: bool = False
    shuffle_options: bool = False
    show_correct_answers: bool = True
    show_score_immediately: bool = True

    available_from: datetime.datetime
    available_until: datetime.datetime

    total_points: int
    passing_score: Percentage | None = None
    questions: list[QuizQuestion] = []

    status: QuizStatus = QuizStatus.Draft
    total_attempts: int = 0
    average_score: float | None = None

    created_by: UserID


class GradedAnswer(BaseModel):
    question_id: QuestionID
    question_type: QuestionType
    student_answer: t.Any = None
    is_correct: bool
    points_earned: int
    max_points: int


class QuizAttempt(BaseModel):
    attempt_id: QuizAttemptID
    quiz_id: QuizID
    course_id: CourseID
    student_id: UserID
    attempt_number: int

    started_at: datetime.datetime
    submitted_at: datetime.datetime | None = None
    time_taken_minutes: int | None = None

    answers: dict[QuestionID, GradedAnswer] = {}
    score: int = 0
    max_score: int
    percentage: float = 0.0
    passed: bool | None = None

    is_submitted: bool = False
    auto_graded: bool = False


class QuestionStatistics(BaseModel):
    question_id: QuestionID
    question_text: str
    total_attempts: int
    correct_answers: int
    accuracy_rate: float


class QuizStatistics(BaseModel):
    quiz_id: QuizID
    quiz_title: str
    total_attempts: int
    unique_students: int
    average_score: float
    median_score: float
    min_score: float
    max_score: float
    std_deviation: float
    students_passed: int
    pass_rate: float
    question_statistics: dict[QuestionID, QuestionStatistics]
