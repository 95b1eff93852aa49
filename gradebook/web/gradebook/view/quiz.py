"""View models for quizzes and quiz attempts."""

from __future__ import annotations

import typing as t

import pydantic as p

from gradebook.model import CourseID, QuestionType, Quiz, QuizAttempt

# fields a client may clear by sending null
_NULLABLE = frozenset({"description", "instructions", "time_limit_minutes", "passing_score"})


class QuestionRequest(p.BaseModel):
    """A question as authored; ids and order are assigned on save."""

    type: QuestionType
    question_text: str = p.Field(min_length=1)
    points: int = p.Field(ge=0)
    options: list[str] | None = None
    correct_option_index: int | None = p.Field(default=None, ge=0)
    correct_answer: bool | None = None
    correct_answers: list[str] | None = None
    case_sensitive: bool = False
    explanation: str | None = None

    @p.model_validator(mode="after")
    def check_answer_key(self) -> QuestionRequest:
        match self.type:
            case QuestionType.MultipleChoice:
                if not self.options or self.correct_option_index is None:
                    raise ValueError("multiple choice questions need options and a correct_option_index")
                if self.correct_option_index >= len(self.options):
                    raise ValueError("correct_option_index is out of range")
            case QuestionType.TrueFalse:
                if self.correct_answer is None:
                    raise ValueError("true/false questions need a correct_answer")
            case QuestionType.ShortAnswer:
                if not self.correct_answers:
                    raise ValueError("short answer questions need at least one correct answer")
        return self


class QuizCreateRequest(p.BaseModel):
    """Request to create a draft quiz."""

    course_id: CourseID
    title: str = p.Field(min_length=1, max_length=200)
    description: str | None = None
    instructions: str | None = None
    time_limit_minutes: int | None = p.Field(default=None, ge=1)
    max_attempts: int = p.Field(default=1, ge=1)
    shuffle_questions: bool = False
    shuffle_options: bool = False
    show_correct_answers: bool = True
    show_score_immediately: bool = True
    available_from: p.AwareDatetime
    available_until: p.AwareDatetime
    passing_score: float | None = p.Field(default=None, ge=0, le=100)
    questions: list[QuestionRequest]


class QuizUpdateRequest(p.BaseModel):
    """Request to edit a quiz; omitted fields are left alone."""

    title: str | None = p.Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    instructions: str | None = None
    time_limit_minutes: int | None = p.Field(default=None, ge=1)
    max_attempts: int | None = p.Field(default=None, ge=1)
    shuffle_questions: bool | None = None
    shuffle_options: bool | None = None
    show_correct_answers: bool | None = None
    show_score_immediately: bool | None = None
    available_from: p.AwareDatetime | None = None
    available_until: p.AwareDatetime | None = None
    passing_score: float | None = p.Field(default=None, ge=0, le=100)
    questions: list[QuestionRequest] | None = None

    def changes(self) -> dict[str, t.Any]:
        changed: dict[str, t.Any] = {}
        for k in self.model_fields_set:
            v = getattr(self, k)
            if v is None and k not in _NULLABLE:
                continue
            changed[k] = [q.model_dump() for q in v] if k == "questions" else v
        return changed


class SubmitAttemptRequest(p.BaseModel):
    """Answers keyed by question id; values are option indexes, booleans or text."""

    answers: dict[str, t.Any]


class QuizListResponse(p.BaseModel):
    quizzes: list[Quiz]
    total: int


class QuizAttemptListResponse(p.BaseModel):
    attempts: list[QuizAttempt]
    total: int
