import datetime
import typing as t

from sqlalchemy import ForeignKey, Index, MetaData, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, MappedAsDataclass

from gradebook.model import CourseID, GradeColumnID, GradeHistoryID, QuizAttemptID, QuizID, UserID

from .type import JSONDocument, ShortUUIDKeyType, UTCDateTime

metadata = MetaData()


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class base(MappedAsDataclass, DeclarativeBase):
    metadata = metadata
    type_annotation_map = {
        UserID: ShortUUIDKeyType(UserID),
        CourseID: ShortUUIDKeyType(CourseID),
        GradeColumnID: ShortUUIDKeyType(GradeColumnID),
        GradeHistoryID: ShortUUIDKeyType(GradeHistoryID),
        QuizID: ShortUUIDKeyType(QuizID),
        QuizAttemptID: ShortUUIDKeyType(QuizAttemptID),
        datetime.datetime: UTCDateTime(),
        dict[str, t.Any]: JSONDocument,
        list[dict[str, t.Any]]: JSONDocument,
    }


# Users & Courses


class users(base):
    __tablename__ = "users"

    user_id: Mapped[UserID] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(unique=True)
    name: Mapped[str]
    role: Mapped[str] = mapped_column(default="student")
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, insert_default=_now)
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, insert_default=_now, onupdate=_now)


class courses(base):
    __tablename__ = "courses"

    course_id: Mapped[CourseID] = mapped_column(primary_key=True)
    title: Mapped[str]
    instructor_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, insert_default=_now)
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, insert_default=_now, onupdate=_now)


# Gradebook


class grade_columns(base):
    __tablename__ = "grade_columns"

    column_id: Mapped[GradeColumnID] = mapped_column(primary_key=True)
    course_id: Mapped[CourseID] = mapped_column(ForeignKey("courses.course_id"), index=True)
    name: Mapped[str]
    type: Mapped[str]
    points: Mapped[int]
    order: Mapped[int]
    created_by: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    weight: Mapped[float | None] = mapped_column(default=None)
    category: Mapped[str | None] = mapped_column(default=None)
    linked_assignment_id: Mapped[str | None] = mapped_column(default=None)
    visible_to_students: Mapped[bool] = mapped_column(default=True)
    include_in_calculations: Mapped[bool] = mapped_column(default=True)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, insert_default=_now)
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, insert_default=_now, onupdate=_now)


class student_grade_records(base):
    __tablename__ = "student_grade_records"

    course_id: Mapped[CourseID] = mapped_column(ForeignKey("courses.course_id"), primary_key=True)
    student_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"), primary_key=True)
    # column id -> serialized GradeEntry
    grades: Mapped[dict[str, t.Any]] = mapped_column(default_factory=dict)
    overall_points_earned: Mapped[float] = mapped_column(default=0.0)
    overall_points_possible: Mapped[float] = mapped_column(default=0.0)
    overall_percentage: Mapped[float] = mapped_column(default=0.0)
    overall_letter_grade: Mapped[str] = mapped_column(default="F")
    calculated_at: Mapped[datetime.datetime | None] = mapped_column(default=None)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, insert_default=_now)
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, insert_default=_now, onupdate=_now)


class grade_history(base):
    __tablename__ = "grade_history"
    __table_args__ = (Index("ix_grade_history_course_student", "course_id", "student_id"),)

    history_id: Mapped[GradeHistoryID] = mapped_column(primary_key=True)
    course_id: Mapped[CourseID] = mapped_column(ForeignKey("courses.course_id"))
    student_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    # history outlives the column it describes
    column_id: Mapped[GradeColumnID]
    column_name: Mapped[str]
    old_grade: Mapped[float]
    new_grade: Mapped[float]
    new_percentage: Mapped[float]
    changed_by: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    changed_at: Mapped[datetime.datetime]
    old_percentage: Mapped[float | None] = mapped_column(default=None)
    reason: Mapped[str | None] = mapped_column(default=None)
    is_override: Mapped[bool] = mapped_column(default=False)


# Quizzes


class quizzes(base):
    __tablename__ = "quizzes"

    quiz_id: Mapped[QuizID] = mapped_column(primary_key=True)
    course_id: Mapped[CourseID] = mapped_column(ForeignKey("courses.course_id"), index=True)
    title: Mapped[str]
    available_from: Mapped[datetime.datetime]
    available_until: Mapped[datetime.datetime]
    total_points: Mapped[int]
    created_by: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    description: Mapped[str | None] = mapped_column(default=None)
    instructions: Mapped[str | None] = mapped_column(default=None)
    time_limit_minutes: Mapped[int | None] = mapped_column(default=None)
    max_attempts: Mapped[int] = mapped_column(default=1)
    shuffle_questions: Mapped[bool] = mapped_column(default=False)
    shuffle_options: Mapped[bool] = mapped_column(default=False)
    show_correct_answers: Mapped[bool] = mapped_column(default=True)
    show_score_immediately: Mapped[bool] = mapped_column(default=True)
    passing_score: Mapped[float | None] = mapped_column(default=None)
    questions: Mapped[list[dict[str, t.Any]]] = mapped_column(default_factory=list)
    status: Mapped[str] = mapped_column(default="draft")
    total_attempts: Mapped[int] = mapped_column(default=0)
    average_score: Mapped[float | None] = mapped_column(default=None)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, insert_default=_now)
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, insert_default=_now, onupdate=_now)


class quiz_attempts(base):
    __tablename__ = "quiz_attempts"
    __table_args__ = (UniqueConstraint("quiz_id", "student_id", "attempt_number"),)

    attempt_id: Mapped[QuizAttemptID] = mapped_column(primary_key=True)
    quiz_id: Mapped[QuizID] = mapped_column(ForeignKey("quizzes.quiz_id", ondelete="CASCADE"))
    course_id: Mapped[CourseID] = mapped_column(ForeignKey("courses.course_id"))
    student_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    attempt_number: Mapped[int]
    started_at: Mapped[datetime.datetime]
    max_score: Mapped[int]
    submitted_at: Mapped[datetime.datetime | None] = mapped_column(default=None)
    time_taken_minutes: Mapped[int | None] = mapped_column(default=None)
    # question id -> serialized GradedAnswer
    answers: Mapped[dict[str, t.Any]] = mapped_column(default_factory=dict)
    score: Mapped[int] = mapped_column(default=0)
    percentage: Mapped[float] = mapped_column(default=0.0)
    passed: Mapped[bool | None] = mapped_column(default=None)
    is_submitted: Mapped[bool] = mapped_column(default=False)
    auto_graded: Mapped[bool] = mapped_column(default=False)
