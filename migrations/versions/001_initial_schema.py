"""Initial schema for the gradebook and quiz tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-17

"""

import typing as t

from alembic import op
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.schema import Column, ForeignKey, UniqueConstraint
from sqlalchemy.types import Boolean, DateTime, Float, Integer, JSON, String, Text

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | t.Sequence[str] | None = None
depends_on: str | t.Sequence[str] | None = None

Document = JSON().with_variant(JSONB(), "postgresql")


def _timestamps() -> list[Column[t.Any]]:
    return [
        Column("create_time", DateTime(timezone=True), nullable=False),
        Column("update_time", DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    # Users
    op.create_table(
        "users",
        Column("user_id", String(22), primary_key=True),
        Column("email", String, unique=True, nullable=False),
        Column("name", String, nullable=False),
        Column("role", String, nullable=False),
        *_timestamps(),
    )

    # Courses
    op.create_table(
        "courses",
        Column("course_id", String(22), primary_key=True),
        Column("title", String, nullable=False),
        Column("instructor_id", String(22), ForeignKey("users.user_id"), nullable=False),
        *_timestamps(),
    )

    # Grade columns
    op.create_table(
        "grade_columns",
        Column("column_id", String(22), primary_key=True),
        Column("course_id", String(22), ForeignKey("courses.course_id"), nullable=False),
        Column("name", String, nullable=False),
        Column("type", String, nullable=False),
        Column("points", Integer, nullable=False),
        Column("order", Integer, nullable=False),
        Column("created_by", String(22), ForeignKey("users.user_id"), nullable=False),
        Column("weight", Float, nullable=True),
        Column("category", String, nullable=True),
        Column("linked_assignment_id", String, nullable=True),
        Column("visible_to_students", Boolean, nullable=False),
        Column("include_in_calculations", Boolean, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_grade_columns_course_id", "grade_columns", ["course_id"])

    # Per-student aggregates
    op.create_table(
        "student_grade_records",
        Column("course_id", String(22), ForeignKey("courses.course_id"), primary_key=True),
        Column("student_id", String(22), ForeignKey("users.user_id"), primary_key=True),
        Column("grades", Document, nullable=False),
        Column("overall_points_earned", Float, nullable=False),
        Column("overall_points_possible", Float, nullable=False),
        Column("overall_percentage", Float, nullable=False),
        Column("overall_letter_grade", String, nullable=False),
        Column("calculated_at", DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    # Grade change audit trail; column_id is not a foreign key since history outlives columns
    op.create_table(
        "grade_history",
        Column("history_id", String(22), primary_key=True),
        Column("course_id", String(22), ForeignKey("courses.course_id"), nullable=False),
        Column("student_id", String(22), ForeignKey("users.user_id"), nullable=False),
        Column("column_id", String(22), nullable=False),
        Column("column_name", String, nullable=False),
        Column("old_grade", Float, nullable=False),
        Column("new_grade", Float, nullable=False),
        Column("new_percentage", Float, nullable=False),
        Column("changed_by", String(22), ForeignKey("users.user_id"), nullable=False),
        Column("changed_at", DateTime(timezone=True), nullable=False),
        Column("old_percentage", Float, nullable=True),
        Column("reason", Text, nullable=True),
        Column("is_override", Boolean, nullable=False),
    )
    op.create_index("ix_grade_history_course_student", "grade_history", ["course_id", "student_id"])

    # Quizzes
    op.create_table(
        "quizzes",
        Column("quiz_id", String(22), primary_key=True),
        Column("course_id", String(22), ForeignKey("courses.course_id"), nullable=False),
        Column("title", String, nullable=False),
        Column("available_from", DateTime(timezone=True), nullable=False),
        Column("available_until", DateTime(timezone=True), nullable=False),
        Column("total_points", Integer, nullable=False),
        Column("created_by", String(22), ForeignKey("users.user_id"), nullable=False),
        Column("description", Text, nullable=True),
        Column("instructions", Text, nullable=True),
        Column("time_limit_minutes", Integer, nullable=True),
        Column("max_attempts", Integer, nullable=False),
        Column("shuffle_questions", Boolean, nullable=False),
        Column("shuffle_options", Boolean, nullable=False),
        Column("show_correct_answers", Boolean, nullable=False),
        Column("show_score_immediately", Boolean, nullable=False),
        Column("passing_score", Float, nullable=True),
        Column("questions", Document, nullable=False),
        Column("status", String, nullable=False),
        Column("total_attempts", Integer, nullable=False),
        Column("average_score", Float, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_quizzes_course_id", "quizzes", ["course_id"])

    # Quiz attempts
    op.create_table(
        "quiz_attempts",
        Column("attempt_id", String(22), primary_key=True),
        Column("quiz_id", String(22), ForeignKey("quizzes.quiz_id", ondelete="CASCADE"), nullable=False),
        Column("course_id", String(22), ForeignKey("courses.course_id"), nullable=False),
        Column("student_id", String(22), ForeignKey("users.user_id"), nullable=False),
        Column("attempt_number", Integer, nullable=False),
        Column("started_at", DateTime(timezone=True), nullable=False),
        Column("max_score", Integer, nullable=False),
        Column("submitted_at", DateTime(timezone=True), nullable=True),
        Column("time_taken_minutes", Integer, nullable=True),
        Column("answers", Document, nullable=False),
        Column("score", Integer, nullable=False),
        Column("percentage", Float, nullable=False),
        Column("passed", Boolean, nullable=True),
        Column("is_submitted", Boolean, nullable=False),
        Column("auto_graded", Boolean, nullable=False),
        UniqueConstraint("quiz_id", "student_id", "attempt_number"),
    )


def downgrade() -> None:
    op.drop_table("quiz_attempts")
    op.drop_index("ix_quizzes_course_id", table_name="quizzes")
    op.drop_table("quizzes")
    op.drop_index("ix_grade_history_course_student", table_name="grade_history")
    op.drop_table("grade_history")
    op.drop_table("student_grade_records")
    op.drop_index("ix_grade_columns_course_id", table_name="grade_columns")
    op.drop_table("grade_columns")
    op.drop_table("courses")
    op.drop_table("users")
