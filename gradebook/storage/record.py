from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla

from gradebook.core import di
from gradebook.model import CourseID, GradeAggregate, GradeColumnID, GradeEntry, StudentGradeRecord, \
    StudentGradeRow, UserID

from . import Session
from .table import student_grade_records, users


def _to_model(row: t.Mapping[str, t.Any], cls: type[StudentGradeRecord] = StudentGradeRecord) -> StudentGradeRecord:
    return cls.model_validate(dict(row))


def get(
    course_id: CourseID,
    student_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> StudentGradeRecord | None:
    stmt = sqla.select(student_grade_records.__table__).where(
        student_grade_records.course_id == course_id,
        student_grade_records.student_id == student_id,
    )
    row = session.execute(stmt).mappings().one_or_none()
    return _to_model(row) if row else None


def find(
    *,
    course_id: CourseID,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[StudentGradeRow, ...]:
    """Every grade record in the course with the student's name and email, by name."""
    stmt = (
        sqla
        .select(
            student_grade_records.__table__,
            users.name.label("student_name"),
            users.email.label("student_email"),
        )
        .join(users.__table__, users.user_id == student_grade_records.student_id)
        .where(student_grade_records.course_id == course_id)
        .order_by(users.name, users.email)
    )
    rows = session.execute(stmt).mappings().all()
    return tuple(t.cast(StudentGradeRow, _to_model(row, StudentGradeRow)) for row in rows)


def _serialize(entries: t.Mapping[GradeColumnID, GradeEntry]) -> dict[str, t.Any]:
    # always a fresh dict, so the ORM sees the JSON column as changed
    return {str(k): v.model_dump(mode="json") for k, v in entries.items()}


def save(
    course_id: CourseID,
    student_id: UserID,
    *,
    grades: t.Mapping[GradeColumnID, GradeEntry],
    aggregate: GradeAggregate,
    calculated_at: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> StudentGradeRecord:
    """Write a student's entry map together with the aggregate derived from it."""
    stmt = sqla.select(student_grade_records).where(
        student_grade_records.course_id == course_id,
        student_grade_records.student_id == student_id,
    )
    record = session.execute(stmt).scalar_one_or_none()
    if record is None:
        record = student_grade_records(course_id=course_id, student_id=student_id)
        session.add(record)

    record.grades = _serialize(grades)
    record.overall_points_earned = aggregate.overall_points_earned
    record.overall_points_possible = aggregate.overall_points_possible
    record.overall_percentage = aggregate.overall_percentage
    record.overall_letter_grade = aggregate.overall_letter_grade.value
    record.calculated_at = calculated_at
    session.flush()

    result = get(course_id, student_id, session=session)
    assert result is not None
    return result


def find_with_column(
    course_id: CourseID,
    column_id: GradeColumnID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[StudentGradeRecord, ...]:
    """Records in the course holding an entry for ``column_id``."""
    stmt = sqla.select(student_grade_records.__table__).where(student_grade_records.course_id == course_id)
    rows = session.execute(stmt).mappings().all()
    records = (_to_model(row) for row in rows)
    return tuple(r for r in records if column_id in r.grades)
