"""Gradebook operations: grade columns, grade entries and the per-student aggregate.

Every function runs inside the caller's transaction. A grade write stores the
new entry and the aggregate recomputed from it in that same transaction, so a
student record never holds an entry map and an aggregate that disagree.
"""

from __future__ import annotations

import datetime
import logging
import typing as t

from gradebook.core import di
from gradebook.lib import NotSet
from gradebook.model import CourseID, GradeCenter, GradeColumn, GradeColumnID, GradeColumnType, GradeEntry, \
    GradeHistory, GradeStatistics, StudentGradeRecord, UserID
from gradebook.storage import column as column_storage
from gradebook.storage import course as course_storage
from gradebook.storage import history as history_storage
from gradebook.storage import record as record_storage
from gradebook.storage import Session
from gradebook.storage import user as user_storage

from .aggregate import build_entry, compute_aggregate
from .errors import NotFound, ValidationFailed
from .export import export_csv
from .statistics import column_statistics

logger = logging.getLogger(__name__)


def _require_column(course_id: CourseID, column_id: GradeColumnID, session: Session) -> GradeColumn:
    column = column_storage.get(column_id, course_id=course_id, session=session)
    if column is None:
        raise NotFound("Grade column not found")
    return column


# Columns


def create_column(
    course_id: CourseID,
    *,
    name: str,
    type: GradeColumnType,
    points: int,
    created_by: UserID,
    weight: float | None = None,
    category: str | None = None,
    linked_assignment_id: str | None = None,
    visible_to_students: bool = True,
    include_in_calculations: bool = True,
    order: int | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> GradeColumn:
    if course_storage.get(course_id, session=session) is None:
        raise NotFound("Course not found")
    if points <= 0:
        raise ValidationFailed("Points must be a positive number")

    column = column_storage.create(
        course_id=course_id,
        name=name,
        type=type,
        points=points,
        created_by=created_by,
        weight=weight,
        category=category,
        linked_assignment_id=linked_assignment_id,
        visible_to_students=visible_to_students,
        include_in_calculations=include_in_calculations,
        order=order,
        session=session,
    )
    logger.info(
        "created grade column",
        extra={"course_id": course_id, "column_id": column.column_id, "points": points},
    )
    return column


def list_columns(
    course_id: CourseID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[GradeColumn, ...]:
    return column_storage.find(course_id=course_id, session=session)


def update_column(
    course_id: CourseID,
    column_id: GradeColumnID,
    *,
    now: datetime.datetime,
    name: str | NotSet = NotSet(),
    type: GradeColumnType | NotSet = NotSet(),
    points: int | NotSet = NotSet(),
    weight: float | None | NotSet = NotSet(),
    category: str | None | NotSet = NotSet(),
    linked_assignment_id: str | None | NotSet = NotSet(),
    visible_to_students: bool | NotSet = NotSet(),
    include_in_calculations: bool | NotSet = NotSet(),
    order: int | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> GradeColumn:
    """Edit a column.

    Changing its points or whether it counts toward the overall grade
    recomputes the aggregate of every student in the course. Changing its
    points, name or type also rebuilds the entries stored for it.
    """
    before = _require_column(course_id, column_id, session)
    if not isinstance(points, NotSet) and points <= 0:
        raise ValidationFailed("Points must be a positive number")

    column_storage.update(
        column_id,
        name=name,
        type=type,
        points=points,
        weight=weight,
        category=category,
        linked_assignment_id=linked_assignment_id,
        visible_to_students=visible_to_students,
        include_in_calculations=include_in_calculations,
        order=order,
        session=session,
    )
    after = _require_column(course_id, column_id, session)

    rebuilt = after if (before.points, before.name, before.type) != (after.points, after.name, after.type) else None
    if rebuilt is not None or before.include_in_calculations != after.include_in_calculations:
        _recalculate_course(course_id, now=now, rebuild=rebuilt, session=session)
    return after


def delete_column(
    course_id: CourseID,
    column_id: GradeColumnID,
    *,
    now: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Delete a column and every grade entry recorded against it.

    Affected students have their aggregate recomputed without the column.
    Grade history that mentions the column is kept.
    """
    _require_column(course_id, column_id, session)
    affected = record_storage.find_with_column(course_id, column_id, session=session)
    column_storage.delete(column_id, session=session)

    columns = column_storage.find(course_id=course_id, session=session)
    for record in affected:
        grades = {k: v for k, v in record.grades.items() if k != column_id}
        record_storage.save(
            course_id,
            record.student_id,
            grades=grades,
            aggregate=compute_aggregate(columns, grades),
            calculated_at=now,
            session=session,
        )
    logger.info(
        "deleted grade column",
        extra={"course_id": course_id, "column_id": column_id, "records_updated": len(affected)},
    )


# Grades


def update_grade(
    course_id: CourseID,
    student_id: UserID,
    column_id: GradeColumnID,
    *,
    grader_id: UserID,
    grade: float,
    now: datetime.datetime,
    is_override: bool = False,
    override_reason: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> GradeEntry:
    """Record one student's grade for one column.

    The grade may exceed the column's points. When the student already had a
    different grade for the column the change is appended to the history;
    first-time grading never is. The entry map and the aggregate derived from
    it are saved together.

    Raises:
        NotFound: if the column or the student does not exist
        ValidationFailed: if the grade is negative
    """
    if grade < 0:
        raise ValidationFailed("Grade must be a non-negative number")
    column = _require_column(course_id, column_id, session)
    if user_storage.get(student_id, session=session) is None:
        raise NotFound("Student not found")

    record = record_storage.get(course_id, student_id, session=session)
    grades = dict(record.grades) if record is not None else {}
    previous = grades.get(column_id)

    entry = build_entry(
        column,
        grade,
        graded_by=grader_id,
        graded_at=now,
        is_override=is_override,
        override_reason=override_reason,
    )

    if previous is not None and previous.grade != grade:
        history_id = history_storage.create(
            course_id=course_id,
            student_id=student_id,
            column_id=column_id,
            column_name=column.name,
            old_grade=previous.grade,
            new_grade=grade,
            old_percentage=previous.percentage,
            new_percentage=entry.percentage,
            changed_by=grader_id,
            changed_at=now,
            reason=override_reason,
            is_override=is_override,
            session=session,
        )
        logger.info(
            "recorded grade change",
            extra={
                "history_id": history_id,
                "course_id": course_id,
                "student_id": student_id,
                "column_id": column_id,
                "old_grade": previous.grade,
                "new_grade": grade,
            },
        )

    grades[column_id] = entry
    columns = column_storage.find(course_id=course_id, session=session)
    aggregate = compute_aggregate(columns, grades)
    record_storage.save(
        course_id,
        student_id,
        grades=grades,
        aggregate=aggregate,
        calculated_at=now,
        session=session,
    )
    logger.info(
        "graded student",
        extra={
            "course_id": course_id,
            "student_id": student_id,
            "column_id": column_id,
            "grade": grade,
            "overall_percentage": aggregate.overall_percentage,
        },
    )
    return entry


def recalculate_overall_grade(
    course_id: CourseID,
    student_id: UserID,
    *,
    now: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> StudentGradeRecord | None:
    """Recompute and store a student's aggregate from the current columns and entries.

    Returns None, writing nothing, when the student has no grade record.
    """
    record = record_storage.get(course_id, student_id, session=session)
    if record is None:
        return None
    columns = column_storage.find(course_id=course_id, session=session)
    return record_storage.save(
        course_id,
        student_id,
        grades=record.grades,
        aggregate=compute_aggregate(columns, record.grades),
        calculated_at=now,
        session=session,
    )


def _recalculate_course(
    course_id: CourseID, *, now: datetime.datetime, rebuild: GradeColumn | None = None, session: Session
) -> None:
    """Recompute every aggregate in a course; entries for ``rebuild`` are re-derived from its current definition"""
    columns = column_storage.find(course_id=course_id, session=session)
    records = record_storage.find(course_id=course_id, session=session)
    for record in records:
        grades = dict(record.grades)
        if rebuild is not None and rebuild.column_id in grades:
            entry = grades[rebuild.column_id]
            grades[rebuild.column_id] = build_entry(
                rebuild,
                entry.grade,
                graded_by=entry.graded_by,
                graded_at=entry.graded_at,
                is_override=entry.is_override,
                override_reason=entry.override_reason,
            )
        record_storage.save(
            course_id,
            record.student_id,
            grades=grades,
            aggregate=compute_aggregate(columns, grades),
            calculated_at=now,
            session=session,
        )
    logger.debug("recalculated course aggregates", extra={"course_id": course_id, "records": len(records)})


# Reads


def get_student_grades(
    course_id: CourseID,
    student_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> StudentGradeRecord | None:
    return record_storage.get(course_id, student_id, session=session)


def get_grade_center(
    course_id: CourseID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> GradeCenter:
    return GradeCenter(
        columns=list(column_storage.find(course_id=course_id, session=session)),
        students=list(record_storage.find(course_id=course_id, session=session)),
    )


def get_grade_history(
    course_id: CourseID,
    student_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[GradeHistory, ...]:
    return history_storage.find(course_id=course_id, student_id=student_id, session=session)


def calculate_column_statistics(
    course_id: CourseID,
    column_id: GradeColumnID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> GradeStatistics | None:
    column = _require_column(course_id, column_id, session)
    records = record_storage.find(course_id=course_id, session=session)
    return column_statistics(column, t.cast(t.Sequence[StudentGradeRecord], records))


def export_grades_to_csv(
    course_id: CourseID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> str:
    columns = column_storage.find(course_id=course_id, session=session)
    rows = record_storage.find(course_id=course_id, session=session)
    return export_csv(columns, rows)
