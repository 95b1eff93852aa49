from __future__ import annotations

import datetime

import sqlalchemy as sqla

from gradebook.core import di
from gradebook.model import CourseID, GradeColumnID, GradeHistory, GradeHistoryID, UserID

from . import Session
from .table import grade_history, users


def find(
    *,
    course_id: CourseID,
    student_id: UserID | None = None,
    column_id: GradeColumnID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[GradeHistory, ...]:
    """Grade changes, newest first, with the grader's display name."""
    stmt = (
        sqla
        .select(grade_history.__table__, users.name.label("changed_by_name"))
        .outerjoin(users.__table__, users.user_id == grade_history.changed_by)
        .where(grade_history.course_id == course_id)
        .order_by(grade_history.changed_at.desc())
    )
    if student_id is not None:
        stmt = stmt.where(grade_history.student_id == student_id)
    if column_id is not None:
        stmt = stmt.where(grade_history.column_id == column_id)
    rows = session.execute(stmt).mappings().all()
    return tuple(GradeHistory(**row) for row in rows)


def create(
    *,
    course_id: CourseID,
    student_id: UserID,
    column_id: GradeColumnID,
    column_name: str,
    old_grade: float,
    new_grade: float,
    old_percentage: float | None,
    new_percentage: float,
    changed_by: UserID,
    changed_at: datetime.datetime,
    reason: str | None = None,
    is_override: bool = False,
    session: Session = di.Provide["storage.persistent.session"],
) -> GradeHistoryID:
    """Append one entry to the grade change log."""
    history_id = GradeHistoryID()
    stmt = sqla.insert(grade_history).values(
        history_id=history_id,
        course_id=course_id,
        student_id=student_id,
        column_id=column_id,
        column_name=column_name,
        old_grade=old_grade,
        new_grade=new_grade,
        old_percentage=old_percentage,
        new_percentage=new_percentage,
        changed_by=changed_by,
        changed_at=changed_at,
        reason=reason,
        is_override=is_override,
    )
    session.execute(stmt)
    session.flush()
    return history_id
