from __future__ import annotations

import sqlalchemy as sqla

from gradebook.core import di
from gradebook.model import Course, CourseID, UserID

from . import Session
from .table import courses


def get(
    course_id: CourseID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Course | None:
    stmt = sqla.select(courses.__table__).where(courses.course_id == course_id)
    row = session.execute(stmt).mappings().one_or_none()
    return Course(**row) if row else None


def find(
    *,
    instructor_id: UserID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Course, ...]:
    stmt = sqla.select(courses.__table__).order_by(courses.title)
    if instructor_id is not None:
        stmt = stmt.where(courses.instructor_id == instructor_id)
    rows = session.execute(stmt).mappings().all()
    return tuple(Course(**row) for row in rows)


def create(
    *,
    title: str,
    instructor_id: UserID,
    session: Session = di.Provide["storage.persistent.session"],
) -> Course:
    course_id = CourseID()
    stmt = sqla.insert(courses).values(course_id=course_id, title=title, instructor_id=instructor_id)
    session.execute(stmt)
    session.flush()
    result = get(course_id, session=session)
    assert result is not None
    return result
