from __future__ import annotations

import typing as t

import sqlalchemy as sqla

from gradebook.core import di
from gradebook.lib import NotSet
from gradebook.model import CourseID, GradeColumn, GradeColumnID, GradeColumnType, UserID

from . import Session
from .table import grade_columns


def get(
    column_id: GradeColumnID,
    *,
    course_id: CourseID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> GradeColumn | None:
    """Get a grade column, optionally requiring that it belong to ``course_id``."""
    stmt = sqla.select(grade_columns.__table__).where(grade_columns.column_id == column_id)
    if course_id is not None:
        stmt = stmt.where(grade_columns.course_id == course_id)
    row = session.execute(stmt).mappings().one_or_none()
    return GradeColumn(**row) if row else None


def find(
    *,
    course_id: CourseID,
    included_only: bool = False,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[GradeColumn, ...]:
    """A course's columns in display order."""
    stmt = (
        sqla
        .select(grade_columns.__table__)
        .where(grade_columns.course_id == course_id)
        .order_by(grade_columns.order, grade_columns.create_time)
    )
    if included_only:
        stmt = stmt.where(grade_columns.include_in_calculations.is_(True))
    rows = session.execute(stmt).mappings().all()
    return tuple(GradeColumn(**row) for row in rows)


def next_order(
    course_id: CourseID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    """One past the highest display position in the course, or 1 for its first column"""
    stmt = sqla.select(sqla.func.max(grade_columns.order)).where(grade_columns.course_id == course_id)
    current = session.execute(stmt).scalar_one_or_none()
    return (current or 0) + 1


def create(
    *,
    course_id: CourseID,
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
    """Create a grade column; without an explicit order it goes last."""
    column_id = GradeColumnID()
    if order is None:
        order = next_order(course_id, session=session)
    stmt = sqla.insert(grade_columns).values(
        column_id=column_id,
        course_id=course_id,
        name=name,
        type=type.value,
        points=points,
        order=order,
        created_by=created_by,
        weight=weight,
        category=category,
        linked_assignment_id=linked_assignment_id,
        visible_to_students=visible_to_students,
        include_in_calculations=include_in_calculations,
    )
    session.execute(stmt)
    session.flush()
    result = get(column_id, session=session)
    assert result is not None
    return result


def update(
    column_id: GradeColumnID,
    *,
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
) -> None:
    """Update a grade column.

    Uses NotSet sentinel for parameters where None may be a valid value.
    Call get() after if you need the updated entity.

    Raises:
        KeyError: If column_id does not correspond to a grade column
    """
    values: dict[str, t.Any] = {}
    if not isinstance(name, NotSet):
        values["name"] = name
    if not isinstance(type, NotSet):
        values["type"] = type.value
    if not isinstance(points, NotSet):
        values["points"] = points
    if not isinstance(weight, NotSet):
        values["weight"] = weight
    if not isinstance(category, NotSet):
        values["category"] = category
    if not isinstance(linked_assignment_id, NotSet):
        values["linked_assignment_id"] = linked_assignment_id
    if not isinstance(visible_to_students, NotSet):
        values["visible_to_students"] = visible_to_students
    if not isinstance(include_in_calculations, NotSet):
        values["include_in_calculations"] = include_in_calculations
    if not isinstance(order, NotSet):
        values["order"] = order

    if not values:
        # No-op update to verify the column exists
        values["column_id"] = column_id

    stmt = sqla.update(grade_columns).where(grade_columns.column_id == column_id).values(**values)
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Grade column {column_id} not found")

    session.flush()


def delete(
    column_id: GradeColumnID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    """Delete a grade column.

    Returns:
        True if a column was deleted, False if not found
    """
    stmt = sqla.delete(grade_columns).where(grade_columns.column_id == column_id)
    result = session.execute(stmt)
    return bool(result.rowcount)  # pyright: ignore[reportUnknownArgumentType, reportAttributeAccessIssue]
