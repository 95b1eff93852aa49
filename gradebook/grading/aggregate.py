import datetime

import typing as t

from gradebook.model import GradeAggregate, GradeColumn, GradeColumnID, GradeEntry, UserID

from .letter import letter_grade


def percentage(earned: float, possible: float) -> float:
    """100 x earned / possible, or 0.0 when nothing is possible"""
    if possible <= 0:
        return 0.0
    return 100.0 * earned / possible


def build_entry(
    column: GradeColumn,
    grade: float,
    *,
    graded_by: UserID,
    graded_at: datetime.datetime,
    is_override: bool = False,
    override_reason: str | None = None,
) -> GradeEntry:
    pct = percentage(grade, column.points)
    return GradeEntry(
        column_id=column.column_id,
        column_name=column.name,
        column_type=column.type,
        grade=grade,
        max_points=column.points,
        percentage=pct,
        letter_grade=letter_grade(pct),
        is_override=is_override,
        override_reason=override_reason,
        graded_by=graded_by,
        graded_at=graded_at,
    )


def compute_aggregate(
    columns: t.Iterable[GradeColumn], entries: t.Mapping[GradeColumnID, GradeEntry]
) -> GradeAggregate:
    """Derive a student's overall grade from the course's columns and their entries.

    Only columns flagged ``include_in_calculations`` count, and a column only
    contributes its points once the student has an entry for it. The points
    possible come from the column as it is now, not from the ``max_points``
    captured on the entry when it was graded.
    """
    earned = 0.0
    possible = 0.0
    for column in columns:
        if not column.include_in_calculations:
            continue
        entry = entries.get(column.column_id)
        if entry is None:
            continue
        earned += entry.grade
        possible += column.points

    overall = percentage(earned, possible)
    return GradeAggregate(
        overall_points_earned=earned,
        overall_points_possible=possible,
        overall_percentage=overall,
        overall_letter_grade=letter_grade(overall),
    )
