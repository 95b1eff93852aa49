"""View models for the gradebook."""

from __future__ import annotations

import typing as t

import pydantic as p

from gradebook.model import CourseID, GradeColumn, GradeColumnType, GradeHistory

# fields a client may clear by sending null
_NULLABLE = frozenset({"weight", "category", "linked_assignment_id"})


class GradeColumnCreateRequest(p.BaseModel):
    """Request to add a grade column to a course."""

    course_id: CourseID
    name: str = p.Field(min_length=1, max_length=100)
    type: GradeColumnType
    points: int = p.Field(gt=0)
    weight: float | None = p.Field(default=None, ge=0, le=100)
    category: str | None = None
    linked_assignment_id: str | None = None
    visible_to_students: bool = True
    include_in_calculations: bool = True
    order: int | None = p.Field(default=None, ge=1)


class GradeColumnUpdateRequest(p.BaseModel):
    """Request to edit a grade column; omitted fields are left alone."""

    name: str | None = p.Field(default=None, min_length=1, max_length=100)
    type: GradeColumnType | None = None
    points: int | None = p.Field(default=None, gt=0)
    weight: float | None = p.Field(default=None, ge=0, le=100)
    category: str | None = None
    linked_assignment_id: str | None = None
    visible_to_students: bool | None = None
    include_in_calculations: bool | None = None
    order: int | None = p.Field(default=None, ge=1)

    def changes(self) -> dict[str, t.Any]:
        return {
            k: getattr(self, k)
            for k in self.model_fields_set
            if getattr(self, k) is not None or k in _NULLABLE
        }


class GradeUpdateRequest(p.BaseModel):
    """Request to record one student's grade for one column."""

    grade: float = p.Field(ge=0, allow_inf_nan=False)
    is_override: bool = False
    override_reason: str | None = None


class GradeColumnListResponse(p.BaseModel):
    columns: list[GradeColumn]
    total: int


class GradeHistoryListResponse(p.BaseModel):
    history: list[GradeHistory]
    total: int
