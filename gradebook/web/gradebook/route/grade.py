"""Gradebook routes: grade columns, grades, history, statistics and export."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from gradebook.auth import AuthContext, get_current_user, require_course_staff, require_course_staff_or_self
from gradebook.core import di, TimestampProvider
from gradebook.grading import gradebook as gradebook_service
from gradebook.grading import NotFound
from gradebook.model import CourseID, GradeCenter, GradeColumn, GradeColumnID, GradeEntry, GradeStatistics, \
    StudentGradeRecord, UserID

from ..view.grade import GradeColumnCreateRequest, GradeColumnListResponse, GradeColumnUpdateRequest, \
    GradeHistoryListResponse, GradeUpdateRequest

router = APIRouter(prefix="/grades", tags=["grades"])


# Columns


@router.post("/columns", operation_id="create_grade_column", status_code=status.HTTP_201_CREATED)
@di.inject
def create_grade_column(
    request: GradeColumnCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> GradeColumn:
    """Add a grade column to a course. Only the course's instructor or an admin may."""
    with session.begin():
        require_course_staff(
            auth, request.course_id, "Not authorized to create grade columns for this course", session=session
        )
        return gradebook_service.create_column(
            request.course_id,
            name=request.name,
            type=request.type,
            points=request.points,
            created_by=auth.user.user_id,
            weight=request.weight,
            category=request.category,
            linked_assignment_id=request.linked_assignment_id,
            visible_to_students=request.visible_to_students,
            include_in_calculations=request.include_in_calculations,
            order=request.order,
            session=session,
        )


@router.get("/columns/{course_id}", operation_id="list_grade_columns")
@di.inject
def list_grade_columns(
    course_id: CourseID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> GradeColumnListResponse:
    """List a course's grade columns in display order."""
    with session.begin():
        columns = gradebook_service.list_columns(course_id, session=session)
    return GradeColumnListResponse(columns=list(columns), total=len(columns))


@router.patch("/columns/{course_id}/{column_id}", operation_id="update_grade_column")
@di.inject
def update_grade_column(
    course_id: CourseID,
    column_id: GradeColumnID,
    request: GradeColumnUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> GradeColumn:
    """Edit a grade column."""
    with session.begin():
        require_course_staff(auth, course_id, "Not authorized to update this grade column", session=session)
        return gradebook_service.update_column(
            course_id, column_id, now=utcnow(), session=session, **request.changes()
        )


@router.delete("/columns/{course_id}/{column_id}", operation_id="delete_grade_column")
@di.inject
def delete_grade_column(
    course_id: CourseID,
    column_id: GradeColumnID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> dict[str, str]:
    """Delete a grade column along with every grade recorded against it."""
    with session.begin():
        require_course_staff(auth, course_id, "Not authorized to delete this grade column", session=session)
        gradebook_service.delete_column(course_id, column_id, now=utcnow(), session=session)
    return {"message": "Grade column deleted successfully"}


# Grades


@router.get("/my-grades/{course_id}", operation_id="get_my_grades")
@di.inject
def get_my_grades(
    course_id: CourseID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> StudentGradeRecord | None:
    """The caller's own grade record for the course; null before their first grade."""
    with session.begin():
        return gradebook_service.get_student_grades(course_id, auth.user.user_id, session=session)


@router.get("/grade-center/{course_id}", operation_id="get_grade_center")
@di.inject
def get_grade_center(
    course_id: CourseID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> GradeCenter:
    """Every column and every student's record in the course."""
    with session.begin():
        require_course_staff(auth, course_id, "Not authorized to view grade center for this course", session=session)
        return gradebook_service.get_grade_center(course_id, session=session)


@router.get("/history/{course_id}/{student_id}", operation_id="get_grade_history")
@di.inject
def get_grade_history(
    course_id: CourseID,
    student_id: UserID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> GradeHistoryListResponse:
    """A student's grade changes, newest first. Visible to course staff and the student."""
    with session.begin():
        require_course_staff_or_self(
            auth, course_id, student_id, "Not authorized to view grade history", session=session
        )
        history = gradebook_service.get_grade_history(course_id, student_id, session=session)
    return GradeHistoryListResponse(history=list(history), total=len(history))


@router.get("/statistics/{course_id}/{column_id}", operation_id="get_column_statistics")
@di.inject
def get_column_statistics(
    course_id: CourseID,
    column_id: GradeColumnID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> GradeStatistics:
    with session.begin():
        require_course_staff(auth, course_id, "Not authorized to view statistics for this course", session=session)
        stats = gradebook_service.calculate_column_statistics(course_id, column_id, session=session)
    if stats is None:
        raise NotFound("No data available for statistics")
    return stats


@router.get("/export/{course_id}", operation_id="export_grades")
@di.inject
def export_grades(
    course_id: CourseID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> Response:
    """Download the course's grade center as CSV."""
    with session.begin():
        require_course_staff(auth, course_id, "Not authorized to export grades for this course", session=session)
        body = gradebook_service.export_grades_to_csv(course_id, session=session)
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="grades-{course_id}.csv"'},
    )


@router.post("/{course_id}/{student_id}/{column_id}", operation_id="update_grade")
@di.inject
def update_grade(
    course_id: CourseID,
    student_id: UserID,
    column_id: GradeColumnID,
    request: GradeUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> GradeEntry:
    """Record one student's grade for one column."""
    with session.begin():
        require_course_staff(auth, course_id, "Not authorized to update grades for this course", session=session)
        return gradebook_service.update_grade(
            course_id,
            student_id,
            column_id,
            grader_id=auth.user.user_id,
            grade=request.grade,
            now=utcnow(),
            is_override=request.is_override,
            override_reason=request.override_reason,
            session=session,
        )
