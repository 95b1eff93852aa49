"""Course-level authorization checks.

Routes call these inside their transaction, after authentication.
"""

from __future__ import annotations

from gradebook.core import di
from gradebook.grading.errors import Forbidden, NotFound
from gradebook.model import Course, CourseID, UserID, UserRole
from gradebook.storage import course as course_storage
from gradebook.storage import Session

from .middleware import AuthContext


def is_course_staff(auth: AuthContext, course: Course) -> bool:
    """The course's instructor, or any admin"""
    return auth.role is UserRole.Admin or course.instructor_id == auth.user.user_id


def require_course(
    course_id: CourseID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Course:
    """
    Raises:
        NotFound: if the course does not exist
    """
    course = course_storage.get(course_id, session=session)
    if course is None:
        raise NotFound("Course not found")
    return course


def require_course_staff(
    auth: AuthContext,
    course_id: CourseID,
    message: str = "Not authorized to manage this course",
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Course:
    """
    Raises:
        NotFound: if the course does not exist
        Forbidden: if the caller is neither its instructor nor an admin
    """
    course = require_course(course_id, session=session)
    if not is_course_staff(auth, course):
        raise Forbidden(message)
    return course


def require_course_staff_or_self(
    auth: AuthContext,
    course_id: CourseID,
    student_id: UserID,
    message: str = "Not authorized to view this student",
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Course:
    """Like require_course_staff, but also lets a student through to their own data."""
    course = require_course(course_id, session=session)
    if auth.user.user_id != student_id and not is_course_staff(auth, course):
        raise Forbidden(message)
    return course
