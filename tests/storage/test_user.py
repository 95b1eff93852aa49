"""Tests for gradebook.storage.user and gradebook.storage.course."""

from __future__ import annotations

import typing as t

import pytest
import sqlalchemy.exc
from sqlalchemy.orm import Session

from gradebook.model import Course, User, UserID, UserRole
from gradebook.storage import course as course_storage
from gradebook.storage import user as user_storage


class TestUserGet(object):
    """Tests for user_storage.get()."""

    def test_by_id_and_email(self, db_session: Session, instructor: User) -> None:
        with db_session.begin():
            by_id = user_storage.get(instructor.user_id, session=db_session)
            by_email = user_storage.get(email="instructor@example.com", session=db_session)

        assert by_id == by_email == instructor
        assert instructor.role is UserRole.Instructor

    def test_missing(self, db_session: Session) -> None:
        with db_session.begin():
            assert user_storage.get(UserID(), session=db_session) is None

    def test_requires_exactly_one_key(self, db_session: Session) -> None:
        with pytest.raises(ValueError):
            with db_session.begin():
                user_storage.get(session=db_session)


class TestUserCreate(object):
    def test_email_is_unique(self, db_session: Session, user_factory: t.Callable[..., User]) -> None:
        user_factory(email="dup@example.com")
        with pytest.raises(sqlalchemy.exc.IntegrityError):
            user_factory(email="dup@example.com")

    def test_find_by_role(self, db_session: Session, instructor: User, student: User, admin: User) -> None:
        with db_session.begin():
            students = user_storage.find(role=UserRole.Student, session=db_session)

        assert [u.user_id for u in students] == [student.user_id]


class TestCourse(object):
    def test_create_and_find(self, db_session: Session, test_course: Course, instructor: User, admin: User) -> None:
        with db_session.begin():
            other = course_storage.create(title="Advanced Testing", instructor_id=admin.user_id, session=db_session)
            mine = course_storage.find(instructor_id=instructor.user_id, session=db_session)

        assert [c.course_id for c in mine] == [test_course.course_id]
        assert other.instructor_id == admin.user_id
