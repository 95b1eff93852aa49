"""Tests for request authentication."""

from __future__ import annotations

import datetime
import typing as t

import jwt as pyjwt
from fastapi.testclient import TestClient

from gradebook.core import TimestampProvider
from gradebook.model import Course, User, UserID

from .conftest import create_auth_token, TEST_JWT_ALGORITHM, TEST_JWT_SECRET

AuthHeaders = t.Callable[[User], dict[str, str]]


class TestAuthentication:
    """Tests for get_current_user via a protected endpoint."""

    def test_missing_token(self, client: TestClient, test_course: Course) -> None:
        response = client.get(f"/grades/columns/{test_course.course_id}")

        assert response.status_code == 401
        assert response.json() == {"error": "Not authenticated"}
        assert response.headers["www-authenticate"] == "Bearer"

    def test_bad_signature(
        self, client: TestClient, test_course: Course, instructor: User, utcnow: TimestampProvider
    ) -> None:
        now = utcnow()
        token = pyjwt.encode(
            {"sub": str(instructor.user_id), "exp": now + datetime.timedelta(hours=1), "iat": now},
            "not-the-secret",
            algorithm=TEST_JWT_ALGORITHM,
        )
        response = client.get(
            f"/grades/columns/{test_course.course_id}", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid or expired token"}

    def test_garbage_token(self, client: TestClient, test_course: Course) -> None:
        response = client.get(
            f"/grades/columns/{test_course.course_id}", headers={"Authorization": "Bearer not.a.token"}
        )
        assert response.status_code == 401

    def test_expired_token(
        self, client: TestClient, test_course: Course, instructor: User, utcnow: TimestampProvider
    ) -> None:
        token = create_auth_token(instructor, utcnow, expires_in=-datetime.timedelta(hours=1))
        response = client.get(
            f"/grades/columns/{test_course.course_id}", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid or expired token"}

    def test_unknown_user(self, client: TestClient, test_course: Course, utcnow: TimestampProvider) -> None:
        now = utcnow()
        token = pyjwt.encode(
            {"sub": str(UserID()), "exp": now + datetime.timedelta(hours=1), "iat": now},
            TEST_JWT_SECRET,
            algorithm=TEST_JWT_ALGORITHM,
        )
        response = client.get(
            f"/grades/columns/{test_course.course_id}", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401
        assert response.json() == {"error": "User not found"}

    def test_stored_role_wins(
        self,
        client: TestClient,
        test_course: Course,
        student: User,
        utcnow: TimestampProvider,
    ) -> None:
        """A token claiming a stronger role than the user holds grants nothing."""
        now = utcnow()
        token = pyjwt.encode(
            {"sub": str(student.user_id), "role": "admin", "exp": now + datetime.timedelta(hours=1), "iat": now},
            TEST_JWT_SECRET,
            algorithm=TEST_JWT_ALGORITHM,
        )
        response = client.get(
            f"/grades/grade-center/{test_course.course_id}", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 403

    def test_valid_token(
        self, client: TestClient, auth_headers: AuthHeaders, test_course: Course, student: User
    ) -> None:
        response = client.get(f"/grades/columns/{test_course.course_id}", headers=auth_headers(student))

        assert response.status_code == 200
        assert response.json() == {"columns": [], "total": 0}


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "env": "test"}
