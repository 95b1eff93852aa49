"""Tests for the /grades endpoints."""

from __future__ import annotations

import typing as t

from fastapi.testclient import TestClient

from gradebook.model import Course, CourseID, GradeColumn, GradeColumnID, User, UserRole

from .conftest import create_auth_token

AuthHeaders = t.Callable[[User], dict[str, str]]


def _create_column(client: TestClient, headers: dict[str, str], course: Course, **body: t.Any) -> t.Any:
    payload = {"course_id": str(course.course_id), "name": "Homework 1", "type": "assignment", "points": 100}
    payload.update(body)
    return client.post("/grades/columns", json=payload, headers=headers)


class TestGradeColumns(object):
    """Tests for /grades/columns."""

    def test_create_and_list(
        self, client: TestClient, auth_headers: AuthHeaders, test_course: Course, instructor: User
    ) -> None:
        created = _create_column(client, auth_headers(instructor), test_course, weight=20, category="homework")
        assert created.status_code == 201
        column = created.json()
        assert column["order"] == 1
        assert column["created_by"] == str(instructor.user_id)

        listed = client.get(f"/grades/columns/{test_course.course_id}", headers=auth_headers(instructor))
        assert listed.status_code == 200
        assert listed.json()["total"] == 1
        assert listed.json()["columns"][0]["column_id"] == column["column_id"]

    def test_rejects_zero_points(
        self, client: TestClient, auth_headers: AuthHeaders, test_course: Course, instructor: User
    ) -> None:
        response = _create_column(client, auth_headers(instructor), test_course, points=0)

        assert response.status_code == 400
        assert "points" in response.json()["error"]

    def test_students_cannot_create(
        self, client: TestClient, auth_headers: AuthHeaders, test_course: Course, student: User
    ) -> None:
        response = _create_column(client, auth_headers(student), test_course)

        assert response.status_code == 403
        assert response.json() == {"error": "Not authorized to create grade columns for this course"}

    def test_admin_may_create(
        self, client: TestClient, auth_headers: AuthHeaders, test_course: Course, admin: User
    ) -> None:
        assert _create_column(client, auth_headers(admin), test_course).status_code == 201

    def test_other_instructor_forbidden(
        self,
        client: TestClient,
        auth_headers: AuthHeaders,
        test_course: Course,
        user_factory: t.Callable[..., User],
    ) -> None:
        stranger = user_factory(role=UserRole.Instructor)
        assert _create_column(client, auth_headers(stranger), test_course).status_code == 403

    def test_unknown_course(self, client: TestClient, auth_headers: AuthHeaders, instructor: User) -> None:
        response = client.post(
            "/grades/columns",
            json={"course_id": str(CourseID()), "name": "HW", "type": "assignment", "points": 10},
            headers=auth_headers(instructor),
        )

        assert response.status_code == 404
        assert response.json() == {"error": "Course not found"}

    def test_update_and_delete(
        self,
        client: TestClient,
        auth_headers: AuthHeaders,
        test_course: Course,
        instructor: User,
        column_factory: t.Callable[..., GradeColumn],
    ) -> None:
        column = column_factory(name="Quiz 1")
        url = f"/grades/columns/{test_course.course_id}/{column.column_id}"

        patched = client.patch(url, json={"name": "Quiz One", "category": None}, headers=auth_headers(instructor))
        assert patched.status_code == 200
        assert patched.json()["name"] == "Quiz One"
        assert patched.json()["points"] == column.points

        deleted = client.delete(url, headers=auth_headers(instructor))
        assert deleted.status_code == 200
        assert deleted.json() == {"message": "Grade column deleted successfully"}
        assert client.delete(url, headers=auth_headers(instructor)).status_code == 404


class TestUpdateGrade(object):
    """Tests for POST /grades/{course_id}/{student_id}/{column_id}."""

    def test_grade_then_regrade(
        self,
        client: TestClient,
        auth_headers: AuthHeaders,
        test_course: Course,
        instructor: User,
        student: User,
        column_factory: t.Callable[..., GradeColumn],
    ) -> None:
        column = column_factory(points=100)
        url = f"/grades/{test_course.course_id}/{student.user_id}/{column.column_id}"
        history_url = f"/grades/history/{test_course.course_id}/{student.user_id}"

        first = client.post(url, json={"grade": 85}, headers=auth_headers(instructor))
        assert first.status_code == 200
        assert first.json()["percentage"] == 85.0
        assert first.json()["letter_grade"] == "B"
        assert client.get(history_url, headers=auth_headers(instructor)).json()["total"] == 0

        second = client.post(url, json={"grade": 90}, headers=auth_headers(instructor))
        assert second.status_code == 200
        assert second.json()["percentage"] == 90.0
        assert second.json()["letter_grade"] == "A-"

        history = client.get(history_url, headers=auth_headers(instructor)).json()
        assert history["total"] == 1
        assert history["history"][0]["old_grade"] == 85
        assert history["history"][0]["new_grade"] == 90

    def test_student_sees_own_grades_and_history(
        self,
        client: TestClient,
        auth_headers: AuthHeaders,
        test_course: Course,
        instructor: User,
        student: User,
        column_factory: t.Callable[..., GradeColumn],
    ) -> None:
        column = column_factory(points=50)
        client.post(
            f"/grades/{test_course.course_id}/{student.user_id}/{column.column_id}",
            json={"grade": 40},
            headers=auth_headers(instructor),
        )

        mine = client.get(f"/grades/my-grades/{test_course.course_id}", headers=auth_headers(student))
        assert mine.status_code == 200
        assert mine.json()["overall_percentage"] == 80.0
        assert mine.json()["overall_letter_grade"] == "B-"

        own = client.get(f"/grades/history/{test_course.course_id}/{student.user_id}", headers=auth_headers(student))
        assert own.status_code == 200

    def test_no_grades_yet(
        self, client: TestClient, auth_headers: AuthHeaders, test_course: Course, student: User
    ) -> None:
        mine = client.get(f"/grades/my-grades/{test_course.course_id}", headers=auth_headers(student))

        assert mine.status_code == 200
        assert mine.json() is None

    def test_other_students_history_forbidden(
        self,
        client: TestClient,
        auth_headers: AuthHeaders,
        test_course: Course,
        student: User,
        user_factory: t.Callable[..., User],
    ) -> None:
        other = user_factory()
        response = client.get(
            f"/grades/history/{test_course.course_id}/{other.user_id}", headers=auth_headers(student)
        )

        assert response.status_code == 403
        assert response.json() == {"error": "Not authorized to view grade history"}

    def test_negative_grade(
        self,
        client: TestClient,
        auth_headers: AuthHeaders,
        test_course: Course,
        instructor: User,
        student: User,
        column_factory: t.Callable[..., GradeColumn],
    ) -> None:
        column = column_factory()
        response = client.post(
            f"/grades/{test_course.course_id}/{student.user_id}/{column.column_id}",
            json={"grade": -5},
            headers=auth_headers(instructor),
        )

        assert response.status_code == 400
        assert "error" in response.json()

    def test_missing_column(
        self,
        client: TestClient,
        auth_headers: AuthHeaders,
        test_course: Course,
        instructor: User,
        student: User,
    ) -> None:
        response = client.post(
            f"/grades/{test_course.course_id}/{student.user_id}/{GradeColumnID()}",
            json={"grade": 5},
            headers=auth_headers(instructor),
        )

        assert response.status_code == 404
        assert response.json() == {"error": "Grade column not found"}

    def test_students_cannot_grade(
        self,
        client: TestClient,
        auth_headers: AuthHeaders,
        test_course: Course,
        student: User,
        column_factory: t.Callable[..., GradeColumn],
    ) -> None:
        column = column_factory()
        response = client.post(
            f"/grades/{test_course.course_id}/{student.user_id}/{column.column_id}",
            json={"grade": 100},
            headers=auth_headers(student),
        )

        assert response.status_code == 403


class TestGradeCenter(object):
    def test_center_statistics_and_export(
        self,
        client: TestClient,
        auth_headers: AuthHeaders,
        test_course: Course,
        instructor: User,
        user_factory: t.Callable[..., User],
        column_factory: t.Callable[..., GradeColumn],
    ) -> None:
        column = column_factory(name="Essay", points=100)
        for name, grade in (("Bea", 60), ("Cal", 70), ("Dee", 80), ("Eve", 90)):
            learner = user_factory(name=name, email=f"{name.lower()}@example.com")
            client.post(
                f"/grades/{test_course.course_id}/{learner.user_id}/{column.column_id}",
                json={"grade": grade},
                headers=auth_headers(instructor),
            )

        center = client.get(f"/grades/grade-center/{test_course.course_id}", headers=auth_headers(instructor))
        assert center.status_code == 200
        assert [s["student_name"] for s in center.json()["students"]] == ["Bea", "Cal", "Dee", "Eve"]

        stats = client.get(
            f"/grades/statistics/{test_course.course_id}/{column.column_id}", headers=auth_headers(instructor)
        )
        assert stats.status_code == 200
        assert stats.json()["median"] == 80
        assert stats.json()["total_graded"] == 4

        export = client.get(f"/grades/export/{test_course.course_id}", headers=auth_headers(instructor))
        assert export.status_code == 200
        assert export.headers["content-type"].startswith("text/csv")
        assert f'filename="grades-{test_course.course_id}.csv"' in export.headers["content-disposition"]
        assert export.text.splitlines()[0] == "Student Name,Student Email,Essay,Overall %,Overall Grade"
        assert export.text.splitlines()[1] == '"Bea",bea@example.com,60,60.00,D-'

    def test_export_with_token_query(
        self, client: TestClient, test_course: Course, instructor: User, utcnow: t.Any
    ) -> None:
        """Download links carry the token as a query parameter."""
        response = client.get(
            f"/grades/export/{test_course.course_id}", params={"token": create_auth_token(instructor, utcnow)}
        )

        assert response.status_code == 200
        assert response.text == "Student Name,Student Email,Overall %,Overall Grade\n"

    def test_statistics_without_grades(
        self,
        client: TestClient,
        auth_headers: AuthHeaders,
        test_course: Course,
        instructor: User,
        column_factory: t.Callable[..., GradeColumn],
    ) -> None:
        column = column_factory()
        response = client.get(
            f"/grades/statistics/{test_course.course_id}/{column.column_id}", headers=auth_headers(instructor)
        )

        assert response.status_code == 404
        assert response.json() == {"error": "No data available for statistics"}

    def test_students_cannot_see_center(
        self, client: TestClient, auth_headers: AuthHeaders, test_course: Course, student: User
    ) -> None:
        response = client.get(f"/grades/grade-center/{test_course.course_id}", headers=auth_headers(student))
        assert response.status_code == 403
