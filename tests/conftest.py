"""Pytest fixtures for gradebook tests.

The container is booted once per session in the test environment, which
points storage at an in-memory SQLite database. Each test gets freshly
created tables, dropped again when it finishes.

Usage:
    def test_list_columns(client: TestClient, test_course: Course, instructor: User):
        response = client.get(f"/grades/columns/{test_course.course_id}", headers=auth_headers(instructor))
        assert response.status_code == 200
"""

from __future__ import annotations

import datetime
import os
import typing as t
from pathlib import Path

import jwt
import pydantic as p
import pytest
import shortuuid
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import gradebook
from gradebook.core import GradebookContainer, TimestampProvider
from gradebook.model import Course, DeploymentEnvironment, GradeColumn, GradeColumnType, Quiz, User, UserRole
from gradebook.storage import column as column_storage
from gradebook.storage import course as course_storage
from gradebook.storage import quiz as quiz_storage
from gradebook.storage import user as user_storage
from gradebook.storage.table import metadata

TEST_JWT_SECRET = "test-jwt-secret-for-integration-tests"
TEST_JWT_ALGORITHM = "HS256"


@pytest.fixture(scope="session")
def container() -> t.Generator[GradebookContainer]:
    """Boot the DI container for the test session.

    Uses the Test environment, whose storage config selects an in-memory
    SQLite database held on a single shared connection.
    """
    ct = GradebookContainer()
    root = Path(os.path.dirname(gradebook.__file__)).parent

    GradebookContainer.boot(
        ct,
        debug=True,
        env=DeploymentEnvironment.Test,
        config_root=p.FileUrl(f"file://{root}/config"),
        override=(),
    )

    yield ct

    ct.shutdown_resources()


@pytest.fixture(scope="session")
def app(container: GradebookContainer) -> FastAPI:
    """Create the FastAPI application for testing.

    The test environment ships no vault file, so the token secret is
    supplied here.
    """
    from gradebook.core.config.web import GradebookWebSettings
    from gradebook.web.gradebook.main import _create_app  # pyright: ignore[reportPrivateUsage]

    container.secrets.override({"auth": {"jwt": p.Secret(TEST_JWT_SECRET)}})
    container.config.web.gradebook.auth.jwt_algorithm.override(TEST_JWT_ALGORITHM)

    container.wire(
        modules=[
            "gradebook.web.gradebook.main",
            "gradebook.web.gradebook.route.grade",
            "gradebook.web.gradebook.route.quiz",
            "gradebook.auth.middleware",
            "gradebook.auth.policy",
        ]
    )

    return _create_app(
        config=GradebookWebSettings(**container.config.web.gradebook()),
        env=DeploymentEnvironment.Test,
    )


@pytest.fixture
def db_session(container: GradebookContainer) -> t.Generator[Session]:
    """Provide a database session over freshly created tables.

    autobegin=False matches production, so callers open their own
    transactions with ``session.begin()``.
    """
    engine = container.storage().persistent().engine()
    metadata.create_all(engine)

    session = Session(bind=engine, autobegin=False, expire_on_commit=False)

    yield session

    session.close()
    metadata.drop_all(engine)


@pytest.fixture
def client(app: FastAPI, container: GradebookContainer, db_session: Session) -> t.Generator[TestClient]:
    """Provide a TestClient whose requests share the test's session."""
    container.storage().persistent().session.override(db_session)

    with TestClient(app) as test_client:
        yield test_client

    container.storage().persistent().session.reset_override()


@pytest.fixture
def utcnow() -> TimestampProvider:
    """Provide a timestamp provider for tests."""
    return lambda: datetime.datetime.now(datetime.UTC)


# Factories


@pytest.fixture
def user_factory(db_session: Session) -> t.Callable[..., User]:
    """Factory fixture for creating users.

    Usage:
        def test_something(user_factory):
            ta = user_factory(name="Teaching Assistant", role=UserRole.Instructor)
    """

    def create_user(
        name: str = "Test User",
        email: str | None = None,
        role: UserRole = UserRole.Student,
    ) -> User:
        if email is None:
            email = f"user-{shortuuid.uuid()[:8].lower()}@example.com"
        with db_session.begin():
            return user_storage.create(email=email, name=name, role=role, session=db_session)

    return create_user


@pytest.fixture
def instructor(user_factory: t.Callable[..., User]) -> User:
    return user_factory(name="Ada Instructor", email="instructor@example.com", role=UserRole.Instructor)


@pytest.fixture
def student(user_factory: t.Callable[..., User]) -> User:
    return user_factory(name="Sam Student", email="student@example.com", role=UserRole.Student)


@pytest.fixture
def admin(user_factory: t.Callable[..., User]) -> User:
    return user_factory(name="Root Admin", email="admin@example.com", role=UserRole.Admin)


@pytest.fixture
def course_factory(db_session: Session) -> t.Callable[..., Course]:
    def create_course(instructor_id: t.Any, title: str = "Introduction to Testing") -> Course:
        with db_session.begin():
            return course_storage.create(title=title, instructor_id=instructor_id, session=db_session)

    return create_course


@pytest.fixture
def test_course(course_factory: t.Callable[..., Course], instructor: User) -> Course:
    """A course taught by ``instructor``."""
    return course_factory(instructor.user_id)


@pytest.fixture
def column_factory(db_session: Session, test_course: Course, instructor: User) -> t.Callable[..., GradeColumn]:
    """Factory fixture for grade columns in ``test_course``."""

    def create_column(
        name: str = "Homework 1",
        points: int = 100,
        type: GradeColumnType = GradeColumnType.Assignment,
        include_in_calculations: bool = True,
    ) -> GradeColumn:
        with db_session.begin():
            return column_storage.create(
                course_id=test_course.course_id,
                name=name,
                type=type,
                points=points,
                created_by=instructor.user_id,
                include_in_calculations=include_in_calculations,
                session=db_session,
            )

    return create_column


def sample_questions() -> list[dict[str, t.Any]]:
    """One question of each type worth 10 points apiece."""
    return [
        {
            "type": "multiple_choice",
            "question_text": "2+2?",
            "points": 10,
            "options": ["3", "4"],
            "correct_option_index": 1,
        },
        {
            "type": "true_false",
            "question_text": "Sky is green",
            "points": 10,
            "correct_answer": False,
        },
        {
            "type": "short_answer",
            "question_text": "Capital of France",
            "points": 10,
            "correct_answers": ["Paris"],
            "case_sensitive": False,
        },
    ]


@pytest.fixture
def quiz_factory(
    db_session: Session, test_course: Course, instructor: User, utcnow: TimestampProvider
) -> t.Callable[..., Quiz]:
    """Factory fixture for quizzes in ``test_course``, open from an hour ago for a day."""
    from gradebook.grading import quiz as quiz_service
    from gradebook.model import QuizStatus

    def create_quiz(
        title: str = "Quiz 1",
        questions: list[dict[str, t.Any]] | None = None,
        status: QuizStatus = QuizStatus.Published,
        max_attempts: int = 1,
        passing_score: float | None = 70,
        show_correct_answers: bool = True,
        available_from: datetime.datetime | None = None,
        available_until: datetime.datetime | None = None,
    ) -> Quiz:
        now = utcnow()
        with db_session.begin():
            quiz = quiz_service.create_quiz(
                test_course.course_id,
                title=title,
                questions=sample_questions() if questions is None else questions,
                available_from=available_from or now - datetime.timedelta(hours=1),
                available_until=available_until or now + datetime.timedelta(days=1),
                created_by=instructor.user_id,
                max_attempts=max_attempts,
                passing_score=passing_score,
                show_correct_answers=show_correct_answers,
                session=db_session,
            )
            if status is not QuizStatus.Draft:
                quiz_storage.update(quiz.quiz_id, status=status, session=db_session)
            result = quiz_storage.get(quiz.quiz_id, session=db_session)
        assert result is not None
        return result

    return create_quiz


# Authentication


def create_auth_token(user: User, utcnow: TimestampProvider, expires_in: datetime.timedelta | None = None) -> str:
    """Create a JWT token for testing."""
    now = utcnow()
    payload = {
        "sub": str(user.user_id),
        "role": user.role.value,
        "exp": now + (expires_in if expires_in is not None else datetime.timedelta(hours=1)),
        "iat": now,
    }
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm=TEST_JWT_ALGORITHM)


@pytest.fixture
def auth_headers(app: FastAPI, utcnow: TimestampProvider) -> t.Callable[[User], dict[str, str]]:
    """Bearer headers for a user; depends on app so the token secret is in place."""

    def headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_auth_token(user, utcnow)}"}

    return headers
