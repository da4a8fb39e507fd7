"""Pytest configuration and global fixtures for VisionDesk tests.

This file provides an in-memory database, a configured application and
helpers to create users and authenticate as them.
"""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from pydantic import SecretStr

from visiondesk.api.server import create_app
from visiondesk.c1_database_session import DatabaseManager, generate_id
from visiondesk.c1_project_models.project import Project, ProjectTeamMember
from visiondesk.c1_task_models.task import Task
from visiondesk.c1_user_models.user import User
from visiondesk.c2_auth_service.passwords import hash_password
from visiondesk.c2_auth_service.tokens import create_access_token
from visiondesk.core import config as config_module
from visiondesk.core.config import AuthConfig, DatabaseConfig, Settings

TEST_PASSWORD = "Password123!"


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Keep bcrypt cheap and the global settings isolated for every test."""
    monkeypatch.setenv("AUTH_BCRYPT_ROUNDS", "4")
    config_module.settings = None
    yield
    config_module.settings = None


@pytest.fixture
def settings():
    """Settings for an in-memory test deployment."""
    return Settings(
        environment="test",
        database=DatabaseConfig(url="sqlite:///:memory:"),
        auth=AuthConfig(
            jwt_secret=SecretStr("test-access-secret"),
            jwt_refresh_secret=SecretStr("test-refresh-secret"),
            bcrypt_rounds=4,
        ),
    )


@pytest.fixture
def db_manager(settings):
    """In-memory database shared by the app and the test session."""
    manager = DatabaseManager(settings.database.url)
    manager.create_tables()
    yield manager
    manager.engine.dispose()


@pytest.fixture
def db(db_manager):
    """Database session for arranging and inspecting state."""
    session = db_manager.get_session()
    yield session
    session.close()


@pytest.fixture
def app(settings, db_manager):
    return create_app(settings, db_manager)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def make_user(db):
    """Factory creating committed users."""
    counter = {"n": 0}

    def _make_user(role="user", name=None, email=None, password=TEST_PASSWORD, is_active=True):
        counter["n"] += 1
        user = User(
            id=generate_id("user"),
            name=name or f"{role.title()} {counter['n']}",
            email=email or f"{role}{counter['n']}@example.com",
            password_hash=hash_password(password, rounds=4),
            role=role,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def make_project(db):
    """Factory creating committed projects with an optional team."""

    def _make_project(creator, members=(), title="Vision Platform", status="active", **fields):
        project = Project(
            id=generate_id("project"),
            title=title,
            description="A project used in tests",
            status=status,
            priority=fields.pop("priority", "medium"),
            created_by=creator.id,
            progress=fields.pop("progress", 0),
            **fields,
        )
        for member in members:
            user, role = member if isinstance(member, tuple) else (member, "developer")
            project.team_members.append(ProjectTeamMember(id=generate_id("member"), user_id=user.id, role=role))
        db.add(project)
        db.commit()
        return project

    return _make_project


@pytest.fixture
def make_task(db):
    """Factory creating committed tasks."""

    def _make_task(project, assignee, creator=None, status="open", **fields):
        task = Task(
            id=generate_id("task"),
            title=fields.pop("title", "Implement login"),
            description=fields.pop("description", "Build the login form"),
            project_id=project.id,
            assigned_to=assignee.id,
            created_by=(creator or assignee).id,
            status=status,
            priority=fields.pop("priority", "medium"),
            due_date=fields.pop("due_date", datetime.utcnow() + timedelta(days=7)),
            actual_hours=fields.pop("actual_hours", 0.0),
            **fields,
        )
        db.add(task)
        db.commit()
        return task

    return _make_task


@pytest.fixture
def auth_headers(settings):
    """Build an Authorization header for a user."""

    def _auth_headers(user):
        token = create_access_token(
            {"sub": user.id, "email": user.email, "role": user.role},
            config=settings.auth,
        )
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
