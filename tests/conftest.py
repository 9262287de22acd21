"""Pytest fixtures and configuration for dayplanner tests."""

import os

# Keep the module-level engine off the developer's local database file.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
import uuid

from dayplanner.database.database import Base, get_db
from dayplanner.database import models  # noqa: F401  (registers tables on Base)
from dayplanner.database.repository import TaskRepository
from dayplanner.models.recurrence import RecurrenceRule
from dayplanner.models.task import Task, TaskStatus


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_session():
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def task_repository(db_session: Session):
    """Create a TaskRepository instance for testing."""
    return TaskRepository(db_session)


@pytest.fixture
def test_user_id():
    """Test user ID for multi-user testing."""
    return "test-user-123"


@pytest.fixture
def sample_task_base(test_user_id):
    """Base task data for creating test tasks.

    Returns a dict with default task attributes that can be overridden.
    """
    now = datetime.utcnow()
    return {
        "id": str(uuid.uuid4()),
        "user_id": test_user_id,
        "title": "Test Task",
        "notes": "Test notes",
        "weight": 2,
        "status": TaskStatus.BACKLOG,
        "scheduled_at": None,
        "due_date": None,
        "completed_at": None,
        "is_recurring": False,
        "recurrence": None,
        "parent_id": None,
        "created_at": now,
        "updated_at": now,
    }


@pytest.fixture
def sample_task(sample_task_base):
    """Create a sample Task object for testing."""
    return Task(**sample_task_base)


@pytest.fixture
def make_recurring_task(sample_task_base):
    """Factory for recurring tasks: make_recurring_task(rule_dict, anchor, **overrides)."""

    def _make(rule, anchor=datetime(2025, 1, 1, 9, 30), **overrides):
        recurrence = rule if isinstance(rule, RecurrenceRule) else RecurrenceRule.model_validate(rule)
        return Task(
            **{
                **sample_task_base,
                "id": str(uuid.uuid4()),
                "is_recurring": True,
                "recurrence": recurrence,
                "scheduled_at": anchor,
                **overrides,
            }
        )

    return _make


@pytest.fixture
def test_client(db_session: Session, test_user_id):
    """Create a FastAPI test client with overridden database dependency and authentication."""
    from dayplanner.api.app import app
    from dayplanner.auth.dependencies import get_current_user_id

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user_id] = lambda: test_user_id

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def unauthenticated_client(db_session: Session):
    """Test client with the real Bearer-token dependency in place."""
    from dayplanner.api.app import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
