"""Pytest fixtures and configuration for Resolution AI tests."""

import os

# Keep the app's module-level engine off the real database file.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from unittest.mock import MagicMock
import uuid

from resolutionai.database.database import Base
from resolutionai.database.repository import TaskRepository
from resolutionai.models.recurrence import RecurrenceConfig, RecurrenceFrequency
from resolutionai.models.task import Task, TaskStatus, Priority


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

# Fixed reference instant: every engine call gets `now` explicitly.
T0 = datetime(2026, 1, 5, 9, 0, 0)


@pytest.fixture(scope="function")
def db_session():
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    """
    from resolutionai.database import models  # noqa: F401

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
def test_owner_id():
    """Owner ID used for every test task."""
    return "test-user-123"


@pytest.fixture
def task_repository(db_session: Session, test_owner_id):
    """Create a TaskRepository instance for testing."""
    return TaskRepository(db_session, test_owner_id)


@pytest.fixture
def t0():
    return T0


@pytest.fixture
def sample_task_base(test_owner_id):
    """Base task data for creating test tasks.

    Returns a dict with default task attributes that can be overridden.
    """
    return {
        "id": str(uuid.uuid4()),
        "owner_id": test_owner_id,
        "title": "Test Task",
        "description": "Test description",
        "status": TaskStatus.TODO,
        "priority": Priority.MEDIUM,
        "due_date": T0,
        "created_at": T0,
        "updated_at": T0,
        "completion_percentage": 0,
        "parent_id": None,
        "sub_task_ids": [],
        "recurrence": None,
        "completion_history": None,
        "metadata": {},
    }


@pytest.fixture
def sample_task(sample_task_base):
    """Create a sample plain Task object for testing."""
    return Task(**sample_task_base)


@pytest.fixture
def daily_habit(sample_task_base):
    """Create a daily habit starting at T0, first cycle due at T0."""
    return Task(
        **{
            **sample_task_base,
            "title": "Meditate",
            "recurrence": RecurrenceConfig(frequency=RecurrenceFrequency.DAILY, interval=1, start_date=T0),
            "completion_history": [],
        }
    )


@pytest.fixture
def make_task(sample_task_base):
    """Factory for tasks with fresh ids."""
    def _make(**overrides) -> Task:
        return Task(**{**sample_task_base, "id": str(uuid.uuid4()), **overrides})
    return _make


@pytest.fixture
def mock_generator():
    """Task generator double; set return values per test."""
    return MagicMock()


@pytest.fixture
def test_client(db_session: Session, test_owner_id, mock_generator):
    """Create a FastAPI test client with overridden database, clock, owner and generator."""
    from resolutionai.api import app as app_module
    from resolutionai.database.database import get_db

    app = app_module.app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[app_module.get_now] = lambda: T0 + timedelta(hours=1)
    app.dependency_overrides[app_module.get_owner_id] = lambda: test_owner_id
    app.dependency_overrides[app_module.get_task_generator] = lambda: mock_generator
    app_module.notice_board.clear()

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()
