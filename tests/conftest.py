"""
Shared pytest fixtures for the Task Manager test suite.

This module contains fixtures that are shared across all test modules.
Fixtures follow the Arrange-Act-Assert (AAA) pattern and ensure
test isolation by providing fresh data for each test.

Key Concepts Demonstrated:
- Fixture scopes (function, module, session)
- Fixture dependencies
- Test data factories
- Database setup/teardown
- Test client creation
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from faker import Faker
from sqlalchemy.exc import OperationalError

# Set testing environment before importing app
os.environ["FLASK_ENV"] = "testing"

from task_manager import create_app, db
from task_manager.models import Task, TaskPriority, TaskStatus, utcnow
from task_manager.repository import TaskRepository
from task_manager.service import TaskService


# Initialize Faker for generating test data
fake = Faker()


# -----------------------------------------------------------------------------
# Application Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture(scope="session")
def app():
    """
    Create application instance for the test session.

    The 'session' scope means the same app instance is reused
    for all tests, improving performance.

    Yields:
        Flask application instance configured for testing.
    """
    application = create_app("testing")
    yield application
    application.extensions["request_timeout"].shutdown()


@pytest.fixture(scope="function")
def client(app):
    """
    Create a test client for making HTTP requests.

    Yields:
        Flask test client for making HTTP requests.
    """
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture(scope="function")
def db_session(app):
    """
    Create a fresh database for each test.

    Creates all tables before the test, yields the db instance, then
    rolls back anything uncommitted and drops all tables.

    Yields:
        Flask-SQLAlchemy extension bound to the test database.
    """
    with app.app_context():
        db.create_all()
        yield db
        db.session.rollback()
        db.drop_all()


@pytest.fixture
def repository(db_session) -> TaskRepository:
    """Repository bound to the test database session."""
    return TaskRepository(db_session.session)


@pytest.fixture
def service(repository) -> TaskService:
    """Service with the status-transition guard disabled (the default)."""
    return TaskService(repository)


# -----------------------------------------------------------------------------
# Test Data Factory Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def task_factory(db_session):
    """
    Factory fixture for creating Task rows directly in the database.

    Example:
        def test_something(task_factory):
            task = task_factory(title="My Task")
            assert task.id is not None
    """

    def _create_task(
        title: str | None = None,
        description: str | None = None,
        status: TaskStatus = TaskStatus.PENDING,
        priority: TaskPriority | None = None,
        due_date: datetime | None = None
    ) -> Task:
        now = utcnow()
        task = Task(
            title=title or fake.sentence(nb_words=4),
            description=description or fake.paragraph(),
            status=status,
            priority=priority,
            due_date=due_date,
            created_at=now,
            updated_at=now,
        )
        db_session.session.add(task)
        db_session.session.commit()
        return task

    return _create_task


@pytest.fixture
def sample_task(task_factory) -> Task:
    """A single PENDING task with a MEDIUM priority."""
    return task_factory(
        title="Sample Task",
        description="This is a sample task for testing",
        status=TaskStatus.PENDING,
        priority=TaskPriority.MEDIUM
    )


@pytest.fixture
def multiple_tasks(task_factory) -> list[Task]:
    """
    Create multiple tasks with different statuses and priorities.

    Returns:
        List of Task instances in insertion order.
    """
    return [
        task_factory(
            title="High Priority Pending",
            status=TaskStatus.PENDING,
            priority=TaskPriority.HIGH,
            due_date=datetime.now(timezone.utc) + timedelta(days=7)
        ),
        task_factory(
            title="Medium Priority In Progress",
            status=TaskStatus.IN_PROGRESS,
            priority=TaskPriority.MEDIUM
        ),
        task_factory(
            title="Low Priority Completed",
            status=TaskStatus.COMPLETED,
            priority=TaskPriority.LOW
        ),
        task_factory(
            title="Unprioritised Pending",
            status=TaskStatus.PENDING,
            due_date=datetime.now(timezone.utc) + timedelta(days=1)
        ),
        task_factory(
            title="Cancelled Errand",
            status=TaskStatus.CANCELLED,
            priority=TaskPriority.HIGH
        ),
    ]


# -----------------------------------------------------------------------------
# Test Data Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def valid_task_data() -> dict[str, Any]:
    """Provide valid task data for POST requests."""
    return {
        "title": "Test Task",
        "description": "This is a test task description",
        "status": TaskStatus.PENDING.value,
        "priority": TaskPriority.MEDIUM.value,
        "due_date": (datetime.now(timezone.utc) + timedelta(days=7)).isoformat()
    }


@pytest.fixture
def minimal_task_data() -> dict[str, str]:
    """Provide minimal valid task data (only required fields)."""
    return {"title": "Minimal Task"}


@pytest.fixture
def api_headers() -> dict[str, str]:
    """Provide common headers for API requests."""
    return {
        "Content-Type": "application/json",
        "Accept": "application/json"
    }


# -----------------------------------------------------------------------------
# Failure Simulation
# -----------------------------------------------------------------------------

class BrokenSession:
    """
    Stand-in for a SQLAlchemy session whose database is unreachable.

    Every call that would hit the database raises ``OperationalError``;
    ``rollback`` calls are counted so tests can check cleanup happened.
    """

    def __init__(self):
        self.rollbacks = 0

    @staticmethod
    def _fail(*_args, **_kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is unreachable"))

    add = staticmethod(lambda *_args, **_kwargs: None)
    commit = _fail
    get = _fail
    scalars = _fail
    scalar = _fail
    execute = _fail

    def rollback(self):
        self.rollbacks += 1


@pytest.fixture
def broken_session() -> BrokenSession:
    return BrokenSession()
