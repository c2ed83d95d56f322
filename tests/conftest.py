"""Pytest fixtures and configuration for agencyops tests."""

import os

# Keep the app's module-level engine off disk; must run before agencyops is imported.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import uuid
from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from agencyops.database.database import Base
from agencyops.database.models import ClientDB, ProjectDB
from agencyops.database.notification_repository import NotificationRepository
from agencyops.database.planned_task_repository import PlannedTaskRepository, TaskStoreRepository
from agencyops.database.repository import TaskRepository
from agencyops.database.user_repository import UserRepository
from agencyops.database.timer_repository import TimerRepository
from agencyops.models.task import ClientRef, ProjectRef, ProjectStatus, Task, TaskPriority, TaskStatus
from agencyops.models.user import User, UserRole


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

PLAN_DATE = date(2024, 6, 10)
NOW = datetime(2024, 6, 10, 9, 0, 0)

TEST_USER_ID = "test-user-123"
TEAMMATE_ID = "teammate-456"
MANAGER_ID = "manager-789"
CLIENT_ID = "client-acme"
ACTIVE_PROJECT_ID = "project-active"
ON_HOLD_PROJECT_ID = "project-on-hold"


def _user(user_id: str, email: str, role: UserRole) -> User:
    now = datetime.utcnow()
    return User(id=user_id, email=email, name=email.split("@")[0], role=role, created_at=now, updated_at=now)


@pytest.fixture
def test_user() -> User:
    return _user(TEST_USER_ID, "test@example.com", UserRole.MEMBER)


@pytest.fixture
def teammate() -> User:
    return _user(TEAMMATE_ID, "teammate@example.com", UserRole.MEMBER)


@pytest.fixture
def manager_user() -> User:
    return _user(MANAGER_ID, "manager@example.com", UserRole.MANAGER)


@pytest.fixture(scope="function")
def db_session(test_user, teammate, manager_user):
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test,
    seeded with three users, one client and two projects (one active, one on hold).
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    users = UserRepository(session)
    for user in (test_user, teammate, manager_user):
        users.create_or_update(user)
    session.add(ClientDB(id=CLIENT_ID, name="Acme Co"))
    session.add(ProjectDB(id=ACTIVE_PROJECT_ID, client_id=CLIENT_ID, name="Website Relaunch", status=ProjectStatus.ACTIVE.value))
    session.add(ProjectDB(id=ON_HOLD_PROJECT_ID, client_id=CLIENT_ID, name="Brand Refresh", status=ProjectStatus.ON_HOLD.value))
    session.commit()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def task_repository(db_session: Session):
    return TaskRepository(db_session)


@pytest.fixture
def plan_repository(db_session: Session):
    return PlannedTaskRepository(db_session)


@pytest.fixture
def task_store(db_session: Session):
    return TaskStoreRepository(db_session)


@pytest.fixture
def timer_repository(db_session: Session):
    return TimerRepository(db_session)


@pytest.fixture
def notification_repository(db_session: Session):
    return NotificationRepository(db_session)


@pytest.fixture
def make_task():
    """Factory for Task objects with sensible defaults.

    Defaults: assigned to the test user, MEDIUM, TODO, in the active project.
    The joined project/client summaries let in-memory fakes filter like SQL does.
    Pass `created_at` explicitly when ordering matters.
    """
    def _make(**overrides) -> Task:
        data = {
            "id": str(uuid.uuid4()),
            "name": "Test Task",
            "status": TaskStatus.TODO,
            "priority": TaskPriority.MEDIUM,
            "due_date": None,
            "assignee_id": TEST_USER_ID,
            "project_id": ACTIVE_PROJECT_ID,
            "client_id": CLIENT_ID,
            "created_at": datetime(2024, 6, 1, 12, 0, 0),
            "project": ProjectRef(id=ACTIVE_PROJECT_ID, name="Website Relaunch", status=ProjectStatus.ACTIVE),
            "client": ClientRef(id=CLIENT_ID, name="Acme Co"),
        }
        data.update(overrides)
        return Task(**data)

    return _make


@pytest.fixture
def create_task(task_repository, make_task):
    """Persist a task built by `make_task` and return the stored copy."""
    def _create(**overrides) -> Task:
        return task_repository.create(make_task(**overrides))

    return _create


@pytest.fixture
def test_client(db_session: Session, test_user):
    """Create a FastAPI test client with overridden database dependency and authentication."""
    from agencyops.api.app import app
    from agencyops.database.database import get_db
    from agencyops.auth.dependencies import get_current_user

    # Override the get_db dependency to use our test database session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    # Override authentication to return test user
    def override_get_current_user():
        return test_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()


@pytest.fixture
def login_as():
    """Switch the authenticated user for subsequent test_client requests."""
    from agencyops.api.app import app
    from agencyops.auth.dependencies import get_current_user

    def _login(user: User) -> None:
        app.dependency_overrides[get_current_user] = lambda: user

    return _login
