"""
Test configuration and fixtures for EventHub.
"""

import os
from datetime import date, timedelta
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app
os.environ.pop("ZERO_TOKEN", None)
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-super-secret-jwt-key-for-testing-only"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["JWT_EXPIRY_DAYS"] = "7"
os.environ["CACHE_ENABLED"] = "false"
os.environ["ENABLE_DISTRIBUTED_LOCKS"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from eventhub.main import app
from eventhub.models import Base
from eventhub.db.database import AttendeeRepository, CategoryRepository, EventRepository, UserRepository
from eventhub.db.redis_client import LockProvider
from eventhub.schemas.event import EventCreate
from eventhub.services.attendance_service import AttendanceLedger
from eventhub.services.category_service import CategoryRegistry
from eventhub.services.event_service import EventCatalog
from eventhub.services.jwt_service import JWTService
from eventhub.services.password_manager import PasswordManager
from eventhub.services.user_service import UserService

TEST_DATABASE_URL = "sqlite://"


@pytest.fixture(scope="function")
def test_db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def test_db_session(test_db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_db_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user_repo(test_db_session) -> UserRepository:
    return UserRepository(test_db_session)


@pytest.fixture
def category_repo(test_db_session) -> CategoryRepository:
    return CategoryRepository(test_db_session)


@pytest.fixture
def event_repo(test_db_session) -> EventRepository:
    return EventRepository(test_db_session)


@pytest.fixture
def attendee_repo(test_db_session) -> AttendeeRepository:
    return AttendeeRepository(test_db_session)


@pytest.fixture
def categories(category_repo):
    """Seed the default categories and return them keyed by slug."""
    CategoryRegistry(category_repo).seed_defaults()
    return {category.slug: category for category in category_repo.get_all()}


@pytest.fixture
def make_user(user_repo):
    """Factory creating users directly through the repository."""
    counter = {"n": 0}

    def _make_user(username=None, **overrides):
        counter["n"] += 1
        username = username or f"member{counter['n']}"
        data = {
            "username": username,
            "email": f"{username}@example.com",
            "hashed_password": "not-a-real-hash",
            "name": username.title(),
        }
        data.update(overrides)
        return user_repo.create(**data)

    return _make_user


@pytest.fixture
def organizer(make_user):
    return make_user("organizer")


@pytest.fixture
def catalog(event_repo, category_repo, user_repo, attendee_repo) -> EventCatalog:
    return EventCatalog(event_repo, category_repo, user_repo, attendee_repo)


@pytest.fixture
def make_event(catalog, categories, organizer):
    """Factory creating events through the catalog."""

    def _make_event(organizer_id=None, category="music", **overrides):
        data = {
            "title": "Jazz Night",
            "description": "Live jazz in the park",
            "event_date": date.today() + timedelta(days=10),
            "event_time": "19:30",
            "location": "Central Park",
            "category_id": categories[category].id,
            "max_attendees": None,
        }
        data.update(overrides)
        return catalog.create_event(EventCreate(**data), organizer_id or organizer.id)

    return _make_event


@pytest.fixture
def ledger(test_db_session, event_repo, attendee_repo, user_repo) -> AttendanceLedger:
    return AttendanceLedger(test_db_session, event_repo, attendee_repo, user_repo, LockProvider())


@pytest.fixture(scope="function")
def password_manager() -> PasswordManager:
    """Create a password manager for testing."""
    return PasswordManager()


@pytest.fixture(scope="function")
def user_service(password_manager) -> UserService:
    return UserService(password_manager)


@pytest.fixture(scope="function")
def jwt_service() -> JWTService:
    """Create a configured JWT service for testing."""
    service = JWTService()
    service.secret_key = "test-secret-key-for-testing-only"
    service.algorithm = "HS256"
    service.access_token_expire_days = 7
    service._initialized = True
    return service


@pytest.fixture
def test_user_data():
    """Registration payload for a test user."""
    return {
        "username": "testuser",
        "email": "test@example.com",
        "name": "Test User",
        "password": "testpassword123",
        "location": "Springfield",
    }


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Test client running the application lifespan against a fresh database."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register_user(client):
    """Register through the API and return (user, auth headers)."""

    def _register(username="testuser", password="testpassword123", **extra):
        payload = {
            "username": username,
            "email": f"{username}@example.com",
            "name": username.title(),
            "password": password,
        }
        payload.update(extra)
        response = client.post("/api/v1/auth/register", json=payload)
        assert response.status_code == 201, response.text
        body = response.json()
        return body["user"], {"Authorization": f"Bearer {body['access_token']}"}

    return _register


@pytest.fixture
def event_payload(client):
    """Valid event creation payload in the Music category."""
    categories = client.get("/api/v1/categories").json()
    music = next(category for category in categories if category["slug"] == "music")
    return {
        "title": "Jazz Night",
        "description": "Live jazz in the park",
        "event_date": (date.today() + timedelta(days=10)).isoformat(),
        "event_time": "19:30",
        "location": "Central Park",
        "category_id": music["id"],
        "max_attendees": 2,
    }
