"""Pytest fixtures and configuration for cloud-ready-web tests."""

import os

# Keep the app's module-level engine off the developer database.
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from cloudready.auth.jwt import create_access_token
from cloudready.database.database import Base, get_db
from cloudready.database import models  # noqa: F401
from cloudready.database.user_repository import UserRepository
from cloudready.models.user import Role, UserDraft
from cloudready.services.cache import UserCache, get_user_cache
from cloudready.services.user_service import UserService


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
        engine.dispose()


@pytest.fixture(autouse=True)
def clear_user_cache():
    """The process-wide user cache must not leak entries between tests."""
    get_user_cache().clear()
    yield
    get_user_cache().clear()


@pytest.fixture
def user_repository(db_session: Session):
    """Create a UserRepository instance for testing."""
    return UserRepository(db_session)


@pytest.fixture
def user_cache():
    return UserCache(ttl_seconds=600)


@pytest.fixture
def user_service(user_repository, user_cache):
    """Create a UserService with its own cache."""
    return UserService(user_repository, user_cache)


@pytest.fixture
def make_draft():
    """Factory for valid UserDraft objects; keyword overrides win."""
    def _make(**overrides):
        data = {
            "username": "johndoe",
            "email": "john.doe@example.com",
            "first_name": "John",
            "last_name": "Doe",
        }
        data.update(overrides)
        return UserDraft(**data)
    return _make


@pytest.fixture
def user_payload():
    """Wire body for creating a user."""
    return {
        "username": "johndoe",
        "email": "john.doe@example.com",
        "firstName": "John",
        "lastName": "Doe",
    }


def bearer(username: str, *roles: str) -> dict:
    """Authorization header for a token issued to *username* with *roles*."""
    return {"Authorization": f"Bearer {create_access_token(username, roles)}"}


@pytest.fixture
def admin_headers():
    return bearer("admin", Role.ADMIN.value)


@pytest.fixture
def alice_headers():
    return bearer("alice", Role.USER.value)


@pytest.fixture
def test_client(db_session: Session):
    """Create a FastAPI test client with overridden database dependency."""
    from cloudready.api.app import app

    # Override the get_db dependency to use our test database session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()


@pytest.fixture
def alice_and_bob(user_service, make_draft):
    """Two regular users persisted through the service."""
    alice = user_service.create(make_draft(username="alice", email="alice@example.com", first_name="Alice"))
    bob = user_service.create(make_draft(username="bob", email="bob@example.com", first_name="Bob"))
    return alice, bob


@pytest.fixture
def auth_headers():
    """Factory: `auth_headers("bob", "USER")` -> Authorization header dict."""
    return bearer
