"""Pytest configuration and fixtures for resource search tests."""

from collections.abc import Callable, Generator
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from resource_search.api.deps import get_db
from resource_search.core.time import utcnow
from resource_search.main import app
from resource_search.models.base import Base
from resource_search.models.resource import Resource
from resource_search.models.user import User
from resource_search.services.auth import hash_password
from resource_search.services.result_cache import ResultCache
from resource_search.services.text_normalizer import normalize, normalize_optional

# Use SQLite in-memory for tests (fast, isolated)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def result_cache() -> ResultCache:
    """A fresh cache installed on the app for each test."""
    cache = ResultCache(ttl_seconds=300, capacity=1000)
    app.state.result_cache = cache
    return cache


@pytest.fixture(scope="function")
def client(db: Session, result_cache: ResultCache) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass  # Don't close the session here, let the db fixture handle it

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _make_user(db: Session, username: str, password: str, role: str, **kwargs) -> User:
    user = User(
        username=username,
        password_hash=hash_password(password),
        role=role,
        **kwargs,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _login(client: TestClient, username: str, password: str) -> dict[str, str]:
    response = client.post("/api/auth/login", data={"username": username, "password": password})
    assert response.status_code == 200, f"Login failed: {response.json()}"
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def test_user(db: Session) -> User:
    """A regular member who owns resources in most tests."""
    return _make_user(db, "testuser", "testpassword123", "member", display_name="Test User")


@pytest.fixture
def other_user(db: Session) -> User:
    """A second regular member with no special rights."""
    return _make_user(db, "otheruser", "otherpassword123", "member")


@pytest.fixture
def moderator_user(db: Session) -> User:
    return _make_user(db, "moduser", "modpassword123", "moderator")


@pytest.fixture
def admin_user(db: Session) -> User:
    return _make_user(db, "adminuser", "adminpassword123", "admin")


@pytest.fixture
def auth_headers(client: TestClient, test_user: User) -> dict[str, str]:
    return _login(client, "testuser", "testpassword123")


@pytest.fixture
def other_headers(client: TestClient, other_user: User) -> dict[str, str]:
    return _login(client, "otheruser", "otherpassword123")


@pytest.fixture
def moderator_headers(client: TestClient, moderator_user: User) -> dict[str, str]:
    return _login(client, "moduser", "modpassword123")


@pytest.fixture
def admin_headers(client: TestClient, admin_user: User) -> dict[str, str]:
    return _login(client, "adminuser", "adminpassword123")


@pytest.fixture
def make_resource(db: Session, test_user: User) -> Callable[..., Resource]:
    """Factory inserting resources directly, with strictly increasing created_at."""
    base = utcnow() - timedelta(days=1)
    counter = {"n": 0}

    def _make(
        title: str,
        description: str | None = None,
        type: str = "link",
        is_visible: bool = True,
        owner: User | None = None,
        created_at: datetime | None = None,
        url: str = "https://example.com/resource",
    ) -> Resource:
        counter["n"] += 1
        resource = Resource(
            title=title,
            description=description,
            url=url,
            type=type,
            owner_id=(owner or test_user).id,
            is_visible=is_visible,
            star_count=0,
            created_at=created_at or base + timedelta(minutes=counter["n"]),
            normalized_title=normalize(title),
            normalized_description=normalize_optional(description),
        )
        db.add(resource)
        db.commit()
        db.refresh(resource)
        return resource

    return _make
