"""Root conftest: shared fixtures for all server tests."""

from __future__ import annotations

import os
import sys
from pathlib import Path

# Ensure server/ is on sys.path
_server_dir = str(Path(__file__).resolve().parent)
if _server_dir not in sys.path:
    sys.path.insert(0, _server_dir)

# Required secrets must exist before config is imported
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LLM_API_KEY", "sk-test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base
import models  # noqa: F401  register all models with Base

# Use in-memory SQLite for tests; StaticPool ensures all connections share the same DB
TEST_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(TEST_ENGINE, "connect")
def _enable_foreign_keys(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestSession = sessionmaker(bind=TEST_ENGINE, autoflush=False, expire_on_commit=False)


class StubCompletionClient:
    """Records prompts and answers with a fixed reply (or raises *error*)."""

    def __init__(self, reply: str = "hi there", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture(autouse=True)
def _setup_db():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=TEST_ENGINE)
    yield
    Base.metadata.drop_all(bind=TEST_ENGINE)


@pytest.fixture
def db():
    """Yield a test database session."""
    session = TestSession()
    try:
        yield session
    finally:
        session.close()


def _make_user(db, email: str, password: str = "testpass"):
    from models.user import User
    from services.accounts import hash_password

    user = User(email=email, name=email.split("@")[0], password_hash=hash_password(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def user(db):
    return _make_user(db, "alice@example.com")


@pytest.fixture
def other_user(db):
    return _make_user(db, "bob@example.com")


@pytest.fixture
def session_token(db, user):
    from config import settings
    from services.accounts import issue_session_token

    return issue_session_token(db, user, settings.SECRET_KEY, 3600)


@pytest.fixture
def other_session_token(db, other_user):
    from config import settings
    from services.accounts import issue_session_token

    return issue_session_token(db, other_user, settings.SECRET_KEY, 3600)


@pytest.fixture
def completion_client():
    return StubCompletionClient()


@pytest.fixture
def app(db, completion_client):
    """The FastAPI app with DB and completion client overridden."""
    from main import app as _app
    from api.generate import get_completion_client
    from database import get_db

    def _override_get_db():
        try:
            yield db
        finally:
            pass

    _app.dependency_overrides[get_db] = _override_get_db
    _app.dependency_overrides[get_completion_client] = lambda: completion_client
    yield _app
    _app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_client(client, session_token):
    client.headers["Authorization"] = f"Bearer {session_token}"
    return client


@pytest.fixture
def other_client(app, other_session_token):
    c = TestClient(app)
    c.headers["Authorization"] = f"Bearer {other_session_token}"
    return c


@pytest.fixture
def conversation(db, user):
    from services.conversations import create_conversation

    return create_conversation(db, user, "Trip")
