"""Pytest fixtures — file-backed SQLite database recreated for every test."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from studygroup.database import Base, get_db
from studygroup.main import app

# Import all models so they register with Base.metadata
from studygroup.models.user import User, AllowedEmail                 # noqa: F401
from studygroup.models.group import Group, Membership                 # noqa: F401
from studygroup.models.membership_request import MembershipRequest    # noqa: F401
from studygroup.models.notice import Notice                           # noqa: F401
from studygroup.models.activity_log import ActivityLog                # noqa: F401

SQLITE_URL = "sqlite:///./test.db"
DEFAULT_PASSWORD = "correct-horse-42"


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session for direct assertions and setup."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_engine):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def email_for(name: str) -> str:
    return f"{name.lower().replace(' ', '.')}@studyhub.io"


def whitelist(db, *emails: str) -> None:
    """Put addresses on the registration whitelist."""
    for email in emails:
        db.add(AllowedEmail(email=email.lower()))
    db.commit()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register_user(client: TestClient, db, name: str = "Test User", email: str = None) -> dict:
    """Whitelist, register and log in; returns the user JSON plus auth headers."""
    email = email or email_for(name)
    whitelist(db, email)
    resp = client.post("/api/auth/register", json={
        "email": email,
        "password": DEFAULT_PASSWORD,
        "display_name": name,
    })
    assert resp.status_code == 201, resp.text
    user = resp.json()

    login = client.post("/api/auth/login", json={"email": email, "password": DEFAULT_PASSWORD})
    assert login.status_code == 200, login.text
    user["headers"] = auth_headers(login.json()["access_token"])
    return user


def create_test_group(
    client: TestClient,
    leader: dict,
    name: str = "Test Group",
    max_members: int = 4,
    purpose: str = "LEARNING",
) -> dict:
    """Helper — POST /api/groups as ``leader`` and return response JSON."""
    resp = client.post("/api/groups/", headers=leader["headers"], json={
        "name": name,
        "purpose": purpose,
        "max_members": max_members,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def send_request(client: TestClient, user: dict, group_id: str, message: str = "I'd like to join!"):
    return client.post(f"/api/groups/{group_id}/requests", headers=user["headers"], json={"message": message})


def respond(client: TestClient, leader: dict, group_id: str, request_id: str, action: str = "approve", message=None):
    return client.post(
        f"/api/groups/{group_id}/requests/{request_id}/respond",
        headers=leader["headers"],
        json={"action": action, "response_message": message},
    )


def join_group(client: TestClient, leader: dict, user: dict, group_id: str) -> dict:
    """Send a join request as ``user`` and approve it as ``leader``."""
    resp = send_request(client, user, group_id)
    assert resp.status_code == 201, resp.text
    decided = respond(client, leader, group_id, resp.json()["request_id"])
    assert decided.status_code == 200, decided.text
    return decided.json()


def error_code(resp) -> str:
    return resp.json()["detail"]["code"]
