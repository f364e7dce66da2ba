"""
Shared fixtures for the TaskFlow test-suite.

Every test gets a fresh in-memory SQLite database wired into the app through
a ``get_db`` override, and a TestClient with an empty cookie jar.
"""

import os

# must be set before settings are first read
os.environ["TASKFLOW_DATABASE_URL"] = "sqlite://"
os.environ["TASKFLOW_JWT_SECRET"] = "test-secret"
os.environ["TASKFLOW_BCRYPT_ROUNDS"] = "4"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import app
from database import Base, get_db


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    """A session on the same database the app is using."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(client):
    """Sign a user up and return the API payload (id, name, email, token)."""

    def _make(name="Ada Lovelace", email="ada@example.com", password="secret123"):
        res = client.post("/api/auth/signup", json={"name": name, "email": email, "password": password})
        assert res.status_code == 200, res.text
        return res.json()

    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def auth(user):
    return {"Authorization": f"Bearer {user['token']}"}


@pytest.fixture
def make_task(client, auth):
    def _make(headers=None, **fields):
        body = {"title": "Write report"}
        body.update(fields)
        res = client.post("/api/tasks", json=body, headers=headers or auth)
        assert res.status_code == 200, res.text
        return res.json()

    return _make
