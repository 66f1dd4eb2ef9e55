"""
Pytest configuration.

The environment is set before the application is imported so the engine is
bound to a private in-memory SQLite database.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "edutrack-test-secret-0123456789abcdef"
os.environ["EDUTRACK_PUSH_MODE"] = "log"
os.environ["EDUTRACK_STRICT_SCOPING"] = "0"

import pytest
from fastapi.testclient import TestClient

from edutrack.database import Base, SessionLocal, engine
from edutrack.main import app
from edutrack.utils import auth as auth_utils

# cheapest bcrypt cost, hashing dominates the suite otherwise
auth_utils.pwd_context.update(bcrypt__rounds=4)

PASSWORD = "password123"


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register(client, email: str, role: str, name: str = "Someone", password: str = PASSWORD) -> dict:
    resp = client.post(
        "/auth/register",
        json={"email": email, "password": password, "name": name, "role": role},
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    return {"token": body["token"], "user": body["user"], "headers": auth_headers(body["token"])}


def create_student(client, headers: dict, **fields) -> dict:
    payload = {"name": "A", "studentId": "X1", "class": "10A", "parentEmail": "p@x.com"}
    payload.update(fields)
    resp = client.post("/students", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["student"]


@pytest.fixture
def teacher(client):
    return register(client, "teacher@school.com", "teacher", name="Teacher One")


@pytest.fixture
def other_teacher(client):
    return register(client, "teacher2@school.com", "teacher", name="Teacher Two")


@pytest.fixture
def parent(client):
    return register(client, "p@x.com", "parent", name="Parent")
