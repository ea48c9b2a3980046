"""
Shared pytest fixtures for the EduAudit API test suite.

Every test gets a TestClient whose lifespan builds a fresh in-memory SQLite
database, seeded with the default district stats rows. AI calls never reach
OpenAI: no key is configured and the route-level helpers are stubbed.
"""
import os

# Must be set before config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OPENAI_API_KEY"] = ""
os.environ["VITE_OPENAI_API_KEY"] = ""
os.environ["RATE_LIMIT_PER_MINUTE"] = "100000"
os.environ["RATE_LIMIT_PER_HOUR"] = "100000"
os.environ["SEED_DISTRICT_STATS"] = "true"
os.environ["LOG_FILE"] = ""
os.environ["ENVIRONMENT"] = "test"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from fastapi.testclient import TestClient

from app import app


PASSWORD = "secret123"

ANALYSIS_STUB = {
    "priority": "high",
    "suggestedCategory": "Infrastructure",
    "sentiment": "negative",
    "keyIssues": ["Leaking roof"],
    "recommendedActions": ["Repair roof"],
    "summary": "Roof leaks during rain",
}


@pytest.fixture
def client(monkeypatch):
    """TestClient over a fresh database, with AI triage stubbed."""
    async def fake_analyze(title, description, category):
        return dict(ANALYSIS_STUB)

    monkeypatch.setattr("routers.complaints.analyze_complaint", fake_analyze)

    with TestClient(app) as c:
        yield c


def register(client: TestClient, username: str, user_type: str, **fields) -> dict:
    """Register an account; the client is left logged in as that user."""
    payload = {
        "username": username,
        "password": PASSWORD,
        "email": f"{username}@eduaudit.org",
        "name": username.title(),
        "userType": user_type,
    }
    payload.update(fields)
    resp = client.post("/api/auth/register", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def login(client: TestClient, username: str) -> dict:
    """Switch the client's session cookie to `username`."""
    resp = client.post("/api/auth/login", json={"username": username, "password": PASSWORD})
    assert resp.status_code == 200, resp.text
    return resp.json()


@pytest.fixture
def school_admin(client):
    """School administrator for a school in Mysuru (school row created on registration)."""
    return register(client, "headmaster", "school", schoolName="GHPS Mysuru", district="Mysuru")


@pytest.fixture
def student(client, school_admin):
    """Student enrolled at the school_admin's school."""
    return register(
        client, "ravi", "student",
        district="Mysuru", schoolId=school_admin["schoolId"], classInfo="10th A"
    )


@pytest.fixture
def authority(client):
    return register(client, "deo", "authority", district="Mysuru", designation="DDPI")


def file_complaint(client: TestClient, username: str, **fields) -> dict:
    """Log in as `username` and file a complaint."""
    login(client, username)
    payload = {
        "title": "Leaking roof",
        "description": "Water drips into class 10 whenever it rains.",
        "category": "Infrastructure",
    }
    payload.update(fields)
    resp = client.post("/api/complaints", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()
