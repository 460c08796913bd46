"""Shared pytest fixtures for the interview session API."""

from __future__ import annotations

import sys
from pathlib import Path

import mongomock
import pytest

# Ensure the application package is importable during tests.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from interview_api import database, storage  # noqa: E402
from interview_api.main import create_app  # noqa: E402
from interview_api.services.cache import session_cache  # noqa: E402


@pytest.fixture(autouse=True)
def mongo_db(monkeypatch: pytest.MonkeyPatch):
    """Provide an isolated in-memory MongoDB database for each test."""
    test_db_name = "test_interview_platform"
    monkeypatch.setenv("ENABLE_MONGODB", "true")
    monkeypatch.setenv("MONGODB_DATABASE", test_db_name)

    client = mongomock.MongoClient()
    db = client[test_db_name]

    monkeypatch.setattr(database, "get_mongo_client", lambda: client)
    monkeypatch.setattr(database, "get_database", lambda: db)

    yield db

    client.drop_database(test_db_name)


@pytest.fixture(autouse=True)
def clean_state():
    """Start every test with an empty cache and empty in-memory tables."""
    session_cache.clear()
    storage.reset()
    yield
    session_cache.clear()
    storage.reset()


@pytest.fixture
def memory_backend(monkeypatch: pytest.MonkeyPatch):
    """Run against the process-local tables instead of MongoDB."""
    monkeypatch.setenv("ENABLE_MONGODB", "false")


@pytest.fixture
def client():
    app = create_app()
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture
def operator():
    return {
        "college_id": "college-1",
        "college_name": "Test College",
        "user_email": "admin@college.test",
        "user_id": "user-1",
        "role": "admin",
    }


@pytest.fixture
def operator_client(client, operator):
    """Test client carrying a logged-in college operator."""
    with client.session_transaction() as cookie_session:
        cookie_session["college_session"] = operator
    return client


def make_session(**overrides):
    """Return a minimal stored-session record for store-level tests."""
    session = {
        "id": "session-1",
        "mode": "individual",
        "role": "Backend Engineer",
        "level": "mid",
        "status": "draft",
        "questions": [],
        "current_question_index": 0,
        "presence": {"phrase_prompt": "I confirm this interview response is my own."},
        "report": None,
        "score_summary": None,
        "share_token": None,
    }
    session.update(overrides)
    return session


def make_questions(count):
    return [
        {"id": f"q{i}", "text": f"Question {i}?", "category": "technical", "difficulty": "medium"}
        for i in range(1, count + 1)
    ]
