"""Shared fixtures: in-memory database, scripted assistant and an API client."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from ragebot import models  # noqa: F401
from ragebot.assistant import LLMAssistant
from ragebot.db import get_session
from ragebot.main import app, get_assistant, get_conversations, get_metrics
from ragebot.roast import ConversationRegistry


class FakeMetrics:
    def __init__(self):
        self.counters = {}
        self.timings = []

    def incr(self, stat, count=1, rate=1):
        self.counters[stat] = self.counters.get(stat, 0) + count

    def timing(self, stat, delta, rate=1):
        self.timings.append((stat, delta))


class ScriptedAssistant(LLMAssistant):
    """Assistant that replays canned replies instead of calling a provider."""

    def __init__(self, replies=None, metrics=None):
        super().__init__(metrics=metrics or FakeMetrics(), model="scripted")
        self.replies = list(replies or [])
        self.calls = []

    def get_completion(self, messages):
        self.calls.append(messages)
        reply = self.replies.pop(0) if self.replies else "Keep going.\nScore: 50"
        if isinstance(reply, Exception):
            raise reply
        return {"message": reply}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def metrics():
    return FakeMetrics()


@pytest.fixture
def assistant(metrics):
    return ScriptedAssistant(metrics=metrics)


@pytest.fixture
def conversations():
    return ConversationRegistry()


@pytest.fixture
def client(engine, assistant, conversations, metrics):
    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_assistant] = lambda: assistant
    app.dependency_overrides[get_conversations] = lambda: conversations
    app.dependency_overrides[get_metrics] = lambda: metrics

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client):
    """Sign up and log in a user, returning bearer headers."""
    credentials = {"email": "slacker@example.com", "password": "hunter2"}
    assert client.post("/api/signup", json=credentials).status_code == 201

    response = client.post("/api/login", json=credentials)
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}
