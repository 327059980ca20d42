# ruff: noqa: E402
import json
import os
from typing import Any

import pytest

# Set testing environment before importing the app or settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["EXPO_ACCESS_TOKEN"] = ""
os.environ["PUSH_RETRY_DELAY_SECONDS"] = "0"

import httpx
import jwt
from fastapi.testclient import TestClient

import fellowship.models  # noqa: F401
from fellowship.config import settings
from fellowship.db.base import Base
from fellowship.db.session import SessionLocal, engine
from fellowship.main import app
from fellowship.models.user import User
from fellowship.services.notifications import get_notifier
from fellowship.services.notifications.push import ExpoPushClient, PushDispatcher


class RecordingNotifier:
    """Stands in for Notifier in route tests: keeps the scheduled contexts, sends nothing."""

    def __init__(self):
        self.contexts: list[Any] = []

    def schedule(self, background_tasks, context) -> None:
        self.contexts.append(context)


class FakeExpo:
    """httpx.MockTransport handler that answers like Expo and records each batch."""

    def __init__(self, ticket_for=None, responses=None):
        self.batches: list[list[dict]] = []
        self._ticket_for = ticket_for or (lambda message: {"status": "ok", "id": f"ticket-{message['to']}"})
        # Optional queue of callables (request -> httpx.Response) used before the default answer
        self._responses = list(responses or [])

    def __call__(self, request: httpx.Request) -> httpx.Response:
        batch = json.loads(request.content)
        self.batches.append(batch)
        if self._responses:
            return self._responses.pop(0)(request)
        return httpx.Response(200, json={"data": [self._ticket_for(m) for m in batch]})

    def dispatcher(self, on_device_not_registered=None, **kwargs) -> PushDispatcher:
        client = ExpoPushClient(url="https://expo.test/push/send", transport=httpx.MockTransport(self))
        kwargs.setdefault("sleep", lambda seconds: None)
        return PushDispatcher(client, on_device_not_registered=on_device_not_registered, **kwargs)


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(full_name: str | None = None, **kwargs) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            full_name=full_name or f"User {n}",
            username=kwargs.pop("username", f"user{n}"),
            email=kwargs.pop("email", f"user{n}@example.com"),
            **kwargs,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict[str, str]:
        token = jwt.encode({"userID": user.id}, settings.jwt_secret, algorithm="HS256")
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(notifier):
    app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def fake_expo():
    return FakeExpo()


@pytest.fixture
def expo_factory():
    """Build a FakeExpo with custom tickets or a queue of canned responses."""
    return FakeExpo
