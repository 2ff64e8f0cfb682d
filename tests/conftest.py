"""Pytest configuration and fixtures for averzo.

HTTP tests run against a fresh app from averzo.main.create_app() with its
lifespan entered, so app.state is wired the same way as in production.
Firestore and OpenAI are not configured here; tests that need them put
fakes on app.state.
"""

from collections.abc import Callable

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from averzo.core.config import get_settings
from averzo.core.limiter import limiter
from averzo.infrastructure.firebase._rest_client import DocumentSnapshot, QuerySnapshot
from averzo.infrastructure.firebase.listeners import (
    DocumentSnapshotCallback,
    ErrorCallback,
    QuerySnapshotCallback,
    Unsubscribe,
)
from averzo.infrastructure.messaging.error_emitter import ErrorEmitter
from averzo.main import create_app

_UNCONFIGURED_ENV = (
    "FIREBASE_SERVICE_ACCOUNT_KEY",
    "FIREBASE_SERVICE_ACCOUNT_PATH",
    "FIREBASE_PROJECT_ID",
    "OPENAI_API_KEY",
    "TELEMETRY_ENABLED",
)


class FakeSnapshotSource:
    """In-memory SnapshotSource: tests push snapshots and errors by hand.

    Every listen call is recorded in ``listens`` as (kind, target, on_snapshot,
    on_error); ``unsubscribed`` counts teardown calls per target. Set
    ``immediate`` to deliver a snapshot synchronously on listen, or
    ``fail_with`` to raise from listen itself.
    """

    def __init__(self) -> None:
        self.listens: list[tuple[str, object, Callable, ErrorCallback]] = []
        self.unsubscribed: list[object] = []
        self.immediate: QuerySnapshot | DocumentSnapshot | None = None
        self.immediate_error: Exception | None = None
        self.fail_with: Exception | None = None

    def _listen(
        self, kind: str, target: object, on_snapshot: Callable, on_error: ErrorCallback
    ) -> Unsubscribe:
        if self.fail_with is not None:
            raise self.fail_with
        self.listens.append((kind, target, on_snapshot, on_error))
        if self.immediate_error is not None:
            on_error(self.immediate_error)
        elif self.immediate is not None:
            on_snapshot(self.immediate)

        def unsubscribe() -> None:
            self.unsubscribed.append(target)

        return unsubscribe

    def listen_query(
        self, query, on_snapshot: QuerySnapshotCallback, on_error: ErrorCallback
    ) -> Unsubscribe:
        return self._listen("query", query, on_snapshot, on_error)

    def listen_document(
        self, ref, on_snapshot: DocumentSnapshotCallback, on_error: ErrorCallback
    ) -> Unsubscribe:
        return self._listen("document", ref, on_snapshot, on_error)

    @property
    def last(self) -> tuple[str, object, Callable, ErrorCallback]:
        return self.listens[-1]


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch):
    """Run every test without Firestore or OpenAI credentials and a fresh limiter."""
    for name in _UNCONFIGURED_ENV:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    limiter.reset()
    yield
    get_settings.cache_clear()


@pytest.fixture
def emitter() -> ErrorEmitter:
    return ErrorEmitter()


@pytest.fixture
def source() -> FakeSnapshotSource:
    return FakeSnapshotSource()


@pytest.fixture
def app() -> FastAPI:
    return create_app()


@pytest.fixture
async def client(app: FastAPI) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI), lifespan entered."""
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
