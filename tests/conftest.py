"""
Shared test fixtures.

Provides a FastAPI TestClient wired to:
  • an in-memory FakeBackend instead of Supabase (no network)
  • a fresh per-email cooldown table (via app lifespan)
  • slowapi limits switched off

The `client` fixture runs the full lifespan (tracker + sweeper start /
stop) so page handlers see the same state the app would at runtime.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from studio_tracker.dependencies import get_backend, get_current_user
from studio_tracker.main import app
from studio_tracker.services.rate_limiter import RateLimitTracker
from tests.mocks.backend import FakeBackend
from tests.mocks.models import MOCK_USER


# ── Helpers ────────────────────────────────────────────────────────────────


class ManualClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


# ── Fixtures ───────────────────────────────────────────────────────────────


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def tracker(clock: ManualClock) -> RateLimitTracker:
    return RateLimitTracker(clock=clock)


@pytest.fixture()
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def _test_env(monkeypatch):
    """
    Keep the lifespan from building a real Supabase client and disable
    IP rate limiting.
    """
    monkeypatch.setattr("studio_tracker.main.SUPABASE_URL", "")
    monkeypatch.setattr("studio_tracker.main.SUPABASE_ANON_KEY", "")

    # ── Disable rate limiting in tests ────────────────────────────────
    from studio_tracker.rate_limit import limiter as _limiter
    monkeypatch.setattr(_limiter, "enabled", False)


@pytest.fixture()
def client(_test_env, fake_backend: FakeBackend) -> TestClient:
    """
    FastAPI TestClient with the fake backend and auth bypassed.

    Uses a context manager so the lifespan runs.
    """
    async def _mock_current_user():
        return MOCK_USER

    app.dependency_overrides[get_backend] = lambda: fake_backend
    app.dependency_overrides[get_current_user] = _mock_current_user

    with TestClient(app, raise_server_exceptions=False) as tc:
        yield tc

    app.dependency_overrides.clear()


@pytest.fixture()
def unauthed_client(_test_env, fake_backend: FakeBackend) -> TestClient:
    """
    TestClient without the auth override; requests are rejected unless
    a session cookie is provided.
    """
    app.dependency_overrides.clear()
    app.dependency_overrides[get_backend] = lambda: fake_backend

    with TestClient(app, raise_server_exceptions=False) as tc:
        yield tc

    app.dependency_overrides.clear()


@pytest.fixture()
def app_tracker(client: TestClient) -> RateLimitTracker:
    """The cooldown table the running app uses."""
    return app.state.rate_limits
