"""Tests for GET /api/test-connection."""

import pytest

from studio_tracker.dependencies import get_backend
from studio_tracker.exceptions import BackendError
from studio_tracker.main import app
from tests.mocks.models import MOCK_SESSION


@pytest.fixture()
def configured(monkeypatch):
    monkeypatch.setattr(
        "studio_tracker.routers.diagnostics.SUPABASE_URL", "https://project.supabase.co"
    )
    monkeypatch.setattr("studio_tracker.routers.diagnostics.SUPABASE_ANON_KEY", "k" * 40)
    monkeypatch.setattr(
        "studio_tracker.routers.diagnostics.DATABASE_URL", "postgres://localhost/db"
    )
    monkeypatch.setattr("studio_tracker.routers.diagnostics.ENVIRONMENT", "production")


@pytest.fixture()
def unconfigured(monkeypatch):
    monkeypatch.setattr("studio_tracker.routers.diagnostics.SUPABASE_URL", "")
    monkeypatch.setattr("studio_tracker.routers.diagnostics.SUPABASE_ANON_KEY", "")
    monkeypatch.setattr("studio_tracker.routers.diagnostics.DATABASE_URL", "")


class TestTestConnection:
    def test_success(self, client, fake_backend, configured):
        fake_backend.current_session = MOCK_SESSION
        fake_backend.tables["employees"] = [{"id": "1", "email": "a@b.com"}]

        resp = client.get("/api/test-connection")
        assert resp.status_code == 200

        data = resp.json()
        assert data["status"] == "success"
        assert data["supabaseConnected"] is True
        assert data["authStatus"] == {"success": True, "session": "Present", "error": None}
        assert data["employeeQuery"]["data"] == [{"id": "1", "email": "a@b.com"}]
        assert data["publicQuery"]["count"] == 1
        assert data["diagnostics"] == {
            "supabaseUrl": "https://project.supabase.co",
            "anonKeyLength": "40 characters",
            "databaseUrlSet": "Yes",
            "environment": "production",
        }

    def test_no_session(self, client):
        resp = client.get("/api/test-connection")
        assert resp.status_code == 200
        assert resp.json()["authStatus"]["session"] == "None"

    def test_query_error_returns_500(self, client, fake_backend):
        fake_backend.select_error = BackendError(
            'relation "public.employees" does not exist', code="42P01", hint="create it"
        )
        resp = client.get("/api/test-connection")
        assert resp.status_code == 500

        data = resp.json()
        assert data["status"] == "error"
        assert data["authStatus"]["success"] is True
        assert data["employeeQuery"]["success"] is False
        assert data["employeeQuery"]["error"]["code"] == "42P01"
        assert data["employeeQuery"]["error"]["hint"] == "create it"
        assert data["publicQuery"]["count"] is None

    def test_auth_error_returns_500(self, client, fake_backend):
        fake_backend.session_error = BackendError("Invalid API key", code="401")
        resp = client.get("/api/test-connection")
        assert resp.status_code == 500
        assert resp.json()["authStatus"]["error"] == {"message": "Invalid API key", "code": "401"}

    def test_missing_config(self, client, unconfigured):
        app.dependency_overrides[get_backend] = lambda: None
        resp = client.get("/api/test-connection")
        assert resp.status_code == 500

        data = resp.json()
        assert data["status"] == "error"
        assert data["error"] == "Failed to initialize Supabase client"
        assert data["diagnostics"]["supabaseUrl"] == "Not set"
        assert data["diagnostics"]["anonKeyLength"] == "Not set"
        assert data["diagnostics"]["databaseUrlSet"] == "No"

    def test_unexpected_error_returns_500(self, client, fake_backend):
        async def _boom():
            raise RuntimeError("socket closed")

        fake_backend.get_session = _boom
        resp = client.get("/api/test-connection")
        assert resp.status_code == 500
        assert resp.json()["message"] == "socket closed"


class TestSessionIsolation:
    def test_sign_in_leaves_shared_client_anonymous(self, unauthed_client, fake_backend):
        fake_backend.tables["employees"] = [{"id": "1", "email": "a@b.com"}]
        resp = unauthed_client.post(
            "/api/auth/sign-in", json={"email": "a@b.com", "password": "Secret123!"}
        )
        assert resp.status_code == 200
        assert fake_backend.scopes_opened == 1

        unauthed_client.cookies.clear()
        resp = unauthed_client.get("/api/test-connection")
        assert resp.status_code == 200
        assert resp.json()["authStatus"]["session"] == "None"
        assert fake_backend.current_session is None
        assert fake_backend.table_tokens
        assert all(token is None for _, token in fake_backend.table_tokens)

    def test_sign_up_profile_insert_carries_only_new_user_token(
        self, unauthed_client, fake_backend
    ):
        resp = unauthed_client.post(
            "/api/auth/sign-up",
            json={"email": "a@b.com", "password": "Secret123!", "name": "Ada"},
        )
        assert resp.status_code == 200
        assert fake_backend.table_tokens == [("insert employees", MOCK_SESSION.access_token)]

        unauthed_client.cookies.clear()
        unauthed_client.get("/api/test-connection")
        assert [token for call, token in fake_backend.table_tokens if call.startswith("select")] == [
            None,
            None,
        ]
