"""Tests for the server-rendered login flow and its HTMX partials."""

from __future__ import annotations

from studio_tracker.dependencies import create_jwt, get_backend
from studio_tracker.main import app
from tests.mocks.models import (
    INVALID_CREDENTIALS_ERROR,
    MISSING_TABLE_ERROR,
    MOCK_AUTH_USER,
    rate_limit_error,
)


def _session_cookie() -> dict[str, str]:
    """Return a cookie dict with a valid JWT for the mock user."""
    return {"session": create_jwt(MOCK_AUTH_USER)}


def _form(**overrides) -> dict[str, str]:
    data = {"email": "a@b.com", "password": "Secret123!", "mode": "signin"}
    data.update(overrides)
    return data


class TestLoginPage:
    """GET / renders the form after the database checks pass."""

    def test_sign_in_form(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert "Sign In" in resp.text
        assert 'name="name"' not in resp.text
        assert 'value="signin"' in resp.text

    def test_sign_up_form(self, client):
        resp = client.get("/", params={"mode": "signup"})
        assert resp.status_code == 200
        assert "Create Account" in resp.text
        assert 'name="name"' in resp.text
        assert 'id="password-strength"' in resp.text

    def test_unknown_mode_falls_back_to_sign_in(self, client):
        resp = client.get("/", params={"mode": "bogus"})
        assert 'value="signin"' in resp.text

    def test_missing_table_redirects_to_setup(self, client, fake_backend):
        fake_backend.select_error = MISSING_TABLE_ERROR
        resp = client.get("/", follow_redirects=False)
        assert resp.status_code == 303
        assert resp.headers["location"] == "/setup?notice=needs_setup"

    def test_missing_client_shows_connection_error(self, client):
        app.dependency_overrides[get_backend] = lambda: None
        resp = client.get("/")
        assert resp.status_code == 200
        assert "Connection error" in resp.text

    def test_signed_in_user_goes_to_dashboard(self, client):
        resp = client.get("/", cookies=_session_cookie(), follow_redirects=False)
        assert resp.status_code == 303
        assert resp.headers["location"] == "/dashboard"


class TestLoginSubmit:
    """POST / runs one attempt and redirects or re-renders."""

    def test_sign_in_success_redirects(self, client):
        resp = client.post("/", data=_form(), follow_redirects=False)
        assert resp.status_code == 303
        assert resp.headers["location"] == "/dashboard?welcome=signin"
        assert "session" in resp.cookies

    def test_sign_up_success_redirects(self, client, fake_backend):
        resp = client.post(
            "/", data=_form(mode="signup", name="Ada"), follow_redirects=False
        )
        assert resp.status_code == 303
        assert resp.headers["location"] == "/dashboard?welcome=signup"
        assert fake_backend.tables["employees"][0]["email"] == "a@b.com"

    def test_wrong_password_rerenders_with_flash(self, client, fake_backend):
        fake_backend.sign_in_error = INVALID_CREDENTIALS_ERROR
        resp = client.post("/", data=_form())
        assert resp.status_code == 200
        assert "Login failed" in resp.text
        assert "Invalid login credentials" in resp.text
        assert 'value="a@b.com"' in resp.text

    def test_sign_up_needs_confirmation(self, client, fake_backend):
        fake_backend.require_confirmation = True
        resp = client.post("/", data=_form(mode="signup", name="Ada"))
        assert resp.status_code == 200
        assert "Check your email" in resp.text

    def test_rate_limit_disables_submit(self, client, fake_backend):
        fake_backend.sign_in_error = rate_limit_error(30)
        resp = client.post("/", data=_form())
        assert resp.status_code == 200
        assert "Rate limit active" in resp.text
        assert "Rate limited - wait 35 seconds..." in resp.text
        assert "disabled" in resp.text

        # Local rejection on the next attempt.
        fake_backend.calls.clear()
        resp = client.post("/", data=_form())
        assert "Rate limit active" in resp.text
        assert fake_backend.calls == []

    def test_missing_client(self, client):
        app.dependency_overrides[get_backend] = lambda: None
        resp = client.post("/", data=_form())
        assert resp.status_code == 200
        assert "Connection error" in resp.text


class TestSubmitButtonPartial:
    def test_not_limited(self, client):
        resp = client.get("/partials/submit-button", params={"email": "a@b.com"})
        assert resp.status_code == 200
        assert "Sign In" in resp.text
        assert "disabled" not in resp.text

    def test_sign_up_label(self, client):
        resp = client.get("/partials/submit-button", params={"mode": "signup"})
        assert "Create Account" in resp.text

    def test_limited_email_polls_countdown(self, client, app_tracker):
        app_tracker.apply_cooldown("a@b.com", 12_000)
        resp = client.get("/partials/submit-button", params={"email": "a@b.com"})
        assert resp.status_code == 200
        assert "disabled" in resp.text
        assert 'hx-trigger="every 1s"' in resp.text
        assert "Rate limited - wait" in resp.text

    def test_other_email_not_limited(self, client, app_tracker):
        app_tracker.apply_cooldown("a@b.com", 12_000)
        resp = client.get("/partials/submit-button", params={"email": "c@d.com"})
        assert "disabled" not in resp.text


class TestDashboard:
    def test_requires_session(self, client):
        resp = client.get("/dashboard", follow_redirects=False)
        assert resp.status_code == 303
        assert resp.headers["location"] == "/"

    def test_shows_user(self, client):
        resp = client.get("/dashboard", cookies=_session_cookie())
        assert resp.status_code == 200
        assert "Dana Developer" in resp.text

    def test_welcome_back_flash(self, client):
        resp = client.get(
            "/dashboard", params={"welcome": "signin"}, cookies=_session_cookie()
        )
        assert "Welcome back!" in resp.text

    def test_welcome_new_user_flash(self, client):
        resp = client.get(
            "/dashboard", params={"welcome": "signup"}, cookies=_session_cookie()
        )
        assert "Welcome to Game Studio Tracker!" in resp.text


class TestLogoutPage:
    def test_logout_clears_cookie(self, client):
        resp = client.post("/logout", follow_redirects=False)
        assert resp.status_code == 303
        assert resp.headers["location"] == "/"
        assert 'session=""' in resp.headers["set-cookie"]
