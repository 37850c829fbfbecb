from pathlib import Path
from typing import Any

from fastapi import APIRouter, Cookie, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from studio_tracker.config import APP_NAME
from studio_tracker.dependencies import (
    Backend,
    Submitter,
    Tracker,
    clear_session_cookie,
    create_session_cookie,
    decode_session_user,
)
from studio_tracker.rate_limit import AUTH, limiter
from studio_tracker.services import password_strength
from studio_tracker.services.auth import AuthMode, Credentials, Success
from studio_tracker.services.bootstrap import BootstrapStatus, bootstrap
from studio_tracker.services.notifications import auth_toast, bootstrap_toast
from studio_tracker.services.rate_limiter import RateLimitTracker

_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(_TEMPLATES_DIR))
templates.env.globals["app_name"] = APP_NAME

router = APIRouter(tags=["pages"], include_in_schema=False)


def _parse_mode(raw: str | None) -> AuthMode:
    try:
        return AuthMode(raw)
    except ValueError:
        return AuthMode.SIGN_IN


def _login_context(
    mode: AuthMode,
    tracker: RateLimitTracker,
    *,
    email: str = "",
    name: str = "",
    password: str = "",
    flash: dict[str, str] | None = None,
) -> dict[str, Any]:
    strength = password_strength.score(password)
    return {
        "mode": mode.value,
        "signing_up": mode is AuthMode.SIGN_UP,
        "email": email,
        "name": name,
        "strength": strength,
        "strength_color": password_strength.strength_color(strength),
        "cooldown": tracker.remaining_seconds(email),
        "flash": flash,
    }


# ── Login ──────────────────────────────────────────────────────────────────


@router.get("/", response_class=HTMLResponse)
async def login_page(
    request: Request,
    backend: Backend,
    tracker: Tracker,
    mode: str | None = Query(None),
    session: str | None = Cookie(None),
):
    if decode_session_user(session) is not None:
        return RedirectResponse("/dashboard", status_code=303)

    result = await bootstrap(backend)
    if result.status is BootstrapStatus.NEEDS_SETUP:
        return RedirectResponse("/setup?notice=needs_setup", status_code=303)

    toast = bootstrap_toast(result)
    return templates.TemplateResponse(
        request,
        "pages/login.html",
        _login_context(
            _parse_mode(mode),
            tracker,
            flash=toast.as_flash() if toast else None,
        ),
    )


@router.post("/", response_class=HTMLResponse)
@limiter.limit(AUTH)
async def login_submit(
    request: Request,
    submitter: Submitter,
    tracker: Tracker,
    email: str = Form(...),
    password: str = Form(...),
    name: str = Form(""),
    mode: str = Form(AuthMode.SIGN_IN.value),
):
    auth_mode = _parse_mode(mode)
    result = await submitter.submit(
        auth_mode, Credentials(email=email, password=password, name=name)
    )

    if isinstance(result, Success):
        redirect = RedirectResponse(
            f"/dashboard?welcome={auth_mode.value}", status_code=303
        )
        create_session_cookie(redirect, result.user)
        return redirect

    return templates.TemplateResponse(
        request,
        "pages/login.html",
        _login_context(
            auth_mode,
            tracker,
            email=email,
            name=name,
            flash=auth_toast(auth_mode, result).as_flash(),
        ),
    )


# ── HTMX Partials ─────────────────────────────────────────────────────────


@router.post("/partials/password-strength", response_class=HTMLResponse)
async def partial_password_strength(request: Request, password: str = Form("")):
    strength = password_strength.score(password)
    return templates.TemplateResponse(
        request,
        "partials/password_strength.html",
        {
            "strength": strength,
            "strength_color": password_strength.strength_color(strength),
        },
    )


@router.get("/partials/submit-button", response_class=HTMLResponse)
async def partial_submit_button(
    request: Request,
    tracker: Tracker,
    email: str = Query(""),
    mode: str | None = Query(None),
):
    auth_mode = _parse_mode(mode)
    return templates.TemplateResponse(
        request,
        "partials/submit_button.html",
        {
            "email": email,
            "mode": auth_mode.value,
            "signing_up": auth_mode is AuthMode.SIGN_UP,
            "cooldown": tracker.remaining_seconds(email),
        },
    )


# ── Dashboard ──────────────────────────────────────────────────────────────


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    welcome: str | None = Query(None),
    session: str | None = Cookie(None),
):
    user = decode_session_user(session)
    if user is None:
        return RedirectResponse("/", status_code=303)

    flash = None
    if welcome in (AuthMode.SIGN_IN.value, AuthMode.SIGN_UP.value):
        greeting = (
            f"Welcome to {APP_NAME}!"
            if welcome == AuthMode.SIGN_UP.value
            else "Welcome back!"
        )
        flash = {"type": "success", "title": greeting, "message": ""}

    return templates.TemplateResponse(
        request,
        "pages/dashboard.html",
        {"user": user, "flash": flash},
    )


@router.post("/logout")
async def logout_page():
    redirect = RedirectResponse("/", status_code=303)
    clear_session_cookie(redirect)
    return redirect
