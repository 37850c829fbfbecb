"""
Request dependencies: app-scoped services and the signed session cookie.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Annotated

import jwt
from fastapi import Cookie, Depends, HTTPException, Request, Response, status

from studio_tracker.config import ENVIRONMENT, JWT_ALGORITHM, JWT_EXPIRY_DAYS, JWT_SECRET
from studio_tracker.exceptions import SessionError
from studio_tracker.models import AuthUser, UserInfo
from studio_tracker.services.auth import AuthSubmitter
from studio_tracker.services.backend import SupabaseBackend
from studio_tracker.services.rate_limiter import RateLimitTracker

logger = logging.getLogger(__name__)


# ── App-scoped services ────────────────────────────────────────────────────
# Created once in the lifespan (see main.py) and stored on app.state.


def get_backend(request: Request) -> SupabaseBackend | None:
    return getattr(request.app.state, "backend", None)


def get_tracker(request: Request) -> RateLimitTracker:
    return request.app.state.rate_limits


def get_submitter(
    backend: Annotated[SupabaseBackend | None, Depends(get_backend)],
    tracker: Annotated[RateLimitTracker, Depends(get_tracker)],
) -> AuthSubmitter:
    return AuthSubmitter(backend, tracker)


Backend = Annotated[SupabaseBackend | None, Depends(get_backend)]
Tracker = Annotated[RateLimitTracker, Depends(get_tracker)]
Submitter = Annotated[AuthSubmitter, Depends(get_submitter)]


# ── Session cookie ─────────────────────────────────────────────────────────
# A signed JWT carrying the user id, email and display name.  The Supabase
# session is signed out once the submission that created it finishes.

SESSION_COOKIE = "session"
SESSION_TTL = timedelta(days=JWT_EXPIRY_DAYS)


def create_jwt(user: AuthUser) -> str:
    issued = datetime.now(UTC)
    claims = {
        "sub": user.id,
        "email": user.email,
        "name": user.name,
        "iat": issued,
        "exp": issued + SESSION_TTL,
    }
    return jwt.encode(claims, JWT_SECRET, algorithm=JWT_ALGORITHM)


def create_session_cookie(response: Response, user: AuthUser) -> None:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=create_jwt(user),
        httponly=True,
        samesite="lax",
        secure=ENVIRONMENT == "production",
        max_age=int(SESSION_TTL.total_seconds()),
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE)


def read_session(token: str) -> UserInfo:
    """Decode a session token, raising :class:`SessionError` with a user-facing reason."""
    try:
        claims = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise SessionError("Session expired. Please sign in again.") from exc
    except jwt.PyJWTError as exc:
        raise SessionError("Invalid session. Please sign in again.") from exc

    if not claims.get("email"):
        raise SessionError("Invalid token payload.")
    return UserInfo(id=claims["sub"], email=claims["email"], name=claims.get("name"))


def decode_session_user(session: str | None) -> UserInfo | None:
    """Like :func:`read_session`, but ``None`` for a missing or bad cookie."""
    if not session:
        return None
    try:
        return read_session(session)
    except SessionError:
        return None


async def get_current_user(
    session: Annotated[str | None, Cookie()] = None,
) -> UserInfo:
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required. Please sign in via /api/auth/sign-in",
        )
    try:
        return read_session(session)
    except SessionError as exc:
        logger.info("Rejected session cookie: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from None


CurrentUser = Annotated[UserInfo, Depends(get_current_user)]
