"""
Sign-in / sign-up submission against Supabase Auth.

:class:`AuthSubmitter` wraps one form submission:

1.  Reject locally if the email is still cooling down.
2.  Call Supabase (sign up + profile row, or sign in) on a client scoped
    to this submission, so no user session outlives it.
3.  Classify any error.  Rate-limit errors start a cooldown for the email
    so the next attempt is answered without a network call.

Error classification is code-first: :data:`ERROR_CODE_KINDS` maps the auth
error codes we know about.  Only errors without a recognised code go
through :func:`classify_by_message`, a best-effort look at the text.
"""

from __future__ import annotations

import enum
import logging
import math
import re
from dataclasses import dataclass

from studio_tracker.config import DEFAULT_ROLE, PROFILE_TABLE
from studio_tracker.exceptions import BackendError, ClientInitError
from studio_tracker.models import AuthSession, AuthUser, EmployeeProfile
from studio_tracker.services.backend import SupabaseBackend
from studio_tracker.services.rate_limiter import RateLimitTracker

logger = logging.getLogger(__name__)


class AuthMode(str, enum.Enum):
    SIGN_IN = "signin"
    SIGN_UP = "signup"

    @property
    def label(self) -> str:
        return "sign up" if self is AuthMode.SIGN_UP else "sign in"


class FailureKind(str, enum.Enum):
    RATE_LIMITED = "rate_limited"
    BACKEND = "backend"
    CLIENT_INIT = "client_init"


@dataclass(frozen=True)
class Credentials:
    email: str
    password: str
    name: str = ""


# ── Results ────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Success:
    user: AuthUser
    session: AuthSession | None = None


@dataclass(frozen=True)
class NeedsConfirmation:
    """Account created; Supabase sent a confirmation email first."""
    email: str


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str
    retry_after_ms: int | None = None
    code: str | None = None
    # True when the auth account exists but its profile row does not.
    account_created: bool = False
    # True when this attempt's error started the cooldown, False when a
    # cooldown that was already running rejected it.
    cooldown_started: bool = False

    @property
    def retry_after_seconds(self) -> int:
        return math.ceil((self.retry_after_ms or 0) / 1000)


AuthAttemptResult = Success | NeedsConfirmation | Failure


# ── Error classification ───────────────────────────────────────────────────

DEFAULT_COOLDOWN_MS = 45_000
COOLDOWN_BUFFER_MS = 5_000

ERROR_CODE_KINDS: dict[str, FailureKind] = {
    "over_email_send_rate_limit": FailureKind.RATE_LIMITED,
    "over_request_rate_limit": FailureKind.RATE_LIMITED,
    "over_sms_send_rate_limit": FailureKind.RATE_LIMITED,
    "invalid_credentials": FailureKind.BACKEND,
    "email_not_confirmed": FailureKind.BACKEND,
    "user_already_exists": FailureKind.BACKEND,
    "email_exists": FailureKind.BACKEND,
    "weak_password": FailureKind.BACKEND,
    "signup_disabled": FailureKind.BACKEND,
    "validation_failed": FailureKind.BACKEND,
}

_RATE_LIMIT_MARKERS = ("security purposes", "rate limit")
_RETRY_AFTER = re.compile(r"after (\d+) seconds")


def classify_by_message(message: str) -> FailureKind:
    """Fallback for errors without a known code: look for rate-limit wording."""
    lowered = message.lower()
    if any(marker in lowered for marker in _RATE_LIMIT_MARKERS):
        return FailureKind.RATE_LIMITED
    return FailureKind.BACKEND


def classify_error(error: BackendError) -> FailureKind:
    if error.code in ERROR_CODE_KINDS:
        return ERROR_CODE_KINDS[error.code]
    if error.status == 429:
        return FailureKind.RATE_LIMITED
    return classify_by_message(error.message)


def parse_cooldown_ms(message: str) -> int:
    """Server-suggested wait plus a 5 s buffer, or 45 s if none is given."""
    match = _RETRY_AFTER.search(message)
    if match is None:
        return DEFAULT_COOLDOWN_MS
    return int(match.group(1)) * 1000 + COOLDOWN_BUFFER_MS


# ── Submitter ──────────────────────────────────────────────────────────────


class AuthSubmitter:
    """Runs one sign-in or sign-up attempt and reports the outcome."""

    def __init__(
        self,
        backend: SupabaseBackend | None,
        tracker: RateLimitTracker,
    ) -> None:
        self._backend = backend
        self._tracker = tracker

    async def submit(
        self,
        mode: AuthMode,
        credentials: Credentials,
        now: int | None = None,
    ) -> AuthAttemptResult:
        email = credentials.email
        if now is None:
            now = self._tracker.now()

        if self._tracker.is_limited(email, now):
            remaining = self._tracker.remaining_ms(email, now)
            return Failure(
                FailureKind.RATE_LIMITED,
                "This email address is rate-limited. Please wait "
                f"{math.ceil(remaining / 1000)} seconds before trying again.",
                retry_after_ms=remaining,
            )

        if self._backend is None:
            return Failure(
                FailureKind.CLIENT_INIT,
                "Supabase client initialization failed. Check your environment variables.",
            )

        self._tracker.record_attempt(email, now)
        logger.info("Attempting to %s with email: %s", mode.label, email)

        try:
            async with self._backend.auth_scope() as scoped:
                if mode is AuthMode.SIGN_UP:
                    return await self._sign_up(scoped, credentials)
                return await self._sign_in(scoped, credentials)
        except ClientInitError as exc:
            logger.error("Could not open an auth client for %s: %s", email, exc)
            return Failure(FailureKind.CLIENT_INIT, str(exc))
        except BackendError as error:
            return self._handle_error(error, email, now)

    async def _sign_up(
        self, backend: SupabaseBackend, credentials: Credentials
    ) -> AuthAttemptResult:
        user, session = await backend.sign_up(
            credentials.email,
            credentials.password,
            {"name": credentials.name, "role": DEFAULT_ROLE},
        )
        if user is None or session is None:
            logger.info("Sign up for %s awaits email confirmation", credentials.email)
            return NeedsConfirmation(credentials.email)

        profile = EmployeeProfile(
            id=user.id, email=credentials.email, name=credentials.name, role=DEFAULT_ROLE
        )
        try:
            await backend.insert(
                PROFILE_TABLE,
                [profile.model_dump(include={"id", "email", "name", "role"})],
            )
        except BackendError as error:
            # No rollback: the auth account stays without a profile row.
            logger.warning(
                "Auth account %s created but profile insert failed: %s (code=%s)",
                user.id, error.message, error.code,
            )
            return Failure(
                FailureKind.BACKEND,
                error.message,
                code=error.code,
                account_created=True,
            )

        logger.info("Signed up %s (user %s)", credentials.email, user.id)
        return Success(user=user, session=session)

    async def _sign_in(
        self, backend: SupabaseBackend, credentials: Credentials
    ) -> AuthAttemptResult:
        user, session = await backend.sign_in_with_password(
            credentials.email, credentials.password
        )
        if user is None:
            return Failure(FailureKind.BACKEND, "Sign in did not return a user")
        logger.info("Signed in %s (user %s)", credentials.email, user.id)
        return Success(user=user, session=session)

    def _handle_error(self, error: BackendError, email: str, now: int) -> Failure:
        logger.error(
            "Authentication error for %s: code=%s message=%s details=%s",
            email, error.code or "no_code", error.message, error.details,
        )
        kind = classify_error(error)
        if kind is not FailureKind.RATE_LIMITED:
            return Failure(kind, error.message, code=error.code)

        cooldown = parse_cooldown_ms(error.message)
        self._tracker.apply_cooldown(email, cooldown, now)
        return Failure(
            FailureKind.RATE_LIMITED,
            "For security reasons, this email address is now rate-limited. Please wait "
            f"{math.ceil(cooldown / 1000)} seconds before trying again.",
            retry_after_ms=cooldown,
            code=error.code,
            cooldown_started=True,
        )
