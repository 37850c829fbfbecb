"""
Thin async wrapper around the Supabase client.

One instance is created in the app lifespan and injected wherever it is
needed (see ``dependencies.get_backend``).  That shared client only ever
runs anonymous requests: the SDK attaches a signed-in user's token to
every later request of the client that signed in, so sign-in and sign-up
run on a short-lived client from :meth:`SupabaseBackend.auth_scope`.

Every SDK error is translated into :class:`BackendError`, so the rest of
the app never sees ``supabase`` / ``postgrest`` exception types.

Usage::

    backend = await create_backend(SUPABASE_URL, SUPABASE_ANON_KEY)
    async with backend.auth_scope() as scoped:
        user, session = await scoped.sign_in_with_password(email, password)
    ...
    await backend.close()
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator, Callable, Iterator
from typing import Any

import httpx
from supabase import (
    AsyncClient,
    AsyncClientOptions,
    AuthError,
    PostgrestAPIError,
    acreate_client,
)

from studio_tracker.exceptions import BackendError, ClientInitError, TransportError
from studio_tracker.models import AuthSession, AuthUser, SelectResult

logger = logging.getLogger(__name__)

AuthStateCallback = Callable[[str, AuthSession | None], None]


# ── SDK → app model conversion ─────────────────────────────────────────────


def _to_user(user: Any) -> AuthUser | None:
    if user is None:
        return None
    return AuthUser(
        id=str(user.id),
        email=user.email,
        user_metadata=dict(user.user_metadata or {}),
    )


def _to_session(session: Any) -> AuthSession | None:
    if session is None:
        return None
    return AuthSession(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_at=session.expires_at,
        user=_to_user(session.user),
    )


def _translate(exc: Exception) -> BackendError:
    """Map an SDK / transport exception onto BackendError."""
    if isinstance(exc, PostgrestAPIError):
        return BackendError(
            exc.message or str(exc),
            code=exc.code,
            hint=exc.hint,
            details=exc.details,
        )
    if isinstance(exc, AuthError):
        return BackendError(
            exc.message,
            code=getattr(exc, "code", None),
            status=getattr(exc, "status", None),
        )
    return TransportError(str(exc) or exc.__class__.__name__)


@contextlib.contextmanager
def _remote_call(operation: str) -> Iterator[None]:
    try:
        yield
    except (AuthError, PostgrestAPIError, httpx.HTTPError) as exc:
        error = _translate(exc)
        logger.debug("%s failed: code=%s message=%s", operation, error.code, error.message)
        raise error from exc


# ── Client wrapper ─────────────────────────────────────────────────────────


class SupabaseBackend:
    """Auth, table and RPC operations against one Supabase project."""

    def __init__(self, client: AsyncClient, url: str, key: str = "") -> None:
        self._client = client
        self.url = url
        self._key = key
        self._subscription = self.on_auth_state_change(self._log_auth_event)

    # ── Auth ───────────────────────────────────────────────────────────

    @contextlib.asynccontextmanager
    async def auth_scope(self) -> AsyncIterator[SupabaseBackend]:
        """
        Yield a fresh backend for one sign-in or sign-up submission.

        The scoped client is signed out on exit; this instance never holds
        a user session.  Raises :class:`ClientInitError` if the client
        cannot be built.
        """
        scoped = await _connect(self.url, self._key)
        try:
            yield scoped
        finally:
            await scoped.close()

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: dict[str, Any] | None = None,
    ) -> tuple[AuthUser | None, AuthSession | None]:
        """
        Create an auth account.

        The session is ``None`` when the project requires email
        confirmation before the first sign-in.
        """
        with _remote_call("sign_up"):
            response = await self._client.auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {"data": metadata or {}},
                }
            )
        return _to_user(response.user), _to_session(response.session)

    async def sign_in_with_password(
        self, email: str, password: str
    ) -> tuple[AuthUser | None, AuthSession | None]:
        with _remote_call("sign_in_with_password"):
            response = await self._client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        return _to_user(response.user), _to_session(response.session)

    async def get_session(self) -> AuthSession | None:
        with _remote_call("get_session"):
            session = await self._client.auth.get_session()
        return _to_session(session)

    def on_auth_state_change(self, callback: AuthStateCallback) -> Any:
        """Register *callback(event, session)*; returns the SDK subscription."""

        def _listener(event: Any, session: Any) -> None:
            callback(str(getattr(event, "value", event)), _to_session(session))

        return self._client.auth.on_auth_state_change(_listener)

    @staticmethod
    def _log_auth_event(event: str, session: AuthSession | None) -> None:
        logger.info(
            "Auth state changed: %s (%s)",
            event,
            "user authenticated" if session else "no session",
        )

    # ── Tables ─────────────────────────────────────────────────────────

    async def select(
        self,
        table: str,
        columns: str = "*",
        *,
        limit: int | None = None,
        count: str | None = None,
    ) -> SelectResult:
        with _remote_call(f"select {table}"):
            query = self._client.table(table).select(columns, count=count)
            if limit is not None:
                query = query.limit(limit)
            response = await query.execute()
        return SelectResult(rows=response.data or [], count=response.count)

    async def insert(self, table: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        with _remote_call(f"insert {table}"):
            response = await self._client.table(table).insert(rows).execute()
        return response.data or []

    # ── RPC ────────────────────────────────────────────────────────────

    async def exec_sql(self, sql: str) -> None:
        """Run raw SQL through the project's ``exec_sql`` function."""
        with _remote_call("rpc exec_sql"):
            await self._client.rpc("exec_sql", {"sql": sql}).execute()

    # ── Lifecycle ──────────────────────────────────────────────────────

    async def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        try:
            with _remote_call("sign_out"):
                await self._client.auth.sign_out({"scope": "local"})
        except BackendError as error:
            logger.warning("Local sign-out on close failed: %s", error.message)
        logger.info("Supabase client closed")


async def create_backend(url: str, key: str) -> SupabaseBackend:
    """
    Build the backend wrapper.

    Raises :class:`ClientInitError` when the URL or key is missing or the
    SDK rejects them.
    """
    if not url or not key:
        raise ClientInitError(
            "Missing Supabase configuration: set SUPABASE_URL and SUPABASE_ANON_KEY"
        )

    logger.info("Initializing Supabase client with URL: %s", url)
    return await _connect(url, key)


async def _connect(url: str, key: str) -> SupabaseBackend:
    try:
        client = await acreate_client(
            url,
            key,
            options=AsyncClientOptions(persist_session=False, auto_refresh_token=False),
        )
    except Exception as exc:
        raise ClientInitError(f"Error initializing Supabase client: {exc}") from exc
    return SupabaseBackend(client, url, key)
