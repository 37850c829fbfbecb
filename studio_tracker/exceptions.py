"""Typed exceptions raised by the backend wrapper."""

from __future__ import annotations


class ClientInitError(Exception):
    """The Supabase client could not be constructed (usually missing config)."""


class BackendError(Exception):
    """
    The remote service reported an error.

    Auth, PostgREST and transport failures are all normalised to this
    shape so callers never import SDK exception classes.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        hint: str | None = None,
        details: str | None = None,
        status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.hint = hint
        self.details = details
        self.status = status

    def to_dict(self) -> dict[str, str | None]:
        return {
            "message": self.message,
            "code": self.code,
            "hint": self.hint,
            "details": self.details,
        }


class TransportError(BackendError):
    """The remote service could not be reached at all."""


class SessionError(Exception):
    """The session cookie is missing a claim, expired or has a bad signature."""
