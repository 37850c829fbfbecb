"""User-facing notification text for auth outcomes and setup checks."""

from __future__ import annotations

from dataclasses import dataclass

from studio_tracker.config import APP_NAME
from studio_tracker.services.auth import (
    AuthAttemptResult,
    AuthMode,
    Failure,
    FailureKind,
    NeedsConfirmation,
)
from studio_tracker.services.bootstrap import BootstrapResult, BootstrapStatus


@dataclass(frozen=True)
class Toast:
    title: str
    description: str
    destructive: bool = False

    def as_flash(self) -> dict[str, str]:
        """Shape consumed by the ``flash`` block of the page templates."""
        return {
            "type": "error" if self.destructive else "success",
            "title": self.title,
            "message": self.description,
        }


def auth_toast(mode: AuthMode, result: AuthAttemptResult) -> Toast:
    if isinstance(result, NeedsConfirmation):
        return Toast(
            "Check your email",
            "We've sent you a confirmation email. Please confirm your account.",
        )
    if isinstance(result, Failure):
        if result.kind is FailureKind.RATE_LIMITED:
            title = "Rate limit exceeded" if result.cooldown_started else "Rate limit active"
            return Toast(title, result.message, destructive=True)
        if result.kind is FailureKind.CLIENT_INIT:
            return Toast("Connection error", result.message, destructive=True)
        title = "Sign up failed" if mode is AuthMode.SIGN_UP else "Login failed"
        return Toast(title, result.message, destructive=True)
    if mode is AuthMode.SIGN_UP:
        return Toast(
            f"Welcome to {APP_NAME}!",
            "Your account has been created successfully.",
        )
    return Toast("Welcome back!", f"Successfully logged in to {APP_NAME}.")


def bootstrap_toast(result: BootstrapResult) -> Toast | None:
    if result.status is BootstrapStatus.NEEDS_SETUP:
        return Toast(
            "Database setup needed",
            "Redirecting to setup page to configure your database.",
            destructive=True,
        )
    if result.status is BootstrapStatus.CONNECTION_FAILED:
        return Toast("Connection error", result.message, destructive=True)
    return None
