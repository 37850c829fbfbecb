"""Pydantic models for the Game Studio Tracker API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, EmailStr, Field


# ── Backend projections ────────────────────────────────────────────────────


class AuthUser(BaseModel):
    """The parts of a Supabase auth user the app relies on."""
    id: str = Field(..., description="Auth user id (matches auth.uid() in RLS policies)")
    email: str | None = Field(None, description="Login email")
    user_metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def name(self) -> str | None:
        return self.user_metadata.get("name")


class AuthSession(BaseModel):
    """An authenticated Supabase session."""
    access_token: str
    refresh_token: str | None = None
    expires_at: int | None = None
    user: AuthUser | None = None


class EmployeeProfile(BaseModel):
    """Application-level profile row stored in the ``employees`` table."""
    id: str
    email: str
    name: str
    role: str = "developer"
    avatar_url: str | None = None
    attendance_rate: float | None = None
    tasks_total: int | None = None
    tasks_completed: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SelectResult(BaseModel):
    rows: list[dict[str, Any]] = Field(default_factory=list)
    count: int | None = None


# ── Auth API ───────────────────────────────────────────────────────────────


class SignInRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class SignUpRequest(SignInRequest):
    name: str = Field(..., min_length=1, max_length=200, description="Full name")


class UserInfo(BaseModel):
    id: str
    email: str
    name: str | None = None


class AuthResponse(BaseModel):
    message: str
    user: UserInfo


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: Literal["ok"]
    version: str
    backend: Literal["configured", "unavailable"]
    timestamp: datetime
