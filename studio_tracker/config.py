"""
Application configuration from environment variables.

All settings have sensible defaults for local development, except the
Supabase credentials: without them the backend client is not created and
the app reports a connection problem instead of crashing.
A .env file in the project root is loaded automatically (if present).
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file before reading any env vars
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

# ── Environment ───────────────────────────────────────────────────────────

ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

APP_NAME = "Game Studio Tracker"
APP_VERSION = "0.1.0"

# ── Paths ─────────────────────────────────────────────────────────────────

PACKAGE_DIR = Path(__file__).resolve().parent
MIGRATIONS_DIR = Path(os.getenv("MIGRATIONS_DIR", str(PACKAGE_DIR / "migrations")))

# ── Supabase ──────────────────────────────────────────────────────────────

SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
SUPABASE_ANON_KEY: str = os.getenv("SUPABASE_ANON_KEY", "")

# Direct Postgres connection string. Only reported by the diagnostics
# endpoint; schema changes go through the exec_sql RPC.
DATABASE_URL: str = os.getenv("DATABASE_URL", "")

# Table holding one profile row per auth account.
PROFILE_TABLE = "employees"
DEFAULT_ROLE = "developer"

# ── JWT ───────────────────────────────────────────────────────────────────

JWT_SECRET: str = os.getenv("JWT_SECRET", "dev-secret-change-me-in-production")
JWT_ALGORITHM: str = "HS256"
JWT_EXPIRY_DAYS: int = int(os.getenv("JWT_EXPIRY_DAYS", "7"))

# ── Per-email cooldowns ───────────────────────────────────────────────────

# How often expired cooldown entries are dropped (seconds).
RATE_LIMIT_SWEEP_INTERVAL: float = float(os.getenv("RATE_LIMIT_SWEEP_INTERVAL", "1"))

# ── Per-IP request limits (slowapi syntax) ────────────────────────────────

RATE_LIMIT_AUTH: str = os.getenv("RATE_LIMIT_AUTH", "10/minute")
RATE_LIMIT_DEFAULT: str = os.getenv("RATE_LIMIT_DEFAULT", "60/minute")
