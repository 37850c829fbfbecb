"""
First-load checks for the login page.

Verifies that Supabase is reachable and that the profile table exists.
A missing table means the schema was never applied, so the page sends the
user to ``/setup``.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from studio_tracker.config import PROFILE_TABLE
from studio_tracker.exceptions import BackendError, TransportError
from studio_tracker.services.backend import SupabaseBackend

logger = logging.getLogger(__name__)

# Postgres "relation does not exist", and PostgREST's schema-cache miss.
MISSING_TABLE_CODES = frozenset({"42P01", "PGRST205"})


class BootstrapStatus(str, enum.Enum):
    READY = "ready"
    NEEDS_SETUP = "needs_setup"
    CONNECTION_FAILED = "connection_failed"


@dataclass(frozen=True)
class BootstrapResult:
    status: BootstrapStatus
    message: str

    @property
    def ready(self) -> bool:
        return self.status is BootstrapStatus.READY


async def check_profile_table(backend: SupabaseBackend) -> BootstrapResult:
    """Issue a minimal select against the profile table."""
    try:
        await backend.select(PROFILE_TABLE, "id", limit=1)
    except TransportError as error:
        return BootstrapResult(BootstrapStatus.CONNECTION_FAILED, error.message)
    except BackendError as error:
        if error.code in MISSING_TABLE_CODES:
            return BootstrapResult(
                BootstrapStatus.NEEDS_SETUP,
                f"{PROFILE_TABLE.capitalize()} table does not exist",
            )
        return BootstrapResult(BootstrapStatus.NEEDS_SETUP, error.message)
    return BootstrapResult(BootstrapStatus.READY, "Database setup is correct")


async def bootstrap(backend: SupabaseBackend | None) -> BootstrapResult:
    if backend is None:
        return BootstrapResult(
            BootstrapStatus.CONNECTION_FAILED,
            "Could not connect to Supabase. Please check your environment variables.",
        )

    try:
        await backend.get_session()
    except TransportError as error:
        logger.error("Supabase unreachable: %s", error.message)
        return BootstrapResult(BootstrapStatus.CONNECTION_FAILED, error.message)
    except BackendError as error:
        # The auth service answered, so the project is reachable.
        logger.warning("get_session failed during bootstrap: %s", error.message)

    result = await check_profile_table(backend)
    if result.status is BootstrapStatus.NEEDS_SETUP:
        logger.info("Database setup issue: %s", result.message)
    return result
