"""
Schema migrations through the ``exec_sql`` RPC.

Supabase does not expose DDL over its REST API, so migrations are sent
to a SQL function the project owner has to create once::

    create function exec_sql(sql text) returns void
    language plpgsql security definer as $$ begin execute sql; end $$;

If that function is missing, the run stops with ``manual_required`` set and
the setup page tells the user to paste the SQL into the dashboard editor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from studio_tracker.exceptions import BackendError
from studio_tracker.services.backend import SupabaseBackend

logger = logging.getLogger(__name__)

# PostgREST "function not found in schema cache" / Postgres "undefined function".
MISSING_RPC_CODES = frozenset({"PGRST202", "42883"})

MANUAL_INSTRUCTIONS = (
    "Could not apply migrations automatically. You need to run the SQL manually "
    "in the Supabase SQL editor. Please go to your Supabase dashboard and run the "
    "migration SQL files shipped in studio_tracker/migrations."
)


@dataclass
class MigrationResult:
    success: bool
    message: str
    applied: list[str] = field(default_factory=list)
    manual_required: bool = False


def list_migrations(directory: Path) -> list[Path]:
    """All ``.sql`` files in *directory*, in the order they must run."""
    return sorted(p for p in directory.iterdir() if p.suffix == ".sql" and p.is_file())


async def apply_migrations(
    backend: SupabaseBackend | None, directory: Path
) -> MigrationResult:
    if backend is None:
        return MigrationResult(False, "Failed to initialize Supabase client")
    if not directory.is_dir():
        return MigrationResult(False, f"Migrations directory not found: {directory}")

    files = list_migrations(directory)
    if not files:
        return MigrationResult(False, "No SQL migration files found")

    applied: list[str] = []
    for path in files:
        logger.info("Applying migration: %s", path.name)
        try:
            await backend.exec_sql(path.read_text(encoding="utf-8"))
        except BackendError as error:
            logger.error("Migration %s failed: %s (code=%s)", path.name, error.message, error.code)
            if error.code in MISSING_RPC_CODES:
                return MigrationResult(False, MANUAL_INSTRUCTIONS, applied, manual_required=True)
            return MigrationResult(
                False, f"Migration failed for {path.name}: {error.message}", applied
            )
        applied.append(path.name)
        logger.info("Successfully applied migration: %s", path.name)

    return MigrationResult(True, "All migrations applied successfully", applied)
