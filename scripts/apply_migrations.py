#!/usr/bin/env python3
"""
Apply the SQL migrations to the configured Supabase project.

Uses the same exec_sql RPC as the /setup page.  Exits with status 0 when
every migration was applied, 1 otherwise.

    python scripts/apply_migrations.py
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from studio_tracker.config import MIGRATIONS_DIR, SUPABASE_ANON_KEY, SUPABASE_URL  # noqa: E402
from studio_tracker.exceptions import ClientInitError  # noqa: E402
from studio_tracker.services.backend import create_backend  # noqa: E402
from studio_tracker.services.migrations import apply_migrations  # noqa: E402

logger = logging.getLogger("apply_migrations")


async def run() -> int:
    try:
        backend = await create_backend(SUPABASE_URL, SUPABASE_ANON_KEY)
    except ClientInitError as exc:
        logger.error("%s", exc)
        return 1

    try:
        result = await apply_migrations(backend, MIGRATIONS_DIR)
    finally:
        await backend.close()

    for name in result.applied:
        print(f"✓ {name}")
    print(result.message)
    return 0 if result.success else 1


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    sys.exit(asyncio.run(run()))
