"""
Setup page – checks the database schema and applies migrations.

The login page redirects here when the profile table is missing.
"""

import logging

from fastapi import APIRouter, Query, Request
from fastapi.responses import HTMLResponse

from studio_tracker.config import MIGRATIONS_DIR
from studio_tracker.dependencies import Backend
from studio_tracker.routers.pages import templates
from studio_tracker.services.bootstrap import BootstrapStatus, check_profile_table
from studio_tracker.services.migrations import apply_migrations, list_migrations
from studio_tracker.services.notifications import Toast

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/setup", tags=["setup"], include_in_schema=False)


def _manual_sql() -> list[tuple[str, str]]:
    """(file name, SQL) pairs shown when the user has to run them by hand."""
    if not MIGRATIONS_DIR.is_dir():
        return []
    return [(p.name, p.read_text(encoding="utf-8")) for p in list_migrations(MIGRATIONS_DIR)]


def _render(
    request: Request,
    *,
    db_status: str = "unknown",
    error_message: str | None = None,
    toast: Toast | None = None,
    manual_sql: list[tuple[str, str]] | None = None,
):
    return templates.TemplateResponse(
        request,
        "pages/setup.html",
        {
            "db_status": db_status,
            "error_message": error_message,
            "flash": toast.as_flash() if toast else None,
            "manual_sql": manual_sql or [],
        },
    )


@router.get("", response_class=HTMLResponse)
async def setup_page(request: Request, notice: str | None = Query(None)):
    toast = None
    if notice == "needs_setup":
        toast = Toast(
            "Database setup needed",
            "Redirecting to setup page to configure your database.",
            destructive=True,
        )
    return _render(request, toast=toast)


@router.post("/check", response_class=HTMLResponse)
async def check_database(request: Request, backend: Backend):
    if backend is None:
        message = "Failed to initialize Supabase client"
        return _render(request, db_status="error", error_message=message)

    result = await check_profile_table(backend)
    if result.status is not BootstrapStatus.READY:
        logger.error("Database check error: %s", result.message)
        return _render(request, db_status="error", error_message=result.message)

    return _render(
        request,
        db_status="ok",
        toast=Toast(
            "Database check successful",
            "Your Supabase database is properly configured.",
        ),
    )


@router.post("/migrate", response_class=HTMLResponse)
async def run_migrations(request: Request, backend: Backend):
    result = await apply_migrations(backend, MIGRATIONS_DIR)
    if not result.success:
        return _render(
            request,
            db_status="error",
            error_message=result.message,
            toast=Toast("Migration failed", result.message, destructive=True),
            manual_sql=_manual_sql() if result.manual_required else None,
        )

    check = await check_profile_table(backend)
    return _render(
        request,
        db_status="ok" if check.ready else "error",
        error_message=None if check.ready else check.message,
        toast=Toast(
            "Migrations applied successfully",
            "Your database schema has been updated.",
        ),
    )
