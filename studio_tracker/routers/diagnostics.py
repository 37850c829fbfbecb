"""
Connection diagnostics – probes Supabase auth and the profile table.

Returns 200 only when every probe succeeded, 500 otherwise.  No auth
required: it is meant for checking a fresh deployment's configuration.
"""

import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from studio_tracker.config import (
    DATABASE_URL,
    ENVIRONMENT,
    PROFILE_TABLE,
    SUPABASE_ANON_KEY,
    SUPABASE_URL,
)
from studio_tracker.dependencies import Backend
from studio_tracker.exceptions import BackendError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["diagnostics"])

T = TypeVar("T")


def _diagnostics() -> dict[str, str]:
    """Which settings are present, without revealing secrets."""
    return {
        "supabaseUrl": SUPABASE_URL or "Not set",
        "anonKeyLength": (
            f"{len(SUPABASE_ANON_KEY)} characters" if SUPABASE_ANON_KEY else "Not set"
        ),
        "databaseUrlSet": "Yes" if DATABASE_URL else "No",
        "environment": ENVIRONMENT or "Not set",
    }


async def _probe(call: Awaitable[T]) -> tuple[T | None, BackendError | None]:
    try:
        return await call, None
    except BackendError as error:
        return None, error


def _query_status(rows: Any, error: BackendError | None) -> dict[str, Any]:
    return {
        "success": error is None,
        "data": rows,
        "error": error.to_dict() if error else None,
    }


@router.get(
    "/test-connection",
    operation_id="testConnection",
    summary="Check the Supabase configuration and connectivity",
)
async def test_connection(backend: Backend) -> JSONResponse:
    diagnostics = _diagnostics()

    if backend is None:
        return JSONResponse(
            status_code=500,
            content={
                "status": "error",
                "error": "Failed to initialize Supabase client",
                "diagnostics": diagnostics,
            },
        )

    try:
        session, auth_error = await _probe(backend.get_session())
        employees, employee_error = await _probe(
            backend.select(PROFILE_TABLE, "*", limit=1)
        )
        public, public_error = await _probe(
            backend.select(PROFILE_TABLE, "*", limit=1, count="exact")
        )
    except Exception as exc:
        logger.exception("Connection test failed")
        return JSONResponse(
            status_code=500,
            content={
                "status": "error",
                "message": str(exc),
                "diagnostics": diagnostics,
            },
        )

    failed = auth_error or employee_error or public_error
    public_query = _query_status(public.rows if public else None, public_error)
    public_query["count"] = public.count if public else None

    results = {
        "status": "error" if failed else "success",
        "supabaseConnected": True,
        "authStatus": {
            "success": auth_error is None,
            "session": "Present" if session else "None",
            "error": (
                {"message": auth_error.message, "code": auth_error.code}
                if auth_error
                else None
            ),
        },
        "employeeQuery": _query_status(employees.rows if employees else None, employee_error),
        "publicQuery": public_query,
        "diagnostics": diagnostics,
    }
    return JSONResponse(status_code=500 if failed else 200, content=results)
