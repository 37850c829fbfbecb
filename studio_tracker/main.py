"""Main FastAPI application for Game Studio Tracker."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from studio_tracker.config import (
    APP_NAME,
    APP_VERSION,
    RATE_LIMIT_SWEEP_INTERVAL,
    SUPABASE_ANON_KEY,
    SUPABASE_URL,
)
from studio_tracker.exceptions import ClientInitError
from studio_tracker.rate_limit import limiter
from studio_tracker.routers import auth, diagnostics, health, pages, setup
from studio_tracker.services.backend import create_backend
from studio_tracker.services.rate_limiter import RateLimitSweeper, RateLimitTracker

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the shared Supabase client and cooldown table; start the sweeper."""
    tracker = RateLimitTracker()
    sweeper = RateLimitSweeper(tracker, interval=RATE_LIMIT_SWEEP_INTERVAL)
    app.state.rate_limits = tracker

    try:
        app.state.backend = await create_backend(SUPABASE_URL, SUPABASE_ANON_KEY)
    except ClientInitError as exc:
        logger.error("Supabase client unavailable: %s", exc)
        app.state.backend = None

    await sweeper.start()
    try:
        yield
    finally:
        await sweeper.stop()
        if app.state.backend is not None:
            await app.state.backend.close()


app = FastAPI(
    title=f"{APP_NAME} API",
    description="Sign-in, sign-up and setup for the Game Studio Tracker",
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded: {exc.detail}"},
    )


app.include_router(health.router)
app.include_router(auth.router)
app.include_router(diagnostics.router)
app.include_router(setup.router)
app.include_router(pages.router)
