#!/usr/bin/env python3
"""
Run the Game Studio Tracker web app under uvicorn.

Settings come from the environment (or .env):
API_HOST, API_PORT, API_RELOAD and LOG_LEVEL.
"""

import logging
import os

import uvicorn


def main() -> None:
    log_level = os.getenv("LOG_LEVEL", "info").lower()
    # uvicorn only configures its own loggers; route app loggers to stderr too.
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    uvicorn.run(
        "studio_tracker.main:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", "8000")),
        reload=os.getenv("API_RELOAD", "false").lower() == "true",
        log_level=log_level,
    )


if __name__ == "__main__":
    main()
