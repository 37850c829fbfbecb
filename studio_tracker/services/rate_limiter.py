"""
Per-email cooldown tracking for the sign-in / sign-up form.

Supabase answers repeated auth attempts for the same address with a
rate-limit error ("For security purposes, you can only request this after
27 seconds").  The tracker remembers those cooldowns so further attempts
for that email are rejected locally, without another round-trip.

Timestamps and durations are integer milliseconds.  Every method takes an
explicit ``now``; when omitted, the tracker's clock is used.

The table is only touched from the event loop, so no locking is needed.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from studio_tracker.services.background import BackgroundWorker

logger = logging.getLogger(__name__)


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class RateLimitEntry:
    identifier: str
    recorded_at: int
    cooldown_ms: int = 0

    def elapsed(self, now: int) -> int:
        return now - self.recorded_at

    def is_active(self, now: int) -> bool:
        return 0 <= self.elapsed(now) < self.cooldown_ms

    def is_expired(self, now: int) -> bool:
        return self.elapsed(now) >= self.cooldown_ms


class RateLimitTracker:
    """In-memory table of identifier → last attempt and cooldown."""

    def __init__(self, clock: Callable[[], int] = wall_clock_ms) -> None:
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}

    def now(self) -> int:
        return self._clock()

    def _now(self, now: int | None) -> int:
        return self._clock() if now is None else now

    # ── Queries ────────────────────────────────────────────────────────

    def get(self, identifier: str) -> RateLimitEntry | None:
        return self._entries.get(identifier)

    def is_limited(self, identifier: str, now: int | None = None) -> bool:
        if not identifier:
            return False
        entry = self._entries.get(identifier)
        return entry is not None and entry.is_active(self._now(now))

    def remaining_ms(self, identifier: str, now: int | None = None) -> int:
        now = self._now(now)
        if not self.is_limited(identifier, now):
            return 0
        entry = self._entries[identifier]
        return entry.cooldown_ms - entry.elapsed(now)

    def remaining_seconds(self, identifier: str, now: int | None = None) -> int:
        return math.ceil(self.remaining_ms(identifier, now) / 1000)

    # ── Updates ────────────────────────────────────────────────────────

    def record_attempt(self, identifier: str, now: int | None = None) -> None:
        """Note that an attempt was made; this alone never limits."""
        if not identifier:
            return
        self._entries[identifier] = RateLimitEntry(identifier, self._now(now), 0)

    def apply_cooldown(
        self, identifier: str, cooldown_ms: int, now: int | None = None
    ) -> None:
        """Reject *identifier* for *cooldown_ms*, counted from *now*."""
        if not identifier:
            return
        now = self._now(now)
        self._entries[identifier] = RateLimitEntry(identifier, now, max(0, cooldown_ms))
        logger.info(
            "Cooldown of %ds applied for %s", math.ceil(cooldown_ms / 1000), identifier
        )

    def sweep(self, now: int | None = None) -> int:
        """Drop every entry whose cooldown has elapsed. Returns the number removed."""
        now = self._now(now)
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._entries


class RateLimitSweeper(BackgroundWorker):
    """Runs :meth:`RateLimitTracker.sweep` on a fixed interval."""

    def __init__(self, tracker: RateLimitTracker, *, interval: float = 1.0) -> None:
        super().__init__(interval=interval, name="rate-limit-sweeper")
        self._tracker = tracker

    async def _tick(self) -> None:
        removed = self._tracker.sweep()
        if removed:
            logger.debug("Swept %d expired rate-limit entries", removed)
