"""Password strength meter shown under the sign-up form."""

from __future__ import annotations

import re

_CHECKS: tuple[re.Pattern[str], ...] = (
    re.compile(r"[A-Z]"),
    re.compile(r"[a-z]"),
    re.compile(r"[0-9]"),
    re.compile(r"[^A-Za-z0-9]"),
)

# (upper bound inclusive, colour)
_BANDS: tuple[tuple[int, str], ...] = (
    (20, "red"),
    (40, "orange"),
    (60, "yellow"),
    (80, "blue"),
)


def score(password: str) -> int:
    """20 points each for length > 8, upper, lower, digit and symbol."""
    points = 20 if len(password) > 8 else 0
    points += sum(20 for pattern in _CHECKS if pattern.search(password))
    return points


def strength_color(value: int) -> str:
    for upper, color in _BANDS:
        if value <= upper:
            return color
    return "green"
