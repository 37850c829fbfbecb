"""
Per-IP request limits (slowapi).

Keyed on client IP and independent from the per-email cooldowns in
``services.rate_limiter``, which only react to Supabase's own rate-limit
answers.  Both tiers are configurable, see ``config.RATE_LIMIT_*``.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from studio_tracker.config import RATE_LIMIT_AUTH, RATE_LIMIT_DEFAULT

AUTH = RATE_LIMIT_AUTH          # sign-in / sign-up submissions
DEFAULT = RATE_LIMIT_DEFAULT    # every other route

limiter = Limiter(key_func=get_remote_address, default_limits=[DEFAULT])
