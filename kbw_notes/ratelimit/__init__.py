"""Fixed-window rate limiting for the moderation gateway."""

from kbw_notes.ratelimit.identifier import UNKNOWN_CLIENT, resolve_client_identifier
from kbw_notes.ratelimit.limiter import (
    InMemoryRateLimiter,
    RateLimiter,
    RateLimitWindow,
    RedisRateLimiter,
)


__all__ = [
    "UNKNOWN_CLIENT",
    "InMemoryRateLimiter",
    "RateLimitWindow",
    "RateLimiter",
    "RedisRateLimiter",
    "resolve_client_identifier",
]
