"""Per-client rate limiting for lookups."""
import os
import time
from collections import defaultdict

from fastapi import Request

RATE_LIMIT_REQUESTS = int(os.environ.get("FASTDICT_RATE_LIMIT", "30"))
RATE_LIMIT_WINDOW = 60
_rate_buckets: dict = defaultdict(list)
_rate_check_counter = 0


def get_rate_limit_key(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def rate_limit_check(ip: str) -> bool:
    """Return True if request is allowed, False if rate-limited."""
    now = time.time()
    cutoff = now - RATE_LIMIT_WINDOW
    _rate_buckets[ip] = [t for t in _rate_buckets[ip] if t > cutoff]
    if len(_rate_buckets[ip]) >= RATE_LIMIT_REQUESTS:
        return False
    _rate_buckets[ip].append(now)
    return True


def rate_limit_cleanup():
    global _rate_check_counter
    _rate_check_counter += 1
    if _rate_check_counter % 100 == 0:
        now = time.time()
        cutoff = now - RATE_LIMIT_WINDOW
        stale = [ip for ip, ts in _rate_buckets.items() if not ts or ts[-1] < cutoff]
        for ip in stale:
            del _rate_buckets[ip]


def allow_request(request: Request) -> bool:
    rate_limit_cleanup()
    return rate_limit_check(get_rate_limit_key(request))


def reset_rate_limits():
    _rate_buckets.clear()
