"""
Per-client request budget for the /api routers.

Counts live in Upstash Redis when it is configured, so every worker shares
one budget per client; otherwise each process keeps its own sliding window.
A Redis error mid-request degrades to the in-process window.
"""

import logging
import time
from collections import deque

from fastapi import HTTPException, Request

from dashboard.config import settings
from dashboard.integrations import redis_client as redis_module

logger = logging.getLogger(__name__)

# {client ip: deque of request timestamps, oldest first}
_rate_limits: dict[str, deque] = {}

RATE_LIMIT_WINDOW = settings.rate_limit_request_window_sec
MAX_REQUESTS_PER_WINDOW = settings.rate_limit_max_requests

TOO_MANY_REQUESTS = "Too many requests from this IP, please try again later."


def get_client_ip(request: Request) -> str:
    """First hop of X-Forwarded-For when behind a proxy, else the peer address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def enforce_rate_limit(request: Request) -> None:
    check_rate_limit(get_client_ip(request))


def check_rate_limit(identifier: str) -> None:
    rc = redis_module.client
    if rc is not None:
        try:
            count = _redis_hit(rc, identifier)
        except Exception as e:
            logger.error(f"[RATE LIMIT] Redis error, counting in memory: {e}")
        else:
            if count > MAX_REQUESTS_PER_WINDOW:
                _reject(identifier, "redis")
            return
    _memory_hit(identifier, time.time())


def _reject(identifier: str, store: str) -> None:
    logger.warning(
        f"[RATE LIMIT] {identifier} exceeded {MAX_REQUESTS_PER_WINDOW} requests"
        f" per {RATE_LIMIT_WINDOW}s ({store})"
    )
    raise HTTPException(
        status_code=429,
        detail=TOO_MANY_REQUESTS,
        headers={"Retry-After": str(RATE_LIMIT_WINDOW)},
    )


def _redis_hit(rc, identifier: str) -> int:
    # Fixed window: the counter expires RATE_LIMIT_WINDOW after its first hit
    key = f"api_rate_limit:{identifier}"
    count = rc.incr(key)
    if count == 1:
        rc.expire(key, RATE_LIMIT_WINDOW)
    return count


def _memory_hit(identifier: str, now: float) -> None:
    if len(_rate_limits) > settings.rate_limit_memory_limit:
        _cleanup_all_limits(now)

    hits = _rate_limits.setdefault(identifier, deque())
    while hits and now - hits[0] >= RATE_LIMIT_WINDOW:
        hits.popleft()

    if len(hits) >= MAX_REQUESTS_PER_WINDOW:
        _reject(identifier, "memory")
    hits.append(now)


def _cleanup_all_limits(now: float) -> None:
    """Forget clients whose newest request has left the window."""
    idle = [k for k, hits in _rate_limits.items() if not hits or now - hits[-1] > RATE_LIMIT_WINDOW]
    for k in idle:
        del _rate_limits[k]
    if idle:
        logger.info(f"[RATE LIMIT] Pruned {len(idle)} idle clients")
