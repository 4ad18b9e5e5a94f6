"""
Upstash Redis integration, used only as the shared rate-limit counter store.

`client` is None until `initialize()` runs in the FastAPI lifespan, and stays
None when no credentials are configured; the rate limiter then counts in
process memory. Consumers read `redis_client.client` at call time.
"""

import logging

from upstash_redis import Redis

from dashboard.config import settings

logger = logging.getLogger(__name__)

client = None  # Redis | None


def initialize() -> None:
    global client

    if not (settings.upstash_redis_url and settings.upstash_redis_token):
        logger.warning("[STARTUP] No Upstash credentials; rate limits are tracked per process")
        return

    try:
        client = Redis(url=settings.upstash_redis_url, token=settings.upstash_redis_token)
        logger.info("[STARTUP] Upstash Redis rate-limit store connected")
    except Exception as e:
        logger.error(f"[STARTUP] Upstash Redis unavailable, using in-memory rate limits: {e}")
        client = None


def reset() -> None:
    """Drop the client on shutdown; the REST client holds no open connection."""
    global client
    client = None
