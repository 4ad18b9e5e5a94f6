"""
Outbound HTTP for the monitor side: alert polling and the dashboard client.

The runner opens one shared aiohttp ClientSession with `initialize()` and
closes it on exit. Calls made without it (tests, one-off scripts) get a
throwaway session scoped to the request.

    async with http_client.request_session() as sess:
        async with sess.get(url, params=params) as response:
            ...
"""

import logging
from contextlib import asynccontextmanager

import aiohttp

from dashboard.config import settings

logger = logging.getLogger(__name__)

USER_AGENT = "deepfake-dashboard-monitor/0.1"

session: aiohttp.ClientSession | None = None


def _new_session() -> aiohttp.ClientSession:
    return aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=settings.http_timeout_sec),
        headers={"Accept": "application/json", "User-Agent": USER_AGENT},
    )


async def initialize() -> None:
    global session
    if session is None or session.closed:
        session = _new_session()
        logger.info(f"[STARTUP] HTTP session opened (timeout {settings.http_timeout_sec}s)")


async def close() -> None:
    global session
    if session is not None and not session.closed:
        await session.close()
        logger.info("[SHUTDOWN] HTTP session closed")
    session = None


@asynccontextmanager
async def request_session():
    if session is not None and not session.closed:
        yield session
        return
    async with _new_session() as tmp:
        yield tmp
