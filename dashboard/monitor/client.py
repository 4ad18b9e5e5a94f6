"""
Dashboard API client for interactive operations (search, export).

Unlike the alert monitor, failures here are raised as DashboardClientError
so the caller can show them to the user.
"""

import logging
import re
from typing import Optional

import aiohttp

from dashboard.config import settings
from dashboard.integrations import http_client as http_module

logger = logging.getLogger(__name__)

_FILENAME_RE = re.compile(r"filename[^;=\n]*=((['\"]).*?\2|[^;\n]*)")


class DashboardClientError(Exception):
    """An interactive request failed; safe to show to the user."""


def _clean_params(params: dict) -> dict:
    cleaned = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        cleaned[key] = str(value)
    return cleaned


def filename_from_disposition(header: Optional[str], default: str) -> str:
    if header:
        match = _FILENAME_RE.search(header)
        if match and match.group(1):
            return match.group(1).strip("'\"")
    return default


class DashboardClient:
    def __init__(self, base_url: str = None):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")

    async def search(self, query: str, **filters) -> dict:
        params = _clean_params({"query": query, **filters})
        try:
            async with http_module.request_session() as sess:
                async with sess.get(f"{self.base_url}/search", params=params) as response:
                    if response.status != 200:
                        raise DashboardClientError(f"Search failed (HTTP {response.status})")
                    return await response.json()
        except aiohttp.ClientError as e:
            logger.error(f"[CLIENT] Search error: {e}")
            raise DashboardClientError("Search failed, please try again") from e

    async def export(self, kind: str, start_date: str, end_date: str, fmt: str = "csv", **filters) -> tuple[str, bytes]:
        """Downloads `/export/<kind>`; returns (filename, body)."""
        params = _clean_params({"startDate": start_date, "endDate": end_date, "format": fmt, **filters})
        default_name = f"{kind}_{start_date}_{end_date}.{fmt}"
        try:
            async with http_module.request_session() as sess:
                async with sess.get(f"{self.base_url}/export/{kind}", params=params) as response:
                    if response.status != 200:
                        raise DashboardClientError(f"Export failed (HTTP {response.status})")
                    body = await response.read()
                    filename = filename_from_disposition(
                        response.headers.get("Content-Disposition"), default_name
                    )
        except aiohttp.ClientError as e:
            logger.error(f"[CLIENT] Export error: {e}")
            raise DashboardClientError("Export failed, please try again") from e
        logger.info(f"[CLIENT] Exported {filename} ({len(body)} bytes)")
        return filename, body
