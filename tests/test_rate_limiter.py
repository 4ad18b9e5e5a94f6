"""
Unit tests for dashboard/core/rate_limiter.py.

The in-memory path runs with the Redis client set to None. Time is frozen
with unittest.mock.patch to test window sliding without sleeping.
"""

import time
import uuid
from unittest.mock import patch

import pytest
from fastapi import HTTPException

from dashboard.config import settings
from dashboard.core.rate_limiter import (
    RATE_LIMIT_WINDOW,
    _cleanup_all_limits,
    _rate_limits,
    check_rate_limit,
)
from tests.mocks.redis_mock import FailingRedis


def _uid() -> str:
    return f"rl_test_{uuid.uuid4().hex}"


# ---------------------------------------------------------------------------
# In-memory fallback
# ---------------------------------------------------------------------------


def test_requests_under_limit_pass(no_redis):
    uid = _uid()
    for _ in range(settings.rate_limit_max_requests):
        check_rate_limit(uid)  # no exception


def test_request_exceeding_limit_raises_429(no_redis):
    uid = _uid()
    for _ in range(settings.rate_limit_max_requests):
        check_rate_limit(uid)

    with pytest.raises(HTTPException) as exc:
        check_rate_limit(uid)
    assert exc.value.status_code == 429
    assert exc.value.detail == "Too many requests from this IP, please try again later."


def test_limits_are_per_identifier(no_redis):
    uid = _uid()
    for _ in range(settings.rate_limit_max_requests):
        check_rate_limit(uid)
    check_rate_limit(_uid())  # a different client is unaffected


def test_new_window_allows_requests_again(no_redis):
    uid = _uid()
    for _ in range(settings.rate_limit_max_requests):
        check_rate_limit(uid)

    future_time = time.time() + RATE_LIMIT_WINDOW + 1
    with patch("dashboard.core.rate_limiter.time") as mock_time:
        mock_time.time.return_value = future_time
        check_rate_limit(uid)


def test_cleanup_removes_idle_sessions(no_redis):
    uid = _uid()
    _rate_limits[uid] = [time.time() - RATE_LIMIT_WINDOW - 5]

    _cleanup_all_limits(time.time())

    assert uid not in _rate_limits


# ---------------------------------------------------------------------------
# Redis path
# ---------------------------------------------------------------------------


def test_redis_counter_enforces_limit(mock_redis):
    uid = _uid()
    for _ in range(settings.rate_limit_max_requests):
        check_rate_limit(uid)

    with pytest.raises(HTTPException) as exc:
        check_rate_limit(uid)
    assert exc.value.status_code == 429
    assert mock_redis.get(f"api_rate_limit:{uid}") == str(settings.rate_limit_max_requests + 1)
    assert uid not in _rate_limits


def test_redis_failure_falls_back_to_memory(monkeypatch):
    from dashboard.integrations import redis_client as rc

    monkeypatch.setattr(rc, "client", FailingRedis())
    uid = _uid()
    check_rate_limit(uid)

    assert len(_rate_limits[uid]) == 1


# ---------------------------------------------------------------------------
# Applied to routes
# ---------------------------------------------------------------------------


def test_api_routes_rate_limited_by_forwarded_ip(client):
    headers = {"x-forwarded-for": "203.0.113.7, 10.0.0.1"}
    for _ in range(settings.rate_limit_max_requests):
        assert client.get("/api/platforms/list", headers=headers).status_code == 200

    response = client.get("/api/platforms/list", headers=headers)
    assert response.status_code == 429
    assert "203.0.113.7" in _rate_limits

    # Another client still gets through
    assert client.get("/api/platforms/list", headers={"x-forwarded-for": "198.51.100.1"}).status_code == 200
