"""
Unit tests for the rate limiting middleware.

Redis is mocked; the limiter is switched on per test.
"""

from unittest.mock import MagicMock, patch

import pytest
from httpx import AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from cutroom import main
from cutroom.core.config import get_settings
from cutroom.core.rate_limit import RATE_LIMITS, check_rate_limit, get_rate_limit_key
from cutroom.core.redis import RedisHealthStatus, check_redis_health


@pytest.fixture
def rate_limited():
    settings = get_settings().model_copy(update={"rate_limit_enabled": True})
    with patch("cutroom.core.rate_limit.get_settings", return_value=settings):
        yield settings


class TestCheckRateLimit:
    def test_first_request_allowed(self, mock_redis: MagicMock):
        allowed, count, retry_after = check_rate_limit("anon:1.2.3.4", "auth")

        assert (allowed, count, retry_after) == (True, 1, 0)
        pipe = mock_redis.pipeline.return_value
        pipe.incr.assert_called_once_with("ratelimit:anon:1.2.3.4:auth")
        pipe.expire.assert_called_once_with("ratelimit:anon:1.2.3.4:auth", RATE_LIMITS["auth"][1])

    def test_limit_reached(self, mock_redis: MagicMock):
        mock_redis.get.return_value = str(RATE_LIMITS["auth"][0]).encode()

        allowed, count, retry_after = check_rate_limit("anon:1.2.3.4", "auth")

        assert allowed is False
        assert count == RATE_LIMITS["auth"][0]
        assert retry_after == 42
        mock_redis.pipeline.assert_not_called()

    def test_unknown_category_uses_default(self, mock_redis: MagicMock):
        mock_redis.get.return_value = str(RATE_LIMITS["auth"][0]).encode()
        allowed, _, _ = check_rate_limit("anon:1.2.3.4", "unknown")
        assert allowed is True

    def test_key_format(self):
        assert get_rate_limit_key("token:abc", "upload") == "ratelimit:token:abc:upload"


class TestRateLimitMiddleware:
    @pytest.mark.asyncio
    async def test_category_from_route_name(self, async_client: AsyncClient, mock_redis, rate_limited):
        """Sign-in is limited as 'auth', other routes as 'default'."""
        response = await async_client.post(
            "/api/auth/sign-in",
            json={"email": "nobody@example.com", "password": "irrelevant"},
        )
        assert response.headers["X-RateLimit-Category"] == "auth"

        response = await async_client.get("/health")
        assert response.headers["X-RateLimit-Category"] == "default"

    @pytest.mark.asyncio
    async def test_exceeded_returns_429(self, async_client: AsyncClient, mock_redis, rate_limited):
        mock_redis.get.return_value = b"10"

        response = await async_client.post(
            "/api/auth/sign-in",
            json={"email": "nobody@example.com", "password": "irrelevant"},
        )

        assert response.status_code == 429
        detail = response.json()["detail"]
        assert detail["error"] == "rate_limit_exceeded"
        assert detail["category"] == "auth"
        assert response.headers["Retry-After"] == "42"

    @pytest.mark.asyncio
    async def test_fails_open_without_redis(self, async_client: AsyncClient, mock_redis, rate_limited, caplog):
        """An unreachable Redis never blocks requests."""
        mock_redis.get.side_effect = RedisConnectionError("Connection refused")

        response = await async_client.get("/")

        assert response.status_code == 200
        assert "Rate limiter unavailable" in caplog.text

    @pytest.mark.asyncio
    async def test_disabled_limiter_skips_redis(self, async_client: AsyncClient, mock_redis):
        response = await async_client.get("/")

        assert response.status_code == 200
        assert "X-RateLimit-Limit" not in response.headers
        mock_redis.get.assert_not_called()


class TestRedisHealth:
    def test_healthy(self):
        client = MagicMock()
        client.ping.return_value = True
        with patch("cutroom.core.redis.get_redis_connection", return_value=client):
            status = check_redis_health()

        assert status.healthy is True
        assert status.latency_ms is not None

    def test_unreachable(self):
        client = MagicMock()
        client.ping.side_effect = RedisConnectionError("Connection refused")
        with patch("cutroom.core.redis.get_redis_connection", return_value=client):
            status = check_redis_health()

        assert status.healthy is False
        assert "Connection refused" in status.error

    @pytest.mark.asyncio
    async def test_health_endpoint_reports_redis(self, async_client: AsyncClient, monkeypatch):
        """With rate limiting on, an unreachable Redis makes the service unhealthy."""
        monkeypatch.setattr(main, "settings", main.settings.model_copy(update={"rate_limit_enabled": True}))
        monkeypatch.setattr(main, "check_redis_health", lambda: RedisHealthStatus(healthy=False, error="down"))

        response = await async_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["checks"]["redis"] == {"status": "unhealthy", "error": "down"}
