"""
Redis client for the API rate limiter.

Redis holds the per-caller request counters and nothing else; the data
store never touches it. One pooled client is shared by the rate limiter
and the health endpoint, and the pool is released on shutdown.
"""

import time
from dataclasses import dataclass
from typing import Optional

from redis import ConnectionPool, Redis
from redis.exceptions import RedisError

from .config import get_settings

# Counter lookups sit on the request path, so connection attempts are short
SOCKET_TIMEOUT_SECONDS = 2.0

_connection_pool: Optional[ConnectionPool] = None


def get_connection_pool() -> ConnectionPool:
    """Create the shared pool for ``REDIS_URL`` on first use."""
    global _connection_pool

    if _connection_pool is None:
        _connection_pool = ConnectionPool.from_url(
            get_settings().redis_url,
            max_connections=10,
            socket_timeout=SOCKET_TIMEOUT_SECONDS,
            socket_connect_timeout=SOCKET_TIMEOUT_SECONDS,
            decode_responses=True,
        )

    return _connection_pool


def get_redis_connection() -> Redis:
    """
    Redis client backed by the shared pool.

    Example:
        >>> redis = get_redis_connection()
        >>> redis.incr("ratelimit:anon:127.0.0.1:default")
        1
    """
    return Redis(connection_pool=get_connection_pool())


@dataclass
class RedisHealthStatus:
    healthy: bool
    latency_ms: Optional[float] = None
    error: Optional[str] = None


def check_redis_health() -> RedisHealthStatus:
    """PING Redis through the shared pool and report the round-trip latency."""
    try:
        start = time.perf_counter()
        pong = get_redis_connection().ping()
        latency_ms = (time.perf_counter() - start) * 1000
    except RedisError as e:
        return RedisHealthStatus(healthy=False, error=f"{type(e).__name__}: {e}")

    if not pong:
        return RedisHealthStatus(healthy=False, error="PING returned False")
    return RedisHealthStatus(healthy=True, latency_ms=round(latency_ms, 2))


def close_connection_pool() -> None:
    """Disconnect and forget the shared pool (application shutdown)."""
    global _connection_pool

    if _connection_pool is not None:
        _connection_pool.disconnect()
        _connection_pool = None
