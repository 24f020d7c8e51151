"""
Rate Limiting Middleware

Provides rate limiting keyed by ACTION CATEGORY (not URL path), so that
parameterized URLs for the same action share one limit
(e.g. /projects/abc/files and /projects/xyz/files).

The limiter fails open: when Redis is unreachable requests are served and a
warning is logged.
"""

import logging
from typing import Callable

from fastapi import Request, Response
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Match

from .config import get_settings
from .redis import get_redis_connection

logger = logging.getLogger(__name__)


# Rate limits by category: (requests, window_seconds)
RATE_LIMITS: dict[str, tuple[int, int]] = {
    "auth": (10, 60),        # 10 sign-in/sign-up/email requests per minute
    "upload": (30, 60),      # 30 uploads per minute
    "default": (500, 60),    # 500 requests per minute
}

# Map route names to rate limit categories
# Route names are defined in FastAPI endpoint decorators: @router.post("/path", name="route_name")
ROUTE_CATEGORIES: dict[str, str] = {
    "sign_in": "auth",
    "sign_up": "auth",
    "resend_confirmation": "auth",
    "reset_password": "auth",
    "update_password": "auth",
    "upload_file": "upload",
}


def get_rate_limit_category(request: Request) -> str:
    """
    Determine the rate limit category from the route name, not URL path.

    Args:
        request: The incoming FastAPI request

    Returns:
        str: Rate limit category name ("auth", "upload", or "default")
    """
    for route in request.app.routes:
        match, _ = route.matches(request.scope)

        if match == Match.FULL:
            route_name = getattr(route, "name", None)

            if route_name and route_name in ROUTE_CATEGORIES:
                return ROUTE_CATEGORIES[route_name]

    return "default"


def get_rate_limit_key(client_id: str, category: str) -> str:
    """
    Generate a Redis key for rate limiting.

    Key format: ratelimit:{client_id}:{category}
    """
    return f"ratelimit:{client_id}:{category}"


def check_rate_limit(client_id: str, category: str) -> tuple[bool, int, int]:
    """
    Check if a request is within rate limits.

    Args:
        client_id: Caller identifier (bearer token prefix or client IP)
        category: Rate limit category

    Returns:
        tuple: (is_allowed, current_count, retry_after_seconds)

    Raises:
        RedisError: If Redis cannot be reached
    """
    limit, window = RATE_LIMITS.get(category, RATE_LIMITS["default"])
    key = get_rate_limit_key(client_id, category)

    redis = get_redis_connection()

    current = redis.get(key)
    current_count = int(current) if current else 0

    if current_count >= limit:
        ttl = redis.ttl(key)
        return False, current_count, max(ttl, 0)

    # Increment counter using pipeline for atomicity
    pipe = redis.pipeline()
    pipe.incr(key)
    pipe.expire(key, window)
    pipe.execute()

    return True, current_count + 1, 0


def get_client_id(request: Request) -> str:
    """Identify the caller by bearer token prefix, falling back to client IP."""
    authorization = request.headers.get("authorization", "")
    if authorization.lower().startswith("bearer "):
        return f"token:{authorization[7:][-16:]}"
    client_host = request.client.host if request.client else "unknown"
    return f"anon:{client_host}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Rate limiting middleware class for FastAPI.

    Usage:
        app.add_middleware(RateLimitMiddleware)

    Rate limit categories and their limits:
    - auth: 10 requests per minute
    - upload: 30 requests per minute
    - default: 500 requests per minute
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not get_settings().rate_limit_enabled:
            return await call_next(request)

        category = get_rate_limit_category(request)
        limit, window = RATE_LIMITS.get(category, RATE_LIMITS["default"])

        try:
            is_allowed, current_count, retry_after = check_rate_limit(
                get_client_id(request), category
            )
        except RedisError as e:
            logger.warning(f"Rate limiter unavailable, allowing request: {e}")
            return await call_next(request)

        if not is_allowed:
            # Return JSONResponse instead of raising HTTPException
            # (HTTPException raised in BaseHTTPMiddleware doesn't get caught by FastAPI handlers)
            return JSONResponse(
                status_code=429,
                content={
                    "detail": {
                        "error": "rate_limit_exceeded",
                        "message": f"Rate limit exceeded for {category}",
                        "category": category,
                        "limit": limit,
                        "window_seconds": window,
                        "retry_after_seconds": retry_after,
                    }
                },
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(max(0, limit - current_count))
        response.headers["X-RateLimit-Category"] = category

        return response
