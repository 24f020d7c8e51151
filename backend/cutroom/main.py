"""
Cutroom Backend API

Main FastAPI application entry point.
"""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cutroom.api import api_router
from cutroom.core.config import get_settings
from cutroom.core.errors import AccessError
from cutroom.core.rate_limit import RateLimitMiddleware
from cutroom.core.redis import check_redis_health, close_connection_pool
from cutroom.services import build_access_layer

# Load settings
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the access layer on start-up and release it on shutdown."""
    access = build_access_layer(settings)
    try:
        await access.initialize()
    except AccessError as e:
        # Keep serving; requests report the problem (e.g. 503 with setup hint)
        logger.error(f"Data store initialization failed: {e.message}")
    app.state.access = access
    yield
    await access.close()
    close_connection_pool()


app = FastAPI(
    title=settings.app_name,
    description="Video editing project management backend",
    version=settings.version,
    lifespan=lifespan,
)


@app.exception_handler(AccessError)
async def access_error_handler(request: Request, exc: AccessError) -> JSONResponse:
    """Render access layer errors in the HTTPException detail shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.to_detail()},
        headers={"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None,
    )


# Request body size limit middleware
@app.middleware("http")
async def limit_request_body_size(request: Request, call_next):
    """
    Middleware to enforce maximum request body size.

    Prevents uploads larger than MAX_UPLOAD_SIZE (default 500MB).
    """
    content_length = request.headers.get("content-length")

    if content_length and content_length.isdigit():
        if int(content_length) > settings.max_upload_size:
            return JSONResponse(
                status_code=413,
                content={
                    "detail": {
                        "error": "request_entity_too_large",
                        "message": f"Request body too large. Maximum size: {settings.max_upload_size} bytes",
                        "max_size_bytes": settings.max_upload_size,
                    }
                },
            )

    return await call_next(request)


# Rate limiting middleware (keyed by action category, not URL)
app.add_middleware(RateLimitMiddleware)

# CORS configuration (loaded from environment)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[
        "X-RateLimit-Limit",
        "X-RateLimit-Remaining",
        "X-RateLimit-Category",
        "Retry-After",
    ],
)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint - API info."""
    return {
        "name": settings.app_name,
        "version": settings.version,
        "data_store": settings.data_store,
        "status": "running",
    }


@app.get("/health")
async def health_check(request: Request):
    """
    Health check endpoint for Docker/orchestration.

    Checks the health of:
    - Data store
    - Redis connection (only when rate limiting is enabled)

    Returns overall status and individual check results.
    """
    checks = {}
    healthy = True

    try:
        await request.app.state.access.check_health()
        checks["data_store"] = {"status": "healthy", "backend": settings.data_store}
    except AccessError as e:
        checks["data_store"] = {"status": "unhealthy", "error": e.error, "message": e.message}
        healthy = False

    if settings.rate_limit_enabled:
        redis_status = check_redis_health()
        if redis_status.healthy:
            checks["redis"] = {
                "status": "healthy",
                "latency_ms": redis_status.latency_ms,
            }
        else:
            checks["redis"] = {
                "status": "unhealthy",
                "error": redis_status.error,
            }
            healthy = False
    else:
        checks["redis"] = {"status": "disabled"}

    return {
        "status": "healthy" if healthy else "unhealthy",
        "checks": checks,
        "version": settings.version,
    }
