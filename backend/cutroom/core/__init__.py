# Core modules for Cutroom backend
from .config import Settings, get_settings
from .database import Base, build_engine, build_session_factory, create_all_tables, drop_all_tables
from .errors import (
    AccessError,
    AuthorizationDenied,
    BackendNotInitialized,
    Conflict,
    InvalidRequest,
    NotAuthenticated,
    NotFound,
    RemoteFailure,
    RemoteTimeout,
)
from .rate_limit import RateLimitMiddleware, RATE_LIMITS, ROUTE_CATEGORIES, get_rate_limit_category
from .redis import check_redis_health, get_redis_connection, RedisHealthStatus
from .security import (
    create_access_token,
    create_email_token,
    create_storage_token,
    decode_token,
    hash_password,
    read_email_token,
    verify_password,
    verify_storage_token,
)
from .storage import FILE_TYPES, LocalObjectStorage, build_signed_url, generate_storage_path, sanitize_filename

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Database
    "Base",
    "build_engine",
    "build_session_factory",
    "create_all_tables",
    "drop_all_tables",
    # Errors
    "AccessError",
    "AuthorizationDenied",
    "BackendNotInitialized",
    "Conflict",
    "InvalidRequest",
    "NotAuthenticated",
    "NotFound",
    "RemoteFailure",
    "RemoteTimeout",
    # Rate Limiting
    "RateLimitMiddleware",
    "RATE_LIMITS",
    "ROUTE_CATEGORIES",
    "get_rate_limit_category",
    # Redis
    "check_redis_health",
    "get_redis_connection",
    "RedisHealthStatus",
    # Security
    "create_access_token",
    "create_email_token",
    "create_storage_token",
    "decode_token",
    "hash_password",
    "read_email_token",
    "verify_password",
    "verify_storage_token",
    # Storage
    "FILE_TYPES",
    "LocalObjectStorage",
    "build_signed_url",
    "generate_storage_path",
    "sanitize_filename",
]
