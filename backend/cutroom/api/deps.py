"""
Common dependencies for Cutroom API endpoints.

Provides the access layer and the caller's session context to route
handlers.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from cutroom.core.errors import NotAuthenticated
from cutroom.services import AccessLayer, SessionContext

# HTTP Bearer token scheme; a missing header is reported as NotAuthenticated
security = HTTPBearer(auto_error=False)


def get_access_layer(request: Request) -> AccessLayer:
    """
    Access layer built at application start-up.

    Usage:
        @router.get("/items")
        async def get_items(access: AccessLayer = Depends(get_access_layer)):
            ...
    """
    return request.app.state.access


async def get_current_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    access: AccessLayer = Depends(get_access_layer),
) -> SessionContext:
    """
    Resolve the bearer token to the caller's session context.

    Raises:
        NotAuthenticated: If the header is missing or the session is invalid
    """
    if credentials is None or not credentials.credentials:
        raise NotAuthenticated("Missing bearer token")
    return await access.auth.resolve_session(credentials.credentials)


__all__ = [
    "get_access_layer",
    "get_current_context",
    "security",
]
