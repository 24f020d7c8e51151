"""
Cutroom API routes package.

Contains all API endpoint routers for the application.
"""

from fastapi import APIRouter

from .admin import router as admin_router
from .auth import router as auth_router
from .projects import router as projects_router
from .storage import router as storage_router

# Main API router that includes all sub-routers
api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["auth"])

# Projects, with their files and comments nested underneath
api_router.include_router(projects_router, prefix="/projects", tags=["projects"])

api_router.include_router(admin_router, prefix="/admin", tags=["admin"])

# Signed object downloads (no session)
api_router.include_router(storage_router, prefix="/storage", tags=["storage"])

__all__ = [
    "api_router",
    "admin_router",
    "auth_router",
    "projects_router",
    "storage_router",
]
