"""
Pydantic schemas for profiles and admin user management.
"""

from datetime import datetime
from typing import Optional
from urllib.parse import quote_plus

from pydantic import BaseModel

from cutroom.rules.constants import Role


def default_avatar_url(full_name: str) -> str:
    """Generated initials avatar for a display name."""
    return f"https://ui-avatars.com/api/?name={quote_plus(full_name)}&background=random"


class ProfileView(BaseModel):
    """Public profile of a user."""

    id: str
    email: str
    full_name: str
    role: Role
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RoleUpdateRequest(BaseModel):
    """Request schema for changing a user's role."""

    role: Role


class AdminStatsResponse(BaseModel):
    """Aggregate counts for the admin overview."""

    total_projects: int
    active_projects: int
    new_requests: int
    urgent_attention: int
