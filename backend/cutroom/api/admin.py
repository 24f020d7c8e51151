"""
Admin endpoints for Cutroom: users, roles and statistics.
"""

from typing import List

from fastapi import APIRouter, Depends

from cutroom.schemas.profile import AdminStatsResponse, ProfileView, RoleUpdateRequest
from cutroom.services import AccessLayer, SessionContext

from .deps import get_access_layer, get_current_context

router = APIRouter()


@router.get("/users", response_model=List[ProfileView])
async def list_users(
    ctx: SessionContext = Depends(get_current_context),
    access: AccessLayer = Depends(get_access_layer),
) -> List[ProfileView]:
    """All users ordered by name."""
    return await access.admin.list_users(ctx)


@router.get("/editors", response_model=List[ProfileView])
async def list_editors(
    ctx: SessionContext = Depends(get_current_context),
    access: AccessLayer = Depends(get_access_layer),
) -> List[ProfileView]:
    return await access.admin.list_editors(ctx)


@router.put("/users/{user_id}/role", response_model=ProfileView)
async def update_user_role(
    user_id: str,
    data: RoleUpdateRequest,
    ctx: SessionContext = Depends(get_current_context),
    access: AccessLayer = Depends(get_access_layer),
) -> ProfileView:
    """
    Change a user's role.

    Raises:
        403: Caller is not an admin, or is changing their own role
        404: User does not exist
    """
    return await access.admin.update_user_role(ctx, user_id, data.role)


@router.get("/stats", response_model=AdminStatsResponse)
async def get_stats(
    ctx: SessionContext = Depends(get_current_context),
    access: AccessLayer = Depends(get_access_layer),
) -> AdminStatsResponse:
    """Project counts for the admin overview, computed on every request."""
    stats = await access.admin.stats(ctx)
    return AdminStatsResponse(**stats.to_dict())
