"""
Admin service: user management and the statistics overview.
"""

import logging
from typing import List

from cutroom.core.errors import AuthorizationDenied, InvalidRequest, NotFound
from cutroom.rules import ProjectStats, compute_stats
from cutroom.rules.constants import ROLE_ADMIN, ROLE_EDITOR, ROLES
from cutroom.schemas.profile import ProfileView
from cutroom.schemas.project import ProjectView

from .context import SessionContext, require_role
from .gateway import StoreGateway

logger = logging.getLogger(__name__)


def _require_admin(ctx: SessionContext) -> None:
    require_role(ctx, [ROLE_ADMIN], "Admin access required")


class AdminService:
    def __init__(self, gateway: StoreGateway):
        self.gateway = gateway

    async def list_users(self, ctx: SessionContext) -> List[ProfileView]:
        """All profiles ordered by full name."""
        _require_admin(ctx)
        rows = await self.gateway.call(
            "select profiles",
            self.gateway.store.select("profiles", order_by="full_name"),
        )
        return [ProfileView(**row) for row in rows]

    async def list_editors(self, ctx: SessionContext) -> List[ProfileView]:
        """Profiles with the editor role, the candidates for assignment."""
        _require_admin(ctx)
        rows = await self.gateway.call(
            "select editors",
            self.gateway.store.select("profiles", {"role": ROLE_EDITOR}, order_by="full_name"),
        )
        return [ProfileView(**row) for row in rows]

    async def update_user_role(self, ctx: SessionContext, user_id: str, role: str) -> ProfileView:
        """
        Change a user's role.

        Raises:
            InvalidRequest: If ``role`` is unknown
            AuthorizationDenied: If the caller is not an admin or targets themselves
            NotFound: If the profile does not exist
        """
        _require_admin(ctx)
        if role not in ROLES:
            raise InvalidRequest(f"Unknown role: {role}", field="role")
        if user_id == ctx.user_id:
            raise AuthorizationDenied("Admins cannot change their own role")

        row = await self.gateway.call(
            "update profile role",
            self.gateway.store.update("profiles", user_id, {"role": role}),
        )
        if row is None:
            raise NotFound("profile", user_id)

        logger.info(f"Admin {ctx.user_id} set role of {user_id} to {role}")
        return ProfileView(**row)

    async def stats(self, ctx: SessionContext) -> ProjectStats:
        """Counts over every project, unfiltered."""
        _require_admin(ctx)
        rows = await self.gateway.call(
            "select projects",
            self.gateway.store.select("projects"),
        )
        return compute_stats(ProjectView(**row) for row in rows)
