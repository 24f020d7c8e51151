"""
Comment service.

Comments are append-only and listed oldest first. Internal comments are
staff notes: only editors and admins can read or post them.
"""

import logging
from typing import List

from cutroom.core.errors import AuthorizationDenied, InvalidRequest
from cutroom.schemas.comment import CommentView
from cutroom.schemas.project import ProjectView

from .context import SessionContext
from .gateway import StoreGateway

logger = logging.getLogger(__name__)


class CommentService:
    def __init__(self, gateway: StoreGateway):
        self.gateway = gateway

    async def _views(self, rows: List[dict]) -> List[CommentView]:
        authors = await self.gateway.profiles_by_id(row["author_id"] for row in rows)
        views = []
        for row in rows:
            author = authors.get(row["author_id"])
            views.append(CommentView(
                **row,
                author_name=author["full_name"] if author else None,
                author_role=author["role"] if author else None,
            ))
        return views

    async def list_for(self, ctx: SessionContext, project: ProjectView) -> List[CommentView]:
        """Comments on an already-authorized project, oldest first."""
        rows = await self.gateway.call(
            "select comments",
            self.gateway.store.select(
                "comments",
                {"project_id": project.id},
                order_by="created_at",
            ),
        )
        if not ctx.is_staff:
            rows = [row for row in rows if not row["is_internal"]]
        return await self._views(rows)

    async def list(self, ctx: SessionContext, project_id: str) -> List[CommentView]:
        project = await self.gateway.load_project(ctx, project_id)
        return await self.list_for(ctx, project)

    async def create(
        self,
        ctx: SessionContext,
        project_id: str,
        body: str,
        is_internal: bool = False,
    ) -> CommentView:
        """
        Post a comment on a project the caller can see.

        Raises:
            InvalidRequest: If the body is blank
            AuthorizationDenied: If a client posts an internal comment
            NotFound: If the project is absent or hidden
        """
        body = body.strip()
        if not body:
            raise InvalidRequest("Comment cannot be empty", field="body")
        if is_internal and not ctx.is_staff:
            raise AuthorizationDenied("Only editors and admins can post internal comments")

        project = await self.gateway.load_project(ctx, project_id)
        row = await self.gateway.call(
            "insert comment",
            self.gateway.store.insert("comments", {
                "project_id": project.id,
                "author_id": ctx.user_id,
                "body": body,
                "is_internal": is_internal,
            }),
        )
        logger.info(f"Comment {row['id']} added to project {project.id} by {ctx.user_id}")
        return (await self._views([row]))[0]
