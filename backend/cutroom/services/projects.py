"""
Project service.

Listing, creation and brief edits, plus the workflow operations (claim,
assignment, status changes). Workflow operations are planned by
``cutroom.rules.workflow`` and written as conditional updates, so a
project that changed since it was read is never overwritten.

Reads hide projects the caller may not see (NotFound). Workflow writes
load the project unfiltered and let the transition rules refuse the
caller (AuthorizationDenied); only a missing project is NotFound.
"""

import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from cutroom.core.errors import AuthorizationDenied, InvalidRequest, NotFound
from cutroom.rules import (
    allowed_status_changes,
    plan_assignment,
    plan_claim,
    plan_status_change,
    visible_projects,
)
from cutroom.rules.constants import (
    PRIORITY_NORMAL,
    ROLE_ADMIN,
    ROLE_CLIENT,
    ROLE_EDITOR,
    STATUS_NEW,
)
from cutroom.rules.workflow import is_terminal
from cutroom.schemas.project import ProjectCreate, ProjectOverview, ProjectUpdate, ProjectView

from .admin import AdminService
from .comments import CommentService
from .context import SessionContext, require_role
from .files import FileService
from .gateway import StoreGateway

logger = logging.getLogger(__name__)

# Brief fields that may be cleared with an explicit null
NULLABLE_FIELDS = frozenset({"desired_duration_seconds", "notes_for_editor"})


class ProjectService:
    def __init__(
        self,
        gateway: StoreGateway,
        files: FileService,
        comments: CommentService,
        admin: AdminService,
    ):
        self.gateway = gateway
        self.files = files
        self.comments = comments
        self.admin = admin

    @property
    def store(self):
        return self.gateway.store

    async def list(self, ctx: SessionContext) -> List[ProjectView]:
        """Projects visible to the caller, newest first."""
        # Narrow the query where the role allows it; visibility is applied
        # to the result either way.
        filters = {"client_id": ctx.user_id} if ctx.role == ROLE_CLIENT else None
        rows = await self.gateway.call(
            "select projects",
            self.store.select("projects", filters, order_by="created_at", descending=True),
        )
        projects = await self.gateway.project_views(rows)
        return visible_projects(projects, ctx.role, ctx.user_id)

    async def get(self, ctx: SessionContext, project_id: str) -> ProjectView:
        return await self.gateway.load_project(ctx, project_id)

    async def create(self, ctx: SessionContext, data: ProjectCreate) -> ProjectView:
        """
        Submit a new edit request. The caller becomes the project's client.

        Raises:
            AuthorizationDenied: If the caller is not a client
        """
        require_role(ctx, [ROLE_CLIENT], "Only clients can create projects")

        now = datetime.utcnow()
        row = data.model_dump()
        row.update({
            "client_id": ctx.user_id,
            "editor_id": None,
            "status": STATUS_NEW,
            "priority": row.get("priority") or PRIORITY_NORMAL,
            "created_at": now,
            "updated_at": now,
        })
        created = await self.gateway.call("insert project", self.store.insert("projects", row))
        logger.info(f"Project {created['id']} created by client {ctx.user_id}")
        return (await self.gateway.project_views([created]))[0]

    async def update_details(self, ctx: SessionContext, project_id: str, data: ProjectUpdate) -> ProjectView:
        """
        Edit the brief of a non-terminal project.

        Only the fields present in ``data`` change. Status, editor and
        client are never touched here.

        Raises:
            NotFound: If the project is absent or hidden
            AuthorizationDenied: If the caller is neither the owning client
                nor an admin, or the project is approved or cancelled
            InvalidRequest: If a required field is set to null
        """
        project = await self.gateway.load_project(ctx, project_id)
        is_owner = ctx.role == ROLE_CLIENT and project.client_id == ctx.user_id
        if not (is_owner or ctx.is_admin):
            raise AuthorizationDenied("Only the owning client or an admin can edit the brief")
        if is_terminal(project):
            raise AuthorizationDenied(f"Project is {project.status}; the brief can no longer change")

        patch = data.model_dump(exclude_unset=True)
        for key, value in patch.items():
            if value is None and key not in NULLABLE_FIELDS:
                raise InvalidRequest(f"{key} cannot be null", field=key)
        if not patch:
            return project

        patch["updated_at"] = datetime.utcnow()
        row = await self.gateway.call(
            "update project",
            self.store.update("projects", project.id, patch, expected={"status": project.status}),
        )
        if row is None:
            raise AuthorizationDenied(
                "Project was changed by someone else; reload it and try again",
                project_id=project.id,
            )
        return (await self.gateway.project_views([row]))[0]

    async def claim(self, ctx: SessionContext, project_id: str) -> ProjectView:
        """Editor takes an unassigned project; exactly one concurrent claim wins."""
        project = await self.gateway.load_project_for_update(project_id)
        plan = plan_claim(project, ctx)
        updated = await self.gateway.apply_plan(project, plan)
        logger.info(f"Project {project.id} claimed by editor {ctx.user_id}")
        return updated

    async def assign(self, ctx: SessionContext, project_id: str, editor_id: Optional[str]) -> ProjectView:
        """
        Admin assigns an editor, or unassigns with ``editor_id=None``.

        Raises:
            AuthorizationDenied: If the caller is not an admin or the project is terminal
            NotFound: If the project, or the editor profile, does not exist
        """
        require_role(ctx, [ROLE_ADMIN], "Only admins can assign editors")
        if editor_id is not None:
            editors = await self.gateway.call(
                "select editor",
                self.store.select("profiles", {"id": editor_id, "role": ROLE_EDITOR}),
            )
            if not editors:
                raise NotFound("editor", editor_id)

        project = await self.gateway.load_project_for_update(project_id)
        updated = await self.gateway.apply_plan(project, plan_assignment(project, ctx, editor_id))
        logger.info(f"Project {project.id} editor set to {editor_id} by admin {ctx.user_id}")
        return updated

    async def change_status(self, ctx: SessionContext, project_id: str, status: str) -> ProjectView:
        project = await self.gateway.load_project_for_update(project_id)
        plan = plan_status_change(project, ctx, status)
        updated = await self.gateway.apply_plan(project, plan)
        logger.info(f"Project {project.id} moved {project.status} -> {status} by {ctx.user_id}")
        return updated

    async def overview(self, ctx: SessionContext, project_id: str) -> ProjectOverview:
        """
        Project with its files, comments and (for admins) the assignable
        editors, fetched concurrently.
        """
        project = await self.gateway.load_project(ctx, project_id)

        async def no_editors() -> list:
            return []

        files, comments, editors = await asyncio.gather(
            self.files.list_for(project),
            self.comments.list_for(ctx, project),
            self.admin.list_editors(ctx) if ctx.is_admin else no_editors(),
        )
        return ProjectOverview(
            project=project,
            files=files,
            comments=comments,
            editors=editors,
            allowed_status_changes=allowed_status_changes(project, ctx),
        )
