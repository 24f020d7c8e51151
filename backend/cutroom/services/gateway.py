"""
Store gateway shared by the access layer services.

Wraps every data store call in a timeout and translates StoreError into
the access layer error taxonomy, so that no store exception reaches a
caller. Also holds the lookups several services need: loading a project
the caller may see and joining profile names onto rows.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Dict, Iterable, List, Optional

from cutroom.core.errors import (
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
from cutroom.rules import TransitionPlan, can_view_project
from cutroom.schemas.project import ProjectView
from cutroom.store.base import (
    EMAIL_NOT_CONFIRMED,
    INVALID_CREDENTIALS,
    INVALID_TOKEN,
    OBJECT_NOT_FOUND,
    UNDEFINED_TABLE,
    UNIQUE_VIOLATION,
    USER_EXISTS,
    DataStore,
    StoreError,
)

from .context import SessionContext

logger = logging.getLogger(__name__)


def translate_store_error(error: StoreError, operation: str) -> AccessError:
    """Map a StoreError code onto the access layer taxonomy."""
    if error.code == UNDEFINED_TABLE:
        return BackendNotInitialized()
    if error.code == UNIQUE_VIOLATION:
        return Conflict(error.message, operation=operation)
    if error.code == INVALID_CREDENTIALS:
        return NotAuthenticated("Invalid email or password")
    if error.code == EMAIL_NOT_CONFIRMED:
        return NotAuthenticated("Email address has not been confirmed", reason="email_not_confirmed")
    if error.code == USER_EXISTS:
        return InvalidRequest("An account with this email already exists", field="email")
    if error.code == INVALID_TOKEN:
        return InvalidRequest(error.message, field="token")
    if error.code == OBJECT_NOT_FOUND:
        return NotFound("object")
    return RemoteFailure(f"Data store request failed during {operation}", operation=operation)


class StoreGateway:
    """
    Timeout-bounded, error-translating access to a DataStore.

    Args:
        store: Data store implementation
        timeout_seconds: Upper bound for each store call
    """

    def __init__(self, store: DataStore, timeout_seconds: float):
        self.store = store
        self.timeout_seconds = timeout_seconds

    async def call(self, operation: str, awaitable: Awaitable) -> Any:
        """
        Await a store call.

        Raises:
            RemoteTimeout: If the call exceeds the configured timeout
            AccessError: The translated StoreError
        """
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(f"Data store call '{operation}' timed out after {self.timeout_seconds}s")
            raise RemoteTimeout(
                f"Data store did not respond within {self.timeout_seconds}s",
                operation=operation,
            )
        except StoreError as e:
            if e.code not in (UNIQUE_VIOLATION, INVALID_CREDENTIALS, EMAIL_NOT_CONFIRMED):
                logger.warning(f"Data store call '{operation}' failed: {e!r}")
            raise translate_store_error(e, operation) from e

    # --- Lookups ---

    async def profiles_by_id(self, ids: Iterable[Optional[str]]) -> Dict[str, dict]:
        """Profile rows keyed by ID for the given (possibly repeated or None) IDs."""
        wanted = sorted({i for i in ids if i})
        if not wanted:
            return {}
        rows = await self.call(
            "select profiles",
            self.store.select("profiles", {"id": wanted}),
        )
        return {row["id"]: row for row in rows}

    async def project_views(self, rows: List[dict]) -> List[ProjectView]:
        """Flatten project rows into views carrying client and editor names."""
        profiles = await self.profiles_by_id(
            [row["client_id"] for row in rows] + [row.get("editor_id") for row in rows]
        )

        def name(user_id: Optional[str]) -> Optional[str]:
            profile = profiles.get(user_id) if user_id else None
            return profile["full_name"] if profile else None

        return [
            ProjectView(
                **row,
                client_name=name(row["client_id"]),
                editor_name=name(row.get("editor_id")),
            )
            for row in rows
        ]

    async def load_project(self, ctx: SessionContext, project_id: str) -> ProjectView:
        """
        Load a project the caller may see.

        Raises:
            NotFound: If the project does not exist or is hidden from the caller
        """
        project = await self.load_project_for_update(project_id)
        if not can_view_project(project, ctx.role, ctx.user_id):
            raise NotFound("project", project_id)
        return project

    async def load_project_for_update(self, project_id: str) -> ProjectView:
        """
        Load a project regardless of who is asking.

        Workflow writes use this so that the transition rules, not the
        visibility policy, decide whether the caller is refused.

        Raises:
            NotFound: If the project does not exist
        """
        rows = await self.call(
            "select project",
            self.store.select("projects", {"id": project_id}),
        )
        if not rows:
            raise NotFound("project", project_id)
        return (await self.project_views(rows))[0]

    async def apply_plan(self, project: ProjectView, plan: TransitionPlan) -> ProjectView:
        """
        Write a transition plan as a conditional update.

        Raises:
            AuthorizationDenied: If the project changed since it was read
        """
        patch = dict(plan.patch)
        patch["updated_at"] = datetime.utcnow()
        row = await self.call(
            "update project",
            self.store.update("projects", project.id, patch, expected=plan.expected),
        )
        if row is None:
            raise AuthorizationDenied(
                "Project was changed by someone else; reload it and try again",
                project_id=project.id,
            )
        return (await self.project_views([row]))[0]
