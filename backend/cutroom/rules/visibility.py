"""
Project visibility policy.

Decides which projects a role may see. The access layer applies this to
every listing and single-project read, whatever the data store already
filtered, so the policy holds even against a store without row-level rules.
"""

from typing import Iterable, List, Optional, TypeVar

from .constants import CLAIMABLE_STATUSES, ROLE_ADMIN, ROLE_CLIENT, ROLE_EDITOR

P = TypeVar("P")


def can_view_project(project, role: Optional[str], user_id: Optional[str]) -> bool:
    """
    Return True if a user with ``role`` and ``user_id`` may see ``project``.

    - admin: every project
    - client: projects they created
    - editor: projects assigned to them, plus unassigned projects that are
      still waiting for an editor (the claimable pool)
    - anything else: nothing

    The pool is decided on the stored status. An in-progress project that
    lost its editor is not listed to editors; admins see it, and an editor
    who knows its ID can still claim it.
    """
    if role == ROLE_ADMIN:
        return True
    if user_id is None:
        return False
    if role == ROLE_CLIENT:
        return project.client_id == user_id
    if role == ROLE_EDITOR:
        if project.editor_id == user_id:
            return True
        return project.editor_id is None and project.status in CLAIMABLE_STATUSES
    return False


def visible_projects(projects: Iterable[P], role: Optional[str], user_id: Optional[str]) -> List[P]:
    """
    Filter ``projects`` down to those visible to the given user.

    Input order is preserved. The result is always a subset of the input.

    Example:
        >>> visible_projects(all_projects, "admin", "u3") == list(all_projects)
        True
    """
    return [p for p in projects if can_view_project(p, role, user_id)]
