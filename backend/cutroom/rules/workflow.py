"""
Project status state machine.

Every change to a project's ``status`` or ``editor_id`` is planned here
before anything is written. A plan carries the patch to apply and the
values it was computed from; the data store applies the patch only if the
row still holds those values (compare-and-set), so two editors racing to
claim the same project cannot both succeed.

Transitions (actor in brackets):

    new / awaiting_assignment  -> in_progress             [editor claims, admin assigns]
    any non-terminal           -> awaiting_assignment     [admin unassigns]
    in_progress                -> awaiting_client_review  [assigned editor]
    awaiting_client_review     -> revision_requested      [owning client]
    awaiting_client_review     -> approved                [owning client]
    revision_requested         -> in_progress             [assigned editor]
    any non-terminal           -> on_hold / cancelled     [admin]
    on_hold                    -> in_progress / awaiting_assignment  [admin resumes]

``approved`` and ``cancelled`` are terminal. Anything else is rejected with
AuthorizationDenied.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from cutroom.core.errors import AuthorizationDenied, InvalidRequest

from .constants import (
    CLAIMABLE_STATUSES,
    ROLE_ADMIN,
    ROLE_CLIENT,
    ROLE_EDITOR,
    STATUS_APPROVED,
    STATUS_AWAITING_ASSIGNMENT,
    STATUS_AWAITING_CLIENT_REVIEW,
    STATUS_CANCELLED,
    STATUS_IN_PROGRESS,
    STATUS_ON_HOLD,
    STATUS_REVISION_REQUESTED,
    STATUSES,
    TERMINAL_STATUSES,
)

NON_TERMINAL_STATUSES = STATUSES - TERMINAL_STATUSES


@dataclass(frozen=True)
class TransitionPlan:
    """Patch to apply to a project row, guarded by the values it expects."""

    patch: dict
    expected: dict = field(default_factory=dict)


def effective_status(project) -> str:
    """
    Status used by every rule.

    An in-progress project without an editor (left behind by an external
    unassignment) is treated as awaiting assignment.
    """
    if project.status == STATUS_IN_PROGRESS and project.editor_id is None:
        return STATUS_AWAITING_ASSIGNMENT
    return project.status


def is_terminal(project) -> bool:
    return project.status in TERMINAL_STATUSES


def _guarded(project, patch: dict) -> TransitionPlan:
    return TransitionPlan(
        patch=patch,
        expected={"status": project.status, "editor_id": project.editor_id},
    )


# Actor checks return a denial reason, or None when the actor qualifies.

def _assigned_editor(project, actor) -> Optional[str]:
    if actor.role != ROLE_EDITOR or project.editor_id != actor.user_id:
        return "Only the assigned editor can make this change"
    return None


def _owning_client(project, actor) -> Optional[str]:
    if actor.role != ROLE_CLIENT or project.client_id != actor.user_id:
        return "Only the client who owns the project can review it"
    return None


def _admin(project, actor) -> Optional[str]:
    if actor.role != ROLE_ADMIN:
        return "Only admins can make this change"
    return None


def _admin_resume(target: str) -> Callable:
    def check(project, actor) -> Optional[str]:
        reason = _admin(project, actor)
        if reason:
            return reason
        resumed = STATUS_IN_PROGRESS if project.editor_id else STATUS_AWAITING_ASSIGNMENT
        if target != resumed:
            return f"A project on hold resumes to '{resumed}'"
        return None
    return check


# (from statuses, to status, actor check)
STATUS_TRANSITIONS: tuple = (
    (frozenset({STATUS_IN_PROGRESS}), STATUS_AWAITING_CLIENT_REVIEW, _assigned_editor),
    (frozenset({STATUS_AWAITING_CLIENT_REVIEW}), STATUS_REVISION_REQUESTED, _owning_client),
    (frozenset({STATUS_AWAITING_CLIENT_REVIEW}), STATUS_APPROVED, _owning_client),
    (frozenset({STATUS_REVISION_REQUESTED}), STATUS_IN_PROGRESS, _assigned_editor),
    (NON_TERMINAL_STATUSES - {STATUS_ON_HOLD}, STATUS_ON_HOLD, _admin),
    (NON_TERMINAL_STATUSES, STATUS_CANCELLED, _admin),
    (frozenset({STATUS_ON_HOLD}), STATUS_IN_PROGRESS, _admin_resume(STATUS_IN_PROGRESS)),
    (frozenset({STATUS_ON_HOLD}), STATUS_AWAITING_ASSIGNMENT, _admin_resume(STATUS_AWAITING_ASSIGNMENT)),
)


def plan_status_change(project, actor, to_status: str) -> TransitionPlan:
    """
    Plan a status change requested by ``actor``.

    Claiming and (un)assignment change the editor as well and go through
    plan_claim / plan_assignment instead.

    Raises:
        InvalidRequest: If ``to_status`` is not a known status
        AuthorizationDenied: If the transition is not in the table or the
            actor does not qualify for it
    """
    if to_status not in STATUSES:
        raise InvalidRequest(f"Unknown status: {to_status}", field="status")

    current = effective_status(project)
    if current in TERMINAL_STATUSES:
        raise AuthorizationDenied(
            f"Project is {current}; no further status changes are allowed",
            from_status=current,
            to_status=to_status,
        )

    reason = f"Transition from '{current}' to '{to_status}' is not allowed"
    for sources, target, check in STATUS_TRANSITIONS:
        if current in sources and target == to_status:
            denied = check(project, actor)
            if denied is None:
                return _guarded(project, {"status": to_status})
            reason = denied
            break

    raise AuthorizationDenied(reason, from_status=current, to_status=to_status)


def allowed_status_changes(project, actor) -> List[str]:
    """Statuses ``actor`` could move ``project`` to with plan_status_change."""
    current = effective_status(project)
    if current in TERMINAL_STATUSES:
        return []
    return [
        target
        for sources, target, check in STATUS_TRANSITIONS
        if current in sources and check(project, actor) is None
    ]


def plan_claim(project, actor) -> TransitionPlan:
    """
    Plan an editor claiming an unassigned project for themselves.

    Raises:
        AuthorizationDenied: If the actor is not an editor, the project
            already has an editor, or it is not waiting for one
    """
    if actor.role != ROLE_EDITOR:
        raise AuthorizationDenied("Only editors can claim projects")
    if project.editor_id is not None:
        raise AuthorizationDenied("Project has already been claimed")

    current = effective_status(project)
    if current not in CLAIMABLE_STATUSES:
        raise AuthorizationDenied(
            f"Projects in status '{current}' cannot be claimed",
            from_status=current,
            to_status=STATUS_IN_PROGRESS,
        )

    return _guarded(project, {"editor_id": actor.user_id, "status": STATUS_IN_PROGRESS})


def plan_assignment(project, actor, editor_id: Optional[str]) -> TransitionPlan:
    """
    Plan an admin assigning, reassigning or (with ``editor_id=None``)
    unassigning the project's editor.

    Assigning a project that is waiting for an editor starts it
    (in_progress); reassigning keeps the current status. Unassigning always
    returns the project to awaiting_assignment.

    Raises:
        AuthorizationDenied: If the actor is not an admin or the project is
            in a terminal status
    """
    if actor.role != ROLE_ADMIN:
        raise AuthorizationDenied("Only admins can assign editors")
    if is_terminal(project):
        raise AuthorizationDenied(f"Project is {project.status}; the editor can no longer change")

    if editor_id is None:
        return _guarded(project, {"editor_id": None, "status": STATUS_AWAITING_ASSIGNMENT})

    current = effective_status(project)
    status = STATUS_IN_PROGRESS if current in CLAIMABLE_STATUSES else project.status
    return _guarded(project, {"editor_id": editor_id, "status": status})


def can_upload_file(project, actor, file_type: str) -> bool:
    """
    Owning client, assigned editor and admins may attach files.
    Final deliveries come from the assigned editor or an admin only.
    """
    if actor.role == ROLE_ADMIN:
        return True
    is_assigned_editor = actor.role == ROLE_EDITOR and project.editor_id == actor.user_id
    if file_type == "final":
        return is_assigned_editor
    is_owner = actor.role == ROLE_CLIENT and project.client_id == actor.user_id
    return is_owner or is_assigned_editor


def suggests_review(project, actor, file_type: str) -> bool:
    """
    A final file uploaded by the assigned editor while the project is in
    progress suggests moving it to client review. Advisory only.
    """
    return (
        file_type == "final"
        and actor.role == ROLE_EDITOR
        and project.editor_id == actor.user_id
        and effective_status(project) == STATUS_IN_PROGRESS
    )
