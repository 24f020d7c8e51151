"""
Domain rules for project visibility, workflow and statistics.

Pure functions over project-like objects (anything with ``client_id``,
``editor_id``, ``status`` and ``priority`` attributes) and actors (anything
with ``user_id`` and ``role``).
"""

from .stats import ProjectStats, compute_stats
from .visibility import can_view_project, visible_projects
from .workflow import (
    TransitionPlan,
    allowed_status_changes,
    can_upload_file,
    effective_status,
    plan_assignment,
    plan_claim,
    plan_status_change,
    suggests_review,
)

__all__ = [
    "ProjectStats",
    "compute_stats",
    "can_view_project",
    "visible_projects",
    "TransitionPlan",
    "allowed_status_changes",
    "can_upload_file",
    "effective_status",
    "plan_assignment",
    "plan_claim",
    "plan_status_change",
    "suggests_review",
]
