"""
Domain vocabulary: roles, workflow statuses, priorities and file types.
"""

from typing import Literal

# Roles
ROLE_CLIENT = "client"
ROLE_EDITOR = "editor"
ROLE_ADMIN = "admin"

ROLES = frozenset({ROLE_CLIENT, ROLE_EDITOR, ROLE_ADMIN})

Role = Literal["client", "editor", "admin"]

# Workflow statuses
STATUS_NEW = "new"
STATUS_AWAITING_ASSIGNMENT = "awaiting_assignment"
STATUS_IN_PROGRESS = "in_progress"
STATUS_AWAITING_CLIENT_REVIEW = "awaiting_client_review"
STATUS_REVISION_REQUESTED = "revision_requested"
STATUS_APPROVED = "approved"
STATUS_ON_HOLD = "on_hold"
STATUS_CANCELLED = "cancelled"

STATUSES = frozenset({
    STATUS_NEW,
    STATUS_AWAITING_ASSIGNMENT,
    STATUS_IN_PROGRESS,
    STATUS_AWAITING_CLIENT_REVIEW,
    STATUS_REVISION_REQUESTED,
    STATUS_APPROVED,
    STATUS_ON_HOLD,
    STATUS_CANCELLED,
})

ProjectStatus = Literal[
    "new",
    "awaiting_assignment",
    "in_progress",
    "awaiting_client_review",
    "revision_requested",
    "approved",
    "on_hold",
    "cancelled",
]

# No transition leaves a terminal status
TERMINAL_STATUSES = frozenset({STATUS_APPROVED, STATUS_CANCELLED})

# Unassigned projects in these statuses form the editors' claimable pool
CLAIMABLE_STATUSES = frozenset({STATUS_NEW, STATUS_AWAITING_ASSIGNMENT})

# Priorities
PRIORITY_NORMAL = "normal"
PRIORITY_HIGH = "high"
PRIORITY_URGENT = "urgent"

Priority = Literal["normal", "high", "urgent"]

# File types
FILE_TYPE_RAW = "raw"
FILE_TYPE_FINAL = "final"
FILE_TYPE_REFERENCE = "reference"
FILE_TYPE_OTHER = "other"

FileType = Literal["raw", "final", "reference", "other"]
