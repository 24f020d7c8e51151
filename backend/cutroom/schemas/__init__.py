"""
Pydantic schemas for Cutroom API.
"""

from .auth import (
    ConfirmEmailRequest,
    EmailRequest,
    MessageResponse,
    PasswordUpdateRequest,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    SignUpResponse,
)
from .comment import CommentCreate, CommentView
from .file import FileUploadResponse, ProjectFileView
from .profile import AdminStatsResponse, ProfileView, RoleUpdateRequest
from .project import (
    AssignmentRequest,
    ProjectCreate,
    ProjectListResponse,
    ProjectOverview,
    ProjectUpdate,
    ProjectView,
    StatusChangeRequest,
)

__all__ = [
    # Auth schemas
    "ConfirmEmailRequest",
    "EmailRequest",
    "MessageResponse",
    "PasswordUpdateRequest",
    "SessionResponse",
    "SignInRequest",
    "SignUpRequest",
    "SignUpResponse",
    # Comment schemas
    "CommentCreate",
    "CommentView",
    # File schemas
    "FileUploadResponse",
    "ProjectFileView",
    # Profile schemas
    "AdminStatsResponse",
    "ProfileView",
    "RoleUpdateRequest",
    # Project schemas
    "AssignmentRequest",
    "ProjectCreate",
    "ProjectListResponse",
    "ProjectOverview",
    "ProjectUpdate",
    "ProjectView",
    "StatusChangeRequest",
]
