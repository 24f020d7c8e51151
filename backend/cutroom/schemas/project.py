"""
Pydantic schemas for Project endpoints.

Includes request/response models for project CRUD and workflow operations.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from cutroom.rules.constants import Priority, ProjectStatus

from .comment import CommentView
from .file import ProjectFileView
from .profile import ProfileView

MAX_REFERENCE_LINKS = 20


def _clean_title(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("Title cannot be empty")
    return v


def _clean_platforms(v: Optional[List[str]]) -> Optional[List[str]]:
    """Strip names and drop empties and duplicates, keeping first-seen order."""
    if v is None:
        return v
    seen = []
    for name in v:
        name = name.strip()
        if name and name not in seen:
            seen.append(name)
    return seen


def _clean_links(v: Optional[List[str]]) -> Optional[List[str]]:
    """Strip links and drop empties; order is significant and kept."""
    if v is None:
        return v
    links = [link.strip() for link in v if link.strip()]
    if len(links) > MAX_REFERENCE_LINKS:
        raise ValueError(f"At most {MAX_REFERENCE_LINKS} reference links are allowed")
    for link in links:
        if not link.startswith(("http://", "https://")):
            raise ValueError(f"Reference link must be an http(s) URL: {link}")
    return links


# --- Request Schemas ---

class ProjectCreate(BaseModel):
    """Schema for submitting a new edit request."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)
    editing_style: str = Field(default="General", min_length=1, max_length=100)
    platforms: List[str] = Field(default_factory=list)
    aspect_ratio: str = Field(default="16:9", min_length=1, max_length=20)
    desired_duration_seconds: Optional[int] = Field(
        default=None,
        gt=0,
        le=4 * 3600,
        description="Desired cut length in seconds"
    )
    priority: Priority = "normal"
    due_date: datetime
    reference_links: List[str] = Field(default_factory=list)
    notes_for_editor: Optional[str] = Field(default=None, max_length=5000)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _clean_title(v)

    @field_validator("platforms")
    @classmethod
    def validate_platforms(cls, v: List[str]) -> List[str]:
        return _clean_platforms(v)

    @field_validator("reference_links")
    @classmethod
    def validate_reference_links(cls, v: List[str]) -> List[str]:
        return _clean_links(v)


class ProjectUpdate(BaseModel):
    """
    Schema for editing a project's brief.

    Status, editor and client are not editable here; they change only
    through the workflow endpoints.
    """

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    editing_style: Optional[str] = Field(default=None, min_length=1, max_length=100)
    platforms: Optional[List[str]] = None
    aspect_ratio: Optional[str] = Field(default=None, min_length=1, max_length=20)
    desired_duration_seconds: Optional[int] = Field(default=None, gt=0, le=4 * 3600)
    priority: Optional[Priority] = None
    due_date: Optional[datetime] = None
    reference_links: Optional[List[str]] = None
    notes_for_editor: Optional[str] = Field(default=None, max_length=5000)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        return _clean_title(v)

    @field_validator("platforms")
    @classmethod
    def validate_platforms(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_platforms(v)

    @field_validator("reference_links")
    @classmethod
    def validate_reference_links(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_links(v)


class AssignmentRequest(BaseModel):
    """Assign an editor, or unassign with ``editor_id: null``."""

    editor_id: Optional[str] = None


class StatusChangeRequest(BaseModel):
    status: ProjectStatus


# --- Response Schemas ---

class ProjectView(BaseModel):
    """Project with the client and editor names joined in."""

    id: str
    client_id: str
    editor_id: Optional[str] = None
    title: str
    description: str = ""
    editing_style: str
    platforms: List[str] = []
    aspect_ratio: str
    desired_duration_seconds: Optional[int] = None
    status: ProjectStatus
    priority: Priority
    due_date: datetime
    reference_links: List[str] = []
    notes_for_editor: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    client_name: Optional[str] = None
    editor_name: Optional[str] = None

    model_config = {"from_attributes": True}


class ProjectListResponse(BaseModel):
    """Response for project list endpoint."""

    projects: List[ProjectView]
    total: int


class ProjectOverview(BaseModel):
    """Everything the project detail page needs in one response."""

    project: ProjectView
    files: List[ProjectFileView]
    comments: List[CommentView]
    editors: List[ProfileView] = []
    allowed_status_changes: List[ProjectStatus] = []
