"""
Project endpoints for Cutroom.

Covers the project list and brief, the workflow actions (claim, assignment,
status changes) and the files and comments nested under a project.
"""

from typing import List

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from cutroom.schemas.comment import CommentCreate, CommentView
from cutroom.schemas.file import FileUploadResponse, ProjectFileView
from cutroom.schemas.project import (
    AssignmentRequest,
    ProjectCreate,
    ProjectListResponse,
    ProjectOverview,
    ProjectUpdate,
    ProjectView,
    StatusChangeRequest,
)
from cutroom.services import AccessLayer, SessionContext

from .deps import get_access_layer, get_current_context

router = APIRouter()


# =============================================================================
# Projects
# =============================================================================


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    ctx: SessionContext = Depends(get_current_context),
    access: AccessLayer = Depends(get_access_layer),
) -> ProjectListResponse:
    """
    List projects visible to the current user, newest first.

    Admins see everything, clients their own projects, editors their
    assigned projects plus the unassigned ones they could claim.
    """
    projects = await access.projects.list(ctx)
    return ProjectListResponse(projects=projects, total=len(projects))


@router.post("", response_model=ProjectView, status_code=status.HTTP_201_CREATED)
async def create_project(
    data: ProjectCreate,
    ctx: SessionContext = Depends(get_current_context),
    access: AccessLayer = Depends(get_access_layer),
) -> ProjectView:
    """
    Submit a new edit request (clients only).

    Raises:
        403: If the caller is not a client
    """
    return await access.projects.create(ctx, data)


@router.get("/{project_id}", response_model=ProjectView)
async def get_project(
    project_id: str,
    ctx: SessionContext = Depends(get_current_context),
    access: AccessLayer = Depends(get_access_layer),
) -> ProjectView:
    """
    Get a single project.

    Raises:
        404: If the project does not exist or is not visible to the caller
    """
    return await access.projects.get(ctx, project_id)


@router.patch("/{project_id}", response_model=ProjectView)
async def update_project(
    project_id: str,
    data: ProjectUpdate,
    ctx: SessionContext = Depends(get_current_context),
    access: AccessLayer = Depends(get_access_layer),
) -> ProjectView:
    """Edit the brief. Owning client or admin, while the project is open."""
    return await access.projects.update_details(ctx, project_id, data)


@router.get("/{project_id}/overview", response_model=ProjectOverview)
async def get_project_overview(
    project_id: str,
    ctx: SessionContext = Depends(get_current_context),
    access: AccessLayer = Depends(get_access_layer),
) -> ProjectOverview:
    """Project, files, comments and the caller's allowed status changes."""
    return await access.projects.overview(ctx, project_id)


# =============================================================================
# Workflow
# =============================================================================


@router.post("/{project_id}/claim", response_model=ProjectView)
async def claim_project(
    project_id: str,
    ctx: SessionContext = Depends(get_current_context),
    access: AccessLayer = Depends(get_access_layer),
) -> ProjectView:
    """
    Claim an unassigned project (editors only).

    Raises:
        403: Not an editor, already claimed, or not waiting for an editor
    """
    return await access.projects.claim(ctx, project_id)


@router.put("/{project_id}/assignment", response_model=ProjectView)
async def assign_editor(
    project_id: str,
    data: AssignmentRequest,
    ctx: SessionContext = Depends(get_current_context),
    access: AccessLayer = Depends(get_access_layer),
) -> ProjectView:
    """
    Assign an editor, or unassign with ``{"editor_id": null}`` (admins only).

    Raises:
        404: If the editor does not exist
    """
    return await access.projects.assign(ctx, project_id, data.editor_id)


@router.post("/{project_id}/status", response_model=ProjectView)
async def change_project_status(
    project_id: str,
    data: StatusChangeRequest,
    ctx: SessionContext = Depends(get_current_context),
    access: AccessLayer = Depends(get_access_layer),
) -> ProjectView:
    """
    Move the project to another status.

    Raises:
        403: If the transition is not allowed for the caller
    """
    return await access.projects.change_status(ctx, project_id, data.status)


# =============================================================================
# Files
# =============================================================================


@router.get("/{project_id}/files", response_model=List[ProjectFileView])
async def list_project_files(
    project_id: str,
    ctx: SessionContext = Depends(get_current_context),
    access: AccessLayer = Depends(get_access_layer),
) -> List[ProjectFileView]:
    """List files with freshly signed download URLs."""
    return await access.files.list(ctx, project_id)


@router.post(
    "/{project_id}/files",
    response_model=FileUploadResponse,
    status_code=status.HTTP_201_CREATED,
    name="upload_file",
)
async def upload_project_file(
    project_id: str,
    file: UploadFile = File(..., description="File to attach"),
    file_type: str = Form("raw", description="raw, final, reference or other"),
    ctx: SessionContext = Depends(get_current_context),
    access: AccessLayer = Depends(get_access_layer),
) -> FileUploadResponse:
    """
    Upload a file to a project.

    Final cuts can only come from the assigned editor or an admin. The
    response's ``suggested_status`` hints at the next workflow step; the
    status itself is not changed.

    Raises:
        400: Invalid file type, empty file or file too large
        403: Caller may not upload this file type
        502: File stored but metadata not saved (``storage_path`` names it)
    """
    data = await file.read()
    return await access.files.upload(
        ctx,
        project_id,
        file_name=file.filename or "upload",
        data=data,
        mime_type=file.content_type or "application/octet-stream",
        file_type=file_type,
    )


# =============================================================================
# Comments
# =============================================================================


@router.get("/{project_id}/comments", response_model=List[CommentView])
async def list_project_comments(
    project_id: str,
    ctx: SessionContext = Depends(get_current_context),
    access: AccessLayer = Depends(get_access_layer),
) -> List[CommentView]:
    """Comments oldest first; internal comments are hidden from clients."""
    return await access.comments.list(ctx, project_id)


@router.post(
    "/{project_id}/comments",
    response_model=CommentView,
    status_code=status.HTTP_201_CREATED,
)
async def create_project_comment(
    project_id: str,
    data: CommentCreate,
    ctx: SessionContext = Depends(get_current_context),
    access: AccessLayer = Depends(get_access_layer),
) -> CommentView:
    return await access.comments.create(ctx, project_id, data.body, data.is_internal)
