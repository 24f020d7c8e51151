"""
Pydantic schemas for project files.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from cutroom.rules.constants import FileType, ProjectStatus


class ProjectFileView(BaseModel):
    """
    File metadata with a signed download URL.

    ``url`` is regenerated on every listing and expires after the configured
    TTL; it is null when signing failed.
    """

    id: str
    project_id: str
    uploaded_by: str
    file_type: FileType
    file_name: str
    file_size_bytes: int
    mime_type: str
    storage_path: str
    created_at: datetime
    url: Optional[str] = None

    model_config = {"from_attributes": True}


class FileUploadResponse(BaseModel):
    """
    Response after uploading a file.

    ``suggested_status`` is set when the upload makes a status change likely
    (a final cut delivered by the assigned editor). It is advisory only.
    """

    file: ProjectFileView
    suggested_status: Optional[ProjectStatus] = None
