"""
Project file service.

An upload is two sequential store calls: the bytes go to object storage,
then the metadata row is inserted. The calls are not compensated; when the
second one fails the stored object is reported as orphaned and left in
place.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from cutroom.core.config import Settings
from cutroom.core.errors import AccessError, AuthorizationDenied, InvalidRequest, RemoteFailure
from cutroom.core.security import verify_storage_token
from cutroom.core.storage import FILE_TYPES, generate_storage_path
from cutroom.rules import can_upload_file, suggests_review
from cutroom.rules.constants import STATUS_AWAITING_CLIENT_REVIEW
from cutroom.schemas.file import FileUploadResponse, ProjectFileView
from cutroom.schemas.project import ProjectView

from .context import SessionContext
from .gateway import StoreGateway

logger = logging.getLogger(__name__)


@dataclass
class Download:
    data: bytes
    mime_type: str
    file_name: str


class FileService:
    def __init__(self, gateway: StoreGateway, settings: Settings):
        self.gateway = gateway
        self.bucket = settings.storage_bucket
        self.url_ttl_seconds = settings.signed_url_ttl_seconds
        self.max_upload_size = settings.max_upload_size

    async def _signed_url(self, storage_path: str) -> Optional[str]:
        try:
            return await self.gateway.call(
                "sign url",
                self.gateway.store.create_signed_url(self.bucket, storage_path, self.url_ttl_seconds),
            )
        except AccessError as e:
            logger.warning(f"Could not sign URL for {storage_path}: {e.message}")
            return None

    async def _view(self, row: dict) -> ProjectFileView:
        return ProjectFileView(**row, url=await self._signed_url(row["storage_path"]))

    async def list_for(self, project: ProjectView) -> List[ProjectFileView]:
        """Files of an already-authorized project with fresh signed URLs."""
        rows = await self.gateway.call(
            "select files",
            self.gateway.store.select(
                "project_files",
                {"project_id": project.id},
                order_by="created_at",
            ),
        )
        return list(await asyncio.gather(*(self._view(row) for row in rows)))

    async def list(self, ctx: SessionContext, project_id: str) -> List[ProjectFileView]:
        project = await self.gateway.load_project(ctx, project_id)
        return await self.list_for(project)

    async def upload(
        self,
        ctx: SessionContext,
        project_id: str,
        file_name: str,
        data: bytes,
        mime_type: str,
        file_type: str,
    ) -> FileUploadResponse:
        """
        Store a file and record its metadata.

        Uploading a final cut never changes the project status; the response
        suggests the next status when one is likely.

        Raises:
            InvalidRequest: Unknown file type, empty or oversized file
            NotFound: If the project is absent or hidden
            AuthorizationDenied: If the caller may not attach this file type
            RemoteFailure: If the bytes were stored but the metadata was not;
                ``storage_path`` names the orphaned object
        """
        if file_type not in FILE_TYPES:
            raise InvalidRequest(
                f"Invalid file type: {file_type}. Must be one of: {', '.join(sorted(FILE_TYPES))}",
                field="file_type",
            )
        if not data:
            raise InvalidRequest("File is empty", field="file")
        if len(data) > self.max_upload_size:
            raise InvalidRequest(
                f"File exceeds maximum size of {self.max_upload_size} bytes",
                field="file",
            )

        project = await self.gateway.load_project(ctx, project_id)
        if not can_upload_file(project, ctx, file_type):
            raise AuthorizationDenied(
                f"You cannot upload {file_type} files to this project",
                file_type=file_type,
            )

        try:
            storage_path = generate_storage_path(project.id, file_type, file_name)
        except ValueError as e:
            raise InvalidRequest(str(e), field="file")
        mime_type = mime_type or "application/octet-stream"

        await self.gateway.call(
            "upload object",
            self.gateway.store.upload(self.bucket, storage_path, data, mime_type),
        )

        try:
            row = await self.gateway.call(
                "insert file",
                self.gateway.store.insert("project_files", {
                    "project_id": project.id,
                    "uploaded_by": ctx.user_id,
                    "file_type": file_type,
                    "file_name": file_name,
                    "file_size_bytes": len(data),
                    "mime_type": mime_type,
                    "storage_path": storage_path,
                }),
            )
        except AccessError as e:
            logger.warning(
                f"Orphaned object {self.bucket}/{storage_path}: metadata insert failed ({e.error})"
            )
            raise RemoteFailure(
                "File was stored but its metadata could not be saved",
                storage_path=storage_path,
                cause=e.error,
            ) from e

        logger.info(f"Uploaded {file_type} file {row['id']} to project {project.id}")
        suggested = STATUS_AWAITING_CLIENT_REVIEW if suggests_review(project, ctx, file_type) else None
        return FileUploadResponse(file=await self._view(row), suggested_status=suggested)

    async def download(self, bucket: str, path: str, token: str) -> Download:
        """
        Serve an object for a signed URL.

        Raises:
            AuthorizationDenied: If the token is invalid, expired or for another object
            NotFound: If the object does not exist
        """
        if not verify_storage_token(token, bucket, path):
            raise AuthorizationDenied("Link is invalid or has expired")

        data = await self.gateway.call("download object", self.gateway.store.download(bucket, path))
        rows = await self.gateway.call(
            "select file",
            self.gateway.store.select("project_files", {"storage_path": path}),
        )
        if rows:
            return Download(data=data, mime_type=rows[0]["mime_type"], file_name=rows[0]["file_name"])
        return Download(data=data, mime_type="application/octet-stream", file_name=path.rsplit("/", 1)[-1])
