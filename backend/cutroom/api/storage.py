"""
Signed download endpoint.

Serves stored objects to anyone holding a valid signed URL, as produced by
the file listing. No session is required.
"""

from urllib.parse import quote

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from cutroom.services import AccessLayer

from .deps import get_access_layer

router = APIRouter()


@router.get("/{bucket}/{path:path}", name="download_object")
async def download_object(
    bucket: str,
    path: str,
    token: str = Query(..., min_length=1),
    access: AccessLayer = Depends(get_access_layer),
) -> Response:
    """
    Return the object's bytes.

    Raises:
        403: Token invalid, expired or issued for another object
        404: Object does not exist
    """
    download = await access.files.download(bucket, path, token)
    return Response(
        content=download.data,
        media_type=download.mime_type,
        headers={
            "Content-Disposition": f"inline; filename*=UTF-8''{quote(download.file_name)}",
            "Cache-Control": "private, max-age=60",
        },
    )
