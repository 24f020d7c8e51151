"""
Object Storage & Path Security

Provides bucket/path object storage on the local filesystem with:
- Path traversal prevention
- Filename sanitization
- Storage path generation for project files
- Signed URL construction
"""

import os
import re
from pathlib import Path
from urllib.parse import quote
from uuid import uuid4

import aiofiles


# Valid project file categories (also used as the middle path segment)
FILE_TYPES: set[str] = {"raw", "final", "reference", "other"}

_BUCKET_RE = re.compile(r"^[a-z0-9][a-z0-9._-]{0,62}$")


def sanitize_filename(filename: str) -> str:
    """
    Sanitize a filename to prevent path traversal and other security issues.

    - Strips directory components (basename only)
    - Removes null bytes
    - Replaces anything but letters, digits, dots, dashes and underscores
    - Limits filename length to 100 characters (excluding extension)

    Args:
        filename: Original filename to sanitize

    Returns:
        str: Sanitized filename safe for filesystem use and URLs

    Example:
        >>> sanitize_filename("../../../etc/passwd")
        'passwd'
        >>> sanitize_filename("my clip (v2).mp4")
        'my_clip__v2_.mp4'
    """
    # Get only the base filename (prevents ../.. attacks)
    filename = os.path.basename(filename.replace("\\", "/"))

    # Remove null bytes (can bypass security checks)
    filename = filename.replace("\x00", "")

    name, ext = os.path.splitext(filename)
    name = re.sub(r"[^A-Za-z0-9._-]", "_", name).strip(". ")
    ext = re.sub(r"[^A-Za-z0-9.]", "", ext)

    # Limit name length (preserve extension)
    name = name[:100]

    # If name is empty after sanitization, generate a random one
    if not name:
        name = uuid4().hex[:8]

    return f"{name}{ext}"


def generate_storage_path(project_id: str, file_type: str, filename: str) -> str:
    """
    Generate the object path for an uploaded project file.

    The path is structured as:
        {project_id}/{file_type}/{random}_{sanitized_filename}

    The random prefix prevents collisions between uploads of the same name.

    Raises:
        ValueError: If file_type is not a known category or project_id is
            not a single safe path segment
    """
    if file_type not in FILE_TYPES:
        raise ValueError(f"Invalid file type: {file_type}. Must be one of: {', '.join(sorted(FILE_TYPES))}")
    if not project_id or sanitize_filename(project_id) != project_id:
        raise ValueError("Invalid project ID for storage path")

    return f"{project_id}/{file_type}/{uuid4().hex[:12]}_{sanitize_filename(filename)}"


def build_signed_url(base_url: str, bucket: str, path: str, token: str) -> str:
    """Public URL serving ``bucket/path`` when presented with ``token``."""
    return f"{base_url.rstrip('/')}/api/storage/{quote(bucket)}/{quote(path)}?token={quote(token)}"


class LocalObjectStorage:
    """
    Bucket-based object storage rooted at a local directory.

    Objects live at ``{root}/{bucket}/{path}``. Paths are validated so that
    nothing can be written or read outside the root.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()

    def resolve(self, bucket: str, path: str) -> Path:
        """
        Resolve an object location, verifying it stays within the root.

        Raises:
            ValueError: If the bucket name is invalid or path traversal is detected
        """
        if not _BUCKET_RE.match(bucket):
            raise ValueError(f"Invalid bucket name: {bucket}")
        if not path or "\x00" in path or path.startswith("/"):
            raise ValueError("Invalid object path")

        resolved = (self.root / bucket / path).resolve()
        bucket_root = (self.root / bucket).resolve()

        if not str(resolved).startswith(str(bucket_root) + os.sep):
            raise ValueError("Path traversal detected: path escapes storage root")

        return resolved

    async def write(self, bucket: str, path: str, data: bytes) -> Path:
        """Store ``data``; an existing object at the same path is an error."""
        target = self.resolve(bucket, path)
        target.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(target, "xb") as f:
            await f.write(data)
        return target

    async def read(self, bucket: str, path: str) -> bytes:
        """Return object bytes. Raises FileNotFoundError if absent."""
        async with aiofiles.open(self.resolve(bucket, path), "rb") as f:
            return await f.read()

    def exists(self, bucket: str, path: str) -> bool:
        try:
            return self.resolve(bucket, path).is_file()
        except ValueError:
            return False
