"""
ProjectFile model for Cutroom.

Metadata for a file stored in object storage. Rows are append-only.
"""

from datetime import datetime
import uuid

from sqlalchemy import BigInteger, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from cutroom.core.database import Base


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


class ProjectFile(Base):
    """File attached to a project (raw footage, final cut, reference...)."""

    __tablename__ = "project_files"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
        doc="UUID primary key"
    )
    project_id: Mapped[str] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    uploaded_by: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    file_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        doc="File type: raw, final, reference, other"
    )
    file_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Original uploaded filename"
    )
    file_size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    storage_path: Mapped[str] = mapped_column(
        String(500),
        unique=True,
        nullable=False,
        doc="Object path within the project files bucket"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<ProjectFile(id={self.id!r}, file_type={self.file_type!r}, file_name={self.file_name!r})>"
