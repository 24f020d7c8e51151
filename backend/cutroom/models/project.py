"""
Project model for Cutroom.

An edit request submitted by a client and worked on by an editor.
"""

from datetime import datetime
from typing import List, Optional
import uuid

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from cutroom.core.database import Base


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


class Project(Base):
    """
    Project model representing a video edit request.

    ``status`` and ``editor_id`` together encode the workflow position.
    ``client_id`` is fixed at creation.
    """

    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
        doc="UUID primary key"
    )
    client_id: Mapped[str] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Profile of the client who created the project"
    )
    editor_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        doc="Assigned editor, null until claimed or assigned"
    )

    # Brief
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    editing_style: Mapped[str] = mapped_column(String(100), nullable=False)
    platforms: Mapped[List[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
        doc="Target platforms (unique names)"
    )
    aspect_ratio: Mapped[str] = mapped_column(String(20), nullable=False)
    desired_duration_seconds: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    reference_links: Mapped[List[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
        doc="Ordered reference links"
    )
    notes_for_editor: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Workflow
    status: Mapped[str] = mapped_column(
        String(30),
        default="new",
        nullable=False,
        index=True,
        doc="Workflow status"
    )
    priority: Mapped[str] = mapped_column(
        String(10),
        default="normal",
        nullable=False,
        doc="Priority: normal, high, urgent"
    )
    due_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Project(id={self.id!r}, title={self.title!r}, status={self.status!r})>"
