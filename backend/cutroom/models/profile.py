"""
Profile model for Cutroom.

One row per authenticated identity, carrying the display name and role.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from cutroom.core.database import Base


class Profile(Base):
    """User profile; the primary key is the identity ID."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(
        ForeignKey("auth_users.id", ondelete="CASCADE"),
        primary_key=True,
        doc="Identity ID (one profile per identity)"
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    full_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(
        String(20),
        default="client",
        nullable=False,
        index=True,
        doc="Role: client, editor, or admin"
    )
    avatar_url: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Profile(id={self.id!r}, role={self.role!r})>"
