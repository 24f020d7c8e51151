"""
Identity and session models for Cutroom.

These tables belong to the data store's authentication service and are
never exposed through the table API.
"""

from datetime import datetime
from typing import Optional
import uuid

from sqlalchemy import JSON, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from cutroom.core.database import Base


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


class AuthUser(Base):
    """Authenticated identity with credentials and sign-up metadata."""

    __tablename__ = "auth_users"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
        doc="UUID primary key"
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        doc="Lower-cased login email"
    )
    password_hash: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        doc="Hashed password (bcrypt)"
    )
    user_metadata: Mapped[dict] = mapped_column(
        JSON,
        default=dict,
        nullable=False,
        doc="Metadata captured at sign-up (full_name, role)"
    )
    email_confirmed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        nullable=True,
        doc="When the email address was confirmed"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        doc="Account creation timestamp"
    )

    def __repr__(self) -> str:
        return f"<AuthUser(id={self.id!r}, email={self.email!r})>"


class AuthSession(Base):
    """Server-side session referenced by the ``sid`` claim of access tokens."""

    __tablename__ = "auth_sessions"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
        doc="UUID primary key"
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("auth_users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Identity owning the session"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        doc="Session expiry (UTC)"
    )

    def __repr__(self) -> str:
        return f"<AuthSession(id={self.id!r}, user_id={self.user_id!r})>"
