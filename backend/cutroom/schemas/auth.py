"""
Pydantic schemas for authentication endpoints.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .profile import ProfileView


def _normalize_email(v: str) -> str:
    v = v.strip().lower()
    local, _, domain = v.partition("@")
    if not local or "." not in domain or " " in v:
        raise ValueError("Invalid email address")
    return v


class SignUpRequest(BaseModel):
    """Request schema for sign-up. Admin accounts cannot be self-registered."""

    email: str = Field(..., max_length=255)
    password: str = Field(
        ...,
        min_length=8,
        max_length=72,
        description="Password (8-72 characters)",
    )
    full_name: str = Field(..., min_length=1, max_length=200)
    role: Literal["client", "editor"] = "client"

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Full name cannot be empty")
        return v


class SignInRequest(BaseModel):
    """Request schema for password sign-in."""

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class EmailRequest(BaseModel):
    """Request schema for endpoints that only need an email address."""

    email: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class ConfirmEmailRequest(BaseModel):
    token: str = Field(..., min_length=1)


class PasswordUpdateRequest(BaseModel):
    """Set a new password using an emailed reset token."""

    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8, max_length=72)


class SessionResponse(BaseModel):
    """Response schema for a successful sign-in."""

    access_token: str
    token_type: str = "bearer"
    user: ProfileView


class SignUpResponse(BaseModel):
    """
    Response schema for sign-up.

    When email confirmation is required no session exists yet:
    ``access_token`` and ``user`` are null and ``confirmation_required`` is true.
    """

    user_id: str
    email: str
    confirmation_required: bool
    access_token: Optional[str] = None
    token_type: str = "bearer"
    user: Optional[ProfileView] = None


class MessageResponse(BaseModel):
    message: str
