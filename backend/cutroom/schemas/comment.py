"""
Pydantic schemas for project comments.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from cutroom.rules.constants import Role


class CommentCreate(BaseModel):
    body: str = Field(..., min_length=1, max_length=10000)
    is_internal: bool = False

    @field_validator("body")
    @classmethod
    def validate_body(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment cannot be empty")
        return v


class CommentView(BaseModel):
    """Comment with the author's name and role joined in."""

    id: str
    project_id: str
    author_id: str
    body: str
    is_internal: bool
    created_at: datetime
    author_name: Optional[str] = None
    author_role: Optional[Role] = None

    model_config = {"from_attributes": True}
