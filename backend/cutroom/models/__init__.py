"""
SQLAlchemy models for Cutroom.

This module exports all database models for convenient importing:

    from cutroom.models import AuthUser, AuthSession, Profile, Project, ProjectFile, Comment

All models use UUID strings as primary keys. ``TABLE_MODELS`` maps the
public table names used by the data store contract to their models.
"""

from .identity import AuthSession, AuthUser
from .profile import Profile
from .project import Project
from .project_file import ProjectFile
from .comment import Comment

TABLE_MODELS = {
    "profiles": Profile,
    "projects": Project,
    "project_files": ProjectFile,
    "comments": Comment,
}

__all__ = [
    "AuthSession",
    "AuthUser",
    "Profile",
    "Project",
    "ProjectFile",
    "Comment",
    "TABLE_MODELS",
]
