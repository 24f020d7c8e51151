"""Initial schema with all tables

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates all Cutroom database tables:
- auth_users: Identities managed by the data store's auth service
- auth_sessions: Server-side sessions behind access tokens
- profiles: One profile (name, role) per identity
- projects: Edit requests and their workflow status
- project_files: Metadata of files in object storage
- comments: Project discussion, including internal staff notes
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create auth_users table
    op.create_table(
        'auth_users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(128), nullable=False),
        sa.Column('user_metadata', sa.JSON(), nullable=False),
        sa.Column('email_confirmed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_auth_users_email', 'auth_users', ['email'], unique=True)

    # Create auth_sessions table
    op.create_table(
        'auth_sessions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('auth_users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_auth_sessions_user_id', 'auth_sessions', ['user_id'])

    # Create profiles table
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(36), sa.ForeignKey('auth_users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(200), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='client'),
        sa.Column('avatar_url', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_profiles_role', 'profiles', ['role'])

    # Create projects table
    op.create_table(
        'projects',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('client_id', sa.String(36), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('editor_id', sa.String(36), sa.ForeignKey('profiles.id', ondelete='SET NULL'), nullable=True),
        # Brief
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('editing_style', sa.String(100), nullable=False),
        sa.Column('platforms', sa.JSON(), nullable=False),
        sa.Column('aspect_ratio', sa.String(20), nullable=False),
        sa.Column('desired_duration_seconds', sa.Integer(), nullable=True),
        sa.Column('reference_links', sa.JSON(), nullable=False),
        sa.Column('notes_for_editor', sa.Text(), nullable=True),
        # Workflow
        sa.Column('status', sa.String(30), nullable=False, server_default='new'),
        sa.Column('priority', sa.String(10), nullable=False, server_default='normal'),
        sa.Column('due_date', sa.DateTime(), nullable=False),
        # Timestamps
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_projects_client_id', 'projects', ['client_id'])
    op.create_index('ix_projects_editor_id', 'projects', ['editor_id'])
    op.create_index('ix_projects_status', 'projects', ['status'])
    op.create_index('ix_projects_created_at', 'projects', ['created_at'])

    # Create project_files table
    op.create_table(
        'project_files',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('project_id', sa.String(36), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('uploaded_by', sa.String(36), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('file_type', sa.String(20), nullable=False),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('file_size_bytes', sa.BigInteger(), nullable=False),
        sa.Column('mime_type', sa.String(100), nullable=False),
        sa.Column('storage_path', sa.String(500), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_project_files_project_id', 'project_files', ['project_id'])

    # Create comments table
    op.create_table(
        'comments',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('project_id', sa.String(36), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('author_id', sa.String(36), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('is_internal', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_comments_project_id', 'comments', ['project_id'])
    op.create_index('ix_comments_created_at', 'comments', ['created_at'])


def downgrade() -> None:
    # Drop tables in reverse order (respecting foreign keys)
    op.drop_table('comments')
    op.drop_table('project_files')
    op.drop_table('projects')
    op.drop_table('profiles')
    op.drop_table('auth_sessions')
    op.drop_table('auth_users')
