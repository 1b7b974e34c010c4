"""Initial schema: users, projects, team membership, issues and tokens.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns() -> list:
    return [
        sa.Column('created_on', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_by', sa.Text, nullable=False, server_default=''),
        sa.Column('modified_on', sa.DateTime(timezone=True), nullable=False),
        sa.Column('modified_by', sa.Text, nullable=False, server_default=''),
        sa.Column('version', sa.Integer, nullable=False, server_default='1'),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.Text, nullable=False),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('password_hash', sa.LargeBinary, nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='member'),
        sa.Column('activated', sa.Boolean, nullable=False, server_default=sa.false()),
        *_audit_columns(),
    )
    # Emails are unique regardless of case
    op.create_index('ix_users_email_lower', 'users', [sa.text('lower(email)')], unique=True)

    op.create_table(
        'projects',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.Text, nullable=False),
        sa.Column('description', sa.Text, nullable=False, server_default=''),
        sa.Column('assigned_to', sa.Integer, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('start_date', sa.Date, nullable=False),
        sa.Column('target_end_date', sa.Date, nullable=False),
        sa.Column('actual_end_date', sa.Date, nullable=True),
        *_audit_columns(),
        sa.UniqueConstraint('name', name='projects_name_key'),
    )
    op.create_index('ix_projects_assigned_to', 'projects', ['assigned_to'])
    op.create_index('ix_projects_created_by', 'projects', ['created_by'])

    op.create_table(
        'projects_users',
        sa.Column('project_id', sa.Integer, sa.ForeignKey('projects.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('assigned_on', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_projects_users_user_id', 'projects_users', ['user_id'])

    op.create_table(
        'issues',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('title', sa.Text, nullable=False),
        sa.Column('description', sa.Text, nullable=False, server_default=''),
        sa.Column('reporter_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('reported_date', sa.Date, nullable=False),
        sa.Column('project_id', sa.Integer, sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('assigned_to', sa.Integer, sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='open'),
        sa.Column('priority', sa.String(20), nullable=False, server_default='low'),
        sa.Column('target_resolution_date', sa.Date, nullable=False),
        sa.Column('progress', sa.Text, nullable=False, server_default=''),
        sa.Column('actual_resolution_date', sa.Date, nullable=True),
        sa.Column('resolution_summary', sa.Text, nullable=False, server_default=''),
        *_audit_columns(),
    )
    for column in ('reporter_id', 'reported_date', 'project_id', 'assigned_to', 'status', 'priority'):
        op.create_index(f'ix_issues_{column}', 'issues', [column])

    op.create_table(
        'tokens',
        sa.Column('hash', sa.LargeBinary, primary_key=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('expiry', sa.DateTime(timezone=True), nullable=False),
        sa.Column('scope', sa.String(30), nullable=False),
    )
    op.create_index('ix_tokens_user_id', 'tokens', ['user_id'])


def downgrade() -> None:
    op.drop_table('tokens')
    op.drop_table('issues')
    op.drop_table('projects_users')
    op.drop_table('projects')
    op.drop_table('users')
