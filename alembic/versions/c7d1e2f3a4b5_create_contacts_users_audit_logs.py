"""create users, contacts and audit_logs

Revision ID: c7d1e2f3a4b5
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = 'c7d1e2f3a4b5'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('role', sa.Enum('ADMIN', 'CS', 'VIEWER', name='userrole'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'contacts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('record_id', sa.String(255), nullable=True),
        sa.Column('first_name', sa.String(255), nullable=True),
        sa.Column('last_name', sa.String(255), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('contact_method', sa.String(50), nullable=True),
        sa.Column('support_priority', sa.String(255), nullable=True),
        sa.Column('pattern', sa.String(255), nullable=True),
        sa.Column('meeting_status', sa.String(255), nullable=True),
        sa.Column('registration_status', sa.String(255), nullable=True),
        sa.Column('line_registered', sa.String(255), nullable=True),
        sa.Column('phone_number', sa.String(64), nullable=True),
        sa.Column('acquisition_source', sa.String(255), nullable=True),
        sa.Column('facebook_url', sa.Text(), nullable=True),
        sa.Column('list_acquired', sa.String(255), nullable=True),
        sa.Column('list_provided', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('matching_list_url', sa.Text(), nullable=True),
        sa.Column('contact_owner', sa.String(255), nullable=True),
        sa.Column('marketing_contact_status', sa.String(255), nullable=True),
        sa.Column('source_created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('strength', sa.String(50), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('tier', sa.Enum('TIER1', 'TIER2', name='tier'), nullable=False),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('assigned_user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_contacts_record_id', 'contacts', ['record_id'], unique=True)
    op.create_index('ix_contacts_email', 'contacts', ['email'], unique=True)
    op.create_index('ix_contacts_assigned_user_id', 'contacts', ['assigned_user_id'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('actor_user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('actor_role', sa.String(20), nullable=False),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('target_type', sa.String(50), nullable=False),
        sa.Column('target_id', sa.Integer(), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_audit_logs_actor_user_id', 'audit_logs', ['actor_user_id'])
    op.create_index('ix_audit_logs_action_created', 'audit_logs', ['action', 'created_at'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_audit_logs_action_created', 'audit_logs')
    op.drop_index('ix_audit_logs_actor_user_id', 'audit_logs')
    op.drop_table('audit_logs')
    op.drop_index('ix_contacts_assigned_user_id', 'contacts')
    op.drop_index('ix_contacts_email', 'contacts')
    op.drop_index('ix_contacts_record_id', 'contacts')
    op.drop_table('contacts')
    op.drop_index('ix_users_email', 'users')
    op.drop_table('users')
    sa.Enum(name='tier').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='userrole').drop(op.get_bind(), checkfirst=True)
