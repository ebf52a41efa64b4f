"""Initial schema - users, pathways, modules, audit log

Revision ID: 0001
Revises: 
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users table
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False, index=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, default=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Pathways table
    op.create_table(
        'pathways',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(500), unique=True, nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('goal', sa.Text(), nullable=False, server_default=''),
        sa.Column('requirements', sa.Text(), nullable=False, server_default=''),
        sa.Column('target_audience', sa.Text(), nullable=False, server_default=''),
        sa.Column('owner_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Modules table; key and name are unique within a pathway
    op.create_table(
        'modules',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'pathway_id',
            sa.Uuid(),
            sa.ForeignKey('pathways.id', ondelete='CASCADE'),
            nullable=False,
            index=True,
        ),
        sa.Column('key', sa.String(200), nullable=False),
        sa.Column('name', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('prerequisites', sa.JSON(), nullable=False),
        sa.Column('concepts', sa.JSON(), nullable=False),
        sa.Column('content', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('pathway_id', 'key', name='uq_modules_pathway_key'),
        sa.UniqueConstraint('pathway_id', 'name', name='uq_modules_pathway_name'),
    )

    # Event log table (append-only)
    op.create_table(
        'event_logs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('event_type', sa.String(100), nullable=False, index=True),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('user_id', sa.Uuid(), nullable=True, index=True),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False, index=True),
    )
    op.create_index('ix_event_logs_entity', 'event_logs', ['entity_type', 'entity_id'])
    op.create_index('ix_event_logs_type_time', 'event_logs', ['event_type', 'created_at'])


def downgrade() -> None:
    op.drop_index('ix_event_logs_type_time', table_name='event_logs')
    op.drop_index('ix_event_logs_entity', table_name='event_logs')
    op.drop_table('event_logs')
    op.drop_table('modules')
    op.drop_table('pathways')
    op.drop_table('users')
