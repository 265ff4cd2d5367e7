"""create_networking_tables

Revision ID: 8b2e4d6f0a31
Revises: 3f9a1c2b7d10
Create Date: 2026-10-18 09:10:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

# revision identifiers, used by Alembic.
revision: str = '8b2e4d6f0a31'
down_revision: Union[str, None] = '3f9a1c2b7d10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create appointments, connections, messages and app_notifications tables."""
    op.create_table(
        'appointments',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('booker_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('target_user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), server_default='requested', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
    )
    op.create_index('idx_appointments_booker_id', 'appointments', ['booker_id'])
    op.create_index('idx_appointments_target_user_id', 'appointments', ['target_user_id'])
    op.create_index('idx_appointments_scheduled_at', 'appointments', ['scheduled_at'])
    op.create_index('idx_appointments_status', 'appointments', ['status'])

    op.create_table(
        'connections',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('requester_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('target_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(length=20), server_default='pending', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
        sa.UniqueConstraint('requester_id', 'target_id', name='uq_connections_pair'),
    )
    op.create_index('idx_connections_requester_id', 'connections', ['requester_id'])
    op.create_index('idx_connections_target_id', 'connections', ['target_id'])

    op.create_table(
        'messages',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('sender_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('receiver_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
    )
    op.create_index('idx_messages_sender_id', 'messages', ['sender_id'])
    op.create_index('idx_messages_receiver_id', 'messages', ['receiver_id'])
    op.create_index('idx_messages_pair_created', 'messages', ['sender_id', 'receiver_id', 'created_at'])

    op.create_table(
        'app_notifications',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(length=20), server_default='info', nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('body', sa.Text(), nullable=True),
        sa.Column('data', JSONB, nullable=True),
        sa.Column('is_read', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('idx_app_notifications_user_id', 'app_notifications', ['user_id'])
    op.create_index('idx_app_notifications_user_unread', 'app_notifications', ['user_id', 'is_read'])


def downgrade() -> None:
    """Drop the networking tables."""
    op.drop_index('idx_app_notifications_user_unread', table_name='app_notifications')
    op.drop_index('idx_app_notifications_user_id', table_name='app_notifications')
    op.drop_table('app_notifications')
    op.drop_index('idx_messages_pair_created', table_name='messages')
    op.drop_index('idx_messages_receiver_id', table_name='messages')
    op.drop_index('idx_messages_sender_id', table_name='messages')
    op.drop_table('messages')
    op.drop_index('idx_connections_target_id', table_name='connections')
    op.drop_index('idx_connections_requester_id', table_name='connections')
    op.drop_table('connections')
    op.drop_index('idx_appointments_status', table_name='appointments')
    op.drop_index('idx_appointments_scheduled_at', table_name='appointments')
    op.drop_index('idx_appointments_target_user_id', table_name='appointments')
    op.drop_index('idx_appointments_booker_id', table_name='appointments')
    op.drop_table('appointments')
