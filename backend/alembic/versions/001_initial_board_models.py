"""Initial board models: residents, transport events, notification logs, push subscriptions.

Revision ID: 001_initial_board_models
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial_board_models'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'residents',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('room_number', sa.String(20), nullable=False),
        sa.Column('family_phone', sa.String(50), nullable=True),
        sa.Column('dietary_notes', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_residents_room_number', 'residents', ['room_number'])
    op.create_index('ix_residents_is_active', 'residents', ['is_active'])

    op.create_table(
        'transport_events',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('resident_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('pickup_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('event_type', sa.String(50), nullable=False, server_default='family_pickup'),
        sa.Column('purpose', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('family_phone_override', sa.String(50), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='scheduled'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['resident_id'], ['residents.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_transport_events_resident_id', 'transport_events', ['resident_id'])
    op.create_index('ix_transport_events_status', 'transport_events', ['status'])
    op.create_index('ix_transport_events_pickup_status', 'transport_events', ['pickup_time', 'status'])

    op.create_table(
        'notification_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('channel', sa.String(20), nullable=False),
        sa.Column('recipient', sa.String(500), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['event_id'], ['transport_events.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notification_logs_event_id', 'notification_logs', ['event_id'])
    op.create_index('ix_notification_logs_channel', 'notification_logs', ['channel'])
    op.create_index('ix_notification_logs_created_at', 'notification_logs', ['created_at'])

    op.create_table(
        'push_subscriptions',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('endpoint', sa.Text(), nullable=False),
        sa.Column('p256dh', sa.Text(), nullable=False),
        sa.Column('auth', sa.String(255), nullable=False),
        sa.Column('audience', sa.String(20), nullable=False, server_default='floor'),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('endpoint', name='uq_push_subscriptions_endpoint'),
    )
    op.create_index('ix_push_subscriptions_audience', 'push_subscriptions', ['audience'])


def downgrade() -> None:
    op.drop_index('ix_push_subscriptions_audience', table_name='push_subscriptions')
    op.drop_table('push_subscriptions')

    op.drop_index('ix_notification_logs_created_at', table_name='notification_logs')
    op.drop_index('ix_notification_logs_channel', table_name='notification_logs')
    op.drop_index('ix_notification_logs_event_id', table_name='notification_logs')
    op.drop_table('notification_logs')

    op.drop_index('ix_transport_events_pickup_status', table_name='transport_events')
    op.drop_index('ix_transport_events_status', table_name='transport_events')
    op.drop_index('ix_transport_events_resident_id', table_name='transport_events')
    op.drop_table('transport_events')

    op.drop_index('ix_residents_is_active', table_name='residents')
    op.drop_index('ix_residents_room_number', table_name='residents')
    op.drop_table('residents')
