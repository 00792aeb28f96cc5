"""create events, slots, bookings, b2b requests

Revision ID: 4f2a9c1d7e30
Revises: 
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4f2a9c1d7e30'
down_revision = None
branch_labels = None
depends_on = None


def _status(*values):
    return sa.Enum(*values, native_enum=False, length=20)


def upgrade():
    op.create_table(
        'events',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('host_id', sa.String(length=64), nullable=False),
        sa.Column('title', sa.String(length=160), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('slot_duration_minutes', sa.Integer(), nullable=False),
        sa.Column('allow_consecutive_slots', sa.Boolean(), nullable=False),
        sa.Column('max_consecutive_slots', sa.Integer(), nullable=False),
        sa.Column('allow_b2b', sa.Boolean(), nullable=False),
        sa.Column('event_date', sa.DateTime(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('status', _status('draft', 'published', 'active', 'completed', 'cancelled'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('max_consecutive_slots >= 1', name='ck_events_max_consecutive_positive'),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('events', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_events_host_id'), ['host_id'], unique=False)

    op.create_table(
        'time_slots',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('event_id', sa.String(length=36), nullable=False),
        sa.Column('slot_index', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('status', _status('available', 'booked', 'in_progress', 'completed'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('event_id', 'slot_index', name='uq_time_slots_event_index')
    )
    with op.batch_alter_table('time_slots', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_time_slots_event_id'), ['event_id'], unique=False)

    op.create_table(
        'booking_groups',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('event_id', sa.String(length=36), nullable=False),
        sa.Column('performer_id', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('booking_groups', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_booking_groups_event_id'), ['event_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_booking_groups_performer_id'), ['performer_id'], unique=False)

    op.create_table(
        'slot_bookings',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('group_id', sa.String(length=36), nullable=False),
        sa.Column('slot_id', sa.String(length=36), nullable=False),
        sa.Column('performer_id', sa.String(length=64), nullable=False),
        sa.Column('status', _status('confirmed', 'cancelled'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['group_id'], ['booking_groups.id'], ),
        sa.ForeignKeyConstraint(['slot_id'], ['time_slots.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('slot_bookings', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_slot_bookings_group_id'), ['group_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_slot_bookings_slot_id'), ['slot_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_slot_bookings_performer_id'), ['performer_id'], unique=False)
    op.create_index(
        'uq_slot_bookings_confirmed_slot',
        'slot_bookings',
        ['slot_id'],
        unique=True,
        postgresql_where=sa.text("status = 'confirmed'"),
        sqlite_where=sa.text("status = 'confirmed'"),
    )

    op.create_table(
        'b2b_requests',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('booking_id', sa.String(length=36), nullable=False),
        sa.Column('requester_id', sa.String(length=64), nullable=False),
        sa.Column('requestee_id', sa.String(length=64), nullable=False),
        sa.Column('initiated_by', _status('booker', 'requester'), nullable=False),
        sa.Column('status', _status('pending', 'accepted', 'declined', 'cancelled'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['booking_id'], ['slot_bookings.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('b2b_requests', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_b2b_requests_booking_id'), ['booking_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_b2b_requests_requester_id'), ['requester_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_b2b_requests_requestee_id'), ['requestee_id'], unique=False)

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=True),
        sa.Column('action', sa.String(length=80), nullable=False),
        sa.Column('entity', sa.String(length=80), nullable=True),
        sa.Column('entity_id', sa.String(length=80), nullable=True),
        sa.Column('ip', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('metadata_json', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade():
    op.drop_table('audit_logs')

    with op.batch_alter_table('b2b_requests', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_b2b_requests_requestee_id'))
        batch_op.drop_index(batch_op.f('ix_b2b_requests_requester_id'))
        batch_op.drop_index(batch_op.f('ix_b2b_requests_booking_id'))
    op.drop_table('b2b_requests')

    op.drop_index('uq_slot_bookings_confirmed_slot', table_name='slot_bookings')
    with op.batch_alter_table('slot_bookings', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_slot_bookings_performer_id'))
        batch_op.drop_index(batch_op.f('ix_slot_bookings_slot_id'))
        batch_op.drop_index(batch_op.f('ix_slot_bookings_group_id'))
    op.drop_table('slot_bookings')

    with op.batch_alter_table('booking_groups', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_booking_groups_performer_id'))
        batch_op.drop_index(batch_op.f('ix_booking_groups_event_id'))
    op.drop_table('booking_groups')

    with op.batch_alter_table('time_slots', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_time_slots_event_id'))
    op.drop_table('time_slots')

    with op.batch_alter_table('events', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_events_host_id'))
    op.drop_table('events')
