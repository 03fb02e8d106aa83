"""membership and card number range tables

Revision ID: 20261018_01
Revises:
Create Date: 2026-10-18 09:00:00

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '20261018_01'
down_revision = None
branch_labels = None
depends_on = None


role_enum = sa.Enum('user', 'admin', name='role')
membership_status_enum = sa.Enum('pending', 'active', 'expired', 'canceled', name='membershipstatus')
payment_status_enum = sa.Enum('pending', 'succeeded', 'failed', 'canceled', name='paymentstatus')


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('role', role_enum, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'user_profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('first_name', sa.String(), nullable=True),
        sa.Column('last_name', sa.String(), nullable=True),
        sa.Column('birth_date', sa.Date(), nullable=True),
        sa.Column('tax_code', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        sa.Column('postal_code', sa.String(), nullable=True),
        sa.Column('province', sa.String(), nullable=True),
        sa.Column('privacy_consent', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('data_consent', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        'memberships',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('membership_number', sa.String(), nullable=True, unique=True),
        sa.Column('previous_membership_number', sa.String(), nullable=True),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', membership_status_enum, nullable=False),
        sa.Column('payment_status', payment_status_enum, nullable=False),
        sa.Column('payment_provider_id', sa.String(), nullable=True),
        sa.Column('payment_amount', sa.Integer(), nullable=True),
        sa.Column('card_assigned_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_by', sa.String(), nullable=True),
    )
    op.create_index('ix_memberships_user_id', 'memberships', ['user_id'])
    op.create_index('ix_memberships_status', 'memberships', ['status'])
    op.create_index('ix_memberships_payment_status', 'memberships', ['payment_status'])
    op.create_index('ix_memberships_previous_membership_number', 'memberships', ['previous_membership_number'])

    op.create_table(
        'card_number_ranges',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('start_number', sa.Integer(), nullable=False),
        sa.Column('end_number', sa.Integer(), nullable=False),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('start_number <= end_number', name='ck_card_number_ranges_bounds'),
    )
    op.create_index('ix_card_number_ranges_start_number', 'card_number_ranges', ['start_number'])

    op.create_table(
        'settings',
        sa.Column('key', sa.String(), primary_key=True),
        sa.Column('value', sa.String(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )


def downgrade():
    op.drop_table('settings')
    op.drop_index('ix_card_number_ranges_start_number', table_name='card_number_ranges')
    op.drop_table('card_number_ranges')
    op.drop_index('ix_memberships_previous_membership_number', table_name='memberships')
    op.drop_index('ix_memberships_payment_status', table_name='memberships')
    op.drop_index('ix_memberships_status', table_name='memberships')
    op.drop_index('ix_memberships_user_id', table_name='memberships')
    op.drop_table('memberships')
    op.drop_table('user_profiles')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    payment_status_enum.drop(op.get_bind(), checkfirst=True)
    membership_status_enum.drop(op.get_bind(), checkfirst=True)
    role_enum.drop(op.get_bind(), checkfirst=True)
