"""initial_volunteer_hub_schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-01 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def _common_columns():
    return [
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        *_common_columns(),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='volunteer'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'])
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'volunteers',
        *_common_columns(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False, unique=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('skills', postgresql.JSONB(), nullable=True),
        sa.Column('interests', postgresql.JSONB(), nullable=True),
        sa.Column('experience', postgresql.JSONB(), nullable=True),
        sa.Column('availability', postgresql.JSONB(), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('state', sa.String(length=100), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('approval_status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('approval_date', sa.DateTime(), nullable=True),
        sa.Column('approved_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('approval_notes', sa.Text(), nullable=True),
        sa.Column('rating', sa.Float(), nullable=True, server_default='0'),
        sa.Column('total_hours_volunteered', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_opportunities_completed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
    )
    op.create_index(op.f('ix_volunteers_id'), 'volunteers', ['id'])
    op.create_index(op.f('ix_volunteers_approval_status'), 'volunteers', ['approval_status'])
    op.create_index(op.f('ix_volunteers_is_active'), 'volunteers', ['is_active'])

    op.create_table(
        'charities',
        *_common_columns(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False, unique=True),
        sa.Column('organization_name', sa.String(length=255), nullable=False),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('verification_status', sa.String(length=20), nullable=True, server_default='pending'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
    )
    op.create_index(op.f('ix_charities_id'), 'charities', ['id'])

    op.create_table(
        'opportunities',
        *_common_columns(),
        sa.Column('charity_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('charities.id'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('required_skills', postgresql.JSONB(), nullable=True),
        sa.Column('number_of_volunteers', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('volunteers_confirmed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('location_type', sa.String(length=20), nullable=False, server_default='in-person'),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('state', sa.String(length=100), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='draft'),
        sa.Column('application_deadline', sa.DateTime(), nullable=True),
        sa.Column('start_date', sa.DateTime(), nullable=True),
        sa.Column('end_date', sa.DateTime(), nullable=True),
        sa.Column('views', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index(op.f('ix_opportunities_id'), 'opportunities', ['id'])
    op.create_index(op.f('ix_opportunities_charity_id'), 'opportunities', ['charity_id'])
    op.create_index(op.f('ix_opportunities_status'), 'opportunities', ['status'])

    op.create_table(
        'applications',
        *_common_columns(),
        sa.Column('opportunity_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('opportunities.id'), nullable=False),
        sa.Column('volunteer_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('volunteers.id'), nullable=False),
        sa.Column('status', sa.String(length=40), nullable=False, server_default='pending'),
        sa.Column('application_message', sa.Text(), nullable=True),
        sa.Column('review_notes', sa.Text(), nullable=True),
        sa.Column('reviewed_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('additional_info_requested', postgresql.JSONB(), nullable=True),
        sa.Column('additional_info_requested_at', sa.DateTime(), nullable=True),
        sa.Column('additional_info_provided', postgresql.JSONB(), nullable=True),
        sa.Column('additional_info_provided_at', sa.DateTime(), nullable=True),
        sa.Column('vetting_score', sa.Integer(), nullable=True),
        sa.Column('vetting_notes', sa.Text(), nullable=True),
        sa.Column('flagged_for_moderation', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('flagged_reason', sa.Text(), nullable=True),
        sa.Column('moderator_review_status', sa.String(length=20), nullable=True),
        sa.Column('moderator_notes', sa.Text(), nullable=True),
        sa.Column('moderator_reviewed_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('moderator_reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('is_system_matched', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('match_score', sa.Float(), nullable=True),
        sa.Column('withdrawn_reason', sa.Text(), nullable=True),
        sa.Column('withdrawn_at', sa.DateTime(), nullable=True),
        sa.Column('confirmed_at', sa.DateTime(), nullable=True),
        sa.Column('hours_committed', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('hours_worked', sa.Integer(), nullable=True, server_default='0'),
        sa.UniqueConstraint('opportunity_id', 'volunteer_id', name='unique_opportunity_volunteer_application'),
    )
    op.create_index(op.f('ix_applications_id'), 'applications', ['id'])
    op.create_index(op.f('ix_applications_opportunity_id'), 'applications', ['opportunity_id'])
    op.create_index(op.f('ix_applications_volunteer_id'), 'applications', ['volunteer_id'])
    op.create_index(op.f('ix_applications_status'), 'applications', ['status'])

    op.create_table(
        'attendance',
        *_common_columns(),
        sa.Column('opportunity_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('opportunities.id'), nullable=False),
        sa.Column('volunteer_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('volunteers.id'), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('hours_worked', sa.Float(), nullable=True),
        sa.Column('check_in_time', sa.DateTime(), nullable=True),
        sa.Column('check_out_time', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('recorded_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('charity_feedback', sa.Text(), nullable=True),
        sa.Column('charity_rating', sa.Integer(), nullable=True),
        sa.Column('volunteer_feedback', sa.Text(), nullable=True),
        sa.Column('volunteer_rating', sa.Integer(), nullable=True),
        sa.UniqueConstraint('opportunity_id', 'volunteer_id', name='attendance_opportunity_volunteer_unique'),
    )
    op.create_index(op.f('ix_attendance_id'), 'attendance', ['id'])
    op.create_index(op.f('ix_attendance_opportunity_id'), 'attendance', ['opportunity_id'])
    op.create_index(op.f('ix_attendance_volunteer_id'), 'attendance', ['volunteer_id'])

    op.create_table(
        'notifications',
        *_common_columns(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('data', postgresql.JSONB(), nullable=True),
        sa.Column('action_url', sa.String(length=500), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('read_at', sa.DateTime(), nullable=True),
    )
    op.create_index(op.f('ix_notifications_id'), 'notifications', ['id'])
    op.create_index('idx_notifications_user_read', 'notifications', ['user_id', 'is_read'])


def downgrade() -> None:
    op.drop_table('notifications')
    op.drop_table('attendance')
    op.drop_table('applications')
    op.drop_table('opportunities')
    op.drop_table('charities')
    op.drop_table('volunteers')
    op.drop_table('users')
