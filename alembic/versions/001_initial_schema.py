"""Initial schema - risk profiles, assignments, response logs, signal records

Revision ID: 001_initial_schema
Revises:
Create Date: 2024-01-01 00:00:00.000000

Creates the UNMUTE crisis pipeline schema:
- student_risk_profiles: One risk state row per student, versioned
- counsellor_assignments: Assignment lifecycle, one open per student
- crisis_response_logs: Append-only staff response audit
- crisis_signal_records: Append-only audit of flagged messages
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

OPEN_STATUS_CLAUSE = "status IN ('pending', 'active')"


def upgrade() -> None:
    # Create student_risk_profiles table
    op.create_table(
        'student_risk_profiles',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('institution_id', sa.Uuid(), nullable=True),
        sa.Column('stage', sa.String(20), nullable=False, server_default='none'),
        sa.Column('risk_level', sa.String(20), nullable=False, server_default='low'),
        sa.Column('needs_counselling', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('crisis_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_crisis_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('assigned_counsellor_id', sa.Uuid(), nullable=True),
        sa.Column('assigned_listener_id', sa.Uuid(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
    )
    op.create_index('ix_student_risk_profiles_institution_id', 'student_risk_profiles', ['institution_id'])
    op.create_index('ix_student_risk_profiles_risk_level', 'student_risk_profiles', ['risk_level'])
    op.create_index('ix_student_risk_profiles_needs_counselling', 'student_risk_profiles', ['needs_counselling'])

    # Create counsellor_assignments table
    op.create_table(
        'counsellor_assignments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('student_user_id', sa.Uuid(), nullable=False),
        sa.Column('assignee_user_id', sa.Uuid(), nullable=True),
        sa.Column('institution_id', sa.Uuid(), nullable=True),
        sa.Column('priority', sa.String(10), nullable=False, server_default='normal'),
        sa.Column('status', sa.String(10), nullable=False, server_default='pending'),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('risk_level_at_creation', sa.String(20), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('accepted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_counsellor_assignments_student_user_id', 'counsellor_assignments', ['student_user_id'])
    op.create_index('ix_counsellor_assignments_assignee_user_id', 'counsellor_assignments', ['assignee_user_id'])
    op.create_index('ix_counsellor_assignments_institution_id', 'counsellor_assignments', ['institution_id'])
    op.create_index('ix_counsellor_assignments_status', 'counsellor_assignments', ['status'])

    # At most one pending or active assignment per student
    op.create_index(
        'uq_counsellor_assignments_open_student',
        'counsellor_assignments',
        ['student_user_id'],
        unique=True,
        postgresql_where=sa.text(OPEN_STATUS_CLAUSE),
        sqlite_where=sa.text(OPEN_STATUS_CLAUSE),
    )

    # Create crisis_response_logs table
    op.create_table(
        'crisis_response_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('assignment_id', sa.Uuid(), nullable=True),
        sa.Column('student_user_id', sa.Uuid(), nullable=False),
        sa.Column('responder_user_id', sa.Uuid(), nullable=False),
        sa.Column('institution_id', sa.Uuid(), nullable=True),
        sa.Column('action_type', sa.String(30), nullable=False),
        sa.Column('outcome', sa.String(30), nullable=True),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('follow_up_required', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('follow_up_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notification_sent', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('notification_channel', sa.String(10), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_crisis_response_logs_assignment_id', 'crisis_response_logs', ['assignment_id'])
    op.create_index('ix_crisis_response_logs_student_user_id', 'crisis_response_logs', ['student_user_id'])
    op.create_index('ix_crisis_response_logs_institution_id', 'crisis_response_logs', ['institution_id'])
    op.create_index('ix_crisis_response_logs_created_at', 'crisis_response_logs', ['created_at'])

    # Create crisis_signal_records table
    op.create_table(
        'crisis_signal_records',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('institution_id', sa.Uuid(), nullable=True),
        sa.Column('source_type', sa.String(50), nullable=False),
        sa.Column('source_id', sa.String(100), nullable=False),
        sa.Column('category', sa.String(20), nullable=False),
        sa.Column('severity', sa.String(20), nullable=False),
        sa.Column('matched_terms', sa.JSON(), nullable=False),
        sa.Column('text_hash', sa.String(64), nullable=False),
        sa.Column('stage_before', sa.String(20), nullable=False),
        sa.Column('stage_after', sa.String(20), nullable=False),
        sa.Column('is_reviewed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('reviewed_by', sa.Uuid(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_crisis_signal_records_user_id', 'crisis_signal_records', ['user_id'])
    op.create_index('ix_crisis_signal_records_institution_id', 'crisis_signal_records', ['institution_id'])
    op.create_index('ix_crisis_signal_records_severity', 'crisis_signal_records', ['severity'])
    op.create_index('ix_crisis_signal_records_is_reviewed', 'crisis_signal_records', ['is_reviewed'])
    op.create_index('ix_crisis_signal_records_created_at', 'crisis_signal_records', ['created_at'])


def downgrade() -> None:
    op.drop_table('crisis_signal_records')
    op.drop_table('crisis_response_logs')
    op.drop_table('counsellor_assignments')
    op.drop_table('student_risk_profiles')
