"""Create admission filter tables

Revision ID: 0001_admission_filter_tables
Revises:
Create Date: 2026-10-17

Sessions, majors, students, formulas, session quotas and applications.
The filter run owns applications.calculated_score, admission_status and
rank_in_major.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = '0001_admission_filter_tables'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'admission_sessions',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='upcoming'),
        *_timestamps(),
        sa.CheckConstraint("status IN ('upcoming', 'active', 'closed')", name='check_session_status'),
    )

    op.create_table(
        'majors',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_majors_code', 'majors', ['code'], unique=True)

    op.create_table(
        'students',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('id_card', sa.String(20), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('scores', sa.JSON(), nullable=False),
        sa.Column('priority_points', sa.Float(), nullable=False, server_default='0'),
        sa.Column('session_id', UUID(as_uuid=True), sa.ForeignKey('admission_sessions.id', ondelete='CASCADE'), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('priority_points >= 0', name='check_priority_points'),
    )
    op.create_index('ix_students_id_card', 'students', ['id_card'], unique=True)
    op.create_index('ix_students_session_id', 'students', ['session_id'])

    op.create_table(
        'admission_formulas',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('formula', sa.Text(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'session_quotas',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('admission_method', sa.String(50), nullable=False),
        sa.Column('quota', sa.Integer(), nullable=False),
        sa.Column('conditions', sa.JSON(), nullable=True),
        sa.Column('session_id', UUID(as_uuid=True), sa.ForeignKey('admission_sessions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('major_id', UUID(as_uuid=True), sa.ForeignKey('majors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('formula_id', UUID(as_uuid=True), sa.ForeignKey('admission_formulas.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('session_id', 'major_id', 'admission_method', name='uq_session_major_method'),
    )
    op.create_index('ix_session_quotas_session_id', 'session_quotas', ['session_id'])
    op.create_index('ix_session_quotas_major_id', 'session_quotas', ['major_id'])

    op.create_table(
        'applications',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('admission_method', sa.String(50), nullable=False),
        sa.Column('preference_priority', sa.Integer(), nullable=False),
        sa.Column('subject_scores', sa.JSON(), nullable=True),
        sa.Column('student_id', UUID(as_uuid=True), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('session_id', UUID(as_uuid=True), sa.ForeignKey('admission_sessions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('major_id', UUID(as_uuid=True), sa.ForeignKey('majors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('calculated_score', sa.Float(), nullable=True),
        sa.Column('admission_status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('rank_in_major', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('preference_priority >= 1', name='check_preference_priority'),
        sa.CheckConstraint(
            "admission_status IN ('pending', 'admitted', 'not_admitted')",
            name='check_admission_status'
        ),
    )
    op.create_index('ix_applications_student_id', 'applications', ['student_id'])
    op.create_index('ix_applications_session_id', 'applications', ['session_id'])
    op.create_index('ix_applications_major_id', 'applications', ['major_id'])


def downgrade() -> None:
    op.drop_table('applications')
    op.drop_table('session_quotas')
    op.drop_table('admission_formulas')
    op.drop_table('students')
    op.drop_table('majors')
    op.drop_table('admission_sessions')
