"""create report tables

Revision ID: 3f1a9c2e7b10
Revises:
Create Date: 2026-10-19 09:12:04.118530

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1a9c2e7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'reports',
        sa.Column('id', sa.String(36), primary_key=True, comment='Report UUID'),
        sa.Column('access_key', sa.String(12), nullable=False, comment='12-char capability token'),
        sa.Column('category', sa.Enum('bullying', 'idea', name='report_category'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column(
            'status',
            sa.Enum('pending', 'in_progress', 'resolved', 'closed', name='report_status'),
            nullable=False
        ),
        sa.Column('progress', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('progress >= 0 AND progress <= 100', name='ck_reports_progress_range'),
    )
    op.create_index('ix_reports_access_key', 'reports', ['access_key'], unique=True)

    op.create_table(
        'report_timeline',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column(
            'report_id', sa.String(36),
            sa.ForeignKey('reports.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('is_completed', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, comment='Insertion order within the report'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_report_timeline_report_id', 'report_timeline', ['report_id'])

    op.create_table(
        'report_evidence',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column(
            'report_id', sa.String(36),
            sa.ForeignKey('reports.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('file_path', sa.String(512), nullable=False, unique=True),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('mime_type', sa.String(100), nullable=False),
        sa.Column('uploaded_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_report_evidence_report_id', 'report_evidence', ['report_id'])

    op.create_table(
        'login_attempts',
        sa.Column('ip_hash', sa.String(64), primary_key=True),
        sa.Column('email', sa.String(255), primary_key=True),
        sa.Column('attempts', sa.Integer(), nullable=False),
        sa.Column('locked_until', sa.DateTime(), nullable=True),
        sa.Column('last_attempt', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'rate_limits',
        sa.Column('ip_hash', sa.String(64), primary_key=True),
        sa.Column('endpoint', sa.String(64), primary_key=True),
        sa.Column('last_request', sa.DateTime(), nullable=False),
        sa.Column('request_count', sa.Integer(), nullable=False),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('rate_limits')
    op.drop_table('login_attempts')
    op.drop_index('ix_report_evidence_report_id', table_name='report_evidence')
    op.drop_table('report_evidence')
    op.drop_index('ix_report_timeline_report_id', table_name='report_timeline')
    op.drop_table('report_timeline')
    op.drop_index('ix_reports_access_key', table_name='reports')
    op.drop_table('reports')
    sa.Enum(name='report_status').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='report_category').drop(op.get_bind(), checkfirst=True)
