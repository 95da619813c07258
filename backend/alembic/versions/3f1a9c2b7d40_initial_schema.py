"""initial_schema

Revision ID: 3f1a9c2b7d40
Revises:
Create Date: 2026-10-19 10:12:41.527318

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1a9c2b7d40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all application tables."""
    op.create_table(
        'search_jobs',
        sa.Column('job_id', sa.String(36), primary_key=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('parameters', sa.JSON, nullable=False),
        sa.Column('progress', sa.JSON, nullable=False),
        sa.Column('live_stats', sa.JSON, nullable=False),
        sa.Column('recent_activity', sa.JSON, nullable=False),
        sa.Column('results', sa.JSON, nullable=False),
        sa.Column('api_usage', sa.JSON, nullable=False),
        sa.Column('performance', sa.JSON, nullable=False),
        sa.Column('ai_analysis', sa.Text, nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
    )
    op.create_index('ix_search_jobs_created_at', 'search_jobs', ['created_at'])

    op.create_table(
        'companies',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('domain', sa.String(255), nullable=True),
        sa.Column('website', sa.String(500), nullable=True),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('industry', sa.String(100), nullable=True),
        sa.Column('size', sa.String(20), nullable=False),
        sa.Column('employee_count', sa.Integer, nullable=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('is_local_priority', sa.Boolean, nullable=False),
        sa.Column('hr_contacts', sa.JSON, nullable=False),
        sa.Column('work_life_balance', sa.JSON, nullable=True),
        sa.Column('ai_match_score', sa.Integer, nullable=False),
        sa.Column('ai_analysis', sa.Text, nullable=False),
        sa.Column('match_factors', sa.JSON, nullable=False),
        sa.Column('highlights', sa.JSON, nullable=False),
        sa.Column('concerns', sa.JSON, nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('notes', sa.JSON, nullable=False),
        sa.Column('email_history', sa.JSON, nullable=False),
        sa.Column('api_sources', sa.JSON, nullable=False),
        sa.Column('data_quality', sa.Integer, nullable=False),
        sa.Column('search_job_id', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
    )

    op.create_table(
        'user_profiles',
        sa.Column('user_id', sa.String(36), primary_key=True),
        sa.Column('data', sa.JSON, nullable=False),
        sa.Column('ai_analysis', sa.JSON, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=False),
    )


def downgrade() -> None:
    """Drop all application tables."""
    op.drop_table('user_profiles')
    op.drop_table('companies')
    op.drop_index('ix_search_jobs_created_at', table_name='search_jobs')
    op.drop_table('search_jobs')
