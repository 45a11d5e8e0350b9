"""Create complaint_types table

Revision ID: 002_create_complaint_types
Revises: 001_create_system_config
Create Date: 2025-10-02 09:30:00.000000

"""
from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '002_create_complaint_types'
down_revision: str | None = '001_create_system_config'
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        'complaint_types',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('priority', sa.String(20), nullable=False, server_default='MEDIUM'),
        sa.Column('sla_hours', sa.Integer(), nullable=False, server_default='48'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_complaint_types_name')
    )
    op.create_index('ix_complaint_types_is_active', 'complaint_types', ['is_active'])


def downgrade() -> None:
    op.drop_index('ix_complaint_types_is_active', table_name='complaint_types')
    op.drop_table('complaint_types')
