"""Create system_config table

Revision ID: 001_create_system_config
Revises:
Create Date: 2025-10-02 09:00:00.000000

"""
from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_create_system_config'
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        'system_config',
        sa.Column('key', sa.String(100), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('type', sa.String(50), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('key')
    )
    op.create_index('ix_system_config_type', 'system_config', ['type'])
    op.create_index('ix_system_config_is_active', 'system_config', ['is_active'])


def downgrade() -> None:
    op.drop_index('ix_system_config_is_active', table_name='system_config')
    op.drop_index('ix_system_config_type', table_name='system_config')
    op.drop_table('system_config')
