"""Create media_exports table

Revision ID: 001_create_media_exports
Revises: 
Create Date: 2026-10-17 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_create_media_exports'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'media_exports',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('backup_name', sa.String(255), nullable=False, index=True),
        sa.Column('backup_path', sa.String(1024), nullable=False),
        sa.Column('output_path', sa.String(1024), nullable=False),
        sa.Column('status', sa.Enum('queued', 'running', 'completed', 'failed', name='exportstatus', native_enum=False, create_constraint=True), nullable=False, server_default='queued'),
        sa.Column('thread_ids', sa.JSON(), nullable=True),
        sa.Column('date_ranges', sa.JSON(), nullable=True),
        sa.Column('overwrite', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('total', sa.BigInteger(), nullable=True),
        sa.Column('written', sa.BigInteger(), nullable=True),
        sa.Column('filtered', sa.BigInteger(), nullable=True),
        sa.Column('skipped', sa.BigInteger(), nullable=True),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('finished_at', sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table('media_exports')
