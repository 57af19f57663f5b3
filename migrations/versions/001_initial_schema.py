"""Initial schema baseline

Revision ID: 001
Revises:
Create Date: 2026-10-19

Documents the schema created by keybridge.db.init_db(). Databases created by
init_db() should be marked as complete using:
    alembic stamp 001
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the key mirror, app configuration and member tables"""

    op.create_table(
        'api_keys',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer, nullable=False),
        sa.Column('app_id', sa.Text, nullable=False),
        sa.Column('key_id', sa.Text, nullable=False, unique=True),
        sa.Column('tier', sa.Text, nullable=False),
        sa.Column('permissions', sa.Text, nullable=False),
        sa.Column('active', sa.Integer, default=1),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.current_timestamp()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.current_timestamp()),
        sa.UniqueConstraint('user_id', 'app_id'),
    )

    op.create_table(
        'apps',
        sa.Column('app_id', sa.Text, primary_key=True),
        sa.Column('base_url', sa.Text, nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.current_timestamp()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        'app_tiers',
        sa.Column('app_id', sa.Text, sa.ForeignKey('apps.app_id', ondelete='CASCADE'), primary_key=True),
        sa.Column('tier_id', sa.Integer, primary_key=True),
        sa.Column('tier_name', sa.Text, nullable=True),
        sa.Column('permissions', sa.Text, nullable=False),
    )

    op.create_table(
        'members',
        sa.Column('user_id', sa.Integer, primary_key=True),
        sa.Column('email', sa.Text, nullable=False),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.current_timestamp()),
    )

    op.create_index('idx_api_keys_user_active', 'api_keys', ['user_id', 'active'])
    op.create_index('idx_app_tiers_tier_id', 'app_tiers', ['tier_id'])


def downgrade() -> None:
    op.drop_index('idx_app_tiers_tier_id', 'app_tiers')
    op.drop_index('idx_api_keys_user_active', 'api_keys')
    op.drop_table('members')
    op.drop_table('app_tiers')
    op.drop_table('apps')
    op.drop_table('api_keys')
