"""Initial video exchange schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create plans, users, videos, exchanges, ratings and side-effect tables."""

    op.create_table(
        'plans',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(20), nullable=False, unique=True, index=True),
        sa.Column('monthly_price', sa.Float, nullable=False, server_default='0'),

        # Quotas (bytes are BIGINT)
        sa.Column('library_storage', sa.BigInteger, nullable=False),
        sa.Column('library_size', sa.Integer, nullable=False),
        sa.Column('video_max_size', sa.BigInteger, nullable=False),
        sa.Column('exchange_limit', sa.Integer, nullable=False, server_default='0'),

        # Feature flags
        sa.Column('stats', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('exchange_priority', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('search_priority', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('support_priority', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('billing_price_id', sa.String(255)),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('username', sa.String(32), nullable=False, unique=True, index=True),

        # Subscription
        sa.Column('plan_id', sa.Uuid(), sa.ForeignKey('plans.id'), index=True),
        sa.Column('subscription_id', sa.String(255), index=True),
        sa.Column('billing_customer_id', sa.String(255)),

        # Reputation
        sa.Column('rating_sum', sa.Float, nullable=False, server_default='0'),
        sa.Column('rating_count', sa.Integer, nullable=False, server_default='0'),

        # Timestamps
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'videos',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(60), nullable=False),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('category', sa.String(40), nullable=False, index=True),
        sa.Column('keywords', sa.JSON, nullable=False),
        sa.Column('size', sa.BigInteger, nullable=False),
        sa.Column('hash', sa.String(64), index=True),
        sa.Column('storage_key', sa.String(255)),
        sa.Column('is_sensitive_content', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('uploaded_date', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('owner_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('rating_sum', sa.Float, nullable=False, server_default='0'),
        sa.Column('rating_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('views', sa.Integer, nullable=False, server_default='0'),
    )

    op.create_table(
        'video_ownerships',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('video_id', sa.Uuid(), sa.ForeignKey('videos.id'), nullable=False, index=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), index=True),
        sa.Column('sequence', sa.Integer, nullable=False),
        sa.Column('acquired_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('video_id', 'sequence', name='uq_video_ownerships_video_sequence'),
    )

    op.create_table(
        'video_views',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('video_id', sa.Uuid(), sa.ForeignKey('videos.id'), nullable=False, index=True),
        sa.Column('ip', sa.String(64), nullable=False),
        sa.Column('viewed_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(), index=True),
    )

    op.create_table(
        'library_entries',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('video_id', sa.Uuid(), sa.ForeignKey('videos.id'), nullable=False, index=True),
        sa.Column('added_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'video_id', name='uq_library_entries_user_video'),
    )

    op.create_table(
        'exchanges',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('initiator_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('responder_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('initiator_video_id', sa.Uuid(), sa.ForeignKey('videos.id'), index=True),
        sa.Column('responder_video_id', sa.Uuid(), sa.ForeignKey('videos.id'), index=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending', index=True),
        sa.Column('pair_key', sa.String(80), nullable=False),
        # Local wall-clock time; monthly exchange limits are counted in it
        sa.Column('requested_date', sa.DateTime(), nullable=False, index=True),
    )

    # At most one pending exchange per unordered pair of users
    op.create_index(
        'uq_exchanges_pending_pair',
        'exchanges',
        ['pair_key'],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
        sqlite_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        'ratings',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('exchange_id', sa.Uuid(), sa.ForeignKey('exchanges.id'), nullable=False, index=True),
        sa.Column('rating_user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('rated_user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('video_id', sa.Uuid(), sa.ForeignKey('videos.id'), index=True),
        sa.Column('rating', sa.Float, nullable=False),
        sa.Column('comment', sa.String(500), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('exchange_id', 'rating_user_id', name='uq_ratings_exchange_rater'),
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('exchange_id', sa.Uuid(), sa.ForeignKey('exchanges.id'), nullable=False, index=True),
        sa.Column('type', sa.String(40), nullable=False),
        sa.Column('is_read', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'reports',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('reason', sa.String(40), nullable=False),
        sa.Column('other_reason', sa.String(100)),
        sa.Column('details', sa.String(500)),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('reporter_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('reported_video_id', sa.Uuid(), sa.ForeignKey('videos.id'), index=True),
        sa.Column('exchange_id', sa.Uuid(), sa.ForeignKey('exchanges.id')),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    """Drop everything in reverse dependency order."""
    op.drop_table('reports')
    op.drop_table('notifications')
    op.drop_table('ratings')
    op.drop_index('uq_exchanges_pending_pair', table_name='exchanges')
    op.drop_table('exchanges')
    op.drop_table('library_entries')
    op.drop_table('video_views')
    op.drop_table('video_ownerships')
    op.drop_table('videos')
    op.drop_table('users')
    op.drop_table('plans')
