"""create channels, videos and channel_stats

Revision ID: 3c1f7a9e2b40
Revises:
Create Date: 2026-10-18 10:12:31.204118

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c1f7a9e2b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'channels',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('title', sa.Text()),
        sa.Column('description', sa.Text()),
        sa.Column('thumbnail_url', sa.Text()),
        sa.Column('custom_url', sa.Text()),
        sa.Column('category', sa.Text(), nullable=False, server_default='general'),
        sa.Column('subscriber_count', sa.BIGINT(), nullable=False, server_default='0'),
        sa.Column('video_count', sa.BIGINT(), nullable=False, server_default='0'),
        sa.Column('view_count', sa.BIGINT(), nullable=False, server_default='0'),
        sa.Column('published_at', sa.TIMESTAMP(timezone=True)),
        sa.Column('parent_channel_id', sa.String()),
        sa.Column('secondary_channel_ids', sa.JSON()),
        sa.Column('group_name', sa.Text()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index('ix_channels_parent_channel_id', 'channels', ['parent_channel_id'])

    op.create_table(
        'videos',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('channel_id', sa.String(), sa.ForeignKey('channels.id'), nullable=False),
        sa.Column('title', sa.Text()),
        sa.Column('description', sa.Text()),
        sa.Column('thumbnail_url', sa.Text()),
        sa.Column('published_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('view_count', sa.BIGINT(), nullable=False, server_default='0'),
        sa.Column('like_count', sa.BIGINT(), nullable=False, server_default='0'),
        sa.Column('comment_count', sa.BIGINT(), nullable=False, server_default='0'),
        sa.Column('duration', sa.Text()),
        sa.Column('video_type', sa.String(), nullable=False, server_default='normal'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index('idx_videos_channel_published', 'videos', ['channel_id', 'published_at'])
    op.create_index('idx_videos_published', 'videos', ['published_at'])

    op.create_table(
        'channel_stats',
        sa.Column('id', sa.BIGINT().with_variant(sa.Integer(), 'sqlite'), primary_key=True, autoincrement=True),
        sa.Column('channel_id', sa.String(), sa.ForeignKey('channels.id'), nullable=False),
        sa.Column('captured_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('subscriber_count', sa.BIGINT(), nullable=False, server_default='0'),
        sa.Column('video_count', sa.BIGINT(), nullable=False, server_default='0'),
        sa.Column('view_count', sa.BIGINT(), nullable=False, server_default='0'),
        sa.Column('total_likes', sa.BIGINT(), nullable=False, server_default='0'),
        sa.Column('total_comments', sa.BIGINT(), nullable=False, server_default='0'),
        sa.Column('videos_last_30_days', sa.BIGINT(), nullable=False, server_default='0'),
        sa.Column('views_last_30_days', sa.BIGINT(), nullable=False, server_default='0'),
    )
    op.create_index('idx_channel_stats_channel_captured', 'channel_stats', ['channel_id', 'captured_at'])


def downgrade() -> None:
    op.drop_index('idx_channel_stats_channel_captured', table_name='channel_stats')
    op.drop_table('channel_stats')
    op.drop_index('idx_videos_published', table_name='videos')
    op.drop_index('idx_videos_channel_published', table_name='videos')
    op.drop_table('videos')
    op.drop_index('ix_channels_parent_channel_id', table_name='channels')
    op.drop_table('channels')
