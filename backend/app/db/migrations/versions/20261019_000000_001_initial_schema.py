############################################################
#
# requestbooth - Live Event Song Request Service
#
# 001_initial_schema.py: Initial database schema migration
#
############################################################

"""Initial database schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # DJ accounts
    op.create_table(
        'dj_users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(50), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_dj_users_username', 'dj_users', ['username'], unique=True)

    # Song catalog
    op.create_table(
        'songs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('artist', sa.String(255), nullable=False),
        sa.Column('genre', sa.String(100), nullable=True),
        sa.Column('duration', sa.String(16), nullable=True),
        sa.Column('request_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('song_type', sa.Enum('dj', 'karaoke', 'both', name='songtype'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_songs_title', 'songs', ['title'])
    op.create_index('ix_songs_artist', 'songs', ['artist'])

    # Song requests
    op.create_table(
        'requests',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('song_id', sa.Integer(), nullable=True),
        sa.Column('song_title', sa.String(255), nullable=False),
        sa.Column('song_artist', sa.String(255), nullable=False),
        sa.Column('song_version', sa.Enum('Standard', 'Karaoke', name='songversion'), nullable=False),
        sa.Column('request_type', sa.Enum('dj', 'karaoke', name='requesttype'), nullable=False),
        sa.Column('requester_name', sa.String(100), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.Enum('pending', 'played', 'skipped', 'removed', name='requeststatus'), nullable=False),
        sa.Column('is_manual_request', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('user_uuid', sa.String(64), nullable=True),
        sa.Column('device_fingerprint', sa.String(64), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['song_id'], ['songs.id']),
    )
    op.create_index('ix_requests_type_timestamp', 'requests', ['request_type', 'timestamp'])
    op.create_index('ix_requests_user_uuid', 'requests', ['user_uuid'])
    op.create_index('ix_requests_status', 'requests', ['status'])

    # Ban list
    op.create_table(
        'ban_list',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_uuid', sa.String(64), nullable=False),
        sa.Column('device_fingerprint', sa.String(64), nullable=True),
        sa.Column('ban_reason', sa.Text(), nullable=False),
        sa.Column('ban_timestamp', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('is_permanent', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_ban_list_user_uuid', 'ban_list', ['user_uuid'])

    # Terms of service acceptance
    op.create_table(
        'terms_acceptance',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_uuid', sa.String(64), nullable=False),
        sa.Column('device_fingerprint', sa.String(64), nullable=True),
        sa.Column('accepted_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_terms_acceptance_user_uuid', 'terms_acceptance', ['user_uuid'], unique=True)

    # Global switches
    op.create_table(
        'system_settings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('key', sa.String(100), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('key'),
    )


def downgrade() -> None:
    op.drop_table('system_settings')
    op.drop_table('terms_acceptance')
    op.drop_table('ban_list')
    op.drop_table('requests')
    op.drop_table('songs')
    op.drop_table('dj_users')
