"""baseline schema - users, profiles, items, invite codes, report cache

Revision ID: 001_baseline
Revises:
Create Date: 2026-10-17
"""
from alembic import op
import sqlalchemy as sa

revision = '001_baseline'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Users table
    op.create_table('users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('username', sa.String(50), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # User profiles table
    op.create_table('user_profiles',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('display_name', sa.String(100), nullable=True),
        sa.Column('username', sa.String(50), nullable=True),
        sa.Column('is_guest', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('guest_migrated_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_user_profiles_username', 'user_profiles', ['username'], unique=True)

    # Review items table
    op.create_table('review_items',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('record_date', sa.Date(), nullable=False),
        sa.Column('source_id', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'source_id', name='uq_review_items_user_source')
    )
    op.create_index('ix_review_items_user_id', 'review_items', ['user_id'])
    op.create_index('ix_review_items_user_date', 'review_items', ['user_id', 'record_date'])

    # Invite codes table
    op.create_table('invite_codes',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('code', sa.String(32), nullable=False),
        sa.Column('is_used', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('used_by', sa.String(36), nullable=True),
        sa.Column('used_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('created_by', sa.String(36), nullable=True),
        sa.ForeignKeyConstraint(['used_by'], ['users.id']),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_invite_codes_code', 'invite_codes', ['code'], unique=True)
    op.create_index('ix_invite_codes_is_used', 'invite_codes', ['is_used'])

    # Review report cache table
    op.create_table('review_reports',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('report_type', sa.String(10), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'report_type', 'start_date', 'end_date', name='unique_user_period')
    )
    op.create_index('ix_review_reports_user_type', 'review_reports', ['user_id', 'report_type'])


def downgrade():
    op.drop_index('ix_review_reports_user_type', table_name='review_reports')
    op.drop_table('review_reports')
    op.drop_index('ix_invite_codes_is_used', table_name='invite_codes')
    op.drop_index('ix_invite_codes_code', table_name='invite_codes')
    op.drop_table('invite_codes')
    op.drop_index('ix_review_items_user_date', table_name='review_items')
    op.drop_index('ix_review_items_user_id', table_name='review_items')
    op.drop_table('review_items')
    op.drop_index('ix_user_profiles_username', table_name='user_profiles')
    op.drop_table('user_profiles')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
