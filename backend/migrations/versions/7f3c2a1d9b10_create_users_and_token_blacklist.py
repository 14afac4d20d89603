"""create users and token_blacklist

Revision ID: 7f3c2a1d9b10
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = '7f3c2a1d9b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('phone_number', sa.String(length=10), nullable=False),
        sa.Column('pin_hash', sa.String(length=255), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_users')),
        sa.UniqueConstraint('phone_number', name='uq_users_phone_number'),
    )

    op.create_table(
        'token_blacklist',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('token_key', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('token_type', sa.String(length=16), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('blacklisted_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_token_blacklist')),
        sa.UniqueConstraint('token_key', name=op.f('uq_token_blacklist_token_key')),
    )
    with op.batch_alter_table('token_blacklist', schema=None) as batch_op:
        batch_op.create_index('ix_token_blacklist_user_id', ['user_id'], unique=False)
        batch_op.create_index('ix_token_blacklist_expires_at', ['expires_at'], unique=False)


def downgrade():
    with op.batch_alter_table('token_blacklist', schema=None) as batch_op:
        batch_op.drop_index('ix_token_blacklist_expires_at')
        batch_op.drop_index('ix_token_blacklist_user_id')

    op.drop_table('token_blacklist')
    op.drop_table('users')
