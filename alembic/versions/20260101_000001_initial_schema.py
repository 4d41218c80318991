"""Initial income engine schema

Revision ID: 20260101_000001
Revises:
Create Date: 2026-01-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20260101_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.DECIMAL(18, 8)


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('referral_code', sa.String(20), nullable=False),
        sa.Column('sponsor_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['sponsor_id'], ['users.id'], ondelete='SET NULL'),
        sa.CheckConstraint('sponsor_id IS NULL OR sponsor_id <> id', name='check_user_not_own_sponsor'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_referral_code', 'users', ['referral_code'], unique=True)
    op.create_index('ix_users_sponsor_id', 'users', ['sponsor_id'])

    op.create_table(
        'wallets',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('balance', MONEY, nullable=False, server_default='0'),
        sa.Column('package_balance', MONEY, nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.CheckConstraint('balance >= 0', name='check_wallet_balance_non_negative'),
        sa.CheckConstraint('package_balance >= 0', name='check_wallet_package_balance_non_negative'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_wallets_user_id', 'wallets', ['user_id'], unique=True)

    op.create_table(
        'deposits',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('network', sa.String(20), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('unlock_date', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.CheckConstraint('amount > 0', name='check_deposit_amount_positive'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_deposits_user_id', 'deposits', ['user_id'])
    op.create_index('ix_deposits_status', 'deposits', ['status'])
    op.create_index('ix_deposits_created_at', 'deposits', ['created_at'])
    op.create_index('idx_deposit_status_unlock', 'deposits', ['status', 'unlock_date'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('direction', sa.String(10), nullable=False),
        sa.Column('income_source', sa.String(50), nullable=False),
        sa.Column('balance_field', sa.String(20), nullable=False, server_default='balance'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='completed'),
        sa.Column('referral_level', sa.Integer(), nullable=True),
        sa.Column('source_user_id', sa.Integer(), nullable=True),
        sa.Column('source_type', sa.String(30), nullable=True),
        sa.Column('source_id', sa.Integer(), nullable=True),
        sa.Column('cycle_number', sa.Integer(), nullable=True),
        sa.Column('correlation_key', sa.String(120), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['source_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('correlation_key'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_transactions_user_id', 'transactions', ['user_id'])
    op.create_index('ix_transactions_income_source', 'transactions', ['income_source'])
    op.create_index('ix_transactions_status', 'transactions', ['status'])
    op.create_index('ix_transactions_source_user_id', 'transactions', ['source_user_id'])
    op.create_index('ix_transactions_created_at', 'transactions', ['created_at'])
    op.create_index('idx_transaction_user_source', 'transactions', ['user_id', 'income_source'])
    op.create_index('idx_transaction_source_event', 'transactions', ['source_type', 'source_id'])
    op.create_index('idx_transaction_source_created', 'transactions', ['income_source', 'created_at'])

    op.create_table(
        'distribution_markers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('source_type', sa.String(30), nullable=False),
        sa.Column('source_id', sa.Integer(), nullable=False),
        sa.Column('cycle_number', sa.Integer(), nullable=False),
        sa.Column('principal', MONEY, nullable=False),
        sa.Column('total_distributed', MONEY, nullable=False, server_default='0'),
        sa.Column('payouts_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('schedule_version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('source_type', 'source_id', 'cycle_number', name='uq_distribution_marker_unit'),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'reward_tiers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('rank_required', sa.Integer(), nullable=False),
        sa.Column('bonus_amount', MONEY, nullable=False),
        sa.Column('timeframe_days', sa.Integer(), nullable=False),
        sa.CheckConstraint('bonus_amount > 0', name='check_reward_tier_bonus_positive'),
        sa.CheckConstraint('timeframe_days > 0', name='check_reward_tier_timeframe_positive'),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'user_rewards',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('tier_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='in_progress'),
        sa.Column('achieved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tier_id'], ['reward_tiers.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', 'tier_id', name='uq_user_reward_tier'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_user_rewards_user_id', 'user_rewards', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_user_rewards_user_id', 'user_rewards')
    op.drop_table('user_rewards')
    op.drop_table('reward_tiers')
    op.drop_table('distribution_markers')

    for index in (
        'idx_transaction_source_created',
        'idx_transaction_source_event',
        'idx_transaction_user_source',
        'ix_transactions_created_at',
        'ix_transactions_source_user_id',
        'ix_transactions_status',
        'ix_transactions_income_source',
        'ix_transactions_user_id',
    ):
        op.drop_index(index, 'transactions')
    op.drop_table('transactions')

    op.drop_index('idx_deposit_status_unlock', 'deposits')
    op.drop_index('ix_deposits_created_at', 'deposits')
    op.drop_index('ix_deposits_status', 'deposits')
    op.drop_index('ix_deposits_user_id', 'deposits')
    op.drop_table('deposits')

    op.drop_index('ix_wallets_user_id', 'wallets')
    op.drop_table('wallets')

    op.drop_index('ix_users_sponsor_id', 'users')
    op.drop_index('ix_users_referral_code', 'users')
    op.drop_index('ix_users_email', 'users')
    op.drop_table('users')
