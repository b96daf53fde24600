"""Initial compensation engine schema.

Revision ID: 20251204_000001
Revises:
Create Date: 2025-12-04 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '20251204_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.DECIMAL(18, 8)
RATE = sa.DECIMAL(10, 6)
PERCENT = sa.DECIMAL(5, 2)
JSON = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    """Create participants, tree, ledger, stake and batch tables."""

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('referral_code', sa.String(20), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='user'),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_referral_code', 'users', ['referral_code'], unique=True)
    op.create_index('ix_users_is_verified', 'users', ['is_verified'])
    op.create_index('ix_users_is_active', 'users', ['is_active'])

    op.create_table(
        'genealogy',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('parent_id', sa.Integer(), nullable=True, comment='Binary tree parent (null for roots)'),
        sa.Column('sponsor_id', sa.Integer(), nullable=True, comment='Referral lineage parent'),
        sa.Column('position', sa.String(10), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['parent_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['sponsor_id'], ['users.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('parent_id', 'position', name='uq_genealogy_parent_position'),
        sa.CheckConstraint("position IS NULL OR position IN ('left', 'right')", name='check_genealogy_position'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_genealogy_user_id', 'genealogy', ['user_id'], unique=True)
    op.create_index('ix_genealogy_parent_id', 'genealogy', ['parent_id'])
    op.create_index('ix_genealogy_sponsor_id', 'genealogy', ['sponsor_id'])
    op.create_index('idx_genealogy_parent_position', 'genealogy', ['parent_id', 'position'])

    op.create_table(
        'wallets',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('wallet_type', sa.String(20), nullable=False, server_default='main'),
        sa.Column('balance', MONEY, nullable=False, server_default='0'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', 'wallet_type', name='uq_wallet_user_type'),
        sa.CheckConstraint('balance >= 0', name='check_wallet_balance_non_negative'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_wallets_user_id', 'wallets', ['user_id'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('wallet_type', sa.String(20), nullable=False, server_default='main'),
        sa.Column('transaction_type', sa.String(20), nullable=False),
        sa.Column('reference_type', sa.String(20), nullable=True),
        sa.Column('reference_id', sa.String(100), nullable=True),
        sa.Column('amount', MONEY, nullable=False, comment='Positive for credit, negative for debit'),
        sa.Column('fee', MONEY, nullable=False, server_default='0'),
        sa.Column('currency', sa.String(10), nullable=False, server_default='USD'),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('metadata', JSON, nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.CheckConstraint('fee >= 0', name='check_transaction_fee_non_negative'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_transactions_user_id', 'transactions', ['user_id'])
    op.create_index('ix_transactions_transaction_type', 'transactions', ['transaction_type'])
    op.create_index('ix_transactions_reference_id', 'transactions', ['reference_id'])
    op.create_index('ix_transactions_status', 'transactions', ['status'])
    op.create_index('ix_transactions_created_at', 'transactions', ['created_at'])
    op.create_index('idx_transaction_user_type', 'transactions', ['user_id', 'transaction_type'])
    op.create_index('idx_transaction_type_created', 'transactions', ['transaction_type', 'created_at'])

    op.create_table(
        'stakes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('pack_type', sa.String(20), nullable=False),
        sa.Column('shares', sa.Integer(), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('daily_roi_rate', RATE, nullable=False),
        sa.Column('max_reward_limit', PERCENT, nullable=False, comment='Lifetime limit, percent of principal'),
        sa.Column('total_rewards_earned', MONEY, nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('last_reward_calculation', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.CheckConstraint('shares >= 1', name='check_stake_shares_positive'),
        sa.CheckConstraint('amount > 0', name='check_stake_amount_positive'),
        sa.CheckConstraint('total_rewards_earned >= 0', name='check_stake_rewards_non_negative'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_stakes_user_id', 'stakes', ['user_id'])
    op.create_index('ix_stakes_pack_type', 'stakes', ['pack_type'])
    op.create_index('ix_stakes_status', 'stakes', ['status'])
    op.create_index('idx_stake_user_status', 'stakes', ['user_id', 'status'])

    op.create_table(
        'stake_rewards',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('stake_id', sa.Integer(), nullable=False),
        sa.Column('reward_date', sa.Date(), nullable=False),
        sa.Column('core_reward', MONEY, nullable=False, server_default='0'),
        sa.Column('harvest_reward', MONEY, nullable=False, server_default='0'),
        sa.Column('total_reward', MONEY, nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('credited_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['stake_id'], ['stakes.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('stake_id', 'reward_date', name='uq_stake_reward_stake_date'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_stake_rewards_stake_id', 'stake_rewards', ['stake_id'])
    op.create_index('ix_stake_rewards_reward_date', 'stake_rewards', ['reward_date'])
    op.create_index('idx_stake_reward_status_date', 'stake_rewards', ['status', 'reward_date'])

    op.create_table(
        'team_volumes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('left_volume', MONEY, nullable=False, server_default='0'),
        sa.Column('right_volume', MONEY, nullable=False, server_default='0'),
        sa.Column('left_carry', MONEY, nullable=False, server_default='0'),
        sa.Column('right_carry', MONEY, nullable=False, server_default='0'),
        sa.Column('daily_paid', MONEY, nullable=False, server_default='0'),
        sa.Column('last_reset_date', sa.Date(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_team_volumes_user_id', 'team_volumes', ['user_id'], unique=True)

    op.create_table(
        'team_cycles',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('cycle_date', sa.Date(), nullable=False),
        sa.Column('cycles', sa.Integer(), nullable=False),
        sa.Column('left_used', MONEY, nullable=False),
        sa.Column('right_used', MONEY, nullable=False),
        sa.Column('weaker_leg_volume', MONEY, nullable=False),
        sa.Column('reward_amount', MONEY, nullable=False),
        sa.Column('rate_used', RATE, nullable=False),
        sa.Column('pack_type', sa.String(20), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='completed'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_team_cycles_user_id', 'team_cycles', ['user_id'])
    op.create_index('ix_team_cycles_cycle_date', 'team_cycles', ['cycle_date'])
    op.create_index('idx_team_cycle_user_date', 'team_cycles', ['user_id', 'cycle_date'])

    op.create_table(
        'user_ranks',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('rank', sa.String(20), nullable=False, server_default='unranked'),
        sa.Column('override_percent', PERCENT, nullable=False, server_default='0'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.CheckConstraint('override_percent >= 0 AND override_percent <= 100', name='check_user_rank_percent_range'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_ranks_user_id', 'user_ranks', ['user_id'], unique=True)

    op.create_table(
        'job_runs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('job_name', sa.String(50), nullable=False),
        sa.Column('run_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='running'),
        sa.Column('meta', JSON, nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('finished_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('job_name', 'run_date', name='uq_job_run_name_date'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_job_runs_job_name', 'job_runs', ['job_name'])
    op.create_index('ix_job_runs_run_date', 'job_runs', ['run_date'])


def downgrade() -> None:
    """Drop every table in reverse dependency order."""
    op.drop_table('job_runs')
    op.drop_table('user_ranks')
    op.drop_table('team_cycles')
    op.drop_table('team_volumes')
    op.drop_table('stake_rewards')
    op.drop_table('stakes')
    op.drop_table('transactions')
    op.drop_table('wallets')
    op.drop_table('genealogy')
    op.drop_table('users')
