"""flag versions, account closures, withdrawal flags

Revision ID: 1b2c3d4e5f6a
Revises: 0a1b2c3d4e5f
Create Date: 2026-10-18 15:30:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '1b2c3d4e5f6a'
down_revision = '0a1b2c3d4e5f'
branch_labels = None
depends_on = None


def _lifecycle_columns():
    return [
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('requested_by', sa.String(length=64), nullable=False),
        sa.Column('requested_by_name', sa.String(length=120), nullable=True),
        sa.Column('requested_at', sa.DateTime(), nullable=False),
        sa.Column('reviewed_by', sa.String(length=64), nullable=True),
        sa.Column('reviewed_by_name', sa.String(length=120), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('review_comment', sa.String(length=400), nullable=True),
        sa.Column('rejection_reason', sa.String(length=400), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
    ]


def upgrade():
    with op.batch_alter_table('account_flags', schema=None) as batch_op:
        batch_op.add_column(sa.Column('version', sa.Integer(), nullable=False, server_default='1'))

    with op.batch_alter_table('shadow_bans', schema=None) as batch_op:
        batch_op.add_column(sa.Column('version', sa.Integer(), nullable=False, server_default='1'))

    op.create_table(
        'account_closure_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(length=400), nullable=False),
        sa.Column('account_balance', sa.Float(), nullable=False),
        sa.Column('fund_transfer_method', sa.String(length=64), nullable=True),
        sa.Column('stage', sa.String(length=16), nullable=False),
        sa.Column('countdown_ends_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('payout_entry_id', sa.Integer(), nullable=True),
        *_lifecycle_columns(),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ),
        sa.ForeignKeyConstraint(['payout_entry_id'], ['ledger_entries.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('account_closure_requests', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_account_closure_requests_account_id'), ['account_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_account_closure_requests_status'), ['status'], unique=False)

    op.create_table(
        'withdrawal_flags',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('withdrawal_id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('flag_type', sa.String(length=32), nullable=False),
        sa.Column('priority', sa.String(length=8), nullable=False),
        sa.Column('comment', sa.String(length=400), nullable=False),
        sa.Column('requested_by_role', sa.String(length=16), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_lifecycle_columns(),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ),
        sa.ForeignKeyConstraint(['withdrawal_id'], ['withdrawals.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('withdrawal_flags', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_withdrawal_flags_account_id'), ['account_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_withdrawal_flags_withdrawal_id'), ['withdrawal_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_withdrawal_flags_status'), ['status'], unique=False)


def downgrade():
    op.drop_table('withdrawal_flags')
    op.drop_table('account_closure_requests')

    with op.batch_alter_table('shadow_bans', schema=None) as batch_op:
        batch_op.drop_column('version')

    with op.batch_alter_table('account_flags', schema=None) as batch_op:
        batch_op.drop_column('version')
