"""governance schema

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0a1b2c3d4e5f'
down_revision = None
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
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_email'), ['email'], unique=True)

    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('country', sa.String(length=64), nullable=True),
        sa.Column('city', sa.String(length=64), nullable=True),
        sa.Column('account_type', sa.String(length=16), nullable=False),
        sa.Column('balance', sa.Float(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('account_status', sa.String(length=160), nullable=False),
        sa.Column('restrictions', sa.JSON(), nullable=False),
        sa.Column('bank_accounts', sa.JSON(), nullable=False),
        sa.Column('crypto_wallets', sa.JSON(), nullable=False),
        sa.Column('approval_conditions', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('accounts', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_accounts_email'), ['email'], unique=True)

    op.create_table(
        'restriction_sources',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('source_type', sa.String(length=32), nullable=False),
        sa.Column('source_id', sa.String(length=64), nullable=False),
        sa.Column('key', sa.String(length=64), nullable=False),
        sa.Column('value', sa.String(length=64), nullable=True),
        sa.Column('message', sa.String(length=240), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('restriction_sources', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_restriction_sources_account_id'), ['account_id'], unique=False)
        batch_op.create_index('ix_restriction_sources_origin', ['account_id', 'source_type', 'source_id'], unique=False)

    op.create_table(
        'account_flags',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('flag_type', sa.String(length=32), nullable=False),
        sa.Column('severity', sa.String(length=16), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('withdrawal_disabled', sa.Boolean(), nullable=False),
        sa.Column('account_suspended', sa.Boolean(), nullable=False),
        sa.Column('requires_approval', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.String(length=64), nullable=False),
        sa.Column('created_by_name', sa.String(length=120), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('resolved_by', sa.String(length=64), nullable=True),
        sa.Column('resolved_at', sa.DateTime(), nullable=True),
        sa.Column('resolution_notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('account_flags', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_account_flags_account_id'), ['account_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_account_flags_flag_type'), ['flag_type'], unique=False)
        batch_op.create_index(batch_op.f('ix_account_flags_status'), ['status'], unique=False)

    op.create_table(
        'shadow_bans',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('ban_type', sa.String(length=24), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('banned_by', sa.String(length=64), nullable=False),
        sa.Column('banned_by_name', sa.String(length=120), nullable=True),
        sa.Column('banned_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('removed_by', sa.String(length=64), nullable=True),
        sa.Column('removed_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('shadow_bans', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_shadow_bans_account_id'), ['account_id'], unique=True)

    capability_columns = [
        sa.Column(f'{c}_enabled', sa.Boolean(), nullable=True)
        for c in (
            'withdrawals', 'messaging', 'profile_updates', 'login', 'trading', 'deposits',
            'reporting', 'account_creation', 'support_tickets', 'data_export', 'notifications', 'api_access',
        )
    ]
    op.create_table(
        'system_controls',
        sa.Column('id', sa.Integer(), nullable=False),
        *capability_columns,
        sa.Column('restricted_mode', sa.Boolean(), nullable=False),
        sa.Column('restriction_level', sa.String(length=16), nullable=False),
        sa.Column('restriction_reason', sa.String(length=400), nullable=False),
        sa.Column('allowed_pages', sa.JSON(), nullable=False),
        sa.Column('maintenance_mode', sa.Boolean(), nullable=False),
        sa.Column('maintenance_message', sa.String(length=400), nullable=False),
        sa.Column('updated_by', sa.String(length=120), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('actor_id', sa.String(length=64), nullable=False),
        sa.Column('actor_name', sa.String(length=120), nullable=False),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('target_type', sa.String(length=64), nullable=True),
        sa.Column('target_id', sa.String(length=64), nullable=True),
        sa.Column('target_name', sa.String(length=160), nullable=True),
        sa.Column('meta', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('audit_logs', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_audit_logs_actor_id'), ['actor_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_audit_logs_action'), ['action'], unique=False)
        batch_op.create_index(batch_op.f('ix_audit_logs_target_id'), ['target_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_audit_logs_created_at'), ['created_at'], unique=False)

    op.create_table(
        'withdrawals',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('method', sa.String(length=16), nullable=False),
        sa.Column('destination', sa.String(length=160), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('governor_override', sa.Boolean(), nullable=False),
        sa.Column('governor_comment', sa.String(length=400), nullable=True),
        sa.Column('overridden_by', sa.String(length=120), nullable=True),
        sa.Column('overridden_at', sa.DateTime(), nullable=True),
        sa.Column('required_documents', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('withdrawals', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_withdrawals_account_id'), ['account_id'], unique=False)

    op.create_table(
        'ledger_entries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('entry_type', sa.String(length=24), nullable=False),
        sa.Column('direction', sa.String(length=8), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('balance_after', sa.Float(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('description', sa.String(length=240), nullable=True),
        sa.Column('reference', sa.String(length=80), nullable=True),
        sa.Column('idempotency_key', sa.String(length=160), nullable=True),
        sa.Column('processed_by', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('ledger_entries', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_ledger_entries_account_id'), ['account_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_ledger_entries_reference'), ['reference'], unique=False)
        batch_op.create_index(batch_op.f('ix_ledger_entries_idempotency_key'), ['idempotency_key'], unique=True)

    op.create_table(
        'crypto_wallet_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('request_type', sa.String(length=8), nullable=False),
        sa.Column('wallet_id', sa.String(length=64), nullable=False),
        sa.Column('wallet_data', sa.JSON(), nullable=False),
        sa.Column('previous_wallet', sa.JSON(), nullable=True),
        *_lifecycle_columns(),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('crypto_wallet_requests', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_crypto_wallet_requests_account_id'), ['account_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_crypto_wallet_requests_wallet_id'), ['wallet_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_crypto_wallet_requests_status'), ['status'], unique=False)

    op.create_table(
        'account_creation_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('applicant_name', sa.String(length=120), nullable=False),
        sa.Column('applicant_email', sa.String(length=255), nullable=False),
        sa.Column('applicant_phone', sa.String(length=32), nullable=True),
        sa.Column('applicant_country', sa.String(length=64), nullable=False),
        sa.Column('applicant_city', sa.String(length=64), nullable=True),
        sa.Column('initial_deposit', sa.Float(), nullable=False),
        sa.Column('account_type', sa.String(length=16), nullable=False),
        sa.Column('bank_details', sa.JSON(), nullable=False),
        sa.Column('documents', sa.JSON(), nullable=False),
        sa.Column('approval_conditions', sa.JSON(), nullable=False),
        sa.Column('created_account_id', sa.Integer(), nullable=True),
        *_lifecycle_columns(),
        sa.ForeignKeyConstraint(['created_account_id'], ['accounts.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('account_creation_requests', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_account_creation_requests_applicant_email'), ['applicant_email'], unique=False)
        batch_op.create_index(batch_op.f('ix_account_creation_requests_status'), ['status'], unique=False)

    op.create_table(
        'withdrawal_overrides',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('withdrawal_id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('previous_status', sa.String(length=20), nullable=True),
        sa.Column('new_status', sa.String(length=20), nullable=False),
        sa.Column('reason', sa.String(length=400), nullable=False),
        sa.Column('required_documents', sa.JSON(), nullable=False),
        sa.Column('refund_entry_id', sa.Integer(), nullable=True),
        *_lifecycle_columns(),
        sa.ForeignKeyConstraint(['withdrawal_id'], ['withdrawals.id'], ),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ),
        sa.ForeignKeyConstraint(['refund_entry_id'], ['ledger_entries.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('withdrawal_overrides', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_withdrawal_overrides_withdrawal_id'), ['withdrawal_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_withdrawal_overrides_account_id'), ['account_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_withdrawal_overrides_status'), ['status'], unique=False)

    op.create_table(
        'document_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('document_type', sa.String(length=32), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('priority', sa.String(length=8), nullable=False),
        sa.Column('due_date', sa.DateTime(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(), nullable=True),
        sa.Column('submitted_documents', sa.JSON(), nullable=False),
        *_lifecycle_columns(),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('document_requests', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_document_requests_account_id'), ['account_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_document_requests_status'), ['status'], unique=False)


def downgrade():
    for table in (
        'document_requests',
        'withdrawal_overrides',
        'account_creation_requests',
        'crypto_wallet_requests',
        'ledger_entries',
        'withdrawals',
        'audit_logs',
        'system_controls',
        'shadow_bans',
        'account_flags',
        'restriction_sources',
        'accounts',
        'users',
    ):
        op.drop_table(table)
