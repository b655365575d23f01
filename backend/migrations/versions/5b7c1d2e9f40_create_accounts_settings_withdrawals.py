"""create accounts, global_settings and withdrawals

Revision ID: 5b7c1d2e9f40
Revises:
Create Date: 2026-09-02 10:12:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '5b7c1d2e9f40'
down_revision = None
branch_labels = None
depends_on = None


def _json():
    return sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade():
    bind = op.get_bind()
    existing_tables = set(sa.inspect(bind).get_table_names())

    if 'accounts' not in existing_tables:
        op.create_table(
            'accounts',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('username', sa.String(length=20), nullable=False),
            sa.Column('password_hash', sa.String(length=128), nullable=False, server_default=''),
            sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('ip_address', sa.String(length=64), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.Column('credits', sa.Integer(), nullable=False, server_default='100'),
            sa.Column('plays', sa.Integer(), nullable=False, server_default='10'),
            sa.Column('cash_balance', sa.Numeric(precision=18, scale=6), nullable=False, server_default='0'),
            sa.Column('high_scores', _json(), nullable=True),
            sa.Column('completed_levels', _json(), nullable=True),
            sa.Column('owned_skins', _json(), nullable=True),
            sa.Column('selected_skins', _json(), nullable=True),
            sa.Column('last_daily_claim', sa.BigInteger(), nullable=False, server_default='0'),
            sa.Column('sponsor_visited', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('completed_tasks', _json(), nullable=True),
            sa.Column('used_promo_codes', _json(), nullable=True),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_accounts_username', 'accounts', ['username'], unique=True)
        op.create_index('ix_accounts_ip_address', 'accounts', ['ip_address'], unique=False)

    if 'global_settings' not in existing_tables:
        op.create_table(
            'global_settings',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('min_withdraw', sa.Numeric(precision=12, scale=2), nullable=True),
            sa.Column('sponsor_link', sa.String(length=512), nullable=True),
            sa.Column('custom_promo_codes', _json(), nullable=True),
            sa.Column('admin_broadcasts', _json(), nullable=True),
            sa.Column('custom_tasks', _json(), nullable=True),
            sa.Column('custom_levels', _json(), nullable=True),
            sa.Column('custom_withdraw_methods', _json(), nullable=True),
            sa.Column('error_reports', _json(), nullable=True),
            sa.PrimaryKeyConstraint('id'),
        )

    if 'withdrawals' not in existing_tables:
        op.create_table(
            'withdrawals',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('username', sa.String(length=64), nullable=False, server_default='anonymous'),
            sa.Column('amount', sa.Numeric(precision=18, scale=6), nullable=True),
            sa.Column('method', sa.String(length=64), nullable=True),
            sa.Column('account', sa.String(length=256), nullable=True),
            sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.PrimaryKeyConstraint('id'),
        )


def downgrade():
    op.drop_table('withdrawals')
    op.drop_table('global_settings')
    op.drop_index('ix_accounts_ip_address', table_name='accounts')
    op.drop_index('ix_accounts_username', table_name='accounts')
    op.drop_table('accounts')
