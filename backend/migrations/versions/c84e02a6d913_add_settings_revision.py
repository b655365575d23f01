"""add revision and updated_at to global_settings

Revision ID: c84e02a6d913
Revises: 5b7c1d2e9f40
Create Date: 2026-09-16 14:40:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'c84e02a6d913'
down_revision = '5b7c1d2e9f40'
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    cols = {c['name'] for c in insp.get_columns('global_settings')}
    with op.batch_alter_table('global_settings') as batch_op:
        if 'revision' not in cols:
            batch_op.add_column(sa.Column('revision', sa.Integer(), nullable=False, server_default='0'))
        if 'updated_at' not in cols:
            batch_op.add_column(sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True))


def downgrade():
    with op.batch_alter_table('global_settings') as batch_op:
        batch_op.drop_column('updated_at')
        batch_op.drop_column('revision')
