"""Add energy contract table

Revision ID: 001
Revises:
Create Date: 2026-10-17
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'energy_contracts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('client', sa.String(150), nullable=False),
        sa.Column('supplier', sa.String(150), nullable=True),
        sa.Column('energy_source', sa.String(50), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('flex_upper_pct', sa.Numeric(6, 2), nullable=False, server_default='0'),
        sa.Column('flex_lower_pct', sa.Numeric(6, 2), nullable=False, server_default='0'),
        sa.Column('price_periods', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_energy_contracts_id', 'energy_contracts', ['id'])
    op.create_index('ix_energy_contracts_code', 'energy_contracts', ['code'], unique=True)


def downgrade():
    op.drop_index('ix_energy_contracts_code', table_name='energy_contracts')
    op.drop_index('ix_energy_contracts_id', table_name='energy_contracts')
    op.drop_table('energy_contracts')
