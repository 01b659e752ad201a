"""001_initial_schema

Revision ID: 001
Revises:
Create Date: 2024-06-01 00:00:00.000000

Initial database schema for Cryptofolio.
Creates the users, portfolios and cryptocurrencies tables.
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
    """Create all tables."""

    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False, comment='bcrypt password hash'),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # Create portfolios table
    op.create_table(
        'portfolios',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('cryptocurrency_type', sa.String(length=20), nullable=False,
                  comment='Trading pair symbol, e.g. BTC_THB'),
        sa.Column('amount', sa.Numeric(precision=18, scale=8), nullable=False,
                  comment='Units of cryptocurrency purchased'),
        sa.Column('purchase_price', sa.Numeric(precision=18, scale=2), nullable=False,
                  comment='Price per unit in THB'),
        sa.Column('purchase_date', sa.DateTime(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_portfolios_cryptocurrency_type', 'portfolios', ['cryptocurrency_type'])
    op.create_index('ix_portfolios_purchase_date', 'portfolios', ['purchase_date'])
    op.create_index('ix_portfolios_user_id', 'portfolios', ['user_id'])
    op.create_index('ix_portfolios_user_created', 'portfolios', ['user_id', 'created_at'])
    op.create_index('ix_portfolios_user_purchase_date', 'portfolios', ['user_id', 'purchase_date'])

    # Create cryptocurrencies table
    op.create_table(
        'cryptocurrencies',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('symbol', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('current_price', sa.Numeric(precision=18, scale=8), nullable=False),
        sa.Column('price_change', sa.Numeric(precision=18, scale=8), nullable=False),
        sa.Column('price_change_percent', sa.Numeric(precision=8, scale=4), nullable=False),
        sa.Column('high_24h', sa.Numeric(precision=18, scale=8), nullable=False),
        sa.Column('low_24h', sa.Numeric(precision=18, scale=8), nullable=False),
        sa.Column('volume_24h', sa.Numeric(precision=18, scale=8), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_popular', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('symbol')
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('cryptocurrencies')

    op.drop_index('ix_portfolios_user_purchase_date', table_name='portfolios')
    op.drop_index('ix_portfolios_user_created', table_name='portfolios')
    op.drop_index('ix_portfolios_user_id', table_name='portfolios')
    op.drop_index('ix_portfolios_purchase_date', table_name='portfolios')
    op.drop_index('ix_portfolios_cryptocurrency_type', table_name='portfolios')
    op.drop_table('portfolios')

    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
