"""
Initial schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """
    Create the ledger schema: blocks, transactions, utxos.
    """

    # ========================================================================
    # BLOCKS TABLE
    # ========================================================================

    op.create_table(
        'blocks',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('height', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('height')
    )

    op.create_index('idx_blocks_height', 'blocks', ['height'])

    # ========================================================================
    # TRANSACTIONS TABLE
    # ========================================================================

    op.create_table(
        'transactions',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('block_id', sa.String(length=255), nullable=False),
        sa.Column('block_height', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['block_id'], ['blocks.id']),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_index('idx_transactions_block_height', 'transactions', ['block_height'])
    op.create_index('idx_transactions_block_id', 'transactions', ['block_id'])

    # ========================================================================
    # UTXOS TABLE
    # ========================================================================

    op.create_table(
        'utxos',
        sa.Column('tx_id', sa.String(length=255), nullable=False),
        sa.Column('output_index', sa.Integer(), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=False),
        sa.Column('value', sa.BigInteger(), nullable=False),
        sa.Column('spent', sa.Boolean(), nullable=False),
        sa.Column('spent_in_tx', sa.String(length=255), nullable=True),
        sa.Column('created_at_height', sa.Integer(), nullable=False),
        sa.CheckConstraint(
            '(spent AND spent_in_tx IS NOT NULL) OR '
            '(NOT spent AND spent_in_tx IS NULL)',
            name='ck_utxos_spent_consistency'
        ),
        sa.CheckConstraint('value >= 0', name='ck_utxos_value_non_negative'),
        sa.PrimaryKeyConstraint('tx_id', 'output_index')
    )

    op.create_index('idx_utxos_address_spent', 'utxos', ['address', 'spent'])
    op.create_index('idx_utxos_spent_in_tx', 'utxos', ['spent_in_tx'])
    op.create_index('idx_utxos_created_at_height', 'utxos', ['created_at_height'])


def downgrade() -> None:
    """
    Drop all tables (reverse migration).
    """
    op.drop_table('utxos')
    op.drop_table('transactions')
    op.drop_table('blocks')
