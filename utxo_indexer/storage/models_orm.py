"""
UTXO Indexer - ORM Models
===========================
SQLAlchemy ORM models for the ledger state store.

Three record sets:
- blocks: keyed by id, unique height
- transactions: keyed by id, foreign key to block
- utxos: keyed by (tx_id, output_index)
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    BigInteger,
    Boolean,
    ForeignKey,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import declarative_base

from utxo_indexer.constants import MAX_ID_LENGTH, MAX_ADDRESS_LENGTH

Base = declarative_base()


class BlockORM(Base):
    """Block ORM model"""
    __tablename__ = 'blocks'

    id = Column(String(MAX_ID_LENGTH), primary_key=True)
    height = Column(Integer, nullable=False, unique=True)

    __table_args__ = (
        Index('idx_blocks_height', 'height'),
    )

    def __repr__(self) -> str:
        return f"<BlockORM height={self.height} id={self.id[:16]}...>"


class TransactionORM(Base):
    """Transaction ORM model"""
    __tablename__ = 'transactions'

    id = Column(String(MAX_ID_LENGTH), primary_key=True)
    block_id = Column(String(MAX_ID_LENGTH), ForeignKey('blocks.id'), nullable=False)
    block_height = Column(Integer, nullable=False)
    # Position inside the block (0-based)
    position = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index('idx_transactions_block_height', 'block_height'),
        Index('idx_transactions_block_id', 'block_id'),
    )


class UTXOORM(Base):
    """UTXO ORM model"""
    __tablename__ = 'utxos'

    tx_id = Column(String(MAX_ID_LENGTH), primary_key=True)
    output_index = Column(Integer, primary_key=True)
    address = Column(String(MAX_ADDRESS_LENGTH), nullable=False)
    value = Column(BigInteger, nullable=False)
    spent = Column(Boolean, nullable=False, default=False)
    spent_in_tx = Column(String(MAX_ID_LENGTH), nullable=True)
    created_at_height = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint(
            '(spent AND spent_in_tx IS NOT NULL) OR '
            '(NOT spent AND spent_in_tx IS NULL)',
            name='ck_utxos_spent_consistency'
        ),
        CheckConstraint('value >= 0', name='ck_utxos_value_non_negative'),
        Index('idx_utxos_address_spent', 'address', 'spent'),
        Index('idx_utxos_spent_in_tx', 'spent_in_tx'),
        Index('idx_utxos_created_at_height', 'created_at_height'),
    )


__all__ = [
    'Base',
    'BlockORM',
    'TransactionORM',
    'UTXOORM',
]
