"""
UTXO Indexer - Domain Package
===============================
Core domain logic del ledger.
"""

# Models
from utxo_indexer.domain.models import (
    Transaction,
    TxInput,
    TxOutput,
    Block,
    UTXOKey,
    UTXORecord,
)

# Hashing
from utxo_indexer.domain.hashing import compute_sha256, compute_block_id

# Validation
from utxo_indexer.domain.validation import (
    BlockValidator,
    BlockLocalView,
    parse_height,
    check_rollback_target,
)


__all__ = [
    # Models
    "Transaction",
    "TxInput",
    "TxOutput",
    "Block",
    "UTXOKey",
    "UTXORecord",

    # Hashing
    "compute_sha256",
    "compute_block_id",

    # Validation
    "BlockValidator",
    "BlockLocalView",
    "parse_height",
    "check_rollback_target",
]
