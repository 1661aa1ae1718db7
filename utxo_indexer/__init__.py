"""
UTXO Indexer - Ledger Indexer for UTXO-model Blocks
=====================================================
Validazione, applicazione e rollback di blocchi su un ledger UTXO.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__license__ = "MIT"

# Core imports
from utxo_indexer.config import IndexerSettings, get_settings
from utxo_indexer.domain.models import Block, Transaction, TxInput, TxOutput
from utxo_indexer.domain.hashing import compute_block_id
from utxo_indexer.storage.db import LedgerDatabase

# Services
from utxo_indexer.services.indexer_service import (
    IndexerService,
    BlockOutcome,
    RollbackOutcome,
)

__all__ = [
    # Version
    "__version__",

    # Core
    "IndexerSettings",
    "get_settings",
    "Block",
    "Transaction",
    "TxInput",
    "TxOutput",
    "compute_block_id",
    "LedgerDatabase",

    # Services
    "IndexerService",
    "BlockOutcome",
    "RollbackOutcome",
]
