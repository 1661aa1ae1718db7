"""
UTXO Indexer - Services Package
=================================
High-level service layer.
"""

from utxo_indexer.services.indexer_service import (
    IndexerService,
    BlockOutcome,
    RollbackOutcome,
)

__all__ = [
    "IndexerService",
    "BlockOutcome",
    "RollbackOutcome",
]
