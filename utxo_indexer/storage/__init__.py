"""
UTXO Indexer - Storage Package
================================
Ledger state persistence.
"""

from utxo_indexer.storage.db import LedgerDatabase, LedgerRepository

__all__ = [
    "LedgerDatabase",
    "LedgerRepository",
]
