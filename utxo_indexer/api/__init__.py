"""
UTXO Indexer - API Package
============================
REST API for ledger submission and queries.
"""

from utxo_indexer.api.rest_api import create_app, initialize_api

__all__ = [
    "create_app",
    "initialize_api",
]
