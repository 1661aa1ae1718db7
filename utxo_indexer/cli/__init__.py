"""
UTXO Indexer - CLI Package
============================
Command line interface (Typer).
"""
