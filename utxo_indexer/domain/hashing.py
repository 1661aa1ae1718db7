"""
UTXO Indexer - Hashing Utilities
==================================
Deterministic content hashing for block identity.

Block id = SHA-256( str(height) || tx_id_0 || tx_id_1 || ... ), lowercase hex,
no delimiter between the parts.
"""

import hashlib
from typing import Iterable

from utxo_indexer.errors import HashingError


def compute_sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash.

    Args:
        data: Input data da hashare

    Returns:
        bytes: 32-byte hash digest

    Examples:
        >>> compute_sha256(b"").hex()
        'e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'
    """
    if not isinstance(data, bytes):
        raise HashingError(
            f"compute_sha256 requires bytes, got {type(data).__name__}",
            code="INVALID_INPUT_TYPE"
        )

    return hashlib.sha256(data).digest()


def compute_block_id(height: int, transaction_ids: Iterable[str]) -> str:
    """
    Compute the id a block at ``height`` carrying ``transaction_ids`` must have.

    Order-sensitive: reordering the transactions changes the id.

    Examples:
        >>> compute_block_id(1, ["tx1"]) == hashlib.sha256(b"1tx1").hexdigest()
        True
    """
    payload = str(height) + "".join(transaction_ids)
    return compute_sha256(payload.encode("utf-8")).hex()


__all__ = [
    "compute_sha256",
    "compute_block_id",
]
