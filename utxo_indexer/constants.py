"""
UTXO Indexer - Core Constants
===============================
Costanti del ledger indexer.

Last Updated: 2026-10-19
Version: 1.0.0
"""

from typing import Final


# ============================================================================
# PROJECT IDENTIFICATION
# ============================================================================

SERVICE_NAME: Final[str] = "utxo-indexer"
SOFTWARE_VERSION: Final[str] = "1.0.0"


# ============================================================================
# LEDGER
# ============================================================================

# Height of an empty ledger (first block is GENESIS_HEIGHT + 1)
GENESIS_HEIGHT: Final[int] = 0

# Output values are integer minor units
MIN_OUTPUT_VALUE: Final[int] = 0
MAX_OUTPUT_VALUE: Final[int] = 2**63 - 1  # BIGINT column

# Column sizes
MAX_ID_LENGTH: Final[int] = 255
MAX_ADDRESS_LENGTH: Final[int] = 255


# ============================================================================
# NETWORK
# ============================================================================

DEFAULT_API_HOST: Final[str] = "0.0.0.0"
DEFAULT_API_PORT: Final[int] = 3000


# ============================================================================
# STORAGE
# ============================================================================

DEFAULT_DB_FILENAME: Final[str] = "utxo_indexer.db"


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def validate_value(value: int) -> bool:
    """
    Valida che un valore di output sia nel range consentito.

    Args:
        value: Valore in minor units

    Returns:
        bool: True se valido
    """
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return MIN_OUTPUT_VALUE <= value <= MAX_OUTPUT_VALUE


__all__ = [
    "SERVICE_NAME",
    "SOFTWARE_VERSION",
    "GENESIS_HEIGHT",
    "MIN_OUTPUT_VALUE",
    "MAX_OUTPUT_VALUE",
    "MAX_ID_LENGTH",
    "MAX_ADDRESS_LENGTH",
    "DEFAULT_API_HOST",
    "DEFAULT_API_PORT",
    "DEFAULT_DB_FILENAME",
    "validate_value",
]
