"""
UTXO Indexer - Custom Exceptions
==================================
Gerarchia di eccezioni per gestione errori granulare.

Two families:
- ValidationError: client-caused, expected, reported with a specific reason
- StateError: storage/infrastructure faults, logged and surfaced as a
  generic failure

Last Updated: 2026-10-19
Version: 1.0.0
"""

from typing import Optional, Any


# ============================================================================
# BASE EXCEPTION
# ============================================================================

class IndexerException(Exception):
    """
    Eccezione base per tutte le eccezioni del ledger indexer.

    Attributes:
        message (str): Messaggio errore (human-readable)
        code (str): Codice errore (es. "INVALID_HEIGHT")
        details (dict): Dettagli aggiuntivi
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Serializza eccezione per API/logging"""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        if self.details:
            return f"[{self.code}] {self.message} | Details: {self.details}"
        return f"[{self.code}] {self.message}"


# ============================================================================
# CONFIGURATION ERRORS
# ============================================================================

class ConfigError(IndexerException):
    """Errore configurazione sistema"""
    pass


# ============================================================================
# HASHING ERRORS
# ============================================================================

class HashingError(IndexerException):
    """Errore calcolo hash"""
    pass


# ============================================================================
# VALIDATION ERRORS
# ============================================================================

class ValidationError(IndexerException):
    """Errore validazione (base)"""
    pass


class InvalidBlockDataError(ValidationError):
    """Dati blocco/transazione malformati"""
    pass


class InvalidHeightError(ValidationError):
    """Block height is not current height + 1"""

    def __init__(self, expected: int, got: int):
        self.expected = expected
        self.got = got
        super().__init__(
            f"Invalid height. Expected {expected}, got {got}",
            code="INVALID_HEIGHT",
            details={"expected": expected, "got": got}
        )


class InvalidBlockIdError(ValidationError):
    """Block id does not match the computed block id"""

    def __init__(self, expected: str, got: str):
        self.expected = expected
        self.got = got
        super().__init__(
            f"Invalid block id. Expected {expected}, got {got}",
            code="INVALID_BLOCK_ID",
            details={"expected": expected, "got": got}
        )


class UTXONotFoundError(ValidationError):
    """Referenced output does not exist or is already spent"""

    def __init__(self, tx_id: str, index: int):
        self.tx_id = tx_id
        self.index = index
        super().__init__(
            f"UTXO not found or already spent: {tx_id}:{index}",
            code="UTXO_NOT_FOUND",
            details={"tx_id": tx_id, "index": index}
        )


class UnbalancedTransactionError(ValidationError):
    """Input sum differs from output sum"""

    def __init__(self, tx_id: str, input_sum: int, output_sum: int):
        self.tx_id = tx_id
        self.input_sum = input_sum
        self.output_sum = output_sum
        super().__init__(
            f"Transaction {tx_id}: input sum ({input_sum}) does not equal "
            f"output sum ({output_sum})",
            code="UNBALANCED_TRANSACTION",
            details={
                "tx_id": tx_id,
                "input_sum": input_sum,
                "output_sum": output_sum,
            }
        )


class InvalidRollbackTargetError(ValidationError):
    """Rollback target is negative, non-numeric or above current height"""

    def __init__(self, message: str, target: Any = None, current: Optional[int] = None):
        self.target = target
        self.current = current
        super().__init__(
            message,
            code="INVALID_ROLLBACK_TARGET",
            details={"target": target, "current": current}
        )


# ============================================================================
# STATE / STORAGE ERRORS
# ============================================================================

class StateError(IndexerException):
    """Errore stato ledger/storage (base)"""
    pass


class DatabaseError(StateError):
    """Errore database generico"""
    pass


class DatabaseConnectionError(DatabaseError):
    """Errore connessione database"""
    pass


class ConstraintViolationError(DatabaseError):
    """Violazione vincolo (unique/foreign key): race o replay"""
    pass


class SpendConflictError(StateError):
    """Output consumed by a concurrent writer between check and spend"""
    pass


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def format_validation_error(
    field: str,
    value: Any,
    expected: str,
    code: Optional[str] = None
) -> InvalidBlockDataError:
    """
    Helper per creare errori di dati malformati.

    Args:
        field: Nome campo invalido
        value: Valore ricevuto
        expected: Valore/tipo atteso
        code: Codice errore custom

    Returns:
        InvalidBlockDataError: Eccezione formattata

    Example:
        >>> raise format_validation_error("value", -100, "non-negative integer")
    """
    return InvalidBlockDataError(
        message=f"Invalid field '{field}': expected {expected}, got {value!r}",
        code=code or "INVALID_BLOCK_DATA",
        details={"field": field, "value": value, "expected": expected}
    )


# ============================================================================
# EXPORT ALL
# ============================================================================

__all__ = [
    # Base
    "IndexerException",

    # Config
    "ConfigError",

    # Hashing
    "HashingError",

    # Validation
    "ValidationError",
    "InvalidBlockDataError",
    "InvalidHeightError",
    "InvalidBlockIdError",
    "UTXONotFoundError",
    "UnbalancedTransactionError",
    "InvalidRollbackTargetError",

    # State
    "StateError",
    "DatabaseError",
    "DatabaseConnectionError",
    "ConstraintViolationError",
    "SpendConflictError",

    # Helpers
    "format_validation_error",
]
