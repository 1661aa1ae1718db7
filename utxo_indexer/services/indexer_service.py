"""
UTXO Indexer - Indexer Service
================================
Servizio high-level: submit, query e rollback del ledger.

Last Updated: 2026-10-19
Version: 1.0.0

Features:
- Block submission (validate + apply in one unit of work)
- Balance and unspent-output queries
- Rollback to an earlier height
- Audit trail of state transitions

Validation failures are returned as rejected outcomes carrying the reason;
StateError subclasses propagate to the caller.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

# Internal imports
from utxo_indexer.config import IndexerSettings
from utxo_indexer.domain.ledger import LedgerMutator
from utxo_indexer.domain.models import Block, UTXORecord
from utxo_indexer.domain.validation import BlockValidator, parse_height
from utxo_indexer.errors import ValidationError
from utxo_indexer.logging_setup import get_logger, AuditLogger
from utxo_indexer.storage.db import LedgerDatabase


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("indexer_service")


# ============================================================================
# OUTCOMES
# ============================================================================

@dataclass(frozen=True)
class BlockOutcome:
    """
    Esito di una submission.

    Attributes:
        accepted: True se il blocco è stato applicato
        height: Height del blocco (se accettato)
        block_id: Id del blocco (se accettato)
        reason: Messaggio di rifiuto
        code: Codice errore del rifiuto
    """

    accepted: bool
    height: Optional[int] = None
    block_id: Optional[str] = None
    reason: Optional[str] = None
    code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RollbackOutcome:
    """Esito di un rollback"""

    accepted: bool
    new_height: Optional[int] = None
    removed_blocks: int = 0
    reason: Optional[str] = None
    code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ============================================================================
# INDEXER SERVICE
# ============================================================================

class IndexerService:
    """
    Servizio ledger indexer.

    High-level API per:
    - Submission blocchi
    - Query balance / UTXO
    - Rollback

    Attributes:
        database: LedgerDatabase (unico proprietario dello store)
        config: Configurazione
        validator: BlockValidator
        audit_logger: AuditLogger opzionale

    Examples:
        >>> service = IndexerService(database, config)
        >>> outcome = service.submit_block(block)
        >>> outcome.accepted
        True
        >>> service.query_balance("addr1")
        10
    """

    def __init__(
        self,
        database: LedgerDatabase,
        config: IndexerSettings,
        audit_logger: Optional[AuditLogger] = None
    ):
        self.database = database
        self.config = config
        self.validator = BlockValidator()
        self.audit_logger = audit_logger

        logger.info("Indexer service initialized")

    # ========================================================================
    # SUBMISSION
    # ========================================================================

    def submit_block(self, block: Block) -> BlockOutcome:
        """
        Valida e applica un blocco.

        Height lookup, validation and apply share one unit of work, so the
        block is checked and applied against the same snapshot.

        Args:
            block: Blocco candidato

        Returns:
            BlockOutcome: accettato o rifiutato con motivazione

        Raises:
            StateError: Errore storage (incluse submission concorrenti)
        """
        try:
            with self.database.unit_of_work("submit_block") as repo:
                current_height = repo.get_current_height()
                self.validator.validate(block, current_height, repo.get_unspent)
                LedgerMutator(repo).apply(block)

        except ValidationError as e:
            logger.info(
                "Block rejected",
                extra_data={"height": block.height, "code": e.code, "reason": e.message}
            )
            return BlockOutcome(accepted=False, reason=e.message, code=e.code)

        if self.audit_logger:
            self.audit_logger.log_block_applied(
                block.height, block.id, len(block.transactions)
            )

        return BlockOutcome(accepted=True, height=block.height, block_id=block.id)

    def submit_block_data(self, data: Dict[str, Any]) -> BlockOutcome:
        """
        Submission da dizionario (formato wire).

        Malformed data is rejected like any other validation failure.
        """
        try:
            block = Block.from_dict(data)
        except ValidationError as e:
            return BlockOutcome(accepted=False, reason=e.message, code=e.code)
        except (KeyError, TypeError, AttributeError) as e:
            return BlockOutcome(
                accepted=False,
                reason=f"Malformed block data: {e}",
                code="INVALID_BLOCK_DATA",
            )

        return self.submit_block(block)

    # ========================================================================
    # ROLLBACK
    # ========================================================================

    def rollback_to(self, height: Any) -> RollbackOutcome:
        """
        Rollback del ledger a ``height``.

        Args:
            height: Height target (int o stringa numerica)

        Returns:
            RollbackOutcome
        """
        try:
            target = parse_height(height)

            with self.database.unit_of_work("rollback") as repo:
                current_height = repo.get_current_height()
                removed = LedgerMutator(repo).rollback(target, current_height)

        except ValidationError as e:
            logger.info(
                "Rollback rejected",
                extra_data={"target": str(height), "code": e.code, "reason": e.message}
            )
            return RollbackOutcome(accepted=False, reason=e.message, code=e.code)

        if self.audit_logger and removed:
            self.audit_logger.log_rollback(current_height, target, removed)

        return RollbackOutcome(accepted=True, new_height=target, removed_blocks=removed)

    # ========================================================================
    # QUERIES
    # ========================================================================

    def query_balance(self, address: str) -> int:
        """Balance corrente (0 per address sconosciuti)"""
        with self.database.unit_of_work("get_balance") as repo:
            return repo.get_balance(address)

    get_balance = query_balance

    def get_current_height(self) -> int:
        with self.database.unit_of_work("get_current_height") as repo:
            return repo.get_current_height()

    def get_block(self, height: int) -> Optional[Dict[str, Any]]:
        with self.database.unit_of_work("get_block") as repo:
            return repo.get_block(height)

    def list_unspent(self, address: str) -> List[UTXORecord]:
        with self.database.unit_of_work("list_unspent") as repo:
            return repo.list_unspent(address)

    def get_status(self) -> Dict[str, Any]:
        """Riepilogo stato ledger"""
        with self.database.unit_of_work("get_status") as repo:
            return {
                "height": repo.get_current_height(),
                "blocks": repo.count_blocks(),
            }


__all__ = [
    "IndexerService",
    "BlockOutcome",
    "RollbackOutcome",
]
