"""
UTXO Indexer - Block Validation
=================================
Pure decision logic: may a candidate block be admitted on top of the
current ledger state?

Validation Rules (checked in order, first failure wins):
1. Height contiguity: height == current height + 1
2. Identity integrity: id == compute_block_id(height, tx ids)
3. Per transaction, in block order:
   - every input references an existing unspent output
   - with >= 1 input, sum(inputs) == sum(outputs) (no implicit fees)

Validation is read-only. Lookups go through a block-local view so an output
created earlier in the block is spendable by a later transaction and an
output spent earlier in the block looks spent.
"""

from typing import Any, Callable, Dict, Optional, Set

from utxo_indexer.domain.hashing import compute_block_id
from utxo_indexer.domain.models import (
    Block,
    Transaction,
    UTXOKey,
    UTXORecord,
)
from utxo_indexer.errors import (
    InvalidHeightError,
    InvalidBlockIdError,
    UTXONotFoundError,
    UnbalancedTransactionError,
    InvalidRollbackTargetError,
)
from utxo_indexer.logging_setup import get_logger, PerformanceLogger


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("validation")


# Returns the record if it exists and is unspent, None otherwise
UnspentLookup = Callable[[str, int], Optional[UTXORecord]]


# ============================================================================
# BLOCK-LOCAL VIEW
# ============================================================================

class BlockLocalView:
    """
    Overlay of the pending block's effects on top of committed state.

    Attributes:
        lookup_unspent: Committed-state lookup
        created: Outputs created by already-validated transactions of the block
        spent: Keys consumed by already-validated transactions of the block
    """

    def __init__(self, lookup_unspent: UnspentLookup, height: int):
        self.lookup_unspent = lookup_unspent
        self.height = height
        self.created: Dict[UTXOKey, UTXORecord] = {}
        self.spent: Set[UTXOKey] = set()

    def get_unspent(self, tx_id: str, index: int) -> Optional[UTXORecord]:
        key = UTXOKey(tx_id, index)
        if key in self.spent:
            return None
        if key in self.created:
            return self.created[key]
        return self.lookup_unspent(tx_id, index)

    def spend(self, key: UTXOKey) -> None:
        self.spent.add(key)

    def add_outputs(self, tx: Transaction) -> None:
        for index, output in enumerate(tx.outputs):
            self.created[UTXOKey(tx.id, index)] = UTXORecord(
                tx_id=tx.id,
                output_index=index,
                address=output.address,
                value=output.value,
                created_at_height=self.height,
            )


# ============================================================================
# BLOCK VALIDATOR
# ============================================================================

class BlockValidator:
    """
    Validatore blocchi.

    Stateless: the current height and the unspent lookup are supplied per
    call by whoever owns the unit of work.

    Examples:
        >>> validator = BlockValidator()
        >>> validator.validate(block, current_height=0, lookup_unspent=db_lookup)
    """

    def validate(
        self,
        block: Block,
        current_height: int,
        lookup_unspent: UnspentLookup
    ) -> None:
        """
        Validazione completa blocco.

        Args:
            block: Blocco candidato
            current_height: Height corrente del ledger (0 se vuoto)
            lookup_unspent: Lookup (tx_id, index) -> record non speso o None

        Raises:
            InvalidHeightError: Height non contigua
            InvalidBlockIdError: Id non corrispondente
            UTXONotFoundError: Input mancante o già speso
            UnbalancedTransactionError: Somma input != somma output
        """
        with PerformanceLogger(logger, f"validate_block({block.height})"):
            self._validate_height(block, current_height)
            self._validate_block_id(block)

            view = BlockLocalView(lookup_unspent, block.height)
            for tx in block.transactions:
                self.validate_transaction(tx, view)

        logger.debug(
            "Block validated successfully",
            extra_data={
                "height": block.height,
                "block_id": block.id[:16] + "...",
                "tx_count": len(block.transactions),
            }
        )

    def _validate_height(self, block: Block, current_height: int) -> None:
        expected = current_height + 1
        if block.height != expected:
            logger.warning(
                f"Invalid block height. Expected {expected}, got {block.height}"
            )
            raise InvalidHeightError(expected=expected, got=block.height)

    def _validate_block_id(self, block: Block) -> None:
        expected = compute_block_id(block.height, block.transaction_ids)
        if block.id != expected:
            logger.warning(
                f"Invalid block id. Expected {expected}, got {block.id}"
            )
            raise InvalidBlockIdError(expected=expected, got=block.id)

    def validate_transaction(self, tx: Transaction, view: BlockLocalView) -> None:
        """
        Valida una transazione e registra i suoi effetti nella view.

        Args:
            tx: Transazione
            view: Block-local view (mutated on success only)
        """
        input_sum = 0
        consumed = []

        for inp in tx.inputs:
            record = view.get_unspent(inp.tx_id, inp.index)
            if record is None or inp.key in consumed:
                logger.warning(f"UTXO not found: {inp.tx_id}:{inp.index}")
                raise UTXONotFoundError(tx_id=inp.tx_id, index=inp.index)

            consumed.append(inp.key)
            input_sum += record.value

        output_sum = tx.output_sum()

        if not tx.is_value_creation() and input_sum != output_sum:
            logger.warning(
                f"Transaction {tx.id}: input sum ({input_sum}) does not equal "
                f"output sum ({output_sum})"
            )
            raise UnbalancedTransactionError(
                tx_id=tx.id,
                input_sum=input_sum,
                output_sum=output_sum,
            )

        for key in consumed:
            view.spend(key)
        view.add_outputs(tx)


# ============================================================================
# ROLLBACK TARGET
# ============================================================================

def parse_height(raw: Any) -> int:
    """
    Parse a transport-supplied rollback height.

    Raises:
        InvalidRollbackTargetError: Valore non numerico o negativo

    Examples:
        >>> parse_height("3")
        3
    """
    if isinstance(raw, bool):
        raise InvalidRollbackTargetError("Invalid height parameter", target=raw)

    if isinstance(raw, int):
        height = raw
    else:
        try:
            height = int(str(raw).strip())
        except (TypeError, ValueError):
            raise InvalidRollbackTargetError("Invalid height parameter", target=raw)

    if height < 0:
        raise InvalidRollbackTargetError("Invalid height parameter", target=raw)

    return height


def check_rollback_target(target_height: int, current_height: int) -> None:
    """
    Precondition of rollback: 0 <= target <= current.

    Raises:
        InvalidRollbackTargetError
    """
    if target_height < 0:
        raise InvalidRollbackTargetError(
            "Invalid height parameter",
            target=target_height,
            current=current_height,
        )

    if target_height > current_height:
        raise InvalidRollbackTargetError(
            f"Cannot rollback to height {target_height}. "
            f"Current height is {current_height}",
            target=target_height,
            current=current_height,
        )


__all__ = [
    "UnspentLookup",
    "BlockLocalView",
    "BlockValidator",
    "parse_height",
    "check_rollback_target",
]
