"""
UTXO Indexer - Ledger State Mutator
=====================================
Apply and rollback of blocks against the ledger store.

Both operations run inside the caller's unit of work: they never commit, so
any failure leaves no partial state behind.

Apply:
1. Inserisci record blocco
2. Per ogni transazione, in ordine:
   - inserisci record transazione
   - marca spesi gli input (conditional update)
   - inserisci output come UTXO non spesi

Rollback (target < current):
1. Ripristina come non spesi gli UTXO sopravvissuti spesi da tx rimosse
2. Elimina UTXO creati sopra target
3. Elimina transazioni sopra target
4. Elimina blocchi sopra target
"""

from utxo_indexer.domain.models import Block
from utxo_indexer.domain.validation import check_rollback_target
from utxo_indexer.logging_setup import get_logger, PerformanceLogger
from utxo_indexer.storage.db import LedgerRepository


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("ledger")


class LedgerMutator:
    """
    State transitions of the ledger.

    Assumes the block has already been validated against the same unit of
    work's snapshot.

    Attributes:
        repository: LedgerRepository della unit of work corrente

    Examples:
        >>> with database.unit_of_work() as repo:
        ...     LedgerMutator(repo).apply(block)
    """

    def __init__(self, repository: LedgerRepository):
        self.repository = repository

    def apply(self, block: Block) -> None:
        """
        Applica blocco validato.

        Raises:
            SpendConflictError: Input consumato da un writer concorrente
            ConstraintViolationError: Id/height duplicati (sollevato al commit
                o al flush dalla unit of work)
        """
        repo = self.repository

        with PerformanceLogger(logger, f"apply_block({block.height})"):
            repo.insert_block(block.id, block.height)

            for position, tx in enumerate(block.transactions):
                repo.insert_transaction(tx.id, block.id, block.height, position)

                for inp in tx.inputs:
                    repo.mark_spent(inp.tx_id, inp.index, spent_in_tx=tx.id)

                for index, output in enumerate(tx.outputs):
                    repo.insert_utxo(
                        tx.id,
                        index,
                        output.address,
                        output.value,
                        created_at_height=block.height,
                    )

        logger.info(
            "Block applied",
            extra_data={
                "height": block.height,
                "block_id": block.id[:16] + "...",
                "tx_count": len(block.transactions),
            }
        )

    def rollback(self, target_height: int, current_height: int) -> int:
        """
        Riporta il ledger allo stato immediatamente successivo al blocco
        ``target_height``.

        Args:
            target_height: Height di destinazione (0 = ledger vuoto)
            current_height: Height corrente letta nella stessa unit of work

        Returns:
            int: Numero di blocchi rimossi

        Raises:
            InvalidRollbackTargetError: target < 0 o target > current
        """
        check_rollback_target(target_height, current_height)

        if target_height == current_height:
            logger.debug(f"Rollback to current height {current_height}: nothing to do")
            return 0

        repo = self.repository

        with PerformanceLogger(logger, f"rollback({current_height}->{target_height})"):
            # Reads the transactions table, so it must precede their deletion
            restored = repo.revert_spends_above(target_height)
            deleted_utxos = repo.delete_utxos_above(target_height)
            deleted_txs = repo.delete_transactions_above(target_height)
            removed_blocks = repo.delete_blocks_above(target_height)

        logger.info(
            "Ledger rolled back",
            extra_data={
                "from_height": current_height,
                "to_height": target_height,
                "removed_blocks": removed_blocks,
                "removed_transactions": deleted_txs,
                "removed_utxos": deleted_utxos,
                "restored_utxos": restored,
            }
        )

        return removed_blocks


__all__ = ["LedgerMutator"]
