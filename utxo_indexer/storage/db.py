"""
UTXO Indexer - Database Storage Layer
=======================================
Persistent ledger state on SQLAlchemy (SQLite by default, any SQLAlchemy
backend with transactional DDL/DML works).

Last Updated: 2026-10-19
Version: 1.0.0

Features:
- Single owner of the engine/session factory (LedgerDatabase)
- Scoped unit of work: commit on success, rollback on every other exit
- LedgerRepository: record-level operations bound to one unit of work
- SQLAlchemy exceptions translated to StateError subclasses
"""

import threading
from contextlib import contextmanager, nullcontext
from typing import Iterator, List, Optional, Dict, Any

from sqlalchemy import (
    create_engine,
    event,
    select,
    insert,
    update,
    delete,
    func,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import (
    SQLAlchemyError,
    IntegrityError,
    DBAPIError,
)
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Internal imports
from utxo_indexer.config import IndexerSettings
from utxo_indexer.domain.models import UTXORecord
from utxo_indexer.errors import (
    StateError,
    DatabaseError,
    DatabaseConnectionError,
    ConstraintViolationError,
    SpendConflictError,
)
from utxo_indexer.logging_setup import get_logger
from utxo_indexer.storage.models_orm import (
    Base,
    BlockORM,
    TransactionORM,
    UTXOORM,
)


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("storage")


# ============================================================================
# ENGINE
# ============================================================================

def _is_memory_url(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


def create_ledger_engine(config: IndexerSettings) -> Engine:
    """
    Crea engine SQLAlchemy.

    On SQLite the pysqlite driver only opens a transaction before DML, so an
    explicit BEGIN is emitted instead: reads and writes of one unit of work
    then share the same transaction.
    """
    url = config.database_url

    if not url.startswith("sqlite"):
        return create_engine(
            url,
            echo=config.db_echo,
            pool_pre_ping=True,
            pool_timeout=config.db_timeout_seconds,
        )

    in_memory = _is_memory_url(url)
    engine = create_engine(
        url,
        echo=config.db_echo,
        connect_args={
            "check_same_thread": False,
            "timeout": config.db_timeout_seconds,
        },
        poolclass=StaticPool if in_memory else None,
    )

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Disable pysqlite's own transaction handling
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        if not in_memory:
            cursor.execute("PRAGMA journal_mode = WAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def translate_db_error(error: SQLAlchemyError, operation: str) -> StateError:
    """Map a SQLAlchemy exception onto the StateError family."""
    if isinstance(error, IntegrityError):
        return ConstraintViolationError(
            f"Constraint violation during {operation}: {error.orig}",
            code="DB_CONSTRAINT_VIOLATION",
            details={"operation": operation}
        )

    if isinstance(error, DBAPIError) and error.connection_invalidated:
        return DatabaseConnectionError(
            f"Database connection lost during {operation}: {error.orig}",
            code="DB_CONNECTION_FAILED",
            details={"operation": operation}
        )

    return DatabaseError(
        f"Database failure during {operation}: {error}",
        code="DB_ERROR",
        details={"operation": operation}
    )


# ============================================================================
# REPOSITORY (bound to one unit of work)
# ============================================================================

class LedgerRepository:
    """
    Record-level access to the ledger inside one unit of work.

    Never commits: the enclosing unit of work decides.

    Attributes:
        session: Session aperta da LedgerDatabase.unit_of_work()
    """

    def __init__(self, session: Session):
        self.session = session

    # ========================================================================
    # HEIGHT / BLOCKS
    # ========================================================================

    def get_current_height(self) -> int:
        """Height ultimo blocco, 0 se ledger vuoto"""
        result = self.session.execute(select(func.max(BlockORM.height))).scalar()
        return result or 0

    def insert_block(self, block_id: str, height: int) -> None:
        self.session.execute(insert(BlockORM).values(id=block_id, height=height))

    def get_block(self, height: int) -> Optional[Dict[str, Any]]:
        """
        Ottieni riepilogo blocco per height.

        Returns:
            dict: {"id", "height", "transactions": [tx ids in block order]}
        """
        row = self.session.execute(
            select(BlockORM.id, BlockORM.height).where(BlockORM.height == height)
        ).first()

        if row is None:
            return None

        tx_ids = self.session.execute(
            select(TransactionORM.id)
            .where(TransactionORM.block_id == row.id)
            .order_by(TransactionORM.position)
        ).scalars().all()

        return {"id": row.id, "height": row.height, "transactions": list(tx_ids)}

    def count_blocks(self) -> int:
        return self.session.execute(select(func.count()).select_from(BlockORM)).scalar_one()

    def delete_blocks_above(self, height: int) -> int:
        result = self.session.execute(
            delete(BlockORM)
            .where(BlockORM.height > height)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    # ========================================================================
    # TRANSACTIONS
    # ========================================================================

    def insert_transaction(
        self,
        tx_id: str,
        block_id: str,
        block_height: int,
        position: int
    ) -> None:
        self.session.execute(
            insert(TransactionORM).values(
                id=tx_id,
                block_id=block_id,
                block_height=block_height,
                position=position,
            )
        )

    def delete_transactions_above(self, height: int) -> int:
        result = self.session.execute(
            delete(TransactionORM)
            .where(TransactionORM.block_height > height)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    # ========================================================================
    # UTXOS
    # ========================================================================

    @staticmethod
    def _to_record(row: UTXOORM) -> UTXORecord:
        return UTXORecord(
            tx_id=row.tx_id,
            output_index=row.output_index,
            address=row.address,
            value=int(row.value),
            created_at_height=row.created_at_height,
            spent=bool(row.spent),
            spent_in_tx=row.spent_in_tx,
        )

    @staticmethod
    def _select_utxos():
        # Bulk UPDATEs bypass the identity map, so always reload row state
        return select(UTXOORM).execution_options(populate_existing=True)

    def get_utxo(self, tx_id: str, index: int) -> Optional[UTXORecord]:
        """Record in qualunque stato (speso o no)"""
        row = self.session.execute(
            self._select_utxos().where(
                UTXOORM.tx_id == tx_id,
                UTXOORM.output_index == index,
            )
        ).scalar_one_or_none()
        return self._to_record(row) if row is not None else None

    def get_unspent(self, tx_id: str, index: int) -> Optional[UTXORecord]:
        """Record se esiste e non è speso, altrimenti None"""
        row = self.session.execute(
            self._select_utxos().where(
                UTXOORM.tx_id == tx_id,
                UTXOORM.output_index == index,
                UTXOORM.spent.is_(False),
            )
        ).scalar_one_or_none()
        return self._to_record(row) if row is not None else None

    def insert_utxo(
        self,
        tx_id: str,
        index: int,
        address: str,
        value: int,
        created_at_height: int
    ) -> None:
        self.session.execute(
            insert(UTXOORM).values(
                tx_id=tx_id,
                output_index=index,
                address=address,
                value=value,
                spent=False,
                spent_in_tx=None,
                created_at_height=created_at_height,
            )
        )

    def mark_spent(self, tx_id: str, index: int, spent_in_tx: str) -> None:
        """
        Check-and-spend in a single conditional UPDATE.

        Raises:
            SpendConflictError: Output assente o già speso
        """
        result = self.session.execute(
            update(UTXOORM)
            .where(
                UTXOORM.tx_id == tx_id,
                UTXOORM.output_index == index,
                UTXOORM.spent.is_(False),
            )
            .values(spent=True, spent_in_tx=spent_in_tx)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount != 1:
            raise SpendConflictError(
                f"Output {tx_id}:{index} is no longer spendable",
                code="SPEND_CONFLICT",
                details={"tx_id": tx_id, "index": index, "spent_in_tx": spent_in_tx}
            )

    def revert_spends_above(self, height: int) -> int:
        """
        Unspend surviving outputs consumed by transactions above ``height``.

        Must run before delete_transactions_above(): the spending set is
        read from the transactions table.
        """
        doomed_txs = select(TransactionORM.id).where(TransactionORM.block_height > height)

        result = self.session.execute(
            update(UTXOORM)
            .where(
                UTXOORM.spent_in_tx.in_(doomed_txs),
                UTXOORM.created_at_height <= height,
            )
            .values(spent=False, spent_in_tx=None)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def delete_utxos_above(self, height: int) -> int:
        result = self.session.execute(
            delete(UTXOORM)
            .where(UTXOORM.created_at_height > height)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def get_balance(self, address: str) -> int:
        """
        Somma valori non spesi per address (0 se nessun record).

        Summed in Python: a SQL SUM over BIGINT values can exceed 64 bits.
        """
        values = self.session.execute(
            select(UTXOORM.value).where(
                UTXOORM.address == address,
                UTXOORM.spent.is_(False),
            )
        ).scalars()
        return sum(int(value) for value in values)

    def list_unspent(self, address: str) -> List[UTXORecord]:
        rows = self.session.execute(
            self._select_utxos()
            .where(UTXOORM.address == address, UTXOORM.spent.is_(False))
            .order_by(UTXOORM.created_at_height, UTXOORM.tx_id, UTXOORM.output_index)
        ).scalars().all()
        return [self._to_record(row) for row in rows]


# ============================================================================
# DATABASE CLASS
# ============================================================================

class LedgerDatabase:
    """
    Owner of the ledger store handle.

    Every read or write goes through unit_of_work(); concurrent callers
    coordinate through the database's transaction isolation. The one
    exception is an in-memory SQLite database: all threads share a single
    connection (StaticPool), so units of work on it are serialized with a
    lock.

    Examples:
        >>> db = LedgerDatabase(config)
        >>> with db.unit_of_work() as repo:
        ...     repo.get_current_height()
        0
    """

    def __init__(self, config: IndexerSettings, engine: Optional[Engine] = None):
        self.config = config

        try:
            self.engine = engine or create_ledger_engine(config)
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(
                f"Failed to create database engine: {e}",
                code="DB_CONNECTION_FAILED"
            )

        self._session_factory = sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
            autoflush=False,
        )

        # Shared connection: one transaction at a time
        self._lock = (
            threading.RLock() if isinstance(self.engine.pool, StaticPool) else None
        )

        self._initialize_database()

        logger.info(
            "Database initialized",
            extra_data={"database_url": self.engine.url.render_as_string(hide_password=True)}
        )

    def _initialize_database(self) -> None:
        """Inizializza database con schema"""
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Failed to initialize database: {e}",
                code="DB_INIT_FAILED"
            )

    @contextmanager
    def unit_of_work(self, operation: str = "unit_of_work") -> Iterator[LedgerRepository]:
        """
        Scoped unit of work.

        Commits when the block exits normally; rolls back on any exception
        (validation failure included) and always releases the session.

        Raises:
            StateError: SQLAlchemy failure (translated)
        """
        with self._lock or nullcontext():
            session = self._session_factory()
            try:
                with session.begin():
                    yield LedgerRepository(session)
            except SQLAlchemyError as e:
                error = translate_db_error(e, operation)
                logger.error(
                    f"Unit of work '{operation}' aborted",
                    extra_data={"error": str(e), "code": error.code}
                )
                raise error from e
            finally:
                session.close()

    def close(self) -> None:
        """Chiudi database connections"""
        self.engine.dispose()
        logger.info("Database closed")


__all__ = [
    "LedgerDatabase",
    "LedgerRepository",
    "create_ledger_engine",
    "translate_db_error",
]
