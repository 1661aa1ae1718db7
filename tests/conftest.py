"""
UTXO Indexer - Pytest Configuration
=====================================
Fixtures e configurazione per testing.

Last Updated: 2026-10-19
Version: 1.0.0
"""

import pytest
from pathlib import Path
import tempfile
import shutil

# Internal imports
from utxo_indexer.config import IndexerSettings
from utxo_indexer.domain.models import Block, Transaction, TxInput, TxOutput
from utxo_indexer.logging_setup import AuditLogger
from utxo_indexer.services.indexer_service import IndexerService
from utxo_indexer.storage.db import LedgerDatabase


# ============================================================================
# CONFIGURATION FIXTURES
# ============================================================================

@pytest.fixture
def temp_data_dir():
    """Temporary data directory"""
    temp_dir = Path(tempfile.mkdtemp())
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def test_config(temp_data_dir):
    """Test configuration (file-backed SQLite in a temp dir)"""
    return IndexerSettings(
        data_dir=temp_data_dir / "data",
        log_dir=temp_data_dir / "logs",
        log_to_file=False,
        enable_audit_log=False,
        api_enable_cors=False,
    )


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

@pytest.fixture
def test_database(test_config):
    """Test database"""
    db = LedgerDatabase(test_config)
    yield db
    db.close()


@pytest.fixture
def memory_database(temp_data_dir):
    """In-memory database"""
    config = IndexerSettings(
        data_dir=temp_data_dir / "data",
        database_url="sqlite://",
        log_to_file=False,
        enable_audit_log=False,
    )
    db = LedgerDatabase(config)
    yield db
    db.close()


# ============================================================================
# SERVICE FIXTURES
# ============================================================================

@pytest.fixture
def service(test_config, test_database):
    """IndexerService instance per test"""
    return IndexerService(test_database, test_config)


@pytest.fixture
def audited_service(test_config, test_database, temp_data_dir):
    """IndexerService con audit trail"""
    audit_logger = AuditLogger(temp_data_dir / "audit")
    return IndexerService(test_database, test_config, audit_logger)


# ============================================================================
# HELPERS
# ============================================================================

def make_tx(tx_id, inputs=(), outputs=()):
    """
    Build a transaction from compact tuples.

    Examples:
        >>> make_tx("tx2", inputs=[("tx1", 0)], outputs=[("addr2", 4)])
    """
    return Transaction(
        id=tx_id,
        inputs=tuple(TxInput(t, i) for t, i in inputs),
        outputs=tuple(TxOutput(a, v) for a, v in outputs),
    )


def make_block(height, *transactions):
    """Block with correctly computed id"""
    return Block.build(height, list(transactions))


@pytest.fixture
def genesis_block():
    """Height 1: tx1 issues 10 to addr1"""
    return make_block(1, make_tx("tx1", outputs=[("addr1", 10)]))


@pytest.fixture
def transfer_block():
    """Height 2: tx2 spends tx1:0 into 4 (addr2) + 6 (addr3)"""
    return make_block(
        2,
        make_tx("tx2", inputs=[("tx1", 0)], outputs=[("addr2", 4), ("addr3", 6)]),
    )


@pytest.fixture
def split_block():
    """Height 3: tx3 spends tx2:1 into 2 + 2 + 2 (addr4, addr5, addr6)"""
    return make_block(
        3,
        make_tx(
            "tx3",
            inputs=[("tx2", 1)],
            outputs=[("addr4", 2), ("addr5", 2), ("addr6", 2)],
        ),
    )


@pytest.fixture
def populated_service(service, genesis_block, transfer_block, split_block):
    """Service at height 3 (genesis, transfer, split applied)"""
    for block in (genesis_block, transfer_block, split_block):
        assert service.submit_block(block).accepted
    return service
