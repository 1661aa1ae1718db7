"""
UTXO Indexer - Migration Tests
================================
The Alembic migration produces the same schema as the ORM models.
"""

import importlib.util
from pathlib import Path

import pytest
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect

from utxo_indexer.storage.models_orm import Base

import utxo_indexer.storage as storage_pkg


MIGRATION_FILE = (
    Path(storage_pkg.__file__).parent / "migrations" / "versions" / "001_initial_schema.py"
)


def load_migration():
    spec = importlib.util.spec_from_file_location("initial_schema", MIGRATION_FILE)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def engine():
    engine = create_engine("sqlite://")
    yield engine
    engine.dispose()


def run(engine, fn):
    with engine.begin() as conn:
        ctx = MigrationContext.configure(conn)
        with Operations.context(ctx):
            fn()


def test_revision_metadata():
    migration = load_migration()
    assert migration.revision == "001_initial_schema"
    assert migration.down_revision is None


def test_upgrade_matches_models(engine):
    migration = load_migration()
    run(engine, migration.upgrade)

    inspector = inspect(engine)
    assert set(inspector.get_table_names()) == set(Base.metadata.tables)

    for name, table in Base.metadata.tables.items():
        columns = {c["name"] for c in inspector.get_columns(name)}
        assert columns == {c.name for c in table.columns}, name

    assert inspector.get_pk_constraint("utxos")["constrained_columns"] == [
        "tx_id", "output_index"
    ]
    index_names = {i["name"] for i in inspector.get_indexes("utxos")}
    assert {"idx_utxos_address_spent", "idx_utxos_spent_in_tx",
            "idx_utxos_created_at_height"} <= index_names


def test_downgrade_drops_everything(engine):
    migration = load_migration()
    run(engine, migration.upgrade)
    run(engine, migration.downgrade)

    assert inspect(engine).get_table_names() == []
