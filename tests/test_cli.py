"""
UTXO Indexer - CLI Tests
==========================
Command line interface tests with Typer CliRunner.
"""

import hashlib
import json

import pytest
from typer.testing import CliRunner

from utxo_indexer.cli.main import app

from conftest import make_tx, make_block


runner = CliRunner()


@pytest.fixture
def cli_env(temp_data_dir, monkeypatch):
    """Isolated data/log dirs, no file logging"""
    monkeypatch.setenv("UTXO_INDEXER_LOG_DIR", str(temp_data_dir / "logs"))
    monkeypatch.setenv("UTXO_INDEXER_LOG_TO_FILE", "false")
    monkeypatch.setenv("UTXO_INDEXER_ENABLE_AUDIT_LOG", "false")
    return ["--data-dir", str(temp_data_dir / "data")]


def write_block(path, block):
    path.write_text(json.dumps(block.to_dict()), encoding="utf-8")
    return str(path)


class TestOfflineCommands:
    """Test commands operating directly on the database"""

    def test_init_db(self, cli_env, temp_data_dir):
        result = runner.invoke(app, cli_env + ["init-db"])

        assert result.exit_code == 0, result.output
        assert "Database ready" in result.output
        assert (temp_data_dir / "data" / "utxo_indexer.db").exists()

    def test_submit_and_balance(self, cli_env, temp_data_dir, genesis_block):
        block_file = write_block(temp_data_dir / "block1.json", genesis_block)

        result = runner.invoke(app, cli_env + ["submit", block_file])
        assert result.exit_code == 0, result.output
        assert "Block accepted" in result.output

        result = runner.invoke(app, cli_env + ["balance", "addr1"])
        assert result.exit_code == 0
        assert "10" in result.output

    def test_submit_rejected(self, cli_env, temp_data_dir):
        block = make_block(3, make_tx("tx1", outputs=[("addr1", 10)]))
        block_file = write_block(temp_data_dir / "bad.json", block)

        result = runner.invoke(app, cli_env + ["submit", block_file])

        assert result.exit_code == 1
        assert "INVALID_HEIGHT" in result.output

    def test_submit_invalid_json(self, cli_env, temp_data_dir):
        bad = temp_data_dir / "broken.json"
        bad.write_text("{not json", encoding="utf-8")

        result = runner.invoke(app, cli_env + ["submit", str(bad)])

        assert result.exit_code == 1
        assert "Cannot read block file" in result.output

    def test_rollback(self, cli_env, temp_data_dir, genesis_block, transfer_block):
        runner.invoke(app, cli_env + ["submit", write_block(temp_data_dir / "1.json", genesis_block)])
        runner.invoke(app, cli_env + ["submit", write_block(temp_data_dir / "2.json", transfer_block)])

        result = runner.invoke(app, cli_env + ["rollback", "1"])
        assert result.exit_code == 0, result.output
        assert "1 blocks removed" in result.output

        result = runner.invoke(app, cli_env + ["status"])
        assert result.exit_code == 0
        assert "Height" in result.output

    def test_rollback_invalid(self, cli_env):
        result = runner.invoke(app, cli_env + ["rollback", "abc"])

        assert result.exit_code == 1
        assert "Invalid height parameter" in result.output

    def test_utxos(self, cli_env, temp_data_dir, genesis_block):
        runner.invoke(app, cli_env + ["submit", write_block(temp_data_dir / "1.json", genesis_block)])

        result = runner.invoke(app, cli_env + ["utxos", "addr1"])

        assert result.exit_code == 0
        assert "tx1:0" in result.output

    def test_utxos_empty(self, cli_env):
        result = runner.invoke(app, cli_env + ["utxos", "nobody"])

        assert result.exit_code == 0
        assert "No unspent outputs" in result.output


class TestUtilityCommands:
    """Test commands that do not touch the ledger"""

    def test_block_id(self, cli_env):
        result = runner.invoke(app, cli_env + ["block-id", "1", "tx1"])

        assert result.exit_code == 0
        assert hashlib.sha256(b"1tx1").hexdigest() in result.output

    def test_block_id_without_transactions(self, cli_env):
        result = runner.invoke(app, cli_env + ["block-id", "4"])

        assert result.exit_code == 0
        assert hashlib.sha256(b"4").hexdigest() in result.output

    def test_show_config(self, cli_env):
        result = runner.invoke(app, cli_env + ["show-config"])

        assert result.exit_code == 0
        assert '"api_port"' in result.output

    def test_invalid_setting_fails_cleanly(self, cli_env, monkeypatch):
        monkeypatch.setenv("UTXO_INDEXER_LOG_LEVEL", "LOUD")

        result = runner.invoke(app, cli_env + ["status"])

        assert result.exit_code == 1
        assert "Invalid configuration: log_level" in result.output
