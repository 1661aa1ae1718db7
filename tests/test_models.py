"""
UTXO Indexer - Model Tests
============================
Unit tests for domain models.
"""

import pytest
from utxo_indexer.domain.models import (
    Block,
    Transaction,
    TxInput,
    TxOutput,
    UTXOKey,
    UTXORecord,
)
from utxo_indexer.errors import InvalidBlockDataError, ValidationError


class TestTxOutput:
    """Test TxOutput class"""

    def test_creation(self):
        output = TxOutput(address="addr1", value=10)
        assert output.address == "addr1"
        assert output.value == 10

    def test_zero_value_allowed(self):
        assert TxOutput("addr1", 0).value == 0

    def test_negative_value_rejected(self):
        with pytest.raises(InvalidBlockDataError) as exc_info:
            TxOutput("addr1", -1)
        assert exc_info.value.code == "INVALID_OUTPUT_VALUE"

    def test_float_value_rejected(self):
        with pytest.raises(InvalidBlockDataError):
            TxOutput("addr1", 1.5)

    def test_bool_value_rejected(self):
        with pytest.raises(InvalidBlockDataError):
            TxOutput("addr1", True)

    def test_empty_address_rejected(self):
        with pytest.raises(ValidationError):
            TxOutput("", 5)


class TestTxInput:
    """Test TxInput class"""

    def test_key(self):
        assert TxInput("tx1", 2).key == UTXOKey("tx1", 2)

    def test_negative_index_rejected(self):
        with pytest.raises(InvalidBlockDataError):
            TxInput("tx1", -1)

    def test_wire_format(self):
        """Test camelCase txId on the wire"""
        inp = TxInput("tx1", 0)
        assert inp.to_dict() == {"txId": "tx1", "index": 0}
        assert TxInput.from_dict({"txId": "tx1", "index": 0}) == inp
        assert TxInput.from_dict({"tx_id": "tx1", "index": 0}) == inp


class TestTransaction:
    """Test Transaction class"""

    def test_value_creation(self):
        """Test zero-input transaction"""
        tx = Transaction("tx1", outputs=[TxOutput("addr1", 10)])
        assert tx.is_value_creation()
        assert tx.output_sum() == 10

    def test_lists_stored_as_tuples(self):
        tx = Transaction("tx2", inputs=[TxInput("tx1", 0)], outputs=[TxOutput("a", 1)])
        assert isinstance(tx.inputs, tuple)
        assert isinstance(tx.outputs, tuple)
        assert not tx.is_value_creation()

    def test_empty_id_rejected(self):
        with pytest.raises(InvalidBlockDataError):
            Transaction("")

    def test_from_dict(self):
        tx = Transaction.from_dict({
            "id": "tx2",
            "inputs": [{"txId": "tx1", "index": 0}],
            "outputs": [{"address": "addr2", "value": 4}],
        })
        assert tx.inputs == (TxInput("tx1", 0),)
        assert tx.outputs == (TxOutput("addr2", 4),)


class TestBlock:
    """Test Block class"""

    def test_build_computes_id(self):
        block = Block.build(1, [Transaction("tx1", outputs=[TxOutput("addr1", 10)])])
        assert block.id == block.compute_id()
        assert block.transaction_ids == ["tx1"]

    def test_bool_height_rejected(self):
        with pytest.raises(InvalidBlockDataError):
            Block(id="abc", height=True)

    def test_dict_conversion(self):
        block = Block.build(1, [Transaction("tx1", outputs=[TxOutput("addr1", 10)])])
        assert Block.from_dict(block.to_dict()) == block


class TestUTXO:
    """Test UTXOKey and UTXORecord"""

    def test_key_str(self):
        assert str(UTXOKey("tx1", 3)) == "tx1:3"

    def test_keys_sortable(self):
        keys = [UTXOKey("b", 0), UTXOKey("a", 1), UTXOKey("a", 0)]
        assert sorted(keys) == [UTXOKey("a", 0), UTXOKey("a", 1), UTXOKey("b", 0)]

    def test_record_defaults_unspent(self):
        record = UTXORecord("tx1", 0, "addr1", 10, created_at_height=1)
        assert not record.spent
        assert record.spent_in_tx is None
        assert record.key == UTXOKey("tx1", 0)
        assert record.to_dict()["created_at_height"] == 1
