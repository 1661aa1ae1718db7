"""
UTXO Indexer - Service Tests
==============================
End-to-end behaviour of IndexerService.
"""

import json

import pytest
from utxo_indexer.domain.models import Block
from utxo_indexer.errors import DatabaseError
from utxo_indexer.services.indexer_service import IndexerService

from conftest import make_tx, make_block


class TestSubmitBlock:
    """Test IndexerService.submit_block"""

    def test_genesis_accepted(self, service, genesis_block):
        outcome = service.submit_block(genesis_block)

        assert outcome.accepted
        assert outcome.height == 1
        assert outcome.block_id == genesis_block.id
        assert outcome.reason is None
        assert service.query_balance("addr1") == 10

    def test_balance_accounting(self, populated_service):
        """Scenario: issue, transfer, split"""
        expected = {
            "addr1": 0, "addr2": 4, "addr3": 0,
            "addr4": 2, "addr5": 2, "addr6": 2,
        }
        for address, balance in expected.items():
            assert populated_service.query_balance(address) == balance
        assert populated_service.get_current_height() == 3

    def test_wrong_height_rejected(self, service):
        block = make_block(2, make_tx("tx1", outputs=[("addr1", 10)]))

        outcome = service.submit_block(block)

        assert not outcome.accepted
        assert outcome.code == "INVALID_HEIGHT"
        assert outcome.reason == "Invalid height. Expected 1, got 2"
        assert service.get_current_height() == 0

    def test_wrong_id_rejected(self, service):
        block = Block(
            id="deadbeef",
            height=1,
            transactions=(make_tx("tx1", outputs=[("addr1", 10)]),),
        )

        outcome = service.submit_block(block)

        assert not outcome.accepted
        assert outcome.code == "INVALID_BLOCK_ID"

    def test_double_spend_rejected(self, service, genesis_block, transfer_block):
        service.submit_block(genesis_block)
        service.submit_block(transfer_block)

        replay = make_block(
            3, make_tx("tx9", inputs=[("tx1", 0)], outputs=[("addr9", 10)])
        )
        outcome = service.submit_block(replay)

        assert not outcome.accepted
        assert outcome.code == "UTXO_NOT_FOUND"
        assert service.query_balance("addr9") == 0
        assert service.query_balance("addr2") == 4
        assert service.query_balance("addr3") == 6
        assert service.get_current_height() == 2

    @pytest.mark.parametrize("output_value, accepted", [(9, False), (11, False), (10, True)])
    def test_balance_equality(self, service, genesis_block, output_value, accepted):
        service.submit_block(genesis_block)
        block = make_block(
            2, make_tx("tx2", inputs=[("tx1", 0)], outputs=[("addr2", output_value)])
        )

        outcome = service.submit_block(block)

        assert outcome.accepted is accepted
        if not accepted:
            assert outcome.code == "UNBALANCED_TRANSACTION"
            assert service.query_balance("addr1") == 10

    def test_zero_input_creates_value(self, service):
        block = make_block(1, make_tx("mint", outputs=[("addr1", 1000), ("addr2", 1)]))

        assert service.submit_block(block).accepted
        assert service.query_balance("addr1") == 1000

    def test_rejected_block_leaves_no_partial_state(self, service, genesis_block):
        """Test first tx valid, second invalid: nothing applied"""
        service.submit_block(genesis_block)
        block = make_block(
            2,
            make_tx("tx2", inputs=[("tx1", 0)], outputs=[("addr2", 10)]),
            make_tx("tx3", inputs=[("ghost", 0)], outputs=[("addr3", 1)]),
        )

        outcome = service.submit_block(block)

        assert not outcome.accepted
        assert service.query_balance("addr1") == 10
        assert service.query_balance("addr2") == 0
        assert service.get_block(2) is None

    def test_intra_block_chain(self, service):
        block = make_block(
            1,
            make_tx("tx1", outputs=[("addr1", 10)]),
            make_tx("tx2", inputs=[("tx1", 0)], outputs=[("addr2", 10)]),
        )

        assert service.submit_block(block).accepted
        assert service.query_balance("addr1") == 0
        assert service.query_balance("addr2") == 10

    def test_duplicate_transaction_id_is_state_error(self, service, genesis_block):
        service.submit_block(genesis_block)
        block = make_block(2, make_tx("tx1", outputs=[("addr1", 5)]))

        with pytest.raises(DatabaseError):
            service.submit_block(block)

        assert service.get_current_height() == 1


class TestSubmitBlockData:
    """Test IndexerService.submit_block_data"""

    def test_wire_format(self, service, genesis_block):
        data = json.loads(json.dumps(genesis_block.to_dict()))
        assert service.submit_block_data(data).accepted

    def test_missing_field(self, service):
        outcome = service.submit_block_data({"height": 1})
        assert not outcome.accepted
        assert outcome.code == "INVALID_BLOCK_DATA"

    def test_negative_value(self, service):
        outcome = service.submit_block_data({
            "id": "x",
            "height": 1,
            "transactions": [{"id": "tx1", "inputs": [], "outputs": [
                {"address": "addr1", "value": -5}
            ]}],
        })
        assert not outcome.accepted
        assert outcome.code == "INVALID_OUTPUT_VALUE"


class TestRollbackTo:
    """Test IndexerService.rollback_to"""

    def test_string_height(self, populated_service):
        outcome = populated_service.rollback_to("1")
        assert outcome.accepted
        assert outcome.new_height == 1

    def test_non_numeric_height(self, populated_service):
        outcome = populated_service.rollback_to("abc")
        assert not outcome.accepted
        assert outcome.reason == "Invalid height parameter"
        assert populated_service.get_current_height() == 3

    def test_outcome_dict(self, populated_service):
        assert populated_service.rollback_to(3).to_dict() == {
            "accepted": True,
            "new_height": 3,
            "removed_blocks": 0,
            "reason": None,
            "code": None,
        }


class TestQueries:
    """Test read operations"""

    def test_status(self, populated_service):
        assert populated_service.get_status() == {"height": 3, "blocks": 3}

    def test_get_block(self, populated_service, transfer_block):
        assert populated_service.get_block(2) == {
            "id": transfer_block.id,
            "height": 2,
            "transactions": ["tx2"],
        }

    def test_list_unspent(self, populated_service):
        records = populated_service.list_unspent("addr4")
        assert [(r.tx_id, r.output_index, r.value) for r in records] == [("tx3", 0, 2)]

    def test_get_balance_alias(self, populated_service):
        assert populated_service.get_balance("addr2") == 4


class TestAudit:
    """Test audit trail"""

    def test_block_and_rollback_audited(self, audited_service, genesis_block, temp_data_dir):
        audited_service.submit_block(genesis_block)
        audited_service.rollback_to(0)

        for handler in audited_service.audit_logger.logger.handlers:
            handler.flush()

        lines = (temp_data_dir / "audit" / "audit.log").read_text().splitlines()
        actions = [json.loads(line)["extra_data"]["action"] for line in lines]
        assert actions[-2:] == ["block_applied", "rollback"]

    def test_rejected_block_not_audited(self, audited_service, temp_data_dir):
        audited_service.submit_block(make_block(5))

        audit_file = temp_data_dir / "audit" / "audit.log"
        assert audit_file.read_text() == ""


def test_service_shares_database(test_database, test_config, genesis_block):
    """Test two services on one database see the same ledger"""
    first = IndexerService(test_database, test_config)
    second = IndexerService(test_database, test_config)

    first.submit_block(genesis_block)

    assert second.query_balance("addr1") == 10
