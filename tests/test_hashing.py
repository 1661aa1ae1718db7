"""
UTXO Indexer - Hashing Tests
==============================
Unit tests for block identity hashing.
"""

import hashlib

import pytest
from utxo_indexer.domain.hashing import compute_sha256, compute_block_id
from utxo_indexer.errors import HashingError


class TestComputeSha256:
    """Test compute_sha256"""

    def test_empty_input(self):
        """Test known digest of empty input"""
        assert compute_sha256(b"").hex() == (
            "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        )

    def test_rejects_str(self):
        """Test non-bytes input is rejected"""
        with pytest.raises(HashingError):
            compute_sha256("not bytes")


class TestComputeBlockId:
    """Test compute_block_id"""

    def test_single_transaction(self):
        """Test id is sha256 of height followed by tx id"""
        assert compute_block_id(1, ["tx1"]) == hashlib.sha256(b"1tx1").hexdigest()

    def test_no_delimiter_between_ids(self):
        """Test ids are concatenated without separator"""
        assert compute_block_id(12, ["a", "b"]) == hashlib.sha256(b"12ab").hexdigest()

    def test_empty_block(self):
        """Test block without transactions hashes the height only"""
        assert compute_block_id(7, []) == hashlib.sha256(b"7").hexdigest()

    def test_deterministic(self):
        """Test same input gives same id"""
        assert compute_block_id(3, ["x", "y"]) == compute_block_id(3, ["x", "y"])

    def test_order_sensitive(self):
        """Test reordering transactions changes the id"""
        assert compute_block_id(3, ["x", "y"]) != compute_block_id(3, ["y", "x"])

    def test_lowercase_hex(self):
        """Test output format"""
        block_id = compute_block_id(1, ["tx1"])
        assert len(block_id) == 64
        assert block_id == block_id.lower()
