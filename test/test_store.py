#!/usr/bin/env python3
"""Tests for the snapshot-backed history store."""

import json
from datetime import datetime

import pytest

from bridge_history.history import HistoryLogic
from bridge_history.models import MessageType, SentMessageClaimRow
from bridge_history.store import InMemoryHistoryStore

ADDRESS = "0x85BfE05492aFC3D04Ff3B2ca6771ACF6f853d90d"
OTHER = "0x1111111111111111111111111111111111111111"


def sent_entry(msg_hash: str, batch_index: int, height: int, **overrides) -> dict:
    entry = {
        "msg_hash": msg_hash,
        "batch_index": batch_index,
        "sender": "0x4200000000000000000000000000000000000007",
        "target": ADDRESS,
        "value": "0",
        "nonce": height,
        "message": "0x",
        "proof": "beef",
        "tx_hash": f"0xtx{height}",
        "height": height,
        "original_sender": ADDRESS.lower(),
    }
    entry.update(overrides)
    return entry


@pytest.fixture
def snapshot():
    return {
        "sent_messages": [
            sent_entry("0xw1", 1, 100),
            sent_entry("0xw2", 2, 200),
            sent_entry("0xw3", 2, 300, proof=""),
            sent_entry("0xw4", 1, 400),
            sent_entry("0xw5", 1, 500, original_sender=OTHER),
        ],
        "rollup_batches": [{"batch_index": 1, "batch_hash": "0xbatch1"}],
        "relayed_messages": [
            {"msg_hash": "0xw4", "layer1_hash": "0xclaim4", "layer2_hash": "", "height": 900},
            {"msg_hash": "0xd1", "layer1_hash": "", "layer2_hash": "0xrelay1", "height": 901},
        ],
        "cross_chain_messages": [
            {
                "msg_hash": "0xw1",
                "msg_type": 2,
                "layer2_hash": "0xtx100",
                "height": 100,
                "amount": "42",
                "target": ADDRESS,
                "timestamp": "2024-01-02T03:04:05+00:00",
            },
            {
                "msg_hash": "0xd1",
                "msg_type": 1,
                "layer1_hash": "0xdeposit1",
                "height": 50,
                "amount": "7",
                "created_at": "2024-01-01T00:00:00+00:00",
            },
        ],
    }


@pytest.fixture
def store(snapshot):
    return InMemoryHistoryStore.from_dict(snapshot)


class TestInMemoryHistoryStore:
    """Tests for InMemoryHistoryStore lookups."""

    def test_from_dict_parses_types(self, store):
        deposit = store.cross_chain_messages[1]
        assert deposit.msg_type is MessageType.LAYER1
        assert deposit.created_at == datetime.fromisoformat("2024-01-01T00:00:00+00:00")
        assert store.cross_chain_messages[0].timestamp is not None

    def test_from_file(self, tmp_path, snapshot):
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps(snapshot))

        store = InMemoryHistoryStore.from_file(path)

        assert len(store.sent_messages) == 5
        assert len(store.relayed_messages) == 2

    def test_from_file_rejects_invalid_json(self, tmp_path):
        path = tmp_path / "snapshot.json"
        path.write_text("{not json")

        with pytest.raises(ValueError, match="not valid JSON"):
            InMemoryHistoryStore.from_file(path)

    def test_from_dict_rejects_malformed_entry(self):
        with pytest.raises(ValueError, match="Malformed snapshot entry"):
            InMemoryHistoryStore.from_dict({"rollup_batches": [{"batch_index": 1}]})

    def test_from_dict_rejects_string_integer_fields(self):
        """Test that a string batch index is refused instead of silently missing the batch join."""
        with pytest.raises(ValueError, match="batch_index must be an integer"):
            InMemoryHistoryStore.from_dict({"sent_messages": [sent_entry("0xw1", "5", 100)]})

        with pytest.raises(ValueError, match="nonce must be an integer"):
            InMemoryHistoryStore.from_dict({"sent_messages": [sent_entry("0xw1", 5, 100, nonce="x")]})

        with pytest.raises(ValueError, match="batch_index must be an integer"):
            InMemoryHistoryStore.from_dict({"rollup_batches": [{"batch_index": "5", "batch_hash": "0xb"}]})

        with pytest.raises(ValueError, match="height must be an integer"):
            InMemoryHistoryStore.from_dict({"relayed_messages": [
                {"msg_hash": "0xw1", "layer1_hash": "0xa", "layer2_hash": "", "height": 1.5}
            ]})

        with pytest.raises(ValueError, match="height must be an integer"):
            InMemoryHistoryStore.from_dict({"cross_chain_messages": [
                {"msg_hash": "0xw1", "msg_type": 2, "height": "100"}
            ]})

    def test_from_dict_rejects_missing_msg_type(self):
        with pytest.raises(ValueError, match="Malformed snapshot entry"):
            InMemoryHistoryStore.from_dict({"cross_chain_messages": [{"msg_hash": "0x1"}]})

    @pytest.mark.asyncio
    async def test_claimable_excludes_relayed_unproven_and_foreign(self, store):
        rows = await store.get_claimable_sent_messages_by_address(ADDRESS)

        assert rows == [
            SentMessageClaimRow(msg_hash="0xw2", tx_hash="0xtx200", height=200),
            SentMessageClaimRow(msg_hash="0xw1", tx_hash="0xtx100", height=100),
        ]

    @pytest.mark.asyncio
    async def test_l2_scoped_lookup_filters_deposits(self, store):
        all_msgs = await store.get_cross_chain_messages_by_hashes(["0xw1", "0xd1"])
        l2_msgs = await store.get_l2_cross_chain_messages_by_hash_list(["0xw1", "0xd1"])

        assert [msg.msg_hash for msg in all_msgs] == ["0xw1", "0xd1"]
        assert [msg.msg_hash for msg in l2_msgs] == ["0xw1"]

    @pytest.mark.asyncio
    async def test_unknown_keys_are_ignored(self, store):
        assert await store.get_sent_messages_by_hashes(["0xnope"]) == []
        assert await store.get_rollup_batches_by_indexes([99]) == []
        assert await store.get_relayed_messages_by_hashes([]) == []


class TestHistoryLogicWithSnapshot:
    """End-to-end queries against a snapshot store."""

    @pytest.mark.asyncio
    async def test_claimable_txs(self, store):
        records, total = await HistoryLogic(store).claimable_txs_by_address(ADDRESS)

        assert total == 2
        by_hash = {record.msg_hash: record for record in records}
        # Batch 2 has not been committed in the snapshot
        assert by_hash["0xw2"].claim_info is None
        claim_info = by_hash["0xw1"].claim_info
        assert claim_info.batch_hash == "0xbatch1"
        assert claim_info.proof == "0xbeef"
        assert claim_info.nonce == "100"
        assert by_hash["0xw1"].amount == "42"

    @pytest.mark.asyncio
    async def test_txs_by_hashes(self, store):
        records = await HistoryLogic(store).txs_by_hashes(["0xd1", "0xw1", "0xmissing"])

        # Snapshot order, not request order
        withdrawal, deposit = records
        assert deposit.is_l1 is True
        assert deposit.tx_hash == "0xdeposit1"
        assert deposit.finalization.hash == "0xrelay1"
        assert deposit.finalization.block_number == 901
        assert withdrawal.is_l1 is False
        assert withdrawal.finalization.hash == ""
        assert withdrawal.claim_info is not None

        as_dict = withdrawal.to_dict()
        assert as_dict["claim_info"]["batch_index"] == "1"
        assert as_dict["block_timestamp"] == "2024-01-02T03:04:05+00:00"
