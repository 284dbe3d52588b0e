"""Unit tests for the history data models."""

import pytest

from bridge_history.models import ClaimInfo, Finalization, TransactionRecord


def test_record_requires_msg_hash():
    with pytest.raises(ValueError, match="non-empty msg_hash"):
        TransactionRecord(msg_hash="", is_l1=True)


def test_records_do_not_share_finalization():
    first = TransactionRecord(msg_hash="0xh1", is_l1=True)
    second = TransactionRecord(msg_hash="0xh2", is_l1=True)

    first.finalization.block_number = 10

    assert second.finalization.block_number is None


def test_finalization_state():
    assert not Finalization().is_finalized
    assert not Finalization(hash="").is_finalized
    assert Finalization(hash="0xAA", block_number=1).is_finalized


def test_record_to_dict():
    record = TransactionRecord(
        msg_hash="0xh1",
        is_l1=False,
        tx_hash="0xtx",
        claim_info=ClaimInfo(
            sender="0xs",
            target="0xt",
            value="1",
            nonce="2",
            message="0x",
            proof="0xp",
            batch_hash="0xb",
            batch_index="3",
        ),
    )

    data = record.to_dict()

    assert data["hash"] == "0xtx"
    assert data["block_timestamp"] is None
    assert data["finalize_tx"] == {"hash": None, "block_number": None}
    assert data["claim_info"]["from"] == "0xs"
    assert data["claim_info"]["batch_index"] == "3"
