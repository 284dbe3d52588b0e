"""
Persistence boundary for the bridge history service.

HistoryStore is the only interface the reconciliation code talks to. Every
lookup is a batch lookup by key set; none of them joins. InMemoryHistoryStore
answers the same lookups from a JSON snapshot of indexed chain data.
"""

import json
import logging
from collections.abc import Iterable, Sequence
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from .models import (
    CrossChainMessageRecord,
    MessageType,
    RelayedMessage,
    RollupBatch,
    SentMessage,
    SentMessageClaimRow,
)

logger = logging.getLogger(__name__)


class HistoryStore(Protocol):
    """Batch lookups over indexed bridge events."""

    async def get_claimable_sent_messages_by_address(self, address: str) -> list[SentMessageClaimRow]:
        ...

    async def get_sent_messages_by_hashes(self, msg_hashes: Sequence[str]) -> list[SentMessage]:
        ...

    async def get_rollup_batches_by_indexes(self, batch_indexes: Sequence[int]) -> list[RollupBatch]:
        ...

    async def get_relayed_messages_by_hashes(self, msg_hashes: Sequence[str]) -> list[RelayedMessage]:
        ...

    async def get_cross_chain_messages_by_hashes(self, msg_hashes: Sequence[str]) -> list[CrossChainMessageRecord]:
        ...

    async def get_l2_cross_chain_messages_by_hash_list(self, msg_hashes: Sequence[str]) -> list[CrossChainMessageRecord]:
        ...


class InMemoryHistoryStore:
    """HistoryStore backed by in-memory rows, typically loaded from a snapshot file."""

    def __init__(
        self,
        sent_messages: Iterable[SentMessage] = (),
        rollup_batches: Iterable[RollupBatch] = (),
        relayed_messages: Iterable[RelayedMessage] = (),
        cross_chain_messages: Iterable[CrossChainMessageRecord] = (),
    ) -> None:
        self.sent_messages: list[SentMessage] = list(sent_messages)
        self.rollup_batches: list[RollupBatch] = list(rollup_batches)
        self.relayed_messages: list[RelayedMessage] = list(relayed_messages)
        self.cross_chain_messages: list[CrossChainMessageRecord] = list(cross_chain_messages)

    @classmethod
    def from_file(cls, path: str | Path) -> "InMemoryHistoryStore":
        """
        Load a store from a JSON snapshot.

        The snapshot holds four lists keyed by "sent_messages",
        "rollup_batches", "relayed_messages" and "cross_chain_messages".
        Each entry uses the model field names.

        Raises:
            ValueError: If the file is not valid JSON or an entry is malformed
        """
        snapshot_path = Path(path)
        try:
            with open(snapshot_path) as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Snapshot {snapshot_path} is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Snapshot {snapshot_path} must contain a JSON object")

        store = cls.from_dict(data)
        logger.info(
            f"Loaded snapshot {snapshot_path}: {len(store.sent_messages)} sent, "
            f"{len(store.rollup_batches)} batches, {len(store.relayed_messages)} relayed, "
            f"{len(store.cross_chain_messages)} cross-chain messages"
        )
        return store

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InMemoryHistoryStore":
        """Build a store from an already-parsed snapshot document."""
        try:
            return cls(
                sent_messages=[
                    SentMessage(**_check_ints(row, "batch_index", "nonce", "height"))
                    for row in data.get("sent_messages", [])
                ],
                rollup_batches=[
                    RollupBatch(**_check_ints(row, "batch_index")) for row in data.get("rollup_batches", [])
                ],
                relayed_messages=[
                    RelayedMessage(**_check_ints(row, "height")) for row in data.get("relayed_messages", [])
                ],
                cross_chain_messages=[
                    _parse_cross_chain_message(row) for row in data.get("cross_chain_messages", [])
                ],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Malformed snapshot entry: {e}") from e

    async def get_claimable_sent_messages_by_address(self, address: str) -> list[SentMessageClaimRow]:
        """
        Find sent messages the address can claim right now.

        A message is claimable when it was initiated by the address, has a
        withdraw proof, and has not been relayed yet. Newest first.
        """
        wanted = address.lower()
        relayed = {msg.msg_hash for msg in self.relayed_messages}
        claimable = [
            msg for msg in self.sent_messages
            if (msg.original_sender or msg.sender).lower() == wanted
            and msg.proof
            and msg.msg_hash not in relayed
        ]
        claimable.sort(key=lambda msg: msg.height, reverse=True)
        return [
            SentMessageClaimRow(msg_hash=msg.msg_hash, tx_hash=msg.tx_hash, height=msg.height)
            for msg in claimable
        ]

    async def get_sent_messages_by_hashes(self, msg_hashes: Sequence[str]) -> list[SentMessage]:
        wanted = set(msg_hashes)
        return [msg for msg in self.sent_messages if msg.msg_hash in wanted]

    async def get_rollup_batches_by_indexes(self, batch_indexes: Sequence[int]) -> list[RollupBatch]:
        wanted = set(batch_indexes)
        return [batch for batch in self.rollup_batches if batch.batch_index in wanted]

    async def get_relayed_messages_by_hashes(self, msg_hashes: Sequence[str]) -> list[RelayedMessage]:
        wanted = set(msg_hashes)
        return [msg for msg in self.relayed_messages if msg.msg_hash in wanted]

    async def get_cross_chain_messages_by_hashes(self, msg_hashes: Sequence[str]) -> list[CrossChainMessageRecord]:
        wanted = set(msg_hashes)
        return [msg for msg in self.cross_chain_messages if msg.msg_hash in wanted]

    async def get_l2_cross_chain_messages_by_hash_list(self, msg_hashes: Sequence[str]) -> list[CrossChainMessageRecord]:
        wanted = set(msg_hashes)
        return [
            msg for msg in self.cross_chain_messages
            if msg.msg_hash in wanted and msg.msg_type == MessageType.LAYER2
        ]


def _parse_cross_chain_message(row: dict[str, Any]) -> CrossChainMessageRecord:
    fields = dict(_check_ints(row, "height"))
    fields["msg_type"] = MessageType(fields["msg_type"])
    for key in ("timestamp", "created_at"):
        match fields.get(key):
            case str() as raw:
                fields[key] = datetime.fromisoformat(raw)
            case _:
                pass
    return CrossChainMessageRecord(**fields)


def _check_ints(row: dict[str, Any], *keys: str) -> dict[str, Any]:
    """Reject integer fields given as another JSON type, so joins on them cannot silently miss."""
    for key in keys:
        value = row.get(key, 0)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{key} must be an integer, got {value!r}")
    return row
