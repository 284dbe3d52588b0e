"""
Enrichment passes for assembled transaction records.

Each enricher batch-fetches secondary facts for a list of records, works out
which records it can fill (the plan), then applies that plan in place.
Lookup failures never escape an enricher: the pass is skipped and the
outcome says why, leaving the optional fields unset.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from .models import ClaimInfo, RelayedMessage, RollupBatch, SentMessage, TransactionRecord
from .store import HistoryStore
from .utils.lookup_utility import distinct, index_by

logger = logging.getLogger(__name__)


class EnrichmentStatus(Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class EnrichmentOutcome:
    """Result of one enrichment pass.

    Attributes:
        status: Whether the pass ran to completion or was skipped
        enriched: Number of records that had a field filled
        reason: Why the pass was skipped, empty when applied
    """
    status: EnrichmentStatus
    enriched: int = 0
    reason: str = ""

    @classmethod
    def applied(cls, enriched: int) -> "EnrichmentOutcome":
        return cls(EnrichmentStatus.APPLIED, enriched=enriched)

    @classmethod
    def skipped(cls, reason: str) -> "EnrichmentOutcome":
        return cls(EnrichmentStatus.SKIPPED, reason=reason)

    @property
    def was_applied(self) -> bool:
        return self.status is EnrichmentStatus.APPLIED


def join_layer_hashes(layer1_hash: str, layer2_hash: str) -> str:
    """Combine L1 and L2 transaction hashes, L1 first.

    Usually only one side is set, so the result is that hash. Clients rely on
    this exact concatenation, so it is kept even when both sides are set.
    """
    return layer1_hash + layer2_hash


def plan_claim_info(
    records: Sequence[TransactionRecord],
    sent_by_hash: dict[str, SentMessage],
    batch_by_index: dict[int, RollupBatch],
) -> dict[str, ClaimInfo]:
    """
    Work out claim info for L2-initiated records.

    A record only gets claim info when both its sent message and the batch
    that message was committed in are known.

    Returns:
        Mapping of message hash to the claim info to attach
    """
    plan: dict[str, ClaimInfo] = {}
    for record in records:
        if record.is_l1:
            continue

        sent = sent_by_hash.get(record.msg_hash)
        if sent is None:
            continue

        batch = batch_by_index.get(sent.batch_index)
        if batch is None:
            continue

        plan[record.msg_hash] = ClaimInfo(
            sender=sent.sender,
            target=sent.target,
            value=sent.value,
            nonce=str(sent.nonce),
            message=sent.message,
            proof="0x" + sent.proof,
            batch_hash=batch.batch_hash,
            batch_index=str(sent.batch_index),
        )
    return plan


def plan_finalization(
    records: Sequence[TransactionRecord],
    relayed_by_hash: dict[str, RelayedMessage],
) -> dict[str, RelayedMessage]:
    """Pick the relayed message for every record that has one."""
    return {
        record.msg_hash: relayed_by_hash[record.msg_hash]
        for record in records
        if record.msg_hash in relayed_by_hash
    }


class ClaimInfoEnricher:
    """Attaches claim proofs to L2-initiated records."""

    def __init__(self, store: HistoryStore) -> None:
        self.store = store

    async def enrich(self, records: Sequence[TransactionRecord]) -> EnrichmentOutcome:
        """
        Fill claim_info on every L2-initiated record that can be claimed.

        Args:
            records: Records to enrich in place

        Returns:
            Outcome describing whether the pass ran and how many records it filled
        """
        l2_msg_hashes = distinct(record.msg_hash for record in records if not record.is_l1)
        if not l2_msg_hashes:
            return EnrichmentOutcome.skipped("no L2 records")

        try:
            sent_messages = await self.store.get_sent_messages_by_hashes(l2_msg_hashes)
        except Exception as e:
            logger.warning(f"Sent message lookup failed for {len(l2_msg_hashes)} hashes: {e}")
            return EnrichmentOutcome.skipped(f"sent message lookup failed: {e}")

        if not sent_messages:
            logger.debug(f"No sent messages found for {len(l2_msg_hashes)} L2 hashes")
            return EnrichmentOutcome.skipped("no sent messages")

        sent_by_hash = index_by(sent_messages, lambda msg: msg.msg_hash)
        batch_indexes = distinct(msg.batch_index for msg in sent_messages)

        try:
            batches = await self.store.get_rollup_batches_by_indexes(batch_indexes)
        except Exception as e:
            logger.warning(f"Rollup batch lookup failed for indexes {batch_indexes}: {e}")
            return EnrichmentOutcome.skipped(f"rollup batch lookup failed: {e}")

        batch_by_index = index_by(batches, lambda batch: batch.batch_index)
        plan = plan_claim_info(records, sent_by_hash, batch_by_index)

        for record in records:
            claim_info = plan.get(record.msg_hash)
            if claim_info is not None and not record.is_l1:
                record.claim_info = claim_info

        logger.debug(f"Claim info attached to {len(plan)} of {len(l2_msg_hashes)} L2 messages")
        return EnrichmentOutcome.applied(len(plan))


class FinalizationEnricher:
    """Records where messages were relayed on the counter-chain."""

    def __init__(self, store: HistoryStore) -> None:
        self.store = store

    async def enrich(self, records: Sequence[TransactionRecord]) -> EnrichmentOutcome:
        """
        Fill finalization on every record whose message has been relayed.

        Args:
            records: Records to enrich in place, from either side

        Returns:
            Outcome describing whether the pass ran and how many records it filled
        """
        msg_hashes = distinct(record.msg_hash for record in records)
        if not msg_hashes:
            return EnrichmentOutcome.skipped("no records")

        try:
            relayed_messages = await self.store.get_relayed_messages_by_hashes(msg_hashes)
        except Exception as e:
            logger.warning(f"Relayed message lookup failed for {len(msg_hashes)} hashes: {e}")
            return EnrichmentOutcome.skipped(f"relayed message lookup failed: {e}")

        if not relayed_messages:
            logger.debug(f"No relayed messages found for {len(msg_hashes)} hashes")
            return EnrichmentOutcome.skipped("no relayed messages")

        plan = plan_finalization(records, index_by(relayed_messages, lambda msg: msg.msg_hash))

        for record in records:
            relayed = plan.get(record.msg_hash)
            if relayed is not None:
                record.finalization.hash = join_layer_hashes(relayed.layer1_hash, relayed.layer2_hash)
                record.finalization.block_number = relayed.height

        return EnrichmentOutcome.applied(len(plan))
