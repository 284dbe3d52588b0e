"""
Transaction history queries.

HistoryLogic answers the two read-side questions of the bridge history
service: which withdrawals can an address claim, and what is the state of a
given set of messages. It fetches the primary rows, assembles one
TransactionRecord per message, and hands the records to the enrichers.
"""

import logging
from collections.abc import Sequence

from .enrichment import (
    ClaimInfoEnricher,
    EnrichmentOutcome,
    FinalizationEnricher,
    join_layer_hashes,
)
from .models import (
    CrossChainMessageRecord,
    Finalization,
    MessageType,
    SentMessageClaimRow,
    TransactionRecord,
)
from .store import HistoryStore
from .utils.address_utility import to_account_address
from .utils.lookup_utility import distinct, index_by

logger = logging.getLogger(__name__)


class HistoryQueryError(Exception):
    """Raised when a primary lookup fails and no records can be returned."""


def build_claimable_records(
    claim_rows: Sequence[SentMessageClaimRow],
    cross_msgs: Sequence[CrossChainMessageRecord],
) -> list[TransactionRecord]:
    """
    Assemble one L2 record per claimable sent message.

    Transfer details are copied from the matching cross-chain record when one
    exists. Messages sent by calling the messenger directly have none.
    """
    cross_msg_by_hash = index_by(cross_msgs, lambda msg: msg.msg_hash)
    records = []
    for row in claim_rows:
        record = TransactionRecord(
            msg_hash=row.msg_hash,
            is_l1=False,
            tx_hash=row.tx_hash,
            block_number=row.height,
            finalization=Finalization(),
        )
        cross_msg = cross_msg_by_hash.get(row.msg_hash)
        if cross_msg is not None:
            record.amount = cross_msg.amount
            record.to = cross_msg.target
            record.block_timestamp = cross_msg.timestamp
            record.created_at = cross_msg.created_at
            record.l1_token = cross_msg.layer1_token
            record.l2_token = cross_msg.layer2_token
        records.append(record)
    return records


def build_records_from_cross_messages(cross_msgs: Sequence[CrossChainMessageRecord]) -> list[TransactionRecord]:
    """Assemble one record per cross-chain message, with an empty finalization hash."""
    return [
        TransactionRecord(
            msg_hash=msg.msg_hash,
            is_l1=msg.msg_type == MessageType.LAYER1,
            tx_hash=join_layer_hashes(msg.layer1_hash, msg.layer2_hash),
            block_number=msg.height,
            block_timestamp=msg.timestamp,
            created_at=msg.created_at,
            to=msg.target,
            amount=msg.amount,
            l1_token=msg.layer1_token,
            l2_token=msg.layer2_token,
            finalization=Finalization(hash=""),
        )
        for msg in cross_msgs
    ]


async def apply_finalization_and_claim_info(
    store: HistoryStore,
    records: Sequence[TransactionRecord],
) -> tuple[EnrichmentOutcome, EnrichmentOutcome]:
    """
    Run the finalization pass, then the claim info pass.

    Returns:
        Tuple of (finalization outcome, claim info outcome)
    """
    finalization = await FinalizationEnricher(store).enrich(records)
    claim_info = await ClaimInfoEnricher(store).enrich(records)
    return finalization, claim_info


class HistoryLogic:
    """Read-side queries over bridge transaction history."""

    def __init__(self, store: HistoryStore, max_query_hashes: int | None = None) -> None:
        """
        Initialize the history logic.

        Args:
            store: Persistence layer answering batch lookups
            max_query_hashes: Upper bound on hashes accepted by txs_by_hashes, None for no limit
        """
        self.store = store
        self.max_query_hashes = max_query_hashes

    async def claimable_txs_by_address(self, address: str) -> tuple[list[TransactionRecord], int]:
        """
        Get all withdrawals the given address can claim on L1.

        Args:
            address: Account address as hex; short input is zero-padded

        Returns:
            Tuple of (records, number of claimable messages found)

        Raises:
            ValueError: If the address is not hex
            HistoryQueryError: If a primary lookup fails
        """
        address = to_account_address(address)

        try:
            claim_rows = await self.store.get_claimable_sent_messages_by_address(address)
        except Exception as e:
            logger.error(f"Claimable message lookup failed for {address}: {e}")
            raise HistoryQueryError(f"claimable message lookup failed for {address}") from e

        if not claim_rows:
            return [], 0

        msg_hashes = [row.msg_hash for row in claim_rows]
        try:
            cross_msgs = await self.store.get_l2_cross_chain_messages_by_hash_list(msg_hashes)
        except Exception as e:
            logger.error(f"L2 cross-chain message lookup failed for {address}: {e}")
            raise HistoryQueryError(f"L2 cross-chain message lookup failed for {address}") from e

        records = build_claimable_records(claim_rows, cross_msgs)
        outcome = await ClaimInfoEnricher(self.store).enrich(records)
        if outcome.was_applied:
            logger.info(
                f"Found {len(claim_rows)} claimable messages for {address} "
                f"({outcome.enriched} with claim info)"
            )
        else:
            logger.info(
                f"Found {len(claim_rows)} claimable messages for {address}, "
                f"claim info skipped: {outcome.reason}"
            )
        return records, len(claim_rows)

    async def txs_by_hashes(self, hashes: Sequence[str]) -> list[TransactionRecord]:
        """
        Get the history records for the given message hashes.

        Duplicate hashes are collapsed. Hashes without a tracked cross-chain
        record are left out of the result.

        Args:
            hashes: Message hashes to look up

        Returns:
            One record per matching cross-chain message

        Raises:
            ValueError: If more distinct hashes are requested than max_query_hashes allows
            HistoryQueryError: If the cross-chain message lookup fails
        """
        msg_hashes = distinct(hashes)
        if self.max_query_hashes is not None and len(msg_hashes) > self.max_query_hashes:
            raise ValueError(
                f"Too many hashes requested: {len(msg_hashes)} (limit {self.max_query_hashes})"
            )

        try:
            cross_msgs = await self.store.get_cross_chain_messages_by_hashes(msg_hashes)
        except Exception as e:
            logger.error(f"Cross-chain message lookup failed for {len(msg_hashes)} hashes: {e}")
            raise HistoryQueryError("cross-chain message lookup failed") from e

        records = build_records_from_cross_messages(cross_msgs)
        _, claim_info = await apply_finalization_and_claim_info(self.store, records)
        finalized = sum(1 for record in records if record.finalization.is_finalized)
        logger.debug(
            f"Resolved {len(records)} of {len(msg_hashes)} messages: {finalized} finalized, "
            f"claim info {claim_info.enriched if claim_info.was_applied else 'skipped'}"
        )
        return records
