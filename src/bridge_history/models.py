"""
Shared data models for the bridge history service.

Row types mirror what the persistence layer hands back and are immutable.
TransactionRecord is the assembled per-message view that the enrichers
fill in place.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any


class MessageType(IntEnum):
    """Which side of the bridge initiated a cross-chain message."""
    LAYER1 = 1
    LAYER2 = 2


@dataclass(frozen=True, slots=True)
class SentMessage:
    """A message emitted on L2 that is waiting to be claimed on L1.

    Attributes:
        msg_hash: Cross-chain message hash
        batch_index: Index of the rollup batch the message was committed in
        sender: Messenger-level sender of the message
        target: Messenger-level target of the message
        value: Wei value carried by the message (decimal string)
        nonce: Messenger nonce
        message: Calldata payload
        proof: Withdraw merkle proof, hex without 0x prefix
        tx_hash: Transaction hash where the message was emitted
        height: Block number where the message was emitted
        original_sender: Account that initiated the withdrawal
    """
    msg_hash: str
    batch_index: int
    sender: str
    target: str
    value: str
    nonce: int
    message: str
    proof: str
    tx_hash: str = ""
    height: int = 0
    original_sender: str = ""


@dataclass(frozen=True, slots=True)
class SentMessageClaimRow:
    """A sent message that can currently be claimed."""
    msg_hash: str
    tx_hash: str
    height: int


@dataclass(frozen=True, slots=True)
class RollupBatch:
    """A committed rollup batch."""
    batch_index: int
    batch_hash: str


@dataclass(frozen=True, slots=True)
class RelayedMessage:
    """A message that has been relayed (finalized) on the counter-chain.

    Only one of layer1_hash and layer2_hash is normally set, depending on
    which chain the relay happened on.
    """
    msg_hash: str
    layer1_hash: str
    layer2_hash: str
    height: int


@dataclass(frozen=True, slots=True)
class CrossChainMessageRecord:
    """A tracked bridge transfer (deposit or withdrawal).

    Attributes:
        msg_hash: Cross-chain message hash
        msg_type: Side that initiated the transfer
        layer1_hash: L1 transaction hash, empty for L2-initiated transfers
        layer2_hash: L2 transaction hash, empty for L1-initiated transfers
        height: Block number of the initiating transaction
        amount: Transferred amount (decimal string)
        target: Recipient of the transfer
        layer1_token: Token address on L1
        layer2_token: Token address on L2
        timestamp: Block timestamp of the initiating transaction
        created_at: When the indexer stored the record
    """
    msg_hash: str
    msg_type: MessageType
    layer1_hash: str = ""
    layer2_hash: str = ""
    height: int = 0
    amount: str = ""
    target: str = ""
    layer1_token: str = ""
    layer2_token: str = ""
    timestamp: datetime | None = None
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class ClaimInfo:
    """Everything a user needs to submit a claim transaction on L1."""
    sender: str
    target: str
    value: str
    nonce: str
    message: str
    proof: str
    batch_hash: str
    batch_index: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "from": self.sender,
            "to": self.target,
            "value": self.value,
            "nonce": self.nonce,
            "message": self.message,
            "proof": self.proof,
            "batch_hash": self.batch_hash,
            "batch_index": self.batch_index,
        }


@dataclass(slots=True)
class Finalization:
    """Where a message was finalized on the counter-chain.

    None means not yet known. The by-hashes query starts from an explicit
    empty hash instead.
    """
    hash: str | None = None
    block_number: int | None = None

    @property
    def is_finalized(self) -> bool:
        return self.block_number is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"hash": self.hash, "block_number": self.block_number}


@dataclass(slots=True)
class TransactionRecord:
    """History view of one cross-chain message."""
    msg_hash: str
    is_l1: bool
    tx_hash: str = ""
    block_number: int = 0
    block_timestamp: datetime | None = None
    created_at: datetime | None = None
    to: str = ""
    amount: str = ""
    l1_token: str = ""
    l2_token: str = ""
    claim_info: ClaimInfo | None = None
    finalization: Finalization = field(default_factory=Finalization)

    def __post_init__(self) -> None:
        if not self.msg_hash:
            raise ValueError("TransactionRecord requires a non-empty msg_hash")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "hash": self.tx_hash,
            "msg_hash": self.msg_hash,
            "amount": self.amount,
            "to": self.to,
            "is_l1": self.is_l1,
            "l1_token": self.l1_token,
            "l2_token": self.l2_token,
            "block_number": self.block_number,
            "block_timestamp": _isoformat(self.block_timestamp),
            "created_at": _isoformat(self.created_at),
            "finalize_tx": self.finalization.to_dict(),
            "claim_info": self.claim_info.to_dict() if self.claim_info else None,
        }


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
