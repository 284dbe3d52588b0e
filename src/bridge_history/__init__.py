"""
Bridge history package.

Reconciles bridge events from both chains into per-message transaction
history records.
"""

from .config import HistoryConfig
from .enrichment import ClaimInfoEnricher, EnrichmentOutcome, FinalizationEnricher
from .history import HistoryLogic, HistoryQueryError
from .models import TransactionRecord
from .store import HistoryStore, InMemoryHistoryStore

__all__ = [
    "HistoryConfig",
    "HistoryLogic",
    "HistoryQueryError",
    "HistoryStore",
    "InMemoryHistoryStore",
    "ClaimInfoEnricher",
    "FinalizationEnricher",
    "EnrichmentOutcome",
    "TransactionRecord",
]
__version__ = "0.1.0"
