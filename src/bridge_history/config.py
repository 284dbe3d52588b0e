"""
Configuration module for the bridge history service.

Configuration is loaded from environment variables and validated on
construction.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HistoryConfig:
    """Configuration for running history queries.

    Attributes:
        snapshot_path: JSON snapshot of indexed bridge events
        log_level: Root logging level name
        max_query_hashes: Upper bound on hashes accepted by one by-hashes query
    """

    snapshot_path: Path
    log_level: str = "INFO"
    max_query_hashes: int = 100

    LOG_LEVELS: ClassVar[set[str]] = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

    def __post_init__(self) -> None:
        """Validate configuration values."""
        # Checked before conversion: Path("") would mean the cwd
        if not self.snapshot_path:
            raise ValueError("Snapshot path is required (HISTORY_SNAPSHOT_PATH)")

        if not isinstance(self.snapshot_path, Path):
            object.__setattr__(self, "snapshot_path", Path(self.snapshot_path))

        level = self.log_level.upper()
        if level not in self.LOG_LEVELS:
            raise ValueError(
                f"Unsupported log level: {self.log_level}. "
                f"Supported levels: {', '.join(sorted(self.LOG_LEVELS))}"
            )
        object.__setattr__(self, "log_level", level)

        if self.max_query_hashes < 1:
            raise ValueError(f"max_query_hashes must be at least 1, got {self.max_query_hashes}")

    @classmethod
    def from_env(cls) -> "HistoryConfig":
        """
        Load configuration from environment variables.

        Returns:
            HistoryConfig: Validated configuration

        Raises:
            ValueError: If required environment variables are missing or invalid
        """
        snapshot_path = os.environ.get("HISTORY_SNAPSHOT_PATH")
        if not snapshot_path:
            raise ValueError(
                "HISTORY_SNAPSHOT_PATH environment variable is required. "
                "This is the JSON snapshot of indexed bridge events to query"
            )

        max_query_hashes = os.environ.get("MAX_QUERY_HASHES", "100")
        try:
            max_hashes = int(max_query_hashes)
        except ValueError as e:
            raise ValueError(f"MAX_QUERY_HASHES must be an integer, got {max_query_hashes!r}") from e

        return cls(
            snapshot_path=Path(snapshot_path),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            max_query_hashes=max_hashes,
        )

    def log_config(self) -> None:
        """Log configuration settings."""
        logger.info("=== Bridge History Configuration ===")
        logger.info(f"  Snapshot: {self.snapshot_path}")
        logger.info(f"  Log Level: {self.log_level}")
        logger.info(f"  Max Query Hashes: {self.max_query_hashes}")
