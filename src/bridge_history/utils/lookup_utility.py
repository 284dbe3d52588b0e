"""
Lookup helpers for joining batches of rows in memory.

The persistence layer only answers "give me the rows for these keys", so
joins are done here with plain dicts that are built fresh for every call.
"""

from collections.abc import Callable, Hashable, Iterable
from typing import TypeVar

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


def index_by(rows: Iterable[T], key: Callable[[T], K]) -> dict[K, T]:
    """
    Build a key -> row map.

    If two rows share a key the last one wins, matching what a map insert
    per row would do.

    Args:
        rows: Rows returned by a batch lookup
        key: Function extracting the natural identifier of a row

    Returns:
        Dictionary mapping each key to its row
    """
    return {key(row): row for row in rows}


def distinct(values: Iterable[K]) -> list[K]:
    """Return values with duplicates removed, keeping first-seen order."""
    return list(dict.fromkeys(values))
