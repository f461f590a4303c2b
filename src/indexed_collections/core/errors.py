"""Exception hierarchy for indexed collections.

Defines all custom exceptions raised by the index layer and its store backends.
"""

from __future__ import annotations


class IndexedCollectionsError(Exception):
    """Base exception for all indexed collection errors."""
    pass


class StoreUnavailable(IndexedCollectionsError):
    """Raised when the backing store is closed or cannot be reached."""
    pass


class InvalidValueEncoding(IndexedCollectionsError, ValueError):
    """Raised when a value cannot be classified into a TypedValue."""
    pass


class PartialBatchFailure(IndexedCollectionsError):
    """Raised when a batch commit fails after some mutations were applied.

    Args:
        applied: Number of mutations applied before the failure
        total: Number of mutations in the batch
    """

    def __init__(self, applied: int, total: int, message: str | None = None):
        self.applied = applied
        self.total = total
        super().__init__(
            message or f"Batch failed after applying {applied} of {total} mutations"
        )


class DecodeError(IndexedCollectionsError):
    """Raised when a stored composite key or value is corrupt or unexpected."""
    pass


class WALCorruptionError(DecodeError):
    """Raised when WAL data is corrupted or invalid."""
    pass
