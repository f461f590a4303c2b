"""Protocol definitions for the sorted column store."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from ..core.composite import CompositeKey
    from ..core.types import Mutation, RowKey, Timestamp


class Batch(Protocol):
    """Scoped collector of put/delete operations."""

    def put(self, table: str, row_key: RowKey, column_key: CompositeKey, value: Any) -> None:
        """Schedule an upsert of one column."""
        ...

    def delete(self, table: str, row_key: RowKey, column_key: CompositeKey) -> None:
        """Schedule a tombstone for one column."""
        ...

    @property
    def mutations(self) -> Sequence[Mutation]:
        """Scheduled mutations in the order they were added."""
        ...

    def commit(self, timestamp: Timestamp) -> int:
        """Apply every scheduled mutation at timestamp; return how many were applied.

        No cross-partition atomicity is guaranteed.
        """
        ...


class ColumnStore(Protocol):
    """Sorted wide-column store: table -> row -> ordered columns."""

    def put(
        self,
        table: str,
        row_key: RowKey,
        column_key: CompositeKey,
        value: Any,
        timestamp: Timestamp,
    ) -> None:
        """Upsert a column (last write wins by timestamp)."""
        ...

    def delete(
        self, table: str, row_key: RowKey, column_key: CompositeKey, timestamp: Timestamp
    ) -> None:
        """Tombstone a column."""
        ...

    def get(self, table: str, row_key: RowKey, column_key: CompositeKey) -> Any | None:
        """Return the live value of a column or None."""
        ...

    def batch(self) -> Batch:
        """Return a new, empty batch bound to this store."""
        ...

    def apply_batch(self, mutations: Sequence[Mutation], timestamp: Timestamp) -> int:
        """Apply mutations in order at timestamp (used by Batch.commit)."""
        ...

    def scan_range(
        self,
        table: str,
        row_key: RowKey,
        start: CompositeKey | None = None,
        end: CompositeKey | None = None,
        reversed: bool = False,
        limit: int | None = None,
    ) -> list[tuple[CompositeKey, Any]]:
        """Return live columns with start <= key <= end in key order.

        A reversed scan walks from end down to start.
        """
        ...

    def close(self) -> None:
        """Release resources; later calls raise StoreUnavailable."""
        ...
