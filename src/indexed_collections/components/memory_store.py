"""In-memory sorted column store.

Uses sortedcontainers.SortedDict per row for efficient ordered range scans.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from typing import Any

from sortedcontainers import SortedDict

from ..core.composite import CompositeKey
from ..core.errors import PartialBatchFailure, StoreUnavailable
from ..core.types import Mutation, MutationKind, RowKey, Timestamp
from .batch import SimpleBatch

logger = logging.getLogger(__name__)


class SortedColumnStore:
    """Sorted wide-column store held in memory.

    Layout: table -> row key -> SortedDict(CompositeKey -> (value, timestamp)).
    A value of None is a tombstone.

    Invariants:
        - Columns within a row are always in composite key order
        - Last write wins per column by timestamp; a tombstone wins a tie
        - Tombstones are kept, so a late older write cannot resurrect a column
    """

    def __init__(self):
        self._tables: dict[str, dict[RowKey, SortedDict]] = {}
        self._lock = threading.Lock()
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            raise StoreUnavailable("Store is closed")

    def _row(self, table: str, row_key: RowKey) -> SortedDict | None:
        return self._tables.get(table, {}).get(row_key)

    def put(
        self,
        table: str,
        row_key: RowKey,
        column_key: CompositeKey,
        value: Any,
        timestamp: Timestamp,
    ) -> None:
        """Upsert a single column."""
        if value is None:
            raise ValueError("Cannot put None; use delete")
        self.apply_batch([Mutation.put(table, row_key, column_key, value)], timestamp)

    def delete(
        self, table: str, row_key: RowKey, column_key: CompositeKey, timestamp: Timestamp
    ) -> None:
        """Tombstone a single column."""
        self.apply_batch([Mutation.delete(table, row_key, column_key)], timestamp)

    def get(self, table: str, row_key: RowKey, column_key: CompositeKey) -> Any | None:
        """Return the live value of a column or None."""
        with self._lock:
            self._check_open()
            row = self._row(table, row_key)
            if row is None:
                return None
            entry = row.get(column_key)
            return entry[0] if entry is not None else None

    def batch(self) -> SimpleBatch:
        return SimpleBatch(self)

    def apply_batch(self, mutations: Sequence[Mutation], timestamp: Timestamp) -> int:
        """Apply mutations in order at timestamp.

        Raises:
            StoreUnavailable: If the store is closed
            PartialBatchFailure: If applying a mutation fails part way through
        """
        with self._lock:
            self._check_open()
            for mutation in mutations:
                self._validate(mutation)
            self._log_batch(mutations, timestamp)
            return self._apply_all(mutations, timestamp)

    def _validate(self, mutation: Mutation) -> None:
        if not isinstance(mutation.column_key, CompositeKey):
            raise TypeError(
                f"Column keys must be CompositeKey, got {type(mutation.column_key).__name__}"
            )
        if mutation.kind is MutationKind.PUT and mutation.value is None:
            raise ValueError("PUT mutation without a value")

    def _log_batch(self, mutations: Sequence[Mutation], timestamp: Timestamp) -> None:
        """Hook for durable subclasses; runs before any mutation is applied."""
        pass

    def _apply_all(self, mutations: Sequence[Mutation], timestamp: Timestamp) -> int:
        applied = 0
        try:
            for mutation in mutations:
                self._apply(mutation, timestamp)
                applied += 1
        except Exception as e:
            raise PartialBatchFailure(applied, len(mutations)) from e
        return applied

    def _apply(self, mutation: Mutation, timestamp: Timestamp) -> None:
        """Apply one mutation (must hold lock)."""
        rows = self._tables.setdefault(mutation.table, {})
        row = rows.get(mutation.row_key)
        if row is None:
            row = rows[mutation.row_key] = SortedDict()

        existing = row.get(mutation.column_key)
        if existing is not None:
            old_value, old_ts = existing
            if old_ts > timestamp:
                return
            if old_ts == timestamp and old_value is None:
                return

        value = None if mutation.is_delete else mutation.value
        row[mutation.column_key] = (value, timestamp)

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

        Args:
            start: Lower bound (inclusive), or None for beginning
            end: Upper bound (inclusive), or None for end
            reversed: Walk from end down to start
            limit: Maximum number of columns to return, or None for all
        """
        if limit is not None and limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")

        with self._lock:
            self._check_open()
            row = self._row(table, row_key)
            if row is None:
                return []
            if start is not None and end is not None and end < start:
                return []

            results: list[tuple[CompositeKey, Any]] = []
            for key in row.irange(start, end, inclusive=(True, True), reverse=reversed):
                value, _ts = row[key]
                if value is None:
                    continue
                results.append((key, value))
                if limit is not None and len(results) >= limit:
                    break
            return results

    def row_keys(self, table: str) -> list[RowKey]:
        """Return row keys that hold at least one live column."""
        with self._lock:
            self._check_open()
            return [
                row_key
                for row_key, row in self._tables.get(table, {}).items()
                if any(value is not None for value, _ts in row.values())
            ]

    def close(self) -> None:
        """Close store; later calls raise StoreUnavailable."""
        with self._lock:
            self._closed = True
        logger.info("Closed sorted column store")

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
