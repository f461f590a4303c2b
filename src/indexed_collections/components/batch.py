"""Batch implementation.

Collects put/delete mutations and hands them to the owning store on commit.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from ..core.types import Mutation

if TYPE_CHECKING:
    from ..core.composite import CompositeKey
    from ..core.types import RowKey, Timestamp
    from ..interfaces.store import ColumnStore

logger = logging.getLogger(__name__)


class SimpleBatch:
    """Ordered list of mutations applied together at one timestamp.

    Args:
        store: Store that applies the mutations on commit

    Invariants:
        - Mutations are applied in the order they were scheduled
        - A batch commits at most once
    """

    def __init__(self, store: ColumnStore):
        self._store = store
        self._mutations: list[Mutation] = []
        self._committed = False

    def put(self, table: str, row_key: RowKey, column_key: CompositeKey, value: Any) -> None:
        if value is None:
            raise ValueError("Cannot put None; schedule a delete instead")
        self._add(Mutation.put(table, row_key, column_key, value))

    def delete(self, table: str, row_key: RowKey, column_key: CompositeKey) -> None:
        self._add(Mutation.delete(table, row_key, column_key))

    def _add(self, mutation: Mutation) -> None:
        if self._committed:
            raise RuntimeError("Batch already committed")
        self._mutations.append(mutation)

    @property
    def mutations(self) -> Sequence[Mutation]:
        return tuple(self._mutations)

    def __len__(self) -> int:
        return len(self._mutations)

    def commit(self, timestamp: Timestamp) -> int:
        """Apply all scheduled mutations at timestamp."""
        if self._committed:
            raise RuntimeError("Batch already committed")
        self._committed = True
        if not self._mutations:
            return 0
        applied = self._store.apply_batch(self._mutations, timestamp)
        logger.debug(f"Committed batch of {applied} mutations at ts={timestamp}")
        return applied
