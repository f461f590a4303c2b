"""Accessors for the logical tables behind an indexed collection.

Each accessor knows how one table's rows and composite columns are laid out:

    Ledger       entries_table  row=item key          column=(attribute, stamp)
                                value=composite(indexed value)
    GlobalIndex  index_table    row="container:attribute"
                                column=(type code, value, item key, stamp)  value=b""
    ItemStore    item_table     row=item key          column=(attribute,)  value=raw value
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Any

from .composite import CompositeKey
from .errors import DecodeError
from .types import (
    AttributeName,
    IndexHit,
    ItemKey,
    LedgerEntry,
    TypedValue,
    ValueType,
)

if TYPE_CHECKING:
    from ..interfaces.store import Batch, ColumnStore
    from .config import IndexConfig

logger = logging.getLogger(__name__)

EMPTY_PAYLOAD = b""


def _stamp_at(key: CompositeKey, index: int) -> uuid.UUID:
    typed = key.typed(index)
    if typed.value_type is not ValueType.UUID:
        raise DecodeError(f"Expected a version stamp at component {index} of {key!r}")
    return typed.value


class Ledger:
    """Per-item record of indexed values, one column per write.

    Args:
        store: Backing column store
        config: Index configuration
    """

    def __init__(self, store: ColumnStore, config: IndexConfig):
        self._store = store
        self._config = config

    @property
    def table(self) -> str:
        return self._config.entries_table

    def column_key(self, attribute: AttributeName, stamp: uuid.UUID) -> CompositeKey:
        return CompositeKey.of(attribute, stamp)

    def read(self, item_key: ItemKey, attribute: AttributeName) -> list[LedgerEntry]:
        """Return every live ledger entry for (item, attribute), oldest first.

        Raises:
            DecodeError: If a column or value has an unexpected shape
        """
        prefix = CompositeKey.of(attribute)
        columns = self._store.scan_range(
            self.table,
            item_key,
            start=prefix,
            end=prefix.inclusive(),
            limit=self._config.all_count,
        )
        entries = []
        for key, value in columns:
            if len(key) != 2:
                raise DecodeError(f"Ledger column must have 2 components: {key!r}")
            if not isinstance(value, CompositeKey) or len(value) != 1:
                raise DecodeError(f"Ledger value must be a 1-component composite: {value!r}")
            entries.append(LedgerEntry(_stamp_at(key, 1), value.typed(0)))
        return entries

    def schedule_insert(
        self,
        batch: Batch,
        item_key: ItemKey,
        attribute: AttributeName,
        stamp: uuid.UUID,
        value: TypedValue,
    ) -> None:
        batch.put(self.table, item_key, self.column_key(attribute, stamp), CompositeKey.of(value))

    def schedule_delete(
        self, batch: Batch, item_key: ItemKey, attribute: AttributeName, stamp: uuid.UUID
    ) -> None:
        batch.delete(self.table, item_key, self.column_key(attribute, stamp))


class GlobalIndex:
    """Per-container, per-attribute sorted set of index entries."""

    def __init__(self, store: ColumnStore, config: IndexConfig):
        self._store = store
        self._config = config

    @property
    def table(self) -> str:
        return self._config.index_table

    @staticmethod
    def row_key(container_key: str, attribute: AttributeName) -> str:
        """Return the partition key for one container and attribute.

        The attribute is flattened with str(), so attributes 5 and "5" share
        a partition here while their ledger columns stay apart by type.
        """
        return f"{container_key}:{attribute}"

    @staticmethod
    def entry_key(value: TypedValue, item_key: ItemKey, stamp: uuid.UUID) -> CompositeKey:
        return CompositeKey.of(value.code, value, item_key, stamp)

    def schedule_insert(
        self,
        batch: Batch,
        container_key: str,
        attribute: AttributeName,
        value: TypedValue,
        item_key: ItemKey,
        stamp: uuid.UUID,
    ) -> None:
        batch.put(
            self.table,
            self.row_key(container_key, attribute),
            self.entry_key(value, item_key, stamp),
            EMPTY_PAYLOAD,
        )

    def schedule_delete(
        self,
        batch: Batch,
        container_key: str,
        attribute: AttributeName,
        value: TypedValue,
        item_key: ItemKey,
        stamp: uuid.UUID,
    ) -> None:
        batch.delete(
            self.table,
            self.row_key(container_key, attribute),
            self.entry_key(value, item_key, stamp),
        )

    def scan(
        self,
        container_key: str,
        attribute: AttributeName,
        start: CompositeKey | None,
        end: CompositeKey | None,
        reversed: bool,
        limit: int,
    ) -> list[IndexHit]:
        """Range-scan one index partition and decode its entries.

        Raises:
            DecodeError: If an entry does not have the (code, value, item, stamp) shape
        """
        row_key = self.row_key(container_key, attribute)
        logger.debug(f"Scanning {self.table}[{row_key}] from {start!r} to {end!r}")
        columns = self._store.scan_range(
            self.table, row_key, start=start, end=end, reversed=reversed, limit=limit
        )
        hits = []
        for key, _value in columns:
            if len(key) != 4:
                raise DecodeError(f"Index column must have 4 components: {key!r}")
            value = key.typed(1)
            if key.get(0) != value.code:
                raise DecodeError(f"Type code does not match value in {key!r}")
            hits.append(IndexHit(value, key.get(2), _stamp_at(key, 3)))
        return hits


class ItemStore:
    """Canonical current attribute columns per item."""

    def __init__(self, store: ColumnStore, config: IndexConfig):
        self._store = store
        self._config = config

    @property
    def table(self) -> str:
        return self._config.item_table

    def column_key(self, attribute: AttributeName) -> CompositeKey:
        return CompositeKey.of(attribute)

    def schedule_set(
        self, batch: Batch, item_key: ItemKey, attribute: AttributeName, value: Any
    ) -> None:
        batch.put(self.table, item_key, self.column_key(attribute), value)

    def schedule_remove(self, batch: Batch, item_key: ItemKey, attribute: AttributeName) -> None:
        batch.delete(self.table, item_key, self.column_key(attribute))

    def get(self, item_key: ItemKey, attribute: AttributeName) -> Any | None:
        return self._store.get(self.table, item_key, self.column_key(attribute))

    def get_all(self, item_key: ItemKey) -> dict[Any, Any]:
        """Return the item's record as {attribute: value}."""
        columns = self._store.scan_range(self.table, item_key, limit=self._config.all_count)
        return {key.get(0): value for key, value in columns}
