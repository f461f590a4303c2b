"""Configuration for indexed collections.

Defines the logical table names and page sizes used by the index layer, and
the settings for the durable store backend.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_ITEM_TABLE = "Item"
DEFAULT_COLLECTION_TABLE = "Collection"
DEFAULT_INDEX_TABLE = "Collection_Index"
DEFAULT_ENTRIES_TABLE = "Item_Index_Entries"

DEFAULT_COUNT = 100
ALL_COUNT = 100_000


@dataclass(frozen=True)
class IndexConfig:
    """Table names and limits for the index layer.

    Attributes:
        item_table: Holds the current attribute columns per item
        collection_table: Flat membership list per container
        index_table: Per-container, per-attribute sorted index entries
        entries_table: Per-item ledger of indexed values
        default_count: Page size used when a search limit is zero or unset
        all_count: Ceiling used for "fetch all" scans and ledger reads
    """

    item_table: str = DEFAULT_ITEM_TABLE
    collection_table: str = DEFAULT_COLLECTION_TABLE
    index_table: str = DEFAULT_INDEX_TABLE
    entries_table: str = DEFAULT_ENTRIES_TABLE
    default_count: int = DEFAULT_COUNT
    all_count: int = ALL_COUNT

    def __post_init__(self) -> None:
        names = self.table_names()
        if not all(names):
            raise ValueError("Table names must be non-empty")
        if len(set(names)) != len(names):
            raise ValueError(f"Table names must be distinct: {names}")
        if self.default_count <= 0 or self.all_count <= 0:
            raise ValueError("Counts must be positive")
        if self.default_count > self.all_count:
            raise ValueError(
                f"default_count ({self.default_count}) exceeds all_count ({self.all_count})"
            )

    def table_names(self) -> tuple[str, str, str, str]:
        """Return the four table names in (item, collection, index, entries) order."""
        return (self.item_table, self.collection_table, self.index_table, self.entries_table)


@dataclass
class StoreConfig:
    """Configuration for the durable column store.

    Attributes:
        data_dir: Root directory for the write-ahead log
        wal_flush_every_write: Whether to fsync after each committed record
    """

    data_dir: str
    wal_flush_every_write: bool = True
