"""Flat membership list of item keys per container."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .composite import CompositeKey
from .types import ContainerCollection, ItemKey, Timestamp, container_key

if TYPE_CHECKING:
    from ..interfaces.store import ColumnStore
    from .clock import VersionClock
    from .config import IndexConfig

logger = logging.getLogger(__name__)


class MembershipStore:
    """Unordered add/list of item keys per container.

    Each member is a column keyed by the item key whose value is the time it
    was (last) added, so re-adding an item is idempotent.
    """

    def __init__(self, store: ColumnStore, config: IndexConfig, clock: VersionClock):
        self._store = store
        self._config = config
        self._clock = clock

    @property
    def table(self) -> str:
        return self._config.collection_table

    def add_item_to_collection(
        self, container: ContainerCollection | str, item_key: ItemKey
    ) -> Timestamp:
        """Add item_key to the container's membership list."""
        ts = self._clock.next_timestamp()
        column = CompositeKey.of(item_key)
        self._store.put(self.table, container_key(container), column, ts, ts)
        logger.debug(f"Added {item_key!r} to collection {container_key(container)}")
        return ts

    def get_items_in_collection(self, container: ContainerCollection | str) -> list[ItemKey]:
        """Return every item key in the container, in key order."""
        columns = self._store.scan_range(
            self.table, container_key(container), limit=self._config.all_count
        )
        return [key.get(0) for key, _ts in columns]
