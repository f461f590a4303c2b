"""Index maintenance.

Keeps the ledger, every container index and the item record in step when an
item's attribute changes: one ledger read, then one batch that retracts the
entries it found and writes the new ones.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from .codec import classify, record_value
from .tables import GlobalIndex, ItemStore, Ledger
from .types import (
    AttributeName,
    ContainerCollection,
    ItemKey,
    LedgerEntry,
    VersionStamp,
    container_key,
)

if TYPE_CHECKING:
    from ..interfaces.observer import IndexObserver
    from ..interfaces.store import Batch, ColumnStore
    from .clock import VersionClock
    from .config import IndexConfig

logger = logging.getLogger(__name__)


def normalize_item_key(item_key: ItemKey) -> Any:
    """Return the indexable form of an item key (str, UUID, int or bytes)."""
    return classify(item_key).value


class IndexMaintainer:
    """Applies attribute writes to the ledger, container indexes and item record.

    Args:
        store: Backing column store
        config: Index configuration
        clock: Source of version stamps and write timestamps
        observers: Optional hooks notified of scheduled mutations

    Invariants:
        - One version stamp and one write timestamp per call
        - Every ledger entry read is retracted, from the ledger and from each
          listed container's index
        - Nothing is scheduled until the new value, item key and attribute
          have been classified
    """

    def __init__(
        self,
        store: ColumnStore,
        config: IndexConfig,
        clock: VersionClock,
        observers: Sequence[IndexObserver] = (),
    ):
        self._store = store
        self._config = config
        self._clock = clock
        self._observers = tuple(observers)
        self.ledger = Ledger(store, config)
        self.index = GlobalIndex(store, config)
        self.items = ItemStore(store, config)

    def set_item_column(
        self,
        item_key: ItemKey,
        attribute: AttributeName,
        value: Any,
        containers: Iterable[ContainerCollection | str] = (),
    ) -> VersionStamp:
        """Set an item's attribute and re-index it in every listed container.

        Args:
            item_key: Item row key
            attribute: Attribute (column) name
            value: New value, or None to remove the attribute
            containers: Containers the item currently belongs to

        Returns:
            The VersionStamp issued for this write

        Raises:
            InvalidValueEncoding: Before any read or write, if a key or value
                cannot be classified
            StoreUnavailable: If the store cannot be reached
            PartialBatchFailure: If the commit fails part way through
            DecodeError: If the ledger holds malformed entries
        """
        new_value = classify(value) if value is not None else None
        classify(attribute)
        item_key = normalize_item_key(item_key)
        container_keys = list(dict.fromkeys(container_key(c) for c in containers))

        logger.debug(f"SET {attribute!r} = {value!r} FOR ITEM {item_key!r}")

        stamp = self._clock.issue()
        previous = self.ledger.read(item_key, attribute)

        logger.debug(
            f"{len(previous)} previous values for {attribute!r} found in index for removal"
        )

        batch = self._store.batch()

        # Applied in order: at every prefix of this batch each index entry
        # still has a ledger entry, so a failed commit is retracted next time.
        if new_value is not None:
            self.ledger.schedule_insert(batch, item_key, attribute, stamp.id, new_value)
            for ck in container_keys:
                self.index.schedule_insert(batch, ck, attribute, new_value, item_key, stamp.id)

        for ck in container_keys:
            for entry in previous:
                self.index.schedule_delete(
                    batch, ck, attribute, entry.value, item_key, entry.stamp
                )
        for entry in previous:
            self.ledger.schedule_delete(batch, item_key, attribute, entry.stamp)

        if new_value is not None:
            self.items.schedule_set(
                batch, item_key, attribute, record_value(value, new_value)
            )
        else:
            self.items.schedule_remove(batch, item_key, attribute)

        self._commit(batch, stamp)
        return stamp

    def _commit(self, batch: Batch, stamp: VersionStamp) -> None:
        mutations = batch.mutations
        for observer in self._observers:
            for mutation in mutations:
                self._notify(observer.mutation_scheduled, mutation)

        size = batch.commit(stamp.timestamp)

        for observer in self._observers:
            self._notify(observer.batch_committed, size, stamp.timestamp)

    @staticmethod
    def _notify(hook, *args) -> None:
        try:
            hook(*args)
        except Exception:
            logger.exception(f"Index observer {hook!r} failed")

    def get_item_column(self, item_key: ItemKey, attribute: AttributeName) -> Any | None:
        """Return the item's current value for attribute, or None."""
        return self.items.get(normalize_item_key(item_key), attribute)

    def get_item(self, item_key: ItemKey) -> dict[Any, Any]:
        """Return the item's current record as {attribute: value}."""
        return self.items.get_all(normalize_item_key(item_key))

    def get_index_entries(
        self, item_key: ItemKey, attribute: AttributeName
    ) -> list[LedgerEntry]:
        """Return the live ledger entries for (item, attribute)."""
        return self.ledger.read(normalize_item_key(item_key), attribute)
