"""IndexedCollections - main public API.

Wires a column store to the index maintainer, the query engine and the
membership list.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from .clock import VersionClock
from .config import IndexConfig, StoreConfig
from .maintainer import IndexMaintainer
from .membership import MembershipStore
from .query import QueryEngine
from .types import (
    AttributeName,
    ContainerCollection,
    IndexHit,
    ItemKey,
    LedgerEntry,
    Timestamp,
    VersionStamp,
)

if TYPE_CHECKING:
    from ..interfaces.observer import IndexObserver
    from ..interfaces.store import ColumnStore

logger = logging.getLogger(__name__)


class IndexedCollections:
    """Attribute indexes for items grouped into containers.

    Args:
        store: Backing column store; closed by close()
        config: Table names and limits (defaults to IndexConfig())
        clock: Version stamp source (defaults to a wall-clock VersionClock)
        observers: Optional hooks notified of every scheduled mutation

    Public API:
        - set_item_column(item, attribute, value, containers): Write and re-index
        - get_item_column(item, attribute) / get_item(item): Read item record
        - get_index_entries(item, attribute): Live ledger entries
        - search_container(...), search_container_entries(...),
          search_container_value(...): Range and exact-match searches
        - add_item_to_collection(container, item) / get_items_in_collection(container)
    """

    def __init__(
        self,
        store: ColumnStore,
        config: IndexConfig | None = None,
        clock: VersionClock | None = None,
        observers: Sequence[IndexObserver] = (),
    ):
        self.store = store
        self.config = config if config is not None else IndexConfig()
        self.clock = clock if clock is not None else VersionClock()
        self.maintainer = IndexMaintainer(store, self.config, self.clock, observers)
        self.query = QueryEngine(store, self.config)
        self.membership = MembershipStore(store, self.config, self.clock)

    @classmethod
    def in_memory(cls, config: IndexConfig | None = None, **kwargs: Any) -> IndexedCollections:
        """Create an instance over a fresh in-memory store."""
        from ..components.memory_store import SortedColumnStore

        return cls(SortedColumnStore(), config, **kwargs)

    @classmethod
    def durable(
        cls, store_config: StoreConfig, config: IndexConfig | None = None, **kwargs: Any
    ) -> IndexedCollections:
        """Open (and recover) a WAL-backed store under store_config.data_dir."""
        from ..components.durable_store import DurableColumnStore

        return cls(DurableColumnStore(store_config), config, **kwargs)

    def set_item_column(
        self,
        item_key: ItemKey,
        attribute: AttributeName,
        value: Any,
        containers: Iterable[ContainerCollection | str] = (),
    ) -> VersionStamp:
        return self.maintainer.set_item_column(item_key, attribute, value, containers)

    def get_item_column(self, item_key: ItemKey, attribute: AttributeName) -> Any | None:
        return self.maintainer.get_item_column(item_key, attribute)

    def get_item(self, item_key: ItemKey) -> dict[Any, Any]:
        return self.maintainer.get_item(item_key)

    def get_index_entries(self, item_key: ItemKey, attribute: AttributeName) -> list[LedgerEntry]:
        return self.maintainer.get_index_entries(item_key, attribute)

    def search_container(self, container, attribute, *args, **kwargs) -> list[ItemKey]:
        return self.query.search_container(container, attribute, *args, **kwargs)

    def search_container_entries(self, container, attribute, *args, **kwargs) -> list[IndexHit]:
        return self.query.search_container_entries(container, attribute, *args, **kwargs)

    def search_container_value(self, container, attribute, value, **kwargs) -> list[ItemKey]:
        return self.query.search_container_value(container, attribute, value, **kwargs)

    def add_item_to_collection(
        self, container: ContainerCollection | str, item_key: ItemKey
    ) -> Timestamp:
        return self.membership.add_item_to_collection(container, item_key)

    def get_items_in_collection(self, container: ContainerCollection | str) -> list[ItemKey]:
        return self.membership.get_items_in_collection(container)

    def close(self) -> None:
        """Close the backing store."""
        logger.info("Closing indexed collections")
        self.store.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
