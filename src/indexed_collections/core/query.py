"""Container search.

Turns (start value, end value, cursor) into composite scan bounds over one
GlobalIndex partition and decodes the entries found.

Bounds:
    start  (code, value)            or (BYTES, b"") when no start value
           (code, value, item>)     with a cursor: strictly after that item
    end    (code, value)            exclusive: sorts before every entry of value
           (code, value>)           inclusive: sorts after every entry of value
           None                     unbounded
    reversed scans attach the cursor to the end instead: (code, value, item<)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .codec import classify
from .composite import CompositeKey
from .tables import GlobalIndex
from .types import AttributeName, ContainerCollection, IndexHit, ItemKey, ValueType, container_key

if TYPE_CHECKING:
    from ..interfaces.store import ColumnStore
    from .config import IndexConfig

logger = logging.getLogger(__name__)

FETCH_ALL = -1


class QueryEngine:
    """Range searches over a container's attribute index.

    Args:
        store: Backing column store
        config: Index configuration

    Results are ordered by (value, item key, version stamp), descending when
    reversed. An item whose value changed while a scan ran may appear twice;
    no deduplication is done here.
    """

    def __init__(self, store: ColumnStore, config: IndexConfig):
        self._config = config
        self._index = GlobalIndex(store, config)

    def resolve_limit(self, limit: int | None) -> int:
        """Map a caller's limit to a scan limit.

        None or 0 gives the default page size, FETCH_ALL the all-count ceiling.
        """
        if not limit:
            return self._config.default_count
        if limit == FETCH_ALL:
            return self._config.all_count
        if limit < 0:
            raise ValueError(f"limit must be positive, 0 or FETCH_ALL, got {limit}")
        return min(limit, self._config.all_count)

    @staticmethod
    def _value_prefix(value: Any) -> CompositeKey:
        typed = classify(value)
        return CompositeKey.of(typed.code, typed)

    def build_bounds(
        self,
        start_value: Any = None,
        end_value: Any = None,
        end_inclusive: bool = False,
        start_item_key: ItemKey | None = None,
        reverse: bool = False,
    ) -> tuple[CompositeKey, CompositeKey | None]:
        """Return the (start, end) composite bounds for a search."""
        if start_value is None:
            start = CompositeKey.of(int(ValueType.BYTES), b"")
        else:
            start = self._value_prefix(start_value)

        end = None
        if end_value is not None:
            end = self._value_prefix(end_value)
            if end_inclusive:
                end = end.inclusive()

        if start_item_key is not None:
            cursor = classify(start_item_key).value
            if reverse:
                if end_value is None:
                    raise ValueError("Reverse pagination requires an end value")
                end = self._value_prefix(end_value).append(cursor).exclusive_before()
            else:
                start = start.append(cursor).inclusive()

        return start, end

    def search_container_entries(
        self,
        container: ContainerCollection | str,
        attribute: AttributeName,
        start_value: Any = None,
        end_value: Any = None,
        end_inclusive: bool = False,
        start_item_key: ItemKey | None = None,
        limit: int | None = 0,
        reverse: bool = False,
    ) -> list[IndexHit]:
        """Search a container and return decoded index entries.

        Same arguments and ordering as search_container.
        """
        count = self.resolve_limit(limit)
        start, end = self.build_bounds(
            start_value, end_value, end_inclusive, start_item_key, reverse
        )
        hits = self._index.scan(
            container_key(container), attribute, start, end, reverse, count
        )
        for hit in hits:
            logger.debug(f"Value found: {hit.value!r} for item {hit.item_key!r}")
        return hits

    def search_container(
        self,
        container: ContainerCollection | str,
        attribute: AttributeName,
        start_value: Any = None,
        end_value: Any = None,
        end_inclusive: bool = False,
        start_item_key: ItemKey | None = None,
        limit: int | None = 0,
        reverse: bool = False,
    ) -> list[ItemKey]:
        """Return keys of items whose attribute falls in the given range.

        Args:
            container: Container to search
            attribute: Indexed attribute name
            start_value: Lower bound (inclusive), or None to start at the minimum
            end_value: Upper bound, or None for unbounded
            end_inclusive: Whether end_value itself matches
            start_item_key: Pagination cursor; the scan resumes strictly after
                this item at start_value (strictly before it at end_value when
                reversed)
            limit: Page size; 0/None for the default, FETCH_ALL for the ceiling
            reverse: Return results in descending order

        Returns:
            Item keys in scan order

        Raises:
            InvalidValueEncoding: If a bound or cursor cannot be classified
            DecodeError: If an index entry is malformed
        """
        hits = self.search_container_entries(
            container,
            attribute,
            start_value,
            end_value,
            end_inclusive,
            start_item_key,
            limit,
            reverse,
        )
        return [hit.item_key for hit in hits]

    def search_container_value(
        self,
        container: ContainerCollection | str,
        attribute: AttributeName,
        value: Any,
        start_item_key: ItemKey | None = None,
        limit: int | None = 0,
        reverse: bool = False,
    ) -> list[ItemKey]:
        """Return keys of items whose attribute equals value."""
        return self.search_container(
            container, attribute, value, value, True, start_item_key, limit, reverse
        )
