"""Indexed collections - attribute indexes over a sorted wide-column store."""

from .core.clock import VersionClock
from .core.codec import classify, type_code
from .core.composite import Component, CompositeKey, Equality
from .core.config import IndexConfig, StoreConfig
from .core.errors import (
    IndexedCollectionsError,
    StoreUnavailable,
    InvalidValueEncoding,
    PartialBatchFailure,
    DecodeError,
    WALCorruptionError,
)
from .core.indexed import IndexedCollections
from .core.query import FETCH_ALL
from .core.types import (
    ContainerCollection,
    IndexHit,
    LedgerEntry,
    Mutation,
    TypedValue,
    ValueType,
    VersionStamp,
)
from .components.durable_store import DurableColumnStore
from .components.logging_observer import LoggingObserver
from .components.memory_store import SortedColumnStore

__all__ = [
    "IndexedCollections",
    "IndexConfig",
    "StoreConfig",
    "VersionClock",
    "classify",
    "type_code",
    "Component",
    "CompositeKey",
    "Equality",
    "IndexedCollectionsError",
    "StoreUnavailable",
    "InvalidValueEncoding",
    "PartialBatchFailure",
    "DecodeError",
    "WALCorruptionError",
    "FETCH_ALL",
    "ContainerCollection",
    "IndexHit",
    "LedgerEntry",
    "Mutation",
    "TypedValue",
    "ValueType",
    "VersionStamp",
    "DurableColumnStore",
    "LoggingObserver",
    "SortedColumnStore",
]
