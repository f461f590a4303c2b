"""Concrete store, log and observer components."""

from .batch import SimpleBatch
from .durable_store import DurableColumnStore
from .logging_observer import LoggingObserver
from .memory_store import SortedColumnStore
from .wal import BatchWAL

__all__ = [
    "BatchWAL",
    "DurableColumnStore",
    "LoggingObserver",
    "SimpleBatch",
    "SortedColumnStore",
]
