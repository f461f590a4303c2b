"""Protocols for the store and observability collaborators."""

from .observer import IndexObserver
from .store import Batch, ColumnStore

__all__ = ["Batch", "ColumnStore", "IndexObserver"]
