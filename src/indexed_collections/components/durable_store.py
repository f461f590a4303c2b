"""Durable column store.

SortedColumnStore whose committed batches are written to a write-ahead log
before they are applied, and replayed from it on open.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from ..core.config import StoreConfig
from ..core.errors import StoreUnavailable
from ..core.types import Mutation, Timestamp
from .memory_store import SortedColumnStore
from .wal import BatchWAL

logger = logging.getLogger(__name__)


class DurableColumnStore(SortedColumnStore):
    """Sorted column store with WAL durability and crash recovery.

    Args:
        config: Store configuration

    Invariants:
        - Every batch reaches the WAL before any of its mutations is applied
        - Replay applies batches in commit order with their original timestamps
        - A torn record at the end of the log is dropped on open
    """

    def __init__(self, config: StoreConfig):
        super().__init__()
        self.config = config
        self.data_dir = Path(config.data_dir)
        self.wal_dir = self.data_dir / "wal"

        try:
            self.wal_dir.mkdir(parents=True, exist_ok=True)
            self._wal = BatchWAL(
                self.wal_dir / "wal-current.wal",
                flush_every_write=config.wal_flush_every_write,
            )
        except OSError as e:
            raise StoreUnavailable(f"Cannot open WAL in {self.wal_dir}: {e}") from e

        self._recover()

        logger.info(f"Initialized durable column store at {self.data_dir}")

    def _recover(self) -> None:
        """Recover state from WAL."""
        logger.info("Starting recovery from WAL...")

        count = 0
        try:
            for ts, mutations in self._wal:
                self._apply_all(mutations, ts)
                count += 1
            if self._wal.valid_offset < self._wal.size_bytes():
                self._wal.truncate(self._wal.valid_offset)
        except OSError as e:
            self._wal.close()
            raise StoreUnavailable(f"Failed to recover from WAL: {e}") from e
        except Exception:
            self._wal.close()
            raise

        logger.info(f"Recovered {count} batches from WAL")

    def _log_batch(self, mutations: Sequence[Mutation], timestamp: Timestamp) -> None:
        try:
            self._wal.append(mutations, timestamp)
        except OSError as e:
            raise StoreUnavailable(f"WAL append failed: {e}") from e

    def close(self) -> None:
        """Close store and release resources."""
        logger.info("Closing durable column store")
        with self._lock:
            self._wal.close()
        super().close()
