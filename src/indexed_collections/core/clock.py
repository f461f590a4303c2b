"""Version stamp issuing.

Each attribute write gets one VersionStamp: a time-based UUID that ties the
indexed value to the write that produced it, and a microsecond timestamp
used for every mutation in that write's batch.
"""

from __future__ import annotations

import threading
import time
import uuid

from .types import Timestamp, VersionStamp


class VersionClock:
    """Issues time-ordered version stamps.

    Args:
        start: Starting timestamp in microseconds. When given, timestamps advance
            logically from it instead of following the wall clock.

    Invariants:
        - Timestamps are strictly increasing per clock
        - Stamp ids are version 1 UUIDs, ordered by their embedded time
    """

    def __init__(self, start: Timestamp | None = None):
        self._lock = threading.Lock()
        self._wall = start is None
        self._last = start if start is not None else time.time_ns() // 1000

    def next_timestamp(self) -> Timestamp:
        """Generate monotonically increasing timestamp."""
        with self._lock:
            now = time.time_ns() // 1000 if self._wall else 0
            self._last = max(self._last + 1, now)
            return self._last

    def new_stamp_id(self) -> uuid.UUID:
        return uuid.uuid1()

    def issue(self) -> VersionStamp:
        """Issue one stamp id and write timestamp for a single write."""
        return VersionStamp(self.new_stamp_id(), self.next_timestamp())
