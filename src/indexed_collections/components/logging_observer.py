"""Observer that logs scheduled mutations as query-like statements."""

from __future__ import annotations

import logging

from ..core.types import Mutation, Timestamp

logger = logging.getLogger(__name__)


class LoggingObserver:
    """Renders each scheduled mutation at DEBUG level.

    Args:
        log: Logger to write to (defaults to this module's logger)
        level: Logging level for mutation lines
    """

    def __init__(self, log: logging.Logger | None = None, level: int = logging.DEBUG):
        self._log = log or logger
        self._level = level

    def mutation_scheduled(self, mutation: Mutation) -> None:
        if not self._log.isEnabledFor(self._level):
            return
        self._log.log(self._level, describe(mutation))

    def batch_committed(self, size: int, timestamp: Timestamp) -> None:
        self._log.log(self._level, f"COMMIT {size} mutations AT {timestamp}")


def describe(mutation: Mutation) -> str:
    """Return a query-like rendering of a mutation."""
    if mutation.is_delete:
        return (
            f"DELETE {mutation.column_key!r} FROM {mutation.table} "
            f"WHERE KEY = {mutation.row_key!r}"
        )
    return (
        f"UPDATE {mutation.table} SET {mutation.column_key!r} = {mutation.value!r} "
        f"WHERE KEY = {mutation.row_key!r}"
    )
