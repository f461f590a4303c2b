"""Protocol definition for index observability hooks."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..core.types import Mutation, Timestamp


class IndexObserver(Protocol):
    """Receives a read-only view of what the index layer writes.

    Observers are optional and non-authoritative; nothing they do affects
    the outcome of a write.
    """

    def mutation_scheduled(self, mutation: Mutation) -> None:
        """Called once per mutation added to a batch."""
        ...

    def batch_committed(self, size: int, timestamp: Timestamp) -> None:
        """Called after a batch of size mutations committed at timestamp."""
        ...
