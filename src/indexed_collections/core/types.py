"""Common type definitions for indexed collections.

Defines the typed value variant, version stamps, containers and the records
returned by ledger reads and index scans.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, NamedTuple, Union

# Core primitive types
RowKey = Any
ItemKey = Any
AttributeName = Any
Timestamp = int
IndexableValue = Union[bytes, str, uuid.UUID, int]


class ValueType(IntEnum):
    """Type codes for indexable values.

    The code is the leading component of every composite key that holds a
    value, so values of different types never reach the value comparison.
    """

    BYTES = 0
    UTF8 = 1
    UUID = 2
    INTEGER = 3


_PYTHON_TYPES: dict[ValueType, type] = {
    ValueType.BYTES: bytes,
    ValueType.UTF8: str,
    ValueType.UUID: uuid.UUID,
    ValueType.INTEGER: int,
}


@dataclass(frozen=True)
class TypedValue:
    """A value tagged with its ValueType.

    Invariants:
        - value is exactly the Python type for value_type (bool is never an int here)
        - ordering compares value_type first, then value
    """

    value_type: ValueType
    value: IndexableValue

    def __post_init__(self) -> None:
        expected = _PYTHON_TYPES[self.value_type]
        if type(self.value) is not expected:
            raise TypeError(
                f"{self.value_type.name} value must be {expected.__name__}, "
                f"got {type(self.value).__name__}"
            )

    @property
    def code(self) -> int:
        return int(self.value_type)

    def sort_key(self) -> tuple:
        """Return a tuple whose natural ordering matches the store comparator."""
        if self.value_type is ValueType.UUID:
            return (self.code, _uuid_sort_key(self.value))
        return (self.code, self.value)

    def __lt__(self, other: TypedValue) -> bool:
        if not isinstance(other, TypedValue):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __repr__(self) -> str:
        return f"{self.value_type.name}({self.value!r})"


def _uuid_sort_key(value: uuid.UUID) -> tuple[int, int, bytes]:
    # Time-based UUIDs order by their embedded timestamp, not by raw bytes.
    version = (value.int >> 76) & 0xF
    ts = value.time if version == 1 else 0
    return (version, ts, value.bytes)


class VersionStamp(NamedTuple):
    """Identifies one write: a time-ordered UUID plus the write timestamp."""

    id: uuid.UUID
    timestamp: Timestamp


@dataclass(frozen=True)
class ContainerCollection:
    """An owner's named collection.

    The flattened key ``owner:collection`` partitions both the membership list
    and the per-attribute indexes.
    """

    owner_key: Any
    collection_name: str

    @property
    def key(self) -> str:
        return f"{self.owner_key}:{self.collection_name}"

    def __str__(self) -> str:
        return self.key


class LedgerEntry(NamedTuple):
    """A live ledger column for one (item, attribute)."""

    stamp: uuid.UUID
    value: TypedValue


class IndexHit(NamedTuple):
    """One decoded global index entry returned by a container search."""

    value: TypedValue
    item_key: ItemKey
    stamp: uuid.UUID


class MutationKind(Enum):
    PUT = "put"
    DELETE = "delete"


@dataclass(frozen=True)
class Mutation:
    """One scheduled column write inside a batch.

    A DELETE carries no value; its timestamp comes from the batch commit.
    """

    kind: MutationKind
    table: str
    row_key: RowKey
    column_key: Any
    value: Any = None

    @classmethod
    def put(cls, table: str, row_key: RowKey, column_key: Any, value: Any) -> Mutation:
        return cls(MutationKind.PUT, table, row_key, column_key, value)

    @classmethod
    def delete(cls, table: str, row_key: RowKey, column_key: Any) -> Mutation:
        return cls(MutationKind.DELETE, table, row_key, column_key)

    @property
    def is_delete(self) -> bool:
        return self.kind is MutationKind.DELETE


def container_key(container: ContainerCollection | str) -> str:
    """Return the flattened partition key for a container."""
    if isinstance(container, ContainerCollection):
        return container.key
    if isinstance(container, str):
        return container
    raise TypeError(f"Expected ContainerCollection or str, got {type(container).__name__}")
