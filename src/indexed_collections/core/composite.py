"""Composite column keys.

A CompositeKey is an ordered tuple of typed components. Each component also
carries an end-of-component marker (Equality) that only matters for scan
bounds: a key whose last component is GREATER_THAN_EQUAL sorts after every
key sharing that prefix, LESS_THAN_EQUAL sorts before all of them.

Comparison, component by component:
    1. type code, then value (values of different types are never compared)
    2. end-of-component marker
    3. a key that runs out of components first sorts first

Binary form, per component:
    [type code (1B)][payload length (2B, big-endian)][payload][eoc (1B, signed)]
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field, replace
from enum import IntEnum
from functools import total_ordering
from typing import Any, Iterator

from .codec import MAX_COMPONENT_BYTES, classify, decode_payload, encode_payload
from .errors import DecodeError
from .types import TypedValue

_HEADER = struct.Struct(">BH")
_EOC = struct.Struct(">b")


class Equality(IntEnum):
    """End-of-component marker for a composite component."""

    LESS_THAN_EQUAL = -1
    EQUAL = 0
    GREATER_THAN_EQUAL = 1


@dataclass(frozen=True)
class Component:
    """One typed component of a composite key."""

    typed: TypedValue
    equality: Equality = Equality.EQUAL

    @property
    def value(self) -> Any:
        return self.typed.value


@total_ordering
@dataclass(frozen=True, eq=False)
class CompositeKey:
    """Ordered tuple of typed components usable as a sortable column key.

    Invariants:
        - ordering and equality are defined by sort_key()
        - instances are immutable and hashable
    """

    components: tuple[Component, ...]
    _sort_key: tuple = field(init=False, repr=False)

    def __post_init__(self) -> None:
        flat: list[Any] = []
        for component in self.components:
            flat.extend(component.typed.sort_key())
            flat.append(int(component.equality))
        object.__setattr__(self, "_sort_key", tuple(flat))

    @classmethod
    def of(cls, *values: Any) -> CompositeKey:
        """Build a key from raw values, classifying each one."""
        return cls(tuple(Component(classify(v)) for v in values))

    def sort_key(self) -> tuple:
        return self._sort_key

    def with_last_equality(self, equality: Equality) -> CompositeKey:
        """Return a copy whose last component carries the given marker."""
        if not self.components:
            raise ValueError("Cannot mark an empty composite")
        last = replace(self.components[-1], equality=equality)
        return CompositeKey(self.components[:-1] + (last,))

    def inclusive(self) -> CompositeKey:
        """Return a bound that sorts after every key sharing this prefix."""
        return self.with_last_equality(Equality.GREATER_THAN_EQUAL)

    def exclusive_before(self) -> CompositeKey:
        """Return a bound that sorts before every key sharing this prefix."""
        return self.with_last_equality(Equality.LESS_THAN_EQUAL)

    def append(self, value: Any) -> CompositeKey:
        """Return a copy with one more component."""
        return CompositeKey(self.components + (Component(classify(value)),))

    def typed(self, index: int) -> TypedValue:
        """Return the TypedValue at index.

        Raises:
            DecodeError: If the key has no such component
        """
        try:
            return self.components[index].typed
        except IndexError as e:
            raise DecodeError(
                f"Composite has {len(self.components)} components, wanted index {index}"
            ) from e

    def get(self, index: int) -> Any:
        """Return the underlying Python value at index."""
        return self.typed(index).value

    def values(self) -> list[Any]:
        return [c.value for c in self.components]

    def __len__(self) -> int:
        return len(self.components)

    def __iter__(self) -> Iterator[Component]:
        return iter(self.components)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CompositeKey):
            return NotImplemented
        return self._sort_key == other._sort_key

    def __lt__(self, other: CompositeKey) -> bool:
        if not isinstance(other, CompositeKey):
            return NotImplemented
        return self._sort_key < other._sort_key

    def __hash__(self) -> int:
        return hash(self._sort_key)

    def __repr__(self) -> str:
        parts = []
        for c in self.components:
            marker = {Equality.LESS_THAN_EQUAL: "<", Equality.GREATER_THAN_EQUAL: ">"}.get(
                c.equality, ""
            )
            parts.append(f"{c.typed!r}{marker}")
        return f"composite({', '.join(parts)})"

    def to_bytes(self) -> bytes:
        """Serialize to the binary composite form."""
        out = bytearray()
        for component in self.components:
            payload = encode_payload(component.typed)
            if len(payload) > MAX_COMPONENT_BYTES:
                raise ValueError(f"Component too large: {len(payload)} bytes")
            out += _HEADER.pack(component.typed.code, len(payload))
            out += payload
            out += _EOC.pack(int(component.equality))
        return bytes(out)

    @classmethod
    def from_bytes(cls, data: bytes) -> CompositeKey:
        """Deserialize bytes produced by to_bytes.

        Raises:
            DecodeError: If data is truncated or malformed
        """
        components: list[Component] = []
        pos = 0
        view = memoryview(data)
        while pos < len(view):
            if pos + _HEADER.size > len(view):
                raise DecodeError(f"Truncated component header at offset {pos}")
            code, length = _HEADER.unpack_from(view, pos)
            pos += _HEADER.size
            end = pos + length
            if end + _EOC.size > len(view):
                raise DecodeError(f"Truncated component payload at offset {pos}")
            typed = decode_payload(code, bytes(view[pos:end]))
            (eoc,) = _EOC.unpack_from(view, end)
            try:
                equality = Equality(eoc)
            except ValueError as e:
                raise DecodeError(f"Invalid end-of-component marker: {eoc}") from e
            components.append(Component(typed, equality))
            pos = end + _EOC.size
        return cls(tuple(components))
