"""Typed value codec.

Classifies arbitrary Python values into the closed TypedValue variant and
converts typed values to and from their binary form.

Classification rules:
    str, uuid.UUID, int  -> passed through as UTF8, UUID, INTEGER
    bool                 -> one raw byte (b"\\x01" / b"\\x00")
    other numbers.Number -> truncated toward zero into INTEGER
    bytes-like / __bytes__ -> BYTES
    anything else        -> InvalidValueEncoding
    payload over 65535 bytes -> InvalidValueEncoding

Binary form: [type code (1B)][payload]. Integers use minimal big-endian
two's complement, UUIDs their 16 raw bytes, strings UTF-8.
"""

from __future__ import annotations

import numbers
import uuid
from typing import Any

from .errors import DecodeError, InvalidValueEncoding
from .types import TypedValue, ValueType

# Largest payload a composite component can carry (2-byte length prefix)
MAX_COMPONENT_BYTES = 0xFFFF


def classify(value: Any) -> TypedValue:
    """Classify a value into a TypedValue.

    Raises:
        InvalidValueEncoding: If value is None, has no indexable form, or its
            payload exceeds MAX_COMPONENT_BYTES
    """
    typed = _narrow(value)
    size = len(encode_payload(typed))
    if size > MAX_COMPONENT_BYTES:
        raise InvalidValueEncoding(
            f"{typed.value_type.name} payload of {size} bytes exceeds {MAX_COMPONENT_BYTES}"
        )
    return typed


def _narrow(value: Any) -> TypedValue:
    if value is None:
        raise InvalidValueEncoding("None cannot be indexed")

    if isinstance(value, TypedValue):
        return value

    if isinstance(value, str):
        try:
            value.encode("utf-8")
        except UnicodeEncodeError as e:
            raise InvalidValueEncoding(f"String is not UTF-8 encodable: {e}") from e
        return TypedValue(ValueType.UTF8, str.__str__(value))

    if isinstance(value, uuid.UUID):
        return TypedValue(ValueType.UUID, value)

    if isinstance(value, bool):
        return TypedValue(ValueType.BYTES, b"\x01" if value else b"\x00")

    if isinstance(value, int):
        return TypedValue(ValueType.INTEGER, int(value))

    if isinstance(value, numbers.Number):
        try:
            return TypedValue(ValueType.INTEGER, int(value))
        except (TypeError, ValueError, OverflowError) as e:
            raise InvalidValueEncoding(f"Cannot narrow {value!r} to an integer") from e

    if isinstance(value, (bytes, bytearray, memoryview)):
        return TypedValue(ValueType.BYTES, bytes(value))

    if hasattr(value, "__bytes__"):
        try:
            return TypedValue(ValueType.BYTES, bytes(value))
        except Exception as e:
            raise InvalidValueEncoding(f"Cannot convert {value!r} to bytes") from e

    raise InvalidValueEncoding(f"Unsupported value type: {type(value).__name__}")


def type_code(value: Any) -> int:
    """Return the type code that leads every composite key holding value."""
    return classify(value).code


def _int_to_bytes(value: int) -> bytes:
    length = max(1, (value + (value < 0)).bit_length() // 8 + 1)
    return value.to_bytes(length, "big", signed=True)


def encode_payload(typed: TypedValue) -> bytes:
    """Encode the value part of a TypedValue (no type code)."""
    if typed.value_type is ValueType.UTF8:
        return typed.value.encode("utf-8")
    if typed.value_type is ValueType.UUID:
        return typed.value.bytes
    if typed.value_type is ValueType.INTEGER:
        return _int_to_bytes(typed.value)
    return typed.value


def decode_payload(code: int, payload: bytes) -> TypedValue:
    """Decode a payload produced by encode_payload for the given type code.

    Raises:
        DecodeError: If the code is unknown or the payload is malformed
    """
    try:
        value_type = ValueType(code)
    except ValueError as e:
        raise DecodeError(f"Unknown type code: {code}") from e

    if value_type is ValueType.UTF8:
        try:
            return TypedValue(value_type, payload.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise DecodeError(f"Invalid UTF-8 payload: {e}") from e
    if value_type is ValueType.UUID:
        if len(payload) != 16:
            raise DecodeError(f"UUID payload must be 16 bytes, got {len(payload)}")
        return TypedValue(value_type, uuid.UUID(bytes=payload))
    if value_type is ValueType.INTEGER:
        if not payload:
            raise DecodeError("Empty integer payload")
        return TypedValue(value_type, int.from_bytes(payload, "big", signed=True))
    return TypedValue(value_type, bytes(payload))


def encode(value: Any) -> bytes:
    """Classify value and encode it as [type code][payload]."""
    typed = classify(value)
    return bytes([typed.code]) + encode_payload(typed)


def decode(data: bytes) -> TypedValue:
    """Decode bytes produced by encode.

    Raises:
        DecodeError: If data is empty or malformed
    """
    if not data:
        raise DecodeError("Cannot decode empty value")
    return decode_payload(data[0], data[1:])


def record_value(value: Any, typed: TypedValue) -> Any:
    """Return the immutable form of value kept in an item record.

    bool and float keep their own type. Anything else is stored as its
    classified value, so a record reads back the same after log replay.
    """
    if isinstance(value, (bool, float)):
        return value
    return typed.value
