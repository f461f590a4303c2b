"""Unit tests for typed value classification and encoding."""

import uuid
from decimal import Decimal
from fractions import Fraction

import pytest

from indexed_collections.core.codec import (
    MAX_COMPONENT_BYTES,
    classify,
    decode,
    decode_payload,
    encode,
    encode_payload,
    record_value,
    type_code,
)
from indexed_collections.core.errors import DecodeError, InvalidValueEncoding
from indexed_collections.core.types import TypedValue, ValueType


def make_uuid1(ts, node=0x123456789ABC, clock_seq=0):
    """Build a version 1 UUID with an explicit 60-bit timestamp."""
    return uuid.UUID(
        fields=(
            ts & 0xFFFFFFFF,
            (ts >> 32) & 0xFFFF,
            (ts >> 48) & 0x0FFF,
            (clock_seq >> 8) & 0x3F,
            clock_seq & 0xFF,
            node,
        ),
        version=1,
    )


class Tagged:
    """Object that knows its own byte form."""

    def __bytes__(self):
        return b"tagged"


def test_classify_passes_through_strings_uuids_and_ints():
    """Test that str, UUID and int keep their value and get their own type."""
    u = uuid.uuid4()

    assert classify("active") == TypedValue(ValueType.UTF8, "active")
    assert classify(u) == TypedValue(ValueType.UUID, u)
    assert classify(2**100) == TypedValue(ValueType.INTEGER, 2**100)
    assert classify(-7) == TypedValue(ValueType.INTEGER, -7)


def test_classify_narrows_other_numbers_toward_zero():
    """Test that non-int numerics are truncated into integers."""
    assert classify(3.9) == TypedValue(ValueType.INTEGER, 3)
    assert classify(-3.9) == TypedValue(ValueType.INTEGER, -3)
    assert classify(Decimal("7.5")) == TypedValue(ValueType.INTEGER, 7)
    assert classify(Fraction(7, 2)) == TypedValue(ValueType.INTEGER, 3)


def test_classify_bool_is_bytes_not_integer():
    """Test that booleans do not collide with the integers 0 and 1."""
    assert classify(True) == TypedValue(ValueType.BYTES, b"\x01")
    assert classify(False) == TypedValue(ValueType.BYTES, b"\x00")
    assert classify(True) != classify(1)


def test_classify_bytes_like_values():
    """Test bytes, bytearray, memoryview and __bytes__ objects become BYTES."""
    assert classify(b"raw") == TypedValue(ValueType.BYTES, b"raw")
    assert classify(bytearray(b"raw")) == TypedValue(ValueType.BYTES, b"raw")
    assert classify(memoryview(b"raw")) == TypedValue(ValueType.BYTES, b"raw")
    assert classify(Tagged()) == TypedValue(ValueType.BYTES, b"tagged")


def test_classify_keeps_typed_values():
    """Test that an already typed value is returned unchanged."""
    typed = TypedValue(ValueType.UTF8, "x")
    assert classify(typed) is typed


@pytest.mark.parametrize(
    "value",
    [None, float("nan"), float("inf"), 1 + 2j, object(), {"a": 1}, "\ud800"],
)
def test_classify_rejects_unencodable_values(value):
    """Test that values without an indexable form raise InvalidValueEncoding."""
    with pytest.raises(InvalidValueEncoding):
        classify(value)


def test_invalid_value_encoding_is_a_value_error():
    """Test that callers catching ValueError also catch encoding failures."""
    with pytest.raises(ValueError):
        classify(object())


def test_type_codes():
    """Test the assigned type codes."""
    assert type_code(b"x") == 0
    assert type_code("x") == 1
    assert type_code(uuid.uuid4()) == 2
    assert type_code(42) == 3
    assert type_code(4.2) == 3


def test_typed_value_rejects_mismatched_python_type():
    """Test that TypedValue enforces the Python type of its tag."""
    with pytest.raises(TypeError):
        TypedValue(ValueType.INTEGER, True)
    with pytest.raises(TypeError):
        TypedValue(ValueType.UTF8, b"bytes")


def test_ordering_compares_type_before_value():
    """Test Bytes < Utf8String < Uuid < Integer regardless of the values."""
    values = [classify(5), classify("a"), classify(uuid.uuid4()), classify(b"\xff")]

    ordered = sorted(values)

    assert [v.value_type for v in ordered] == [
        ValueType.BYTES,
        ValueType.UTF8,
        ValueType.UUID,
        ValueType.INTEGER,
    ]


def test_time_uuids_order_by_timestamp_not_bytes():
    """Test that version 1 UUIDs sort by their embedded time."""
    earlier = make_uuid1(0xFFFFFFFF)  # large time_low, leading bytes 0xff
    later = make_uuid1(0x100000000)  # time_low 0, time_mid 1

    assert earlier.bytes > later.bytes
    assert classify(earlier) < classify(later)


def test_integer_payload_is_minimal_twos_complement():
    """Test integer payload widths at the byte boundaries."""
    assert encode_payload(classify(0)) == b"\x00"
    assert encode_payload(classify(127)) == b"\x7f"
    assert encode_payload(classify(128)) == b"\x00\x80"
    assert encode_payload(classify(-1)) == b"\xff"
    assert encode_payload(classify(-128)) == b"\x80"
    assert encode_payload(classify(-129)) == b"\xff\x7f"


def test_encode_prefixes_type_code():
    """Test the [code][payload] binary form."""
    assert encode("ab") == b"\x01ab"
    assert encode(b"ab") == b"\x00ab"
    assert decode(b"\x03\x01\x00") == TypedValue(ValueType.INTEGER, 256)


def test_decode_large_integer_and_uuid():
    """Test decoding arbitrary precision integers and UUIDs."""
    u = uuid.uuid4()

    assert decode(encode(-(2**90))).value == -(2**90)
    assert decode(encode(u)).value == u


@pytest.mark.parametrize(
    "data",
    [
        b"",  # empty
        b"\x09abc",  # unknown type code
        b"\x02\x00\x01",  # short uuid
        b"\x01\xff\xfe",  # invalid utf-8
        b"\x03",  # empty integer
    ],
)
def test_decode_rejects_malformed_input(data):
    """Test that malformed binary values raise DecodeError."""
    with pytest.raises(DecodeError):
        decode(data)


def test_decode_payload_unknown_code():
    """Test decode_payload with a code outside the closed set."""
    with pytest.raises(DecodeError):
        decode_payload(127, b"")


def test_classify_accepts_payload_at_size_limit():
    """Test the largest payload a composite component can hold is accepted."""
    assert len(encode_payload(classify(b"x" * MAX_COMPONENT_BYTES))) == MAX_COMPONENT_BYTES


@pytest.mark.parametrize(
    "value",
    [
        "x" * (MAX_COMPONENT_BYTES + 1),
        b"x" * (MAX_COMPONENT_BYTES + 1),
        "é" * 40_000,  # under the limit in characters, over it in UTF-8 bytes
        TypedValue(ValueType.BYTES, b"x" * 70_000),
    ],
)
def test_classify_rejects_oversized_payloads(value):
    """Test values too large for a composite component raise InvalidValueEncoding."""
    with pytest.raises(InvalidValueEncoding):
        classify(value)


def test_record_value_is_immutable_classified_form():
    """Test item records keep bool and float but store other values classified."""
    buffer = bytearray(b"abc")

    assert record_value(True, classify(True)) is True
    assert record_value(2.5, classify(2.5)) == 2.5
    assert record_value(Decimal("2.5"), classify(Decimal("2.5"))) == 2
    assert record_value(buffer, classify(buffer)) == b"abc"
    assert type(record_value(buffer, classify(buffer))) is bytes
