"""Write-Ahead Log implementation.

Provides a durable, crash-safe append-only log of committed batches with
CRC32 checksums.
"""

from __future__ import annotations

import os
import struct
import zlib
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Iterator

from ..core import codec
from ..core.composite import CompositeKey
from ..core.errors import DecodeError, WALCorruptionError
from ..core.types import Mutation, Timestamp

logger = logging.getLogger(__name__)

# WAL record format:
# [magic (4B)] [payload_len (8B)] [payload] [crc32 (4B)]
# payload: [ts (8B)] [count (4B)] then per mutation:
#   [op (1B)] [table_len (2B)] [table] [row_len (4B)] [row]
#   [column_len (4B)] [column] [value_len (4B)] [value]
MAGIC = 0x49434C01  # "ICL" + version
OP_PUT = 0
OP_DELETE = 1

# Cell value tags
CELL_COMPOSITE = b"C"
CELL_FLOAT = b"F"
CELL_BOOL = b"B"
CELL_TYPED = b"T"

WALRecord = tuple[Timestamp, list[Mutation]]


def encode_cell(value: Any) -> bytes:
    """Encode a column value for the log."""
    if isinstance(value, CompositeKey):
        return CELL_COMPOSITE + value.to_bytes()
    if isinstance(value, bool):
        return CELL_BOOL + (b"\x01" if value else b"\x00")
    if isinstance(value, float):
        return CELL_FLOAT + struct.pack(">d", value)
    return CELL_TYPED + codec.encode(value)


def decode_cell(data: bytes) -> Any:
    """Decode a column value written by encode_cell."""
    tag, body = data[:1], data[1:]
    if tag == CELL_COMPOSITE:
        return CompositeKey.from_bytes(body)
    if tag == CELL_BOOL:
        return body == b"\x01"
    if tag == CELL_FLOAT:
        if len(body) != 8:
            raise DecodeError(f"Float cell must be 8 bytes, got {len(body)}")
        return struct.unpack(">d", body)[0]
    if tag == CELL_TYPED:
        return codec.decode(body).value
    raise DecodeError(f"Unknown cell tag: {tag!r}")


def _encode_mutation(mutation: Mutation) -> bytes:
    table = mutation.table.encode("utf-8")
    row = codec.encode(mutation.row_key)
    column = mutation.column_key.to_bytes()
    value = b"" if mutation.is_delete else encode_cell(mutation.value)
    op_code = OP_DELETE if mutation.is_delete else OP_PUT
    return (
        struct.pack("<BH", op_code, len(table)) + table
        + struct.pack("<I", len(row)) + row
        + struct.pack("<I", len(column)) + column
        + struct.pack("<I", len(value)) + value
    )


def _decode_payload(payload: bytes) -> WALRecord:
    try:
        ts, count = struct.unpack_from("<QI", payload, 0)
        pos = 12
        mutations: list[Mutation] = []
        for _ in range(count):
            op_code, table_len = struct.unpack_from("<BH", payload, pos)
            pos += 3
            table = payload[pos:pos + table_len].decode("utf-8")
            pos += table_len
            parts = []
            for _field in range(3):
                (length,) = struct.unpack_from("<I", payload, pos)
                pos += 4
                parts.append(payload[pos:pos + length])
                pos += length
            row_bytes, column_bytes, value_bytes = parts
            row_key = codec.decode(row_bytes).value
            column_key = CompositeKey.from_bytes(column_bytes)
            if op_code == OP_PUT:
                mutation = Mutation.put(table, row_key, column_key, decode_cell(value_bytes))
            elif op_code == OP_DELETE:
                mutation = Mutation.delete(table, row_key, column_key)
            else:
                raise WALCorruptionError(f"Invalid op code: {op_code}")
            mutations.append(mutation)
    except WALCorruptionError:
        raise
    except (struct.error, UnicodeDecodeError, DecodeError) as e:
        raise WALCorruptionError(f"Malformed WAL payload: {e}") from e
    return ts, mutations


class BatchWAL:
    """Append-only Write-Ahead Log of committed batches with CRC32 checksums.

    Args:
        path: Path to WAL file
        flush_every_write: Whether to fsync after each append

    Invariants:
        - Each batch is written as one record with a checksum
        - Partial records at EOF are skipped during replay
        - Records are returned in append order
    """

    def __init__(self, path: str | Path, flush_every_write: bool = True):
        self.path = Path(path)
        self.flush_every_write = flush_every_write
        self.sequence = 0
        self.valid_offset = 0
        self._fd = None
        self._open_for_write()

    def _open_for_write(self) -> None:
        """Open WAL file for appending."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._fd = open(self.path, "ab")
        self._fd.seek(0, os.SEEK_END)
        pos = self._fd.tell()
        logger.debug(f"Opened WAL {self.path} at offset {pos}")

    def append(self, mutations: Sequence[Mutation], ts: Timestamp) -> int:
        """Append one batch to the WAL.

        Args:
            mutations: Mutations of the batch, in apply order
            ts: Commit timestamp shared by every mutation

        Returns:
            WAL sequence number
        """
        if self._fd is None:
            raise RuntimeError("WAL is closed")

        payload = struct.pack("<QI", ts, len(mutations))
        payload += b"".join(_encode_mutation(m) for m in mutations)

        header = struct.pack("<IQ", MAGIC, len(payload))
        crc = zlib.crc32(header + payload)
        record = header + payload + struct.pack("<I", crc)

        self._fd.write(record)
        if self.flush_every_write:
            self._fd.flush()
            os.fsync(self._fd.fileno())

        self.sequence += 1
        logger.debug(
            f"Appended record seq={self.sequence}, mutations={len(mutations)}, ts={ts}"
        )
        return self.sequence

    def truncate(self, offset: int) -> None:
        """Drop everything after offset (e.g. a torn record left by a crash)."""
        if self._fd is None:
            raise RuntimeError("WAL is closed")
        self._fd.truncate(offset)
        self._fd.seek(0, os.SEEK_END)
        logger.warning(f"Truncated WAL {self.path} to {offset} bytes")

    def size_bytes(self) -> int:
        """Return the current size of the log file."""
        return self.path.stat().st_size

    def sync(self) -> None:
        """Force data to disk (fsync)."""
        if self._fd:
            self._fd.flush()
            os.fsync(self._fd.fileno())

    def close(self) -> None:
        """Close writer and release resources."""
        if self._fd:
            self.sync()
            self._fd.close()
            self._fd = None
            logger.info(f"Closed WAL {self.path}")

    def __iter__(self) -> Iterator[WALRecord]:
        """Iterate batches in WAL in append order.

        Skips a partial record at EOF.
        """
        self.valid_offset = 0
        with open(self.path, "rb") as f:
            while True:
                header = f.read(12)
                if len(header) == 0:
                    break  # EOF
                if len(header) < 12:
                    logger.warning("Partial header at EOF, skipping")
                    break

                magic, payload_len = struct.unpack("<IQ", header)
                if magic != MAGIC:
                    raise WALCorruptionError(f"Invalid magic: {magic:x}")

                payload = f.read(payload_len)
                if len(payload) < payload_len:
                    logger.warning("Partial payload at EOF, skipping")
                    break

                crc_bytes = f.read(4)
                if len(crc_bytes) < 4:
                    logger.warning("Partial CRC at EOF, skipping")
                    break

                stored_crc = struct.unpack("<I", crc_bytes)[0]
                computed_crc = zlib.crc32(header + payload)
                if stored_crc != computed_crc:
                    raise WALCorruptionError(
                        f"CRC mismatch: expected {computed_crc:x}, got {stored_crc:x}"
                    )

                record = _decode_payload(payload)
                self.valid_offset = f.tell()
                yield record

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
