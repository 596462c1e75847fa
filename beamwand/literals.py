"""Literal table (``LitT``) decoder.

The payload is a 32-bit uncompressed size followed by a zlib stream.  The
inflated buffer holds a 32-bit entry count and then, per entry, a 32-bit
length and that many bytes of external term format, which are kept opaque.
"""

from __future__ import annotations

import logging
import zlib
from typing import List

from .cursor import Cursor
from .exceptions import CorruptLiteralTable
from .model import LiteralTable
from .tables import expect_consumed

LOGGER = logging.getLogger(__name__)

__all__ = ["ZLIB_HEADER_SIZE", "decode_literals", "has_zlib_header", "inflate", "read_blobs"]

ZLIB_HEADER_SIZE = 2
_ZLIB_DEFLATE_METHOD = 8


def has_zlib_header(header: bytes) -> bool:
    """True when ``header`` is a valid two-byte zlib stream header (RFC 1950)."""

    if len(header) < ZLIB_HEADER_SIZE:
        return False
    cmf, flg = header[0], header[1]
    return cmf & 0x0F == _ZLIB_DEFLATE_METHOD and (cmf * 256 + flg) % 31 == 0


def inflate(payload: bytes) -> bytes:
    """Inflate a raw deflate stream; trailing checksum bytes are ignored."""

    decompressor = zlib.decompressobj(-zlib.MAX_WBITS)
    data = decompressor.decompress(payload)
    data += decompressor.flush()
    if not decompressor.eof:
        raise zlib.error("deflate stream ended prematurely")
    return data


def read_blobs(cursor: Cursor) -> LiteralTable:
    count = cursor.read_u32()
    blobs: List[bytes] = []
    for _ in range(count):
        length = cursor.read_u32()
        blobs.append(cursor.slice(length))
    expect_consumed(cursor, "literal table")
    return LiteralTable(tuple(blobs))


def decode_literals(cursor: Cursor) -> LiteralTable:
    """Decode a literal chunk payload bounded by ``cursor``.

    An uncompressed size of zero marks a table stored without compression.
    """

    start = cursor.position
    declared = cursor.read_u32()
    if declared == 0:
        if has_zlib_header(cursor.peek(min(ZLIB_HEADER_SIZE, cursor.remaining()))):
            raise CorruptLiteralTable(
                "literal table declares no uncompressed size but holds a zlib stream",
                offset=start,
            )
        LOGGER.debug("literal table stored uncompressed (%d bytes)", cursor.remaining())
        return read_blobs(cursor)

    cursor.skip(ZLIB_HEADER_SIZE)
    compressed = cursor.slice(cursor.remaining())
    try:
        data = inflate(compressed)
    except zlib.error as exc:
        raise CorruptLiteralTable(f"literal table does not inflate: {exc}", offset=start) from exc
    if len(data) != declared:
        raise CorruptLiteralTable(
            f"literal table inflated to {len(data)} bytes, header declares {declared}",
            offset=start,
        )
    LOGGER.debug("literal table: %d compressed -> %d bytes", len(compressed), declared)
    return read_blobs(Cursor(data))
