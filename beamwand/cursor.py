"""Bounds-checked big-endian reader over an immutable byte buffer."""

from __future__ import annotations

import struct
from typing import Union

from .exceptions import MalformedMagic, UnexpectedEof

BytesLike = Union[bytes, bytearray, memoryview]

_U16 = struct.Struct(">H")
_U32 = struct.Struct(">I")
_U64 = struct.Struct(">Q")
_F64 = struct.Struct(">d")


class Cursor:
    """Sequential reader used by every chunk decoder.

    ``base`` is the absolute position of the first byte of ``data`` inside the
    outer container so errors raised from sub-cursors still report offsets
    relative to the whole file.
    """

    __slots__ = ("_view", "offset", "base")

    def __init__(self, data: BytesLike, *, base: int = 0) -> None:
        self._view = memoryview(data).cast("B")
        self.offset = 0
        self.base = base

    def __len__(self) -> int:
        return len(self._view)

    @property
    def position(self) -> int:
        """Absolute position of the next unread byte."""

        return self.base + self.offset

    def remaining(self) -> int:
        return len(self._view) - self.offset

    def at_end(self) -> bool:
        return self.offset >= len(self._view)

    def ensure(self, size: int) -> None:
        if size < 0:
            raise UnexpectedEof(f"attempted to read negative length {size}", offset=self.position)
        available = self.remaining()
        if size > available:
            raise UnexpectedEof(
                f"needed {size} byte(s) but only {available} remain",
                offset=self.position,
            )

    def read_u8(self) -> int:
        self.ensure(1)
        value = self._view[self.offset]
        self.offset += 1
        return value

    def read_u16(self) -> int:
        self.ensure(2)
        (value,) = _U16.unpack_from(self._view, self.offset)
        self.offset += 2
        return value

    def read_u32(self) -> int:
        self.ensure(4)
        (value,) = _U32.unpack_from(self._view, self.offset)
        self.offset += 4
        return value

    def read_u64(self) -> int:
        self.ensure(8)
        (value,) = _U64.unpack_from(self._view, self.offset)
        self.offset += 8
        return value

    def read_f64(self) -> float:
        self.ensure(8)
        (value,) = _F64.unpack_from(self._view, self.offset)
        self.offset += 8
        return value

    def peek(self, size: int) -> bytes:
        self.ensure(size)
        return bytes(self._view[self.offset : self.offset + size])

    def match_literal(self, tag: bytes) -> bool:
        """Consume ``tag`` when the next bytes equal it; leave the cursor alone otherwise."""

        if len(tag) != 4:
            raise ValueError(f"literal tags are four bytes long, got {tag!r}")
        if self.remaining() < 4:
            return False
        if self._view[self.offset : self.offset + 4] != tag:
            return False
        self.offset += 4
        return True

    def expect_literal(self, tag: bytes) -> None:
        if self.remaining() >= 4 and self.match_literal(tag):
            return
        found = bytes(self._view[self.offset : self.offset + 4])
        raise MalformedMagic(f"expected {tag!r}, found {found!r}", offset=self.position)

    def slice(self, size: int) -> bytes:
        """Copy ``size`` bytes out of the buffer and advance past them."""

        self.ensure(size)
        chunk = bytes(self._view[self.offset : self.offset + size])
        self.offset += size
        return chunk

    def sub_cursor(self, size: int) -> "Cursor":
        """Return a cursor bounded to the next ``size`` bytes and advance past them."""

        self.ensure(size)
        start = self.offset
        self.offset += size
        return Cursor(self._view[start : start + size], base=self.base + start)

    def skip(self, size: int) -> None:
        self.ensure(size)
        self.offset += size

    def align(self, boundary: int = 4) -> int:
        """Skip padding up to the next ``boundary``; returns the number of bytes skipped.

        Padding missing at the very end of the buffer is tolerated.
        """

        misalignment = self.position % boundary
        if not misalignment:
            return 0
        padding = min(boundary - misalignment, self.remaining())
        self.offset += padding
        return padding


__all__ = ["BytesLike", "Cursor"]
