"""Decoder for the tagged compact-term operands of the code chunk.

Every operand starts with a tag byte.  The low three bits select one of the
base families (``u i a x y f h``) or the extended marker ``z``::

    bit 3 clear          value = tag >> 4                       (0..15)
    bit 3 set, 4 clear   value = ((tag & 0xe0) << 3) | next     (11 bits)
    bits 3 and 4 set     long form, length = (tag >> 5) + 2,
                         or for (tag >> 5) == 7 the next byte is itself
                         decoded as an integer giving the length

Long-form magnitudes are big-endian.  A length of exactly four bytes is read
as-is; for every other length a set top bit marks a negative value whose
magnitude is the remaining bits.

For ``z`` the upper nibble selects the sub-format: ``0`` float, ``1`` list,
``2`` float register alias, ``3`` allocation list, anything else a literal
table reference whose index is a long-form integer read from the same tag
byte.  A list marker carries only its nibble; no bytes follow it.
Self-referential encodings (long-form length prefixes and float register
aliases) are bounded by :attr:`ParseOptions.max_depth`.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from ..config import DEFAULT_OPTIONS, ParseOptions
from ..cursor import BytesLike, Cursor
from ..exceptions import IntegerTooWide, MalformedOperand
from ..model import BASE_TAGS, AllocKind, AllocListItem, Operand, OperandTag

__all__ = [
    "EXTENDED_TAG",
    "OperandDecoder",
    "decode_operand",
    "decode_operands",
]

EXTENDED_TAG = 0x07

_TAG_MASK = 0x07
_COMPACT_FLAG = 0x08
_MEDIUM_FLAG = 0x10
_LENGTH_ESCAPE = 7
_UNSIGNED_LENGTH = 4

_EXT_FLOAT = 0
_EXT_LIST = 1
_EXT_FR = 2
_EXT_ALLOC_LIST = 3


class OperandDecoder:
    """Decode operands from ``cursor`` one at a time.

    The decoder never backtracks: each call consumes the tag byte plus the
    statically determined follow-on bytes and nothing else.
    """

    __slots__ = ("cursor", "options")

    def __init__(self, cursor: Cursor, options: Optional[ParseOptions] = None) -> None:
        self.cursor = cursor
        self.options = options or DEFAULT_OPTIONS

    # Integers -------------------------------------------------------------

    def read_integer(self) -> int:
        """Read a tag byte that must carry a base tag and return its integer."""

        start = self.cursor.position
        tag = self.cursor.read_u8()
        if tag & _TAG_MASK == EXTENDED_TAG:
            raise MalformedOperand(
                f"expected an integer operand, found extended tag 0x{tag:02x}",
                offset=start,
            )
        return self.integer_from_tag(tag)

    def integer_from_tag(self, tag: int, depth: int = 1) -> int:
        """Decode the integer whose first byte is ``tag`` (already consumed)."""

        if not tag & _COMPACT_FLAG:
            return tag >> 4
        if not tag & _MEDIUM_FLAG:
            return ((tag & 0xE0) << 3) | self.cursor.read_u8()
        return self._read_long(tag, depth)

    def _read_long(self, tag: int, depth: int) -> int:
        start = self.cursor.position
        top = tag >> 5
        if top == _LENGTH_ESCAPE:
            nested = self._enter(depth, start, "long-form length prefix")
            length = self.integer_from_tag(self.cursor.read_u8(), nested)
        else:
            length = top + 2
        if length < 1:
            raise MalformedOperand(f"integer length {length} is not positive", offset=start)
        if length > self.options.max_integer_bytes:
            raise IntegerTooWide(
                f"integer of {length} bytes exceeds the {self.options.max_integer_bytes}-byte limit",
                offset=start,
            )
        raw = self.cursor.slice(length)
        if length == _UNSIGNED_LENGTH or not raw[0] & 0x80:
            return int.from_bytes(raw, "big")
        magnitude = bytes([raw[0] & 0x7F]) + raw[1:]
        return -int.from_bytes(magnitude, "big")

    def _enter(self, depth: int, offset: int, what: str) -> int:
        nested = depth + 1
        if nested > self.options.max_depth:
            raise IntegerTooWide(
                f"{what} nested deeper than {self.options.max_depth} level(s)",
                offset=offset,
            )
        return nested

    # Operands -------------------------------------------------------------

    def decode(self) -> Operand:
        return self._decode(depth=1)

    def decode_many(self, count: int) -> List[Operand]:
        return [self.decode() for _ in range(count)]

    def _decode(self, depth: int) -> Operand:
        tag = self.cursor.read_u8()
        base = tag & _TAG_MASK
        if base != EXTENDED_TAG:
            return Operand(BASE_TAGS[base], self.integer_from_tag(tag, depth))
        return self._decode_extended(tag, depth)

    def _decode_extended(self, tag: int, depth: int) -> Operand:
        start = self.cursor.position - 1
        kind = tag >> 4
        if kind == _EXT_FLOAT:
            return Operand(OperandTag.FLOAT, self.cursor.read_f64())
        if kind == _EXT_LIST:
            # Marker only; no further bytes belong to it.
            return Operand(OperandTag.LIST, kind)
        if kind == _EXT_FR:
            nested = self._enter(depth, start, "float register alias")
            inner = self._decode(nested)
            return Operand(OperandTag.FR, inner.value)
        if kind == _EXT_ALLOC_LIST:
            return Operand(OperandTag.ALLOC_LIST, self._read_alloc_list())
        return Operand(OperandTag.LITERAL, self._read_long(tag, depth))

    def _read_alloc_list(self) -> Tuple[AllocListItem, ...]:
        count = self.read_integer()
        items: List[AllocListItem] = []
        for _ in range(count):
            start = self.cursor.position
            raw_kind = self.read_integer()
            try:
                kind = AllocKind(raw_kind)
            except ValueError:
                raise MalformedOperand(
                    f"unknown allocation list kind {raw_kind}", offset=start
                ) from None
            items.append(AllocListItem(kind, self.read_integer()))
        return tuple(items)


def decode_operand(data: BytesLike, options: Optional[ParseOptions] = None) -> Tuple[Operand, int]:
    """Decode a single operand from ``data``; returns ``(operand, bytes_consumed)``."""

    cursor = Cursor(data)
    operand = OperandDecoder(cursor, options).decode()
    return operand, cursor.offset


def decode_operands(
    data: BytesLike,
    count: int,
    options: Optional[ParseOptions] = None,
) -> Tuple[List[Operand], int]:
    cursor = Cursor(data)
    operands = OperandDecoder(cursor, options).decode_many(count)
    return operands, cursor.offset
