"""Exception hierarchy raised while decoding BEAM containers."""

from __future__ import annotations

from typing import Optional


class BeamParseError(Exception):
    """Base class for all container decoding errors.

    ``offset`` records the absolute byte position where the problem was
    detected when it is known.
    """

    def __init__(self, message: str, *, offset: Optional[int] = None) -> None:
        if offset is not None:
            message = f"{message} (at offset {offset})"
        super().__init__(message)
        self.offset = offset


class UnexpectedEof(BeamParseError):
    """Raised when a read needs more bytes than the buffer holds."""


class MalformedMagic(BeamParseError):
    """Raised when a fixed header tag or header constant does not match."""


class UnknownChunkTag(BeamParseError):
    """Raised for a chunk tag outside the recognised set."""

    def __init__(self, tag: bytes, *, offset: Optional[int] = None) -> None:
        super().__init__(f"unknown chunk tag {tag!r}", offset=offset)
        self.tag = tag


class UnknownOpcode(BeamParseError):
    """Raised for opcode ids that are zero, above the ceiling or unlisted."""

    def __init__(self, opcode: int, *, offset: Optional[int] = None) -> None:
        super().__init__(f"unknown opcode {opcode}", offset=offset)
        self.opcode = opcode


class DuplicateLabel(BeamParseError):
    """Raised when a label block is sealed twice under the same id."""

    def __init__(self, label: int, *, offset: Optional[int] = None) -> None:
        super().__init__(f"label {label} defined more than once", offset=offset)
        self.label = label


class CorruptLiteralTable(BeamParseError):
    """Raised when the literal table cannot be inflated to its declared size."""


class IntegerTooWide(BeamParseError):
    """Raised for integers wider than supported or nested too deeply."""


class MalformedOperand(MalformedMagic):
    """Raised for operands whose shape contradicts their context.

    A refinement of :class:`MalformedMagic`; handlers written against the base
    taxonomy catch it there.
    """


class MalformedChunk(MalformedMagic):
    """Raised when a chunk decoder leaves part of its payload unread."""


__all__ = [
    "BeamParseError",
    "CorruptLiteralTable",
    "DuplicateLabel",
    "IntegerTooWide",
    "MalformedChunk",
    "MalformedMagic",
    "MalformedOperand",
    "UnexpectedEof",
    "UnknownChunkTag",
    "UnknownOpcode",
]
