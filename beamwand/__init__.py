"""Decoder for compiled BEAM (Erlang virtual machine) modules."""

from __future__ import annotations

from .config import ParseOptions
from .exceptions import (
    BeamParseError,
    CorruptLiteralTable,
    DuplicateLabel,
    IntegerTooWide,
    MalformedChunk,
    MalformedMagic,
    MalformedOperand,
    UnexpectedEof,
    UnknownChunkTag,
    UnknownOpcode,
)
from .framer import parse, parse_file
from .model import (
    AllocKind,
    AllocListItem,
    Ast,
    AtomTable,
    Chunk,
    ChunkKind,
    CodeSection,
    Instruction,
    Operand,
    OperandTag,
)

__version__ = "0.1.0"

__all__ = [
    "AllocKind",
    "AllocListItem",
    "Ast",
    "AtomTable",
    "BeamParseError",
    "Chunk",
    "ChunkKind",
    "CodeSection",
    "CorruptLiteralTable",
    "DuplicateLabel",
    "Instruction",
    "IntegerTooWide",
    "MalformedChunk",
    "MalformedMagic",
    "MalformedOperand",
    "Operand",
    "OperandTag",
    "ParseOptions",
    "UnexpectedEof",
    "UnknownChunkTag",
    "UnknownOpcode",
    "parse",
    "parse_file",
]
