"""Decoder limits and lookup tables shared by every parse call."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Mapping

from .code.opcodes import OPCODES, OpcodeInfo

DEFAULT_MAX_DEPTH = 2
DEFAULT_MAX_INTEGER_BYTES = 8


@dataclass(frozen=True)
class ParseOptions:
    """Tunables for :func:`beamwand.parse`.

    ``max_depth`` caps the nesting of self-referential operand encodings
    (long-form length prefixes and ``fr`` aliases).  ``max_integer_bytes``
    bounds the magnitude width of long-form integers.
    """

    max_depth: int = DEFAULT_MAX_DEPTH
    max_integer_bytes: int = DEFAULT_MAX_INTEGER_BYTES
    opcodes: Mapping[int, OpcodeInfo] = field(default_factory=lambda: OPCODES, repr=False)

    def __post_init__(self) -> None:
        if self.max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        if self.max_integer_bytes < 1:
            raise ValueError("max_integer_bytes must be at least 1")

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "ParseOptions":
        known = {item.name for item in fields(cls)}
        unknown = sorted(set(payload) - known)
        if unknown:
            raise ValueError(f"unknown parse option(s): {', '.join(unknown)}")
        values = dict(payload)
        for name in ("max_depth", "max_integer_bytes"):
            if name in values and values[name] is not None:
                values[name] = int(values[name])
            elif name in values:
                del values[name]
        return cls(**values)


DEFAULT_OPTIONS = ParseOptions()

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "DEFAULT_MAX_INTEGER_BYTES",
    "DEFAULT_OPTIONS",
    "ParseOptions",
]
