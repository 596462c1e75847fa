"""Code chunk decoding: opcode table, operand decoder and label assembler."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .opcodes import OPCODES, OpcodeInfo, arity_of, name_of

if TYPE_CHECKING:  # pragma: no cover - used only for type checkers
    from .assembler import CodeSectionAssembler, read_code_header
    from .operands import OperandDecoder, decode_operand, decode_operands

__all__ = [
    "OPCODES",
    "CodeSectionAssembler",
    "OpcodeInfo",
    "OperandDecoder",
    "arity_of",
    "decode_operand",
    "decode_operands",
    "name_of",
    "read_code_header",
]


def __getattr__(name: str) -> Any:
    if name in {"CodeSectionAssembler", "read_code_header"}:
        from . import assembler

        return getattr(assembler, name)
    if name in {"OperandDecoder", "decode_operand", "decode_operands"}:
        from . import operands

        return getattr(operands, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
