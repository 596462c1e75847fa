"""Group the flat instruction stream of a code chunk into label blocks."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, List, Optional, Tuple

from ..config import DEFAULT_OPTIONS, ParseOptions
from ..cursor import Cursor
from ..exceptions import DuplicateLabel, MalformedMagic, MalformedOperand, UnknownOpcode
from ..model import CodeHeader, CodeSection, Instruction, Operand, OperandTag
from .opcodes import LABEL
from .operands import OperandDecoder

LOGGER = logging.getLogger(__name__)

__all__ = [
    "CODE_FORMAT",
    "CODE_HEADER_SIZE",
    "CodeSectionAssembler",
    "read_code_header",
]

CODE_HEADER_SIZE = 16
CODE_FORMAT = 0

_DEFAULT_LABEL = 1


def read_code_header(cursor: Cursor) -> CodeHeader:
    """Read and validate the fixed code chunk header.

    The label and function counts are advisory and kept without checking.
    """

    start = cursor.position
    header_size = cursor.read_u32()
    if header_size != CODE_HEADER_SIZE:
        raise MalformedMagic(
            f"code header size {header_size}, expected {CODE_HEADER_SIZE}", offset=start
        )
    start = cursor.position
    code_format = cursor.read_u32()
    if code_format != CODE_FORMAT:
        raise MalformedMagic(
            f"unsupported instruction set format {code_format}", offset=start
        )
    max_opcode = cursor.read_u32()
    label_count = cursor.read_u32()
    function_count = cursor.read_u32()
    return CodeHeader(
        header_size=header_size,
        format=code_format,
        max_opcode=max_opcode,
        label_count=label_count,
        function_count=function_count,
    )


class CodeSectionAssembler:
    """Walk a code chunk payload and build its :class:`CodeSection`.

    State is either "no label opened yet" (instructions buffer under label 1)
    or "label L open".  A ``label`` instruction with a new id seals the open
    buffer; repeating the open id is a no-op.
    """

    def __init__(self, cursor: Cursor, options: Optional[ParseOptions] = None) -> None:
        self.cursor = cursor
        self.options = options or DEFAULT_OPTIONS
        self.operands = OperandDecoder(cursor, self.options)
        self._labels: Dict[int, Tuple[Instruction, ...]] = {}
        self._current = _DEFAULT_LABEL
        self._opened = False
        self._buffer: List[Instruction] = []

    def assemble(self) -> CodeSection:
        header = read_code_header(self.cursor)
        while not self.cursor.at_end():
            self._step(header.max_opcode)
        if self._buffer:
            self._seal(self.cursor.position)
        LOGGER.debug(
            "code chunk: %d label block(s), %d instruction(s)",
            len(self._labels),
            sum(len(block) for block in self._labels.values()),
        )
        return CodeSection(header=header, labels=MappingProxyType(dict(self._labels)))

    def _step(self, max_opcode: int) -> None:
        start = self.cursor.position
        opcode = self.cursor.read_u8()
        if opcode == 0 or opcode > max_opcode or opcode not in self.options.opcodes:
            raise UnknownOpcode(opcode, offset=start)
        operands = self.operands.decode_many(self.options.opcodes[opcode].arity)
        if opcode == LABEL:
            self._open(self._label_id(operands, start), start)
        else:
            self._opened = True
            self._buffer.append(Instruction(opcode, tuple(operands)))

    @staticmethod
    def _label_id(operands: List[Operand], offset: int) -> int:
        if len(operands) != 1 or operands[0].tag is not OperandTag.U:
            raise MalformedOperand("label expects a single literal integer operand", offset=offset)
        return int(operands[0].value)  # type: ignore[arg-type]

    def _open(self, label: int, offset: int) -> None:
        if self._opened and label == self._current:
            return
        if self._opened:
            self._seal(offset)
        self._opened = True
        self._current = label
        self._buffer = []

    def _seal(self, offset: int) -> None:
        if self._current in self._labels:
            raise DuplicateLabel(self._current, offset=offset)
        self._labels[self._current] = tuple(self._buffer)
        LOGGER.debug("sealed label %d with %d instruction(s)", self._current, len(self._buffer))
