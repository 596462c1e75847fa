"""Container framing and the :func:`parse` entry point.

Layout::

    "FOR1"  u32 form_length  "BEAM"
    repeated: 4-byte tag, u32 size, payload, zero padding to a 4-byte boundary

The padding is not part of a chunk's declared size.  Each chunk payload is
handed to its decoder through a bounded cursor so no decoder can read past
its own chunk.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from .code.assembler import CodeSectionAssembler
from .config import DEFAULT_OPTIONS, ParseOptions
from .cursor import BytesLike, Cursor
from .exceptions import UnexpectedEof, UnknownChunkTag
from .literals import decode_literals
from .model import Ast, Chunk, ChunkBody, ChunkKind, EmptyBody, RawBody
from .tables import (
    decode_atoms,
    decode_exports,
    decode_functions,
    decode_imports,
    decode_utf8_atoms,
)

LOGGER = logging.getLogger(__name__)

__all__ = [
    "CHUNK_ALIGNMENT",
    "CHUNK_HEADER_SIZE",
    "ChunkFramer",
    "FORM_TAG",
    "FORM_TYPE",
    "parse",
    "parse_file",
]

FORM_TAG = b"FOR1"
FORM_TYPE = b"BEAM"
CHUNK_HEADER_SIZE = 8
CHUNK_ALIGNMENT = 4

ChunkDecoder = Callable[[Cursor, ParseOptions], ChunkBody]


def _raw(cursor: Cursor, options: ParseOptions) -> ChunkBody:
    return RawBody(cursor.slice(cursor.remaining()))


def _code(cursor: Cursor, options: ParseOptions) -> ChunkBody:
    return CodeSectionAssembler(cursor, options).assemble()


_DECODERS: Dict[ChunkKind, ChunkDecoder] = {
    ChunkKind.ATOM: lambda cursor, options: decode_atoms(cursor),
    ChunkKind.ATOM_UTF8: lambda cursor, options: decode_utf8_atoms(cursor),
    ChunkKind.EXPORT: lambda cursor, options: decode_exports(cursor),
    ChunkKind.LOCAL: lambda cursor, options: decode_exports(cursor),
    ChunkKind.IMPORT: lambda cursor, options: decode_imports(cursor),
    ChunkKind.FUNCTION: lambda cursor, options: decode_functions(cursor),
    ChunkKind.LITERAL: lambda cursor, options: decode_literals(cursor),
    ChunkKind.CODE: _code,
}


class ChunkFramer:
    """Split a container into decoded :class:`Chunk` records."""

    def __init__(self, data: BytesLike, options: Optional[ParseOptions] = None) -> None:
        self.cursor = Cursor(data)
        self.options = options or DEFAULT_OPTIONS

    def read_header(self) -> int:
        """Validate the form header and return the declared form length."""

        self.cursor.expect_literal(FORM_TAG)
        start = self.cursor.position
        form_length = self.cursor.read_u32()
        if form_length > self.cursor.remaining():
            raise UnexpectedEof(
                f"form length {form_length} exceeds the {self.cursor.remaining()} byte(s) available",
                offset=start,
            )
        self.cursor.expect_literal(FORM_TYPE)
        return form_length

    def read_chunk(self) -> Chunk:
        start = self.cursor.position
        if self.cursor.remaining() < CHUNK_HEADER_SIZE:
            raise UnexpectedEof(
                f"truncated chunk header ({self.cursor.remaining()} byte(s) left)", offset=start
            )
        tag = self.cursor.slice(4)
        kind = ChunkKind.from_tag(tag)
        if kind is None:
            raise UnknownChunkTag(tag, offset=start)
        size = self.cursor.read_u32()
        payload = self.cursor.sub_cursor(size)
        if size == 0:
            body: ChunkBody = EmptyBody()
        else:
            body = _DECODERS.get(kind, _raw)(payload, self.options)
        padding = self.cursor.align(CHUNK_ALIGNMENT)
        LOGGER.debug(
            "chunk %s at %d: %d byte(s) + %d padding", kind.tag, start, size, padding
        )
        return Chunk(kind=kind, declared_size=size, body=body)

    def chunks(self) -> List[Chunk]:
        self.read_header()
        chunks: List[Chunk] = []
        while not self.cursor.at_end():
            chunks.append(self.read_chunk())
        return chunks


def parse(data: BytesLike, options: Optional[ParseOptions] = None) -> Ast:
    """Decode a complete BEAM container.

    Either every chunk decodes and the full :class:`Ast` is returned, or a
    :class:`~beamwand.exceptions.BeamParseError` subclass is raised.
    """

    chunks = ChunkFramer(data, options).chunks()
    LOGGER.debug("parsed %d chunk(s)", len(chunks))
    return Ast(tuple(chunks))


def parse_file(path: Union[str, Path], options: Optional[ParseOptions] = None) -> Ast:
    return parse(Path(path).read_bytes(), options)
