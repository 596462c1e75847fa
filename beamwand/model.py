"""Immutable data model produced by :func:`beamwand.parse`.

Every chunk body is one of a closed set of frozen dataclasses (see
:data:`ChunkBody`).  Consumers dispatch on the body type; nothing in the tree
is mutated once :func:`beamwand.framer.parse` returns it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union


class ChunkKind(Enum):
    """Recognised chunk tags, keyed by their four ASCII bytes."""

    ATOM = b"Atom"
    ATOM_UTF8 = b"AtU8"
    EXPORT = b"ExpT"
    IMPORT = b"ImpT"
    CODE = b"Code"
    STRING = b"StrT"
    LITERAL = b"LitT"
    FUNCTION = b"FunT"
    ATTR = b"Attr"
    CINFO = b"CInf"
    LOCAL = b"LocT"
    ABST = b"Abst"
    LINE = b"Line"
    TRACE = b"Trac"
    DEBUG_INFO = b"Dbgi"
    DOCS = b"Docs"
    EXPORT_CHECK = b"ExCk"
    TYPE = b"Type"
    META = b"Meta"

    @property
    def tag(self) -> str:
        return self.value.decode("ascii")

    @classmethod
    def from_tag(cls, tag: bytes) -> Optional["ChunkKind"]:
        try:
            return cls(bytes(tag))
        except ValueError:
            return None


class OperandTag(Enum):
    """Operand families: the seven base tags plus the extended sub-formats."""

    U = "u"
    I = "i"
    A = "a"
    X = "x"
    Y = "y"
    F = "f"
    H = "h"
    FLOAT = "float"
    LIST = "list"
    FR = "fr"
    ALLOC_LIST = "alloc_list"
    LITERAL = "literal"

    @property
    def is_base(self) -> bool:
        return self in BASE_TAGS


# Indexed by the low three bits of an operand tag byte; 7 is the extended marker.
BASE_TAGS: Tuple[OperandTag, ...] = (
    OperandTag.U,
    OperandTag.I,
    OperandTag.A,
    OperandTag.X,
    OperandTag.Y,
    OperandTag.F,
    OperandTag.H,
)


class AllocKind(IntEnum):
    WORDS = 0
    FLOATS = 1
    LITERAL = 2


@dataclass(frozen=True)
class AllocListItem:
    kind: AllocKind
    count: int

    def as_dict(self) -> Dict[str, object]:
        return {"kind": self.kind.name.lower(), "count": self.count}


OperandValue = Union[int, float, Tuple[AllocListItem, ...]]


@dataclass(frozen=True)
class Operand:
    """A decoded operand; ``tag`` fixes the shape of ``value``."""

    tag: OperandTag
    value: OperandValue

    def as_dict(self) -> Dict[str, object]:
        if self.tag is OperandTag.ALLOC_LIST:
            value: object = [item.as_dict() for item in self.value]  # type: ignore[union-attr]
        else:
            value = self.value
        return {"tag": self.tag.value, "value": value}


@dataclass(frozen=True)
class Instruction:
    opcode: int
    operands: Tuple[Operand, ...] = ()

    @property
    def name(self) -> str:
        from .code.opcodes import name_of

        return name_of(self.opcode)

    def as_dict(self) -> Dict[str, object]:
        return {
            "opcode": self.opcode,
            "name": self.name,
            "operands": [operand.as_dict() for operand in self.operands],
        }


LabelMap = Mapping[int, Tuple[Instruction, ...]]


# Chunk bodies -------------------------------------------------------------


@dataclass(frozen=True)
class EmptyBody:
    """Body of any chunk whose declared size is zero."""

    def as_dict(self) -> Dict[str, object]:
        return {"type": "empty"}


@dataclass(frozen=True)
class RawBody:
    """Undecoded payload of a chunk this package does not interpret."""

    data: bytes

    def as_dict(self) -> Dict[str, object]:
        return {"type": "raw", "size": len(self.data), "data": self.data.hex()}


@dataclass(frozen=True)
class AtomTable:
    """Atom names addressed by 1-based index."""

    names: Tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.names)

    def __getitem__(self, index: int) -> str:
        if not 1 <= index <= len(self.names):
            raise KeyError(index)
        return self.names[index - 1]

    def get(self, index: int, default: Optional[str] = None) -> Optional[str]:
        try:
            return self[index]
        except KeyError:
            return default

    def items(self) -> Iterator[Tuple[int, str]]:
        return iter(enumerate(self.names, start=1))

    def as_mapping(self) -> Dict[int, str]:
        return dict(self.items())

    def as_dict(self) -> Dict[str, object]:
        return {"type": "atoms", "atoms": {str(index): name for index, name in self.items()}}


@dataclass(frozen=True)
class ImportEntry:
    module: int
    function: int
    arity: int


@dataclass(frozen=True)
class ExportEntry:
    function: int
    arity: int
    label: int


@dataclass(frozen=True)
class FunctionEntry:
    """One lambda table record."""

    function: int
    arity: int
    label: int
    index: int
    free_vars: int
    old_uniq: int


@dataclass(frozen=True)
class ImportTable:
    entries: Tuple[ImportEntry, ...] = ()

    def as_dict(self) -> Dict[str, object]:
        return {"type": "imports", "entries": [vars(entry) for entry in self.entries]}


@dataclass(frozen=True)
class ExportTable:
    """Export or local function table; both share one record layout."""

    entries: Tuple[ExportEntry, ...] = ()

    def as_dict(self) -> Dict[str, object]:
        return {"type": "exports", "entries": [vars(entry) for entry in self.entries]}


@dataclass(frozen=True)
class FunctionTable:
    entries: Tuple[FunctionEntry, ...] = ()

    def as_dict(self) -> Dict[str, object]:
        return {"type": "functions", "entries": [vars(entry) for entry in self.entries]}


@dataclass(frozen=True)
class LiteralTable:
    """Opaque external-term blobs referenced by ``literal`` operands."""

    blobs: Tuple[bytes, ...] = ()

    def __len__(self) -> int:
        return len(self.blobs)

    def as_dict(self) -> Dict[str, object]:
        return {"type": "literals", "blobs": [blob.hex() for blob in self.blobs]}


@dataclass(frozen=True)
class CodeHeader:
    header_size: int
    format: int
    max_opcode: int
    label_count: int
    function_count: int


@dataclass(frozen=True)
class CodeSection:
    header: CodeHeader
    labels: LabelMap = field(default_factory=lambda: MappingProxyType({}))

    @property
    def instruction_count(self) -> int:
        return sum(len(block) for block in self.labels.values())

    def as_dict(self) -> Dict[str, object]:
        return {
            "type": "code",
            "header": vars(self.header),
            "labels": {
                str(label): [instruction.as_dict() for instruction in block]
                for label, block in self.labels.items()
            },
        }


ChunkBody = Union[
    EmptyBody,
    RawBody,
    AtomTable,
    ImportTable,
    ExportTable,
    FunctionTable,
    LiteralTable,
    CodeSection,
]


@dataclass(frozen=True)
class Chunk:
    kind: ChunkKind
    declared_size: int
    body: ChunkBody

    def as_dict(self) -> Dict[str, object]:
        return {
            "kind": self.kind.name.lower(),
            "tag": self.kind.tag,
            "size": self.declared_size,
            "body": self.body.as_dict(),
        }


@dataclass(frozen=True)
class Ast:
    """Every chunk of one container, in file order."""

    chunks: Tuple[Chunk, ...] = ()

    def __len__(self) -> int:
        return len(self.chunks)

    def __iter__(self) -> Iterator[Chunk]:
        return iter(self.chunks)

    def chunk(self, kind: ChunkKind) -> Optional[Chunk]:
        """Return the first chunk of ``kind`` or ``None``."""

        for chunk in self.chunks:
            if chunk.kind is kind:
                return chunk
        return None

    def kinds(self) -> List[ChunkKind]:
        return [chunk.kind for chunk in self.chunks]

    @property
    def atoms(self) -> Optional[AtomTable]:
        for kind in (ChunkKind.ATOM_UTF8, ChunkKind.ATOM):
            chunk = self.chunk(kind)
            if chunk is not None and isinstance(chunk.body, AtomTable):
                return chunk.body
        return None

    @property
    def code(self) -> Optional[CodeSection]:
        chunk = self.chunk(ChunkKind.CODE)
        if chunk is not None and isinstance(chunk.body, CodeSection):
            return chunk.body
        return None

    @property
    def literals(self) -> Optional[LiteralTable]:
        chunk = self.chunk(ChunkKind.LITERAL)
        if chunk is not None and isinstance(chunk.body, LiteralTable):
            return chunk.body
        return None

    def as_dict(self) -> Dict[str, object]:
        return {"chunks": [chunk.as_dict() for chunk in self.chunks]}


__all__ = [
    "AllocKind",
    "AllocListItem",
    "Ast",
    "AtomTable",
    "BASE_TAGS",
    "Chunk",
    "ChunkBody",
    "ChunkKind",
    "CodeHeader",
    "CodeSection",
    "EmptyBody",
    "ExportEntry",
    "ExportTable",
    "FunctionEntry",
    "FunctionTable",
    "ImportEntry",
    "ImportTable",
    "Instruction",
    "LabelMap",
    "LiteralTable",
    "Operand",
    "OperandTag",
    "OperandValue",
    "RawBody",
]
