"""Count-prefixed fixed-record chunk decoders.

Atom, import, export/local and lambda tables share one shape: a 32-bit
record count followed by exactly that many records.  Cursor failures
propagate unchanged; bytes left over after the last record are an error.
"""

from __future__ import annotations

from typing import Callable, List, Tuple, TypeVar

from .cursor import Cursor
from .exceptions import MalformedChunk
from .model import (
    AtomTable,
    ExportEntry,
    ExportTable,
    FunctionEntry,
    FunctionTable,
    ImportEntry,
    ImportTable,
)

__all__ = [
    "decode_atoms",
    "decode_exports",
    "decode_functions",
    "decode_imports",
    "decode_utf8_atoms",
    "expect_consumed",
]

_Record = TypeVar("_Record")


def expect_consumed(cursor: Cursor, what: str) -> None:
    if not cursor.at_end():
        raise MalformedChunk(
            f"{cursor.remaining()} unread byte(s) after {what}", offset=cursor.position
        )


def _read_records(cursor: Cursor, read_one: Callable[[Cursor], _Record]) -> Tuple[_Record, ...]:
    count = cursor.read_u32()
    records: List[_Record] = [read_one(cursor) for _ in range(count)]
    return tuple(records)


def _atom_reader(encoding: str) -> Callable[[Cursor], str]:
    def read_atom(cursor: Cursor) -> str:
        length = cursor.read_u8()
        return cursor.slice(length).decode(encoding)

    return read_atom


def decode_atoms(cursor: Cursor) -> AtomTable:
    """Decode an ``Atom`` chunk; index 1 is the first name in the payload."""

    table = AtomTable(_read_records(cursor, _atom_reader("latin-1")))
    expect_consumed(cursor, "atom table")
    return table


def decode_utf8_atoms(cursor: Cursor) -> AtomTable:
    table = AtomTable(_read_records(cursor, _atom_reader("utf-8")))
    expect_consumed(cursor, "atom table")
    return table


def _read_import(cursor: Cursor) -> ImportEntry:
    return ImportEntry(
        module=cursor.read_u32(),
        function=cursor.read_u32(),
        arity=cursor.read_u32(),
    )


def _read_export(cursor: Cursor) -> ExportEntry:
    return ExportEntry(
        function=cursor.read_u32(),
        arity=cursor.read_u32(),
        label=cursor.read_u32(),
    )


def _read_function(cursor: Cursor) -> FunctionEntry:
    return FunctionEntry(
        function=cursor.read_u32(),
        arity=cursor.read_u32(),
        label=cursor.read_u32(),
        index=cursor.read_u32(),
        free_vars=cursor.read_u32(),
        old_uniq=cursor.read_u32(),
    )


def decode_imports(cursor: Cursor) -> ImportTable:
    table = ImportTable(_read_records(cursor, _read_import))
    expect_consumed(cursor, "import table")
    return table


def decode_exports(cursor: Cursor) -> ExportTable:
    """Decode an export or local function table."""

    table = ExportTable(_read_records(cursor, _read_export))
    expect_consumed(cursor, "export table")
    return table


def decode_functions(cursor: Cursor) -> FunctionTable:
    table = FunctionTable(_read_records(cursor, _read_function))
    expect_consumed(cursor, "lambda table")
    return table
