"""Text and JSON views of a decoded :class:`~beamwand.model.Ast`."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from .model import (
    AllocListItem,
    Ast,
    AtomTable,
    Chunk,
    CodeSection,
    EmptyBody,
    ExportTable,
    FunctionTable,
    ImportTable,
    LiteralTable,
    Operand,
    OperandTag,
    RawBody,
)

LOGGER = logging.getLogger(__name__)

__all__ = [
    "ast_to_dict",
    "format_ast",
    "format_chunk",
    "format_operand",
    "write_json",
]

_PREVIEW_BYTES = 16


def ast_to_dict(ast: Ast) -> Dict[str, object]:
    return ast.as_dict()


def write_json(path: Path, ast: Ast) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(ast_to_dict(ast), indent=2), encoding="utf8")
    LOGGER.info("Wrote JSON report to %s", path)
    return path


def _atom(index: int, atoms: Optional[AtomTable]) -> str:
    if atoms is not None:
        name = atoms.get(index)
        if name is not None:
            return name
    return f"#{index}"


def format_operand(operand: Operand, atoms: Optional[AtomTable] = None) -> str:
    """Render ``operand`` in assembler notation (``x(0)``, ``{atom,foo}`` ...)."""

    tag = operand.tag
    value = operand.value
    if tag is OperandTag.U:
        return str(value)
    if tag is OperandTag.I:
        return f"{{integer,{value}}}"
    if tag is OperandTag.A:
        if value == 0:
            return "nil"
        return f"{{atom,{_atom(int(value), atoms)}}}"  # type: ignore[arg-type]
    if tag in (OperandTag.X, OperandTag.Y):
        return f"{tag.value}({value})"
    if tag is OperandTag.F:
        return f"{{f,{value}}}"
    if tag is OperandTag.H:
        return f"{{char,{value}}}"
    if tag is OperandTag.FLOAT:
        return f"{{float,{value!r}}}"
    if tag is OperandTag.LIST:
        return f"{{list,{value}}}"
    if tag is OperandTag.FR:
        return f"{{fr,{value}}}"
    if tag is OperandTag.ALLOC_LIST:
        items: List[AllocListItem] = list(value)  # type: ignore[arg-type]
        inner = ",".join(f"{{{item.kind.name.lower()},{item.count}}}" for item in items)
        return f"{{alloc,[{inner}]}}"
    return f"{{literal,{value}}}"


def _preview(data: bytes) -> str:
    text = data[:_PREVIEW_BYTES].hex()
    if len(data) > _PREVIEW_BYTES:
        text += "..."
    return text


def _format_body(chunk: Chunk, atoms: Optional[AtomTable]) -> List[str]:
    body = chunk.body
    if isinstance(body, EmptyBody):
        return []
    if isinstance(body, RawBody):
        return [f"  raw {_preview(body.data)}"]
    if isinstance(body, AtomTable):
        return [f"  {index:>4} {name}" for index, name in body.items()]
    if isinstance(body, ImportTable):
        return [
            f"  {_atom(entry.module, atoms)}:{_atom(entry.function, atoms)}/{entry.arity}"
            for entry in body.entries
        ]
    if isinstance(body, ExportTable):
        return [
            f"  {_atom(entry.function, atoms)}/{entry.arity} -> label {entry.label}"
            for entry in body.entries
        ]
    if isinstance(body, FunctionTable):
        return [
            f"  {_atom(entry.function, atoms)}/{entry.arity} label={entry.label} "
            f"index={entry.index} free={entry.free_vars} uniq={entry.old_uniq}"
            for entry in body.entries
        ]
    if isinstance(body, LiteralTable):
        return [f"  {index:>4} {_preview(blob)}" for index, blob in enumerate(body.blobs)]
    if isinstance(body, CodeSection):
        return _format_code(body, atoms)
    raise TypeError(f"unsupported chunk body {type(body).__name__}")


def _format_code(code: CodeSection, atoms: Optional[AtomTable]) -> List[str]:
    header = code.header
    lines = [
        f"  format={header.format} max_opcode={header.max_opcode} "
        f"labels={header.label_count} functions={header.function_count}"
    ]
    for label, block in code.labels.items():
        lines.append(f"  label {label}:")
        for instruction in block:
            operands = ", ".join(format_operand(operand, atoms) for operand in instruction.operands)
            lines.append(f"    {instruction.name} {operands}".rstrip())
    return lines


def format_chunk(chunk: Chunk, atoms: Optional[AtomTable] = None) -> str:
    lines = [f"{chunk.kind.tag} ({chunk.kind.name.lower()}, {chunk.declared_size} bytes)"]
    lines.extend(_format_body(chunk, atoms))
    return "\n".join(lines)


def format_ast(ast: Ast) -> str:
    atoms = ast.atoms
    return "\n".join(format_chunk(chunk, atoms) for chunk in ast)
