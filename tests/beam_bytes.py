"""Byte builders for hand-assembled BEAM fixtures."""

from __future__ import annotations

import struct
import zlib
from typing import Iterable, Sequence, Tuple

# Code chunk stream from the reference fixture: label 1 followed by
# func_info {atom,1} {float,13.589} 0x1234.
REFERENCE_CODE = bytes(
    [
        0, 0, 0, 16,
        0, 0, 0, 0,
        0, 0, 0, 135,
        0, 0, 0, 0,
        0, 0, 0, 0,
        1, 16,
        2, 0x12,
        7, 0x40, 0x2B, 0x2D, 0x91, 0x68, 0x72, 0xB0, 0x21,
        0x18, 0x12, 0x34,
    ]
)


def u32(value: int) -> bytes:
    return struct.pack(">I", value)


def pad4(data: bytes) -> bytes:
    return data + b"\x00" * (-len(data) % 4)


def chunk(tag: bytes, payload: bytes) -> bytes:
    return tag + u32(len(payload)) + pad4(payload)


def container(*chunks: bytes, trailer: bytes = b"") -> bytes:
    body = b"BEAM" + b"".join(chunks) + trailer
    return b"FOR1" + u32(len(body)) + body


def atoms_payload(names: Sequence[str], encoding: str = "latin-1") -> bytes:
    out = bytearray(u32(len(names)))
    for name in names:
        raw = name.encode(encoding)
        out.append(len(raw))
        out += raw
    return bytes(out)


def records_payload(records: Iterable[Tuple[int, ...]]) -> bytes:
    rows = list(records)
    return u32(len(rows)) + b"".join(u32(field) for row in rows for field in row)


def blobs_payload(blobs: Sequence[bytes]) -> bytes:
    return u32(len(blobs)) + b"".join(u32(len(blob)) + blob for blob in blobs)


def literals_payload(blobs: Sequence[bytes], *, declared: int = -1) -> bytes:
    raw = blobs_payload(blobs)
    size = len(raw) if declared < 0 else declared
    return u32(size) + zlib.compress(raw)


def code_payload(stream: bytes, *, max_opcode: int = 178, labels: int = 0, functions: int = 0) -> bytes:
    return u32(16) + u32(0) + u32(max_opcode) + u32(labels) + u32(functions) + stream


SAMPLE_ATOMS = ("sample", "run", "erlang", "+")

SAMPLE_STREAM = bytes(
    [
        1, 0x10,                      # label 1
        2, 0x12, 0x22, 0x10,          # func_info {atom,sample} {atom,run} 1
        1, 0x20,                      # label 2
        12, 0x10, 0x10,               # allocate 1 1
        64, 0x47, 0, 0, 0, 0, 0x03,   # move {literal,0} x(0)
        16, 0x37, 0x10, 0x00, 0x20, 0x10,  # test_heap {alloc,[{words,2}]} 1
        18, 0x10,                     # deallocate 1
        19,                           # return
        3,                            # int_code_end
    ]
)

SAMPLE_LITERAL = b"\x83\x61\x2a"


def sample_module() -> bytes:
    return container(
        chunk(b"AtU8", atoms_payload(SAMPLE_ATOMS, "utf-8")),
        chunk(b"Code", code_payload(SAMPLE_STREAM, labels=3, functions=1)),
        chunk(b"StrT", b""),
        chunk(b"ImpT", records_payload([(3, 4, 2)])),
        chunk(b"ExpT", records_payload([(2, 1, 2)])),
        chunk(b"FunT", records_payload([(2, 0, 2, 0, 0, 12345)])),
        chunk(b"LitT", literals_payload([SAMPLE_LITERAL])),
        chunk(b"LocT", records_payload([])),
        chunk(b"Line", b"\x00\x00\x00\x00\x00"),
    )
