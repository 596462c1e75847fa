import struct

import pytest

from beamwand.config import ParseOptions
from beamwand.code.operands import decode_operand, decode_operands
from beamwand.exceptions import IntegerTooWide, MalformedOperand, UnexpectedEof
from beamwand.model import AllocKind, AllocListItem, Operand, OperandTag


@pytest.mark.parametrize(
    "payload,expected",
    [
        (b"\x00", Operand(OperandTag.U, 0)),
        (b"\x10", Operand(OperandTag.U, 1)),
        (b"\xf0", Operand(OperandTag.U, 15)),
        (b"\x12", Operand(OperandTag.A, 1)),
        (b"\x03", Operand(OperandTag.X, 0)),
        (b"\x24", Operand(OperandTag.Y, 2)),
        (b"\x35", Operand(OperandTag.F, 3)),
        (b"\x46", Operand(OperandTag.H, 4)),
    ],
)
def test_compact_form_uses_top_nibble(payload: bytes, expected: Operand) -> None:
    operand, consumed = decode_operand(payload)
    assert operand == expected
    assert consumed == 1


def test_eleven_bit_form_combines_tag_and_next_byte() -> None:
    tag = 0xE8
    operand, consumed = decode_operand(bytes([tag, 0xFF]))
    assert operand == Operand(OperandTag.U, ((tag & 0xE0) << 3) | 0xFF)
    assert operand.value == 2047
    assert consumed == 2


def test_eleven_bit_form_low_values() -> None:
    operand, _ = decode_operand(b"\x09\x05")
    assert operand == Operand(OperandTag.I, 5)


def test_long_form_two_bytes() -> None:
    operand, consumed = decode_operand(b"\x18\x12\x34")
    assert operand == Operand(OperandTag.U, 0x1234)
    assert consumed == 3


def test_long_form_negative_masks_top_bit() -> None:
    operand, _ = decode_operand(b"\x19\x80\x05")
    assert operand == Operand(OperandTag.I, -5)
    operand, _ = decode_operand(b"\x39\x81\x00\x00")
    assert operand == Operand(OperandTag.I, -65536)
    operand, _ = decode_operand(b"\x39\x01\x00\x00")
    assert operand == Operand(OperandTag.I, 65536)


@pytest.mark.parametrize("magnitude", [b"\xff\xff\xff\xfe", b"\x80\x00\x00\x00", b"\x00\x00\x00\x01"])
def test_four_byte_long_form_never_changes_sign(magnitude: bytes) -> None:
    operand, consumed = decode_operand(b"\x59" + magnitude)
    assert operand.tag is OperandTag.I
    assert operand.value == int.from_bytes(magnitude, "big")
    assert consumed == 5


def test_escaped_length_is_decoded_from_next_byte() -> None:
    operand, consumed = decode_operand(b"\xf9\x30\x01\x02\x03")
    assert operand == Operand(OperandTag.I, 0x010203)
    assert consumed == 5


def test_escaped_length_respects_integer_width() -> None:
    payload = b"\xf9\x90" + b"\x00" * 8 + b"\x2a"
    with pytest.raises(IntegerTooWide):
        decode_operand(payload)
    operand, consumed = decode_operand(payload, ParseOptions(max_integer_bytes=9))
    assert operand == Operand(OperandTag.I, 42)
    assert consumed == len(payload)


def test_escaped_length_must_be_positive() -> None:
    with pytest.raises(MalformedOperand):
        decode_operand(b"\xf9\x00\x2a")


def test_nested_length_escape_is_rejected() -> None:
    with pytest.raises(IntegerTooWide, match="nested"):
        decode_operand(b"\xf9\xf8\x00" + b"\x00" * 32, ParseOptions(max_integer_bytes=64))


def test_extended_float() -> None:
    operand, consumed = decode_operand(b"\x07" + struct.pack(">d", 13.589))
    assert operand == Operand(OperandTag.FLOAT, 13.589)
    assert consumed == 9


def test_extended_list_is_a_bare_marker() -> None:
    operand, consumed = decode_operand(b"\x17\x30\x12")
    assert operand == Operand(OperandTag.LIST, 1)
    assert consumed == 1


def test_extended_fr_aliases_inner_value() -> None:
    operand, consumed = decode_operand(b"\x27\x13")
    assert operand == Operand(OperandTag.FR, 1)
    assert consumed == 2


def test_nested_fr_alias_is_rejected() -> None:
    with pytest.raises(IntegerTooWide):
        decode_operand(b"\x27\x27\x13")
    operand, _ = decode_operand(b"\x27\x27\x13", ParseOptions(max_depth=3))
    assert operand == Operand(OperandTag.FR, 1)


def test_extended_alloc_list() -> None:
    operand, consumed = decode_operand(b"\x37\x20\x00\x30\x10\x10")
    assert operand.tag is OperandTag.ALLOC_LIST
    assert operand.value == (
        AllocListItem(AllocKind.WORDS, 3),
        AllocListItem(AllocKind.FLOATS, 1),
    )
    assert consumed == 6


def test_alloc_list_rejects_unknown_kind() -> None:
    with pytest.raises(MalformedOperand, match="allocation list kind 3"):
        decode_operand(b"\x37\x10\x30\x10")


def test_integer_position_rejects_extended_tag() -> None:
    with pytest.raises(MalformedOperand):
        decode_operand(b"\x37\x07")


@pytest.mark.parametrize(
    "payload,index",
    [
        (b"\x47\x00\x00\x00\x05", 5),
        (b"\x5f\x00\x00\x00\x05", 5),
        (b"\x67\x00\x00\x00\x01\x00", 256),
        (b"\xf7\x10\x07", 7),
    ],
)
def test_remaining_nibbles_read_literal_index_from_tag_byte(payload: bytes, index: int) -> None:
    operand, consumed = decode_operand(payload)
    assert operand == Operand(OperandTag.LITERAL, index)
    assert consumed == len(payload)


def test_truncated_operand_is_unexpected_eof() -> None:
    with pytest.raises(UnexpectedEof):
        decode_operand(b"\x18\x12")
    with pytest.raises(UnexpectedEof):
        decode_operand(b"\x07\x40\x2b")


def test_decode_operands_consumes_sequentially() -> None:
    operands, consumed = decode_operands(b"\x12\x07" + struct.pack(">d", 13.589) + b"\x18\x12\x34", 3)
    assert operands == [
        Operand(OperandTag.A, 1),
        Operand(OperandTag.FLOAT, 13.589),
        Operand(OperandTag.U, 0x1234),
    ]
    assert consumed == 13
