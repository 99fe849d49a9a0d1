"""Tests for payload interpretation into registers and bit states."""

import pytest
from conftest import make_response

from pyrtu_modbus import (
    BitState,
    FunctionCode,
    LengthMismatchError,
    PayloadLengthMismatchError,
    ReadRequest,
    RegisterValue,
    ResponseFrame,
    decode_readings,
    decode_response,
)


def frame_with(payload: bytes, function: FunctionCode) -> ResponseFrame:
    return ResponseFrame(raw=b"", slave=1, function=function, payload=payload)


@pytest.mark.parametrize("function", [FunctionCode.READ_HOLDING_REGISTERS, FunctionCode.READ_INPUT_REGISTERS])
def test_registers_big_endian_in_wire_order(function: FunctionCode) -> None:
    request = ReadRequest(slave=1, function=function, address=100, count=2)
    readings = decode_readings(frame_with(bytes.fromhex("04D2162E"), function), request)
    assert [r.value for r in readings] == [1234, 5678]
    assert readings[0] == RegisterValue(function=function, offset=0, value=1234)
    assert readings[1].offset == 1
    assert readings[1].absolute_address(request.address) == 101


@pytest.mark.parametrize("function", [FunctionCode.READ_COILS, FunctionCode.READ_DISCRETE_INPUTS])
def test_bits_lsb_first(function: FunctionCode) -> None:
    request = ReadRequest(slave=1, function=function, address=0, count=8)
    readings = decode_readings(frame_with(b"\x4d", function), request)
    assert [int(r.value) for r in readings] == [1, 0, 1, 1, 0, 0, 1, 0]
    assert all(isinstance(r, BitState) and r.function is function for r in readings)


def test_bits_padding_discarded() -> None:
    # 10 coils: 0xCD = 1100 1101, then only the two low bits of 0xFF count
    request = ReadRequest(slave=1, function=FunctionCode.READ_COILS, address=19, count=10)
    readings = decode_readings(frame_with(b"\xcd\xff", FunctionCode.READ_COILS), request)
    assert len(readings) == 10
    assert [int(r.value) for r in readings] == [1, 0, 1, 1, 0, 0, 1, 1, 1, 1]
    assert readings[-1].offset == 9


def test_register_payload_length_mismatch() -> None:
    request = ReadRequest(slave=1, function=FunctionCode.READ_HOLDING_REGISTERS, address=0, count=3)
    with pytest.raises(PayloadLengthMismatchError) as exc_info:
        decode_readings(frame_with(bytes.fromhex("04D2162E"), FunctionCode.READ_HOLDING_REGISTERS), request)
    assert exc_info.value.expected == 6
    assert exc_info.value.received == 4
    assert isinstance(exc_info.value, LengthMismatchError)


def test_bit_payload_length_mismatch() -> None:
    request = ReadRequest(slave=1, function=FunctionCode.READ_COILS, address=0, count=9)
    with pytest.raises(PayloadLengthMismatchError):
        decode_readings(frame_with(b"\x01", FunctionCode.READ_COILS), request)


def test_full_response_to_readings() -> None:
    request = ReadRequest(slave=3, function=FunctionCode.READ_DISCRETE_INPUTS, address=196, count=22)
    raw = make_response(3, 0x02, bytes.fromhex("ACDB35"))
    readings = decode_readings(decode_response(raw, request), request)
    assert len(readings) == 22
    # 0xAC = 1010 1100 -> LSB first 0,0,1,1,0,1,0,1
    assert [int(r.value) for r in readings[:8]] == [0, 0, 1, 1, 0, 1, 0, 1]
    # 0x35 = 0011 0101 -> only the low 6 bits count
    assert [int(r.value) for r in readings[16:]] == [1, 0, 1, 0, 1, 1]


def test_max_register_quantity_decodes() -> None:
    request = ReadRequest(slave=1, function=FunctionCode.READ_INPUT_REGISTERS, address=0, count=125)
    payload = b"".join(i.to_bytes(2, "big") for i in range(125))
    readings = decode_readings(frame_with(payload, FunctionCode.READ_INPUT_REGISTERS), request)
    assert [r.value for r in readings] == list(range(125))


def test_unhandled_function_code_fails_loudly() -> None:
    request = ReadRequest(slave=1, function=FunctionCode.READ_HOLDING_REGISTERS, address=0, count=1)
    object.__setattr__(request, "function", 5)
    with pytest.raises(AssertionError):
        decode_readings(frame_with(bytes(2), FunctionCode.READ_HOLDING_REGISTERS), request)
