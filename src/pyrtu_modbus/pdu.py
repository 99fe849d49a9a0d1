"""Interpret validated response payloads as registers or bit states."""

from typing_extensions import assert_never

from .config import ReadRequest
from .errors import PayloadLengthMismatchError
from .framing import ResponseFrame
from .types import BitState, FunctionCode, Reading, RegisterValue


def _decode_registers(payload: bytes, request: ReadRequest) -> list[Reading]:
    expected = request.count * 2
    if len(payload) != expected:
        raise PayloadLengthMismatchError(
            f"Register payload is {len(payload)} byte(s), expected {expected}",
            expected=expected,
            received=len(payload),
        )
    return [
        RegisterValue(
            function=request.function,
            offset=i,
            value=(payload[2 * i] << 8) | payload[2 * i + 1],
        )
        for i in range(request.count)
    ]


def _decode_bits(payload: bytes, request: ReadRequest) -> list[Reading]:
    expected = (request.count + 7) // 8
    if len(payload) != expected:
        raise PayloadLengthMismatchError(
            f"Bit payload is {len(payload)} byte(s), expected {expected}",
            expected=expected,
            received=len(payload),
        )
    # LSB of the first byte is the starting address; padding bits in the last byte are dropped
    return [
        BitState(
            function=request.function,
            offset=i,
            value=bool((payload[i // 8] >> (i % 8)) & 0x01),
        )
        for i in range(request.count)
    ]


def decode_readings(frame: ResponseFrame, request: ReadRequest) -> list[Reading]:
    """Decode a validated response into one Reading per requested item, in address order."""
    function = request.function
    if function is FunctionCode.READ_COILS:
        return _decode_bits(frame.payload, request)
    elif function is FunctionCode.READ_DISCRETE_INPUTS:
        return _decode_bits(frame.payload, request)
    elif function is FunctionCode.READ_HOLDING_REGISTERS:
        return _decode_registers(frame.payload, request)
    elif function is FunctionCode.READ_INPUT_REGISTERS:
        return _decode_registers(frame.payload, request)
    else:
        # Every FunctionCode member needs a branch above
        assert_never(function)
