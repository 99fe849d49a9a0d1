"""RTU frame codec: CRC-16, request encoding, response validation."""

import logging
import struct
from dataclasses import dataclass

from .config import ReadRequest
from .errors import (
    CrcMismatchError,
    FrameTooShortError,
    FunctionMismatchError,
    InvalidRequestError,
    LengthMismatchError,
    ModbusExceptionError,
    SlaveMismatchError,
)
from .types import FunctionCode

logger = logging.getLogger(__name__)

EXCEPTION_FLAG = 0x80
# slave + function + byte count/exception code + CRC
MIN_RESPONSE_LENGTH = 5
EXCEPTION_RESPONSE_LENGTH = 5
HEADER_LENGTH = 3
REQUEST_LENGTH = 8


def crc16(data: bytes) -> int:
    """Compute the Modbus CRC-16 (poly 0xA001 reflected, init 0xFFFF)."""
    crc = 0xFFFF
    for byte in data:
        crc ^= byte
        for _ in range(8):
            if crc & 0x0001:
                crc = (crc >> 1) ^ 0xA001
            else:
                crc >>= 1
    return crc & 0xFFFF


def append_crc(body: bytes) -> bytes:
    """Return body followed by its CRC-16, low byte first."""
    return body + struct.pack("<H", crc16(body))


def _check_crc(raw: bytes) -> None:
    computed = crc16(raw[:-2])
    carried = struct.unpack("<H", raw[-2:])[0]
    if computed != carried:
        raise CrcMismatchError(expected=computed, received=carried, raw=raw)


@dataclass(frozen=True)
class RequestFrame:
    """An encoded read request: slave, function code, PDU data and CRC."""

    slave: int
    function: FunctionCode
    pdu: bytes
    crc: int

    def to_bytes(self) -> bytes:
        return bytes([self.slave]) + self.pdu + struct.pack("<H", self.crc)

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    @property
    def address(self) -> int:
        return struct.unpack(">H", self.pdu[1:3])[0]

    @property
    def count(self) -> int:
        return struct.unpack(">H", self.pdu[3:5])[0]

    @classmethod
    def from_bytes(cls, raw: bytes) -> "RequestFrame":
        """Parse an encoded read request, checking length and CRC."""
        if len(raw) != REQUEST_LENGTH:
            raise FrameTooShortError(f"Read request must be {REQUEST_LENGTH} bytes, got {len(raw)}", raw=raw)
        _check_crc(raw)
        try:
            function = FunctionCode(raw[1])
        except ValueError:
            raise InvalidRequestError("function", raw[1], f"Not a read function code: 0x{raw[1]:02X}") from None
        return cls(
            slave=raw[0],
            function=function,
            pdu=raw[1:-2],
            crc=struct.unpack("<H", raw[-2:])[0],
        )


@dataclass(frozen=True)
class ResponseFrame:
    """A response that passed every codec check; payload excludes the byte-count field."""

    raw: bytes
    slave: int
    function: FunctionCode
    payload: bytes


def encode_request(request: ReadRequest) -> RequestFrame:
    """Build the RTU frame for a read request."""
    request.validate()
    pdu = struct.pack(">BHH", request.function, request.address, request.count)
    body = bytes([request.slave]) + pdu
    frame = RequestFrame(slave=request.slave, function=request.function, pdu=pdu, crc=crc16(body))
    logger.debug("Encoded %s -> %s", request, frame.to_bytes().hex(" "))
    return frame


def response_length(header: bytes, expected: ReadRequest) -> int:
    """
    Total frame length implied by the first three bytes of a response.

    Exception responses are always five bytes. Normal responses are never read
    past the length the request implies: the byte-count field is not yet
    CRC-checked, so a shorter claim is honoured and a longer one is capped.
    Anything else falls back to the request-implied length so the frame is
    consumed and rejected by decode_response.
    """
    function = header[1]
    if function == (expected.function | EXCEPTION_FLAG):
        return EXCEPTION_RESPONSE_LENGTH
    if function == expected.function:
        return min(HEADER_LENGTH + header[2] + 2, expected.expected_response_length)
    return expected.expected_response_length


def decode_response(raw: bytes, expected: ReadRequest) -> ResponseFrame:
    """
    Validate a complete response frame against the request that produced it.

    Checks run in order: minimum length, CRC, slave address, function code
    (raising ModbusExceptionError for exception responses), byte count.
    """
    raw = bytes(raw)
    if len(raw) < MIN_RESPONSE_LENGTH:
        raise FrameTooShortError(
            f"Response too short: {len(raw)} byte(s), need at least {MIN_RESPONSE_LENGTH}", raw=raw
        )
    _check_crc(raw)

    slave = raw[0]
    if slave != expected.slave:
        raise SlaveMismatchError(expected=expected.slave, received=slave, raw=raw)

    function = raw[1]
    if function == (expected.function | EXCEPTION_FLAG):
        raise ModbusExceptionError(expected.function, raw[2])
    if function != expected.function:
        raise FunctionMismatchError(expected=expected.function, received=function, raw=raw)

    byte_count = raw[2]
    payload = raw[HEADER_LENGTH:-2]
    if byte_count != len(payload):
        raise LengthMismatchError(
            f"Byte count field says {byte_count}, frame carries {len(payload)} payload byte(s)",
            expected=byte_count,
            received=len(payload),
            raw=raw,
        )
    if byte_count != expected.expected_byte_count:
        raise LengthMismatchError(
            f"Byte count {byte_count} does not match {expected.count} requested "
            f"{'bit(s)' if expected.function.is_bit_access else 'register(s)'} "
            f"({expected.expected_byte_count} byte(s))",
            expected=expected.expected_byte_count,
            received=byte_count,
            raw=raw,
        )
    return ResponseFrame(raw=raw, slave=slave, function=expected.function, payload=payload)
