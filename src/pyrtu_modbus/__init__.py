"""pyrtu-modbus: Modbus RTU master for reading coils, inputs and registers over a serial link."""

__version__ = "0.1.0"

from .config import ReadRequest, SerialConfig
from .errors import (
    CrcMismatchError,
    FrameError,
    FrameTooShortError,
    FunctionMismatchError,
    InvalidConfigError,
    InvalidRequestError,
    LengthMismatchError,
    ModbusExceptionError,
    PayloadLengthMismatchError,
    PyRTUModbusError,
    ResponseTimeoutError,
    SerialIOError,
    SlaveMismatchError,
)
from .framing import RequestFrame, ResponseFrame, crc16, decode_response, encode_request
from .master import RTUMaster
from .pdu import decode_readings
from .transport import PortInfo, list_ports, open_channel
from .types import (
    BitState,
    ExceptionCode,
    FunctionCode,
    Parity,
    Reading,
    RegisterValue,
    TransactionState,
)

__all__ = [
    "__version__",
    "RTUMaster",
    "ReadRequest",
    "SerialConfig",
    "CrcMismatchError",
    "FrameError",
    "FrameTooShortError",
    "FunctionMismatchError",
    "InvalidConfigError",
    "InvalidRequestError",
    "LengthMismatchError",
    "ModbusExceptionError",
    "PayloadLengthMismatchError",
    "PyRTUModbusError",
    "ResponseTimeoutError",
    "SerialIOError",
    "SlaveMismatchError",
    "RequestFrame",
    "ResponseFrame",
    "crc16",
    "decode_response",
    "encode_request",
    "decode_readings",
    "PortInfo",
    "list_ports",
    "open_channel",
    "BitState",
    "ExceptionCode",
    "FunctionCode",
    "Parity",
    "Reading",
    "RegisterValue",
    "TransactionState",
]
