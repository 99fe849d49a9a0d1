"""Exceptions for pyrtu-modbus: configuration, serial I/O, framing and device-reported errors."""

from typing import Any

from .types import ExceptionCode


class PyRTUModbusError(Exception):
    """Base exception for pyrtu-modbus."""

    pass


class InvalidConfigError(PyRTUModbusError):
    """Raised when a serial or request parameter is out of range."""

    def __init__(self, field: str, value: Any, message: str | None = None) -> None:
        self.field = field
        self.value = value
        self._msg = message or f"Invalid {field}: {value!r}"
        super().__init__(self._msg)


class InvalidRequestError(InvalidConfigError):
    """Raised when a read request violates the protocol limits for its function code."""

    pass


class SerialIOError(PyRTUModbusError):
    """Raised when the serial driver fails (port missing, unplugged, access denied)."""

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        self.cause = cause
        super().__init__(message)


class ResponseTimeoutError(PyRTUModbusError):
    """Raised when no complete response frame arrived before the deadline."""

    def __init__(self, timeout: float, received: int = 0) -> None:
        self.timeout = timeout
        self.received = received
        super().__init__(
            f"No complete response within {timeout * 1000:.0f} ms ({received} byte(s) received)"
        )


class FrameError(PyRTUModbusError):
    """Base for responses that arrived but failed validation."""

    def __init__(self, message: str, *, raw: bytes = b"") -> None:
        self.raw = raw
        super().__init__(message)


class FrameTooShortError(FrameError):
    """Raised when a response is shorter than the smallest legal RTU frame."""

    pass


class _MismatchError(FrameError):
    def __init__(self, message: str, *, expected: int, received: int, raw: bytes = b"") -> None:
        self.expected = expected
        self.received = received
        super().__init__(message, raw=raw)


class CrcMismatchError(_MismatchError):
    """Raised when the trailing CRC-16 does not match the frame contents."""

    def __init__(self, *, expected: int, received: int, raw: bytes = b"") -> None:
        super().__init__(
            f"CRC mismatch: computed 0x{expected:04X}, frame carries 0x{received:04X}",
            expected=expected,
            received=received,
            raw=raw,
        )


class SlaveMismatchError(_MismatchError):
    """Raised when the response comes from a different slave address."""

    def __init__(self, *, expected: int, received: int, raw: bytes = b"") -> None:
        super().__init__(
            f"Response from slave {received}, expected slave {expected}",
            expected=expected,
            received=received,
            raw=raw,
        )


class FunctionMismatchError(_MismatchError):
    """Raised when the response function code is neither the request's nor its exception form."""

    def __init__(self, *, expected: int, received: int, raw: bytes = b"") -> None:
        super().__init__(
            f"Response function code 0x{received:02X}, expected 0x{expected:02X}",
            expected=expected,
            received=received,
            raw=raw,
        )


class LengthMismatchError(_MismatchError):
    """Raised when the byte-count field disagrees with the payload or the request."""

    def __init__(self, message: str | None = None, *, expected: int, received: int, raw: bytes = b"") -> None:
        super().__init__(
            message or f"Byte count mismatch: expected {expected}, got {received}",
            expected=expected,
            received=received,
            raw=raw,
        )


class PayloadLengthMismatchError(LengthMismatchError):
    """Raised by the PDU decoder when the payload size does not fit the requested quantity."""

    pass


class ModbusExceptionError(PyRTUModbusError):
    """Raised when the slave answers with a Modbus exception response."""

    def __init__(self, function: int, code: int) -> None:
        self.function = function
        self.code = code
        try:
            self.exception: ExceptionCode | None = ExceptionCode(code)
        except ValueError:
            self.exception = None
        name = self.exception.label if self.exception is not None else "Unknown exception"
        super().__init__(f"Modbus exception 0x{code:02X} ({name}) for function 0x{function:02X}")
