"""Validated serial and request parameters. Pure values, no I/O."""

import math
from dataclasses import dataclass
from typing import Any

from .errors import InvalidConfigError, InvalidRequestError
from .types import FunctionCode, Parity

_VALID_DATA_BITS = frozenset({5, 6, 7, 8})
_VALID_STOP_BITS = frozenset({1, 2})

# Above 19200 baud the RTU silent interval is fixed rather than scaled with character time
_FIXED_GAP_BAUD = 19200
_FIXED_FRAME_GAP_S = 0.00175


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class SerialConfig:
    """Serial line parameters; invalid values fail here instead of at the driver."""

    baudrate: int = 9600
    data_bits: int = 8
    stop_bits: int = 1
    parity: Parity = Parity.NONE
    timeout: float = 1.0

    def __post_init__(self) -> None:
        if not _is_int(self.baudrate) or self.baudrate <= 0:
            raise InvalidConfigError("baudrate", self.baudrate, f"baudrate must be a positive integer, got {self.baudrate!r}")
        if not _is_int(self.data_bits) or self.data_bits not in _VALID_DATA_BITS:
            raise InvalidConfigError("data_bits", self.data_bits, f"data_bits must be 5, 6, 7 or 8, got {self.data_bits!r}")
        if not _is_int(self.stop_bits) or self.stop_bits not in _VALID_STOP_BITS:
            raise InvalidConfigError("stop_bits", self.stop_bits, f"stop_bits must be 1 or 2, got {self.stop_bits!r}")
        try:
            parity = Parity.parse(self.parity)
        except ValueError:
            raise InvalidConfigError("parity", self.parity, f"parity must be none, odd or even, got {self.parity!r}") from None
        object.__setattr__(self, "parity", parity)
        if (
            isinstance(self.timeout, bool)
            or not isinstance(self.timeout, (int, float))
            or not math.isfinite(self.timeout)
            or self.timeout <= 0
        ):
            raise InvalidConfigError("timeout", self.timeout, f"timeout must be a finite number of seconds > 0, got {self.timeout!r}")

    @property
    def char_time(self) -> float:
        """Seconds to transmit one character: start bit, data, optional parity, stop bits."""
        parity_bits = 0 if self.parity == Parity.NONE else 1
        return (1 + self.data_bits + parity_bits + self.stop_bits) / self.baudrate

    @property
    def frame_gap(self) -> float:
        """RTU inter-frame silent interval (t3.5)."""
        if self.baudrate > _FIXED_GAP_BAUD:
            return _FIXED_FRAME_GAP_S
        return 3.5 * self.char_time


@dataclass(frozen=True)
class ReadRequest:
    """
    One read: slave address, function code, starting address and quantity.

    Quantity limits are per function code (2000 bits for FC1/FC2, 125 registers for
    FC3/FC4) and the addressed block must fit in the 16-bit address space.
    """

    slave: int
    function: FunctionCode
    address: int
    count: int

    def __post_init__(self) -> None:
        if _is_int(self.function) and not isinstance(self.function, FunctionCode):
            try:
                object.__setattr__(self, "function", FunctionCode(self.function))
            except ValueError:
                pass
        self.validate()

    def validate(self) -> None:
        """Raise InvalidRequestError naming the first out-of-range field."""
        if not isinstance(self.function, FunctionCode):
            raise InvalidRequestError(
                "function", self.function, f"function code must be 1, 2, 3 or 4, got {self.function!r}"
            )
        if not _is_int(self.slave) or not 1 <= self.slave <= 255:
            raise InvalidRequestError("slave", self.slave, f"slave address out of range 1–255: {self.slave!r}")
        if not _is_int(self.address) or not 0 <= self.address <= 0xFFFF:
            raise InvalidRequestError("address", self.address, f"starting address out of range 0–65535: {self.address!r}")
        limit = self.function.max_quantity
        if not _is_int(self.count) or not 1 <= self.count <= limit:
            raise InvalidRequestError(
                "count", self.count, f"count out of range 1–{limit} for {self.function.label}: {self.count!r}"
            )
        if self.address + self.count - 1 > 0xFFFF:
            raise InvalidRequestError(
                "count",
                self.count,
                f"address {self.address} + count {self.count} runs past the end of the address space",
            )

    @property
    def expected_byte_count(self) -> int:
        """Payload size the slave must return for this request."""
        if self.function.is_bit_access:
            return (self.count + 7) // 8
        return self.count * 2

    @property
    def expected_response_length(self) -> int:
        """Total normal response length: slave, function, byte count, payload, CRC."""
        return 3 + self.expected_byte_count + 2
