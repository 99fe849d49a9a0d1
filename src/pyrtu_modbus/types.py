"""Core data model: function codes, parity, exception codes, readings and transaction states."""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Union


class FunctionCode(IntEnum):
    """Supported Modbus read function codes."""

    READ_COILS = 0x01
    READ_DISCRETE_INPUTS = 0x02
    READ_HOLDING_REGISTERS = 0x03
    READ_INPUT_REGISTERS = 0x04

    @property
    def is_bit_access(self) -> bool:
        return self in (FunctionCode.READ_COILS, FunctionCode.READ_DISCRETE_INPUTS)

    @property
    def max_quantity(self) -> int:
        """Largest quantity a single request may ask for (Modbus Application Protocol v1.1b3)."""
        return 2000 if self.is_bit_access else 125

    @property
    def label(self) -> str:
        return self.name.lower().removeprefix("read_")


class Parity(str, Enum):
    """Serial parity setting."""

    NONE = "none"
    ODD = "odd"
    EVEN = "even"

    @classmethod
    def parse(cls, raw: "str | Parity") -> "Parity":
        """Accept 'none'/'odd'/'even' in any case, or the single-letter N/O/E forms."""
        if isinstance(raw, Parity):
            return raw
        s = str(raw).strip().lower()
        short = {"n": cls.NONE, "o": cls.ODD, "e": cls.EVEN}
        if s in short:
            return short[s]
        return cls(s)


class ExceptionCode(IntEnum):
    """Exception codes a slave may return in an exception response."""

    ILLEGAL_FUNCTION = 0x01
    ILLEGAL_DATA_ADDRESS = 0x02
    ILLEGAL_DATA_VALUE = 0x03
    SERVER_DEVICE_FAILURE = 0x04
    ACKNOWLEDGE = 0x05
    SERVER_DEVICE_BUSY = 0x06
    MEMORY_PARITY_ERROR = 0x08
    GATEWAY_PATH_UNAVAILABLE = 0x0A
    GATEWAY_TARGET_FAILED_TO_RESPOND = 0x0B

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title().replace(" ", "")


class TransactionState(str, Enum):
    """States of one request/response exchange."""

    IDLE = "idle"
    SENDING = "sending"
    AWAITING_RESPONSE = "awaiting_response"
    DECODING = "decoding"
    COMPLETE = "complete"
    TIMED_OUT = "timed_out"
    IO_ERROR = "io_error"
    FAILED = "failed"


@dataclass(frozen=True)
class RegisterValue:
    """One 16-bit register read by FC3/FC4."""

    function: FunctionCode
    offset: int
    value: int

    def absolute_address(self, start: int) -> int:
        return start + self.offset


@dataclass(frozen=True)
class BitState:
    """One coil or discrete input read by FC1/FC2."""

    function: FunctionCode
    offset: int
    value: bool

    def absolute_address(self, start: int) -> int:
        return start + self.offset


Reading = Union[RegisterValue, BitState]
