"""Serial channel over pyserial: open a port from a SerialConfig, enumerate ports."""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import serial
from serial.tools import list_ports as _list_ports

from .config import SerialConfig
from .errors import SerialIOError
from .types import Parity

logger = logging.getLogger(__name__)

_BYTESIZE = {
    5: serial.FIVEBITS,
    6: serial.SIXBITS,
    7: serial.SEVENBITS,
    8: serial.EIGHTBITS,
}
_STOPBITS = {
    1: serial.STOPBITS_ONE,
    2: serial.STOPBITS_TWO,
}
_PARITY = {
    Parity.NONE: serial.PARITY_NONE,
    Parity.ODD: serial.PARITY_ODD,
    Parity.EVEN: serial.PARITY_EVEN,
}


class SerialChannel(Protocol):
    """What the transaction engine needs from a port; serial.Serial satisfies it."""

    timeout: float | None

    def write(self, data: bytes) -> int | None: ...

    def read(self, size: int = 1) -> bytes: ...

    def flush(self) -> None: ...

    def reset_input_buffer(self) -> None: ...

    def close(self) -> None: ...


@dataclass(frozen=True)
class PortInfo:
    """One serial port as reported by the OS."""

    device: str
    description: str
    hwid: str
    manufacturer: str | None = None
    product: str | None = None
    serial_number: str | None = None
    vid: int | None = None
    pid: int | None = None

    @property
    def is_usb(self) -> bool:
        return self.vid is not None and self.pid is not None


def serial_kwargs(config: SerialConfig) -> dict[str, Any]:
    """Map a SerialConfig onto pyserial constructor arguments."""
    return {
        "baudrate": config.baudrate,
        "bytesize": _BYTESIZE[config.data_bits],
        "stopbits": _STOPBITS[config.stop_bits],
        "parity": _PARITY[config.parity],
        "timeout": config.timeout,
        "write_timeout": config.timeout,
    }


def open_channel(port: str, config: SerialConfig) -> serial.Serial:
    """
    Open a serial port (or pyserial URL such as loop:// or rfc2217://host:port).

    Raises SerialIOError when the driver refuses: missing device, access denied, busy.
    """
    kwargs = serial_kwargs(config)
    logger.debug("Opening %s with %s", port, kwargs)
    try:
        return serial.serial_for_url(port, **kwargs)
    except (serial.SerialException, OSError, ValueError) as e:
        raise SerialIOError(f"Failed to open {port}: {e}", cause=e) from e


def list_ports() -> list[PortInfo]:
    """Return available serial ports sorted by device name."""
    ports = []
    for p in _list_ports.comports():
        ports.append(
            PortInfo(
                device=p.device,
                description=p.description,
                hwid=p.hwid,
                manufacturer=p.manufacturer,
                product=p.product,
                serial_number=p.serial_number,
                vid=p.vid,
                pid=p.pid,
            )
        )
    return sorted(ports, key=lambda p: p.device)
