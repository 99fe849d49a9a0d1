"""Text and JSON rendering of decoded readings for the CLI."""

from typing import Any, Sequence

from .config import ReadRequest, SerialConfig
from .errors import ModbusExceptionError
from .transport import PortInfo
from .types import BitState, ExceptionCode, Reading

RULE = "-" * 80
_PER_LINE = 8

_EXCEPTION_HINTS = {
    ExceptionCode.ILLEGAL_DATA_ADDRESS: "The register address range is not valid for this device",
    ExceptionCode.ILLEGAL_FUNCTION: "The function code is not supported by this device",
    ExceptionCode.SERVER_DEVICE_FAILURE: "The slave device has encountered an error",
}
_GENERIC_HINT = "Check the device documentation for error details"


def _chunks(items: Sequence[Any], size: int) -> list[Sequence[Any]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


def connection_summary(port: str, config: SerialConfig, request: ReadRequest) -> list[str]:
    """Describe the link and request before reading."""
    last = request.address + request.count - 1
    return [
        "Connecting to Modbus device:",
        f"  Port: {port}",
        f"  Baud Rate: {config.baudrate}",
        f"  Data Bits: {config.data_bits}",
        f"  Stop Bits: {config.stop_bits}",
        f"  Parity: {config.parity.value}",
        f"  Slave ID: {request.slave}",
        f"  Function Code: {int(request.function)} (0x{int(request.function):02X})",
        f"  Address Range: {request.address} - {last}",
        f"  Timeout: {config.timeout * 1000:.0f}ms",
    ]


def register_table(readings: Sequence[Reading], start: int) -> list[str]:
    """One line per register, then a hex dump with an ASCII column."""
    lines = [RULE]
    for r in readings:
        addr = r.absolute_address(start)
        v = int(r.value)
        lines.append(f"Address: {addr:5} (0x{addr:04X}) | Value: {v:5} (0x{v:04X}) | Binary: {v:016b}")
    lines.append(RULE)
    lines.append("Hex dump:")
    for i, chunk in enumerate(_chunks(readings, _PER_LINE)):
        addr = (start + i * _PER_LINE) & 0xFFFF
        words = "".join(f"{int(r.value):04X} " for r in chunk)
        pad = "     " * (_PER_LINE - len(chunk))
        text = ""
        for r in chunk:
            for byte in int(r.value).to_bytes(2, "big"):
                text += chr(byte) if 32 <= byte <= 126 else "."
        lines.append(f"{addr:04X}: {words}{pad}| {text}")
    return lines


def bit_table(readings: Sequence[Reading], start: int) -> list[str]:
    """One line per coil/input, then a bit dump with the packed byte value."""
    lines = [RULE]
    for r in readings:
        addr = r.absolute_address(start)
        on = bool(r.value)
        lines.append(f"Address: {addr:5} (0x{addr:04X}) | Value: {int(on):5} | State: {'ON' if on else 'OFF'}")
    lines.append(RULE)
    lines.append("Bit dump (8 coils per line):")
    for i, chunk in enumerate(_chunks(readings, _PER_LINE)):
        addr = (start + i * _PER_LINE) & 0xFFFF
        bits = "".join(f"{int(bool(r.value))} " for r in chunk)
        pad = "  " * (_PER_LINE - len(chunk))
        packed = 0
        for j, r in enumerate(chunk):
            if r.value:
                packed |= 1 << j
        lines.append(f"{addr:04X}: {bits}{pad}| 0x{packed:02X}")
    return lines


def readings_table(readings: Sequence[Reading], request: ReadRequest) -> list[str]:
    """Headline plus the table that fits the function code."""
    noun = request.function.label.replace("_", " ")
    lines = [f"Successfully read {len(readings)} {noun}:"]
    if request.function.is_bit_access:
        lines.extend(bit_table(readings, request.address))
    else:
        lines.extend(register_table(readings, request.address))
    return lines


def readings_json(readings: Sequence[Reading], request: ReadRequest) -> dict[str, Any]:
    return {
        "slave": request.slave,
        "function": int(request.function),
        "address": request.address,
        "count": request.count,
        "values": [bool(r.value) if isinstance(r, BitState) else int(r.value) for r in readings],
    }


def exception_hint(err: ModbusExceptionError) -> list[str]:
    hint = _EXCEPTION_HINTS.get(err.exception, _GENERIC_HINT) if err.exception is not None else _GENERIC_HINT
    return [
        f"Modbus Exception: {err.exception.label if err.exception is not None else f'0x{err.code:02X}'}",
        "This usually means:",
        f"  - {hint}",
    ]


def port_listing(ports: Sequence[PortInfo]) -> list[str]:
    lines = ["Available serial ports:", "-" * 60]
    if not ports:
        lines.append("No serial ports found.")
        return lines
    for i, p in enumerate(ports, start=1):
        lines.append(f"{i}. Port: {p.device}")
        if p.is_usb:
            lines.append("   Type: USB")
            if p.manufacturer:
                lines.append(f"   Manufacturer: {p.manufacturer}")
            if p.product:
                lines.append(f"   Product: {p.product}")
            if p.serial_number:
                lines.append(f"   Serial Number: {p.serial_number}")
            lines.append(f"   VID: {p.vid:04X}, PID: {p.pid:04X}")
        else:
            lines.append(f"   Description: {p.description}")
        lines.append("")
    return lines
