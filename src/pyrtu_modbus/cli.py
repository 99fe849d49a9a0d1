#!/usr/bin/env python3
"""Command-line front end for pyrtu-modbus using Typer."""

import json
import logging
import time
from datetime import datetime, timezone
from typing import Optional

import typer
from typing_extensions import Annotated

from . import __version__  # type: ignore
from .config import ReadRequest, SerialConfig
from .errors import (
    FrameError,
    InvalidConfigError,
    ModbusExceptionError,
    ResponseTimeoutError,
    SerialIOError,
)
from .master import RTUMaster
from .render import connection_summary, exception_hint, port_listing, readings_json, readings_table
from .transport import list_ports
from .types import BitState, Reading

app = typer.Typer(
    name="pyrtu",
    help="Read coils, discrete inputs and registers from a Modbus RTU slave over a serial port.",
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Shared options and helpers
# ============================================================================

PortOption = Annotated[
    Optional[str],
    typer.Option("--port", "-p", help="Serial port path or pyserial URL (e.g. COM1, /dev/ttyUSB0)", envvar="PYRTU_PORT"),
]
BaudOption = Annotated[
    int,
    typer.Option("--baud", "-b", help="Baud rate", envvar="PYRTU_BAUD"),
]
DataBitsOption = Annotated[
    int,
    typer.Option("--data-bits", help="Data bits (5, 6, 7, 8)", envvar="PYRTU_DATA_BITS"),
]
StopBitsOption = Annotated[
    int,
    typer.Option("--stop-bits", help="Stop bits (1, 2)", envvar="PYRTU_STOP_BITS"),
]
ParityOption = Annotated[
    str,
    typer.Option("--parity", help="Parity (none, odd, even)", envvar="PYRTU_PARITY"),
]
SlaveOption = Annotated[
    Optional[int],
    typer.Option("--slave", "-s", help="Modbus slave address", envvar="PYRTU_SLAVE"),
]
AddressOption = Annotated[
    Optional[int],
    typer.Option("--address", "-a", help="Starting address to read from"),
]
CountOption = Annotated[
    Optional[int],
    typer.Option("--count", "-c", help="Number of coils/inputs/registers to read"),
]
FunctionOption = Annotated[
    int,
    typer.Option(
        "--function-code",
        "-f",
        help="Function code (1=coils, 2=discrete_inputs, 3=holding_registers, 4=input_registers)",
    ),
]
TimeoutOption = Annotated[
    int,
    typer.Option("--timeout", help="Response timeout in milliseconds", envvar="PYRTU_TIMEOUT"),
]
RetriesOption = Annotated[
    int,
    typer.Option("--retries", "-r", help="Re-send the request this many times on timeout or bad frame", envvar="PYRTU_RETRIES"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging (shows TX/RX frames)"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output as JSON"),
]


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbose flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if not verbose else "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def require(value: Optional[int | str], flag: str) -> int | str:
    if value is None or value == "":
        typer.echo(f"Error: {flag} is required for this command", err=True)
        raise typer.Exit(2)
    return value


def build_config(baud: int, data_bits: int, stop_bits: int, parity: str, timeout_ms: int) -> SerialConfig:
    """Build SerialConfig from CLI values; timeout arrives in milliseconds."""
    return SerialConfig(
        baudrate=baud,
        data_bits=data_bits,
        stop_bits=stop_bits,
        parity=parity,
        timeout=timeout_ms / 1000.0,
    )


def execute_with_retries(master: RTUMaster, request: ReadRequest, retries: int) -> list[Reading]:
    """
    Re-issue the whole request after a timeout or a corrupted frame.

    Device exceptions and serial I/O failures are never retried.
    """
    attempt = 0
    while True:
        try:
            return master.execute(request)
        except (ResponseTimeoutError, FrameError) as e:
            if attempt >= retries:
                raise
            attempt += 1
            logger.info("Attempt %d failed (%s); retrying (%d/%d)", attempt, e, attempt, retries)


def format_reading(reading: Reading) -> str:
    if isinstance(reading, BitState):
        return "1" if reading.value else "0"
    return str(reading.value)


def _report_protocol_error(e: Exception) -> None:
    if isinstance(e, ModbusExceptionError):
        for line in exception_hint(e):
            typer.echo(line, err=True)
    elif isinstance(e, ResponseTimeoutError):
        typer.echo(f"Error: Timeout: {e}", err=True)
    elif isinstance(e, SerialIOError):
        typer.echo(f"Error: Serial I/O error: {e}", err=True)
    else:
        typer.echo(f"Error: Invalid response: {e}", err=True)


# ============================================================================
# Commands
# ============================================================================


@app.command(name="list-ports")
def list_ports_command(
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """List all available serial ports."""
    setup_logging(verbose)

    try:
        ports = list_ports()
    except Exception as e:
        typer.echo(f"Failed to list ports: {e}", err=True)
        raise typer.Exit(3)

    if json_output:
        typer.echo(
            json.dumps(
                [
                    {
                        "device": p.device,
                        "description": p.description,
                        "manufacturer": p.manufacturer,
                        "product": p.product,
                        "serial_number": p.serial_number,
                        "vid": p.vid,
                        "pid": p.pid,
                    }
                    for p in ports
                ],
                indent=2,
            )
        )
        return
    for line in port_listing(ports):
        typer.echo(line)


@app.command()
def read(
    port: PortOption = None,
    baud: BaudOption = 9600,
    data_bits: DataBitsOption = 8,
    stop_bits: StopBitsOption = 1,
    parity: ParityOption = "none",
    slave: SlaveOption = None,
    address: AddressOption = None,
    count: CountOption = None,
    function_code: FunctionOption = 3,
    timeout: TimeoutOption = 1000,
    retries: RetriesOption = 0,
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """
    Read data from a Modbus device.

    Prints a table and a hex/bit dump by default, or JSON with --json.
    """
    setup_logging(verbose)

    port_name = str(require(port, "--port"))
    try:
        config = build_config(baud, data_bits, stop_bits, parity, timeout)
        request = ReadRequest(
            slave=int(require(slave, "--slave")),
            function=function_code,
            address=int(require(address, "--address")),
            count=int(require(count, "--count")),
        )
    except InvalidConfigError as e:
        typer.echo(f"Error: Invalid configuration: {e}", err=True)
        raise typer.Exit(2)

    try:
        if not json_output:
            for line in connection_summary(port_name, config, request):
                typer.echo(line)
            typer.echo("")
        with RTUMaster(port_name, config) as master:
            readings = execute_with_retries(master, request, retries)

        if json_output:
            typer.echo(json.dumps(readings_json(readings, request), indent=2))
        else:
            for line in readings_table(readings, request):
                typer.echo(line)
    except (ModbusExceptionError, ResponseTimeoutError, SerialIOError, FrameError) as e:
        _report_protocol_error(e)
        raise typer.Exit(3)
    except Exception as e:
        typer.echo(f"Error: Unexpected error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        raise typer.Exit(4)


@app.command()
def poll(
    port: PortOption = None,
    baud: BaudOption = 9600,
    data_bits: DataBitsOption = 8,
    stop_bits: StopBitsOption = 1,
    parity: ParityOption = "none",
    slave: SlaveOption = None,
    address: AddressOption = None,
    count: CountOption = None,
    function_code: FunctionOption = 3,
    timeout: TimeoutOption = 1000,
    retries: RetriesOption = 0,
    verbose: VerboseOption = False,
    interval: Annotated[float, typer.Option("--interval", "-i", help="Polling interval in seconds")] = 1.0,
    once: Annotated[bool, typer.Option("--once", help="Poll once and exit")] = False,
    format: Annotated[str, typer.Option("--format", help="Output format: text, json")] = "text",
) -> None:
    """
    Repeatedly read the same block at a fixed interval.

    Outputs format:
    - text: timestamp + address=value pairs (default)
    - json: NDJSON with {"timestamp": "...", "values": {...}} per line

    Press Ctrl+C to stop.
    """
    setup_logging(verbose)

    if format not in ("text", "json"):
        typer.echo(f"Error: Invalid format '{format}'. Must be text or json.", err=True)
        raise typer.Exit(2)

    if interval <= 0:
        typer.echo(f"Error: Interval must be positive, got {interval}", err=True)
        raise typer.Exit(2)

    port_name = str(require(port, "--port"))
    try:
        config = build_config(baud, data_bits, stop_bits, parity, timeout)
        request = ReadRequest(
            slave=int(require(slave, "--slave")),
            function=function_code,
            address=int(require(address, "--address")),
            count=int(require(count, "--count")),
        )
    except InvalidConfigError as e:
        typer.echo(f"Error: Invalid configuration: {e}", err=True)
        raise typer.Exit(2)

    try:
        with RTUMaster(port_name, config) as master:
            while True:
                readings = execute_with_retries(master, request, retries)
                timestamp = datetime.now(timezone.utc).isoformat()
                by_address = {str(r.absolute_address(request.address)): format_reading(r) for r in readings}

                if format == "text":
                    pairs = " ".join(f"{addr}={value}" for addr, value in by_address.items())
                    typer.echo(f"{timestamp} {pairs}")
                else:
                    typer.echo(json.dumps({"timestamp": timestamp, "values": by_address}))

                if once:
                    break
                time.sleep(interval)
    except (ModbusExceptionError, ResponseTimeoutError, SerialIOError, FrameError) as e:
        _report_protocol_error(e)
        raise typer.Exit(3)
    except KeyboardInterrupt:
        typer.echo("\nStopped by user", err=True)
        raise typer.Exit(0)
    except Exception as e:
        typer.echo(f"Error: Unexpected error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        raise typer.Exit(4)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"pyrtu-modbus {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit"),
    ] = None,
) -> None:
    """pyrtu - Modbus RTU master for serial links."""
    pass


if __name__ == "__main__":
    app()
