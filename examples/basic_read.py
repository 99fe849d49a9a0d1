#!/usr/bin/env python3
"""Example: open a serial port and read registers and coils from one RTU slave."""

import sys

from pyrtu_modbus import RTUMaster, SerialConfig
from pyrtu_modbus.errors import (
    FrameError,
    InvalidConfigError,
    ModbusExceptionError,
    ResponseTimeoutError,
    SerialIOError,
)


def main() -> None:
    port = "/dev/ttyUSB0"  # change to your adapter (COM3 on Windows)
    slave = 1

    try:
        config = SerialConfig(baudrate=9600, parity="none", timeout=1.0)
        with RTUMaster(port, config) as master:
            # Ten holding registers from address 0
            for r in master.read_holding_registers(slave, 0, 10):
                print(f"HR {r.absolute_address(0)} = {r.value}")

            # Sixteen coils from address 100
            coils = master.read_coils(slave, 100, 16)
            print("coils:", "".join("1" if c.value else "0" for c in coils))

            # Input registers, signed view
            for r in master.read_input_registers(slave, 0, 2):
                v = r.value - 0x10000 if r.value > 0x7FFF else r.value
                print(f"IR {r.absolute_address(0)} = {v}")
    except InvalidConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)
    except ModbusExceptionError as e:
        print(f"Device refused the request: {e}", file=sys.stderr)
        sys.exit(1)
    except (ResponseTimeoutError, FrameError) as e:
        print(f"No valid response: {e}", file=sys.stderr)
        sys.exit(1)
    except SerialIOError as e:
        print(f"Serial port error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
