#!/usr/bin/env python3
"""Example: poll a block of input registers on an interval using poll_iter; graceful shutdown on Ctrl+C."""

import sys

from pyrtu_modbus import FunctionCode, ReadRequest, RTUMaster, SerialConfig
from pyrtu_modbus.errors import PyRTUModbusError


def main() -> None:
    port = "/dev/ttyUSB0"  # change to your adapter
    request = ReadRequest(slave=1, function=FunctionCode.READ_INPUT_REGISTERS, address=0, count=4)
    interval_s = 1.0

    try:
        with RTUMaster(port, SerialConfig(baudrate=19200, parity="even")) as master:
            print(f"Polling {request} every {interval_s}s (Ctrl+C to stop)...")
            for readings in master.poll_iter(request, interval_s):
                print([r.value for r in readings])
    except KeyboardInterrupt:
        print("\nStopped.")
    except PyRTUModbusError as e:
        print(f"Modbus RTU error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
