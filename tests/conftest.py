"""Shared fixtures: a scripted in-memory serial channel."""

import time

import pytest

from pyrtu_modbus.framing import append_crc


def make_response(slave: int, function: int, payload: bytes) -> bytes:
    """Normal read response with a correct byte count and CRC."""
    return append_crc(bytes([slave, function, len(payload)]) + payload)


class FakeSerial:
    """
    Stand-in for serial.Serial.

    Each write pops the next scripted response into the receive buffer.
    Bytes in `late` show up right after the next reset_input_buffer, the way
    a slow slave's reply lands after the master has given up on it.
    """

    def __init__(self, responses: list[bytes] | None = None) -> None:
        self.timeout: float | None = None
        self.written: list[bytes] = []
        self.responses = list(responses or [])
        self.late = b""
        self.resets = 0
        self.closed = False
        self._rx = bytearray()

    def inject(self, data: bytes) -> None:
        self._rx += data

    def write(self, data: bytes) -> int:
        self.written.append(bytes(data))
        if self.responses:
            self._rx += self.responses.pop(0)
        return len(data)

    def flush(self) -> None:
        pass

    def reset_input_buffer(self) -> None:
        self.resets += 1
        self._rx.clear()
        if self.late:
            self._rx += self.late
            self.late = b""

    def read(self, size: int = 1) -> bytes:
        if not self._rx:
            time.sleep(min(self.timeout or 0.0, 0.005))
            return b""
        chunk = bytes(self._rx[:size])
        del self._rx[:size]
        return chunk

    @property
    def pending(self) -> bytes:
        return bytes(self._rx)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_serial() -> FakeSerial:
    return FakeSerial()
