"""RTUMaster: one request/response exchange at a time over an exclusively owned serial channel."""

import logging
import time
from typing import Any, Iterator

import serial

from .config import ReadRequest, SerialConfig
from .errors import (
    ModbusExceptionError,
    PyRTUModbusError,
    ResponseTimeoutError,
    SerialIOError,
)
from .framing import HEADER_LENGTH, decode_response, encode_request, response_length
from .pdu import decode_readings
from .transport import SerialChannel, open_channel
from .types import FunctionCode, Reading, TransactionState

logger = logging.getLogger(__name__)

# Minimum line silence accepted as "drained"; USB adapters batch bytes well past t3.5
_DRAIN_QUIET_S = 0.02
_DRAIN_CHUNK = 256


class RTUMaster:
    """
    Modbus RTU master bound to one serial channel.

    Transactions run strictly one after another: encode, write, wait for the
    response within the configured timeout, validate, decode. Nothing is retried
    here; a failed transaction raises and the caller decides whether to re-issue it.
    If a transaction does not complete (timeout, bad frame, interrupted by the
    caller), late bytes are drained before the next one is sent.
    """

    def __init__(
        self,
        port: str | None = None,
        config: SerialConfig | None = None,
        *,
        channel: SerialChannel | None = None,
    ) -> None:
        self._port = port
        self._config = config if config is not None else SerialConfig()
        self._channel = channel
        self._owns_channel = channel is None
        self._state = TransactionState.IDLE
        self._dirty = False
        self._last_activity: float | None = None

    @property
    def config(self) -> SerialConfig:
        return self._config

    @property
    def state(self) -> TransactionState:
        """State reached by the most recent transaction."""
        return self._state

    def _get_channel(self) -> SerialChannel:
        if self._channel is None:
            if not self._port:
                raise SerialIOError("No serial port configured")
            self._channel = open_channel(self._port, self._config)
            self._owns_channel = True
        return self._channel

    def connect(self) -> None:
        """Open the serial port."""
        self._get_channel()

    def close(self) -> None:
        """Close the serial port if this master opened it."""
        if self._channel is not None and self._owns_channel:
            try:
                self._channel.close()
            except Exception as e:
                logger.warning("Error closing serial port %s: %s", self._port, e)
            self._channel = None
        self._state = TransactionState.IDLE

    def __enter__(self) -> "RTUMaster":
        self.connect()
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _wait_for_silence(self) -> None:
        if self._last_activity is None:
            return
        remaining = self._last_activity + self._config.frame_gap - time.monotonic()
        if remaining > 0:
            time.sleep(remaining)

    def _discard_stale(self, channel: SerialChannel) -> None:
        """Drop bytes left over from an abandoned transaction until the line goes quiet."""
        deadline = time.monotonic() + self._config.timeout
        discarded = 0
        channel.reset_input_buffer()
        channel.timeout = max(self._config.frame_gap, _DRAIN_QUIET_S)
        while time.monotonic() < deadline:
            chunk = channel.read(_DRAIN_CHUNK)
            if not chunk:
                break
            discarded += len(chunk)
        channel.reset_input_buffer()
        if discarded:
            logger.debug("Discarded %d stale byte(s) before next request", discarded)

    def _read_until(self, channel: SerialChannel, buf: bytearray, size: int, deadline: float) -> None:
        while len(buf) < size:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.debug("Timeout with %d byte(s) received: %s", len(buf), bytes(buf).hex(" "))
                raise ResponseTimeoutError(self._config.timeout, received=len(buf))
            channel.timeout = remaining
            chunk = channel.read(size - len(buf))
            if chunk:
                buf += chunk

    def execute(self, request: ReadRequest) -> list[Reading]:
        """
        Run one read transaction and return one Reading per requested item.

        Raises InvalidRequestError before anything is written, SerialIOError for
        driver failures, ResponseTimeoutError when the frame is not complete by
        the deadline, FrameError subclasses for malformed responses and
        ModbusExceptionError when the slave reports an exception.
        """
        frame = encode_request(request)
        channel = self._get_channel()
        raw_request = frame.to_bytes()

        self._state = TransactionState.SENDING
        try:
            if self._dirty:
                self._discard_stale(channel)
            else:
                channel.reset_input_buffer()
            self._dirty = True
            self._wait_for_silence()

            logger.debug("TX %s", raw_request.hex(" "))
            written = channel.write(raw_request)
            if written is not None and written != len(raw_request):
                raise SerialIOError(f"Incomplete write: {written} of {len(raw_request)} byte(s)")
            channel.flush()

            self._state = TransactionState.AWAITING_RESPONSE
            deadline = time.monotonic() + self._config.timeout
            buf = bytearray()
            self._read_until(channel, buf, HEADER_LENGTH, deadline)
            total = response_length(bytes(buf), request)
            self._read_until(channel, buf, total, deadline)
            raw = bytes(buf)
            logger.debug("RX %s", raw.hex(" "))

            self._state = TransactionState.DECODING
            response = decode_response(raw, request)
            readings = decode_readings(response, request)
        except ResponseTimeoutError:
            self._state = TransactionState.TIMED_OUT
            raise
        except SerialIOError:
            self._state = TransactionState.IO_ERROR
            raise
        except (serial.SerialException, OSError) as e:
            self._state = TransactionState.IO_ERROR
            raise SerialIOError(f"Serial I/O failed: {e}", cause=e) from e
        except ModbusExceptionError:
            # Exception responses have a fixed length, so the stream is still aligned
            self._state = TransactionState.FAILED
            self._dirty = False
            raise
        except PyRTUModbusError:
            self._state = TransactionState.FAILED
            raise
        except BaseException:
            # Abandoned by the caller (e.g. KeyboardInterrupt); channel stays dirty
            self._state = TransactionState.FAILED
            raise
        finally:
            self._last_activity = time.monotonic()

        self._state = TransactionState.COMPLETE
        self._dirty = False
        return readings

    def read_coils(self, slave: int, address: int, count: int) -> list[Reading]:
        return self.execute(ReadRequest(slave, FunctionCode.READ_COILS, address, count))

    def read_discrete_inputs(self, slave: int, address: int, count: int) -> list[Reading]:
        return self.execute(ReadRequest(slave, FunctionCode.READ_DISCRETE_INPUTS, address, count))

    def read_holding_registers(self, slave: int, address: int, count: int) -> list[Reading]:
        return self.execute(ReadRequest(slave, FunctionCode.READ_HOLDING_REGISTERS, address, count))

    def read_input_registers(self, slave: int, address: int, count: int) -> list[Reading]:
        return self.execute(ReadRequest(slave, FunctionCode.READ_INPUT_REGISTERS, address, count))

    def poll_iter(self, request: ReadRequest, interval_s: float) -> Iterator[list[Reading]]:
        """Yield execute(request) every interval_s seconds indefinitely."""
        while True:
            yield self.execute(request)
            time.sleep(interval_s)
