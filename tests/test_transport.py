"""Tests for the pyserial adapter (serial module mocked)."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
import serial

from pyrtu_modbus import PortInfo, SerialConfig, SerialIOError, list_ports, open_channel
from pyrtu_modbus.transport import serial_kwargs


def test_serial_kwargs_mapping() -> None:
    kwargs = serial_kwargs(SerialConfig(baudrate=19200, data_bits=7, stop_bits=2, parity="even", timeout=0.25))
    assert kwargs == {
        "baudrate": 19200,
        "bytesize": serial.SEVENBITS,
        "stopbits": serial.STOPBITS_TWO,
        "parity": serial.PARITY_EVEN,
        "timeout": 0.25,
        "write_timeout": 0.25,
    }


@patch("pyrtu_modbus.transport.serial.serial_for_url")
def test_open_channel_passes_config(mock_for_url: MagicMock) -> None:
    port = MagicMock()
    mock_for_url.return_value = port
    assert open_channel("COM3", SerialConfig(baudrate=38400)) is port
    args, kwargs = mock_for_url.call_args
    assert args == ("COM3",)
    assert kwargs["baudrate"] == 38400
    assert kwargs["parity"] == serial.PARITY_NONE


@patch("pyrtu_modbus.transport.serial.serial_for_url")
def test_open_channel_wraps_driver_error(mock_for_url: MagicMock) -> None:
    cause = serial.SerialException("could not open port /dev/ttyUSB9: [Errno 2] No such file or directory")
    mock_for_url.side_effect = cause
    with pytest.raises(SerialIOError) as exc_info:
        open_channel("/dev/ttyUSB9", SerialConfig())
    assert exc_info.value.cause is cause
    assert "/dev/ttyUSB9" in str(exc_info.value)


def test_open_channel_loop_url() -> None:
    ch = open_channel("loop://", SerialConfig(timeout=0.1))
    try:
        ch.write(b"\x01\x02")
        assert ch.read(2) == b"\x01\x02"
    finally:
        ch.close()


@patch("pyrtu_modbus.transport._list_ports.comports")
def test_list_ports_sorted_and_converted(mock_comports: MagicMock) -> None:
    mock_comports.return_value = [
        SimpleNamespace(
            device="/dev/ttyUSB1",
            description="FT232R USB UART",
            hwid="USB VID:PID=0403:6001 SER=A50285BI",
            manufacturer="FTDI",
            product="FT232R USB UART",
            serial_number="A50285BI",
            vid=0x0403,
            pid=0x6001,
        ),
        SimpleNamespace(
            device="/dev/ttyS0",
            description="ttyS0",
            hwid="PNP0501",
            manufacturer=None,
            product=None,
            serial_number=None,
            vid=None,
            pid=None,
        ),
    ]
    ports = list_ports()
    assert [p.device for p in ports] == ["/dev/ttyS0", "/dev/ttyUSB1"]
    assert ports[1] == PortInfo(
        device="/dev/ttyUSB1",
        description="FT232R USB UART",
        hwid="USB VID:PID=0403:6001 SER=A50285BI",
        manufacturer="FTDI",
        product="FT232R USB UART",
        serial_number="A50285BI",
        vid=0x0403,
        pid=0x6001,
    )
    assert ports[1].is_usb
    assert not ports[0].is_usb
