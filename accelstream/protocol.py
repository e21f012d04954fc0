"""Wire format of the packets exchanged with the host.

Every packet is a one-byte header id followed by a packed little-endian
payload. Requests travel from the host to the device and responses from the
device to the host.
"""

from __future__ import annotations

import struct
from enum import IntEnum
from typing import Callable, Dict, Optional, Tuple, TypeVar

from .registers import DataRange, DataRate, FullResolution

VERSION = "0.1.10"
VERSION_MAJOR = 0
VERSION_MINOR = 1
VERSION_PATCH = 10

HEADER_SIZE = 1
"""Size of the packet header in bytes."""

_T = TypeVar("_T")


class HeaderId(IntEnum):
    """Packet type carried in the header byte."""

    # requests with a dedicated response
    RX_SET_OUTPUT_DATA_RATE = 1
    RX_GET_OUTPUT_DATA_RATE = 2
    RX_SET_RANGE = 3
    RX_GET_RANGE = 4
    RX_SET_SCALE = 5
    RX_GET_SCALE = 6
    RX_GET_DEVICE_SETUP = 7
    RX_GET_FIRMWARE_VERSION = 8
    RX_GET_UPTIME = 9
    RX_GET_BUFFER_STATUS = 10

    # requests without a dedicated response
    RX_DEVICE_REBOOT = 17
    RX_SAMPLING_START = 18
    RX_SAMPLING_STOP = 19

    # responses to requests
    TX_OUTPUT_DATA_RATE = 25
    TX_RANGE = 26
    TX_SCALE = 27
    TX_DEVICE_SETUP = 28
    TX_FIRMWARE_VERSION = 29
    TX_UPTIME = 30
    TX_BUFFER_STATUS = 31

    # unsolicited packets
    TX_FIFO_OVERFLOW = 33
    TX_SAMPLING_STARTED = 34
    TX_SAMPLING_FINISHED = 35
    TX_SAMPLING_STOPPED = 36
    TX_SAMPLING_ABORTED = 37
    TX_ACCELERATION = 38
    TX_FAULT = 39
    TX_BUFFER_OVERFLOW = 40
    TX_TRANSMISSION_ERROR = 41


class OutputDataRate(IntEnum):
    """Output data rates a host may request."""

    RATE_3200 = 0b1111
    RATE_1600 = 0b1110
    RATE_800 = 0b1101
    RATE_400 = 0b1100
    RATE_200 = 0b1011
    RATE_100 = 0b1010
    RATE_50 = 0b1001


class Range(IntEnum):
    """Measurement ranges a host may request."""

    G2 = 0b00
    G4 = 0b01
    G8 = 0b10
    G16 = 0b11


class Scale(IntEnum):
    """Resolution modes a host may request."""

    BITS_10 = 0
    FULL_4MG = 1


class FaultCode(IntEnum):
    """Code reported to the host when the device faults."""

    NMI_HANDLER = 0
    USAGE_FAULT_HANDLER = 1
    BUS_FAULT_HANDLER = 2
    HARD_FAULT_HANDLER = 3
    ERROR_HANDLER = 4


class InvalidRequestError(ValueError):
    """Raised for a received packet that is not a well-formed request."""


_REQUEST_PAYLOAD_SIZES: Dict[HeaderId, int] = {
    HeaderId.RX_GET_FIRMWARE_VERSION: 0,
    HeaderId.RX_GET_OUTPUT_DATA_RATE: 0,
    HeaderId.RX_SET_OUTPUT_DATA_RATE: 1,
    HeaderId.RX_GET_RANGE: 0,
    HeaderId.RX_SET_RANGE: 1,
    HeaderId.RX_GET_SCALE: 0,
    HeaderId.RX_SET_SCALE: 1,
    HeaderId.RX_GET_DEVICE_SETUP: 0,
    HeaderId.RX_DEVICE_REBOOT: 0,
    HeaderId.RX_SAMPLING_START: 2,
    HeaderId.RX_SAMPLING_STOP: 0,
    HeaderId.RX_GET_UPTIME: 0,
    HeaderId.RX_GET_BUFFER_STATUS: 0,
}


def request_size(header_id: int) -> int:
    """Return the full size (header and payload) of a request type."""
    try:
        key = HeaderId(int(header_id))
        payload = _REQUEST_PAYLOAD_SIZES[key]
    except (ValueError, KeyError) as exc:
        raise InvalidRequestError(f"not a request header id: {header_id!r}") from exc
    return HEADER_SIZE + payload


def validate_request(buffer: Optional[bytes]) -> HeaderId:
    """Check that a buffer holds exactly one known request; return its id."""
    if buffer is None:
        raise InvalidRequestError("no buffer given")
    data = bytes(buffer)
    if not data:
        raise InvalidRequestError("empty packet")
    expected = request_size(data[0])
    if len(data) != expected:
        raise InvalidRequestError(
            f"request {HeaderId(data[0]).name} needs {expected} bytes, got {len(data)}"
        )
    return HeaderId(data[0])


def process_received(buffer: Optional[bytes], take_packet: Callable[[bytes], _T]) -> _T:
    """Validate a received packet and hand it to ``take_packet``.

    Returns whatever ``take_packet`` returns; raises InvalidRequestError
    without calling it if the packet is malformed.
    """
    validate_request(buffer)
    return take_packet(bytes(buffer))  # type: ignore[arg-type]


def _frame(header_id: HeaderId, fmt: str = "", *values: int) -> bytes:
    try:
        payload = struct.pack("<" + fmt, *(int(v) for v in values))
    except struct.error as exc:
        raise ValueError(f"{header_id.name}: value out of range: {exc}") from exc
    return bytes([header_id]) + payload


def _check_bits(name: str, value: int, width: int) -> int:
    value = int(value)
    if not 0 <= value < (1 << width):
        raise ValueError(f"{name} must fit in {width} bit(s), got {value}")
    return value


def encode_device_setup(odr: int, scale: int, range_: int) -> bytes:
    """Device setup packet: rate in bits 0-3, range in bits 4-5, scale in bit 6."""
    packed = (
        _check_bits("odr", odr, 4)
        | _check_bits("range", range_, 2) << 4
        | _check_bits("scale", scale, 1) << 6
    )
    return bytes([HeaderId.TX_DEVICE_SETUP, packed])


def decode_device_setup(data: bytes) -> Tuple[DataRate, FullResolution, DataRange]:
    """Decode a device setup packet into (rate, scale, range)."""
    frame = bytes(data)
    if len(frame) != HEADER_SIZE + 1 or frame[0] != HeaderId.TX_DEVICE_SETUP:
        raise ValueError("not a device setup packet")
    packed = frame[1]
    return (
        DataRate(packed & 0x0F),
        FullResolution((packed >> 6) & 0x01),
        DataRange((packed >> 4) & 0x03),
    )


def encode_scale(scale: int) -> bytes:
    return _frame(HeaderId.TX_SCALE, "B", scale)


def encode_range(range_: int) -> bytes:
    return _frame(HeaderId.TX_RANGE, "B", range_)


def encode_output_data_rate(rate: int) -> bytes:
    return _frame(HeaderId.TX_OUTPUT_DATA_RATE, "B", rate)


def encode_firmware_version(major: int, minor: int, patch: int) -> bytes:
    return _frame(HeaderId.TX_FIRMWARE_VERSION, "BBB", major, minor, patch)


def encode_sampling_started(max_samples: int) -> bytes:
    return _frame(HeaderId.TX_SAMPLING_STARTED, "H", max_samples)


def encode_sampling_finished() -> bytes:
    return _frame(HeaderId.TX_SAMPLING_FINISHED)


def encode_sampling_stopped() -> bytes:
    return _frame(HeaderId.TX_SAMPLING_STOPPED)


def encode_sampling_aborted() -> bytes:
    return _frame(HeaderId.TX_SAMPLING_ABORTED)


def encode_fifo_overflow() -> bytes:
    return _frame(HeaderId.TX_FIFO_OVERFLOW)


def encode_buffer_overflow() -> bytes:
    return _frame(HeaderId.TX_BUFFER_OVERFLOW)


def encode_transmission_error() -> bytes:
    return _frame(HeaderId.TX_TRANSMISSION_ERROR)


def encode_uptime(uptime_ms: int) -> bytes:
    return _frame(HeaderId.TX_UPTIME, "I", uptime_ms)


def encode_fault(code: int) -> bytes:
    return _frame(HeaderId.TX_FAULT, "B", code)


def encode_buffer_status(
    size_bytes: int,
    capacity_total: int,
    capacity_used_max: int,
    put_count: int,
    take_count: int,
    largest_tx_chunk_bytes: int,
) -> bytes:
    return _frame(
        HeaderId.TX_BUFFER_STATUS,
        "HHHHHH",
        size_bytes,
        capacity_total,
        capacity_used_max,
        put_count,
        take_count,
        largest_tx_chunk_bytes,
    )


def encode_acceleration(index: int, x: int, y: int, z: int) -> bytes:
    """Acceleration packet; the running index wraps around at 16 bits."""
    return _frame(HeaderId.TX_ACCELERATION, "Hhhh", int(index) & 0xFFFF, x, y, z)


ACCELERATION_FRAME_SIZE = len(encode_acceleration(0, 0, 0, 0))
"""Size of one acceleration packet in bytes."""