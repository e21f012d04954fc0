"""Sending packets to the host and buffering the acceleration stream."""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Callable, Iterable, List, Optional, Protocol, Sequence, TypeVar

from . import protocol
from .protocol import ACCELERATION_FRAME_SIZE
from .ringbuffer import Ringbuffer

TX_CHUNK_BUFFER_BYTES = 2048
"""Size of the buffer one acceleration chunk is sent from."""

MAX_SAMPLES_PER_CALL = 24
"""Largest number of samples accepted by one forwarding call."""

_U16_MASK = 0xFFFF

_T = TypeVar("_T")


class TransmitStatus(IntEnum):
    """Status reported by the link when a transmission is requested."""

    OK = 0
    BUSY = 1
    FAIL = 2
    UNDEFINED = 3


class ForwardResult(Enum):
    """Outcome of forwarding acceleration data to the host."""

    AGAIN = "again"
    """A later call would send more pending data."""

    NO_DATA = "no_data"
    """Everything buffered has been sent."""


class BufferOverflowError(OverflowError):
    """Raised when the acceleration ringbuffer cannot take more samples."""


class TransmissionError(IOError):
    """Raised when the link reports a failed transmission."""


class HostLink(Protocol):
    """The endpoint packets to the host are written to."""

    def transmit(self, data: bytes) -> TransmitStatus:
        """Start sending ``data``; report BUSY while a transmission is pending."""
        ...

    def is_busy(self) -> bool:
        """Return True until the current transmission has finished."""
        ...


class _Sample(Protocol):
    x: int
    y: int
    z: int


class HostTransport:
    """Encodes device responses and streams acceleration samples to the host.

    Acceleration packets are piled up in ``ringbuffer`` while the link is
    busy and sent in chunks once it is free again.
    """

    def __init__(
        self,
        link: HostLink,
        ringbuffer: Ringbuffer,
        take_packet: Callable[[bytes], _T],
    ) -> None:
        if ringbuffer.item_size() != ACCELERATION_FRAME_SIZE:
            raise ValueError(
                f"ringbuffer items must be {ACCELERATION_FRAME_SIZE} bytes, "
                f"got {ringbuffer.item_size()}"
            )
        self.link = link
        self.ringbuffer = ringbuffer
        self.take_packet = take_packet
        self.largest_tx_chunk_bytes = 0

    def reset_buffer(self) -> None:
        """Clear the acceleration buffer and its statistics."""
        self.largest_tx_chunk_bytes = 0
        self.ringbuffer.reset()

    def process_received(self, buffer: Optional[bytes]):
        """Validate a packet from the host and pass it to ``take_packet``."""
        return protocol.process_received(buffer, self.take_packet)

    def _send_blocking(self, packet: bytes) -> None:
        while self.link.transmit(packet) == TransmitStatus.BUSY:
            pass

    def tx_sampling_setup(self, odr: int, scale: int, range_: int) -> None:
        self._send_blocking(protocol.encode_device_setup(odr, scale, range_))

    def tx_scale(self, scale: int) -> None:
        self._send_blocking(protocol.encode_scale(scale))

    def tx_range(self, range_: int) -> None:
        self._send_blocking(protocol.encode_range(range_))

    def tx_output_data_rate(self, rate: int) -> None:
        self._send_blocking(protocol.encode_output_data_rate(rate))

    def tx_firmware_version(self, major: int, minor: int, patch: int) -> None:
        self._send_blocking(protocol.encode_firmware_version(major, minor, patch))

    def tx_sampling_started(self, max_samples: int) -> None:
        self._send_blocking(protocol.encode_sampling_started(max_samples))

    def tx_sampling_finished(self) -> None:
        self._send_blocking(protocol.encode_sampling_finished())

    def tx_sampling_stopped(self) -> None:
        self._send_blocking(protocol.encode_sampling_stopped())

    def tx_sampling_aborted(self) -> None:
        self._send_blocking(protocol.encode_sampling_aborted())

    def tx_fifo_overflow(self) -> None:
        self._send_blocking(protocol.encode_fifo_overflow())

    def tx_buffer_overflow(self) -> None:
        self._send_blocking(protocol.encode_buffer_overflow())

    def tx_transmission_error(self) -> None:
        self._send_blocking(protocol.encode_transmission_error())

    def tx_uptime(self, uptime_ms: int) -> None:
        self._send_blocking(protocol.encode_uptime(uptime_ms))

    def tx_fault(self, code: int) -> None:
        self._send_blocking(protocol.encode_fault(code))

    def tx_buffer_status(
        self,
        size_bytes: int,
        capacity_total: int,
        capacity_used_max: int,
        put_count: int,
        take_count: int,
        largest_tx_chunk_bytes: int,
    ) -> None:
        self._send_blocking(
            protocol.encode_buffer_status(
                size_bytes,
                capacity_total,
                capacity_used_max,
                put_count,
                take_count,
                largest_tx_chunk_bytes,
            )
        )

    def tx_acceleration_buffer(
        self, samples: Optional[Sequence[_Sample]], first_index: int
    ) -> ForwardResult:
        """Send or buffer a block of samples, numbered from ``first_index``.

        Pass no samples to send what is still buffered; call repeatedly
        until NO_DATA is returned to drain the buffer. Raises ValueError for
        more than MAX_SAMPLES_PER_CALL samples, BufferOverflowError when the
        buffer is exhausted and TransmissionError when the link fails.
        """
        samples = list(samples) if samples is not None else []
        if len(samples) > MAX_SAMPLES_PER_CALL:
            raise ValueError(
                f"at most {MAX_SAMPLES_PER_CALL} samples per call, got {len(samples)}"
            )
        frames = [
            protocol.encode_acceleration((first_index + offset) & _U16_MASK, s.x, s.y, s.z)
            for offset, s in enumerate(samples)
        ]
        return self._transmit_buffered(frames)

    def _push(self, frames: Iterable[bytes]) -> None:
        for frame in frames:
            if self.ringbuffer.is_full():
                raise BufferOverflowError("acceleration buffer is exhausted")
            self.ringbuffer.put(frame)

    def _pop_chunk(self) -> bytes:
        item_size = self.ringbuffer.item_size()
        items: List[bytes] = []
        while not self.ringbuffer.is_empty() and item_size * (len(items) + 1) < TX_CHUNK_BUFFER_BYTES:
            items.append(self.ringbuffer.take())
        return b"".join(items)

    def _transmit_buffered(self, frames: List[bytes]) -> ForwardResult:
        self._push(frames)

        if self.link.is_busy():
            return ForwardResult.AGAIN
        if self.ringbuffer.is_empty():
            return ForwardResult.NO_DATA

        chunk = self._pop_chunk()
        if len(chunk) > self.largest_tx_chunk_bytes:
            self.largest_tx_chunk_bytes = len(chunk) & _U16_MASK

        if chunk and self.link.transmit(chunk) == TransmitStatus.FAIL:
            raise TransmissionError("link failed to transmit acceleration chunk")

        return ForwardResult.AGAIN