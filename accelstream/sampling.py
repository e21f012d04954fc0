"""Reading samples from the sensor FIFO and forwarding them in blocks."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Protocol, Sequence

from .adxl345 import FIFO_ENTRIES
from .registers import Acceleration
from .transport import BufferOverflowError, ForwardResult, TransmissionError

SAMPLES_READ_AT_ONCE = 24
"""Largest number of samples read from the sensor in one pass.

Must not exceed the FIFO watermark level, so reads never go beyond what the
FIFO holds.
"""

FINISH_DRAIN_RETRIES = 10000
"""Attempts to flush buffered data once all requested samples are read."""


class FetchResult(Enum):
    """Outcome of one call to :meth:`Sampling.fetch_forward`."""

    IDLE = "idle"
    """Nothing was read from the sensor."""

    FORWARDED = "forwarded"
    """A block of samples was read and handed on."""

    FIFO_OVERFLOW = "fifo_overflow"
    """The sensor reported a FIFO overrun; sampling is being stopped."""

    ABORTED = "aborted"
    """Sampling was no longer running while reading."""

    FINISHED = "finished"
    """All requested samples have been read; sampling is being stopped."""


class SamplingDevice(Protocol):
    """Device side the sampling logic drives."""

    def enable_sensor(self) -> None:
        """Put the sensor into measurement mode."""
        ...

    def disable_sensor(self) -> None:
        """Put the sensor into standby."""
        ...

    def fetch_acceleration(self) -> Acceleration:
        """Read the next sample from the sensor FIFO."""
        ...

    def wait_delay_5us(self) -> None:
        """Wait the 5 µs the FIFO needs between two reads."""
        ...

    def forward_accelerations(
        self, samples: Sequence[Acceleration], first_index: int
    ) -> ForwardResult:
        """Send or buffer samples; with no samples, send what is pending.

        May raise BufferOverflowError or TransmissionError.
        """
        ...


class SamplingEvents(Protocol):
    """Notifications emitted while sampling."""

    def on_sampling_started(self) -> None: ...

    def on_sampling_stopped(self) -> None: ...

    def on_sampling_aborted(self) -> None: ...

    def on_sampling_finished(self) -> None: ...

    def on_fifo_overflow(self) -> None: ...

    def on_buffer_overflow(self) -> None: ...

    def on_transmission_error(self) -> None: ...


class Sampling:
    """Monitors the sensor interrupts and streams FIFO contents en bloc.

    Start and stop requests are only recorded; they take effect on the next
    call to :meth:`fetch_forward`, which is meant to run in the main loop.
    """

    def __init__(self, device: SamplingDevice, events: SamplingEvents) -> None:
        self.device = device
        self.events = events
        self.max_samples = 0
        self.transactions_count = 0
        self.waiting_for_5us_timer = False
        self._do_start = False
        self._do_stop = False
        self._started = False
        self._fifo_overflow = False
        self._fifo_watermark = False

    def start(self, max_samples: int) -> None:
        """Request sampling of up to ``max_samples`` samples; 0 means endless."""
        self.max_samples = int(max_samples)
        self._do_start = True

    def stop(self) -> None:
        """Request sampling to stop."""
        self._do_stop = True

    def is_started(self) -> bool:
        return self._started

    def set_fifo_watermark(self) -> None:
        self._fifo_watermark = True

    def clear_fifo_watermark(self) -> None:
        self._fifo_watermark = False

    def set_fifo_overflow(self) -> None:
        self._fifo_overflow = True

    def on_5us_timer_expired(self) -> None:
        self.waiting_for_5us_timer = False

    def _limited(self) -> bool:
        return self.max_samples > 0

    def _check_start_request(self) -> bool:
        if not self._do_start:
            return False
        self._do_start = False

        if self._started:
            self.stop()
            return False

        self.events.on_sampling_started()
        self._fifo_overflow = False
        self.transactions_count = 0
        self._started = True
        self.device.enable_sensor()
        return True

    def _check_stop_request(self) -> bool:
        if not self._do_stop:
            return False
        self._do_stop = False

        if not self._started:
            return False

        if self.transactions_count < self.max_samples:
            self.events.on_sampling_aborted()
        self.events.on_sampling_stopped()
        self.device.disable_sensor()

        # empty the whole FIFO so the watermark interrupt clears
        for _ in range(FIFO_ENTRIES):
            self.device.fetch_acceleration()

        self._started = False
        return True

    def _transmit_pending(self) -> bool:
        """Send buffered data; return True while more remains to be sent."""
        try:
            result = self.device.forward_accelerations([], 0)
        except BufferOverflowError:
            self.events.on_buffer_overflow()
            self.stop()
            return False
        except TransmissionError:
            self.events.on_transmission_error()
            self.stop()
            return False
        return result is ForwardResult.AGAIN

    def _read_block(self) -> tuple[List[Acceleration], Optional[FetchResult]]:
        samples: List[Acceleration] = []
        while len(samples) < SAMPLES_READ_AT_ONCE:
            if self._check_stop_request():
                return samples, None
            if not self._started:
                return samples, FetchResult.ABORTED
            if self._fifo_overflow:
                return samples, FetchResult.FIFO_OVERFLOW
            if self._limited() and self.transactions_count + len(samples) >= self.max_samples:
                return samples, FetchResult.FINISHED

            self.device.wait_delay_5us()
            samples.append(self.device.fetch_acceleration())
        return samples, None

    def fetch_forward(self) -> FetchResult:
        """Read a block from the sensor if the watermark is set and forward it.

        Emits the started, stopped, finished, aborted and overflow events as
        the state demands.
        """
        state: Optional[FetchResult] = None
        forwarded = False
        buffer_overflow = False

        self._check_start_request()

        if self._fifo_watermark and self._started:
            samples, state = self._read_block()

            if samples and self._started:
                try:
                    self.device.forward_accelerations(samples, self.transactions_count)
                    forwarded = True
                except BufferOverflowError:
                    buffer_overflow = True
                except TransmissionError:
                    # reported by the pending transmission below
                    pass
                finally:
                    self.transactions_count += len(samples)

        if buffer_overflow:
            self.events.on_buffer_overflow()
            self.stop()

        if self._started:
            self._transmit_pending()

        if state is FetchResult.FIFO_OVERFLOW:
            self.events.on_fifo_overflow()
            self.stop()
        elif state is FetchResult.ABORTED:
            self.events.on_sampling_aborted()
            self.stop()
        elif state is FetchResult.FINISHED:
            retries = FINISH_DRAIN_RETRIES
            while self._transmit_pending() and retries != 0:
                retries -= 1
            self.events.on_sampling_finished()
            self.stop()

        self._check_stop_request()

        if state is not None:
            return state
        return FetchResult.FORWARDED if forwarded else FetchResult.IDLE