import pytest

from accelstream import protocol
from accelstream.registers import Acceleration
from accelstream.ringbuffer import Ringbuffer
from accelstream.sampling import FetchResult, Sampling, SAMPLES_READ_AT_ONCE
from accelstream.transport import (
    BufferOverflowError,
    ForwardResult,
    HostTransport,
    TransmissionError,
    TransmitStatus,
)
from accelstream.adxl345 import FIFO_ENTRIES


class FakeDevice:
    def __init__(self, pending=ForwardResult.NO_DATA):
        self.enabled = 0
        self.disabled = 0
        self.fetches = 0
        self.waits = 0
        self.forwarded = []
        self.pending = pending
        self.forward_error = None
        self.pending_error = None
        self.pending_calls = 0

    def enable_sensor(self):
        self.enabled += 1

    def disable_sensor(self):
        self.disabled += 1

    def fetch_acceleration(self):
        self.fetches += 1
        return Acceleration(self.fetches, -self.fetches, 0)

    def wait_delay_5us(self):
        self.waits += 1

    def forward_accelerations(self, samples, first_index):
        if samples:
            self.forwarded.append((first_index, list(samples)))
            if self.forward_error is not None:
                raise self.forward_error
            return ForwardResult.AGAIN
        self.pending_calls += 1
        if self.pending_error is not None:
            raise self.pending_error
        return self.pending


class FakeEvents:
    def __init__(self):
        self.log = []

    def on_sampling_started(self):
        self.log.append("started")

    def on_sampling_stopped(self):
        self.log.append("stopped")

    def on_sampling_aborted(self):
        self.log.append("aborted")

    def on_sampling_finished(self):
        self.log.append("finished")

    def on_fifo_overflow(self):
        self.log.append("fifo_overflow")

    def on_buffer_overflow(self):
        self.log.append("buffer_overflow")

    def on_transmission_error(self):
        self.log.append("transmission_error")


@pytest.fixture
def setup():
    device = FakeDevice()
    events = FakeEvents()
    return device, events, Sampling(device, events)


def test_start_takes_effect_on_fetch(setup):
    device, events, sampling = setup
    sampling.start(0)
    assert not sampling.is_started()
    assert sampling.fetch_forward() is FetchResult.IDLE
    assert sampling.is_started()
    assert events.log == ["started"]
    assert device.enabled == 1
    assert device.fetches == 0


def test_watermark_reads_one_block_with_running_index(setup):
    device, events, sampling = setup
    sampling.start(0)
    sampling.set_fifo_watermark()
    assert sampling.fetch_forward() is FetchResult.FORWARDED
    assert sampling.fetch_forward() is FetchResult.FORWARDED
    assert [first for first, _ in device.forwarded] == [0, SAMPLES_READ_AT_ONCE]
    assert all(len(block) == SAMPLES_READ_AT_ONCE for _, block in device.forwarded)
    assert device.waits == 2 * SAMPLES_READ_AT_ONCE
    assert sampling.transactions_count == 2 * SAMPLES_READ_AT_ONCE


def test_no_read_without_watermark(setup):
    device, _events, sampling = setup
    sampling.start(0)
    sampling.fetch_forward()
    sampling.set_fifo_watermark()
    sampling.clear_fifo_watermark()
    assert sampling.fetch_forward() is FetchResult.IDLE
    assert device.forwarded == []


def test_finishes_after_requested_samples(setup):
    device, events, sampling = setup
    sampling.start(SAMPLES_READ_AT_ONCE)
    sampling.set_fifo_watermark()
    sampling.fetch_forward()
    assert sampling.fetch_forward() is FetchResult.FINISHED
    assert events.log == ["started", "finished", "stopped"]
    assert not sampling.is_started()
    assert device.disabled == 1
    assert device.fetches == SAMPLES_READ_AT_ONCE + FIFO_ENTRIES


def test_stop_before_all_samples_aborts(setup):
    device, events, sampling = setup
    sampling.start(100)
    sampling.set_fifo_watermark()
    sampling.fetch_forward()
    sampling.stop()
    assert sampling.fetch_forward() is FetchResult.IDLE
    assert events.log == ["started", "aborted", "stopped"]
    assert not sampling.is_started()


def test_stop_of_endless_sampling_is_not_aborted(setup):
    _device, events, sampling = setup
    sampling.start(0)
    sampling.fetch_forward()
    sampling.stop()
    sampling.fetch_forward()
    assert events.log == ["started", "stopped"]


def test_fifo_overflow_stops(setup):
    device, events, sampling = setup
    sampling.start(0)
    sampling.fetch_forward()
    sampling.set_fifo_overflow()
    sampling.set_fifo_watermark()
    assert sampling.fetch_forward() is FetchResult.FIFO_OVERFLOW
    assert events.log == ["started", "fifo_overflow", "stopped"]
    assert device.forwarded == []


def test_start_resets_fifo_overflow(setup):
    _device, _events, sampling = setup
    sampling.set_fifo_overflow()
    sampling.set_fifo_watermark()
    sampling.start(0)
    assert sampling.fetch_forward() is FetchResult.FORWARDED


def test_buffer_overflow_on_forward_stops(setup):
    device, events, sampling = setup
    device.forward_error = BufferOverflowError("full")
    sampling.start(0)
    sampling.set_fifo_watermark()
    sampling.fetch_forward()
    assert events.log == ["started", "buffer_overflow", "stopped"]
    assert sampling.transactions_count == SAMPLES_READ_AT_ONCE
    assert not sampling.is_started()


def test_transmission_error_on_pending_stops(setup):
    device, events, sampling = setup
    device.pending_error = TransmissionError("link down")
    sampling.start(0)
    sampling.fetch_forward()
    assert events.log == ["started", "transmission_error", "stopped"]


def test_second_start_while_running_stops(setup):
    _device, events, sampling = setup
    sampling.start(0)
    sampling.fetch_forward()
    sampling.start(0)
    sampling.fetch_forward()
    assert events.log == ["started", "stopped"]
    assert not sampling.is_started()


def test_timer_expiry_clears_wait_flag(setup):
    _device, _events, sampling = setup
    sampling.waiting_for_5us_timer = True
    sampling.on_5us_timer_expired()
    assert sampling.waiting_for_5us_timer is False


class RecordingLink:
    def __init__(self):
        self.sent = []

    def transmit(self, data):
        self.sent.append(bytes(data))
        return TransmitStatus.OK

    def is_busy(self):
        return False


class TransportDevice(FakeDevice):
    def __init__(self, transport):
        super().__init__()
        self.transport = transport

    def forward_accelerations(self, samples, first_index):
        return self.transport.tx_acceleration_buffer(samples, first_index)


def test_samples_reach_host_as_acceleration_packets():
    link = RecordingLink()
    buffer = Ringbuffer(64, protocol.ACCELERATION_FRAME_SIZE)
    transport = HostTransport(link, buffer, lambda packet: packet)
    device = TransportDevice(transport)
    events = FakeEvents()
    sampling = Sampling(device, events)
    sampling.start(0)
    sampling.set_fifo_watermark()
    sampling.fetch_forward()
    payload = b"".join(link.sent)
    expected = b"".join(
        protocol.encode_acceleration(i, i + 1, -(i + 1), 0)
        for i in range(SAMPLES_READ_AT_ONCE)
    )
    assert payload == expected
    assert buffer.is_empty()