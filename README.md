# accelstream

Building blocks for reading an ADXL345 accelerometer and streaming its samples
to a host over a packet link. The package models the logic only. Reaching the
hardware and the link is left to objects you supply.

## Modules

- `accelstream.registers` holds the ADXL345 register addresses (`Address`), the
  flag enums (`DataRate`, `DataRange`, `FullResolution`, `FifoMode` and others)
  and the frozen bit-field registers: `BwRate`, `PowerCtl`, `IntEnable`,
  `IntMap`, `DataFormat`, `FifoCtl` and `FifoStatus`.
  - Each register has `to_byte()` and `from_byte()`.
  - A field that does not fit its bits raises `ValueError`.
  - `Acceleration` is one raw `(x, y, z)` sample. Its `to_bytes()` and
    `from_bytes()` use three little-endian signed 16-bit values.
- `accelstream.adxl345` holds the `Adxl345` driver. It talks through a
  `SensorBus`, which is any object with `transmit_frame(frame, cs, rw_flag)` and
  `transmit_receive_frame(frame, num_bytes)`.
  - `initialize()` sets up the sensor: ±16 g, full resolution, 3200 Hz, FIFO
    mode with watermark 24, watermark interrupt on INT1 and overrun on INT2. It
    leaves the sensor in standby.
  - There are getters and setters for the output data rate, range and scale.
    The setters raise `ValueError` for unknown codes.
  - `set_power_standby()` and `set_power_measure()` switch the power mode.
  - `read_acceleration()` pops the next sample from the FIFO.
- `accelstream.ringbuffer` holds `Ringbuffer`, a fixed-capacity FIFO of byte
  items that all have one size.
  - `put()` raises `RingbufferFullError` when the buffer is full.
  - `take()` raises `RingbufferEmptyError` when the buffer is empty.
  - It keeps usage statistics since the last `reset()`: `max_capacity_used()`,
    plus `put_count()` and `take_count()`, which wrap at 16 bits.
- `accelstream.protocol` holds the packet format. Each packet is a one-byte
  `HeaderId` followed by a packed little-endian payload.
  - `validate_request()` and `process_received()` check packets that come from
    the host. A malformed packet raises `InvalidRequestError`.
  - The `encode_*` functions build every packet the device sends.
  - `decode_device_setup()` reads a device setup packet back.
  - `VERSION`, `VERSION_MAJOR`, `VERSION_MINOR` and `VERSION_PATCH` hold the
    firmware version the protocol reports.
- `accelstream.transport` holds `HostTransport`. It sends responses over a
  `HostLink`, which is any object with `transmit(data)` returning a
  `TransmitStatus` and `is_busy()`.
  - The `tx_*` methods retry while the link reports `BUSY`.
  - `tx_acceleration_buffer()` buffers acceleration packets in a `Ringbuffer`
    while the link is busy. It sends them in chunks of under 2048 bytes and
    returns a `ForwardResult`.
  - A full buffer raises `BufferOverflowError`. A failed link raises
    `TransmissionError`.
- `accelstream.sampling` holds the `Sampling` state machine. It is driven
  through a `SamplingDevice` and reports to a `SamplingEvents` object.
  - `start()` and `stop()` record requests, which take effect on the next
    `fetch_forward()`.
  - When the FIFO watermark is set, `fetch_forward()` reads up to 24 samples,
    forwards them, and returns a `FetchResult`.

## Install

```sh
pip install .
pip install ".[test]"   # with the test dependencies
```

## Example

```python
from accelstream import protocol
from accelstream.ringbuffer import Ringbuffer

buffer = Ringbuffer(capacity=4, item_size=9)
buffer.put(bytes(9))
assert len(buffer) == 1
assert buffer.take() == bytes(9)
assert buffer.is_empty()

assert protocol.validate_request(bytes([8])) is protocol.HeaderId.RX_GET_FIRMWARE_VERSION
assert protocol.encode_firmware_version(0, 1, 10) == bytes([29, 0, 1, 10])
```

To drive a sensor, implement `transmit_frame` and `transmit_receive_frame` for
your SPI hardware. Then call `Adxl345(bus).initialize()` followed by
`set_power_measure()`.

## What this package does not do

- It does not touch SPI, GPIO, timers or USB itself. The `SensorBus`, `HostLink`
  and `SamplingDevice` objects must be supplied.
- It has no command-line program.
- It has no main loop tying the sensor, sampling and host transport together.
  Dispatching host requests (those passed to `take_packet`) to the driver and
  sampler is up to the caller.

## Tests

```sh
pytest
```