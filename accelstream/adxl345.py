"""Configuration and sample readout of the ADXL345 accelerometer over SPI."""

from __future__ import annotations

from dataclasses import replace
from enum import IntEnum
from typing import Protocol, Type, TypeVar

from .registers import (
    Acceleration,
    Address,
    BwRate,
    DataFormat,
    DataRange,
    DataRate,
    FifoCtl,
    FifoMode,
    FifoTrigger,
    FullResolution,
    IntEnable,
    InterruptPin,
    IntInvert,
    Justify,
    LowPower,
    MeasureMode,
    PowerCtl,
    RwFlag,
    SpiCs,
    SpiWire,
    SelfTest,
)

FIFO_ENTRIES = 32
"""Number of FIFO entries of the sensor, each holding one (x, y, z) sample."""

WATERMARK_LEVEL = 24
"""FIFO watermark level, about 75% of the FIFO."""

_E = TypeVar("_E", bound=IntEnum)


class SensorBus(Protocol):
    """The SPI transport the driver talks through."""

    def transmit_frame(self, frame: bytes, cs: SpiCs, rw_flag: RwFlag) -> None:
        """Send a frame (address byte followed by payload) to the sensor."""
        ...

    def transmit_receive_frame(self, frame: bytes, num_bytes: int) -> bytes:
        """Send an address frame and return the ``num_bytes`` bytes read back."""
        ...


def _member(enum: Type[_E], value: int) -> _E:
    try:
        return enum(int(value))
    except (ValueError, TypeError) as exc:
        raise ValueError(f"invalid {enum.__name__} value: {value!r}") from exc


class Adxl345:
    """Driver for one ADXL345 sensor on the given bus."""

    def __init__(self, bus: SensorBus) -> None:
        self.bus = bus

    def _read_register(self, address: Address) -> int:
        data = self.bus.transmit_receive_frame(bytes([address | RwFlag.READ]), 1)
        if len(data) < 1:
            raise ValueError("no register byte received")
        return data[0]

    def _write_register(self, address: Address, value: int) -> None:
        self.bus.transmit_frame(bytes([address, value]), SpiCs.MODIFY, RwFlag.WRITE)

    def initialize(self) -> None:
        """Configure the sensor after a power cycle; leaves it in standby."""
        self._write_register(
            Address.DATA_FORMAT,
            DataFormat(
                range=DataRange.G16,
                justify=Justify.LSB_RIGHT,
                full_res=FullResolution.FULL_RES_4MG,
                int_invert=IntInvert.ACTIVE_HIGH,
                spi=SpiWire.FOUR_WIRE,
                self_test=SelfTest.DISABLE,
            ).to_byte(),
        )
        self._write_register(
            Address.BW_RATE,
            BwRate(rate=DataRate.ODR_3200, low_power=LowPower.NORMAL).to_byte(),
        )
        self._write_register(
            Address.FIFO_CTL,
            FifoCtl(
                samples=WATERMARK_LEVEL,
                trigger=FifoTrigger.INT1,
                fifo_mode=FifoMode.FIFO,
            ).to_byte(),
        )
        self._write_register(Address.POWER_CTL, PowerCtl(measure=MeasureMode.STANDBY).to_byte())
        # watermark -> INT1, overrun -> INT2
        self._write_register(
            Address.INT_MAP,
            IntMap_overrun_int2().to_byte(),
        )
        self._write_register(
            Address.INT_ENABLE,
            IntEnable(overrun=True, watermark=True).to_byte(),
        )

    def get_output_data_rate(self) -> DataRate:
        return BwRate.from_byte(self._read_register(Address.BW_RATE)).rate

    def set_output_data_rate(self, rate: int) -> None:
        """Set the output data rate code; raise ValueError for unknown codes."""
        new_rate = _member(DataRate, rate)
        reg = BwRate.from_byte(self._read_register(Address.BW_RATE))
        self._write_register(Address.BW_RATE, replace(reg, rate=new_rate).to_byte())

    def get_range(self) -> DataRange:
        return DataFormat.from_byte(self._read_register(Address.DATA_FORMAT)).range

    def set_range(self, value: int) -> None:
        """Set the measurement range; raise ValueError for unknown codes."""
        new_range = _member(DataRange, value)
        reg = DataFormat.from_byte(self._read_register(Address.DATA_FORMAT))
        self._write_register(Address.DATA_FORMAT, replace(reg, range=new_range).to_byte())

    def get_scale(self) -> FullResolution:
        return DataFormat.from_byte(self._read_register(Address.DATA_FORMAT)).full_res

    def set_scale(self, scale: int) -> None:
        """Set the resolution mode; raise ValueError for unknown codes."""
        new_scale = _member(FullResolution, scale)
        reg = DataFormat.from_byte(self._read_register(Address.DATA_FORMAT))
        self._write_register(Address.DATA_FORMAT, replace(reg, full_res=new_scale).to_byte())

    def _set_measure(self, mode: MeasureMode) -> None:
        reg = PowerCtl.from_byte(self._read_register(Address.POWER_CTL))
        self._write_register(Address.POWER_CTL, replace(reg, measure=mode).to_byte())

    def set_power_standby(self) -> None:
        self._set_measure(MeasureMode.STANDBY)

    def set_power_measure(self) -> None:
        self._set_measure(MeasureMode.MEASURE)

    def read_acceleration(self) -> Acceleration:
        """Read the next sample from the sensor FIFO."""
        data = self.bus.transmit_receive_frame(bytes([Address.DATA_X0]), Acceleration.SIZE)
        return Acceleration.from_bytes(bytes(data)[: Acceleration.SIZE])


def IntMap_overrun_int2():  # noqa: N802
    """Interrupt map used at start-up: overrun on INT2, everything else on INT1."""
    from .registers import IntMap

    return IntMap(
        overrun=InterruptPin.INT2,
        watermark=InterruptPin.INT1,
        free_fall=InterruptPin.INT1,
        inactivity=InterruptPin.INT1,
        activity=InterruptPin.INT1,
        double_tap=InterruptPin.INT1,
        single_tap=InterruptPin.INT1,
        data_ready=InterruptPin.INT1,
    )