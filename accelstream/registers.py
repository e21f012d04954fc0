"""ADXL345 register addresses, flag values and bit-packed register layouts."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum, IntFlag
from typing import Any, Callable, ClassVar, Dict, Tuple


class Address(IntEnum):
    """Register addresses of the sensor's register map."""

    DEV_ID = 0x00
    RESERVED_01 = 0x01
    RESERVED_1C = 0x1C
    THRES_TAP = 0x1D
    OFFS_X = 0x1E
    OFFS_Y = 0x1F
    OFFS_Z = 0x20
    DUR = 0x21
    LATENT = 0x22
    WINDOW = 0x23
    THRES_ACT = 0x24
    THRES_INACT = 0x25
    TIME_INACT = 0x26
    ACT_INACT_CTL = 0x27
    THRES_FF = 0x28
    TIME_FF = 0x29
    TAP_AXES = 0x2A
    ACT_TAP_STATUS = 0x2B
    BW_RATE = 0x2C
    POWER_CTL = 0x2D
    INT_ENABLE = 0x2E
    INT_MAP = 0x2F
    INT_SOURCE = 0x30
    DATA_FORMAT = 0x31
    DATA_X0 = 0x32
    DATA_X1 = 0x33
    DATA_Y0 = 0x34
    DATA_Y1 = 0x35
    DATA_Z0 = 0x36
    DATA_Z1 = 0x37
    FIFO_CTL = 0x38
    FIFO_STATUS = 0x39


class SpiCs(IntEnum):
    """Whether chip select is driven around a transaction."""

    MODIFY = 0
    UNTOUCHED = 1


class RwFlag(IntFlag):
    """Read/write and multi-byte bits of the SPI address byte."""

    WRITE = 0x00
    SINGLE_BYTE = 0x00
    MULTI_BYTE = 0x40
    READ = 0x80


class WakeupRate(IntEnum):
    HZ_8 = 0b00
    HZ_4 = 0b01
    HZ_2 = 0b10
    HZ_1 = 0b11


class SleepMode(IntEnum):
    NORMAL = 0
    SLEEP = 1


class MeasureMode(IntEnum):
    STANDBY = 0
    MEASURE = 1


class AutoSleep(IntEnum):
    DISABLED = 0
    ENABLED = 1


class LinkMode(IntEnum):
    CONCURRENT = 0
    SERIAL = 1


class InterruptPin(IntEnum):
    """Interrupt output pin an event is routed to."""

    INT1 = 0
    INT2 = 1


class SelfTest(IntEnum):
    DISABLE = 0
    ENABLE = 1


class SpiWire(IntEnum):
    FOUR_WIRE = 0
    THREE_WIRE = 1


class IntInvert(IntEnum):
    ACTIVE_HIGH = 0
    ACTIVE_LOW = 1


class FullResolution(IntEnum):
    """Output resolution: fixed 10 bit or full resolution at 4 mg/LSB."""

    BITS_10 = 0
    FULL_RES_4MG = 1


class Justify(IntEnum):
    LSB_RIGHT = 0
    MSB_LEFT = 1


class DataRange(IntEnum):
    """Measurement range in g."""

    G2 = 0b00
    G4 = 0b01
    G8 = 0b10
    G16 = 0b11


class DataRate(IntEnum):
    """Output data rate codes; reduced-power names alias the same codes."""

    ODR_3200 = 0b1111
    ODR_1600 = 0b1110
    ODR_800 = 0b1101
    ODR_400 = 0b1100
    ODR_200 = 0b1011
    ODR_100 = 0b1010
    ODR_50 = 0b1001
    ODR_25 = 0b1000
    ODR_12_5 = 0b0111
    ODR_6_25 = 0b0110
    ODR_3_13 = 0b0101
    ODR_1_56 = 0b0100
    ODR_0_78 = 0b0011
    ODR_0_39 = 0b0010
    ODR_0_20 = 0b0001
    ODR_0_10 = 0b0000
    REDUCED_ODR_400 = 0b1100
    REDUCED_ODR_200 = 0b1011
    REDUCED_ODR_100 = 0b1010
    REDUCED_ODR_50 = 0b1001
    REDUCED_ODR_25 = 0b1000
    REDUCED_ODR_12_5 = 0b0111


class LowPower(IntEnum):
    NORMAL = 0
    REDUCED = 1


class FifoTrigger(IntEnum):
    INT1 = 0
    INT2 = 1


class FifoMode(IntEnum):
    BYPASS = 0b00
    FIFO = 0b01
    STREAM = 0b10
    TRIGGER = 0b11


_Layout = Tuple[Tuple[str, int, int, Callable[[int], Any]], ...]


def _pack(register: Any, layout: _Layout) -> int:
    return sum(int(getattr(register, name)) << shift for name, shift, _w, _c in layout)


def _unpack(layout: _Layout, value: int) -> Dict[str, int]:
    value = int(value)
    if not 0 <= value <= 0xFF:
        raise ValueError(f"register value must be a byte, got {value}")
    return {
        name: (value >> shift) & ((1 << width) - 1)
        for name, shift, width, _convert in layout
    }


class _BitRegister:
    """Validates and converts the named fields of one register byte."""

    _layout: ClassVar[_Layout] = ()

    def __post_init__(self) -> None:
        for name, _shift, width, convert in self._layout:
            raw = int(getattr(self, name))
            if not 0 <= raw < (1 << width):
                raise ValueError(
                    f"{type(self).__name__}.{name} must fit in {width} bit(s), got {raw}"
                )
            object.__setattr__(self, name, convert(raw))


@dataclass(frozen=True)
class BwRate(_BitRegister):
    rate: DataRate = DataRate.ODR_0_10
    low_power: LowPower = LowPower.NORMAL

    _layout = (("rate", 0, 4, DataRate), ("low_power", 4, 1, LowPower))

    def to_byte(self) -> int:
        """Return the register value as a byte; reserved bits are zero."""
        return _pack(self, self._layout)

    @classmethod
    def from_byte(cls, value: int) -> "BwRate":
        """Decode a register byte; reserved bits are ignored."""
        return cls(**_unpack(cls._layout, value))


@dataclass(frozen=True)
class PowerCtl(_BitRegister):
    wakeup: WakeupRate = WakeupRate.HZ_8
    sleep: SleepMode = SleepMode.NORMAL
    measure: MeasureMode = MeasureMode.STANDBY
    auto_sleep: AutoSleep = AutoSleep.DISABLED
    link: LinkMode = LinkMode.CONCURRENT

    _layout = (
        ("wakeup", 0, 2, WakeupRate),
        ("sleep", 2, 1, SleepMode),
        ("measure", 3, 1, MeasureMode),
        ("auto_sleep", 4, 1, AutoSleep),
        ("link", 5, 1, LinkMode),
    )

    def to_byte(self) -> int:
        """Return the register value as a byte; reserved bits are zero."""
        return _pack(self, self._layout)

    @classmethod
    def from_byte(cls, value: int) -> "PowerCtl":
        """Decode a register byte; reserved bits are ignored."""
        return cls(**_unpack(cls._layout, value))


@dataclass(frozen=True)
class IntEnable(_BitRegister):
    overrun: bool = False
    watermark: bool = False
    free_fall: bool = False
    inactivity: bool = False
    activity: bool = False
    double_tap: bool = False
    single_tap: bool = False
    data_ready: bool = False

    _layout = (
        ("overrun", 0, 1, bool),
        ("watermark", 1, 1, bool),
        ("free_fall", 2, 1, bool),
        ("inactivity", 3, 1, bool),
        ("activity", 4, 1, bool),
        ("double_tap", 5, 1, bool),
        ("single_tap", 6, 1, bool),
        ("data_ready", 7, 1, bool),
    )

    def to_byte(self) -> int:
        """Return the register value as a byte."""
        return _pack(self, self._layout)

    @classmethod
    def from_byte(cls, value: int) -> "IntEnable":
        """Decode a register byte."""
        return cls(**_unpack(cls._layout, value))


@dataclass(frozen=True)
class IntMap(_BitRegister):
    overrun: InterruptPin = InterruptPin.INT1
    watermark: InterruptPin = InterruptPin.INT1
    free_fall: InterruptPin = InterruptPin.INT1
    inactivity: InterruptPin = InterruptPin.INT1
    activity: InterruptPin = InterruptPin.INT1
    double_tap: InterruptPin = InterruptPin.INT1
    single_tap: InterruptPin = InterruptPin.INT1
    data_ready: InterruptPin = InterruptPin.INT1

    _layout = (
        ("overrun", 0, 1, InterruptPin),
        ("watermark", 1, 1, InterruptPin),
        ("free_fall", 2, 1, InterruptPin),
        ("inactivity", 3, 1, InterruptPin),
        ("activity", 4, 1, InterruptPin),
        ("double_tap", 5, 1, InterruptPin),
        ("single_tap", 6, 1, InterruptPin),
        ("data_ready", 7, 1, InterruptPin),
    )

    def to_byte(self) -> int:
        """Return the register value as a byte."""
        return _pack(self, self._layout)

    @classmethod
    def from_byte(cls, value: int) -> "IntMap":
        """Decode a register byte."""
        return cls(**_unpack(cls._layout, value))


@dataclass(frozen=True)
class DataFormat(_BitRegister):
    range: DataRange = DataRange.G2
    justify: Justify = Justify.LSB_RIGHT
    full_res: FullResolution = FullResolution.BITS_10
    int_invert: IntInvert = IntInvert.ACTIVE_HIGH
    spi: SpiWire = SpiWire.FOUR_WIRE
    self_test: SelfTest = SelfTest.DISABLE

    _layout = (
        ("range", 0, 2, DataRange),
        ("justify", 2, 1, Justify),
        ("full_res", 3, 1, FullResolution),
        ("int_invert", 5, 1, IntInvert),
        ("spi", 6, 1, SpiWire),
        ("self_test", 7, 1, SelfTest),
    )

    def to_byte(self) -> int:
        """Return the register value as a byte; reserved bits are zero."""
        return _pack(self, self._layout)

    @classmethod
    def from_byte(cls, value: int) -> "DataFormat":
        """Decode a register byte; reserved bits are ignored."""
        return cls(**_unpack(cls._layout, value))


@dataclass(frozen=True)
class FifoCtl(_BitRegister):
    samples: int = 0
    trigger: FifoTrigger = FifoTrigger.INT1
    fifo_mode: FifoMode = FifoMode.BYPASS

    _layout = (
        ("samples", 0, 5, int),
        ("trigger", 5, 1, FifoTrigger),
        ("fifo_mode", 6, 2, FifoMode),
    )

    def to_byte(self) -> int:
        """Return the register value as a byte."""
        return _pack(self, self._layout)

    @classmethod
    def from_byte(cls, value: int) -> "FifoCtl":
        """Decode a register byte."""
        return cls(**_unpack(cls._layout, value))


@dataclass(frozen=True)
class FifoStatus(_BitRegister):
    entries: int = 0
    fifo_trig: bool = False

    _layout = (("entries", 0, 6, int), ("fifo_trig", 7, 1, bool))

    def to_byte(self) -> int:
        """Return the register value as a byte; reserved bits are zero."""
        return _pack(self, self._layout)

    @classmethod
    def from_byte(cls, value: int) -> "FifoStatus":
        """Decode a register byte; reserved bits are ignored."""
        return cls(**_unpack(cls._layout, value))


_ACCELERATION = struct.Struct("<hhh")


@dataclass(frozen=True)
class Acceleration:
    """One raw sample as laid out in the sensor's data registers."""

    x: int = 0
    y: int = 0
    z: int = 0

    SIZE: ClassVar[int] = _ACCELERATION.size

    def to_bytes(self) -> bytes:
        try:
            return _ACCELERATION.pack(self.x, self.y, self.z)
        except struct.error as exc:
            raise ValueError(f"acceleration values must be 16-bit signed: {exc}") from exc

    @classmethod
    def from_bytes(cls, data: bytes) -> "Acceleration":
        if len(data) != _ACCELERATION.size:
            raise ValueError(
                f"acceleration needs {_ACCELERATION.size} bytes, got {len(data)}"
            )
        x, y, z = _ACCELERATION.unpack(bytes(data))
        return cls(x, y, z)