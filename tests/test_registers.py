import pytest

from accelstream.registers import (
    Acceleration,
    Address,
    BwRate,
    DataFormat,
    DataRange,
    DataRate,
    FifoCtl,
    FifoMode,
    FifoStatus,
    FifoTrigger,
    FullResolution,
    IntEnable,
    IntMap,
    InterruptPin,
    LowPower,
    MeasureMode,
    PowerCtl,
    RwFlag,
    WakeupRate,
)


def _decode_all(value):
    return [
        BwRate.from_byte(value),
        PowerCtl.from_byte(value),
        IntEnable.from_byte(value),
        IntMap.from_byte(value),
        DataFormat.from_byte(value),
        FifoCtl.from_byte(value),
        FifoStatus.from_byte(value),
    ]


def test_address_values_match_register_map():
    assert Address(0x2C) is Address.BW_RATE
    assert Address(0x31) is Address.DATA_FORMAT
    assert Address(0x38) is Address.FIFO_CTL


def test_read_flag_sets_top_bit_of_address_byte():
    byte = Address.DATA_X0 | RwFlag.READ
    assert byte == 0x32 | 0x80
    assert Address(byte & 0x3F) is Address.DATA_X0
    assert Address(Address.DATA_X0 | RwFlag.WRITE) is Address.DATA_X0


def test_reduced_power_rates_alias_normal_codes():
    assert DataRate.REDUCED_ODR_400 is DataRate.ODR_400
    assert DataRate(0b1111) is DataRate.ODR_3200


def test_bw_rate_rate_occupies_low_nibble():
    assert BwRate(rate=DataRate.ODR_3200).to_byte() == 0b1111


def test_data_format_init_value():
    reg = DataFormat(range=DataRange.G16, full_res=FullResolution.FULL_RES_4MG)
    assert reg.to_byte() == 0x0B


def test_fifo_ctl_watermark_configuration():
    reg = FifoCtl(samples=24, trigger=FifoTrigger.INT1, fifo_mode=FifoMode.FIFO)
    assert reg.to_byte() == 0x58


def test_default_register_is_zero():
    values = [
        BwRate().to_byte(),
        PowerCtl().to_byte(),
        IntEnable().to_byte(),
        IntMap().to_byte(),
        DataFormat().to_byte(),
        FifoCtl().to_byte(),
        FifoStatus().to_byte(),
    ]
    assert values == [0] * 7


def test_from_byte_round_trips_through_to_byte():
    for value in range(256):
        for reg in _decode_all(value):
            assert type(reg).from_byte(reg.to_byte()) == reg
            assert reg.to_byte() & ~value == 0


@pytest.mark.parametrize("value", [-1, 256])
def test_from_byte_rejects_non_byte(value):
    with pytest.raises(ValueError):
        BwRate.from_byte(value)
    with pytest.raises(ValueError):
        PowerCtl.from_byte(value)
    with pytest.raises(ValueError):
        IntEnable.from_byte(value)
    with pytest.raises(ValueError):
        IntMap.from_byte(value)
    with pytest.raises(ValueError):
        DataFormat.from_byte(value)
    with pytest.raises(ValueError):
        FifoCtl.from_byte(value)
    with pytest.raises(ValueError):
        FifoStatus.from_byte(value)


def test_int_enable_fields_map_to_distinct_single_bits():
    names = [
        "overrun", "watermark", "free_fall", "inactivity",
        "activity", "double_tap", "single_tap", "data_ready",
    ]
    bits = [IntEnable(**{name: True}).to_byte() for name in names]
    assert all(bin(bit).count("1") == 1 for bit in bits)
    assert bits == sorted(bits)
    assert len(set(bits)) == len(names)
    full = IntEnable.from_byte(sum(bits))
    assert all(getattr(full, name) for name in names)


def test_int_map_overrun_to_int2_only_sets_lowest_bit():
    reg = IntMap(overrun=InterruptPin.INT2)
    assert reg.to_byte() == 1
    assert IntMap.from_byte(1).overrun is InterruptPin.INT2
    assert IntMap.from_byte(1).watermark is InterruptPin.INT1


def test_power_ctl_measure_round_trip():
    reg = PowerCtl(measure=MeasureMode.MEASURE, wakeup=WakeupRate.HZ_1)
    decoded = PowerCtl.from_byte(reg.to_byte())
    assert decoded.measure is MeasureMode.MEASURE
    assert decoded.wakeup is WakeupRate.HZ_1


def test_from_byte_yields_enum_members():
    reg = BwRate.from_byte(BwRate(DataRate.ODR_100, LowPower.REDUCED).to_byte())
    assert reg.rate is DataRate.ODR_100
    assert reg.low_power is LowPower.REDUCED


def test_field_out_of_width_is_rejected():
    with pytest.raises(ValueError):
        FifoCtl(samples=32)
    with pytest.raises(ValueError):
        FifoStatus(entries=64)


def test_reserved_bits_are_dropped():
    assert DataFormat.from_byte(1 << 4).to_byte() == 0
    assert FifoStatus.from_byte(1 << 6).to_byte() == 0


def test_acceleration_wire_layout():
    assert Acceleration(1, -2, 3).to_bytes() == b"\x01\x00\xfe\xff\x03\x00"


@pytest.mark.parametrize("values", [(0, 0, 0), (-32768, 32767, -1), (1000, -1000, 256)])
def test_acceleration_round_trip(values):
    acc = Acceleration(*values)
    data = acc.to_bytes()
    assert len(data) == Acceleration.SIZE
    assert Acceleration.from_bytes(data) == acc


def test_acceleration_rejects_wrong_length():
    with pytest.raises(ValueError):
        Acceleration.from_bytes(b"\x00" * 5)


def test_acceleration_rejects_out_of_range_value():
    with pytest.raises(ValueError):
        Acceleration(40000, 0, 0).to_bytes()