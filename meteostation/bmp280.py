"""BMP280 barometric pressure and temperature sensor over I2C.

The bus object must provide ``write(address, data, nostop=False)`` and
``read(address, length) -> bytes``.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Protocol

ADDRESS = 0x76

REG_CONFIG = 0xF5
REG_CTRL_MEAS = 0xF4
REG_RESET = 0xE0

REG_TEMP_XLSB = 0xFC
REG_TEMP_LSB = 0xFB
REG_TEMP_MSB = 0xFA

REG_PRESSURE_XLSB = 0xF9
REG_PRESSURE_LSB = 0xF8
REG_PRESSURE_MSB = 0xF7

REG_DIG_T1_LSB = 0x88

NUM_CALIB_PARAMS = 24

RESET_WORD = 0xB6

_CALIB_FORMAT = "<HhhHhhhhhhhh"


class _I2CBus(Protocol):
    def write(self, address: int, data: bytes, nostop: bool = False) -> None: ...

    def read(self, address: int, length: int) -> bytes: ...


def _i32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def _u32(value: int) -> int:
    return value & 0xFFFFFFFF


@dataclass(frozen=True)
class CalibParams:
    """Factory trimming parameters stored in the sensor's NVM."""

    dig_t1: int
    dig_t2: int
    dig_t3: int
    dig_p1: int
    dig_p2: int
    dig_p3: int
    dig_p4: int
    dig_p5: int
    dig_p6: int
    dig_p7: int
    dig_p8: int
    dig_p9: int

    @classmethod
    def from_bytes(cls, data) -> "CalibParams":
        """Decode the 24 little-endian calibration bytes starting at 0x88."""
        raw = bytes(data)
        if len(raw) != NUM_CALIB_PARAMS:
            raise ValueError(
                f"expected {NUM_CALIB_PARAMS} calibration bytes, got {len(raw)}"
            )
        return cls(*struct.unpack(_CALIB_FORMAT, raw))


def fine_temperature(raw_temp: int, params: CalibParams) -> int:
    """Fine-resolution temperature shared by both compensation formulas."""
    raw_temp = _i32(raw_temp)
    t1, t2, t3 = params.dig_t1, params.dig_t2, params.dig_t3
    var1 = _i32(_i32((raw_temp >> 3) - (t1 << 1)) * t2) >> 11
    diff = _i32((raw_temp >> 4) - t1)
    var2 = _i32((_i32(diff * diff) >> 12) * t3) >> 14
    return _i32(var1 + var2)


def convert_temp(raw_temp: int, params: CalibParams) -> int:
    """Compensated temperature in hundredths of a degree Celsius."""
    t_fine = fine_temperature(raw_temp, params)
    return _i32(t_fine * 5 + 128) >> 8


def convert_pressure(raw_pressure: int, raw_temp: int, params: CalibParams) -> int:
    """Compensated pressure in pascals, using 32-bit fixed-point arithmetic."""
    raw_pressure = _i32(raw_pressure)
    t_fine = fine_temperature(raw_temp, params)

    var1 = _i32((t_fine >> 1) - 64000)
    quarter = var1 >> 2
    square = _i32(quarter * quarter)
    var2 = _i32((square >> 11) * params.dig_p6)
    var2 = _i32(var2 + _i32(_i32(var1 * params.dig_p5) << 1))
    var2 = _i32((var2 >> 2) + _i32(params.dig_p4 << 16))
    var1 = _i32(
        (_i32(params.dig_p3 * (square >> 13)) >> 3) + (_i32(params.dig_p2 * var1) >> 1)
    ) >> 18
    var1 = _i32((32768 + var1) * params.dig_p1) >> 15
    if var1 == 0:
        return 0

    converted = _u32(_u32(_u32(1048576 - raw_pressure) - (var2 >> 12)) * 3125)
    divisor = _u32(var1)
    if converted < 0x80000000:
        converted = _u32(converted << 1) // divisor
    else:
        converted = _u32((converted // divisor) * 2)

    eighth = converted >> 3
    var1 = _i32(params.dig_p9 * _i32(_u32(eighth * eighth) >> 13)) >> 12
    var2 = _i32(_i32(converted >> 2) * params.dig_p8) >> 13
    converted = _u32(_i32(converted) + (_i32(var1 + var2 + params.dig_p7) >> 4))
    return _i32(converted)


class BMP280:
    """Driver for a BMP280 at address 0x76."""

    def __init__(self, bus: _I2CBus) -> None:
        self._bus = bus

    def init(self) -> None:
        """Configure filtering, standby time, oversampling and normal mode."""
        config = ((0x04 << 5) | (0x05 << 2)) & 0xFC
        ctrl_meas = (0x01 << 5) | (0x03 << 2) | 0x03
        self._bus.write(ADDRESS, bytes([REG_CONFIG, config]), nostop=False)
        self._bus.write(ADDRESS, bytes([REG_CTRL_MEAS, ctrl_meas]), nostop=False)

    def read_raw(self) -> tuple[int, int]:
        """Return the uncompensated ``(temperature, pressure)`` readings."""
        self._bus.write(ADDRESS, bytes([REG_PRESSURE_MSB]), nostop=True)
        buf = bytes(self._bus.read(ADDRESS, 6))
        if len(buf) < 6:
            raise OSError("short read from BMP280")
        pressure = (buf[0] << 12) | (buf[1] << 4) | (buf[2] >> 4)
        temperature = (buf[3] << 12) | (buf[4] << 4) | (buf[5] >> 4)
        return temperature, pressure

    def reset(self) -> None:
        """Issue a soft reset."""
        self._bus.write(ADDRESS, bytes([REG_RESET, RESET_WORD]), nostop=False)

    def get_calib_params(self) -> CalibParams:
        """Read the calibration parameters from the sensor."""
        self._bus.write(ADDRESS, bytes([REG_DIG_T1_LSB]), nostop=True)
        data = bytes(self._bus.read(ADDRESS, NUM_CALIB_PARAMS))
        if len(data) < NUM_CALIB_PARAMS:
            raise OSError("short read from BMP280")
        return CalibParams.from_bytes(data)