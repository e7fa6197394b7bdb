"""AHT20 temperature and humidity sensor over I2C.

The bus object must provide ``write(address, data, nostop=False)`` and
``read(address, length) -> bytes``.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

ADDRESS = 0x38
CMD_INIT = 0xBE
CMD_TRIGGER = 0xAC
CMD_RESET = 0xBA
STATUS_BUSY = 0x80
STATUS_CALIBRATED = 0x08

_POLL_ATTEMPTS = 10
_FULL_SCALE = 1048576.0


@dataclass
class AHT20Data:
    """A temperature (degrees Celsius) and relative humidity (%) reading."""

    temperature: float = 0.0
    humidity: float = 0.0


def decode_measurement(buffer) -> AHT20Data:
    """Decode the six measurement bytes returned after a trigger."""
    data = bytes(buffer)
    if len(data) != 6:
        raise ValueError(f"expected 6 measurement bytes, got {len(data)}")
    raw_humidity = (data[1] << 12) | (data[2] << 4) | (data[3] >> 4)
    raw_temp = ((data[3] & 0x0F) << 16) | (data[4] << 8) | data[5]
    return AHT20Data(
        temperature=raw_temp * 200.0 / _FULL_SCALE - 50.0,
        humidity=raw_humidity * 100.0 / _FULL_SCALE,
    )


class AHT20:
    """Driver for an AHT20 at address 0x38."""

    def __init__(self, bus, sleep: Callable[[float], None] | None = None) -> None:
        self._bus = bus
        self._sleep = sleep if sleep is not None else time.sleep

    def _status(self) -> int:
        data = bytes(self._bus.read(ADDRESS, 1))
        if not data:
            raise OSError("no status byte from AHT20")
        return data[0]

    def init(self) -> bool:
        """Send the initialisation command; return whether calibration is reported."""
        self._bus.write(ADDRESS, bytes([CMD_INIT, 0x08, 0x00]), nostop=False)
        self._sleep(0.05)
        for _ in range(_POLL_ATTEMPTS):
            if self._status() & STATUS_CALIBRATED:
                return True
            self._sleep(0.01)
        return False

    def read(self) -> AHT20Data:
        """Trigger a measurement and return the decoded result.

        Raises TimeoutError if the sensor stays busy and OSError on a short read.
        """
        self._bus.write(ADDRESS, bytes([CMD_TRIGGER, 0x33, 0x00]), nostop=False)
        status = STATUS_BUSY
        for _ in range(_POLL_ATTEMPTS):
            status = self._status()
            if not status & STATUS_BUSY:
                break
            self._sleep(0.01)
        if status & STATUS_BUSY:
            raise TimeoutError("AHT20 measurement still busy")
        buffer = bytes(self._bus.read(ADDRESS, 6))
        if len(buffer) != 6:
            raise OSError("short read from AHT20")
        return decode_measurement(buffer)

    def reset(self) -> None:
        """Soft-reset the sensor and initialise it again."""
        self._bus.write(ADDRESS, bytes([CMD_RESET]), nostop=False)
        self._sleep(0.02)
        self.init()

    def check(self) -> bool:
        """Return whether the sensor answers a one-byte read."""
        try:
            return len(bytes(self._bus.read(ADDRESS, 1))) == 1
        except OSError:
            return False