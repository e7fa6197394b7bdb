"""5x5 WS2812 LED matrix frame buffer.

LEDs are numbered 0..24, with 24 at the top-left and 0 at the bottom-right.
Colours are sent in GRB order, one frame of 75 bytes per ``display`` call.
"""

from __future__ import annotations

from collections.abc import Callable

LED_COUNT = 25
DATA_PIN = 7

_X_LEDS = (24, 20, 18, 16, 12, 8, 6, 4, 0)


class LedMatrix:
    """Holds LED colours and pushes them through ``writer`` as GRB bytes."""

    def __init__(self, writer: Callable[[bytes], None]) -> None:
        self._writer = writer
        self._grb = bytearray(LED_COUNT * 3)

    def set_led(self, index: int, r: int, g: int, b: int) -> None:
        """Store the colour of one LED without sending it."""
        if not 0 <= index < LED_COUNT:
            raise IndexError(f"LED index {index} out of range 0..{LED_COUNT - 1}")
        channels = (int(g), int(r), int(b))
        if any(not 0 <= value <= 255 for value in channels):
            raise ValueError("colour components must be in 0..255")
        start = index * 3
        self._grb[start:start + 3] = bytes(channels)

    def display(self) -> None:
        """Send the stored colours of all LEDs."""
        self._writer(bytes(self._grb))

    def fill(self, r: int, g: int, b: int) -> None:
        """Light every LED with the same colour."""
        for index in reversed(range(LED_COUNT)):
            self.set_led(index, r, g, b)
        self.display()

    def show_x(self, r: int, g: int, b: int) -> None:
        """Light the LEDs on both diagonals, leaving the others unchanged."""
        for index in _X_LEDS:
            self.set_led(index, r, g, b)
        self.display()