"""SSD1306 monochrome OLED display driver with an in-memory frame buffer.

The bus object must provide ``write(address, data, nostop=False)``.
The frame buffer uses vertical addressing: each column holds ``pages``
consecutive bytes, and bit 0 of a byte is the topmost pixel of its page.
"""

from __future__ import annotations

from enum import IntEnum

from .font import GLYPH_SIZE, glyph

WIDTH = 128
HEIGHT = 64
DEFAULT_ADDRESS = 0x3C

_DATA_PREFIX = 0x40
_COMMAND_PREFIX = 0x80


class Command(IntEnum):
    """SSD1306 command bytes."""

    SET_CONTRAST = 0x81
    SET_ENTIRE_ON = 0xA4
    SET_NORM_INV = 0xA6
    SET_DISP = 0xAE
    SET_MEM_ADDR = 0x20
    SET_COL_ADDR = 0x21
    SET_PAGE_ADDR = 0x22
    SET_DISP_START_LINE = 0x40
    SET_SEG_REMAP = 0xA0
    SET_MUX_RATIO = 0xA8
    SET_COM_OUT_DIR = 0xC0
    SET_DISP_OFFSET = 0xD3
    SET_COM_PIN_CFG = 0xDA
    SET_DISP_CLK_DIV = 0xD5
    SET_PRECHARGE = 0xD9
    SET_VCOM_DESEL = 0xDB
    SET_CHARGE_PUMP = 0x8D


class SSD1306:
    """Frame buffer and command interface for an SSD1306 display."""

    def __init__(
        self,
        bus,
        width: int = WIDTH,
        height: int = HEIGHT,
        address: int = DEFAULT_ADDRESS,
        external_vcc: bool = False,
    ) -> None:
        if not 0 < width <= 256:
            raise ValueError(f"width must be in 1..256, got {width}")
        if not 0 < height <= 256 or height % 8:
            raise ValueError(f"height must be a positive multiple of 8 up to 256, got {height}")
        self._bus = bus
        self.width = width
        self.height = height
        self.pages = height // 8
        self.address = address
        self.external_vcc = external_vcc
        self._buffer = bytearray(self.pages * width + 1)
        self._buffer[0] = _DATA_PREFIX

    @property
    def buffer(self) -> bytes:
        """The data transfer sent by ``send_data``: a 0x40 prefix then the frame."""
        return bytes(self._buffer)

    def config(self) -> None:
        """Send the power-up configuration sequence and switch the display on."""
        sequence = (
            Command.SET_DISP | 0x00,
            Command.SET_MEM_ADDR, 0x01,
            Command.SET_DISP_START_LINE | 0x00,
            Command.SET_SEG_REMAP | 0x01,
            Command.SET_MUX_RATIO, self.height - 1,
            Command.SET_COM_OUT_DIR | 0x08,
            Command.SET_DISP_OFFSET, 0x00,
            Command.SET_COM_PIN_CFG, 0x12,
            Command.SET_DISP_CLK_DIV, 0x80,
            Command.SET_PRECHARGE, 0xF1,
            Command.SET_VCOM_DESEL, 0x30,
            Command.SET_CONTRAST, 0xFF,
            Command.SET_ENTIRE_ON,
            Command.SET_NORM_INV,
            Command.SET_CHARGE_PUMP, 0x14,
            Command.SET_DISP | 0x01,
        )
        for byte in sequence:
            self.command(byte)

    def command(self, command: int) -> None:
        """Send a single command byte."""
        self._bus.write(self.address, bytes([_COMMAND_PREFIX, int(command) & 0xFF]), nostop=False)

    def send_data(self) -> None:
        """Set the full address window and transfer the frame buffer."""
        for byte in (
            Command.SET_COL_ADDR, 0, self.width - 1,
            Command.SET_PAGE_ADDR, 0, self.pages - 1,
        ):
            self.command(byte)
        self._bus.write(self.address, bytes(self._buffer), nostop=False)

    def _locate(self, x: int, y: int) -> tuple[int, int] | None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            return None
        return x * self.pages + (y >> 3) + 1, 1 << (y & 0x07)

    def pixel(self, x: int, y: int, value: bool) -> None:
        """Set or clear one pixel; coordinates off the display are ignored."""
        location = self._locate(x, y)
        if location is None:
            return
        index, mask = location
        if value:
            self._buffer[index] |= mask
        else:
            self._buffer[index] &= ~mask & 0xFF

    def get_pixel(self, x: int, y: int) -> bool:
        """Return whether a pixel is lit; pixels off the display read as unlit."""
        location = self._locate(x, y)
        if location is None:
            return False
        index, mask = location
        return bool(self._buffer[index] & mask)

    def fill(self, value: bool) -> None:
        """Set every pixel to ``value``."""
        byte = 0xFF if value else 0x00
        self._buffer[1:] = bytes([byte]) * (len(self._buffer) - 1)

    def rect(self, top: int, left: int, width: int, height: int, value: bool, fill: bool = False) -> None:
        """Draw a rectangle outline, and fill its interior when ``fill`` is true."""
        for x in range(left, left + width):
            self.pixel(x, top, value)
            self.pixel(x, top + height - 1, value)
        for y in range(top, top + height):
            self.pixel(left, y, value)
            self.pixel(left + width - 1, y, value)
        if fill:
            for x in range(left + 1, left + width - 1):
                for y in range(top + 1, top + height - 1):
                    self.pixel(x, y, value)

    def line(self, x0: int, y0: int, x1: int, y1: int, value: bool) -> None:
        """Draw a line between two points with Bresenham's algorithm."""
        dx = abs(x1 - x0)
        dy = abs(y1 - y0)
        sx = 1 if x0 < x1 else -1
        sy = 1 if y0 < y1 else -1
        err = dx - dy
        while True:
            self.pixel(x0, y0, value)
            if x0 == x1 and y0 == y1:
                break
            e2 = err * 2
            if e2 > -dy:
                err -= dy
                x0 += sx
            if e2 < dx:
                err += dx
                y0 += sy

    def hline(self, x0: int, x1: int, y: int, value: bool) -> None:
        """Draw a horizontal line from ``x0`` to ``x1`` inclusive."""
        for x in range(x0, x1 + 1):
            self.pixel(x, y, value)

    def vline(self, x: int, y0: int, y1: int, value: bool) -> None:
        """Draw a vertical line from ``y0`` to ``y1`` inclusive."""
        for y in range(y0, y1 + 1):
            self.pixel(x, y, value)

    def draw_char(self, char: str, x: int, y: int) -> None:
        """Draw one 8x8 character with its top-left corner at ``(x, y)``."""
        for i, column in enumerate(glyph(char)):
            for j in range(GLYPH_SIZE):
                self.pixel(x + i, y + j, bool(column & (1 << j)))

    def draw_string(self, text: str, x: int, y: int) -> None:
        """Draw text, wrapping to the next row and stopping at the bottom edge."""
        for char in text:
            self.draw_char(char, x, y)
            x += GLYPH_SIZE
            if x + GLYPH_SIZE >= self.width:
                x = 0
                y += GLYPH_SIZE
            if y + GLYPH_SIZE >= self.height:
                break