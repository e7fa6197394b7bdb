"""Weather station logic: sensor polling, temperature alarm, display and HTTP API."""

from __future__ import annotations

import logging
import re
import socketserver
import threading
from collections.abc import Callable
from dataclasses import dataclass, replace

from .aht20 import AHT20Data
from .bmp280 import convert_pressure, convert_temp
from .webpage import html_body

logger = logging.getLogger(__name__)

SEA_LEVEL_PRESSURE = 101325.0

BMP_TEMP_MIN = -4000
BMP_TEMP_MAX = 8500
BMP_PRESSURE_MIN = 30000
BMP_PRESSURE_MAX = 110000

ALARM_TEMP_LOW = 1000
ALARM_TEMP_HIGH = 4000
ALARM_DELAY_MS = 3000
ALARM_DUTY_CYCLE = 50
DEBOUNCE_MS = 300

HTTP_PORT = 80
_RECV_SIZE = 4096

_ATOI = re.compile(r"\s*([+-]?\d+)", re.ASCII)


@dataclass(frozen=True)
class Limits:
    """Alert limits configured through the web page."""

    min: int = 0
    max: int = 100
    offset: int = 0


def _atoi(text: str) -> int:
    match = _ATOI.match(text)
    return int(match.group(1)) if match else 0


def _as_text(request) -> str:
    if isinstance(request, (bytes, bytearray, memoryview)):
        return bytes(request).decode("latin-1")
    return request


def parse_post_params(request, limits: Limits) -> Limits:
    """Return ``limits`` updated from the ``min``, ``max`` and ``offset`` form fields.

    The fields are read from the request body, after the blank line that ends
    the headers; a request without a body leaves the limits unchanged.
    """
    text = _as_text(request)
    _, separator, body = text.partition("\r\n\r\n")
    if not separator:
        return limits
    values: dict[str, int] = {}
    for token in filter(None, body.split("&")):
        for key in ("min", "max", "offset"):
            prefix = key + "="
            if token.startswith(prefix):
                values[key] = _atoi(token[len(prefix):])
                break
    return replace(limits, **values)


def calculate_altitude(pressure: float) -> float:
    """Estimate altitude in metres from pressure in pascals."""
    return 44330.0 * (1.0 - (pressure / SEA_LEVEL_PRESSURE) ** 0.1903)


@dataclass(frozen=True)
class Readings:
    """One round of sensor values.

    ``temperature`` is the BMP280 temperature in hundredths of a degree Celsius
    and ``pressure`` is in pascals.
    """

    temperature: int = 0
    pressure: int = 0
    altitude: float = 0.0
    aht_temperature: float = 0.0
    humidity: float = 0.0
    bmp_ok: bool = False
    aht_ok: bool = False

    @property
    def error(self) -> bool:
        """True when both sensors failed."""
        return not self.bmp_ok and not self.aht_ok

    @property
    def average(self) -> float:
        """Mean of the two sensors' temperatures in degrees Celsius."""
        return (self.temperature / 100.0 + self.aht_temperature) / 2

    @property
    def bmp_temperature_text(self) -> str:
        return f"{self.temperature / 100.0:.1f}C"

    @property
    def altitude_text(self) -> str:
        return f"{self.altitude:.0f}m"

    @property
    def aht_temperature_text(self) -> str:
        return f"{self.aht_temperature:.1f}C"

    @property
    def humidity_text(self) -> str:
        return f"{self.humidity:.1f}%"


def _start_timer(delay_ms: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay_ms / 1000.0, callback)
    timer.daemon = True
    timer.start()
    return timer


class Alarm:
    """Buzzer alarm for temperatures outside 10..40 degrees Celsius.

    ``buzzer`` provides ``on(duty_cycle)`` and ``off()``. ``scheduler`` is
    called as ``scheduler(delay_ms, callback)`` and returns a handle with a
    ``cancel()`` method; by default a daemon ``threading.Timer`` is used.
    """

    def __init__(self, buzzer, scheduler=None) -> None:
        self._buzzer = buzzer
        self._scheduler = scheduler if scheduler is not None else _start_timer
        self._pending = None
        self._active = False
        self._rearm = True
        self._last_press_ms = 0

    @property
    def active(self) -> bool:
        """Whether an alarm is scheduled or sounding."""
        return self._active

    @property
    def rearm(self) -> bool:
        """Whether a new out-of-range temperature may start the alarm."""
        return self._rearm

    def _sound(self) -> None:
        self._buzzer.on(ALARM_DUTY_CYCLE)

    def _cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def update(self, temperature: int) -> None:
        """Feed a temperature in hundredths of a degree Celsius."""
        in_range = ALARM_TEMP_LOW <= temperature <= ALARM_TEMP_HIGH
        if not in_range and not self._active and self._rearm:
            self._pending = self._scheduler(ALARM_DELAY_MS, self._sound)
            self._active = True
            self._rearm = False
        if in_range:
            if self._active:
                self._buzzer.off()
                self._active = False
                self._cancel()
            self._rearm = True

    def button_pressed(self, now_ms: int) -> bool:
        """Silence the alarm until the temperature returns to range.

        Presses within the debounce interval of the last accepted press are
        ignored. Returns whether the press was accepted.
        """
        if now_ms - self._last_press_ms <= DEBOUNCE_MS:
            return False
        self._buzzer.off()
        self._active = False
        self._rearm = False
        self._cancel()
        self._last_press_ms = now_ms
        return True


def _response(content_type: str, body: bytes) -> bytes:
    header = (
        "HTTP/1.1 200 OK\r\n"
        f"Content-Type: {content_type}\r\n"
        f"Content-Length: {len(body)}\r\n"
        "Connection: close\r\n"
        "\r\n"
    )
    return header.encode("ascii") + body


class Station:
    """Polls the sensors, drives the LED matrix and alarm, and answers HTTP requests."""

    def __init__(self, bmp, aht, matrix, alarm: Alarm) -> None:
        self._bmp = bmp
        self._aht = aht
        self._matrix = matrix
        self._alarm = alarm
        bmp.init()
        self._calib = bmp.get_calib_params()
        aht.reset()
        self.limits = Limits()
        self.readings = Readings()

    def poll(self) -> Readings:
        """Read both sensors once, update the indicators and return the readings."""
        previous = self.readings
        raw_temp, raw_pressure = self._bmp.read_raw()
        temperature = convert_temp(raw_temp, self._calib)
        pressure = convert_pressure(raw_pressure, raw_temp, self._calib)

        bmp_ok = (
            BMP_TEMP_MIN <= temperature <= BMP_TEMP_MAX
            and BMP_PRESSURE_MIN <= pressure <= BMP_PRESSURE_MAX
        )
        if bmp_ok:
            altitude = calculate_altitude(pressure)
            logger.info("Pressure = %.3f kPa", pressure / 1000.0)
            logger.info("BMP temperature = %.2f C", temperature / 100.0)
            logger.info("Estimated altitude: %.2f m", altitude)
        else:
            altitude = previous.altitude
            logger.warning("BMP280 reading failed")

        try:
            aht = self._aht.read()
        except OSError:
            logger.warning("AHT20 reading failed")
            aht = AHT20Data(previous.aht_temperature, previous.humidity)
            aht_ok = False
        else:
            logger.info("AHT temperature: %.2f C", aht.temperature)
            logger.info("Humidity: %.2f %%", aht.humidity)
            aht_ok = True

        readings = Readings(
            temperature=temperature,
            pressure=pressure,
            altitude=altitude,
            aht_temperature=aht.temperature,
            humidity=aht.humidity,
            bmp_ok=bmp_ok,
            aht_ok=aht_ok,
        )
        self.readings = readings

        self._matrix.fill(0, int(bmp_ok), int(aht_ok))
        self._matrix.show_x(int(readings.error), 0, 0)
        self._alarm.update(temperature)
        return readings

    def json_payload(self) -> str:
        """The JSON document served at ``/api/data``."""
        r = self.readings
        return (
            f'{{"min":{self.limits.min},"max":{self.limits.max},'
            f'"offset":{self.limits.offset},'
            f'"nivel_atual":{r.average:.1f},'
            f'"temp_bmp":{r.temperature / 100.0:.1f},'
            f'"altitude":{r.altitude:.1f},'
            f'"temp_aht":{r.aht_temperature:.1f},'
            f'"humidity":{r.humidity:.1f}}}'
        )

    def handle_request(self, request) -> bytes | None:
        """Return the full HTTP response for a raw request, or None to close silently."""
        text = _as_text(request)
        if "GET /api/data" in text:
            payload = self.json_payload()
            logger.debug("Sending JSON: %s", payload)
            return _response("application/json", payload.encode("ascii"))
        if text.startswith("GET /"):
            return _response("text/html", html_body().encode("utf-8"))
        if text.startswith("POST /api/limites"):
            self.limits = parse_post_params(text, self.limits)
            return _response("application/json", self.json_payload().encode("ascii"))
        return None


def render_display(display, ip_address: str, readings: Readings) -> None:
    """Draw the status screen onto an SSD1306 and send it."""
    display.fill(False)
    display.rect(3, 3, 122, 60, True, False)
    display.line(3, 25, 123, 25, True)
    display.line(3, 37, 123, 37, True)
    display.draw_string(" Meteorologia", 8, 6)
    display.draw_string(ip_address, 20, 16)
    display.draw_string("BMP280  AHT10", 10, 28)
    display.line(63, 25, 63, 60, True)

    if readings.bmp_ok:
        bmp_lines = (readings.bmp_temperature_text, readings.altitude_text)
    else:
        bmp_lines = ("---", "---")
    if readings.aht_ok:
        aht_lines = (readings.aht_temperature_text, readings.humidity_text)
    else:
        aht_lines = ("---", "---")

    display.draw_string(bmp_lines[0], 14, 41)
    display.draw_string(bmp_lines[1], 14, 52)
    display.draw_string(aht_lines[0], 73, 41)
    display.draw_string(aht_lines[1], 73, 52)
    display.send_data()


class _RequestHandler(socketserver.BaseRequestHandler):
    def handle(self) -> None:
        data = self.request.recv(_RECV_SIZE)
        if not data:
            return
        response = self.server.station.handle_request(data)
        if response is not None:
            self.request.sendall(response)


class _StationServer(socketserver.TCPServer):
    allow_reuse_address = True

    def __init__(self, address, station: Station) -> None:
        self.station = station
        super().__init__(address, _RequestHandler)


def serve(station: Station, host: str = "", port: int = HTTP_PORT) -> None:
    """Serve the dashboard and API for ``station`` until interrupted."""
    with _StationServer((host, port), station) as server:
        logger.info("HTTP server running on port %d", port)
        server.serve_forever()