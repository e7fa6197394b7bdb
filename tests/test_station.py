import json
import socket
import threading
import time

import pytest

from meteostation.aht20 import AHT20Data
from meteostation.bmp280 import CalibParams, convert_pressure, convert_temp
from meteostation.ssd1306 import SSD1306
from meteostation.station import (
    Alarm,
    Limits,
    Readings,
    Station,
    calculate_altitude,
    parse_post_params,
    render_display,
    serve,
)
from meteostation.webpage import html_body

CALIB = CalibParams(27504, 26435, -1000, 36477, -10685, 3024, 2855, 140, -7, 15500, -14600, 6000)
BROKEN_CALIB = CalibParams(27504, 26435, -1000, 0, -10685, 3024, 2855, 140, -7, 15500, -14600, 6000)
RAW_TEMP = 519888
RAW_PRESSURE = 415148


class FakeBMP:
    def __init__(self, calib=CALIB, raw=(RAW_TEMP, RAW_PRESSURE)):
        self.calib = calib
        self.raw = raw
        self.initialised = False

    def init(self):
        self.initialised = True

    def get_calib_params(self):
        return self.calib

    def read_raw(self):
        return self.raw


class FakeAHT:
    def __init__(self, data=None):
        self.data = data
        self.resets = 0

    def reset(self):
        self.resets += 1

    def read(self):
        if self.data is None:
            raise TimeoutError("busy")
        return self.data


class FakeMatrix:
    def __init__(self):
        self.calls = []

    def fill(self, r, g, b):
        self.calls.append(("fill", r, g, b))

    def show_x(self, r, g, b):
        self.calls.append(("x", r, g, b))


class FakeBuzzer:
    def __init__(self):
        self.events = []

    def on(self, duty):
        self.events.append(("on", duty))

    def off(self):
        self.events.append(("off",))


class FakeJob:
    def __init__(self, delay_ms, callback):
        self.delay_ms = delay_ms
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    def __init__(self):
        self.jobs = []

    def __call__(self, delay_ms, callback):
        job = FakeJob(delay_ms, callback)
        self.jobs.append(job)
        return job


class FakeBus:
    def __init__(self):
        self.writes = []

    def write(self, address, data, nostop=False):
        self.writes.append((address, bytes(data)))


def make_station(bmp=None, aht=None):
    bmp = bmp or FakeBMP()
    aht = aht if aht is not None else FakeAHT(AHT20Data(24.5, 60.0))
    matrix = FakeMatrix()
    alarm = Alarm(FakeBuzzer(), FakeScheduler())
    return Station(bmp, aht, matrix, alarm), bmp, aht, matrix


def split_response(response):
    head, _, body = response.partition(b"\r\n\r\n")
    headers = {}
    for line in head.split(b"\r\n")[1:]:
        name, _, value = line.partition(b": ")
        headers[name.decode()] = value.decode()
    return head.split(b"\r\n")[0], headers, body


# --- altitude ---

def test_altitude_at_sea_level_is_zero():
    assert calculate_altitude(101325.0) == pytest.approx(0.0)


def test_altitude_decreases_with_pressure():
    values = [calculate_altitude(p) for p in (90000, 95000, 100000, 105000)]
    assert values == sorted(values, reverse=True)
    assert values[-1] < 0 < values[0]


# --- form parsing ---

def test_parse_post_params_reads_all_fields():
    request = "POST /api/limites HTTP/1.1\r\nHost: station\r\n\r\nmin=10&max=80&offset=-5"
    assert parse_post_params(request, Limits()) == Limits(10, 80, -5)


def test_parse_post_params_accepts_bytes():
    request = b"POST /api/limites HTTP/1.1\r\n\r\nmax=55"
    assert parse_post_params(request, Limits(1, 2, 3)) == Limits(1, 55, 3)


def test_parse_post_params_without_body_keeps_limits():
    limits = Limits(5, 50, 7)
    assert parse_post_params("POST /api/limites HTTP/1.1\r\nHost: x", limits) == limits


def test_parse_post_params_atoi_semantics():
    request = "POST / HTTP/1.1\r\n\r\n&&min=abc&&max=12xyz&offset= +9&other=4"
    assert parse_post_params(request, Limits(3, 3, 3)) == Limits(0, 12, 9)


def test_parse_post_params_later_value_wins():
    request = "POST / HTTP/1.1\r\n\r\nmin=1&min=2"
    assert parse_post_params(request, Limits()).min == 2


# --- alarm ---

def test_alarm_schedules_and_sounds_when_out_of_range():
    buzzer, scheduler = FakeBuzzer(), FakeScheduler()
    alarm = Alarm(buzzer, scheduler)
    alarm.update(500)
    assert len(scheduler.jobs) == 1
    assert scheduler.jobs[0].delay_ms == 3000
    assert alarm.active and not alarm.rearm
    scheduler.jobs[0].callback()
    assert buzzer.events == [("on", 50)]


def test_alarm_not_rescheduled_while_active():
    scheduler = FakeScheduler()
    alarm = Alarm(FakeBuzzer(), scheduler)
    alarm.update(4500)
    alarm.update(4600)
    assert len(scheduler.jobs) == 1


def test_alarm_clears_when_back_in_range():
    buzzer, scheduler = FakeBuzzer(), FakeScheduler()
    alarm = Alarm(buzzer, scheduler)
    alarm.update(500)
    alarm.update(2500)
    assert scheduler.jobs[0].cancelled
    assert buzzer.events == [("off",)]
    assert not alarm.active and alarm.rearm


def test_alarm_bounds_are_inclusive():
    scheduler = FakeScheduler()
    alarm = Alarm(FakeBuzzer(), scheduler)
    alarm.update(1000)
    alarm.update(4000)
    assert scheduler.jobs == []


def test_button_silences_until_back_in_range():
    buzzer, scheduler = FakeBuzzer(), FakeScheduler()
    alarm = Alarm(buzzer, scheduler)
    alarm.update(500)
    assert alarm.button_pressed(1000) is True
    assert scheduler.jobs[0].cancelled
    assert not alarm.active and not alarm.rearm
    alarm.update(500)
    assert len(scheduler.jobs) == 1
    alarm.update(2000)
    alarm.update(500)
    assert len(scheduler.jobs) == 2


def test_button_debounce():
    buzzer = FakeBuzzer()
    alarm = Alarm(buzzer, FakeScheduler())
    assert alarm.button_pressed(200) is False
    assert alarm.button_pressed(1000) is True
    assert alarm.button_pressed(1200) is False
    assert alarm.button_pressed(1400) is True
    assert buzzer.events == [("off",), ("off",)]


# --- readings ---

def test_readings_texts_and_average():
    readings = Readings(temperature=2000, altitude=12.4, aht_temperature=30.0, humidity=55.0)
    assert readings.bmp_temperature_text == "20.0C"
    assert readings.humidity_text == "55.0%"
    assert readings.aht_temperature_text == "30.0C"
    assert readings.altitude_text == "12m"
    assert readings.average == pytest.approx(25.0)


def test_readings_error_only_when_both_fail():
    assert Readings().error is True
    assert Readings(bmp_ok=True).error is False
    assert Readings(aht_ok=True).error is False


# --- station ---

def test_station_initialises_sensors():
    station, bmp, aht, _ = make_station()
    assert bmp.initialised
    assert aht.resets == 1
    assert station.limits == Limits(0, 100, 0)


def test_poll_with_working_sensors():
    station, _, _, matrix = make_station()
    readings = station.poll()
    expected_temp = convert_temp(RAW_TEMP, CALIB)
    expected_pressure = convert_pressure(RAW_PRESSURE, RAW_TEMP, CALIB)
    assert readings.temperature == expected_temp
    assert readings.pressure == expected_pressure
    assert readings.bmp_ok and readings.aht_ok
    assert readings.altitude == pytest.approx(calculate_altitude(expected_pressure))
    assert readings.humidity == 60.0
    assert station.readings is readings
    assert matrix.calls == [("fill", 0, 1, 1), ("x", 0, 0, 0)]


def test_poll_with_failing_sensors():
    bmp = FakeBMP(calib=BROKEN_CALIB)
    station, _, _, matrix = make_station(bmp=bmp, aht=FakeAHT(None))
    readings = station.poll()
    assert readings.pressure == 0
    assert not readings.bmp_ok and not readings.aht_ok
    assert readings.error
    assert readings.altitude == 0.0
    assert matrix.calls == [("fill", 0, 0, 0), ("x", 1, 0, 0)]


def test_poll_keeps_previous_aht_values_on_failure():
    aht = FakeAHT(AHT20Data(21.0, 40.0))
    station, _, _, _ = make_station(aht=aht)
    station.poll()
    aht.data = None
    readings = station.poll()
    assert not readings.aht_ok
    assert (readings.aht_temperature, readings.humidity) == (21.0, 40.0)


def test_json_payload_fields():
    station, _, _, _ = make_station()
    station.poll()
    payload = station.json_payload()
    assert payload.startswith('{"min":0,"max":100,"offset":0,')
    data = json.loads(payload)
    assert list(data) == [
        "min", "max", "offset", "nivel_atual", "temp_bmp", "altitude", "temp_aht", "humidity",
    ]
    r = station.readings
    assert abs(data["temp_bmp"] - r.temperature / 100) <= 0.05
    assert abs(data["nivel_atual"] - r.average) <= 0.05
    assert abs(data["humidity"] - r.humidity) <= 0.05


def test_handle_api_data_request():
    station, _, _, _ = make_station()
    station.poll()
    status, headers, body = split_response(station.handle_request(b"GET /api/data HTTP/1.1\r\n\r\n"))
    assert status == b"HTTP/1.1 200 OK"
    assert headers["Content-Type"] == "application/json"
    assert headers["Connection"] == "close"
    assert int(headers["Content-Length"]) == len(body)
    assert body.decode() == station.json_payload()


def test_handle_root_request_serves_page():
    station, _, _, _ = make_station()
    status, headers, body = split_response(station.handle_request("GET / HTTP/1.1\r\n\r\n"))
    assert status == b"HTTP/1.1 200 OK"
    assert headers["Content-Type"] == "text/html"
    assert body == html_body().encode("utf-8")
    assert int(headers["Content-Length"]) == len(body)


def test_handle_post_updates_limits():
    station, _, _, _ = make_station()
    request = b"POST /api/limites HTTP/1.1\r\nContent-Type: x\r\n\r\nmin=20&max=70&offset=3"
    _, _, body = split_response(station.handle_request(request))
    assert station.limits == Limits(20, 70, 3)
    assert json.loads(body)["max"] == 70


def test_handle_unknown_request_returns_none():
    station, _, _, _ = make_station()
    assert station.handle_request(b"DELETE /x HTTP/1.1\r\n\r\n") is None


# --- display ---

def test_render_display_frame():
    bus = FakeBus()
    display = SSD1306(bus)
    readings = Readings(temperature=2500, bmp_ok=True, aht_ok=True, humidity=50.0)
    render_display(display, "10.0.0.2", readings)
    assert display.get_pixel(3, 3)
    assert display.get_pixel(124, 62)
    assert display.get_pixel(63, 30)
    assert display.get_pixel(50, 25)
    assert not display.get_pixel(0, 0)
    assert bus.writes[-1] == (0x3C, display.buffer)


def test_render_display_hides_failed_values():
    first, second = SSD1306(FakeBus()), SSD1306(FakeBus())
    render_display(first, "ip", Readings(temperature=1000, altitude=5.0))
    render_display(second, "ip", Readings(temperature=3900, altitude=900.0))
    assert first.buffer == second.buffer


def test_render_display_shows_values_when_ok():
    first, second = SSD1306(FakeBus()), SSD1306(FakeBus())
    render_display(first, "ip", Readings(temperature=1000, bmp_ok=True))
    render_display(second, "ip", Readings(temperature=3900, bmp_ok=True))
    assert first.buffer != second.buffer
    assert first.get_pixel(3, 3) == second.get_pixel(3, 3) is True


# --- server ---

def _free_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_serve_answers_api_requests():
    station, _, _, _ = make_station()
    station.poll()
    port = _free_port()
    threading.Thread(target=serve, args=(station, "127.0.0.1", port), daemon=True).start()

    deadline = time.monotonic() + 5
    while True:
        try:
            conn = socket.create_connection(("127.0.0.1", port), timeout=2)
            break
        except OSError:
            if time.monotonic() > deadline:
                raise
            time.sleep(0.05)

    with conn:
        conn.sendall(b"GET /api/data HTTP/1.1\r\n\r\n")
        chunks = []
        while True:
            chunk = conn.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    _, headers, body = split_response(b"".join(chunks))
    assert int(headers["Content-Length"]) == len(body)
    assert json.loads(body)["min"] == station.limits.min