# meteostation

This package holds the logic of a small weather station. It reads a BMP280
for temperature and pressure, and an AHT20 for temperature and humidity. It
draws the readings into an SSD1306 OLED frame buffer and shows sensor health
on a 5×5 WS2812 LED matrix. A buzzer alarm goes off when the BMP280
temperature leaves the 10–40 °C band. The package can also serve a dashboard
page and a JSON API over HTTP.

The package has no runtime dependencies. You reach the hardware through small
objects that you pass in:

- an I2C-like bus with `write(address, data, nostop=False)` and
  `read(address, length) -> bytes`;
- a writer callable that takes the LED matrix frame as bytes;
- a buzzer with `on(duty_cycle)` and `off()`;
- optionally, a scheduler for the alarm delay.

Because of this, the same code runs against real devices or against test
doubles.

## Modules

### `meteostation.bmp280`

- `CalibParams.from_bytes(data)` decodes the 24-byte little-endian calibration
  block. It raises `ValueError` for any other length.
- `fine_temperature`, `convert_temp` and `convert_pressure` apply the 32-bit
  fixed-point compensation.
  - Temperature comes back in hundredths of a degree Celsius.
  - Pressure comes back in pascals.
- `BMP280(bus)` drives the sensor at address 0x76 and has these methods:
  - `init()` writes the config and measurement-control registers.
  - `read_raw()` returns `(temperature, pressure)`.
  - `reset()`
  - `get_calib_params()`

### `meteostation.aht20`

- `decode_measurement(buffer)` turns a 6-byte frame into an `AHT20Data`. The
  result holds `temperature` in °C and `humidity` in %.
- `AHT20(bus, sleep=None)` drives the sensor at address 0x38 and has these
  methods:
  - `init()` returns whether the sensor reports that it is calibrated.
  - `read()` raises `TimeoutError` if the sensor stays busy, and `OSError` on
    a short read.
  - `reset()`
  - `check()`

### `meteostation.ssd1306`

- `SSD1306(bus, width=128, height=64, address=0x3C, external_vcc=False)` is a
  1-bit frame buffer.
  - Drawing: `pixel`, `get_pixel`, `fill`, `rect`, `line` (Bresenham), `hline`,
    `vline`, `draw_char` and `draw_string`. Text wraps to the next row.
  - Device commands: `config()` sends the power-up sequence, `command()` sends
    one command byte, and `send_data()` transfers the frame.
  - The `buffer` property returns the bytes that `send_data()` transfers.
- `Command` is an `IntEnum` of the controller's command bytes.

### `meteostation.font`

This module holds the 8×8 printable-ASCII font. `glyph(char)` returns the eight
column bytes for a character. Characters outside the range are drawn as a
space.

### `meteostation.matrix`

`LedMatrix(writer)` keeps the 25 LED colours in GRB order and has these
methods:

- `set_led(index, r, g, b)`
- `display()` sends all 75 bytes through `writer`.
- `fill(r, g, b)` lights every LED.
- `show_x(r, g, b)` lights both diagonals.

### `meteostation.webpage`

`html_body()` returns the dashboard page.

### `meteostation.station`

- `Station(bmp, aht, matrix, alarm)` ties the parts together.
  - On construction it initialises the BMP280, reads its calibration, and
    resets the AHT20.
  - `poll()` reads both sensors and checks that the BMP280 values are
    plausible. It then updates the LED matrix and the alarm, and returns a
    `Readings`.
  - `json_payload()` builds the `/api/data` document.
  - `handle_request(request)` returns a complete HTTP response as bytes, or
    `None`.
- `Readings` holds one round of values and has these properties:
  - `error`, true when both sensors failed;
  - `average`, the mean of both temperatures;
  - the display strings: `bmp_temperature_text`, `altitude_text`,
    `aht_temperature_text` and `humidity_text`.
- `Alarm(buzzer, scheduler=None)` sounds the buzzer at 50 % duty.
  - The buzzer starts 3 s after `update(temperature)` sees a temperature
    outside 1000–4000 hundredths of a degree.
  - It stops when the temperature returns to range.
  - `button_pressed(now_ms)` silences the alarm, with a 300 ms debounce.
  - The default scheduler is a daemon `threading.Timer`.
- `Limits` and `parse_post_params(request, limits)` handle the `min`, `max` and
  `offset` form fields.
- `calculate_altitude(pressure)` gives the barometric altitude in metres for a
  pressure in Pa, taking sea level as 101325 Pa.
- `render_display(display, ip_address, readings)` draws the status screen on
  an `SSD1306` and sends it.
- `serve(station, host="", port=80)` runs a blocking TCP server that answers
  with `Station.handle_request`.

## Example

```python
from meteostation.aht20 import decode_measurement
from meteostation.station import calculate_altitude

reading = decode_measurement(bytes([0x1C, 0x80, 0x00, 0x08, 0x00, 0x00]))
print(reading.temperature, reading.humidity)   # 50.0 50.0
print(calculate_altitude(101325.0))            # 0.0
```

## HTTP API

`Station.handle_request` and `serve` answer these requests:

- `GET /api/data` returns JSON with the following keys:
  - `min`, `max`, `offset`;
  - `nivel_atual`, the mean temperature;
  - `temp_bmp`, `altitude`, `temp_aht`, `humidity`.
- Any other `GET /…` returns the dashboard page.
- `POST /api/limites` with a form body such as `min=10&max=90&offset=0` updates
  the limits and returns the same JSON document.
- Any other request gets no response, and the connection is closed.

## What this package does not do

- It has no command-line entry point and no main loop. Call `Station.poll()`
  and `render_display()` on your own schedule. Run `serve()` in a thread if
  you want polling and serving to happen together.
- It has no bus, PIO or PWM drivers. Supply objects that talk to your
  hardware.
- It does not configure the network or Wi-Fi. `serve()` binds to whatever
  address you give it.

## Tests

The test suite uses pytest. Install it with the `test` extra:
`pip install -e .[test]`, then run `pytest`.