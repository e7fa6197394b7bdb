"""Weather station logic: BMP280 and AHT20 sensors, SSD1306 display, LED matrix, alarm and HTTP dashboard."""

__version__ = "0.1.0"