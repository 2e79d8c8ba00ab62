"""
segdisplay
==========
TM1637 4-digit 7-segment LED display driver.

Architecture
------------
    DisplayManager      every display from pinmap.json
       │
       └── TM1637Display     session: brightness, power, colon, show_*()
              │
              ├── encoding        numbers / time / text -> 4 segment bytes
              │
              └── commands        data / address / display-control commands
                     │
                     └── TM1637Bus       start, stop, byte + ACK
                            │
                            └── GPIO backend   RPi.GPIO or recording mock
"""

from .display import DisplayError, DisplayState, NotInitializedError, OutOfRangeError, TM1637Display
from .encoding import (
    apply_colon,
    encode_char,
    encode_digit,
    encode_digit_at,
    encode_number,
    encode_text,
    encode_time,
)
from .hardware import MockGPIOBackend, RPiGPIOBackend, TM1637Bus, get_gpio_backend
from .manager import DisplayManager, get_display_manager

__all__ = [
    "TM1637Display",
    "DisplayState",
    "DisplayError",
    "NotInitializedError",
    "OutOfRangeError",
    "DisplayManager",
    "get_display_manager",
    "TM1637Bus",
    "MockGPIOBackend",
    "RPiGPIOBackend",
    "get_gpio_backend",
    "apply_colon",
    "encode_char",
    "encode_digit",
    "encode_digit_at",
    "encode_number",
    "encode_text",
    "encode_time",
]

__version__ = "1.0.0"
