"""
Hardware layer.

Modules:
    gpio_backend: host pin access (RPi.GPIO or recording mock)
    bus: TM1637 start/stop and byte transfer
    commands: TM1637 command bytes and framed writes
"""
from .gpio_backend import MockGPIOBackend, RPiGPIOBackend, get_gpio_backend, decode_transactions
from .bus import TM1637Bus

__all__ = ["MockGPIOBackend", "RPiGPIOBackend", "get_gpio_backend", "decode_transactions", "TM1637Bus"]
