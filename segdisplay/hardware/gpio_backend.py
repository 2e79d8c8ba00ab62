"""
hardware/gpio_backend.py
------------------------

Host pin layer underneath the TM1637 bus driver.

The bus only needs four things from the host:
- drive a line high or low
- sample the data line once per byte (ACK)
- configure a line as pulled-up I/O
- wait a few microseconds

RPiGPIOBackend implements them with RPi.GPIO. MockGPIOBackend records every
call so tests (and `segdisplay --mock`) can replay the exact wire traffic.
"""

from __future__ import annotations
import logging
import os
import time
from typing import Dict, Iterable, List, Optional, Tuple

# Conditional RPi import
try:
    import RPi.GPIO as GPIO  # type: ignore
    HAS_RPI = True
except Exception:
    GPIO = None  # type: ignore
    HAS_RPI = False

_LOGGER = logging.getLogger("[GPIO_BACKEND]")

ENV_FORCE_MOCK = "SEGDISPLAY_HW_MOCK"

LOW = 0
HIGH = 1

Event = Tuple[str, Optional[int], int]


class RPiGPIOBackend:
    """
    RPi.GPIO implementation of the pin layer.

    Lines are driven push-pull while writing. The data line is switched to a
    pulled-up input only for the ACK sample and is handed back as an output
    driven high, which is what the bus expects right after the sample.
    """

    def __init__(self, gpio_mode: str = "BCM", suppress_warnings: bool = True):
        if not HAS_RPI:
            raise RuntimeError("RPi.GPIO is not available on this host")
        self._gpio_mode = gpio_mode
        self._suppress_warnings = suppress_warnings
        self._mode_set = False
        self._pins: List[int] = []

    def _ensure_mode(self) -> None:
        if self._mode_set:
            return
        GPIO.setmode(GPIO.BOARD if self._gpio_mode == "BOARD" else GPIO.BCM)
        if self._suppress_warnings:
            GPIO.setwarnings(False)
        self._mode_set = True

    def setup_pin(self, pin: int) -> None:
        self._ensure_mode()
        # enable the pad pull-up first, outputs do not accept pull_up_down
        GPIO.setup(pin, GPIO.IN, pull_up_down=GPIO.PUD_UP)
        GPIO.setup(pin, GPIO.OUT, initial=GPIO.HIGH)
        if pin not in self._pins:
            self._pins.append(pin)
        _LOGGER.debug("pin %s configured as pull-up output (high)", pin)

    def write(self, pin: int, level: int) -> None:
        GPIO.output(pin, GPIO.HIGH if level else GPIO.LOW)

    def read(self, pin: int) -> int:
        GPIO.setup(pin, GPIO.IN, pull_up_down=GPIO.PUD_UP)
        level = GPIO.input(pin)
        GPIO.setup(pin, GPIO.OUT, initial=GPIO.HIGH)
        return HIGH if level else LOW

    def delay_us(self, us: float) -> None:
        # busy wait, time.sleep cannot resolve single microseconds
        end = time.perf_counter() + us / 1_000_000
        while time.perf_counter() < end:
            pass

    def release(self, pin: int) -> None:
        GPIO.output(pin, GPIO.HIGH)

    def cleanup(self, pins: Optional[Iterable[int]] = None) -> None:
        targets = list(pins) if pins is not None else list(self._pins)
        try:
            if targets:
                GPIO.cleanup(targets)
        finally:
            for pin in targets:
                if pin in self._pins:
                    self._pins.remove(pin)
            _LOGGER.info("GPIO cleanup complete for pins %s", targets)

    def __repr__(self):
        return f"<RPiGPIOBackend mode={self._gpio_mode} pins={self._pins}>"


class MockGPIOBackend:
    """
    Recording backend used for tests and dry runs.

    Every call is appended to `events` as (op, pin, value):
      ("setup", pin, 1), ("write", pin, level), ("read", pin, level),
      ("delay", None, us), ("release", pin, 1), ("cleanup", pin, 0)

    `ack_level` is what a read of any pin returns; leave it LOW to model a
    connected display, set it HIGH to model a missing one.
    """

    def __init__(self, ack_level: int = LOW):
        self.ack_level = ack_level
        self.events: List[Event] = []
        self.levels: Dict[int, int] = {}
        self.cleaned_up = False
        self.cleaned_pins: List[int] = []

    def setup_pin(self, pin: int) -> None:
        self.levels[pin] = HIGH
        self.events.append(("setup", pin, HIGH))

    def write(self, pin: int, level: int) -> None:
        level = HIGH if level else LOW
        self.levels[pin] = level
        self.events.append(("write", pin, level))

    def read(self, pin: int) -> int:
        self.events.append(("read", pin, self.ack_level))
        return self.ack_level

    def delay_us(self, us: float) -> None:
        self.events.append(("delay", None, us))

    def release(self, pin: int) -> None:
        self.levels[pin] = HIGH
        self.events.append(("release", pin, HIGH))

    def cleanup(self, pins: Optional[Iterable[int]] = None) -> None:
        targets = list(pins) if pins is not None else sorted(self.levels)
        self.cleaned_up = True
        self.cleaned_pins.extend(targets)
        for pin in targets:
            self.events.append(("cleanup", pin, 0))

    def clear_events(self) -> None:
        self.events = []

    def transactions(self, clk: int, dio: int) -> List[List[int]]:
        return decode_transactions(self.events, clk, dio)

    def __repr__(self):
        return f"<MockGPIOBackend events={len(self.events)} ack_level={self.ack_level}>"


def decode_transactions(events: Iterable[Event], clk: int, dio: int) -> List[List[int]]:
    """
    Rebuild bus transactions from recorded line transitions.

    A falling data edge while clock is high opens a transaction, a rising one
    closes it. Data is sampled on every rising clock edge; each byte is eight
    LSB-first bits followed by the ACK clock, which is skipped.

    Returns one list of byte values per start/stop pair.
    """
    levels = {clk: HIGH, dio: HIGH}
    transactions: List[List[int]] = []
    current: List[int] = []
    bits: List[int] = []
    open_txn = False

    for op, pin, value in events:
        if op in ("setup", "release"):
            levels[pin] = HIGH
            continue
        if op != "write" or pin not in levels:
            continue
        previous = levels[pin]
        levels[pin] = value
        if value == previous:
            continue

        if pin == dio and levels[clk] == HIGH:
            if value == LOW:
                open_txn = True
                current = []
                bits = []
            elif open_txn:
                transactions.append(current)
                open_txn = False
        elif pin == clk and value == HIGH and open_txn:
            bits.append(levels[dio])
            if len(bits) == 9:
                current.append(sum(bit << i for i, bit in enumerate(bits[:8])))
                bits = []

    return transactions


def _force_mock() -> bool:
    return os.getenv(ENV_FORCE_MOCK, "0") == "1"


def get_gpio_backend(gpio_mode: str = "BCM", mock: bool = False):
    """
    Return the RPi.GPIO backend, or the mock one when asked for, when
    SEGDISPLAY_HW_MOCK=1, or when RPi.GPIO cannot be imported on this host.
    """
    force = _force_mock()
    if mock or force or not HAS_RPI:
        if not mock:
            _LOGGER.warning("Using MockGPIOBackend (FORCE_MOCK=%s, RPi=%s)", force, HAS_RPI)
        return MockGPIOBackend()
    return RPiGPIOBackend(gpio_mode=gpio_mode)
