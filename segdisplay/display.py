"""
display.py
----------

TM1637 4-digit display session.

One TM1637Display owns one pair of lines (CLK, DIO) for its lifetime.
Several displays can share a backend as long as their pins differ.

Typical use:

    from segdisplay import TM1637Display

    disp = TM1637Display()
    disp.init(clk=23, dio=24)
    disp.show_number(-42)
    disp.set_colon(True)
    disp.show_text("HELP")

Uninitialized use is a silent no-op and out-of-range input is clamped,
unless the display is built with strict=True, in which case
NotInitializedError / OutOfRangeError are raised instead.
"""

from __future__ import annotations
import logging
import threading
from dataclasses import dataclass, replace
from typing import Optional, Sequence

from . import encoding
from .hardware import commands as CMD
from .hardware.bus import DEFAULT_BIT_DELAY_US, TM1637Bus
from .hardware.gpio_backend import get_gpio_backend

_LOGGER = logging.getLogger("[TM1637]")


class DisplayError(Exception):
    pass


class NotInitializedError(DisplayError):
    pass


class OutOfRangeError(DisplayError):
    pass


@dataclass
class DisplayState:
    """
    Session state of one display.

    Fields:
      - clk / dio: line identifiers given to init()
      - brightness: 0-7
      - enabled: display power
      - colon: colon flag applied to number/text/digit renders
      - initialized: init() has run
      - last_ack: ACK result of the last transaction (None before any)
      - nack_count: bytes sent without ACK since init()
    """
    clk: Optional[int] = None
    dio: Optional[int] = None
    brightness: int = CMD.BRIGHT_TYPICAL
    enabled: bool = True
    colon: bool = False
    initialized: bool = False
    last_ack: Optional[bool] = None
    nack_count: int = 0


class TM1637Display:
    """
    Session API over the TM1637 bus.

    Every render builds a 4-byte frame, applies the colon flag where it
    belongs, then sends the data command, the four digits and the display
    control command. Render methods return True when every byte was
    acknowledged, False otherwise, and None when skipped (not initialized).
    """

    def __init__(self, backend=None, bit_delay_us: float = DEFAULT_BIT_DELAY_US, strict: bool = False):
        self._backend = backend if backend is not None else get_gpio_backend()
        self._bit_delay_us = bit_delay_us
        self._strict = strict
        self._bus: Optional[TM1637Bus] = None
        self._state = DisplayState()
        self._lock = threading.RLock()

    # -------------------------------------------------------------
    # INIT / CLEANUP
    # -------------------------------------------------------------
    def init(self, clk: int, dio: int) -> Optional[bool]:
        """
        Configure both lines as pulled-up outputs driven high, reset brightness
        to BRIGHT_TYPICAL with power on and colon off, then blank all digits.
        Calling it again starts a fresh session on the given lines; lines of
        the previous session that are not reused are released first.
        """
        with self._lock:
            if self._state.initialized:
                stale = [pin for pin in (self._state.clk, self._state.dio) if pin not in (clk, dio)]
                for pin in stale:
                    self._backend.release(pin)
                if stale:
                    self._backend.cleanup(stale)
                    _LOGGER.info("TM1637 moved off pins %s", stale)
            self._backend.setup_pin(clk)
            self._backend.setup_pin(dio)
            self._bus = TM1637Bus(self._backend, clk, dio, bit_delay_us=self._bit_delay_us)
            self._state = DisplayState(clk=clk, dio=dio, initialized=True)
            _LOGGER.info("TM1637 init clk=%s dio=%s", clk, dio)
            return self._render(encoding.blank_frame())

    def deinit(self) -> None:
        """Blank the display and release both lines idle-high."""
        with self._lock:
            if not self._state.initialized:
                return
            self._render(encoding.blank_frame())
            clk, dio = self._state.clk, self._state.dio
            self._backend.release(clk)
            self._backend.release(dio)
            self._backend.cleanup([clk, dio])
            self._state.initialized = False
            self._bus = None
            _LOGGER.info("TM1637 released clk=%s dio=%s", clk, dio)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.deinit()
        return False

    # -------------------------------------------------------------
    # STATE
    # -------------------------------------------------------------
    @property
    def state(self) -> DisplayState:
        """Copy of the session state."""
        return replace(self._state)

    @property
    def initialized(self) -> bool:
        return self._state.initialized

    @property
    def brightness(self) -> int:
        return self._state.brightness

    @property
    def colon(self) -> bool:
        return self._state.colon

    def _ready(self, operation: str) -> bool:
        if self._state.initialized:
            return True
        if self._strict:
            raise NotInitializedError(f"{operation}() called before init()")
        _LOGGER.debug("%s() ignored, display not initialized", operation)
        return False

    def _check_range(self, name: str, value: int, low: int, high: int) -> int:
        value = int(value)
        if low <= value <= high:
            return value
        if self._strict:
            raise OutOfRangeError(f"{name}={value} outside {low}..{high}")
        clamped = max(low, min(high, value))
        _LOGGER.debug("%s=%s clamped to %s", name, value, clamped)
        return clamped

    def _track(self, ack: bool) -> bool:
        self._state.last_ack = ack
        self._state.nack_count = self._bus.nack_count
        if not ack:
            _LOGGER.warning(
                "TM1637 clk=%s dio=%s did not acknowledge (nacks=%s)",
                self._state.clk, self._state.dio, self._state.nack_count,
            )
        return ack

    def _render(self, frame: Sequence[int]) -> bool:
        ack = CMD.write_frame(self._bus, encoding.normalize_frame(frame), self._state.enabled, self._state.brightness)
        return self._track(ack)

    # -------------------------------------------------------------
    # CONFIGURATION
    # -------------------------------------------------------------
    def set_brightness(self, level: int, enabled: bool = True) -> Optional[bool]:
        """Set brightness 0-7 and power. Only the display control command is sent."""
        with self._lock:
            if not self._ready("set_brightness"):
                return None
            level = self._check_range("brightness", level, CMD.BRIGHT_DARKEST, CMD.BRIGHTEST)
            self._state.brightness = level
            self._state.enabled = bool(enabled)
            return self._track(CMD.set_display_control(self._bus, self._state.enabled, level))

    def set_colon(self, on: bool) -> None:
        """Colon flag for later renders; nothing is sent until the next show_*()."""
        with self._lock:
            if not self._ready("set_colon"):
                return
            self._state.colon = bool(on)

    # -------------------------------------------------------------
    # RENDERING
    # -------------------------------------------------------------
    def clear(self) -> Optional[bool]:
        with self._lock:
            if not self._ready("clear"):
                return None
            return self._render(encoding.blank_frame())

    def show_number(self, value: int, leading_zero: bool = False) -> Optional[bool]:
        with self._lock:
            if not self._ready("show_number"):
                return None
            value = self._check_range("value", value, encoding.NUMBER_MIN, encoding.NUMBER_MAX)
            frame = encoding.encode_number(value, leading_zero)
            return self._render(encoding.apply_colon(frame, self._state.colon))

    def show_time(self, minutes: int, seconds: int) -> Optional[bool]:
        """MM:SS; the colon is lit whatever the colon flag says."""
        with self._lock:
            if not self._ready("show_time"):
                return None
            minutes = self._check_range("minutes", minutes, 0, 99)
            seconds = self._check_range("seconds", seconds, 0, 59)
            return self._render(encoding.encode_time(minutes, seconds))

    def show_raw(self, b0: int, b1: int, b2: int, b3: int) -> Optional[bool]:
        """Send four segment bytes as given (masked to 8 bits)."""
        with self._lock:
            if not self._ready("show_raw"):
                return None
            return self._render([b0, b1, b2, b3])

    def show_text(self, text: str) -> Optional[bool]:
        with self._lock:
            if not self._ready("show_text"):
                return None
            frame = encoding.encode_text(text)
            return self._render(encoding.apply_colon(frame, self._state.colon))

    def show_digit(self, position: int, digit: int) -> Optional[bool]:
        """One hex digit (0-15) at position 0-3; the rest of the display is blanked."""
        with self._lock:
            if not self._ready("show_digit"):
                return None
            position = self._check_range("position", position, 0, encoding.FRAME_SIZE - 1)
            if self._strict:
                self._check_range("digit", digit, 0, 15)
            frame = encoding.encode_digit_at(position, digit)
            return self._render(encoding.apply_colon(frame, self._state.colon))

    def __repr__(self):
        s = self._state
        return (
            f"<TM1637Display clk={s.clk} dio={s.dio} initialized={s.initialized} "
            f"brightness={s.brightness} on={s.enabled} colon={s.colon}>"
        )
