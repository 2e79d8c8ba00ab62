"""
manager.py
----------

Centralized owner of every TM1637 display listed in pinmap.json.

- One TM1637Display per entry of the `tm1637` section, all on one backend
- Countdown rendering (MM:SS) by display id
- Single cleanup point for all lines
"""

from __future__ import annotations
import logging
import threading
from typing import Any, Dict, Optional

from . import config
from .display import TM1637Display
from .hardware.gpio_backend import get_gpio_backend

_LOGGER = logging.getLogger("[DISPLAY_MANAGER]")


class DisplayManager:
    """
    Builds and drives the configured displays.

    Unknown display ids are logged and ignored, matching the driver's
    "always show something, never abort" policy.
    """

    def __init__(self, pinmap: Optional[Dict[str, Any]] = None, backend=None, strict: bool = False):
        self._pinmap = config.get_pinmap() if pinmap is None else pinmap
        config.validate_pinmap(self._pinmap)
        self._backend = backend if backend is not None else get_gpio_backend(
            gpio_mode=self._pinmap.get("gpio_mode", "BCM")
        )
        self._strict = strict
        self._initialized = False
        self._lock = threading.RLock()
        self._displays: Dict[str, TM1637Display] = {}

    # -------------------------------------------------------------
    # INIT / CLEANUP
    # -------------------------------------------------------------
    def init(self) -> None:
        with self._lock:
            if self._initialized:
                return

            delay = self._pinmap.get("bit_delay_us", config.DEFAULT_BIT_DELAY_US)
            for display_id, conf in self._pinmap["tm1637"].items():
                disp = TM1637Display(backend=self._backend, bit_delay_us=delay, strict=self._strict)
                disp.init(conf["clk"], conf["dio"])
                if "brightness" in conf:
                    disp.set_brightness(conf["brightness"])
                self._displays[str(display_id)] = disp
                _LOGGER.info("TM1637 display '%s' attached (clk=%s dio=%s)", display_id, conf["clk"], conf["dio"])

            self._initialized = True
            _LOGGER.info("DisplayManager INIT complete (%d displays)", len(self._displays))

    def cleanup(self) -> None:
        with self._lock:
            try:
                for disp in self._displays.values():
                    disp.deinit()
            finally:
                self._displays = {}
                self._initialized = False
                _LOGGER.info("DisplayManager cleanup complete")

    def __enter__(self):
        self.init()
        return self

    def __exit__(self, *args):
        self.cleanup()
        return False

    # -------------------------------------------------------------
    # DISPLAYS
    # -------------------------------------------------------------
    def get(self, display_id: str) -> Optional[TM1637Display]:
        disp = self._displays.get(str(display_id))
        if disp is None:
            _LOGGER.warning("No TM1637 display with id '%s'", display_id)
        return disp

    def display_ids(self):
        return list(self._displays.keys())

    def show_countdown(self, display_id: str, seconds: int) -> Optional[bool]:
        """Render remaining seconds as MM:SS. Negative counts show 00:00."""
        with self._lock:
            disp = self.get(display_id)
            if disp is None:
                return None
            seconds = max(0, int(seconds))
            mm, ss = divmod(seconds, 60)
            _LOGGER.debug("TM1637[%s] -> %02d:%02d", display_id, min(mm, 99), ss)
            return disp.show_time(min(mm, 99), ss)

    def clear_all(self) -> None:
        with self._lock:
            for disp in self._displays.values():
                disp.clear()

    def __repr__(self):
        return f"<DisplayManager displays={self.display_ids()} initialized={self._initialized}>"


# -------------------------------------------------------------
# SINGLETON FACTORY
# -------------------------------------------------------------
_manager_singleton: Optional[DisplayManager] = None


def get_display_manager() -> DisplayManager:
    global _manager_singleton

    if _manager_singleton:
        return _manager_singleton

    _manager_singleton = DisplayManager()
    return _manager_singleton
