# config.py
"""
Load and validate pinmap.json and provide global config constants.

The default pinmap ships next to this file. Point SEGDISPLAY_PINMAP at
another file to override it (useful on a board wired differently).
"""

from __future__ import annotations
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_PINMAP_FILENAME = "pinmap.json"
ENV_PINMAP_PATH = "SEGDISPLAY_PINMAP"
DEFAULT_DISPLAY_ID = "main"
DEFAULT_BIT_DELAY_US = 5
GPIO_MODES = ("BCM", "BOARD")


class ConfigError(Exception):
    pass


def _load_json(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Pinmap file not found at {path!s}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Pinmap file {path!s} is not valid JSON: {e}") from e


def _is_int(value: Any) -> bool:
    # bool is an int subclass, but True is never a pin number
    return isinstance(value, int) and not isinstance(value, bool)


def validate_pinmap(pinmap: Dict[str, Any]) -> None:
    """
    Validation for the pinmap.json structure.
    Expected top-level keys:
      - tm1637: dict mapping display id -> {clk, dio, brightness (optional)}
      - gpio_mode: "BCM" or "BOARD" (optional, default BCM)
      - bit_delay_us: positive int, delay after each line transition (optional)
    Raise ConfigError on validation failure.
    """
    if not isinstance(pinmap, dict):
        raise ConfigError("pinmap.json root must be an object")

    if "tm1637" not in pinmap:
        raise ConfigError("pinmap.json missing required top-level key: 'tm1637'")

    displays = pinmap["tm1637"]
    if not isinstance(displays, dict) or not displays:
        raise ConfigError("'tm1637' must be a non-empty object mapping display ids to config")

    for display_id, conf in displays.items():
        if not isinstance(conf, dict):
            raise ConfigError(f"display '{display_id}' must be an object")
        for key in ("clk", "dio"):
            if key not in conf:
                raise ConfigError(f"display '{display_id}' missing required key '{key}'")
            if not _is_int(conf[key]) or conf[key] < 0:
                raise ConfigError(f"display '{display_id}' key '{key}' must be a non-negative int")
        if conf["clk"] == conf["dio"]:
            raise ConfigError(f"display '{display_id}' uses the same pin for clk and dio")
        if "brightness" in conf:
            level = conf["brightness"]
            if not _is_int(level) or not 0 <= level <= 7:
                raise ConfigError(f"display '{display_id}' brightness must be an int 0-7")

    mode = pinmap.get("gpio_mode", "BCM")
    if mode not in GPIO_MODES:
        raise ConfigError(f"'gpio_mode' must be one of {GPIO_MODES}, got {mode!r}")

    if "bit_delay_us" in pinmap:
        delay = pinmap["bit_delay_us"]
        if not _is_int(delay) or delay <= 0:
            raise ConfigError("'bit_delay_us' must be a positive int")


def find_pinmap_path() -> Path:
    """
    Determine path to pinmap.json, using environment override or default location.
    """
    env = os.getenv(ENV_PINMAP_PATH)
    if env:
        return Path(env).expanduser().resolve()
    return Path(__file__).resolve().parent / DEFAULT_PINMAP_FILENAME


def load_pinmap(path: Optional[str] = None) -> Dict[str, Any]:
    """Load and validate a pinmap without touching the module globals."""
    path_p = Path(path).expanduser().resolve() if path else find_pinmap_path()
    pinmap = _load_json(path_p)
    validate_pinmap(pinmap)
    return pinmap


# Loaded on first access, not on import (see get_pinmap)
_LAZY_NAMES = ("PINMAP", "PINMAP_PATH", "TM1637_MAP", "GPIO_MODE", "BIT_DELAY_US")


def reload_pinmap(path: Optional[str] = None) -> None:
    """
    Reload pinmap at runtime (useful for tests). Path can be provided as override.
    """
    global PINMAP, TM1637_MAP, GPIO_MODE, BIT_DELAY_US, PINMAP_PATH
    path_p = Path(path).expanduser().resolve() if path else find_pinmap_path()
    pinmap = _load_json(path_p)
    validate_pinmap(pinmap)
    PINMAP_PATH = path_p
    PINMAP = pinmap
    TM1637_MAP = PINMAP.get("tm1637", {})
    GPIO_MODE = PINMAP.get("gpio_mode", "BCM")
    BIT_DELAY_US = PINMAP.get("bit_delay_us", DEFAULT_BIT_DELAY_US)


def reset_pinmap() -> None:
    """Forget the loaded pinmap; the next access loads it again."""
    for name in _LAZY_NAMES:
        globals().pop(name, None)


def get_pinmap() -> Dict[str, Any]:
    """Return the active pinmap, loading it (fail-fast) on first use."""
    if "PINMAP" not in globals():
        try:
            reload_pinmap()
        except ConfigError as e:
            raise ConfigError(f"Failed loading pinmap: {e}") from e
    return globals()["PINMAP"]


def __getattr__(name: str) -> Any:
    if name in _LAZY_NAMES:
        get_pinmap()
        return globals()[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def get_display_config(display_id: str = DEFAULT_DISPLAY_ID) -> Optional[Dict[str, Any]]:
    get_pinmap()
    return globals()["TM1637_MAP"].get(str(display_id))


if __name__ == "__main__":
    get_pinmap()
    print("Loaded pinmap from:", globals()["PINMAP_PATH"])
    print("Displays:", list(globals()["TM1637_MAP"].keys()))
