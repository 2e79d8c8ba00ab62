"""
TM1637 Command Set
==================
Command bytes for the TM1637 LED controller and the framed writes built on
them. Every command is its own start/stop transaction.
"""

from __future__ import annotations
import logging
from typing import Sequence

_LOGGER = logging.getLogger("[TM1637_CMD]")

# =============================================================================
# Data Command (0x40 family)
# =============================================================================

CMD_DATA_AUTO = 0x40          # Write display data, auto-increment address
CMD_DATA_FIXED = 0x44         # Write display data, fixed address

# =============================================================================
# Address Command (0xC0 family)
# =============================================================================

CMD_ADDRESS = 0xC0            # Low 2 bits select digit 0-3
ADDRESS_MASK = 0x03

# =============================================================================
# Display Control (0x80 family)
# =============================================================================

CMD_DISPLAY_CTRL = 0x80       # Display off
DISPLAY_ON = 0x08             # 0x88 = display on
BRIGHTNESS_MASK = 0x07        # Pulse width 1/16 .. 14/16

BRIGHT_DARKEST = 0
BRIGHT_TYPICAL = 2
BRIGHTEST = 7

DIGIT_COUNT = 4


def display_control_byte(enabled: bool, brightness: int) -> int:
    """Power + brightness in one byte: 0x80 | 0x08 (on) | level."""
    return CMD_DISPLAY_CTRL | (DISPLAY_ON if enabled else 0x00) | (int(brightness) & BRIGHTNESS_MASK)


def write_command(bus, cmd: int) -> bool:
    bus.start()
    ack = bus.write_byte(cmd & 0xFF)
    bus.stop()
    return ack


def set_data_mode(bus, auto_increment: bool = True) -> bool:
    return write_command(bus, CMD_DATA_AUTO if auto_increment else CMD_DATA_FIXED)


def write_address(bus, address: int, data: int) -> bool:
    """Write one segment byte to digit `address` (wraps to 0-3)."""
    bus.start()
    ack = bus.write_byte(CMD_ADDRESS | (int(address) & ADDRESS_MASK))
    ack = bus.write_byte(data & 0xFF) and ack
    bus.stop()
    return ack


def set_display_control(bus, enabled: bool, brightness: int) -> bool:
    return write_command(bus, display_control_byte(enabled, brightness))


def write_frame(bus, frame: Sequence[int], enabled: bool, brightness: int) -> bool:
    """
    Full redraw: auto-increment data command, one address+data write per
    digit (0-3 in order), then display control so the frame shows up at the
    configured brightness. Returns True only if every byte was acknowledged.
    """
    ack = set_data_mode(bus, auto_increment=True)
    for address in range(DIGIT_COUNT):
        ack = write_address(bus, address, frame[address]) and ack
    ack = set_display_control(bus, enabled, brightness) and ack
    _LOGGER.debug(
        "frame %s sent (on=%s brightness=%s ack=%s)",
        " ".join(f"{b:02x}" for b in frame[:DIGIT_COUNT]), enabled, brightness, ack,
    )
    return ack
