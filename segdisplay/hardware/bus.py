"""
hardware/bus.py
---------------

Bit-banged TM1637 two-wire bus (CLK + DIO).

Not I2C: there is no device address and bytes go out LSB first. Every line
transition is followed by a fixed delay (5us by default), well inside the
controller's 250kHz clock limit.
"""

from __future__ import annotations
import logging

from .gpio_backend import HIGH, LOW

_LOGGER = logging.getLogger("[TM1637_BUS]")

DEFAULT_BIT_DELAY_US = 5


class TM1637Bus:
    """
    Start/stop framing and byte transfer with ACK sensing.

    `backend` is any object with write(pin, level), read(pin) and
    delay_us(us) (see gpio_backend). A missing ACK is reported, never raised:
    the bus has no recovery path a driver could take.
    """

    def __init__(self, backend, clk: int, dio: int, bit_delay_us: float = DEFAULT_BIT_DELAY_US):
        self.backend = backend
        self.clk = clk
        self.dio = dio
        self.bit_delay_us = bit_delay_us
        self.nack_count = 0

    def _set(self, pin: int, level: int) -> None:
        self.backend.write(pin, level)
        self.backend.delay_us(self.bit_delay_us)

    def start(self) -> None:
        self._set(self.dio, HIGH)
        self._set(self.clk, HIGH)
        self._set(self.dio, LOW)
        self._set(self.clk, LOW)

    def stop(self) -> None:
        self._set(self.clk, LOW)
        self._set(self.dio, LOW)
        self._set(self.clk, HIGH)
        self._set(self.dio, HIGH)

    def write_byte(self, b: int) -> bool:
        """Send one byte LSB first. Returns True if the controller pulled DIO low."""
        b &= 0xFF
        for i in range(8):
            self._set(self.clk, LOW)
            self._set(self.dio, HIGH if (b >> i) & 1 else LOW)
            self._set(self.clk, HIGH)

        # ack clock: release DIO and let the controller pull it low
        self._set(self.clk, LOW)
        self._set(self.dio, HIGH)
        self._set(self.clk, HIGH)
        ack = self.backend.read(self.dio) == LOW
        self._set(self.clk, LOW)

        if not ack:
            self.nack_count += 1
            _LOGGER.debug("no ACK for byte 0x%02x (clk=%s dio=%s)", b, self.clk, self.dio)
        return ack

    def __repr__(self):
        return f"<TM1637Bus clk={self.clk} dio={self.dio} delay={self.bit_delay_us}us>"
