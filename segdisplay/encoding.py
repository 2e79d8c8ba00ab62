"""
encoding.py

7-segment encoding for a 4-digit TM1637 module.

Segment bits (bit 7 is the colon on digit 1):

      -- a --
     f       b        a=0x01 b=0x02 c=0x04 d=0x08
      -- g --         e=0x10 f=0x20 g=0x40
     e       c        colon / dp = 0x80
      -- d --

Every encoder returns a frame: a list of exactly 4 ints, left to right.
Nothing here raises on bad input; out-of-range values clamp and unknown
glyphs render blank.
"""

from __future__ import annotations
import operator
from typing import Any, Iterable, List, Optional

FRAME_SIZE = 4
BLANK = 0x00
MINUS = 0x40
COLON = 0x80
COLON_POSITION = 1

NUMBER_MIN = -999
NUMBER_MAX = 9999

# 0-9, A b C d E F
DIGIT_SEGMENTS = (
    0x3F, 0x06, 0x5B, 0x4F, 0x66,
    0x6D, 0x7D, 0x07, 0x7F, 0x6F,
    0x77, 0x7C, 0x39, 0x5E, 0x79,
    0x71,
)

CHAR_SEGMENTS = {
    " ": 0x00,
    "-": 0x40,
    "_": 0x08,
    "=": 0x48,
    "°": 0x63,
    "A": 0x77,
    "b": 0x7C,
    "C": 0x39,
    "c": 0x58,
    "d": 0x5E,
    "E": 0x79,
    "F": 0x71,
    "G": 0x3D,
    "H": 0x76,
    "h": 0x74,
    "I": 0x30,
    "J": 0x1E,
    "L": 0x38,
    "n": 0x54,
    "O": 0x3F,
    "o": 0x5C,
    "P": 0x73,
    "q": 0x67,
    "r": 0x50,
    "S": 0x6D,
    "t": 0x78,
    "U": 0x3E,
    "u": 0x1C,
    "y": 0x6E,
}


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def blank_frame() -> List[int]:
    return [BLANK] * FRAME_SIZE


def normalize_frame(values: Iterable[int]) -> List[int]:
    """Exactly 4 bytes: extra values dropped, missing ones blank, each masked to 0xFF."""
    frame = [int(v) & 0xFF for v in list(values)[:FRAME_SIZE]]
    return frame + [BLANK] * (FRAME_SIZE - len(frame))


def _integral(value: Any) -> Optional[int]:
    # ints, int-likes (numpy) and whole floats; never bools or strings
    if value is None or isinstance(value, (bool, str, bytes)):
        return None
    try:
        return operator.index(value)
    except TypeError:
        pass
    try:
        whole = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return whole if whole == value else None


def encode_digit(d: int, hex_digits: bool = False) -> int:
    """Glyph for 0-9 (0-15 with hex_digits), given as any whole number. Anything else is blank."""
    limit = 15 if hex_digits else 9
    value = _integral(d)
    if value is None or not 0 <= value <= limit:
        return BLANK
    return DIGIT_SEGMENTS[value]


def encode_char(c: Optional[str]) -> int:
    """
    Glyph for a single character, blank when unsupported.

    Exact match wins, so letters with distinct upper and lower shapes (C/c,
    H/h, O/o, U/u) keep their own. Other letters only have one shape and are
    matched in either case.
    """
    if not isinstance(c, str) or len(c) != 1:
        return BLANK
    if c in CHAR_SEGMENTS:
        return CHAR_SEGMENTS[c]
    for candidate in (c.upper(), c.lower()):
        if candidate in CHAR_SEGMENTS:
            return CHAR_SEGMENTS[candidate]
    return BLANK


def encode_number(value: int, leading_zero: bool = False) -> List[int]:
    """
    Right-aligned integer in [-999, 9999] (clamped).

    Without leading_zero, zeros left of the first significant digit are
    blanked; the units digit always shows. A negative sign takes the blank
    just left of the digits, or position 0 when all four are in use.
    """
    value = _clamp(int(value), NUMBER_MIN, NUMBER_MAX)
    negative = value < 0
    magnitude = -value if negative else value

    digits = [
        magnitude // 1000 % 10,
        magnitude // 100 % 10,
        magnitude // 10 % 10,
        magnitude % 10,
    ]
    frame = [encode_digit(d) for d in digits]

    if not leading_zero:
        for pos in range(FRAME_SIZE - 1):
            if digits[pos] != 0:
                break
            frame[pos] = BLANK

    if negative:
        first_used = next(
            (pos for pos in range(FRAME_SIZE) if frame[pos] != BLANK),
            FRAME_SIZE - 1,
        )
        frame[max(first_used - 1, 0)] = MINUS

    return frame


def apply_colon(frame: List[int], colon: bool) -> List[int]:
    out = list(frame)
    if colon:
        out[COLON_POSITION] = (out[COLON_POSITION] | COLON) & 0xFF
    return out


def encode_time(minutes: int, seconds: int) -> List[int]:
    """MM:SS with minutes clamped to 0-99 and seconds to 0-59. The colon is always lit."""
    minutes = _clamp(int(minutes), 0, 99)
    seconds = _clamp(int(seconds), 0, 59)
    frame = [
        encode_digit(minutes // 10),
        encode_digit(minutes % 10),
        encode_digit(seconds // 10),
        encode_digit(seconds % 10),
    ]
    return apply_colon(frame, True)


def encode_text(text: Optional[str]) -> List[int]:
    """First four characters of `text`, padded with spaces."""
    chars = (str(text) if text is not None else "")[:FRAME_SIZE].ljust(FRAME_SIZE)
    frame = []
    for ch in chars:
        if ch in "0123456789":
            frame.append(encode_digit(int(ch)))
        else:
            frame.append(encode_char(ch))
    return frame


def encode_digit_at(position: int, digit: int) -> List[int]:
    """Single hex digit (0-15) at position 0-3 (clamped), other positions blank."""
    frame = blank_frame()
    frame[_clamp(int(position), 0, FRAME_SIZE - 1)] = encode_digit(digit, hex_digits=True)
    return frame
