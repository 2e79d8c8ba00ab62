#!/usr/bin/env python3
"""
segdisplay command line tool

Drives one TM1637 display from the pinmap (default display id "main").

Usage:
  segdisplay number 1234                  # right-aligned number
  segdisplay number 7 --leading-zero      # 0007
  segdisplay time 5 9                     # 05:09
  segdisplay text HELP
  segdisplay raw 0x76 0x79 0x38 0x73
  segdisplay digit 2 15                   # 'F' on the third digit
  segdisplay brightness 7
  segdisplay countdown 90 --step 1        # counts 01:30 down to 00:00
  segdisplay clear

  segdisplay --mock number -42            # no hardware, print bus traffic
"""

from __future__ import annotations
import argparse
import logging
import sys
import time
from typing import List, Optional

from . import config
from .display import DisplayError, TM1637Display
from .hardware.gpio_backend import MockGPIOBackend, get_gpio_backend

_LOGGER = logging.getLogger("[SEGDISPLAY_CLI]")


def _int_auto(text: str) -> int:
    """Accept decimal, 0x.. hex and 0b.. binary."""
    return int(text, 0)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="segdisplay",
        description="Drive a TM1637 4-digit 7-segment display",
    )
    parser.add_argument('--pinmap', help='Path to pinmap.json (default: packaged or $SEGDISPLAY_PINMAP)')
    parser.add_argument('--display', default=config.DEFAULT_DISPLAY_ID, help='Display id in the pinmap')
    parser.add_argument('--mock', action='store_true', help='Use the mock backend and print bus transactions')
    parser.add_argument(
        '--brightness',
        type=int,
        choices=range(0, 8),
        help='Brightness level 0-7 applied before rendering'
    )
    parser.add_argument('--colon', action='store_true', help='Light the colon on number/text/digit renders')
    parser.add_argument('--strict', action='store_true', help='Fail on out-of-range input instead of clamping')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')

    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('number', help='Show an integer (-999..9999)')
    p.add_argument('value', type=int)
    p.add_argument('--leading-zero', action='store_true')

    p = sub.add_parser('time', help='Show MM:SS')
    p.add_argument('minutes', type=int)
    p.add_argument('seconds', type=int)

    p = sub.add_parser('text', help='Show up to 4 characters')
    p.add_argument('text')

    p = sub.add_parser('raw', help='Send 4 raw segment bytes')
    p.add_argument('segments', type=_int_auto, nargs=4)

    p = sub.add_parser('digit', help='Show one hex digit at a position')
    p.add_argument('position', type=int)
    p.add_argument('digit', type=int)

    p = sub.add_parser('brightness', help='Set brightness / power only')
    p.add_argument('level', type=int)
    p.add_argument('--off', action='store_true', help='Turn the display off')

    p = sub.add_parser('countdown', help='Count down from N seconds as MM:SS')
    p.add_argument('seconds', type=int)
    p.add_argument('--step', type=float, default=1.0, help='Seconds between updates (default: 1)')

    sub.add_parser('clear', help='Blank all digits')
    return parser


def _run_command(disp: TM1637Display, args, pause: bool = True) -> Optional[bool]:
    if args.command == 'number':
        return disp.show_number(args.value, leading_zero=args.leading_zero)
    if args.command == 'time':
        return disp.show_time(args.minutes, args.seconds)
    if args.command == 'text':
        return disp.show_text(args.text)
    if args.command == 'raw':
        return disp.show_raw(*args.segments)
    if args.command == 'digit':
        return disp.show_digit(args.position, args.digit)
    if args.command == 'brightness':
        return disp.set_brightness(args.level, enabled=not args.off)
    if args.command == 'clear':
        return disp.clear()
    if args.command == 'countdown':
        ack = True
        for remaining in range(max(0, args.seconds), -1, -1):
            mm, ss = divmod(remaining, 60)
            ack = bool(disp.show_time(min(mm, 99), ss)) and ack
            if remaining and pause:
                time.sleep(args.step)
        return ack
    raise ValueError(f"unknown command {args.command!r}")


def _print_transactions(backend: MockGPIOBackend, clk: int, dio: int) -> None:
    for txn in backend.transactions(clk, dio):
        print(" ".join(f"{b:02x}" for b in txn))


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        pinmap = config.load_pinmap(args.pinmap) if args.pinmap else config.get_pinmap()
    except config.ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    conf = pinmap["tm1637"].get(args.display)
    if conf is None:
        print(f"ERROR: no display '{args.display}' in pinmap (have: {', '.join(pinmap['tm1637'])})", file=sys.stderr)
        return 2

    backend = get_gpio_backend(gpio_mode=pinmap.get("gpio_mode", "BCM"), mock=args.mock)
    mock = isinstance(backend, MockGPIOBackend)
    disp = TM1637Display(
        backend=backend,
        bit_delay_us=pinmap.get("bit_delay_us", config.DEFAULT_BIT_DELAY_US),
        strict=args.strict,
    )

    try:
        disp.init(conf["clk"], conf["dio"])
        level = args.brightness if args.brightness is not None else conf.get("brightness")
        if level is not None:
            disp.set_brightness(level)
        disp.set_colon(args.colon)
        if mock:
            backend.clear_events()
        ack = _run_command(disp, args, pause=not mock)
        if mock:
            _print_transactions(backend, conf["clk"], conf["dio"])
    except DisplayError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        disp.clear()
        return 130
    finally:
        # release the lines but leave the last frame latched on the controller
        backend.cleanup([conf["clk"], conf["dio"]])

    if not ack:
        _LOGGER.warning("Display did not acknowledge every byte; check wiring and power")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
