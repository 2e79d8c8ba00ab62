import json
import os
import subprocess
import sys
import tempfile
import unittest
from unittest import mock

from segdisplay import config
from segdisplay.config import ConfigError, validate_pinmap
from segdisplay.display import TM1637Display
from segdisplay.hardware.gpio_backend import ENV_FORCE_MOCK, MockGPIOBackend
from segdisplay.manager import DisplayManager

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
MISSING = "/nonexistent/pinmap.json"


def valid_pinmap():
    return {
        "gpio_mode": "BCM",
        "bit_delay_us": 5,
        "tm1637": {
            "main": {"clk": 23, "dio": 24, "brightness": 2},
            "slot2": {"clk": 17, "dio": 27},
        },
    }


class ValidateTests(unittest.TestCase):
    def test_valid(self):
        validate_pinmap(valid_pinmap())

    def test_packaged_pinmap_is_valid(self):
        self.assertIn(config.DEFAULT_DISPLAY_ID, config.TM1637_MAP)
        self.assertIsNotNone(config.get_display_config())

    def assertInvalid(self, pinmap):
        with self.assertRaises(ConfigError):
            validate_pinmap(pinmap)

    def test_root_must_be_object(self):
        self.assertInvalid([])

    def test_missing_tm1637(self):
        self.assertInvalid({"gpio_mode": "BCM"})

    def test_empty_tm1637(self):
        self.assertInvalid({"tm1637": {}})

    def test_missing_pin(self):
        pm = valid_pinmap()
        del pm["tm1637"]["main"]["dio"]
        self.assertInvalid(pm)

    def test_bad_pin_types(self):
        pm = valid_pinmap()
        pm["tm1637"]["main"]["clk"] = "23"
        self.assertInvalid(pm)
        pm = valid_pinmap()
        pm["tm1637"]["main"]["clk"] = True
        self.assertInvalid(pm)

    def test_same_pin_twice(self):
        pm = valid_pinmap()
        pm["tm1637"]["main"]["dio"] = 23
        self.assertInvalid(pm)

    def test_brightness_range(self):
        pm = valid_pinmap()
        pm["tm1637"]["main"]["brightness"] = 8
        self.assertInvalid(pm)

    def test_gpio_mode(self):
        pm = valid_pinmap()
        pm["gpio_mode"] = "WIRINGPI"
        self.assertInvalid(pm)

    def test_bit_delay(self):
        pm = valid_pinmap()
        pm["bit_delay_us"] = 0
        self.assertInvalid(pm)


class LoadTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, "pinmap.json")

    def tearDown(self):
        with mock.patch.dict(os.environ, {}, clear=False):
            os.environ.pop(config.ENV_PINMAP_PATH, None)
            config.reload_pinmap()
        self.tmp.cleanup()

    def write(self, content):
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(content)

    def test_load_pinmap(self):
        self.write(json.dumps(valid_pinmap()))
        self.assertEqual(config.load_pinmap(self.path)["tm1637"]["slot2"]["clk"], 17)

    def test_missing_file(self):
        with self.assertRaises(ConfigError) as ctx:
            config.load_pinmap(os.path.join(self.tmp.name, "nope.json"))
        self.assertIsInstance(ctx.exception.__cause__, FileNotFoundError)

    def test_bad_json(self):
        self.write("{not json")
        with self.assertRaises(ConfigError) as ctx:
            config.load_pinmap(self.path)
        self.assertIsInstance(ctx.exception.__cause__, json.JSONDecodeError)

    def test_env_override_and_reload(self):
        pm = valid_pinmap()
        pm["gpio_mode"] = "BOARD"
        pm["bit_delay_us"] = 8
        self.write(json.dumps(pm))
        with mock.patch.dict(os.environ, {config.ENV_PINMAP_PATH: self.path}):
            self.assertEqual(str(config.find_pinmap_path()), os.path.realpath(self.path))
            config.reload_pinmap()
        self.assertEqual(config.GPIO_MODE, "BOARD")
        self.assertEqual(config.BIT_DELAY_US, 8)
        self.assertEqual(config.get_display_config("slot2"), {"clk": 17, "dio": 27})
        self.assertIsNone(config.get_display_config("missing"))


class LazyLoadTests(unittest.TestCase):
    def tearDown(self):
        config.reset_pinmap()

    def test_bad_env_fails_on_first_use(self):
        with mock.patch.dict(os.environ, {config.ENV_PINMAP_PATH: MISSING}):
            config.reset_pinmap()
            with self.assertRaises(ConfigError) as ctx:
                config.get_pinmap()
            self.assertIn("Failed loading pinmap", str(ctx.exception))
            with self.assertRaises(ConfigError):
                getattr(config, "TM1637_MAP")
            with self.assertRaises(ConfigError):
                DisplayManager(backend=MockGPIOBackend())

    def test_driver_works_without_pinmap(self):
        with mock.patch.dict(os.environ, {config.ENV_PINMAP_PATH: MISSING}):
            config.reset_pinmap()
            disp = TM1637Display(backend=MockGPIOBackend())
            self.assertTrue(disp.init(23, 24))
            self.assertTrue(disp.show_number(7))

    def test_package_import_ignores_bad_env(self):
        env = dict(os.environ)
        env[config.ENV_PINMAP_PATH] = MISSING
        env[ENV_FORCE_MOCK] = "1"
        code = (
            "from segdisplay import TM1637Display\n"
            "disp = TM1637Display()\n"
            "disp.init(23, 24)\n"
            "print(disp.show_number(7))\n"
        )
        result = subprocess.run(
            [sys.executable, "-c", code],
            cwd=ROOT, env=env, capture_output=True, text=True,
        )
        self.assertEqual(result.returncode, 0, result.stderr)
        self.assertEqual(result.stdout.strip(), "True")

    def test_reset_loads_packaged_map_again(self):
        config.reset_pinmap()
        with mock.patch.dict(os.environ, {}, clear=False):
            os.environ.pop(config.ENV_PINMAP_PATH, None)
            self.assertIn(config.DEFAULT_DISPLAY_ID, config.get_pinmap()["tm1637"])
        self.assertEqual(config.GPIO_MODE, "BCM")


if __name__ == '__main__':
    unittest.main()
