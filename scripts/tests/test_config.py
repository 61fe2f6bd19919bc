"""Tests for EngineConfig and the preset registry."""

import dataclasses
import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from scripts.species_checker.config import DEFAULT_CONFIG, EngineConfig, all_preset_names, get_config
from scripts.species_checker.rules.base import Severity


class TestEngineConfig(unittest.TestCase):
    def test_defaults(self):
        self.assertEqual(DEFAULT_CONFIG.step_max, 2)
        self.assertEqual(DEFAULT_CONFIG.max_melodic_leap, 8)
        self.assertEqual(DEFAULT_CONFIG.max_range, 16)
        self.assertEqual(DEFAULT_CONFIG.pass_score, 100)
        self.assertTrue(DEFAULT_CONFIG.enforce_onset_ratio)

    def test_frozen(self):
        with self.assertRaises(dataclasses.FrozenInstanceError):
            DEFAULT_CONFIG.max_range = 20

    def test_replace(self):
        relaxed = DEFAULT_CONFIG.replace(max_range=20)
        self.assertEqual(relaxed.max_range, 20)
        self.assertEqual(DEFAULT_CONFIG.max_range, 16)
        self.assertIsInstance(relaxed, EngineConfig)

    def test_deduction(self):
        self.assertEqual(DEFAULT_CONFIG.deduction(Severity.ERROR), 10)
        self.assertEqual(DEFAULT_CONFIG.deduction(Severity.WARNING), 3)


class TestPresets(unittest.TestCase):
    def test_names(self):
        self.assertEqual(all_preset_names(), ["default", "strict", "lenient"])

    def test_default_is_shared(self):
        self.assertIs(get_config(), DEFAULT_CONFIG)

    def test_strict(self):
        strict = get_config("strict")
        self.assertEqual(strict.name, "strict")
        self.assertEqual(strict.direct_perfect_severity, Severity.ERROR)
        self.assertLess(strict.max_range, DEFAULT_CONFIG.max_range)

    def test_lenient(self):
        lenient = get_config("lenient")
        self.assertGreater(lenient.max_range, DEFAULT_CONFIG.max_range)
        self.assertGreater(lenient.crossing_tolerance, 0)

    def test_unknown(self):
        with self.assertRaises(KeyError) as ctx:
            get_config("baroque")
        self.assertIn("baroque", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
