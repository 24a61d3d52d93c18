# tests/test_reel.py
import unittest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from reelsync.domain.machine.entities.reel import ReelStrip, ReelState
from reelsync.domain.machine.entities.symbol import Symbol, parse_symbols


class TestReelStrip(unittest.TestCase):
    """Test cases for ReelStrip position to symbol mapping."""

    def setUp(self):
        """Set up test fixtures."""
        self.symbols = [Symbol.CHERRY, Symbol.APPLE, Symbol.BANANA, Symbol.LEMON]
        self.strip = ReelStrip(self.symbols, reel_id="reel_0")

    def test_symbol_at_position(self):
        self.assertEqual(self.strip.symbol_at(0), Symbol.CHERRY)
        self.assertEqual(self.strip.symbol_at(3), Symbol.LEMON)

    def test_symbol_at_wraps_around(self):
        """Positions beyond the strip length wrap around."""
        self.assertEqual(self.strip.symbol_at(4), Symbol.CHERRY)
        self.assertEqual(self.strip.symbol_at(30), Symbol.BANANA)
        self.assertEqual(self.strip.symbol_at(35), Symbol.LEMON)

    def test_fractional_position_floors(self):
        self.assertEqual(self.strip.symbol_at(1.99), Symbol.APPLE)
        self.assertEqual(self.strip.symbol_at(2.0), Symbol.BANANA)

    def test_symbol_at_is_pure(self):
        self.assertEqual([self.strip.symbol_at(9) for _ in range(5)], [Symbol.APPLE] * 5)

    def test_empty_strip_rejected(self):
        with self.assertRaises(ValueError):
            ReelStrip([])

    def test_length_and_repr(self):
        self.assertEqual(len(self.strip), 4)
        self.assertEqual(repr(self.strip), "ReelStrip(id=reel_0, length=4)")


class TestSymbol(unittest.TestCase):

    def test_parse_is_case_insensitive(self):
        self.assertEqual(Symbol.parse("Cherry"), Symbol.CHERRY)
        self.assertEqual(Symbol.parse(" LEMON "), Symbol.LEMON)

    def test_parse_unknown_symbol(self):
        with self.assertRaises(ValueError):
            Symbol.parse("grape")
        with self.assertRaises(ValueError):
            Symbol.parse(3)

    def test_parse_symbols(self):
        self.assertEqual(parse_symbols(["apple", "banana"]), [Symbol.APPLE, Symbol.BANANA])


class TestReelState(unittest.TestCase):

    def test_at_target(self):
        reel = ReelState(index=0, stop_target=3)
        self.assertFalse(reel.at_target)
        reel.position = 3.0
        self.assertTrue(reel.at_target)


if __name__ == '__main__':
    unittest.main()
