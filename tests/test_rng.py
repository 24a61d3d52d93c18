# tests/test_rng.py
import unittest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from reelsync.domain.machine.entities.symbol import Symbol
from reelsync.infrastructure.rng.rng_provider import RNGProvider
from reelsync.infrastructure.rng.strategies.mersenne_rng import MersenneTwisterRNG
from reelsync.infrastructure.rng.strategies.numpy_rng import NumpyRNG


class TestRNGStrategies(unittest.TestCase):
    """Test cases shared by the RNG strategies."""

    def setUp(self):
        """Set up RNG instances."""
        self.strategies = {
            "mersenne": lambda seed: MersenneTwisterRNG(seed_value=seed),
            "numpy": lambda seed: NumpyRNG(seed_value=seed),
        }

    def test_seeded_sequences_repeat(self):
        for name, factory in self.strategies.items():
            with self.subTest(strategy=name):
                first = factory(12345).get_batch_ints(25, 40, 50)
                second = factory(12345).get_batch_ints(25, 40, 50)
                self.assertEqual(first, second)

    def test_int_range_is_inclusive(self):
        for name, factory in self.strategies.items():
            with self.subTest(strategy=name):
                rng = factory(7)
                values = rng.get_batch_ints(1, 3, 500)
                self.assertEqual(set(values), {1, 2, 3})
                self.assertTrue(all(isinstance(v, int) for v in values))
                single = rng.get_random_int(25, 40)
                self.assertTrue(25 <= single <= 40)

    def test_float_range(self):
        for name, factory in self.strategies.items():
            with self.subTest(strategy=name):
                rng = factory(7)
                for _ in range(100):
                    value = rng.get_random_float(0.5, 3.0)
                    self.assertTrue(0.5 <= value <= 3.0)

    def test_chance_is_clamped(self):
        for name, factory in self.strategies.items():
            with self.subTest(strategy=name):
                rng = factory(1)
                self.assertFalse(any(rng.chance(0.0) for _ in range(100)))
                self.assertFalse(rng.chance(-1))
                self.assertTrue(all(rng.chance(1.0) for _ in range(100)))
                self.assertTrue(rng.chance(2))

    def test_choice_keeps_enum_members(self):
        symbols = list(Symbol)
        for name, factory in self.strategies.items():
            with self.subTest(strategy=name):
                rng = factory(3)
                picks = {rng.choice(symbols) for _ in range(200)}
                self.assertEqual(picks, set(symbols))

    def test_choice_from_empty(self):
        for name, factory in self.strategies.items():
            with self.subTest(strategy=name):
                with self.assertRaises(IndexError):
                    factory(3).choice([])

    def test_reseed(self):
        rng = MersenneTwisterRNG()
        rng.seed(99)
        first = rng.get_batch_ints(0, 1000, 10)
        rng.seed(99)
        self.assertEqual(rng.get_batch_ints(0, 1000, 10), first)


class TestRNGProvider(unittest.TestCase):
    """Test cases for the RNG provider."""

    def setUp(self):
        self.provider = RNGProvider()

    def test_unseeded_instances_are_shared(self):
        self.assertIs(self.provider.get_rng("mersenne"), self.provider.get_rng("Mersenne"))

    def test_seeded_instances_are_fresh(self):
        first = self.provider.get_rng("numpy", seed=5)
        second = self.provider.get_rng("numpy", seed=5)
        self.assertIsNot(first, second)
        self.assertEqual(first.get_batch_ints(0, 100, 10), second.get_batch_ints(0, 100, 10))

    def test_unknown_strategy(self):
        with self.assertRaises(ValueError):
            self.provider.get_rng("dice")

    def test_create_from_config_applies_seed_offset(self):
        config = {"strategy": "mersenne", "seed": 100}
        offset = self.provider.create_from_config(config, seed_offset=2)
        direct = MersenneTwisterRNG(seed_value=102)
        self.assertEqual(offset.get_batch_ints(0, 1000, 10), direct.get_batch_ints(0, 1000, 10))
        self.assertIsInstance(self.provider.create_from_config({}), MersenneTwisterRNG)

    def test_available_strategies(self):
        self.assertEqual(set(RNGProvider.get_available_strategies()), {"mersenne", "numpy"})


if __name__ == '__main__':
    unittest.main()
