# reelsync/infrastructure/rng/strategies/mersenne_rng.py
import random
from typing import List, Optional, Any, Sequence


class MersenneTwisterRNG:
    """
    Random number generator using the Mersenne Twister algorithm (Python's default).
    """
    def __init__(self, seed_value: Optional[int] = None):
        """
        Initialize the RNG with an optional seed.

        Args:
            seed_value: Optional seed value for reproducible draws
        """
        # Dedicated instance, the module-level generator is shared with other code
        self._random = random.Random()

        if seed_value is not None:
            self.seed(seed_value)

    def get_random_int(self, min_val: int, max_val: int) -> int:
        return self._random.randint(min_val, max_val)

    def get_random_float(self, min_val: float, max_val: float) -> float:
        return self._random.uniform(min_val, max_val)

    def get_batch_ints(self, min_val: int, max_val: int, count: int) -> List[int]:
        return [self._random.randint(min_val, max_val) for _ in range(count)]

    def chance(self, probability: float) -> bool:
        """
        Bernoulli draw.

        Args:
            probability: Probability of returning True, clamped to [0, 1]
        """
        if probability <= 0:
            return False
        if probability >= 1:
            return True
        return self._random.random() < probability

    def seed(self, seed_value: int) -> None:
        self._random.seed(seed_value)

    def choice(self, items: Sequence[Any]) -> Any:
        """
        Randomly select an item.

        Raises:
            IndexError: If items is empty
        """
        if not items:
            raise IndexError("Cannot choose from an empty list")
        return self._random.choice(items)
