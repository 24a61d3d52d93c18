# reelsync/infrastructure/rng/strategies/numpy_rng.py
import numpy as np
from typing import List, Optional, Any, Sequence


class NumpyRNG:
    """
    Random number generator backed by a dedicated NumPy RandomState.
    """
    def __init__(self, seed_value: Optional[int] = None):
        self.rng = np.random.RandomState(seed_value)

    def get_random_int(self, min_val: int, max_val: int) -> int:
        # NumPy's randint is [min, max) so we add 1 to max_val
        return int(self.rng.randint(min_val, max_val + 1))

    def get_random_float(self, min_val: float, max_val: float) -> float:
        return float(self.rng.uniform(min_val, max_val))

    def get_batch_ints(self, min_val: int, max_val: int, count: int) -> List[int]:
        return self.rng.randint(min_val, max_val + 1, size=count).tolist()

    def chance(self, probability: float) -> bool:
        if probability <= 0:
            return False
        if probability >= 1:
            return True
        return bool(self.rng.random_sample() < probability)

    def seed(self, seed_value: int) -> None:
        self.rng = np.random.RandomState(seed_value)

    def choice(self, items: Sequence[Any]) -> Any:
        if not items:
            raise IndexError("Cannot choose from an empty list")

        # Index draw keeps enum members intact (np.random.choice would coerce them)
        idx = self.rng.randint(0, len(items))
        return items[idx]
