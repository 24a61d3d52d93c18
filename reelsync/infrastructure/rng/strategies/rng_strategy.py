# reelsync/infrastructure/rng/strategies/rng_strategy.py
from typing import List, Protocol, Any, Sequence


class RNGStrategy(Protocol):
    """Protocol for the random sources used by the local outcome path and the animator."""

    def get_random_int(self, min_val: int, max_val: int) -> int:
        """
        Get a random integer in the range [min_val, max_val].

        Args:
            min_val: Minimum value (inclusive)
            max_val: Maximum value (inclusive)
        """
        ...

    def get_random_float(self, min_val: float, max_val: float) -> float:
        """Get a random float in the range [min_val, max_val]."""
        ...

    def get_batch_ints(self, min_val: int, max_val: int, count: int) -> List[int]:
        ...

    def chance(self, probability: float) -> bool:
        """Return True with the given probability."""
        ...

    def choice(self, items: Sequence[Any]) -> Any:
        ...

    def seed(self, seed_value: int) -> None:
        ...
