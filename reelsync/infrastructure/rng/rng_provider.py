# reelsync/infrastructure/rng/rng_provider.py
import logging
from typing import Optional, Dict, Any, Callable

from .strategies.mersenne_rng import MersenneTwisterRNG
from .strategies.numpy_rng import NumpyRNG
from .strategies.rng_strategy import RNGStrategy


# name -> (factory, description)
STRATEGIES: Dict[str, tuple] = {
    "mersenne": (MersenneTwisterRNG, "Mersenne Twister (Python's default random generator)"),
    "numpy": (NumpyRNG, "NumPy RandomState generator"),
}


class RNGProvider:
    """
    Hands out random sources to the animator, the local outcome generator
    and the simulated ledger.

    Seeded sources are created fresh on every call so two consumers seeded
    alike replay identical sequences. Unseeded sources are created once per
    strategy name and shared.
    """
    def __init__(self):
        self.logger = logging.getLogger("infrastructure.rng.provider")
        self._shared: Dict[str, RNGStrategy] = {}

    def get_rng(self, strategy_name: str, seed: Optional[int] = None) -> RNGStrategy:
        """
        Raises:
            ValueError: If the strategy name is unknown
        """
        name = strategy_name.lower()
        if name not in STRATEGIES:
            self.logger.error(f"Unknown RNG strategy: {strategy_name}")
            raise ValueError(f"Unknown RNG strategy: {strategy_name}")

        if seed is not None:
            return self._build(name, seed)
        if name not in self._shared:
            self._shared[name] = self._build(name, None)
        return self._shared[name]

    def _build(self, name: str, seed: Optional[int]) -> RNGStrategy:
        factory: Callable[..., RNGStrategy] = STRATEGIES[name][0]
        self.logger.debug(f"Creating {name} RNG (seed={seed})")
        return factory(seed)

    def create_from_config(self, config: Dict[str, Any], seed_offset: int = 0) -> RNGStrategy:
        """
        Build the source described by an ``rng`` config section.

        Args:
            config: Dictionary with 'strategy' and optional 'seed' keys,
                e.g. {"strategy": "numpy", "seed": 12345}
            seed_offset: Added to a configured seed so each consumer gets
                its own reproducible stream
        """
        seed = config.get('seed')
        return self.get_rng(config.get('strategy', 'mersenne'),
                            None if seed is None else seed + seed_offset)

    @staticmethod
    def get_available_strategies() -> Dict[str, str]:
        return {name: description for name, (_, description) in STRATEGIES.items()}
