# reelsync/domain/machine/services/reward_table.py
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from reelsync.domain.machine.entities.symbol import Symbol
from reelsync.infrastructure.config.engine_config import RewardTableConfig, Prize


@dataclass(frozen=True)
class RewardDraw:
    """Prize picked for one combination."""
    prize: Prize
    rare_award: bool = False
    rule: str = "none"


NO_PRIZE = Prize()


class RewardTable:
    """
    Scores a three-symbol combination.

    Rules are checked in order and the first match wins: rare award, triple,
    double on the first two reels, single-symbol chances, consolation.
    """
    def __init__(self, config: RewardTableConfig):
        self.logger = logging.getLogger("domain.machine.reward_table")
        self.config = config

    def evaluate(self, combination: Sequence[Symbol], rng) -> RewardDraw:
        """
        Args:
            combination: Symbols on the payline, left to right
            rng: RNG strategy used for the probabilistic rules
        """
        first, second, third = combination

        if rng.chance(self.config.rare_award_probability):
            return RewardDraw(NO_PRIZE, rare_award=True, rule="rare")

        if first == second == third and first in self.config.triple:
            return RewardDraw(self.config.triple[first], rule=f"triple:{first.value}")

        if first == second and first in self.config.double:
            return RewardDraw(self.config.double[first], rule=f"double:{first.value}")

        for chance_rule in self.config.any_symbol:
            if chance_rule.symbol in combination and rng.chance(chance_rule.probability):
                return RewardDraw(chance_rule.prize, rule=f"any:{chance_rule.symbol.value}")

        if rng.chance(self.config.consolation_probability):
            return RewardDraw(self.config.consolation, rule="consolation")

        return RewardDraw(NO_PRIZE)

    def max_reward(self) -> Decimal:
        prizes = list(self.config.triple.values()) + list(self.config.double.values())
        prizes += [rule.prize for rule in self.config.any_symbol] + [self.config.consolation]
        return max((p.reward for p in prizes), default=Decimal("0"))
