# reelsync/application/outcome/local_outcome.py
import logging
from typing import Sequence, Optional, List

from reelsync.domain.machine.entities.symbol import Symbol
from reelsync.domain.machine.services.reward_table import RewardTable
from reelsync.domain.session.entities.outcome import Outcome, OutcomeSource, LOCAL_REFERENCE


class LocalOutcomeGenerator:
    """
    Draws outcomes without the ledger: a uniform draw over the symbol set,
    scored by the local reward table. Deterministic for a seeded RNG.
    """
    def __init__(self, symbols: List[Symbol], reward_table: RewardTable, rng):
        """
        Args:
            symbols: The symbol set to draw from
            reward_table: Table used to score combinations
            rng: RNG strategy (seed it for reproducible fallbacks)
        """
        if not symbols:
            raise ValueError("Symbol set is empty")
        self.logger = logging.getLogger("application.outcome.local")
        self.symbols = list(symbols)
        self.reward_table = reward_table
        self.rng = rng

    def draw(self, reference: str = LOCAL_REFERENCE) -> Outcome:
        combination = [self.rng.choice(self.symbols) for _ in range(3)]
        return self.evaluate(combination, reference)

    def evaluate(self, combination: Sequence[Symbol], reference: Optional[str] = None) -> Outcome:
        """Score a given combination, e.g. the symbols the reels actually stopped on."""
        draw = self.reward_table.evaluate(combination, self.rng)
        outcome = Outcome(
            combination=tuple(combination),
            monetary_reward=draw.prize.reward,
            bonus_spins=draw.prize.bonus_spins,
            rare_award_granted=draw.rare_award,
            source=OutcomeSource.LOCAL,
            reference=reference or LOCAL_REFERENCE,
            discount_granted=draw.prize.discount,
        )
        self.logger.debug(f"Local outcome {[s.value for s in combination]} -> {draw.rule}")
        return outcome
