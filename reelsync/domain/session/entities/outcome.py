# reelsync/domain/session/entities/outcome.py
from decimal import Decimal
from enum import Enum
from dataclasses import dataclass
from typing import Tuple, Optional, Dict, Any, Union

from reelsync.domain.errors import FailureReason
from reelsync.domain.machine.entities.symbol import Symbol


LOCAL_REFERENCE = "local"


class OutcomeSource(Enum):
    REMOTE = "remote"
    LOCAL = "local"


@dataclass(frozen=True)
class Outcome:
    """
    The resolved result of one spin attempt.

    Immutable; the reels and the result popup are both rendered from the
    same instance.
    """
    combination: Tuple[Symbol, Symbol, Symbol]
    monetary_reward: Decimal
    bonus_spins: int
    rare_award_granted: bool
    source: OutcomeSource
    reference: str
    discount_granted: bool = False
    fallback_reason: Optional[FailureReason] = None
    spin_cost: Decimal = Decimal("0")  # what the ledger charged for this spin
    discount_applied: bool = False

    def __post_init__(self):
        combination = tuple(self.combination)
        if len(combination) != 3 or not all(isinstance(s, Symbol) for s in combination):
            raise ValueError(f"An outcome needs exactly 3 symbols, got {self.combination!r}")
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "combination", combination)

        reward = Decimal(str(self.monetary_reward))
        if reward < 0:
            raise ValueError(f"monetary_reward must be >= 0, got {self.monetary_reward}")
        object.__setattr__(self, "monetary_reward", reward)

        cost = Decimal(str(self.spin_cost))
        if cost < 0:
            raise ValueError(f"spin_cost must be >= 0, got {self.spin_cost}")
        object.__setattr__(self, "spin_cost", cost)

        if self.bonus_spins < 0:
            raise ValueError(f"bonus_spins must be >= 0, got {self.bonus_spins}")
        if not self.reference:
            raise ValueError("An outcome needs a reference")
        if self.fallback_reason is not None and self.source is not OutcomeSource.LOCAL:
            raise ValueError("Only local outcomes can carry a fallback reason")

    @property
    def is_fallback(self) -> bool:
        return self.fallback_reason is not None

    @property
    def is_win(self) -> bool:
        return (self.monetary_reward > 0 or self.bonus_spins > 0
                or self.rare_award_granted or self.discount_granted)

    def as_fallback(self, reason: FailureReason) -> "Outcome":
        """Copy of a local outcome tagged with the failure it stands in for."""
        if self.source is not OutcomeSource.LOCAL:
            raise ValueError("Only local outcomes can stand in for a failed remote outcome")
        return Outcome(
            combination=self.combination,
            monetary_reward=self.monetary_reward,
            bonus_spins=self.bonus_spins,
            rare_award_granted=self.rare_award_granted,
            source=self.source,
            reference=self.reference,
            discount_granted=self.discount_granted,
            fallback_reason=reason,
            spin_cost=self.spin_cost,
            discount_applied=self.discount_applied,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "combination": [s.value for s in self.combination],
            "monetary_reward": str(self.monetary_reward),
            "bonus_spins": self.bonus_spins,
            "rare_award_granted": self.rare_award_granted,
            "discount_granted": self.discount_granted,
            "source": self.source.value,
            "reference": self.reference,
            "spin_cost": str(self.spin_cost),
            "fallback_reason": self.fallback_reason.value if self.fallback_reason else None,
        }


class PendingOutcome:
    """Marker for a session whose outcome is not known yet."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "PENDING"


PENDING = PendingOutcome()


@dataclass(frozen=True)
class FailedOutcome:
    """No outcome could be produced, not even a local one."""
    reason: str


OutcomeState = Union[Outcome, PendingOutcome, FailedOutcome]
