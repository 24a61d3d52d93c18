# reelsync/domain/session/entities/account_state.py
import logging
from decimal import Decimal
from typing import Dict, Any, List

from .outcome import Outcome, OutcomeSource


class AccountState:
    """
    Locally observed view of the player's ledger account.

    Refreshed from the ledger on a best-effort basis; between refreshes it is
    an estimate that late remote outcomes are reconciled into.
    """
    def __init__(self, balance: Decimal = Decimal("0"), free_spins: int = 0,
                 discounted_spins: int = 0, has_discount: bool = False,
                 reward_pool: Decimal = Decimal("0")):
        self.logger = logging.getLogger("domain.session.account")
        self.balance = Decimal(balance)
        self.free_spins = free_spins
        self.discounted_spins = discounted_spins
        self.has_discount = has_discount
        self.reward_pool = Decimal(reward_pool)
        self.reconciled_references: List[str] = []
        self.refresh_count = 0

    def spin_cost(self, standard_cost: Decimal, discounted_cost: Decimal) -> Decimal:
        """Cost of the next spin: free spins first, then the discount, then the standard price."""
        if self.free_spins > 0:
            return Decimal("0")
        if self.has_discount and self.discounted_spins > 0:
            return discounted_cost
        return standard_cost

    def cost_label(self, standard_cost: Decimal, discounted_cost: Decimal, currency: str = "MON") -> str:
        cost = self.spin_cost(standard_cost, discounted_cost)
        if cost == 0:
            return "Free"
        return f"{cost} {currency}"

    def apply_snapshot(self, snapshot: Dict[str, Any]):
        """
        Overwrite the local view with values read from the ledger.
        Keys absent from the snapshot keep their current value.
        """
        if "balance" in snapshot:
            self.balance = Decimal(str(snapshot["balance"]))
        if "free_spins" in snapshot:
            self.free_spins = int(snapshot["free_spins"])
        if "discounted_spins" in snapshot:
            self.discounted_spins = int(snapshot["discounted_spins"])
        if "has_discount" in snapshot:
            self.has_discount = bool(snapshot["has_discount"])
        if "reward_pool" in snapshot:
            self.reward_pool = Decimal(str(snapshot["reward_pool"]))
        self.refresh_count += 1
        self.logger.debug(f"Account refreshed: balance={self.balance}, free_spins={self.free_spins}")

    def reconcile_late_outcome(self, outcome: Outcome) -> bool:
        """
        Apply a remote outcome that arrived after a fallback was already shown.

        The spin the ledger charged for is debited (a free spin when the cost
        was zero, a discounted spin when the ledger applied the discount) and
        the rewards are credited.

        Returns:
            False if the outcome was not remote or was already reconciled
        """
        if outcome.source is not OutcomeSource.REMOTE:
            return False
        if outcome.reference in self.reconciled_references:
            self.logger.debug(f"Outcome {outcome.reference} already reconciled")
            return False

        self._debit_spin(outcome)
        self.balance += outcome.monetary_reward
        self.free_spins += outcome.bonus_spins
        if outcome.discount_granted:
            self.has_discount = True
        self.reconciled_references.append(outcome.reference)
        self.logger.info(f"Reconciled late outcome {outcome.reference}: "
                         f"-{outcome.spin_cost} +{outcome.monetary_reward}, "
                         f"+{outcome.bonus_spins} free spins")
        return True

    def _debit_spin(self, outcome: Outcome):
        if outcome.spin_cost == 0 and self.free_spins > 0:
            self.free_spins -= 1
            return
        self.balance -= outcome.spin_cost
        if outcome.discount_applied and self.discounted_spins > 0:
            self.discounted_spins -= 1
            if self.discounted_spins == 0:
                self.has_discount = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "balance": str(self.balance),
            "free_spins": self.free_spins,
            "discounted_spins": self.discounted_spins,
            "has_discount": self.has_discount,
            "reward_pool": str(self.reward_pool),
            "reconciled_references": list(self.reconciled_references),
        }
