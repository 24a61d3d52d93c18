# reelsync/application/ledger/simulated_ledger.py
import asyncio
import logging
from decimal import Decimal
from typing import Dict, Any, List

from reelsync.domain.machine.entities.symbol import Symbol
from reelsync.domain.machine.services.reward_table import RewardTable
from reelsync.infrastructure.config.engine_config import SimulatedLedgerConfig
from reelsync.application.outcome.ledger_client import (
    FeeParameters, TransactionUnderpricedError, UserRejectedError, InsufficientFundsError,
)
from reelsync.application.outcome.result_parser import SPIN_RESULT_EVENT, WEI_PER_ETHER


DISCOUNTED_SPINS_GRANTED = 10


class SimulatedLedgerClient:
    """
    In-process stand-in for the spin contract, used by the demo runner.

    Confirms transactions after a random latency, rejects some as
    underpriced, keeps an account and pays out with the local reward table.
    """
    def __init__(self, config: SimulatedLedgerConfig, reward_table: RewardTable,
                 symbols: List[Symbol], rng):
        self.logger = logging.getLogger("application.ledger.simulated")
        self.config = config
        self.reward_table = reward_table
        self.symbols = list(symbols)
        self.rng = rng

        self.balance = config.starting_balance
        self.reward_pool = config.reward_pool
        self.free_spins = 0
        self.discounted_spins = 0
        self.has_discount = False
        self.transactions = 0
        self.rejected_underpriced = 0

    async def submit_spin(self, cost: Decimal, fee: FeeParameters) -> Dict[str, Any]:
        latency = self.rng.get_random_float(self.config.min_latency, self.config.max_latency)
        await asyncio.sleep(latency)

        if self.rng.chance(self.config.rejection_probability):
            raise UserRejectedError("User rejected the request")
        if self.rng.chance(self.config.congestion_probability):
            self.rejected_underpriced += 1
            raise TransactionUnderpricedError(
                f"replacement transaction underpriced (max fee {fee.max_fee_per_gas})")
        if cost > self.balance:
            raise InsufficientFundsError(f"balance {self.balance} < cost {cost}")

        discount_applied = self._charge(cost)

        combination = [self.rng.choice(self.symbols) for _ in range(3)]
        draw = self.reward_table.evaluate(combination, self.rng)
        reward = min(draw.prize.reward, self.reward_pool)

        self.balance += reward
        self.reward_pool -= reward
        self.free_spins += draw.prize.bonus_spins
        if draw.prize.discount:
            self.has_discount = True
            self.discounted_spins = DISCOUNTED_SPINS_GRANTED

        self.transactions += 1
        tx_hash = "0x" + "".join(f"{self.rng.get_random_int(0, 255):02x}" for _ in range(32))
        self.logger.debug(f"Confirmed {tx_hash[:10]} after {latency:.2f}s: "
                          f"{[s.value for s in combination]} -> {draw.rule}")

        return {
            "hash": tx_hash,
            "status": 1,
            "logs": [{
                "event": SPIN_RESULT_EVENT,
                "args": {
                    "combination": ",".join(s.value for s in combination),
                    "monReward": int(reward * WEI_PER_ETHER),
                    "extraSpins": draw.prize.bonus_spins,
                    "discountApplied": discount_applied,
                    "newDiscountGranted": draw.prize.discount,
                    "nftMinted": draw.rare_award,
                },
            }],
        }

    def _charge(self, cost: Decimal) -> bool:
        """Debit one spin; returns True if a discounted spin was consumed."""
        if self.free_spins > 0 and cost == 0:
            self.free_spins -= 1
            return False
        self.balance -= cost
        self.reward_pool += cost
        if self.has_discount and self.discounted_spins > 0:
            self.discounted_spins -= 1
            if self.discounted_spins == 0:
                self.has_discount = False
            return True
        return False

    async def fetch_account_state(self) -> Dict[str, Any]:
        await asyncio.sleep(0)
        return {
            "balance": str(self.balance),
            "free_spins": self.free_spins,
            "discounted_spins": self.discounted_spins,
            "has_discount": self.has_discount,
            "reward_pool": str(self.reward_pool),
        }
