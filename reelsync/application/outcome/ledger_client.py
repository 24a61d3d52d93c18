# reelsync/application/outcome/ledger_client.py
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, Dict, Any


class LedgerError(Exception):
    """Base class for failures reported by the ledger collaborator."""
    pass


class TransactionUnderpricedError(LedgerError):
    """The transaction was rejected as underpriced or the network is congested. Retryable."""
    pass


class UserRejectedError(LedgerError):
    """The wallet owner declined to sign the transaction."""
    pass


class InsufficientFundsError(LedgerError):
    """The account can not pay the spin cost plus fees."""
    pass


class MalformedReceiptError(LedgerError):
    """The transaction confirmed but its receipt carries no usable spin result."""
    pass


@dataclass(frozen=True)
class FeeParameters:
    """Fee settings attached to a spin transaction (wei per gas)."""
    gas_limit: int
    max_fee_per_gas: int
    max_priority_fee_per_gas: int

    def escalate(self, multiplier: float) -> "FeeParameters":
        """Fee parameters for a re-submission after an underpriced rejection."""
        return FeeParameters(
            gas_limit=self.gas_limit,
            max_fee_per_gas=int(self.max_fee_per_gas * multiplier),
            max_priority_fee_per_gas=int(self.max_priority_fee_per_gas * multiplier),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, int]) -> "FeeParameters":
        return cls(
            gas_limit=int(data["gas_limit"]),
            max_fee_per_gas=int(data["max_fee_per_gas"]),
            max_priority_fee_per_gas=int(data["max_priority_fee_per_gas"]),
        )


class LedgerClient(Protocol):
    """
    The wallet/contract collaborator.

    ``submit_spin`` resolves to a confirmed receipt::

        {"hash": "0x...", "logs": [{"event": "SpinResult", "args": {...}}]}

    and raises one of the LedgerError subclasses on failure.
    ``fetch_account_state`` resolves to a dict understood by
    ``AccountState.apply_snapshot``.
    """

    async def submit_spin(self, cost: Decimal, fee: FeeParameters) -> Dict[str, Any]:
        ...

    async def fetch_account_state(self) -> Dict[str, Any]:
        ...
