# reelsync/domain/errors.py
from enum import Enum
from dataclasses import dataclass


class FailureReason(Enum):
    """Reasons an outcome could not be obtained from the remote ledger."""
    ALREADY_IN_PROGRESS = "already_in_progress"
    USER_REJECTED = "user_rejected"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    NETWORK_CONGESTED = "network_congested"
    MALFORMED_RESULT = "malformed_result"
    OUTCOME_TIMEOUT = "outcome_timeout"
    LEDGER_ERROR = "ledger_error"


@dataclass(frozen=True)
class OutcomeFailure:
    """Result of an outcome request that did not produce an Outcome."""
    reason: FailureReason
    message: str = ""

    def __str__(self) -> str:
        if self.message:
            return f"{self.reason.value}: {self.message}"
        return self.reason.value


class SpinEngineError(Exception):
    """Base class for errors raised by the spin engine."""
    pass


class AnimatorFault(SpinEngineError):
    """Invariant violation inside the reel animator (e.g. duplicate stop)."""
    def __init__(self, message, reel_index=None):
        self.reel_index = reel_index
        self.message = message
        super().__init__(message)


class SessionInvariantError(SpinEngineError):
    """Raised when a spin session would be mutated against its invariants."""
    pass
