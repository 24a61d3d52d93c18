# reelsync/application/spin/popup_request.py
from dataclasses import dataclass
from typing import Tuple, Optional, Protocol

from reelsync.domain.errors import FailureReason
from reelsync.domain.session.entities.outcome import Outcome, OutcomeSource


FALLBACK_REASON_TEXT = {
    FailureReason.ALREADY_IN_PROGRESS: "previous transaction still pending",
    FailureReason.USER_REJECTED: "transaction rejected in wallet",
    FailureReason.INSUFFICIENT_FUNDS: "insufficient funds",
    FailureReason.NETWORK_CONGESTED: "network congested",
    FailureReason.MALFORMED_RESULT: "unreadable transaction result",
    FailureReason.OUTCOME_TIMEOUT: "ledger took too long",
    FailureReason.LEDGER_ERROR: "ledger unavailable",
}


@dataclass(frozen=True)
class PopupRequest:
    """Everything the result popup shows for one session."""
    session_id: str
    outcome: Outcome
    title: str
    reward_lines: Tuple[str, ...]
    explorer_link: Optional[str] = None
    fallback_label: Optional[str] = None

    @classmethod
    def from_outcome(cls, session_id: str, outcome: Outcome, explorer_url: Optional[str] = None,
                     currency: str = "MON") -> "PopupRequest":
        link = None
        if outcome.source is OutcomeSource.REMOTE and explorer_url:
            link = f"{explorer_url.rstrip('/')}/tx/{outcome.reference}"

        label = None
        if outcome.is_fallback:
            label = f"Offline result: {FALLBACK_REASON_TEXT.get(outcome.fallback_reason, 'ledger unavailable')}"
        elif outcome.source is OutcomeSource.LOCAL:
            label = "Offline result"

        return cls(
            session_id=session_id,
            outcome=outcome,
            title="Spin Result",
            reward_lines=tuple(reward_lines(outcome, currency)),
            explorer_link=link,
            fallback_label=label,
        )


def reward_lines(outcome: Outcome, currency: str = "MON"):
    lines = []
    if outcome.rare_award_granted:
        lines.append("LEGENDARY AWARD WON!")
    if outcome.monetary_reward > 0:
        lines.append(f"Won: {outcome.monetary_reward} {currency}")
    if outcome.bonus_spins > 0:
        lines.append(f"Won: {outcome.bonus_spins} Free Spins")
    if outcome.discount_granted:
        lines.append("Discount unlocked")
    if not lines:
        lines.append("No reward this time")
    return lines


class PopupPresenter(Protocol):
    """The popup UI collaborator. Answers later with SpinOrchestrator.dismiss_popup."""

    def show(self, request: PopupRequest) -> None:
        ...
