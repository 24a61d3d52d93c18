# reelsync/application/spin/reveal_gate.py
from reelsync.domain.session.entities.spin_session import SpinPhase, SessionSnapshot
from reelsync.infrastructure.config.engine_config import ProviderConfig


LABEL_SPINNING = "SPINNING..."
LABEL_PROCESSING = "PROCESSING..."
LABEL_DISMISS_POPUP = "DISMISS POPUP FIRST"
LABEL_RECOVERING = "RECOVERING..."


class RevealGate:
    """
    What the spin button shows. A pure projection of the orchestrator's
    current session snapshot; holds no state of its own.
    """
    def __init__(self, orchestrator, provider_config: ProviderConfig):
        """
        Args:
            orchestrator: SpinOrchestrator whose snapshot is projected
            provider_config: Spin costs used for the idle label
        """
        self.orchestrator = orchestrator
        self.provider_config = provider_config

    def can_spin(self) -> bool:
        return self.orchestrator.snapshot().phase is SpinPhase.IDLE

    def status_label(self) -> str:
        return self.label_for(self.orchestrator.snapshot())

    def label_for(self, snapshot: SessionSnapshot) -> str:
        phase = snapshot.phase
        if phase is SpinPhase.IDLE:
            cost = self.orchestrator.account.cost_label(
                self.provider_config.spin_cost,
                self.provider_config.discounted_spin_cost,
                self.provider_config.currency)
            return f"SPIN ({cost})"
        if phase is SpinPhase.ANIMATING:
            return LABEL_SPINNING
        if phase is SpinPhase.AWAITING_OUTCOME:
            return LABEL_PROCESSING
        if phase in (SpinPhase.READY_TO_REVEAL, SpinPhase.REVEALING):
            return LABEL_DISMISS_POPUP
        return LABEL_RECOVERING
