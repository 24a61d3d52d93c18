# reelsync/application/simulation/spin_runner.py
import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Any, List, Optional, Callable

from reelsync.domain.events.event_dispatcher import EventDispatcher
from reelsync.domain.events.spin_events import SpinEvent, SpinEventType
from reelsync.domain.machine.entities.reel import ReelStrip
from reelsync.domain.machine.services.reel_animator import ReelAnimator
from reelsync.domain.machine.services.reward_table import RewardTable
from reelsync.domain.session.entities.account_state import AccountState
from reelsync.domain.session.entities.outcome import OutcomeSource
from reelsync.domain.session.entities.spin_session import SpinPhase
from reelsync.domain.session.factories.session_factory import SpinSessionFactory
from reelsync.infrastructure.concurrency.frame_driver import FrameDriver
from reelsync.infrastructure.config.engine_config import EngineConfig
from reelsync.infrastructure.output.spin_history_writer import SpinHistoryWriter
from reelsync.infrastructure.rng.rng_provider import RNGProvider
from reelsync.application.ledger.simulated_ledger import SimulatedLedgerClient
from reelsync.application.outcome.ledger_client import LedgerClient
from reelsync.application.outcome.local_outcome import LocalOutcomeGenerator
from reelsync.application.outcome.outcome_provider import OutcomeProvider
from reelsync.application.spin.popup_request import PopupRequest
from reelsync.application.spin.reveal_gate import RevealGate
from reelsync.application.spin.spin_orchestrator import SpinOrchestrator, SpinRequestStatus


# rng stream offsets so each consumer draws independently under a fixed seed
ANIMATOR_SEED_OFFSET = 0
LOCAL_OUTCOME_SEED_OFFSET = 1
LEDGER_SEED_OFFSET = 2


@dataclass
class SpinRunStats:
    """Aggregated results of a headless run."""
    spins: int = 0
    remote: int = 0
    local: int = 0
    fallback_reasons: Counter = field(default_factory=Counter)
    faults: int = 0
    busy_rejections: int = 0
    late_reconciled: int = 0
    total_reward: Decimal = Decimal("0")
    bonus_spins: int = 0
    rare_awards: int = 0

    def record_popup(self, request: PopupRequest):
        outcome = request.outcome
        self.spins += 1
        if outcome.source is OutcomeSource.REMOTE:
            self.remote += 1
        else:
            self.local += 1
        if outcome.fallback_reason is not None:
            self.fallback_reasons[outcome.fallback_reason.value] += 1
        self.total_reward += outcome.monetary_reward
        self.bonus_spins += outcome.bonus_spins
        if outcome.rare_award_granted:
            self.rare_awards += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "spins": self.spins,
            "remote": self.remote,
            "local": self.local,
            "fallback_reasons": dict(self.fallback_reasons),
            "faults": self.faults,
            "busy_rejections": self.busy_rejections,
            "late_reconciled": self.late_reconciled,
            "total_reward": str(self.total_reward),
            "bonus_spins": self.bonus_spins,
            "rare_awards": self.rare_awards,
        }


@dataclass
class SpinEngine:
    """Wired engine components built from one EngineConfig."""
    config: EngineConfig
    strips: List[ReelStrip]
    animator: ReelAnimator
    reward_table: RewardTable
    local_generator: LocalOutcomeGenerator
    provider: OutcomeProvider
    orchestrator: SpinOrchestrator
    gate: RevealGate
    account: AccountState
    event_dispatcher: EventDispatcher
    ledger_client: Optional[LedgerClient] = None


def build_engine(config: EngineConfig, event_dispatcher: Optional[EventDispatcher] = None,
                 ledger_client: Optional[LedgerClient] = None,
                 popup_presenter=None,
                 rng_provider: Optional[RNGProvider] = None) -> SpinEngine:
    """
    Wire the engine from configuration.

    Args:
        config: Validated engine configuration
        event_dispatcher: Dispatcher for spin events (a new one if omitted)
        ledger_client: Ledger to submit spins to; a SimulatedLedgerClient is
            created for remote modes when omitted
        popup_presenter: Collaborator that displays result popups
        rng_provider: Source of RNG strategies
    """
    rng_provider = rng_provider or RNGProvider()
    event_dispatcher = event_dispatcher or EventDispatcher()

    strips = [ReelStrip(symbols, reel_id=f"reel_{i}") for i, symbols in enumerate(config.strips)]
    reward_table = RewardTable(config.reward_table)
    animator = ReelAnimator(config.animation,
                            rng_provider.create_from_config(config.rng, ANIMATOR_SEED_OFFSET))
    local_generator = LocalOutcomeGenerator(
        config.symbols, reward_table,
        rng_provider.create_from_config(config.rng, LOCAL_OUTCOME_SEED_OFFSET))

    if ledger_client is None and config.provider.mode != "local":
        ledger_client = SimulatedLedgerClient(
            config.simulated_ledger, reward_table, config.symbols,
            rng_provider.create_from_config(config.rng, LEDGER_SEED_OFFSET))

    account = AccountState(balance=config.simulated_ledger.starting_balance,
                           reward_pool=config.simulated_ledger.reward_pool)
    provider = OutcomeProvider(config.provider, local_generator, ledger_client, account)
    orchestrator = SpinOrchestrator(
        config.orchestrator, animator, provider, local_generator, strips,
        popup_presenter=popup_presenter,
        event_dispatcher=event_dispatcher,
        session_factory=SpinSessionFactory(),
        account=account,
        currency=config.provider.currency,
    )
    gate = RevealGate(orchestrator, config.provider)

    return SpinEngine(config=config, strips=strips, animator=animator, reward_table=reward_table,
                      local_generator=local_generator, provider=provider,
                      orchestrator=orchestrator, gate=gate, account=account,
                      event_dispatcher=event_dispatcher, ledger_client=ledger_client)


class SpinRunner:
    """
    Plays spins headless: starts a spin, renders frames until the popup
    opens, dismisses it after ``dismiss_delay`` and collects statistics.
    """
    def __init__(self, config: EngineConfig, fps: float = 60.0, dismiss_delay: float = 0.0,
                 ledger_client: Optional[LedgerClient] = None,
                 event_dispatcher: Optional[EventDispatcher] = None):
        self.logger = logging.getLogger("application.simulation.runner")
        self.config = config
        self.dismiss_delay = dismiss_delay
        self.frame_driver = FrameDriver(fps)
        self.stats = SpinRunStats()
        self.popups: List[PopupRequest] = []

        self.engine = build_engine(config, event_dispatcher, ledger_client, popup_presenter=self)
        self.orchestrator = self.engine.orchestrator

        dispatcher = self.engine.event_dispatcher
        dispatcher.register(SpinEventType.SESSION_RECOVERED, self._on_recovered)
        dispatcher.register(SpinEventType.LATE_OUTCOME_RECONCILED, self._on_reconciled)

        self.history_writer: Optional[SpinHistoryWriter] = None
        if config.history.enabled:
            self.history_writer = SpinHistoryWriter(config.history.path)
            self.history_writer.attach(dispatcher)

        # worst case: slowest animation, full outcome timeout, then the reveal pause
        spin_seconds = (config.animation.max_stop_time + config.orchestrator.outcome_timeout
                        + config.orchestrator.reveal_delay)
        self.frame_budget = int(spin_seconds * fps * 2) + 10

    def show(self, request: PopupRequest):
        """PopupPresenter: record the popup; dismissal happens in ``run``."""
        self.popups.append(request)
        self.stats.record_popup(request)

    def _on_recovered(self, event: SpinEvent):
        self.stats.faults += 1

    def _on_reconciled(self, event: SpinEvent):
        self.stats.late_reconciled += 1

    async def run(self, spins: int,
                  on_spin_complete: Optional[Callable[[SpinRunStats], None]] = None) -> SpinRunStats:
        """
        Play ``spins`` spins one after the other.

        Args:
            spins: Number of spins to attempt
            on_spin_complete: Called after every attempt (progress reporting)

        Returns:
            The aggregated statistics
        """
        self.logger.info(f"Running {spins} spins in {self.config.provider.mode} mode")
        try:
            for _ in range(spins):
                await self.play_one()
                if on_spin_complete is not None:
                    on_spin_complete(self.stats)
        finally:
            await self.orchestrator.drain()
            self.orchestrator.close()
            if self.history_writer is not None:
                await self.history_writer.close()

        self.logger.info(f"Run finished: {self.stats.to_dict()}")
        return self.stats

    async def play_one(self) -> Optional[PopupRequest]:
        """
        Play one spin to completion.

        Returns:
            The popup shown for the spin, or None if the spin was aborted
        """
        orchestrator = self.orchestrator
        status = orchestrator.start_spin()
        if status is SpinRequestStatus.BUSY:
            self.stats.busy_rejections += 1
            return None
        if status is SpinRequestStatus.FAULTED:
            return None

        session_id = orchestrator.snapshot().session_id
        await self.frame_driver.run(
            orchestrator.render_frame,
            until=lambda: orchestrator.phase in (SpinPhase.REVEALING, SpinPhase.IDLE),
            max_frames=self.frame_budget,
        )

        if orchestrator.phase is not SpinPhase.REVEALING:
            if orchestrator.phase is not SpinPhase.IDLE:
                orchestrator.fault(session_id, "frame budget exhausted before the reveal")
            return None

        popup = orchestrator.last_popup
        if self.dismiss_delay > 0:
            await asyncio.sleep(self.dismiss_delay)
        orchestrator.dismiss_popup(session_id)
        return popup
