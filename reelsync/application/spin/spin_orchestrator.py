# reelsync/application/spin/spin_orchestrator.py
import asyncio
import logging
from enum import Enum
from typing import Optional, List, Sequence, Set

from reelsync.domain.errors import AnimatorFault, FailureReason, OutcomeFailure
from reelsync.domain.events.event_dispatcher import EventDispatcher
from reelsync.domain.events.spin_events import SpinEvent, SpinEventType
from reelsync.domain.machine.entities.reel import ReelStrip, ReelState, ReelVisualState
from reelsync.domain.machine.services.reel_animator import (
    ReelAnimator, ReelStopped, AllReelsStopped, AnimationSignal,
)
from reelsync.domain.session.entities.account_state import AccountState
from reelsync.domain.session.entities.outcome import Outcome, OutcomeSource
from reelsync.domain.session.entities.spin_session import (
    SpinSession, SpinPhase, SessionSnapshot, IDLE_SNAPSHOT,
)
from reelsync.domain.session.factories.session_factory import SpinSessionFactory
from reelsync.infrastructure.config.engine_config import OrchestratorConfig
from reelsync.application.outcome.local_outcome import LocalOutcomeGenerator
from reelsync.application.outcome.outcome_provider import OutcomeProvider, ProviderResult
from .popup_request import PopupRequest, PopupPresenter


class SpinRequestStatus(Enum):
    STARTED = "started"
    BUSY = "busy"
    FAULTED = "faulted"


class SpinOrchestrator:
    """
    State machine that merges the reel animation and the outcome request of
    one spin into a single reveal.

    Phases::

        IDLE -> ANIMATING -> (AWAITING_OUTCOME) -> READY_TO_REVEAL -> REVEALING -> IDLE
        any  -> RECOVERING -> IDLE                      (animator fault, no popup)

    The reveal is a join: READY_TO_REVEAL is entered by whichever of
    "all reels stopped" and "outcome resolved" arrives last. A failed or
    timed-out outcome is replaced by a local fallback so a reveal still
    happens. Remote results that arrive after their session resolved or
    ended are never shown; they only reconcile the account view.

    Every method returns immediately; the outcome request runs as an
    asyncio task on the running loop.
    """
    def __init__(self, config: OrchestratorConfig, animator: ReelAnimator,
                 provider: OutcomeProvider, local_generator: LocalOutcomeGenerator,
                 strips: Sequence[ReelStrip],
                 popup_presenter: Optional[PopupPresenter] = None,
                 event_dispatcher: Optional[EventDispatcher] = None,
                 session_factory: Optional[SpinSessionFactory] = None,
                 account: Optional[AccountState] = None,
                 currency: str = "MON"):
        if len(strips) != 3:
            raise ValueError(f"Exactly 3 reel strips are required, got {len(strips)}")

        self.logger = logging.getLogger("application.spin.orchestrator")
        self.config = config
        self.animator = animator
        self.provider = provider
        self.local_generator = local_generator
        self.strips = list(strips)
        self.popup_presenter = popup_presenter
        self.event_dispatcher = event_dispatcher
        self.session_factory = session_factory or SpinSessionFactory()
        self.account = account if account is not None else provider.account
        self.currency = currency

        self.session: Optional[SpinSession] = None
        self.last_popup: Optional[PopupRequest] = None
        self._resting_visuals: List[ReelVisualState] = []
        self._timeout_handle: Optional[asyncio.TimerHandle] = None
        self._reveal_handle: Optional[asyncio.TimerHandle] = None
        self._outcome_tasks: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Queries

    @property
    def phase(self) -> SpinPhase:
        return self.session.phase if self.session is not None else SpinPhase.IDLE

    def snapshot(self) -> SessionSnapshot:
        return self.session.snapshot() if self.session is not None else IDLE_SNAPSHOT

    def reel_visual_states(self) -> List[ReelVisualState]:
        """
        Per-reel state for the renderer. A stopped reel shows the session's
        outcome symbol, or nothing until the outcome is known; a spinning reel
        shows the strip symbol under its current position.
        """
        session = self.session
        if session is None:
            return list(self._resting_visuals)

        def resolve(reel: ReelState):
            if reel.stopped:
                if session.outcome_resolved:
                    return session.outcome.combination[reel.index]
                return None
            return self.strips[reel.index].symbol_at(reel.position)

        return self.animator.visual_state(resolve)

    # ------------------------------------------------------------------
    # Commands

    def start_spin(self, stop_targets: Optional[Sequence[int]] = None) -> SpinRequestStatus:
        """
        Start a spin if the engine is idle.

        Args:
            stop_targets: Optional explicit stop segment per reel

        Returns:
            STARTED, or BUSY (nothing changed) when a spin is in progress
        """
        if self.session is not None:
            self.logger.info(f"Spin rejected, session {self.session.id} is {self.session.phase.value}")
            self._publish(SpinEventType.SPIN_REJECTED_BUSY, self.session.id,
                          phase=self.session.phase.value)
            return SpinRequestStatus.BUSY

        loop = asyncio.get_running_loop()

        try:
            reels = self.animator.start(stop_targets)
        except AnimatorFault as e:
            self.logger.error(f"Could not start the reels: {e}")
            self.animator.reset()
            self._publish(SpinEventType.SESSION_RECOVERED, "", reason=str(e))
            return SpinRequestStatus.FAULTED

        session = self.session_factory.create_session(reels)
        self.session = session
        self.last_popup = None
        self.logger.info(f"Spin {session.id} started, stop targets "
                         f"{[r.stop_target for r in reels]}")
        self._publish(SpinEventType.SPIN_STARTED, session.id,
                      stop_targets=[r.stop_target for r in reels])

        task = loop.create_task(self._request_outcome(session.id))
        self._outcome_tasks.add(task)
        task.add_done_callback(self._outcome_tasks.discard)
        return SpinRequestStatus.STARTED

    def render_frame(self, dt: float):
        """Advance the reels by one rendered frame."""
        session = self.session
        if session is None or session.phase is not SpinPhase.ANIMATING:
            return
        try:
            signals = self.animator.tick(dt)
        except AnimatorFault as e:
            self._recover(session, str(e))
            return
        self._apply_signals(session, signals)

    def inject_reel_stopped(self, session_id: str, index: int) -> bool:
        """
        Deliver a ReelStopped event from outside the render loop.

        A stop for a reel that already stopped is a fault and aborts the session.

        Returns:
            True if the event was applied
        """
        session = self.session
        if session is None or session.id != session_id:
            self.logger.debug(f"Ignoring reel {index} stop for stale session {session_id}")
            return False
        try:
            signals = self.animator.stop_reel(index)
        except AnimatorFault as e:
            self._recover(session, str(e))
            return False
        self._apply_signals(session, signals)
        return True

    def fault(self, session_id: str, reason: str) -> bool:
        """Abort the live session without a popup."""
        session = self.session
        if session is None or session.id != session_id:
            return False
        self._recover(session, reason)
        return True

    def dismiss_popup(self, session_id: Optional[str] = None) -> bool:
        """
        Acknowledge the result popup and return to IDLE.

        Returns:
            False if there is no revealed session (or the id does not match)
        """
        session = self.session
        if session is None or session.phase is not SpinPhase.REVEALING:
            self.logger.debug("Popup dismissed while nothing is revealed")
            return False
        if session_id is not None and session_id != session.id:
            self.logger.debug(f"Popup dismissal for stale session {session_id}")
            return False

        self._publish(SpinEventType.POPUP_DISMISSED, session.id)
        self.logger.info(f"Spin {session.id} finished")
        self._resting_visuals = self.reel_visual_states()
        self._clear()
        return True

    async def drain(self):
        """Wait for outstanding outcome requests (including ones already superseded)."""
        if self._outcome_tasks:
            await asyncio.gather(*list(self._outcome_tasks), return_exceptions=True)
        await self.provider.wait_for_background_tasks()

    def close(self):
        """Cancel timers and pending outcome requests."""
        self._cancel_timers()
        for task in list(self._outcome_tasks):
            task.cancel()

    # ------------------------------------------------------------------
    # Outcome side

    async def _request_outcome(self, session_id: str):
        try:
            result = await self.provider.request_outcome(session_id)
        except Exception as e:
            self.logger.exception(f"Outcome provider raised for {session_id}")
            result = OutcomeFailure(FailureReason.LEDGER_ERROR, str(e))
        self._on_provider_result(session_id, result)

    def _on_provider_result(self, session_id: str, result: ProviderResult):
        session = self.session
        if session is None or session.id != session_id or not session.outcome_pending:
            self._on_late_result(session_id, result)
            return

        if isinstance(result, Outcome):
            self._resolve(session, result)
        else:
            self._fall_back(session, result)

    def _on_late_result(self, session_id: str, result: ProviderResult):
        if isinstance(result, Outcome) and result.source is OutcomeSource.REMOTE:
            if self.account.reconcile_late_outcome(result):
                self.logger.info(f"Late outcome {result.reference} for {session_id} "
                                 f"reconciled, not displayed")
                self._publish(SpinEventType.LATE_OUTCOME_RECONCILED, session_id,
                              outcome=result.to_dict())
                return
        self.logger.debug(f"Discarding stale result for {session_id}: {result}")
        self._publish(SpinEventType.STALE_OUTCOME_DISCARDED, session_id)

    def _fall_back(self, session: SpinSession, failure: OutcomeFailure):
        self.logger.warning(f"Spin {session.id} falls back to a local outcome: {failure}")
        try:
            combination = [strip.symbol_at(reel.stop_target)
                           for strip, reel in zip(self.strips, session.animation)]
            outcome = self.local_generator.evaluate(combination).as_fallback(failure.reason)
        except Exception as e:
            self.logger.exception(f"Local fallback failed for {session.id}")
            session.fail(str(e))
            self._recover(session, f"no fallback outcome: {e}")
            return
        self._resolve(session, outcome, failure)

    def _resolve(self, session: SpinSession, outcome: Outcome,
                 failure: Optional[OutcomeFailure] = None):
        session.resolve(outcome, failure)
        self._cancel_timeout()

        event_type = SpinEventType.OUTCOME_FALLBACK if failure else SpinEventType.OUTCOME_RESOLVED
        self._publish(event_type, session.id, outcome=outcome.to_dict(),
                      reason=failure.reason.value if failure else None)

        if session.ready_to_reveal:
            self._enter_ready_to_reveal(session)
        else:
            self.logger.debug(f"Outcome for {session.id} buffered until the reels stop")

    def _on_outcome_timeout(self, session_id: str):
        self._timeout_handle = None
        session = self.session
        if session is None or session.id != session_id or not session.outcome_pending:
            return

        session.timed_out = True
        self._publish(SpinEventType.OUTCOME_TIMEOUT, session_id, timeout=self.config.outcome_timeout)
        self._fall_back(session, OutcomeFailure(
            FailureReason.OUTCOME_TIMEOUT, f"no outcome after {self.config.outcome_timeout}s"))

    # ------------------------------------------------------------------
    # Animation side

    def _apply_signals(self, session: SpinSession, signals: List[AnimationSignal]):
        for signal in signals:
            if isinstance(signal, ReelStopped):
                self._publish(SpinEventType.REEL_STOPPED, session.id, reel=signal.index)
            elif isinstance(signal, AllReelsStopped):
                self._on_all_reels_stopped(session)

    def _on_all_reels_stopped(self, session: SpinSession):
        session.mark_all_reels_stopped()
        self._publish(SpinEventType.ALL_REELS_STOPPED, session.id)

        if session.ready_to_reveal:
            self._enter_ready_to_reveal(session)
            return

        session.transition(SpinPhase.AWAITING_OUTCOME)
        self.logger.debug(f"Reels stopped, waiting up to {self.config.outcome_timeout}s "
                          f"for the outcome of {session.id}")
        self._timeout_handle = asyncio.get_running_loop().call_later(
            self.config.outcome_timeout, self._on_outcome_timeout, session.id)

    # ------------------------------------------------------------------
    # Reveal

    def _enter_ready_to_reveal(self, session: SpinSession):
        session.transition(SpinPhase.READY_TO_REVEAL)
        if self.config.reveal_delay > 0:
            self._reveal_handle = asyncio.get_running_loop().call_later(
                self.config.reveal_delay, self._reveal, session.id)
        else:
            self._reveal(session.id)

    def _reveal(self, session_id: str):
        self._reveal_handle = None
        session = self.session
        if session is None or session.id != session_id or session.phase is not SpinPhase.READY_TO_REVEAL:
            return

        session.transition(SpinPhase.REVEALING)
        session.mark_revealed()
        request = PopupRequest.from_outcome(session.id, session.outcome,
                                            self.config.explorer_url, self.currency)
        self.last_popup = request
        self.logger.info(f"Revealing {session.id}: {[s.value for s in session.outcome.combination]} "
                         f"({session.outcome.source.value})")
        self._publish(SpinEventType.POPUP_REQUESTED, session.id, outcome=session.outcome.to_dict(),
                      fallback_label=request.fallback_label)

        if self.popup_presenter is not None:
            try:
                self.popup_presenter.show(request)
            except Exception as e:
                self.logger.exception(f"Popup presenter failed for {session.id}")
                self._recover(session, f"popup failed: {e}")

    # ------------------------------------------------------------------
    # Teardown

    def _recover(self, session: SpinSession, reason: str):
        self.logger.error(f"Spin {session.id} aborted in {session.phase.value}: {reason}")
        session.transition(SpinPhase.RECOVERING)
        self.animator.reset()
        self._publish(SpinEventType.SESSION_RECOVERED, session.id, reason=reason)
        self._resting_visuals = []
        self._clear()

    def _clear(self):
        self._cancel_timers()
        if self.session is not None:
            self.session.transition(SpinPhase.IDLE)
        self.session = None

    def _cancel_timeout(self):
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None

    def _cancel_timers(self):
        self._cancel_timeout()
        if self._reveal_handle is not None:
            self._reveal_handle.cancel()
            self._reveal_handle = None

    def _publish(self, event_type: SpinEventType, session_id: str, **data):
        if self.event_dispatcher is not None:
            self.event_dispatcher.dispatch(SpinEvent(type=event_type, session_id=session_id, data=data))
