# reelsync/domain/session/entities/spin_session.py
import logging
from enum import Enum
from dataclasses import dataclass
from typing import List, Optional, Tuple

from reelsync.domain.errors import OutcomeFailure, SessionInvariantError
from reelsync.domain.machine.entities.reel import ReelState
from .outcome import Outcome, OutcomeState, PENDING, FailedOutcome


class SpinPhase(Enum):
    IDLE = "idle"
    ANIMATING = "animating"
    AWAITING_OUTCOME = "awaiting_outcome"
    READY_TO_REVEAL = "ready_to_reveal"
    REVEALING = "revealing"
    RECOVERING = "recovering"


@dataclass(frozen=True)
class ReelSnapshot:
    index: int
    position: float
    stop_target: int
    stopped: bool


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a spin session handed to the gate and the renderer."""
    session_id: Optional[str]
    phase: SpinPhase
    outcome: OutcomeState
    revealed: bool
    reels: Tuple[ReelSnapshot, ...] = ()
    failure: Optional[OutcomeFailure] = None

    @property
    def outcome_resolved(self) -> bool:
        return isinstance(self.outcome, Outcome)


IDLE_SNAPSHOT = SessionSnapshot(session_id=None, phase=SpinPhase.IDLE, outcome=PENDING, revealed=False)


class SpinSession:
    """
    State of one spin attempt.

    Owned and mutated by the spin orchestrator only. The outcome is written
    once; the popup is marked revealed once.
    """
    def __init__(self, session_id: str, animation: List[ReelState]):
        """
        Args:
            session_id: Unique identifier of the attempt
            animation: Per-reel animation state (exactly 3 reels)
        """
        if len(animation) != 3:
            raise SessionInvariantError(f"A spin session needs 3 reels, got {len(animation)}")

        self.id = session_id
        self.phase = SpinPhase.ANIMATING
        self.animation = animation
        self.outcome: OutcomeState = PENDING
        self.failure: Optional[OutcomeFailure] = None
        self.revealed = False
        self.all_reels_stopped = False
        self.timed_out = False

        self.logger = logging.getLogger(f"domain.session.{session_id[:8]}")

    @property
    def outcome_resolved(self) -> bool:
        return isinstance(self.outcome, Outcome)

    @property
    def outcome_pending(self) -> bool:
        return self.outcome is PENDING

    @property
    def ready_to_reveal(self) -> bool:
        """Both completion signals have arrived."""
        return self.all_reels_stopped and self.outcome_resolved

    def transition(self, phase: SpinPhase):
        if phase is not self.phase:
            self.logger.debug(f"Phase {self.phase.value} -> {phase.value}")
        self.phase = phase

    def resolve(self, outcome: Outcome, failure: Optional[OutcomeFailure] = None):
        """
        Record the outcome of this attempt.

        Raises:
            SessionInvariantError: If an outcome was already recorded
        """
        if self.outcome_resolved:
            raise SessionInvariantError(
                f"Session {self.id} already resolved to {self.outcome.reference}")
        self.outcome = outcome
        if failure is not None:
            self.failure = failure

    def fail(self, reason: str):
        if self.outcome_resolved:
            raise SessionInvariantError(f"Session {self.id} already resolved, can not fail it")
        self.outcome = FailedOutcome(reason)

    def mark_all_reels_stopped(self):
        if not all(reel.stopped for reel in self.animation):
            raise SessionInvariantError(f"Session {self.id}: not every reel has stopped")
        self.all_reels_stopped = True

    def mark_revealed(self):
        """
        Raises:
            SessionInvariantError: If the popup was already opened for this session
        """
        if self.revealed:
            raise SessionInvariantError(f"Session {self.id} was already revealed")
        self.revealed = True

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.id,
            phase=self.phase,
            outcome=self.outcome,
            revealed=self.revealed,
            reels=tuple(
                ReelSnapshot(r.index, r.position, r.stop_target, r.stopped) for r in self.animation
            ),
            failure=self.failure,
        )

    def __repr__(self) -> str:
        return f"SpinSession(id={self.id}, phase={self.phase.value}, outcome={self.outcome!r})"
