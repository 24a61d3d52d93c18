# reelsync/domain/machine/services/reel_animator.py
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Callable, Union

from reelsync.domain.errors import AnimatorFault
from reelsync.domain.machine.entities.reel import ReelState, ReelVisualState
from reelsync.domain.machine.entities.symbol import Symbol
from reelsync.infrastructure.config.engine_config import AnimationConfig


REEL_COUNT = 3


@dataclass(frozen=True)
class ReelStopped:
    index: int
    position: float


@dataclass(frozen=True)
class AllReelsStopped:
    elapsed: float


AnimationSignal = Union[ReelStopped, AllReelsStopped]


class ReelAnimator:
    """
    Advances three reels towards their stop targets, one fixed increment per frame.

    Knows nothing about outcomes; it only reports positions and stop events.
    Reels stop no earlier than ``min_stop_time`` and no later than
    ``max_stop_time`` after the start.
    """
    def __init__(self, config: AnimationConfig, rng):
        """
        Args:
            config: Animation timing configuration
            rng: RNG strategy used to draw stop targets
        """
        self.logger = logging.getLogger("domain.machine.animator")
        self.config = config
        self.rng = rng

        self.reels: List[ReelState] = []
        self.elapsed = 0.0
        self.running = False
        self._stopped_count = 0
        self._all_stopped_emitted = False

    def start(self, stop_targets: Optional[Sequence[int]] = None) -> List[ReelState]:
        """
        Begin a new animation.

        Args:
            stop_targets: Explicit stop segment per reel; drawn from the configured
                range when omitted

        Returns:
            The fresh per-reel states (shared with the spin session)

        Raises:
            AnimatorFault: If an animation is already running or targets are invalid
        """
        if self.running:
            raise AnimatorFault("Animation already running")

        if stop_targets is None:
            stop_targets = self.rng.get_batch_ints(
                self.config.min_stop_segment, self.config.max_stop_segment, REEL_COUNT)
        if len(stop_targets) != REEL_COUNT or any(t < 1 for t in stop_targets):
            raise AnimatorFault(f"Invalid stop targets: {list(stop_targets)}")

        self.reels = [ReelState(index=i, stop_target=int(t)) for i, t in enumerate(stop_targets)]
        self.elapsed = 0.0
        self._stopped_count = 0
        self._all_stopped_emitted = False
        self.running = True

        self.logger.debug(f"Animation started with stop targets {list(stop_targets)}")
        return self.reels

    def tick(self, dt: float) -> List[AnimationSignal]:
        """
        Advance the animation by one rendered frame.

        Args:
            dt: Seconds since the previous frame

        Returns:
            Stop signals produced by this frame, in order
        """
        if not self.running:
            return []
        if dt < 0:
            raise AnimatorFault(f"Negative frame time: {dt}")

        self.elapsed += dt
        signals: List[AnimationSignal] = []
        force_stop = self.elapsed >= self.config.max_stop_time

        for reel in self.reels:
            if reel.stopped:
                continue

            if force_stop:
                # position only moves forward: the target is always ahead or reached
                reel.position = float(reel.stop_target)
            else:
                reel.position = min(reel.position + self.config.segment_increment,
                                    float(reel.stop_target))

            if reel.at_target and self.elapsed >= self.config.min_stop_time:
                signals.extend(self.stop_reel(reel.index))

        return signals

    def stop_reel(self, index: int) -> List[AnimationSignal]:
        """
        Stop one reel. The only path through which a reel becomes stopped.

        Raises:
            AnimatorFault: If the animator is idle, the index is invalid or the
                reel is already stopped
        """
        if not self.running:
            raise AnimatorFault(f"Stop for reel {index} while no animation is running", index)
        if not 0 <= index < len(self.reels):
            raise AnimatorFault(f"Invalid reel index: {index}", index)

        reel = self.reels[index]
        if reel.stopped:
            raise AnimatorFault(f"Reel {index} stopped twice", index)

        if reel.position < reel.stop_target:
            reel.position = float(reel.stop_target)
        reel.stopped = True
        self._stopped_count += 1
        self.logger.debug(f"Reel {index} stopped at segment {reel.stop_target} ({self.elapsed:.2f}s)")

        signals: List[AnimationSignal] = [ReelStopped(index, reel.position)]
        if self._stopped_count == REEL_COUNT:
            if self._all_stopped_emitted:
                raise AnimatorFault("AllReelsStopped emitted twice")
            self._all_stopped_emitted = True
            self.running = False
            signals.append(AllReelsStopped(self.elapsed))
        return signals

    def reset(self):
        """Drop the current animation (fault recovery)."""
        self.running = False
        self.reels = []
        self.elapsed = 0.0
        self._stopped_count = 0
        self._all_stopped_emitted = False

    @property
    def all_stopped(self) -> bool:
        return self._all_stopped_emitted

    def visual_state(self, resolve_symbol: Callable[[ReelState], Optional[Symbol]]) -> List[ReelVisualState]:
        return [
            ReelVisualState(reel.index, reel.position, reel.stopped, resolve_symbol(reel))
            for reel in self.reels
        ]
