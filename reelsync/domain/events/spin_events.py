# reelsync/domain/events/spin_events.py
from enum import Enum, auto
from dataclasses import dataclass

from .event_types import DomainEvent


class SpinEventType(Enum):
    """Events published by the spin orchestrator."""
    SPIN_STARTED = auto()
    SPIN_REJECTED_BUSY = auto()
    REEL_STOPPED = auto()
    ALL_REELS_STOPPED = auto()
    OUTCOME_RESOLVED = auto()       # remote or local outcome accepted for display
    OUTCOME_FALLBACK = auto()       # local outcome substituted for a failure
    OUTCOME_TIMEOUT = auto()
    POPUP_REQUESTED = auto()
    POPUP_DISMISSED = auto()
    SESSION_RECOVERED = auto()      # fault path, no popup
    LATE_OUTCOME_RECONCILED = auto()
    STALE_OUTCOME_DISCARDED = auto()


@dataclass
class SpinEvent(DomainEvent):
    """Event describing a transition of one spin session."""
    session_id: str = ""

    def __post_init__(self):
        self.data["session_id"] = self.session_id

    def __str__(self) -> str:
        return f"SpinEvent(type={self.type.name}, session={self.session_id})"
