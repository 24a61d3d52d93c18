# reelsync/domain/events/event_types.py
from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any


@dataclass
class DomainEvent:
    """Base class for events published by the engine."""
    type: Enum
    timestamp: datetime = field(default_factory=datetime.now)
    data: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(type={self.type.name}, timestamp={self.timestamp})"
