# reelsync/domain/machine/entities/reel.py
import math
from dataclasses import dataclass
from typing import List, Optional

from .symbol import Symbol


class ReelStrip:
    """
    The ordered ring of symbol segments printed on one reel.
    Maps an animation position (in segments) to the symbol under the payline.
    """
    def __init__(self, symbols: List[Symbol], reel_id: str = ""):
        """
        Initialize a reel strip.

        Args:
            symbols: Symbols in segment order
            reel_id: Optional identifier for the reel
        """
        if not symbols:
            raise ValueError("A reel strip needs at least one segment")
        self.id = reel_id
        self.symbols = list(symbols)
        self.length = len(self.symbols)

    def symbol_at(self, position: float) -> Symbol:
        """
        Symbol shown at the given position. Wraps around the strip.

        Args:
            position: Position in segments (fractional values floor to the segment)
        """
        return self.symbols[int(math.floor(position)) % self.length]

    def __len__(self) -> int:
        return self.length

    def __repr__(self) -> str:
        return f"ReelStrip(id={self.id}, length={self.length})"


@dataclass
class ReelState:
    """Animation state of one reel during a spin."""
    index: int
    stop_target: int
    position: float = 0.0
    stopped: bool = False

    @property
    def at_target(self) -> bool:
        return self.position >= self.stop_target


@dataclass(frozen=True)
class ReelVisualState:
    """What the rendering collaborator draws for one reel in one frame."""
    index: int
    position: float
    stopped: bool
    symbol: Optional[Symbol]
