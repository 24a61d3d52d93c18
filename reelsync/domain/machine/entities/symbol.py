# reelsync/domain/machine/entities/symbol.py
from enum import Enum
from typing import List, Sequence


class Symbol(Enum):
    """Symbols printed on the reels."""
    CHERRY = "cherry"
    APPLE = "apple"
    BANANA = "banana"
    LEMON = "lemon"

    @classmethod
    def parse(cls, name: str) -> "Symbol":
        """
        Parse a symbol from its name, case-insensitive.

        Raises:
            ValueError: If the name is not a known symbol
        """
        if not isinstance(name, str):
            raise ValueError(f"Symbol name must be a string, got {type(name).__name__}")
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown symbol: {name!r}") from None


def parse_symbols(names: Sequence[str]) -> List[Symbol]:
    return [Symbol.parse(name) for name in names]
