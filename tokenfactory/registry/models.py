"""Registry data models — token records and the events they produce."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar


@dataclass(frozen=True)
class TokenRecord:
    """Immutable metadata bound to a symbol."""

    symbol: str
    name: str
    max_supply: int
    decimals: int

    def details(self) -> dict[str, Any]:
        """The record as returned by a details lookup (symbol is the key)."""
        return {
            "name": self.name,
            "max_supply": self.max_supply,
            "decimals": self.decimals,
        }


@dataclass(frozen=True)
class TokenCreated:
    """Audit event emitted once per successful registration."""

    EVENT: ClassVar[str] = "token-created"

    symbol: str
    name: str
    max_supply: int

    @classmethod
    def from_record(cls, record: TokenRecord) -> "TokenCreated":
        return cls(symbol=record.symbol, name=record.name, max_supply=record.max_supply)

    def as_dict(self) -> dict[str, Any]:
        return {
            "event": self.EVENT,
            "symbol": self.symbol,
            "name": self.name,
            "max_supply": self.max_supply,
        }
