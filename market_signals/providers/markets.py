"""Short futures codes mapped to the CFTC market names used in report queries."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

DEFAULT_MARKET_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "NQ": "NASDAQ-100 Consolidated - CHICAGO MERCANTILE EXCHANGE",
        "ES": "E-MINI S&P 500 - CHICAGO MERCANTILE EXCHANGE",
        "YM": "DJIA x $5 - CHICAGO BOARD OF TRADE",
        "RTY": "RUSSELL E-MINI - CHICAGO MERCANTILE EXCHANGE",
    }
)


@dataclass(frozen=True)
class MarketAliasTable:
    """Read-only alias table. Keys are stored upper-cased."""

    entries: Mapping[str, str] = field(default_factory=lambda: DEFAULT_MARKET_ALIASES)

    def __post_init__(self) -> None:
        cleaned = {str(code).strip().upper(): str(name) for code, name in self.entries.items()}
        object.__setattr__(self, "entries", MappingProxyType(cleaned))

    def get(self, code: str) -> str | None:
        return self.entries.get(code)

    def merged(self, extra: Mapping[str, str] | None) -> "MarketAliasTable":
        """Return a new table with ``extra`` entries layered over this one."""

        if not extra:
            return self
        return MarketAliasTable({**self.entries, **extra})

    def __len__(self) -> int:
        return len(self.entries)


class MarketAliasResolver:
    """Resolve short codes such as ``NQ`` to canonical market names."""

    def __init__(self, table: MarketAliasTable | None = None) -> None:
        self._table = table or MarketAliasTable()

    @property
    def table(self) -> MarketAliasTable:
        return self._table

    def resolve(self, code: str) -> str:
        """Return the canonical name for ``code`` or ``code`` itself on a miss."""

        resolved = self._table.get(code.upper())
        return resolved if resolved is not None else code


__all__ = ["DEFAULT_MARKET_ALIASES", "MarketAliasResolver", "MarketAliasTable"]
