"""Tests for the futures code alias table."""

from __future__ import annotations

from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from market_signals.providers.markets import (
    DEFAULT_MARKET_ALIASES,
    MarketAliasResolver,
    MarketAliasTable,
)


def test_known_codes_resolve_case_insensitively() -> None:
    resolver = MarketAliasResolver()
    assert resolver.resolve("NQ") == DEFAULT_MARKET_ALIASES["NQ"]
    assert resolver.resolve("es") == DEFAULT_MARKET_ALIASES["ES"]


def test_unknown_code_passes_through_unchanged() -> None:
    resolver = MarketAliasResolver()
    assert resolver.resolve("GOLD - COMMODITY EXCHANGE INC.") == "GOLD - COMMODITY EXCHANGE INC."
    assert resolver.resolve("zz") == "zz"


def test_merged_table_overrides_and_extends() -> None:
    table = MarketAliasTable().merged({"gc": "GOLD - COMMODITY EXCHANGE INC.", "NQ": "custom"})
    resolver = MarketAliasResolver(table)

    assert resolver.resolve("GC") == "GOLD - COMMODITY EXCHANGE INC."
    assert resolver.resolve("nq") == "custom"
    assert len(table) == len(DEFAULT_MARKET_ALIASES) + 1
    assert MarketAliasResolver().resolve("NQ") == DEFAULT_MARKET_ALIASES["NQ"]


def test_table_is_read_only() -> None:
    table = MarketAliasTable()
    with pytest.raises(TypeError):
        table.entries["NQ"] = "changed"  # type: ignore[index]
