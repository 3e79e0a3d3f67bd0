"""Vendor adapters turning raw price payloads into canonical bars."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping, Sequence

from .base import Bar, ProviderConfigurationError
from .normalize import normalize_bars, parse_epoch_seconds, parse_float, strict_finite

LOGGER = logging.getLogger(__name__)

ALPHA_VANTAGE_SERIES_KEY = "Time Series (Daily)"
HISTORICAL_DATE_KEYS: tuple[str, ...] = ("date", "reportedDate", "timestamp")

Candidate = dict[str, Any]


def alpha_vantage_daily_candidates(payload: Any) -> list[Candidate]:
    """Extract candidates from an Alpha Vantage daily series keyed by date."""

    if not isinstance(payload, Mapping):
        return []
    series = payload.get(ALPHA_VANTAGE_SERIES_KEY)
    if not isinstance(series, Mapping):
        return []
    candidates: list[Candidate] = []
    for date_str, row in series.items():
        if not isinstance(row, Mapping):
            continue
        candidates.append(
            {
                "time": parse_epoch_seconds(date_str),
                "open": parse_float(row.get("1. open")),
                "high": parse_float(row.get("2. high")),
                "low": parse_float(row.get("3. low")),
                "close": parse_float(row.get("4. close")),
            }
        )
    return candidates


def finnhub_candle_candidates(payload: Any) -> list[Candidate]:
    """Zip Finnhub's parallel candle arrays into candidates."""

    if not isinstance(payload, Mapping) or payload.get("s") != "ok":
        return []
    columns = [payload.get(key) for key in ("t", "o", "h", "l", "c")]
    if not all(isinstance(column, list) for column in columns):
        return []
    length = min(len(column) for column in columns)
    timestamps, opens, highs, lows, closes = (column[:length] for column in columns)
    return [
        {"time": ts, "open": o, "high": h, "low": lo, "close": c}
        for ts, o, h, lo, c in zip(timestamps, opens, highs, lows, closes)
    ]


# Shape matchers for the FMP historical endpoint family, tried in order.
# Each returns the row list when the payload matches or ``None`` otherwise.
def _bare_list(payload: Any) -> list[Any] | None:
    return payload if isinstance(payload, list) else None


def _historical_key(payload: Any) -> list[Any] | None:
    if isinstance(payload, Mapping) and isinstance(payload.get("historical"), list):
        return payload["historical"]
    return None


def _historical_stock_list(payload: Any) -> list[Any] | None:
    if not isinstance(payload, Mapping):
        return None
    entries = payload.get("historicalStockList")
    if not isinstance(entries, list):
        return None
    for entry in entries:
        if isinstance(entry, Mapping) and isinstance(entry.get("historical"), list):
            return entry["historical"]
    return None


def _data_key(payload: Any) -> list[Any] | None:
    if isinstance(payload, Mapping) and isinstance(payload.get("data"), list):
        return payload["data"]
    return None


HISTORICAL_SHAPES: tuple[Callable[[Any], list[Any] | None], ...] = (
    _bare_list,
    _historical_key,
    _historical_stock_list,
    _data_key,
)


def _historical_time(row: Mapping[str, Any]) -> int | None:
    for key in HISTORICAL_DATE_KEYS:
        value = row.get(key)
        if value is None or value == "":
            continue
        return parse_epoch_seconds(value)
    return None


def fmp_historical_candidates(payload: Any) -> list[Candidate]:
    """Extract candidates from any known FMP historical document shape."""

    rows: list[Any] = []
    for matcher in HISTORICAL_SHAPES:
        matched = matcher(payload)
        if matched is not None:
            rows = matched
            break

    candidates: list[Candidate] = []
    for row in rows:
        if not isinstance(row, Mapping):
            continue
        candidate = {
            "time": _historical_time(row),
            "open": strict_finite(row.get("open")),
            "high": strict_finite(row.get("high")),
            "low": strict_finite(row.get("low")),
            "close": strict_finite(row.get("close")),
        }
        if any(value is None for value in candidate.values()):
            continue
        candidates.append(candidate)
    return candidates


@dataclass(frozen=True, slots=True)
class PriceSource:
    """Proxy ``src`` selector paired with the adapter that reads its payload."""

    name: str
    extract: Callable[[Any], list[Candidate]]
    epoch_range: bool = False

    def parse(self, payload: Any) -> list[Bar]:
        candidates = self.extract(payload)
        bars = normalize_bars(candidates)
        LOGGER.debug(
            "Source %s produced %s bars from %s candidates",
            self.name,
            len(bars),
            len(candidates),
        )
        return bars


PRICE_SOURCES: Mapping[str, PriceSource] = MappingProxyType(
    {
        "fmp_eod": PriceSource("fmp_eod", fmp_historical_candidates),
        "alpha_vantage_daily": PriceSource("alpha_vantage_daily", alpha_vantage_daily_candidates),
        "finnhub_candle": PriceSource("finnhub_candle", finnhub_candle_candidates, epoch_range=True),
    }
)


def get_price_source(name: str) -> PriceSource:
    try:
        return PRICE_SOURCES[name]
    except KeyError as exc:
        raise ProviderConfigurationError(
            f"Unknown price source {name!r}. Supported: {sorted(PRICE_SOURCES)}"
        ) from exc


def bars_from_payload(source: str, payload: Any) -> list[Bar]:
    """Parse ``payload`` with the adapter registered for ``source``."""

    return get_price_source(source).parse(payload)


def supported_sources() -> Sequence[str]:
    return tuple(PRICE_SOURCES)


__all__ = [
    "ALPHA_VANTAGE_SERIES_KEY",
    "HISTORICAL_DATE_KEYS",
    "HISTORICAL_SHAPES",
    "PRICE_SOURCES",
    "PriceSource",
    "alpha_vantage_daily_candidates",
    "bars_from_payload",
    "finnhub_candle_candidates",
    "fmp_historical_candidates",
    "get_price_source",
    "supported_sources",
]
