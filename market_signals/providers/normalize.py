"""Bar normalisation and the tolerant value coercions shared by adapters."""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, timezone
from numbers import Real
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import pandas as pd

from .base import Bar

LOGGER = logging.getLogger(__name__)

BAR_FIELDS: tuple[str, ...] = ("time", "open", "high", "low", "close")


def parse_float(value: Any) -> float | None:
    """Coerce numbers and numeric strings to a finite float."""

    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return parsed if math.isfinite(parsed) else None


def strict_finite(value: Any) -> float | None:
    """Accept only real numbers that are finite; strings are rejected."""

    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    try:
        parsed = float(value)
    except OverflowError:
        return None
    return parsed if math.isfinite(parsed) else None


def parse_epoch_seconds(value: Any) -> int | None:
    """Return UTC epoch seconds for a date-like value, or ``None``.

    Numbers are taken as epoch seconds. Strings are parsed as ISO dates or
    datetimes; naive values are assumed to be UTC.
    """

    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, Real):
        try:
            seconds = float(value)
        except OverflowError:
            return None
        return int(seconds) if math.isfinite(seconds) else None
    if isinstance(value, (datetime, date)):
        try:
            stamp = pd.Timestamp(value)
        except (ValueError, OverflowError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            stamp = pd.Timestamp(text)
        except (ValueError, TypeError, OverflowError):
            return None
    else:
        return None
    if pd.isna(stamp):
        return None
    if stamp.tzinfo is None:
        stamp = stamp.tz_localize(timezone.utc)
    else:
        stamp = stamp.tz_convert(timezone.utc)
    return int(stamp.timestamp())


def _candidate_values(candidate: Any) -> tuple[Any, ...] | None:
    if isinstance(candidate, Bar):
        return tuple(getattr(candidate, name) for name in BAR_FIELDS)
    if isinstance(candidate, Mapping):
        return tuple(candidate.get(name) for name in BAR_FIELDS)
    if isinstance(candidate, Sequence) and not isinstance(candidate, (str, bytes)):
        if len(candidate) != len(BAR_FIELDS):
            return None
        return tuple(candidate)
    return None


def _to_bar(candidate: Any) -> Bar | None:
    values = _candidate_values(candidate)
    if values is None:
        return None
    numbers = [strict_finite(value) for value in values]
    if any(number is None for number in numbers):
        return None
    time_value, open_, high, low, close = numbers
    return Bar(time=int(time_value), open=open_, high=high, low=low, close=close)


def normalize_bars(candidates: Iterable[Any]) -> list[Bar]:
    """Turn unordered candidate bars into a canonical ascending sequence.

    Candidates may be :class:`Bar` instances, mappings with ``time``/``open``/
    ``high``/``low``/``close`` keys or 5-tuples in that order. Any candidate
    with a missing or non-finite field is dropped. After a stable sort on
    ``time`` the last candidate sharing a timestamp wins.
    """

    if candidates is None or isinstance(candidates, (str, bytes, Mapping)):
        return []
    if not isinstance(candidates, Iterable):
        return []
    accepted: list[Bar] = []
    dropped = 0
    for candidate in candidates:
        bar = _to_bar(candidate)
        if bar is None:
            dropped += 1
            continue
        accepted.append(bar)

    accepted.sort(key=lambda bar: bar.time)
    bars: list[Bar] = []
    for bar in accepted:
        if bars and bars[-1].time == bar.time:
            bars[-1] = bar
        else:
            bars.append(bar)

    if dropped:
        LOGGER.debug("Dropped %s malformed bar candidates", dropped)
    return bars


__all__ = [
    "BAR_FIELDS",
    "normalize_bars",
    "parse_float",
    "parse_epoch_seconds",
    "strict_finite",
]
