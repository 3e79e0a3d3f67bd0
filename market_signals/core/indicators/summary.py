"""Latest-value summary and the oversold-rebound buy hint."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np

from market_signals.providers.base import Bar

from .momentum import ultimate_oscillator, williams_r
from .trend import breakout_flags
from .utils import IndicatorInputs

OVERSOLD_THRESHOLD = -90.0


@dataclass(frozen=True)
class IndicatorSummary:
    """Indicator arrays aligned with the bars plus their latest readings."""

    williams_r: np.ndarray
    ultimate: np.ndarray
    breakout: np.ndarray
    latest_index: int
    latest_williams_r: float
    latest_ultimate: float
    latest_breakout: bool
    buy_hint: bool

    def as_dict(self) -> dict[str, Any]:
        def _finite_or_none(value: float) -> float | None:
            return value if math.isfinite(value) else None

        return {
            "latest_index": self.latest_index,
            "latest_williams_r": _finite_or_none(self.latest_williams_r),
            "latest_ultimate": _finite_or_none(self.latest_ultimate),
            "latest_breakout": self.latest_breakout,
            "buy_hint": self.buy_hint,
        }


def _latest_finite(values: np.ndarray, index: int) -> float:
    if index < 0:
        return math.nan
    value = float(values[index])
    return value if math.isfinite(value) else math.nan


def buy_hint(wr: np.ndarray, uo: np.ndarray, flags: np.ndarray) -> bool:
    """Oversold rebound confirmed by momentum and a breakout.

    Needs at least three bars: yesterday's %R at or below -90, today's %R
    above yesterday's, a non-falling oscillator and a breakout today.
    """

    last = len(flags) - 1
    if last < 2:
        return False
    was_oversold = bool(wr[last - 1] <= OVERSOLD_THRESHOLD)
    wr_up = bool(wr[last] > wr[last - 1])
    uo_up = bool(uo[last] >= uo[last - 1])
    return was_oversold and wr_up and uo_up and bool(flags[last])


def summarize_indicators(
    bars: Sequence[Bar],
    *,
    williams_length: int = 14,
    williams_clamp: bool = True,
    uo_fast: int = 7,
    uo_mid: int = 14,
    uo_slow: int = 28,
) -> IndicatorSummary:
    inputs = IndicatorInputs.from_bars(bars)
    wr = williams_r(inputs, williams_length, clamp=williams_clamp)
    uo = ultimate_oscillator(inputs, uo_fast, uo_mid, uo_slow)
    flags = breakout_flags(inputs)
    latest = len(inputs) - 1
    return IndicatorSummary(
        williams_r=wr,
        ultimate=uo,
        breakout=flags,
        latest_index=latest,
        latest_williams_r=_latest_finite(wr, latest),
        latest_ultimate=_latest_finite(uo, latest),
        latest_breakout=bool(flags[latest]) if latest >= 0 else False,
        buy_hint=buy_hint(wr, uo, flags),
    )


__all__ = ["IndicatorSummary", "OVERSOLD_THRESHOLD", "buy_hint", "summarize_indicators"]
