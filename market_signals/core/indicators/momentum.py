"""Momentum oscillators computed over canonical bar sequences."""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from market_signals.providers.base import Bar

from .utils import IndicatorInputs, ensure_inputs, trailing_sum

WILLIAMS_R_FLAT_RANGE = -50.0
TRUE_RANGE_EPSILON = 1e-9


def _validate_period(name: str, value: int) -> int:
    if int(value) != value or value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value!r}.")
    return int(value)


def williams_r(
    bars: Sequence[Bar] | IndicatorInputs,
    length: int = 14,
    *,
    clamp: bool = True,
) -> np.ndarray:
    """Williams %R over the trailing ``length`` bars.

    The first ``length - 1`` values are NaN. A window whose highest high
    equals its lowest low yields -50. With ``clamp`` the result is limited to
    ``[-100, 0]``, which only matters when a close sits outside its own bar.
    """

    length = _validate_period("length", length)
    inputs = ensure_inputs(bars)
    n = len(inputs)
    out = np.full(n, np.nan, dtype="float64")
    if n < length:
        return out

    highest = sliding_window_view(inputs.high, length).max(axis=1)
    lowest = sliding_window_view(inputs.low, length).min(axis=1)
    close = inputs.close[length - 1:]
    span = highest - lowest
    flat = span == 0
    with np.errstate(divide="ignore", invalid="ignore"):
        values = -100.0 * (highest - close) / np.where(flat, 1.0, span)
    values = np.where(flat, WILLIAMS_R_FLAT_RANGE, values)
    if clamp:
        values = np.clip(values, -100.0, 0.0)
    out[length - 1:] = values
    return out


def ultimate_oscillator(
    bars: Sequence[Bar] | IndicatorInputs,
    fast: int = 7,
    mid: int = 14,
    slow: int = 28,
) -> np.ndarray:
    """Larry Williams' Ultimate Oscillator, weighted 4:2:1.

    Every index gets a value: early bars average over whatever shorter
    history is available instead of producing NaN.
    """

    fast = _validate_period("fast", fast)
    mid = _validate_period("mid", mid)
    slow = _validate_period("slow", slow)
    inputs = ensure_inputs(bars)
    if not len(inputs):
        return np.empty(0, dtype="float64")

    prev_close = inputs.previous_close
    floor = np.minimum(inputs.low, prev_close)
    ceiling = np.maximum(inputs.high, prev_close)
    buying_pressure = inputs.close - floor
    true_range = np.maximum(ceiling - floor, TRUE_RANGE_EPSILON)

    def _average(period: int) -> np.ndarray:
        bp_sum = trailing_sum(buying_pressure, period)
        tr_sum = trailing_sum(true_range, period)
        with np.errstate(divide="ignore", invalid="ignore"):
            ratio = bp_sum / tr_sum
        return np.where(tr_sum > 0, ratio, 0.0)

    return 100.0 * (4.0 * _average(fast) + 2.0 * _average(mid) + _average(slow)) / 7.0


__all__ = [
    "TRUE_RANGE_EPSILON",
    "WILLIAMS_R_FLAT_RANGE",
    "ultimate_oscillator",
    "williams_r",
]
