"""Indicator engine: pure functions over canonical bar sequences."""

from __future__ import annotations

from .momentum import TRUE_RANGE_EPSILON, WILLIAMS_R_FLAT_RANGE, ultimate_oscillator, williams_r
from .summary import IndicatorSummary, OVERSOLD_THRESHOLD, buy_hint, summarize_indicators
from .trend import breakout_flags
from .utils import IndicatorInputs, ensure_inputs, trailing_sum

__all__ = [
    "IndicatorInputs",
    "IndicatorSummary",
    "OVERSOLD_THRESHOLD",
    "TRUE_RANGE_EPSILON",
    "WILLIAMS_R_FLAT_RANGE",
    "breakout_flags",
    "buy_hint",
    "ensure_inputs",
    "summarize_indicators",
    "trailing_sum",
    "ultimate_oscillator",
    "williams_r",
]
