"""Trend and breakout helpers."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from market_signals.providers.base import Bar

from .utils import IndicatorInputs, ensure_inputs


def breakout_flags(bars: Sequence[Bar] | IndicatorInputs) -> np.ndarray:
    """True where the close exceeds the previous bar's high; index 0 is False."""

    inputs = ensure_inputs(bars)
    flags = np.zeros(len(inputs), dtype=bool)
    if len(inputs) > 1:
        flags[1:] = inputs.close[1:] > inputs.high[:-1]
    return flags


__all__ = ["breakout_flags"]
