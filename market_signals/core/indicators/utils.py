"""Utility helpers for indicator computations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from market_signals.providers.base import Bar


@dataclass(frozen=True)
class IndicatorInputs:
    """Column view of a canonical bar sequence."""

    time: np.ndarray
    open: np.ndarray
    high: np.ndarray
    low: np.ndarray
    close: np.ndarray

    @classmethod
    def from_bars(cls, bars: Sequence[Bar]) -> "IndicatorInputs":
        return cls(
            time=np.fromiter((bar.time for bar in bars), dtype="int64", count=len(bars)),
            open=np.fromiter((bar.open for bar in bars), dtype="float64", count=len(bars)),
            high=np.fromiter((bar.high for bar in bars), dtype="float64", count=len(bars)),
            low=np.fromiter((bar.low for bar in bars), dtype="float64", count=len(bars)),
            close=np.fromiter((bar.close for bar in bars), dtype="float64", count=len(bars)),
        )

    def __len__(self) -> int:
        return int(self.close.shape[0])

    @property
    def previous_close(self) -> np.ndarray:
        """Prior close, with the first bar falling back to its own close."""

        if not len(self):
            return self.close.copy()
        return np.concatenate((self.close[:1], self.close[:-1]))


def ensure_inputs(data: Sequence[Bar] | IndicatorInputs) -> IndicatorInputs:
    if isinstance(data, IndicatorInputs):
        return data
    return IndicatorInputs.from_bars(data)


def trailing_sum(values: np.ndarray, length: int) -> np.ndarray:
    """Sum over the trailing ``length`` values, shorter at the start."""

    prefix = np.concatenate(([0.0], np.cumsum(values)))
    ends = np.arange(1, values.shape[0] + 1)
    starts = np.maximum(0, ends - length)
    return prefix[ends] - prefix[starts]


__all__ = ["IndicatorInputs", "ensure_inputs", "trailing_sum"]
