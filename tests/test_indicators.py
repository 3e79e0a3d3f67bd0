"""Tests for the indicator engine."""

from __future__ import annotations

from pathlib import Path
import sys

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from market_signals.core.indicators import (
    IndicatorInputs,
    breakout_flags,
    buy_hint,
    summarize_indicators,
    ultimate_oscillator,
    williams_r,
)
from market_signals.providers.base import Bar


def _bars(rows: list[tuple[float, float, float, float]]) -> list[Bar]:
    return [
        Bar(time=1_700_000_000 + index * 86400, open=o, high=h, low=l, close=c)
        for index, (o, h, l, c) in enumerate(rows)
    ]


def _random_bars(count: int, seed: int = 7) -> list[Bar]:
    rng = np.random.default_rng(seed)
    closes = 100 + np.cumsum(rng.normal(0, 1.5, count))
    rows = []
    for close in closes:
        high = close + abs(rng.normal(0, 1))
        low = close - abs(rng.normal(0, 1))
        rows.append((float(close), float(high), float(low), float(close)))
    return _bars(rows)


def test_williams_r_at_window_high_is_zero() -> None:
    bars = _bars([(9, 10, 8, 9), (10, 11, 9, 10), (11, 12, 10, 12)])

    values = williams_r(bars, 3)

    assert np.isnan(values[:2]).all()
    assert values[2] == pytest.approx(0.0)


def test_williams_r_flat_window_is_minus_fifty() -> None:
    bars = _bars([(5, 5, 5, 5)] * 4)
    values = williams_r(bars, 3)
    assert values[2:].tolist() == [-50.0, -50.0]


def test_williams_r_stays_in_bounds_and_clamps_outliers() -> None:
    values = williams_r(_random_bars(120), 14)
    finite = values[np.isfinite(values)]
    assert finite.size == 120 - 13
    assert finite.min() >= -100.0
    assert finite.max() <= 0.0

    # A close above its own high is out of range unless clamped.
    bars = _bars([(9, 10, 8, 9), (10, 11, 9, 13)])
    assert williams_r(bars, 2)[1] == pytest.approx(0.0)
    assert williams_r(bars, 2, clamp=False)[1] > 0.0


def test_williams_r_rejects_invalid_length() -> None:
    with pytest.raises(ValueError):
        williams_r(_random_bars(5), 0)


def test_ultimate_oscillator_single_bar() -> None:
    values = ultimate_oscillator(_bars([(10, 12, 8, 11)]))
    assert values.tolist() == pytest.approx([75.0])


def _naive_ultimate(bars: list[Bar], fast: int, mid: int, slow: int) -> list[float]:
    bp: list[float] = []
    tr: list[float] = []
    for index, bar in enumerate(bars):
        prev = bars[index - 1].close if index else bar.close
        bp.append(bar.close - min(bar.low, prev))
        tr.append(max(max(bar.high, prev) - min(bar.low, prev), 1e-9))

    def average(index: int, period: int) -> float:
        start = max(0, index - period + 1)
        total = sum(tr[start:index + 1])
        return sum(bp[start:index + 1]) / total if total > 0 else 0.0

    return [
        100 * (4 * average(i, fast) + 2 * average(i, mid) + average(i, slow)) / 7
        for i in range(len(bars))
    ]


def test_ultimate_oscillator_matches_direct_computation() -> None:
    bars = _random_bars(80, seed=11)
    values = ultimate_oscillator(bars)

    assert not np.isnan(values).any()
    assert values.tolist() == pytest.approx(_naive_ultimate(bars, 7, 14, 28), abs=1e-6)
    assert values.min() >= -1e-6
    assert values.max() <= 100 + 1e-6


def test_ultimate_oscillator_flat_series_is_zero() -> None:
    values = ultimate_oscillator(_bars([(5, 5, 5, 5)] * 10))
    assert values.tolist() == pytest.approx([0.0] * 10)


def test_breakout_flags_compare_close_to_prior_high() -> None:
    bars = _bars([(9, 10, 8, 9), (10, 11, 9, 10.5)])
    assert breakout_flags(bars).tolist() == [False, True]
    assert breakout_flags(_bars([(9, 10, 8, 9), (9, 10, 8, 10)])).tolist() == [False, False]


def test_empty_input_yields_empty_outputs() -> None:
    inputs = IndicatorInputs.from_bars([])
    assert williams_r(inputs).size == 0
    assert ultimate_oscillator(inputs).size == 0
    assert breakout_flags(inputs).size == 0

    summary = summarize_indicators([])
    assert summary.latest_index == -1
    assert summary.buy_hint is False
    assert summary.as_dict()["latest_williams_r"] is None


def test_buy_hint_requires_every_condition() -> None:
    wr = np.array([-80.0, -95.0, -70.0])
    uo = np.array([40.0, 35.0, 36.0])
    flags = np.array([False, False, True])

    assert buy_hint(wr, uo, flags) is True
    assert buy_hint(wr, uo, np.array([False, False, False])) is False
    assert buy_hint(np.array([-80.0, -85.0, -70.0]), uo, flags) is False
    assert buy_hint(wr, np.array([40.0, 35.0, 30.0]), flags) is False
    assert buy_hint(wr[:2], uo[:2], flags[:2]) is False


def test_summary_reports_latest_values() -> None:
    bars = _random_bars(40)
    summary = summarize_indicators(bars, williams_length=10)

    assert summary.latest_index == 39
    assert summary.williams_r.shape == (40,)
    assert summary.as_dict()["latest_williams_r"] == pytest.approx(float(summary.williams_r[-1]))
