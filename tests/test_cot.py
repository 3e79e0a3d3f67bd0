"""Tests for mapping COT report rows onto the three-group model."""

from __future__ import annotations

from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from market_signals.providers.base import CotPoint
from market_signals.providers.cot import (
    cot_series_groups,
    latest_cot_signal,
    map_row,
    map_rows,
    sum_optional,
)

JAN_2 = 1704153600
WEEK = 7 * 86400


def test_dealer_net_maps_to_commercial() -> None:
    row = {
        "report_date_as_yyyy_mm_dd": "2024-01-02T00:00:00.000",
        "dealer_positions_long_all": "100",
        "dealer_positions_short_all": "40",
    }

    point = map_row(row)

    assert point is not None
    assert point.time == JAN_2
    assert point.commercial_net == pytest.approx(60.0)
    assert point.non_commercial_net is None
    assert point.small_traders_net is None
    assert point.as_record() == {"time": JAN_2, "commercialNet": 60.0}


def test_non_commercial_sums_the_speculative_groups() -> None:
    row = {
        "report_date": "2024-01-02",
        "asset_mgr_positions_long_all": 500,
        "asset_mgr_positions_short_all": 200,
        "lev_money_positions_long_all": 100,
        "lev_money_positions_short_all": 250,
        "other_rept_positions_long": 10,
        "nonrept_positions_long_all": 30,
        "nonrept_positions_short_all": 45,
    }

    point = map_row(row)

    assert point is not None
    # other reporting has no short side, so only two groups contribute.
    assert point.non_commercial_net == pytest.approx(150.0)
    assert point.small_traders_net == pytest.approx(-15.0)
    assert point.commercial_net is None


def test_zero_positions_are_distinct_from_missing() -> None:
    row = {
        "date": "2024-01-02",
        "asset_mgr_positions_long_all": 50,
        "asset_mgr_positions_short_all": 50,
    }
    point = map_row(row)

    assert point is not None
    assert point.non_commercial_net == 0.0
    assert point.commercial_net is None


def test_percentages_require_positive_open_interest() -> None:
    base = {
        "date": "2024-01-02",
        "dealer_positions_long_all": 300,
        "dealer_positions_short_all": 100,
    }

    with_oi = map_row({**base, "open_interest_all": "1000"})
    zero_oi = map_row({**base, "open_interest_all": 0})
    no_oi = map_row(base)

    assert with_oi is not None and zero_oi is not None and no_oi is not None
    assert with_oi.commercial_net_pct == pytest.approx(20.0)
    assert with_oi.non_commercial_net_pct is None
    assert zero_oi.commercial_net_pct is None
    assert no_oi.commercial_net_pct is None


def test_rows_are_sorted_and_deduplicated_last_wins() -> None:
    rows = [
        {"date": "2024-01-09", "dealer_positions_long_all": 5, "dealer_positions_short_all": 1},
        {"date": "2024-01-02", "dealer_positions_long_all": 1, "dealer_positions_short_all": 1},
        {"date": "2024-01-09", "dealer_positions_long_all": 9, "dealer_positions_short_all": 1},
        {"dealer_positions_long_all": 9, "dealer_positions_short_all": 1},
        {"date": "garbage"},
        "not a row",
    ]

    points = map_rows(rows)

    assert [point.time for point in points] == [JAN_2, JAN_2 + WEEK]
    assert points[-1].commercial_net == pytest.approx(8.0)


def test_date_key_priority() -> None:
    row = {
        "report_date_as_yyyy_mm_dd": "2024-01-02",
        "date": "2024-02-01",
    }
    point = map_row(row)
    assert point is not None and point.time == JAN_2


def test_non_list_payload_is_empty() -> None:
    assert map_rows({"error": "nope"}) == []
    assert map_rows(None) == []


def test_sum_optional_semantics() -> None:
    assert sum_optional(None, None, None) is None
    assert sum_optional(None, 2.0, None) == 2.0
    assert sum_optional(1.0, -1.0) == 0.0


def _point(offset: int, commercial: float | None) -> CotPoint:
    return CotPoint(time=JAN_2 + offset * WEEK, commercial_net=commercial)


def test_latest_signal_bias() -> None:
    assert latest_cot_signal([]) is None
    assert latest_cot_signal([_point(0, 10), _point(1, 20)]).bias == "bullish"
    assert latest_cot_signal([_point(0, -10), _point(1, -20)]).bias == "bearish"
    assert latest_cot_signal([_point(0, 30), _point(1, 20)]).bias == "neutral"
    assert latest_cot_signal([_point(0, 10), _point(1, None)]).bias == "neutral"


def test_series_groups_skip_missing_values() -> None:
    points = [
        CotPoint(time=1, commercial_net=5.0, non_commercial_net=-5.0),
        CotPoint(time=2, commercial_net=None, small_traders_net=1.0),
    ]

    groups = cot_series_groups(points)

    assert groups["commercial"] == [(1, 5.0)]
    assert groups["non_commercial"] == [(1, -5.0)]
    assert groups["small"] == [(2, 1.0)]


def test_oversized_integer_positions_count_as_missing() -> None:
    rows = [
        {
            "date": "2024-01-02",
            "dealer_positions_long_all": 10**400,
            "dealer_positions_short_all": 40,
            "nonrept_positions_long_all": 30,
            "nonrept_positions_short_all": 10,
        }
    ]

    points = map_rows(rows)

    assert len(points) == 1
    assert points[0].commercial_net is None
    assert points[0].small_traders_net == pytest.approx(20.0)
