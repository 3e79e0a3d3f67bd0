"""Commitments of Traders rows mapped onto a three-group positioning model.

The Traders in Financial Futures report splits open interest into five
groups. The dashboard keeps the legacy three-group view, so the groups are
folded as follows:

* commercial      = dealer / intermediary
* non-commercial  = asset manager + leveraged money + other reportable
* small traders   = non-reportable

This is an approximation; dealers are not exactly the legacy commercials.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Literal, Mapping, Sequence

from .base import CotPoint
from .normalize import parse_epoch_seconds, parse_float

LOGGER = logging.getLogger(__name__)

DATE_KEYS: tuple[str, ...] = (
    "report_date_as_yyyy_mm_dd",
    "report_date",
    "as_of_date",
    "date",
)

OPEN_INTEREST_KEYS: tuple[str, ...] = ("open_interest_all", "open_interest", "openInterest")

# (long candidates, short candidates) per group, most specific key first.
POSITION_GROUPS: Mapping[str, tuple[tuple[str, ...], tuple[str, ...]]] = MappingProxyType({
    "dealer": (
        ("dealer_positions_long_all", "dealer_positions_long", "dealer_long_all"),
        ("dealer_positions_short_all", "dealer_positions_short", "dealer_short_all"),
    ),
    "asset_manager": (
        ("asset_mgr_positions_long_all", "asset_mgr_positions_long", "asset_mgr_long_all"),
        ("asset_mgr_positions_short_all", "asset_mgr_positions_short", "asset_mgr_short_all"),
    ),
    "leveraged_money": (
        ("lev_money_positions_long_all", "lev_money_positions_long", "lev_money_long_all"),
        ("lev_money_positions_short_all", "lev_money_positions_short", "lev_money_short_all"),
    ),
    "other_reporting": (
        ("other_rept_positions_long_all", "other_rept_positions_long", "other_rept_long_all"),
        ("other_rept_positions_short_all", "other_rept_positions_short", "other_rept_short_all"),
    ),
    "non_reporting": (
        ("nonrept_positions_long_all", "nonrept_positions_long", "nonrept_long_all"),
        ("nonrept_positions_short_all", "nonrept_positions_short", "nonrept_short_all"),
    ),
})


def _first_number(row: Mapping[str, Any], keys: Sequence[str]) -> float | None:
    for key in keys:
        value = parse_float(row.get(key))
        if value is not None:
            return value
    return None


def _row_time(row: Mapping[str, Any]) -> int | None:
    for key in DATE_KEYS:
        value = row.get(key)
        if value is None or value == "":
            continue
        seconds = parse_epoch_seconds(value)
        if seconds is not None:
            return seconds
    return None


def net_position(long: float | None, short: float | None) -> float | None:
    """Long minus short, unknown when either side is missing."""

    if long is None or short is None:
        return None
    return long - short


def sum_optional(*values: float | None) -> float | None:
    """Sum treating ``None`` as zero; ``None`` only when every term is ``None``."""

    present = [value for value in values if value is not None]
    if not present:
        return None
    return float(sum(present))


def percent_of_open_interest(net: float | None, open_interest: float | None) -> float | None:
    if net is None or open_interest is None or open_interest <= 0:
        return None
    return net / open_interest * 100.0


def group_nets(row: Mapping[str, Any]) -> dict[str, float | None]:
    """Net position for each of the five report groups."""

    return {
        group: net_position(_first_number(row, long_keys), _first_number(row, short_keys))
        for group, (long_keys, short_keys) in POSITION_GROUPS.items()
    }


def map_row(row: Any) -> CotPoint | None:
    """Map one report row, or return ``None`` when its date is unusable."""

    if not isinstance(row, Mapping):
        return None
    time = _row_time(row)
    if time is None:
        return None

    nets = group_nets(row)
    commercial = nets["dealer"]
    non_commercial = sum_optional(
        nets["asset_manager"], nets["leveraged_money"], nets["other_reporting"]
    )
    small = nets["non_reporting"]
    open_interest = _first_number(row, OPEN_INTEREST_KEYS)

    return CotPoint(
        time=time,
        commercial_net=commercial,
        non_commercial_net=non_commercial,
        small_traders_net=small,
        commercial_net_pct=percent_of_open_interest(commercial, open_interest),
        non_commercial_net_pct=percent_of_open_interest(non_commercial, open_interest),
        small_traders_net_pct=percent_of_open_interest(small, open_interest),
    )


def map_rows(rows: Any) -> list[CotPoint]:
    """Map report rows to ascending, date de-duplicated points.

    Rows without a parseable date are skipped. For rows sharing a date the
    last one in input order wins.
    """

    if not isinstance(rows, (list, tuple)):
        return []
    by_time: dict[int, CotPoint] = {}
    skipped = 0
    for row in rows:
        point = map_row(row)
        if point is None:
            skipped += 1
            continue
        by_time[point.time] = point
    if skipped:
        LOGGER.debug("Skipped %s COT rows without a usable report date", skipped)
    return [by_time[time] for time in sorted(by_time)]


Bias = Literal["bullish", "bearish", "neutral"]


@dataclass(frozen=True, slots=True)
class CotSignal:
    """Latest commercial positioning and its week-over-week direction."""

    time: int
    commercial_net: float | None
    non_commercial_net: float | None
    bias: Bias


def latest_cot_signal(points: Sequence[CotPoint]) -> CotSignal | None:
    if not points:
        return None
    latest = points[-1]
    previous = points[-2] if len(points) > 1 else None

    bias: Bias = "neutral"
    commercial = latest.commercial_net
    if commercial is not None:
        prior = previous.commercial_net if previous is not None else None
        delta = commercial - (prior or 0.0)
        if commercial > 0 and delta > 0:
            bias = "bullish"
        elif commercial < 0 and delta < 0:
            bias = "bearish"

    return CotSignal(
        time=latest.time,
        commercial_net=commercial,
        non_commercial_net=latest.non_commercial_net,
        bias=bias,
    )


def cot_series_groups(points: Sequence[CotPoint]) -> dict[str, list[tuple[int, float]]]:
    """Chart-ready ``(time, value)`` series per trader group."""

    fields = {
        "non_commercial": "non_commercial_net",
        "commercial": "commercial_net",
        "small": "small_traders_net",
    }
    groups: dict[str, list[tuple[int, float]]] = {}
    for group, attribute in fields.items():
        groups[group] = [
            (point.time, value)
            for point in points
            if (value := getattr(point, attribute)) is not None
        ]
    return groups


__all__ = [
    "CotSignal",
    "DATE_KEYS",
    "OPEN_INTEREST_KEYS",
    "POSITION_GROUPS",
    "cot_series_groups",
    "group_nets",
    "latest_cot_signal",
    "map_row",
    "map_rows",
    "net_position",
    "percent_of_open_interest",
    "sum_optional",
]
