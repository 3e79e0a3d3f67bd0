"""Core analytical components: configuration, load slots and indicators."""

from market_signals.core.config import (
    MarketSignalsConfig,
    build_config,
    load_config_from_file,
    load_config_from_mapping,
    load_environment,
)
from market_signals.core.indicators import (
    IndicatorSummary,
    breakout_flags,
    summarize_indicators,
    ultimate_oscillator,
    williams_r,
)
from market_signals.core.loader import (
    LoadParams,
    LoadSlot,
    LoadState,
    PositioningSlot,
    PriceSlot,
    SlotSnapshot,
)

__all__ = [
    "IndicatorSummary",
    "LoadParams",
    "LoadSlot",
    "LoadState",
    "MarketSignalsConfig",
    "PositioningSlot",
    "PriceSlot",
    "SlotSnapshot",
    "breakout_flags",
    "build_config",
    "load_config_from_file",
    "load_config_from_mapping",
    "load_environment",
    "summarize_indicators",
    "ultimate_oscillator",
    "williams_r",
]
