"""Vendor feed normalisation, positioning mapping and technical indicators."""

from market_signals.app import MarketSignalsApplication
from market_signals.core import (
    MarketSignalsConfig,
    build_config,
    load_environment,
)

__all__ = [
    "MarketSignalsApplication",
    "MarketSignalsConfig",
    "build_config",
    "load_environment",
]
