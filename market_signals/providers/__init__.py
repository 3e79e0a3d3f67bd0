"""Vendor adapters, positioning mapping and the proxy transport."""

from __future__ import annotations

from market_signals.providers.adapters import PRICE_SOURCES, PriceSource, bars_from_payload
from market_signals.providers.base import (
    Bar,
    CotPoint,
    DatasetType,
    LoadCancelled,
    ProviderAuthenticationError,
    ProviderConfigurationError,
    ProviderError,
    ProxyRequest,
    UpstreamError,
)
from market_signals.providers.cot import map_rows
from market_signals.providers.markets import MarketAliasResolver, MarketAliasTable
from market_signals.providers.normalize import normalize_bars

__all__ = [
    "Bar",
    "CotPoint",
    "DatasetType",
    "LoadCancelled",
    "MarketAliasResolver",
    "MarketAliasTable",
    "PRICE_SOURCES",
    "PriceSource",
    "ProviderAuthenticationError",
    "ProviderConfigurationError",
    "ProviderError",
    "ProxyRequest",
    "UpstreamError",
    "bars_from_payload",
    "map_rows",
    "normalize_bars",
]
