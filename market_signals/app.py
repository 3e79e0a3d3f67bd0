"""Top-level orchestration of the price and positioning slots."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

from market_signals.core.config import MarketSignalsConfig, build_config, load_environment
from market_signals.core.indicators import IndicatorSummary, summarize_indicators
from market_signals.core.loader import LoadState, PositioningSlot, PriceSlot, SlotSnapshot
from market_signals.providers.base import Bar, CotPoint
from market_signals.providers.cot import cot_series_groups, latest_cot_signal
from market_signals.providers.markets import MarketAliasResolver
from market_signals.providers.transport import HttpxTransport, Transport

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class RunResult:
    """Wrapper used by the application to provide consistent responses."""

    status: str
    payload: dict[str, Any]


class MarketSignalsApplication:
    """Coordinate the proxy transport, load slots and indicator engine."""

    def __init__(
        self,
        config: MarketSignalsConfig,
        *,
        transport: Transport | None = None,
    ) -> None:
        self.config = config
        self._owned_transport = transport is None
        self.transport: Transport = transport or HttpxTransport(
            config.proxy_url, timeout=config.request_timeout
        )
        policy = config.retry_policy()
        self.price = PriceSlot(
            self.transport,
            source=config.price_source,
            default_symbol=config.default_ticker,
            retry_policy=policy,
            lookback_days=config.lookback_days,
        )
        self.positioning = PositioningSlot(
            self.transport,
            resolver=MarketAliasResolver(config.alias_table()),
            source=config.positioning_source,
            default_symbol=config.default_market,
            retry_policy=policy,
            lookback_days=config.lookback_days,
        )

    @classmethod
    def from_environment(cls, **overrides: Any) -> "MarketSignalsApplication":
        """Create an application instance using environment variables and overrides."""

        load_environment()
        config = build_config(**overrides)
        LOGGER.debug("Initialised configuration with proxy %s", config.proxy_url)
        return cls(config)

    async def load_price(
        self,
        symbol: str | None = None,
        start: date | str | None = None,
        end: date | str | None = None,
    ) -> SlotSnapshot[Bar] | None:
        return await self.price.load(symbol, start, end)

    async def load_positioning(
        self,
        code: str | None = None,
        start: date | str | None = None,
        end: date | str | None = None,
    ) -> SlotSnapshot[CotPoint] | None:
        return await self.positioning.load(code, start, end)

    async def load_all(
        self,
        symbol: str | None = None,
        code: str | None = None,
        start: date | str | None = None,
        end: date | str | None = None,
    ) -> None:
        """Load both slots concurrently; they share no state."""

        await asyncio.gather(
            self.load_price(symbol, start, end),
            self.load_positioning(code, start, end),
        )

    def indicators(self) -> IndicatorSummary:
        return summarize_indicators(list(self.price.records), **self.config.indicator_params())

    def summary(self) -> RunResult:
        payload: dict[str, Any] = {
            "price": {
                "symbol": self.price.symbol,
                "state": str(self.price.state),
                "error": self.price.error or None,
                "bars": len(self.price.records),
            },
            "positioning": {
                "market": self.positioning.symbol,
                "state": str(self.positioning.state),
                "error": self.positioning.error or None,
                "points": len(self.positioning.records),
            },
        }
        if self.price.records:
            payload["price"]["last_bar"] = self.price.records[-1].model_dump()
            payload["indicators"] = self.indicators().as_dict()
        if self.positioning.records:
            points = list(self.positioning.records)
            payload["positioning"]["last_point"] = points[-1].as_record()
            signal = latest_cot_signal(points)
            if signal is not None:
                payload["positioning"]["bias"] = signal.bias
            payload["positioning"]["series_lengths"] = {
                group: len(series) for group, series in cot_series_groups(points).items()
            }
        failed = LoadState.ERROR in (self.price.state, self.positioning.state)
        return RunResult(status="error" if failed else "ok", payload=payload)

    async def aclose(self) -> None:
        self.price.cancel()
        self.positioning.cancel()
        if self._owned_transport and isinstance(self.transport, HttpxTransport):
            await self.transport.aclose()

    async def __aenter__(self) -> "MarketSignalsApplication":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


__all__ = ["MarketSignalsApplication", "RunResult"]
