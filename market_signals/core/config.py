"""Configuration utilities for the market signals package."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

from market_signals.providers.adapters import get_price_source
from market_signals.providers.markets import MarketAliasTable
from market_signals.providers.transport import RetryPolicy

DEFAULT_PROXY_URL = "http://localhost:3000/api/proxy"
DEFAULT_PRICE_SOURCE = "fmp_eod"
DEFAULT_POSITIONING_SOURCE = "cftc_pre_tff"
DEFAULT_TICKER = "NVDA"
DEFAULT_MARKET = "NQ"
DEFAULT_LOOKBACK_DAYS = 730

ENV_PREFIX = "MARKET_SIGNALS_"


def _coerce_bool(value: object, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return bool(value)


@dataclass
class MarketSignalsConfig:
    """Runtime configuration for :class:`MarketSignalsApplication`."""

    proxy_url: str = DEFAULT_PROXY_URL
    price_source: str = DEFAULT_PRICE_SOURCE
    positioning_source: str = DEFAULT_POSITIONING_SOURCE
    default_ticker: str = DEFAULT_TICKER
    default_market: str = DEFAULT_MARKET
    lookback_days: int = DEFAULT_LOOKBACK_DAYS
    retries: int = 2
    backoff_base: float = 0.3
    backoff_factor: float = 3.0
    request_timeout: float = 30.0
    williams_length: int = 14
    williams_clamp: bool = True
    uo_fast: int = 7
    uo_mid: int = 14
    uo_slow: int = 28
    market_aliases: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        get_price_source(self.price_source)
        if not self.proxy_url:
            raise ValueError("proxy_url cannot be empty.")
        self.default_ticker = self.default_ticker.strip().upper()
        self.default_market = self.default_market.strip().upper()
        if self.lookback_days < 1:
            raise ValueError("lookback_days must be at least 1.")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive.")
        for name in ("williams_length", "uo_fast", "uo_mid", "uo_slow"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be a positive integer.")
        self.market_aliases = {
            str(code).strip().upper(): str(name)
            for code, name in (self.market_aliases or {}).items()
        }
        # Validates retries and backoff values eagerly.
        self.retry_policy()

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            retries=self.retries,
            base_delay=self.backoff_base,
            factor=self.backoff_factor,
        )

    def alias_table(self) -> MarketAliasTable:
        return MarketAliasTable().merged(self.market_aliases)

    def indicator_params(self) -> dict[str, Any]:
        return {
            "williams_length": self.williams_length,
            "williams_clamp": self.williams_clamp,
            "uo_fast": self.uo_fast,
            "uo_mid": self.uo_mid,
            "uo_slow": self.uo_slow,
        }


def load_environment() -> None:
    """Load configuration from an optional ``.env`` file."""

    load_dotenv()


def _env(name: str) -> Optional[str]:
    value = os.getenv(f"{ENV_PREFIX}{name}")
    return value if value not in (None, "") else None


def build_config(
    proxy_url: Optional[str] = None,
    price_source: Optional[str] = None,
    positioning_source: Optional[str] = None,
    default_ticker: Optional[str] = None,
    default_market: Optional[str] = None,
    lookback_days: Optional[int] = None,
    retries: Optional[int] = None,
    backoff_base: Optional[float] = None,
    backoff_factor: Optional[float] = None,
    request_timeout: Optional[float] = None,
    williams_length: Optional[int] = None,
    williams_clamp: Optional[bool] = None,
    uo_fast: Optional[int] = None,
    uo_mid: Optional[int] = None,
    uo_slow: Optional[int] = None,
    market_aliases: Optional[Mapping[str, str]] = None,
) -> MarketSignalsConfig:
    """Build a :class:`MarketSignalsConfig` from arguments and the environment.

    Explicit arguments win over ``MARKET_SIGNALS_*`` environment variables,
    which win over the defaults.
    """

    load_environment()

    def _pick(value: Any, env_name: str, cast: type, default: Any) -> Any:
        if value is not None:
            return cast(value)
        raw = _env(env_name)
        if raw is None:
            return default
        try:
            return cast(raw)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"{ENV_PREFIX}{env_name} has an invalid value: {raw!r}") from exc

    return MarketSignalsConfig(
        proxy_url=_pick(proxy_url, "PROXY_URL", str, DEFAULT_PROXY_URL),
        price_source=_pick(price_source, "PRICE_SOURCE", str, DEFAULT_PRICE_SOURCE),
        positioning_source=_pick(
            positioning_source, "POSITIONING_SOURCE", str, DEFAULT_POSITIONING_SOURCE
        ),
        default_ticker=_pick(default_ticker, "DEFAULT_TICKER", str, DEFAULT_TICKER),
        default_market=_pick(default_market, "DEFAULT_MARKET", str, DEFAULT_MARKET),
        lookback_days=_pick(lookback_days, "LOOKBACK_DAYS", int, DEFAULT_LOOKBACK_DAYS),
        retries=_pick(retries, "RETRIES", int, 2),
        backoff_base=_pick(backoff_base, "BACKOFF_BASE", float, 0.3),
        backoff_factor=_pick(backoff_factor, "BACKOFF_FACTOR", float, 3.0),
        request_timeout=_pick(request_timeout, "REQUEST_TIMEOUT", float, 30.0),
        williams_length=_pick(williams_length, "WILLIAMS_LENGTH", int, 14),
        williams_clamp=_coerce_bool(
            williams_clamp if williams_clamp is not None else _env("WILLIAMS_CLAMP"),
            default=True,
        ),
        uo_fast=_pick(uo_fast, "UO_FAST", int, 7),
        uo_mid=_pick(uo_mid, "UO_MID", int, 14),
        uo_slow=_pick(uo_slow, "UO_SLOW", int, 28),
        market_aliases=dict(market_aliases or {}),
    )


def load_config_from_mapping(payload: Mapping[str, Any]) -> MarketSignalsConfig:
    """Create a configuration from a plain mapping, ignoring unknown keys."""

    known = {item.name for item in fields(MarketSignalsConfig)}
    values = {key: value for key, value in payload.items() if key in known}
    if "williams_clamp" in values:
        values["williams_clamp"] = _coerce_bool(values["williams_clamp"], default=True)
    aliases = values.get("market_aliases")
    if aliases is not None and not isinstance(aliases, Mapping):
        raise TypeError("market_aliases must be a mapping of code to market name.")
    return MarketSignalsConfig(**values)


def load_config_from_file(path: str | Path) -> MarketSignalsConfig:
    """Load configuration from a JSON or YAML file."""

    resolved = Path(path).expanduser().resolve()
    with resolved.open("r", encoding="utf-8") as handle:
        if resolved.suffix.lower() in {".yaml", ".yml"}:
            import yaml

            payload = yaml.safe_load(handle) or {}
        else:
            payload = json.load(handle)

    if not isinstance(payload, Mapping):
        raise TypeError("Configuration file must define a mapping of values.")

    return load_config_from_mapping(payload)


__all__ = [
    "DEFAULT_LOOKBACK_DAYS",
    "DEFAULT_MARKET",
    "DEFAULT_POSITIONING_SOURCE",
    "DEFAULT_PRICE_SOURCE",
    "DEFAULT_PROXY_URL",
    "DEFAULT_TICKER",
    "MarketSignalsConfig",
    "build_config",
    "load_config_from_file",
    "load_config_from_mapping",
    "load_environment",
]
