"""Command line entry point for the market signals toolkit."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any

from market_signals.app import MarketSignalsApplication, RunResult
from market_signals.providers.adapters import supported_sources
from market_signals.providers.base import ProviderConfigurationError


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Load price bars and COT positioning through the data proxy.",
    )
    parser.add_argument(
        "--mode",
        choices=["price", "cot", "all"],
        default=os.getenv("MARKET_SIGNALS_DEFAULT_MODE", "all"),
        help="Which slots to load (default: %(default)s).",
    )
    parser.add_argument("--ticker", help="Equity ticker for the price slot.")
    parser.add_argument("--market", help="Futures code or CFTC market name for the COT slot.")
    parser.add_argument("--start-date", help="Range start (YYYY-MM-DD).")
    parser.add_argument("--end-date", help="Range end (YYYY-MM-DD).")
    parser.add_argument(
        "--source",
        choices=list(supported_sources()),
        help="Price source selector passed to the proxy.",
    )
    parser.add_argument("--proxy-url", help="Base URL of the data proxy endpoint.")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ...).",
    )
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> RunResult:
    overrides: dict[str, Any] = {}
    if args.proxy_url:
        overrides["proxy_url"] = args.proxy_url
    if args.source:
        overrides["price_source"] = args.source

    app = MarketSignalsApplication.from_environment(**overrides)
    async with app:
        if args.mode == "price":
            await app.load_price(args.ticker, args.start_date, args.end_date)
        elif args.mode == "cot":
            await app.load_positioning(args.market, args.start_date, args.end_date)
        else:
            await app.load_all(args.ticker, args.market, args.start_date, args.end_date)
        return app.summary()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)
    try:
        result = asyncio.run(_run(args))
    except (ProviderConfigurationError, ValueError) as exc:
        logging.error("Invalid configuration: %s", exc)
        return 2
    print(json.dumps(result.payload, indent=2, default=str))
    return 0 if result.status == "ok" else 1


if __name__ == "__main__":
    sys.exit(main())
