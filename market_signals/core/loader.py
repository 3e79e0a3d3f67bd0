"""Load slots: one supersedable, retrying load per data kind."""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import StrEnum
from typing import Any, Generic, Optional, TypeVar

from market_signals.providers.adapters import PriceSource, get_price_source
from market_signals.providers.base import (
    Bar,
    CotPoint,
    DatasetType,
    LoadCancelled,
    ProxyRequest,
    UpstreamError,
)
from market_signals.providers.cot import map_rows
from market_signals.providers.markets import MarketAliasResolver
from market_signals.providers.transport import (
    CancellationToken,
    RetryPolicy,
    Transport,
    decode_response,
    fetch_with_retry,
)

LOGGER = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", Bar, CotPoint)


class LoadState(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class LoadParams:
    """Resolved parameters of one load call."""

    symbol: str
    start: date
    end: date


@dataclass(frozen=True, slots=True)
class SlotSnapshot(Generic[RecordT]):
    """Point-in-time view of a slot."""

    state: LoadState
    records: tuple[RecordT, ...]
    error: str
    params: LoadParams | None


def default_range(lookback_days: int, today: date | None = None) -> tuple[date, date]:
    """Return ``(today - lookback_days, today)`` using the UTC calendar."""

    end = today or datetime.now(timezone.utc).date()
    return end - timedelta(days=lookback_days), end


def _coerce_date(value: date | str | None) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def _epoch_seconds(day: date) -> int:
    return int(datetime.combine(day, time.min, tzinfo=timezone.utc).timestamp())


class LoadSlot(abc.ABC, Generic[RecordT]):
    """State machine ``idle -> loading -> done | error`` for one data kind.

    Each :meth:`load` cancels the token of any load still in flight. The
    superseded call finishes silently and never touches slot state, so the
    slot always reflects the most recent call regardless of the order in
    which responses arrive.
    """

    dataset_type: DatasetType
    label: str = "fetch"

    def __init__(
        self,
        transport: Transport,
        *,
        default_symbol: str,
        retry_policy: RetryPolicy | None = None,
        lookback_days: int = 730,
    ) -> None:
        self.transport = transport
        self.retry_policy = retry_policy or RetryPolicy()
        self.lookback_days = lookback_days
        self._symbol = default_symbol.strip().upper()
        self._state = LoadState.IDLE
        self._records: tuple[RecordT, ...] = ()
        self._error = ""
        self._params: LoadParams | None = None
        self._token: CancellationToken | None = None

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def records(self) -> tuple[RecordT, ...]:
        return self._records

    @property
    def error(self) -> str:
        return self._error

    @property
    def symbol(self) -> str:
        """Symbol of the last successful load (or the default)."""

        return self._symbol

    @property
    def in_flight(self) -> bool:
        return self._token is not None

    def snapshot(self) -> SlotSnapshot[RecordT]:
        return SlotSnapshot(self._state, self._records, self._error, self._params)

    def resolve_params(
        self,
        symbol: str | None = None,
        start: date | str | None = None,
        end: date | str | None = None,
    ) -> LoadParams:
        default_start, default_end = default_range(self.lookback_days)
        return LoadParams(
            symbol=(symbol or self._symbol).strip().upper(),
            start=_coerce_date(start) or default_start,
            end=_coerce_date(end) or default_end,
        )

    @abc.abstractmethod
    def build_request(self, params: LoadParams) -> ProxyRequest:
        raise NotImplementedError

    @abc.abstractmethod
    def parse(self, payload: Any) -> list[RecordT]:
        raise NotImplementedError

    def cancel(self) -> None:
        """Abandon the in-flight load, if any, returning a loading slot to idle."""

        if self._token is not None:
            self._token.cancel()
            self._token = None
            if self._state is LoadState.LOADING:
                self._state = LoadState.IDLE

    async def load(
        self,
        symbol: str | None = None,
        start: date | str | None = None,
        end: date | str | None = None,
    ) -> Optional[SlotSnapshot[RecordT]]:
        """Run one load and return the resulting snapshot.

        Returns ``None`` when a newer load superseded this one.
        """

        params = self.resolve_params(symbol, start, end)
        request = self.build_request(params)

        if self._token is not None:
            LOGGER.debug("Superseding in-flight %s load", self.label)
            self._token.cancel()
        token = CancellationToken()
        self._token = token
        self._state = LoadState.LOADING
        self._error = ""
        LOGGER.info(
            "Loading %s for %s (%s to %s)",
            self.label,
            params.symbol,
            params.start,
            params.end,
        )

        try:
            response = await fetch_with_retry(
                self.transport, request, token, self.retry_policy, label=self.label
            )
            payload = decode_response(response, label=self.label)
            records = self.parse(payload)
        except LoadCancelled:
            LOGGER.debug("%s load for %s was superseded", self.label, params.symbol)
            return None
        except UpstreamError as exc:
            if token.cancelled:
                return None
            self._records = ()
            self._error = str(exc) or f"{self.label} fetch error"
            self._state = LoadState.ERROR
            LOGGER.warning("%s load for %s failed: %s", self.label, params.symbol, self._error)
            return self.snapshot()
        except Exception as exc:
            if token.cancelled:
                return None
            self._records = ()
            self._error = f"{self.label} parse error: {exc}"
            self._state = LoadState.ERROR
            LOGGER.warning(
                "%s load for %s failed while parsing", self.label, params.symbol, exc_info=True
            )
            return self.snapshot()
        finally:
            if self._token is token:
                self._token = None

        if token.cancelled:
            LOGGER.debug("Discarding superseded %s response for %s", self.label, params.symbol)
            return None

        self._records = tuple(records)
        self._params = params
        self._symbol = params.symbol
        self._state = LoadState.DONE
        LOGGER.info("Loaded %s %s records for %s", len(records), self.label, params.symbol)
        return self.snapshot()


class PriceSlot(LoadSlot[Bar]):
    """Daily bars from one of the supported price sources."""

    dataset_type = DatasetType.PRICES
    label = "price"

    def __init__(
        self,
        transport: Transport,
        *,
        source: str | PriceSource = "fmp_eod",
        default_symbol: str = "NVDA",
        retry_policy: RetryPolicy | None = None,
        lookback_days: int = 730,
    ) -> None:
        super().__init__(
            transport,
            default_symbol=default_symbol,
            retry_policy=retry_policy,
            lookback_days=lookback_days,
        )
        self.source = source if isinstance(source, PriceSource) else get_price_source(source)

    def build_request(self, params: LoadParams) -> ProxyRequest:
        query: dict[str, Any] = {"symbol": params.symbol}
        if self.source.epoch_range:
            query["resolution"] = "D"
            query["from"] = _epoch_seconds(params.start)
            query["to"] = _epoch_seconds(params.end)
        else:
            query["from"] = params.start.isoformat()
            query["to"] = params.end.isoformat()
        return ProxyRequest(dataset_type=self.dataset_type, src=self.source.name, params=query)

    def parse(self, payload: Any) -> list[Bar]:
        return self.source.parse(payload)


class PositioningSlot(LoadSlot[CotPoint]):
    """Weekly Traders in Financial Futures positioning for one market."""

    dataset_type = DatasetType.POSITIONING
    label = "cot"

    def __init__(
        self,
        transport: Transport,
        *,
        resolver: MarketAliasResolver | None = None,
        source: str = "cftc_pre_tff",
        default_symbol: str = "NQ",
        retry_policy: RetryPolicy | None = None,
        lookback_days: int = 730,
    ) -> None:
        super().__init__(
            transport,
            default_symbol=default_symbol,
            retry_policy=retry_policy,
            lookback_days=lookback_days,
        )
        self.resolver = resolver or MarketAliasResolver()
        self.source = source

    def build_request(self, params: LoadParams) -> ProxyRequest:
        return ProxyRequest(
            dataset_type=self.dataset_type,
            src=self.source,
            params={
                "market": self.resolver.resolve(params.symbol),
                "from": params.start.isoformat(),
                "to": params.end.isoformat(),
            },
        )

    def parse(self, payload: Any) -> list[CotPoint]:
        return map_rows(payload)


__all__ = [
    "LoadParams",
    "LoadSlot",
    "LoadState",
    "PositioningSlot",
    "PriceSlot",
    "SlotSnapshot",
    "default_range",
]
