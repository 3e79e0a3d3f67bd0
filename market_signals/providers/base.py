"""Canonical record models, request objects and the provider error taxonomy."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Mapping
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field


class ProviderError(RuntimeError):
    """Base class for provider related failures."""


class UpstreamError(ProviderError):
    """Raised when the proxy answers with a non-success status or cannot be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderAuthenticationError(UpstreamError):
    """Raised when a provider cannot authenticate because credentials are missing."""


class ProviderConfigurationError(ProviderError):
    """Raised when the caller supplies unsupported parameters."""


class LoadCancelled(Exception):
    """Signal raised inside a superseded load. Not an error."""


class DatasetType(StrEnum):
    """Enumeration of the data kinds served by a load slot."""

    PRICES = "prices"
    POSITIONING = "positioning"


class RecordModel(BaseModel):
    """Base class for immutable canonical records."""

    model_config = ConfigDict(
        frozen=True,
        validate_by_name=True,
        populate_by_name=True,
    )


class Bar(RecordModel):
    """One OHLC observation keyed by UTC epoch seconds."""

    time: int
    open: float
    high: float
    low: float
    close: float


class CotPoint(RecordModel):
    """One weekly positioning observation in the three-group model.

    ``None`` means the source did not report the value, which is different
    from a net position of zero.
    """

    time: int
    non_commercial_net: float | None = Field(default=None, alias="nonCommercialNet")
    commercial_net: float | None = Field(default=None, alias="commercialNet")
    small_traders_net: float | None = Field(default=None, alias="smallTradersNet")
    non_commercial_net_pct: float | None = Field(default=None, alias="nonCommercialNetPct")
    commercial_net_pct: float | None = Field(default=None, alias="commercialNetPct")
    small_traders_net_pct: float | None = Field(default=None, alias="smallTradersNetPct")

    def as_record(self) -> dict[str, Any]:
        """Return the camelCase mapping, leaving out unknown values."""

        return self.model_dump(by_alias=True, exclude_none=True)


class ProxyRequest(BaseModel):
    """Query sent to the allow-listed proxy endpoint."""

    dataset_type: DatasetType
    src: str
    params: Mapping[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    def query(self) -> dict[str, str]:
        query = {"src": self.src}
        for key, value in self.params.items():
            if value is None or value == "":
                continue
            query[key] = str(value)
        return query

    def url(self, base_url: str) -> str:
        return f"{base_url}?{urlencode(self.query())}"


__all__ = [
    "Bar",
    "CotPoint",
    "DatasetType",
    "LoadCancelled",
    "ProviderAuthenticationError",
    "ProviderConfigurationError",
    "ProviderError",
    "ProxyRequest",
    "RecordModel",
    "UpstreamError",
]
