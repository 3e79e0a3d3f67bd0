"""Proxy transport with cancellation tokens and rate-limit aware retries."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Mapping, Protocol, TypeVar

import httpx

from .base import LoadCancelled, ProviderAuthenticationError, ProxyRequest, UpstreamError

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING_CREDENTIAL = re.compile(r"^missing [a-z0-9_]*(key|token)\b", re.IGNORECASE)


class CancellationToken:
    """Handle owned by a single load; cancelling it aborts that load's I/O."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise LoadCancelled("request superseded")

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token is cancelled first.

        The wrapped task is cancelled and :class:`LoadCancelled` raised when
        the token fires before the awaitable completes.
        """

        self.raise_if_cancelled()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            waiter.cancel()
            raise
        if task in done:
            waiter.cancel()
            return task.result()
        task.cancel()
        raise LoadCancelled("request superseded")

    async def sleep(self, delay: float) -> None:
        """Back off for ``delay`` seconds, waking early with ``LoadCancelled``."""

        await self.guard(asyncio.sleep(delay))


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Exponential backoff: ``base_delay * factor ** (retry - 1)`` seconds."""

    retries: int = 2
    base_delay: float = 0.3
    factor: float = 3.0
    retry_statuses: tuple[int, ...] = (429,)

    def __post_init__(self) -> None:
        if self.retries < 0:
            raise ValueError("retries must be non-negative.")
        if self.base_delay < 0 or self.factor <= 0:
            raise ValueError("backoff delays must be positive.")

    def delay(self, retry: int) -> float:
        return self.base_delay * (self.factor ** (retry - 1))


class Transport(Protocol):
    async def send(self, request: ProxyRequest, token: CancellationToken) -> httpx.Response:
        ...


class HttpxTransport:
    """Send proxy requests with a shared ``httpx.AsyncClient``."""

    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url
        self._client = client
        self._client_owner = client is None
        self._timeout = timeout

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def send(self, request: ProxyRequest, token: CancellationToken) -> httpx.Response:
        return await token.guard(
            self.client.get(
                self.base_url,
                params=request.query(),
                headers={"accept": "application/json"},
            )
        )

    async def aclose(self) -> None:
        if self._client_owner and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


async def fetch_with_retry(
    transport: Transport,
    request: ProxyRequest,
    token: CancellationToken,
    policy: RetryPolicy | None = None,
    *,
    label: str = "fetch",
) -> httpx.Response:
    """Send ``request``, retrying rate limits and transport failures.

    A retryable status is returned as-is once retries are exhausted so the
    caller can surface the upstream message. Transport exceptions are
    wrapped in :class:`UpstreamError`. Cancellation is never retried.
    """

    policy = policy or RetryPolicy()
    attempt = 0
    while True:
        token.raise_if_cancelled()
        try:
            response = await transport.send(request, token)
        except LoadCancelled:
            raise
        except Exception as exc:
            if attempt >= policy.retries:
                LOGGER.warning(
                    "%s exhausted %s retries for %s: %s",
                    label,
                    policy.retries,
                    request.src,
                    exc,
                )
                raise UpstreamError(f"{label} fetch error: {exc}") from exc
            reason = str(exc) or type(exc).__name__
        else:
            if response.status_code not in policy.retry_statuses:
                return response
            if attempt >= policy.retries:
                LOGGER.warning(
                    "%s still rate limited after %s retries for %s",
                    label,
                    policy.retries,
                    request.src,
                )
                return response
            reason = f"HTTP {response.status_code}"

        attempt += 1
        wait = policy.delay(attempt)
        LOGGER.debug(
            "Retrying %s %s (%s/%s) in %.2fs because %s",
            label,
            request.src,
            attempt,
            policy.retries,
            wait,
            reason,
        )
        await token.sleep(wait)


def decode_response(response: httpx.Response, *, label: str = "fetch") -> Any:
    """Return the JSON payload or raise :class:`UpstreamError`.

    Error messages prefer the proxy's ``{"error": ...}`` body and fall back
    to ``"<label> fetch error: <status>"``.
    """

    try:
        payload = response.json()
    except ValueError:
        payload = None
        malformed = True
    else:
        malformed = False

    status = response.status_code
    if not response.is_success:
        message = payload.get("error") if isinstance(payload, Mapping) else None
        if not isinstance(message, str) or not message.strip():
            message = f"{label} fetch error: {status}"
        if status in (401, 403) or _MISSING_CREDENTIAL.match(message):
            raise ProviderAuthenticationError(message, status_code=status)
        raise UpstreamError(message, status_code=status)
    if malformed:
        raise UpstreamError(f"{label} fetch error: malformed response body", status_code=status)
    return payload


__all__ = [
    "CancellationToken",
    "HttpxTransport",
    "RetryPolicy",
    "Transport",
    "decode_response",
    "fetch_with_retry",
]
