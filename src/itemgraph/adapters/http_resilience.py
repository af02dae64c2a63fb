"""Shared async HTTP plumbing: pacing, transport retries and an optional cache."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from itemgraph.config.http_resilience import (
    CacheConfig,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
)

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._types import QueryParamTypes, URLTypes

__all__ = [
    "CacheConfig",
    "RateLimit",
    "ResilienceConfig",
    "ResilientClient",
    "RetryPolicy",
    "build_retry",
]

log = getLogger(__name__)


def build_retry(policy: RetryPolicy) -> Retry:
    """Translate a ``RetryPolicy`` into the httpx-retries schedule."""
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        backoff_jitter=policy.backoff_jitter,
        respect_retry_after_header=False,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
    )


class ResilientClient:
    """Async GET client paced by a call-rate limit.

    Connection failures are retried by the transport; application-level
    throttling is left to the caller, which sees every response as-is.
    """

    def __init__(self, config: ResilienceConfig) -> None:
        self.config = config
        self._limiter = _build_limiter(config.ratelimit)
        self._client = _build_http_client(config)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(
        self,
        url: URLTypes,
        *,
        params: QueryParamTypes | None = None,
    ) -> httpx.Response:
        if self._limiter is None:
            return await self._client.get(url, params=params)
        async with self._limiter:
            return await self._client.get(url, params=params)


def _build_limiter(ratelimit: RateLimit | None) -> AsyncLimiter | None:
    if ratelimit is None:
        return None
    return AsyncLimiter(ratelimit.max_calls, ratelimit.per_seconds)


def _build_http_client(config: ResilienceConfig) -> httpx.AsyncClient:
    transport = (
        RetryTransport(retry=build_retry(config.retry)) if config.retry is not None else None
    )
    headers = dict(config.default_headers) if config.default_headers else None
    base_url = config.base_url or ""

    if config.cache is None:
        return httpx.AsyncClient(
            base_url=base_url,
            timeout=config.timeout_seconds,
            headers=headers,
            transport=transport,
        )

    log.debug("%s: caching responses for %ss", config.name, config.cache.ttl_seconds)
    storage = AsyncSqliteStorage(
        database_path=":memory:",
        default_ttl=config.cache.ttl_seconds,
        refresh_ttl_on_access=False,
    )
    return AsyncCacheClient(
        base_url=base_url,
        timeout=config.timeout_seconds,
        headers=headers,
        transport=transport,
        storage=storage,
    )
