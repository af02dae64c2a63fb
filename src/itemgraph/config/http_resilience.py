"""Connection settings shared by the outbound HTTP clients."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from collections.abc import Mapping

_IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
_GATEWAY_STATUSES = frozenset({500, 502, 504})


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Transport-level retries for connection failures and gateway errors.

    Throttle responses (429/503 and throttle bodies) are left to the market
    client, which applies its own backoff schedule to them.
    """

    total: int = 2
    backoff_factor: float = 0.5
    max_backoff_wait: float = 10.0
    backoff_jitter: float = 1.0
    allowed_methods: frozenset[str] = _IDEMPOTENT_METHODS
    status_forcelist: frozenset[int] = _GATEWAY_STATUSES
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.ConnectError,
        httpx.ConnectTimeout,
        httpx.RemoteProtocolError,
    )


@dataclass(slots=True, frozen=True)
class RateLimit:
    """At most ``max_calls`` requests in any ``per_seconds`` window."""

    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class CacheConfig:
    """In-process response cache; repeated price lookups within ``ttl_seconds`` reuse the body."""

    ttl_seconds: float | None = 300.0


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy | None = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: CacheConfig | None = None
    default_headers: Mapping[str, str] | None = None
