"""Market-data (price lookup) API configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import env_bool, env_float, env_int, env_list, env_str
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_MARKET_BASE_URL = "https://www.albion-online-data.com/api/v2/stats/prices"
DEFAULT_REGIONS = (
    "Caerleon",
    "Martlock",
    "Bridgewatch",
    "Fort Sterling",
    "Lymhurst",
    "Thetford",
)
DEFAULT_TIMEOUT_SECONDS = 45.0
DEFAULT_MAX_URL_LENGTH = 8000
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_THROTTLE_BACKOFF_SECONDS = 3.0
DEFAULT_THROTTLE_BACKOFF_CAP_SECONDS = 30.0
THROTTLE_MARKERS = ("throttled", "rate limit")


@dataclass(frozen=True, slots=True)
class MarketDataConfig:
    """Holds price-lookup endpoint settings and the throttle retry schedule."""

    resilience: ResilienceConfig
    regions: tuple[str, ...] = DEFAULT_REGIONS
    max_url_length: int = DEFAULT_MAX_URL_LENGTH
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    throttle_backoff_seconds: float = DEFAULT_THROTTLE_BACKOFF_SECONDS
    throttle_backoff_cap_seconds: float = DEFAULT_THROTTLE_BACKOFF_CAP_SECONDS
    throttle_markers: tuple[str, ...] = field(default_factory=lambda: THROTTLE_MARKERS)

    @property
    def base_url(self) -> str:
        return self.resilience.base_url or DEFAULT_MARKET_BASE_URL


def default_market_resilience(
    *,
    base_url: str = DEFAULT_MARKET_BASE_URL,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    cache: CacheConfig | None = None,
) -> ResilienceConfig:
    return ResilienceConfig(
        name="market-data",
        base_url=base_url,
        timeout_seconds=timeout_seconds,
        retry=RetryPolicy(),
        ratelimit=RateLimit(max_calls=1, per_seconds=1.0),
        cache=cache,
        default_headers={"Accept": "application/json"},
    )


def get_market_data_config() -> MarketDataConfig:
    cache = None
    if env_bool("ITEMGRAPH_HTTP_CACHE"):
        cache = CacheConfig(ttl_seconds=env_float("ITEMGRAPH_HTTP_CACHE_TTL", 300.0))
    resilience = default_market_resilience(
        base_url=env_str("ITEMGRAPH_MARKET_BASE_URL", DEFAULT_MARKET_BASE_URL),
        timeout_seconds=env_float("ITEMGRAPH_MARKET_TIMEOUT", DEFAULT_TIMEOUT_SECONDS),
        cache=cache,
    )
    return MarketDataConfig(
        resilience=resilience,
        regions=env_list("ITEMGRAPH_MARKET_REGIONS", DEFAULT_REGIONS),
        max_url_length=env_int("ITEMGRAPH_MAX_URL_LENGTH", DEFAULT_MAX_URL_LENGTH, minimum=256),
        max_attempts=env_int(
            "ITEMGRAPH_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS, minimum=1, maximum=10
        ),
    )
