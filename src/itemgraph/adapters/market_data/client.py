"""Market price API client used to validate catalog items."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Awaitable, Callable
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from itemgraph.adapters.http_resilience import ResilientClient
from itemgraph.config.market import get_market_data_config
from itemgraph.domain.ingest_pipeline.delays import exponential_backoff
from itemgraph.domain.model import NO_ACTIVE_PRICES_REASON, ValidationOutcome, ValidationResult
from itemgraph.domain.ports import ItemValidator

from .schema import PriceObservation, parse_price_payload

if TYPE_CHECKING:
    from collections.abc import Sequence

    from itemgraph.config.http_resilience import ResilienceConfig
    from itemgraph.config.market import MarketDataConfig
    from itemgraph.domain.model import ItemRecord

log = getLogger(__name__)

AsyncSleep = Callable[[float], Awaitable[None]]

RATE_LIMIT_STATUS = 429
THROTTLED_STATUS = 503


class MarketDataAPIError(RuntimeError):
    """Raised when the price API answers with something we cannot use."""


class ThrottledError(MarketDataAPIError):
    """Raised when the price API asks us to slow down."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def split_for_url[T](
    items: Sequence[T],
    fits: Callable[[Sequence[T]], bool],
) -> list[list[T]]:
    """Bisect ``items`` until every part satisfies ``fits``.

    A single item is never split, even when it does not fit on its own.
    """

    if len(items) <= 1 or fits(items):
        return [list(items)] if items else []
    middle = len(items) // 2
    return split_for_url(items[:middle], fits) + split_for_url(items[middle:], fits)


def summarise_prices(
    items: Sequence[ItemRecord],
    observations: Sequence[PriceObservation],
) -> list[ValidationResult]:
    """Build one result per item from the price rows returned for it."""

    by_item: defaultdict[str, list[PriceObservation]] = defaultdict(list)
    for observation in observations:
        if observation.is_active:
            by_item[observation.item_id].append(observation)

    results: list[ValidationResult] = []
    for item in items:
        active = by_item.get(item.identifier, [])
        cities = {observation.city for observation in active}
        max_price = max((observation.best_price for observation in active), default=0)
        if cities and max_price > 0:
            results.append(
                ValidationResult(
                    identifier=item.identifier,
                    is_valid=True,
                    active_city_count=len(cities),
                    max_observed_price=max_price,
                    reason=f"Valid item with prices in {len(cities)} cities (max: {max_price})",
                )
            )
        else:
            results.append(
                ValidationResult(
                    identifier=item.identifier,
                    is_valid=False,
                    reason=NO_ACTIVE_PRICES_REASON,
                )
            )
    return results


class MarketDataClient:
    """Validate items by asking the price API whether anyone trades them.

    Each call to :meth:`validate` opens one rate-limited client, splits the
    batch so no request URL exceeds the configured length and retries throttled
    requests on an exponential schedule. Requests that still fail turn into
    invalid results; :meth:`validate` itself never raises for API trouble.
    """

    def __init__(
        self,
        *,
        config: MarketDataConfig | None = None,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        sleep: AsyncSleep | None = None,
    ) -> None:
        self._config = config or get_market_data_config()
        self._resilience = self._config.resilience
        self._client_factory = client_factory or ResilientClient
        self._sleep = sleep or asyncio.sleep

    @property
    def config(self) -> MarketDataConfig:
        return self._config

    def request_url(self, identifiers: Sequence[str]) -> httpx.URL:
        base = self._config.base_url.rstrip("/")
        return httpx.URL(
            f"{base}/{','.join(identifiers)}",
            params={"locations": ",".join(self._config.regions)},
        )

    def fits_url(self, items: Sequence[ItemRecord]) -> bool:
        url = self.request_url([item.identifier for item in items])
        return len(str(url)) <= self._config.max_url_length

    def validate(self, items: Sequence[ItemRecord]) -> ValidationOutcome:
        if not items:
            return ValidationOutcome()
        return asyncio.run(self._validate_async(items))

    async def _validate_async(self, items: Sequence[ItemRecord]) -> ValidationOutcome:
        parts = split_for_url(items, self.fits_url)
        if len(parts) > 1:
            log.info(
                "Request URL too long for %s items; splitting into %s requests",
                len(items),
                len(parts),
            )

        outcome = ValidationOutcome()
        async with self._client_factory(self._resilience) as client:
            for part in parts:
                outcome.extend(await self._validate_part(client, part))
        return outcome

    async def _validate_part(
        self,
        client: ResilientClient,
        items: Sequence[ItemRecord],
    ) -> ValidationOutcome:
        url = self.request_url([item.identifier for item in items])
        max_attempts = self._config.max_attempts

        # Throttle bodies arrive with 200 and need the same schedule as 429/503,
        # so those statuses are retried here rather than in the transport.
        attempt = 0
        while True:
            attempt += 1
            try:
                observations = await self._fetch(client, url)
            except (ThrottledError, httpx.TimeoutException) as exc:
                if attempt >= max_attempts:
                    reason = f"API validation failed after {attempt} attempts: {exc}"
                    return self._give_up(items, reason)
                delay = exponential_backoff(
                    attempt,
                    base=self._config.throttle_backoff_seconds,
                    cap=self._config.throttle_backoff_cap_seconds,
                )
                log.warning(
                    "Price API throttled (%s); waiting %.1fs before attempt %s/%s",
                    exc,
                    delay,
                    attempt + 1,
                    max_attempts,
                )
                await self._sleep(delay)
            except (httpx.HTTPError, MarketDataAPIError) as exc:
                return self._give_up(items, f"API validation failed: {exc}")
            else:
                return ValidationOutcome(results=summarise_prices(items, observations))

    async def _fetch(self, client: ResilientClient, url: httpx.URL) -> list[PriceObservation]:
        response = await client.get(url)
        if response.status_code == RATE_LIMIT_STATUS:
            raise ThrottledError("rate limit (HTTP 429)", status_code=RATE_LIMIT_STATUS)
        if response.status_code == THROTTLED_STATUS:
            raise ThrottledError("throttled (HTTP 503)", status_code=THROTTLED_STATUS)
        response.raise_for_status()

        lowered = response.text.lower()
        marker = next((m for m in self._config.throttle_markers if m in lowered), None)
        if marker is not None:
            raise ThrottledError(f"{marker!r} in response body")

        try:
            payload = response.json()
        except ValueError as exc:
            raise MarketDataAPIError("Price API returned a non-JSON body") from exc
        try:
            return parse_price_payload(payload)
        except ValidationError as exc:
            msg = f"Unexpected price payload: {exc.error_count()} errors"
            raise MarketDataAPIError(msg) from exc

    def _give_up(self, items: Sequence[ItemRecord], reason: str) -> ValidationOutcome:
        log.error("Giving up on %s items: %s", len(items), reason)
        return ValidationOutcome(
            results=[ValidationResult.failed(item.identifier, reason) for item in items],
            failed_requests=1,
        )


if TYPE_CHECKING:
    _validator_check: ItemValidator = MarketDataClient()
