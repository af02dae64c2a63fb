from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace

import httpx
import pytest

from itemgraph.adapters.http_resilience import ResilienceConfig, ResilientClient
from itemgraph.adapters.market_data import (
    MarketDataClient,
    PriceObservation,
    split_for_url,
    summarise_prices,
)
from itemgraph.config import MarketDataConfig
from itemgraph.domain.model import NO_ACTIVE_PRICES_REASON
from tests.helpers.items import AsyncRecordingSleep, make_item

BASE_URL = "https://prices.example.test/api/v2/stats/prices"


def _make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(transport=httpx.MockTransport(async_handler))  # noqa: SLF001  # type: ignore[reportPrivateUsage]
        return client

    return factory


def _config(**overrides: object) -> MarketDataConfig:
    config = MarketDataConfig(
        resilience=ResilienceConfig(name="market-test", base_url=BASE_URL, retry=None),
        regions=("Caerleon", "Martlock"),
    )
    return replace(config, **overrides)  # type: ignore[arg-type]


def _requested_ids(request: httpx.Request) -> list[str]:
    return request.url.path.rsplit("/", 1)[-1].split(",")


class _Recorder:
    def __init__(self, *responses: Callable[[httpx.Request], httpx.Response]) -> None:
        self._responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responder = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        return responder(request)


def _prices(request: httpx.Request) -> httpx.Response:
    rows: list[dict[str, object]] = []
    for identifier in _requested_ids(request):
        if identifier == "T4_HIDE":
            rows.append({"item_id": identifier, "city": "Caerleon", "sell_price_min": 100})
            rows.append(
                {
                    "item_id": identifier,
                    "city": "Martlock",
                    "sell_price_min": 0,
                    "buy_price_min": 150,
                }
            )
        else:
            rows.append({"item_id": identifier, "city": "Caerleon", "sell_price_min": 0})
    return httpx.Response(200, json=rows)


def _status(code: int) -> Callable[[httpx.Request], httpx.Response]:
    return lambda _request: httpx.Response(code, text="")


def _client(
    handler: _Recorder,
    sleep: AsyncRecordingSleep,
    config: MarketDataConfig | None = None,
) -> MarketDataClient:
    return MarketDataClient(
        config=config or _config(),
        client_factory=_make_client_factory(handler),
        sleep=sleep,
    )


def test_validate_reports_active_and_inactive_items() -> None:
    handler = _Recorder(_prices)
    sleep = AsyncRecordingSleep()
    items = [make_item("T4_HIDE"), make_item("T5_HIDE@1")]

    outcome = _client(handler, sleep).validate(items)

    valid, invalid = outcome.results
    assert valid.identifier == "T4_HIDE"
    assert valid.is_valid
    assert valid.active_city_count == 2
    assert valid.max_observed_price == 150
    assert valid.reason == "Valid item with prices in 2 cities (max: 150)"
    assert invalid.identifier == "T5_HIDE@1"
    assert not invalid.is_valid
    assert invalid.reason == NO_ACTIVE_PRICES_REASON
    assert not outcome.failed
    assert sleep.delays == []

    (request,) = handler.requests
    assert _requested_ids(request) == ["T4_HIDE", "T5_HIDE@1"]
    assert request.url.params["locations"] == "Caerleon,Martlock"


@pytest.mark.parametrize(
    "throttle",
    [
        _status(429),
        _status(503),
        lambda _request: httpx.Response(200, text="Request was Throttled, slow down"),
        lambda _request: httpx.Response(200, text="Rate limit exceeded"),
    ],
    ids=["http-429", "http-503", "throttled-body", "rate-limit-body"],
)
def test_throttled_requests_back_off_then_give_up(
    throttle: Callable[[httpx.Request], httpx.Response],
) -> None:
    handler = _Recorder(throttle)
    sleep = AsyncRecordingSleep()
    items = [make_item("T4_HIDE"), make_item("T5_HIDE")]

    outcome = _client(handler, sleep).validate(items)

    assert len(handler.requests) == 5
    assert sleep.delays == [3.0, 6.0, 12.0, 24.0]
    assert outcome.failed_requests == 1
    assert [result.is_valid for result in outcome.results] == [False, False]
    assert all(
        result.reason.startswith("API validation failed after 5 attempts")
        for result in outcome.results
    )


def test_throttle_backoff_is_capped() -> None:
    handler = _Recorder(_status(429))
    sleep = AsyncRecordingSleep()
    config = _config(throttle_backoff_seconds=10.0, throttle_backoff_cap_seconds=30.0)

    _client(handler, sleep, config).validate([make_item("T4_HIDE")])

    assert sleep.delays == [10.0, 20.0, 30.0, 30.0]


def test_request_recovers_after_throttle() -> None:
    handler = _Recorder(_status(429), _prices)
    sleep = AsyncRecordingSleep()

    outcome = _client(handler, sleep).validate([make_item("T4_HIDE")])

    assert len(handler.requests) == 2
    assert sleep.delays == [3.0]
    assert outcome.results[0].is_valid
    assert not outcome.failed


def test_read_timeout_is_retried() -> None:
    def timeout(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    handler = _Recorder(timeout)
    sleep = AsyncRecordingSleep()

    outcome = _client(handler, sleep, _config(max_attempts=2)).validate([make_item("T4_HIDE")])

    assert len(handler.requests) == 2
    assert sleep.delays == [3.0]
    assert outcome.results[0].reason.startswith("API validation failed after 2 attempts")


@pytest.mark.parametrize(
    "response",
    [_status(404), lambda _request: httpx.Response(200, text="<html>maintenance</html>")],
    ids=["http-404", "non-json"],
)
def test_other_failures_give_up_immediately(
    response: Callable[[httpx.Request], httpx.Response],
) -> None:
    handler = _Recorder(response)
    sleep = AsyncRecordingSleep()

    outcome = _client(handler, sleep).validate([make_item("T4_HIDE")])

    assert len(handler.requests) == 1
    assert sleep.delays == []
    assert outcome.failed_requests == 1
    assert outcome.results[0].reason.startswith("API validation failed: ")


def test_unexpected_payload_shape_fails_batch() -> None:
    handler = _Recorder(lambda _request: httpx.Response(200, json={"error": "nope"}))

    outcome = _client(handler, AsyncRecordingSleep()).validate([make_item("T4_HIDE")])

    assert outcome.failed
    assert "Unexpected price payload" in outcome.results[0].reason


def test_long_batches_are_split_across_requests() -> None:
    items = [make_item(identifier) for identifier in ("T5_HIDE", "T4_HIDE", "T6_HIDE", "T4_HIDE")]
    sizing = MarketDataClient(config=_config())
    pair_length = max(
        len(str(sizing.request_url([item.identifier for item in pair])))
        for pair in (items[:2], items[2:])
    )
    handler = _Recorder(_prices)

    outcome = _client(
        handler, AsyncRecordingSleep(), _config(max_url_length=pair_length)
    ).validate(items)
    unsplit = _client(_Recorder(_prices), AsyncRecordingSleep()).validate(items)

    assert [_requested_ids(request) for request in handler.requests] == [
        [items[0].identifier, items[1].identifier],
        [items[2].identifier, items[3].identifier],
    ]
    assert outcome.results == unsplit.results
    assert [result.is_valid for result in outcome.results] == [False, True, False, False]
    assert outcome.failed_requests == 0


def test_validate_empty_batch_makes_no_request() -> None:
    handler = _Recorder(_prices)

    outcome = _client(handler, AsyncRecordingSleep()).validate([])

    assert outcome.results == []
    assert handler.requests == []


def test_split_for_url_bisects_until_parts_fit() -> None:
    parts = split_for_url(list(range(10)), lambda part: len(part) <= 3)

    assert parts == [[0, 1], [2, 3, 4], [5, 6], [7, 8, 9]]


def test_split_for_url_never_splits_single_item() -> None:
    assert split_for_url(["T4_HIDE", "T5_HIDE"], lambda _part: False) == [
        ["T4_HIDE"],
        ["T5_HIDE"],
    ]
    assert split_for_url([], lambda _part: False) == []


def test_summarise_prices_ignores_inactive_rows() -> None:
    observations = [
        PriceObservation(item_id="T4_HIDE", city="Caerleon", sell_price_min=0, buy_price_min=0),
        PriceObservation(item_id="T4_HIDE", city="Martlock", sell_price_min=80),
        PriceObservation(item_id="T4_HIDE", city="Martlock", quality=2, sell_price_min=90),
    ]

    (result,) = summarise_prices([make_item("T4_HIDE")], observations)

    assert result.is_valid
    assert result.active_city_count == 1
    assert result.max_observed_price == 90
