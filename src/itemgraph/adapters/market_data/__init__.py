"""Public interface for the market price adapter."""

from __future__ import annotations

from .client import (
    MarketDataAPIError,
    MarketDataClient,
    ThrottledError,
    split_for_url,
    summarise_prices,
)
from .schema import PriceObservation, parse_price_payload

__all__ = [
    "MarketDataAPIError",
    "MarketDataClient",
    "PriceObservation",
    "ThrottledError",
    "parse_price_payload",
    "split_for_url",
    "summarise_prices",
]
