"""Pydantic models describing the market price API payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, TypeAdapter, field_validator


class MarketBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class PriceObservation(MarketBaseModel):
    """One (item, city, quality) price row."""

    item_id: str
    city: str
    quality: int = 1
    sell_price_min: int = 0
    sell_price_min_date: str | None = None
    buy_price_min: int = 0
    buy_price_min_date: str | None = None

    @field_validator("sell_price_min", "buy_price_min", mode="before")
    @classmethod
    def _none_to_zero(cls, value: object) -> object:
        return 0 if value is None else value

    @property
    def is_active(self) -> bool:
        return self.sell_price_min > 0 or self.buy_price_min > 0

    @property
    def best_price(self) -> int:
        return max(self.sell_price_min, self.buy_price_min)


_OBSERVATIONS = TypeAdapter(list[PriceObservation])


def parse_price_payload(payload: object) -> list[PriceObservation]:
    """Validate a decoded JSON body (a list of price rows)."""

    return _OBSERVATIONS.validate_python(payload)
