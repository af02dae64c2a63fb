"""Pydantic models describing the structured (JSON) catalog format."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class CatalogBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class CatalogItemPayload(CatalogBaseModel):
    """One object from ``items.json``."""

    unique_name: str | None = Field(default=None, alias="UniqueName")
    localized_names: dict[str, str | None] | None = Field(default=None, alias="LocalizedNames")

    _normalize_unique_name = field_validator("unique_name", mode="before")(_blank_to_none)

    def display_name(self, locale: str) -> str | None:
        if not self.localized_names:
            return None
        name = self.localized_names.get(locale)
        if name is None:
            return None
        return name.strip() or None
