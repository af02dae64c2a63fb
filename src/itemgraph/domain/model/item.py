"""Catalog items and their taxonomy classification."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ItemClassification:
    """Taxonomy attributes derived from an item identifier."""

    category: str
    subcategory: str
    tier: int
    enchantment_level: int
    type_label: str


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """One normalised row read from a catalog file.

    Legacy pipe-delimited catalogs carry their own category, tier and
    subcategory; those override the values derived from the identifier.
    """

    identifier: str
    display_name: str
    category: str | None = None
    tier: int | None = None
    subcategory: str | None = None


@dataclass(frozen=True, slots=True)
class ItemRecord:
    identifier: str
    raw_display_name: str
    canonical_name: str
    category: str
    subcategory: str
    tier: int
    enchantment_level: int
    type_label: str

    @property
    def is_enchanted(self) -> bool:
        return self.enchantment_level > 0

    @property
    def classification(self) -> ItemClassification:
        return ItemClassification(
            category=self.category,
            subcategory=self.subcategory,
            tier=self.tier,
            enchantment_level=self.enchantment_level,
            type_label=self.type_label,
        )
