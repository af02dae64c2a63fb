"""Identifier-driven taxonomy rules.

Every function here is pure: the same identifier always yields the same
classification. The rules run during catalog ingest and again when the graph
writer derives relationships, so they must never depend on external state.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Final

from itemgraph.domain.model import ItemClassification

DEFAULT_CATEGORY: Final[str] = "misc"
DEFAULT_SUBCATEGORY: Final[str] = "general"

# Ordered: the first matching rule wins.
CATEGORY_RULES: Final[tuple[tuple[str, re.Pattern[str]], ...]] = (
    (
        "weapon",
        re.compile(
            r"^T\d+_(2H_|1H_|BOW_|CROSSBOW_|CURVEDSTAFF_|FIRESTAFF_|FROSTSTAFF_|"
            r"HOLYSTAFF_|ARCANESTAFF_|NATURESTAFF_)"
        ),
    ),
    ("armor", re.compile(r"^T\d+_(ARMOR_|HEAD_|SHOES_|CAPE_)")),
    ("tool", re.compile(r"^T\d+_TOOL_")),
    ("bag", re.compile(r"^T\d+_BAG_")),
    ("food", re.compile(r"^T\d+_(MEAL_|FISH_)")),
    ("potion", re.compile(r"^T\d+_POTION_")),
    ("mount", re.compile(r"^T\d+_MOUNT_")),
    (
        "resource",
        re.compile(r"^T\d+_(HIDE|WOOD|STONE|ORE|FIBER|ROCK|PLANKS|METALBAR|LEATHER|CLOTH)(_|@|$)"),
    ),
    ("rune", re.compile(r"^T\d+_RUNE")),
    ("soul", re.compile(r"^T\d+_SOUL")),
    ("relic", re.compile(r"^T\d+_RELIC")),
    ("journal", re.compile(r"^T\d+_JOURNAL")),
    ("map", re.compile(r"^T\d+_MAP")),
    ("consumable", re.compile(r"^T\d+_(SKILLBOOK_|VANITY_)")),
    ("furniture", re.compile(r"^FURNITURE_")),
    ("unique", re.compile(r"^UNIQUE_")),
)

_TIERED_PREFIX: Final = re.compile(r"^T\d+_")
_TIER: Final = re.compile(r"^T(\d+)_")
_ENCHANTMENT: Final = re.compile(r"@(\d+)$")

# Substring tests per category, checked in order.
SUBCATEGORY_RULES: Final[dict[str, tuple[tuple[str, tuple[str, ...]], ...]]] = {
    "weapon": (
        ("two-handed", ("2H_",)),
        ("one-handed", ("1H_",)),
        ("ranged", ("BOW_", "CROSSBOW_")),
        ("magic", ("STAFF_",)),
    ),
    "armor": (
        ("helmet", ("HEAD_",)),
        ("chest", ("ARMOR_",)),
        ("boots", ("SHOES_",)),
        ("cape", ("CAPE_",)),
    ),
    "resource": (
        ("leather", ("HIDE", "LEATHER")),
        ("wood", ("WOOD", "PLANKS")),
        ("stone", ("STONE", "BRICK")),
        ("metal", ("ORE", "METALBAR")),
        ("fiber", ("FIBER", "CLOTH")),
    ),
}

TYPE_LABELS: Final[dict[str, str]] = {
    "2H_CLAYMORE": "Two-Handed Sword",
    "1H_SWORD": "One-Handed Sword",
    "BOW": "Bow",
    "CROSSBOW": "Crossbow",
    "ARMOR_CLOTH_SET1": "Cloth Armor",
    "ARMOR_LEATHER_SET1": "Leather Armor",
    "ARMOR_PLATE_SET1": "Plate Armor",
    "HIDE": "Hide",
    "WOOD": "Wood",
    "STONE": "Stone",
    "ORE": "Ore",
    "FIBER": "Fiber",
}


def detect_category(identifier: str) -> str:
    for category, pattern in CATEGORY_RULES:
        if pattern.search(identifier):
            return category
    if _TIERED_PREFIX.match(identifier):
        return "equipment"
    if identifier.startswith("UNIQUE_"):
        return "unique"
    if identifier.startswith("FURNITURE_"):
        return "furniture"
    return DEFAULT_CATEGORY


def extract_tier(identifier: str) -> int:
    match = _TIER.match(identifier)
    return int(match.group(1)) if match else 0


def extract_enchantment(identifier: str) -> int:
    match = _ENCHANTMENT.search(identifier)
    return int(match.group(1)) if match else 0


def base_identifier(identifier: str) -> str:
    """Return ``identifier`` without its trailing enchantment marker."""

    return _ENCHANTMENT.sub("", identifier)


def detect_subcategory(identifier: str, category: str) -> str:
    for subcategory, needles in SUBCATEGORY_RULES.get(category, ()):
        if any(needle in identifier for needle in needles):
            return subcategory
    return DEFAULT_SUBCATEGORY


def extract_type_label(identifier: str) -> str:
    bare = _ENCHANTMENT.sub("", _TIERED_PREFIX.sub("", identifier))
    label = TYPE_LABELS.get(bare)
    if label is not None:
        return label
    return bare.lower().replace("_", " ")


@lru_cache(maxsize=16384)
def classify(identifier: str) -> ItemClassification:
    """Derive the full classification for ``identifier``."""

    category = detect_category(identifier)
    return ItemClassification(
        category=category,
        subcategory=detect_subcategory(identifier, category),
        tier=extract_tier(identifier),
        enchantment_level=extract_enchantment(identifier),
        type_label=extract_type_label(identifier),
    )


__all__ = [
    "CATEGORY_RULES",
    "TYPE_LABELS",
    "base_identifier",
    "classify",
    "detect_category",
    "detect_subcategory",
    "extract_enchantment",
    "extract_tier",
    "extract_type_label",
]
