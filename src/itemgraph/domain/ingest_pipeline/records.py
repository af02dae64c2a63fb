"""Turn catalog entries into classified, canonically named item records."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from itemgraph.domain.canonicalization import canonical_name
from itemgraph.domain.model import ItemRecord
from itemgraph.domain.taxonomy import classify

if TYPE_CHECKING:
    from collections.abc import Iterable

    from itemgraph.domain.model import CatalogEntry

log = getLogger(__name__)


def build_item_record(entry: CatalogEntry) -> ItemRecord:
    classification = classify(entry.identifier)
    return ItemRecord(
        identifier=entry.identifier,
        raw_display_name=entry.display_name,
        canonical_name=canonical_name(entry.display_name),
        category=entry.category or classification.category,
        subcategory=entry.subcategory or classification.subcategory,
        tier=classification.tier if entry.tier is None else entry.tier,
        enchantment_level=classification.enchantment_level,
        type_label=classification.type_label,
    )


def build_item_records(entries: Iterable[CatalogEntry]) -> list[ItemRecord]:
    """Build records in catalog order, keeping the first entry per identifier."""

    records: list[ItemRecord] = []
    seen: set[str] = set()
    duplicates = 0
    for entry in entries:
        if entry.identifier in seen:
            duplicates += 1
            log.debug("Skipping duplicate catalog identifier %s", entry.identifier)
            continue
        seen.add(entry.identifier)
        records.append(build_item_record(entry))
    if duplicates:
        log.warning("Skipped %s duplicate catalog identifiers", duplicates)
    return records
