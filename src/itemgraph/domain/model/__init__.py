"""Domain model for the item catalog pipeline."""

from __future__ import annotations

from .checkpoint import BatchCheckpoint
from .item import CatalogEntry, ItemClassification, ItemRecord
from .validation import NO_ACTIVE_PRICES_REASON, ValidationOutcome, ValidationResult

__all__ = [
    "NO_ACTIVE_PRICES_REASON",
    "BatchCheckpoint",
    "CatalogEntry",
    "ItemClassification",
    "ItemRecord",
    "ValidationOutcome",
    "ValidationResult",
]
