"""Port for cross-checking items against an external market."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from itemgraph.domain.model import ItemRecord, ValidationOutcome


@runtime_checkable
class ItemValidator(Protocol):
    """Validate a batch of items, returning one result per item.

    Implementations absorb transport failures into invalid results instead of
    raising, so a batch always yields an outcome.
    """

    def validate(self, items: Sequence[ItemRecord]) -> ValidationOutcome: ...


__all__ = ["ItemValidator"]
