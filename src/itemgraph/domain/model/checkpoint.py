"""Durable progress marker for resumable ingest runs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class BatchCheckpoint:
    last_processed_index: int
    total_items: int
    valid_count: int = 0
    needs_validation_count: int = 0
    error_count: int = 0
    saved_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.total_items < 0 or not 0 <= self.last_processed_index <= self.total_items:
            raise ValueError(
                f"Checkpoint index {self.last_processed_index} outside [0, {self.total_items}]"
            )

    def matches(self, total_items: int) -> bool:
        """Return whether this checkpoint was written for a run of ``total_items``."""

        return self.total_items == total_items

    def stamped(self, *, now: datetime | None = None) -> BatchCheckpoint:
        return BatchCheckpoint(
            last_processed_index=self.last_processed_index,
            total_items=self.total_items,
            valid_count=self.valid_count,
            needs_validation_count=self.needs_validation_count,
            error_count=self.error_count,
            saved_at=now or _utcnow(),
        )
