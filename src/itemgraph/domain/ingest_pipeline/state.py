"""Run-wide state threaded through the batch coordinator."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

from itemgraph.domain.model import BatchCheckpoint

if TYPE_CHECKING:
    from itemgraph.domain.model import ItemRecord

type ErrorKind = Literal["api_error", "database_error", "batch_error"]


class RunPhase(StrEnum):
    NOT_STARTED = "not_started"
    RESUMING = "resuming"
    RUNNING = "running"
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class NeedsValidation:
    item: ItemRecord
    reason: str


@dataclass(frozen=True, slots=True)
class BatchResult:
    batch_index: int
    item_count: int
    valid_count: int
    invalid_count: int
    duration_seconds: float


@dataclass(frozen=True, slots=True)
class ErrorDetail:
    kind: ErrorKind
    message: str
    batch_index: int | None = None
    item_ids: tuple[str, ...] = ()
    retry_count: int = 0
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(slots=True)
class RunState:
    """Mutable accumulator for one ingest run.

    ``next_index`` is the index of the first unprocessed item; counts restored
    from a checkpoint seed ``resumed_valid``/``resumed_needs_validation`` so the
    report totals cover the whole catalog, not just this process.
    ``resumed_errors`` carries the checkpoint's error total forward into the
    next checkpoint; ``api_errors`` (which drives the inter-batch delay) only
    counts errors seen by this process.
    """

    total_items: int
    phase: RunPhase = RunPhase.NOT_STARTED
    start_index: int = 0
    next_index: int = 0
    resumed_valid: int = 0
    resumed_needs_validation: int = 0
    resumed_errors: int = 0
    api_errors: int = 0
    database_errors: int = 0
    valid_items: list[ItemRecord] = field(default_factory=list["ItemRecord"])
    needs_validation: list[NeedsValidation] = field(default_factory=list[NeedsValidation])
    batch_results: list[BatchResult] = field(default_factory=list[BatchResult])
    errors: list[ErrorDetail] = field(default_factory=list[ErrorDetail])
    failure: str | None = None

    @classmethod
    def fresh(cls, total_items: int) -> RunState:
        return cls(total_items=total_items, phase=RunPhase.RUNNING)

    @classmethod
    def resumed(cls, checkpoint: BatchCheckpoint) -> RunState:
        return cls(
            total_items=checkpoint.total_items,
            phase=RunPhase.RESUMING,
            start_index=checkpoint.last_processed_index,
            next_index=checkpoint.last_processed_index,
            resumed_valid=checkpoint.valid_count,
            resumed_needs_validation=checkpoint.needs_validation_count,
            resumed_errors=checkpoint.error_count,
        )

    @property
    def processed(self) -> int:
        return self.next_index

    @property
    def processed_this_run(self) -> int:
        return self.next_index - self.start_index

    @property
    def valid_count(self) -> int:
        return self.resumed_valid + len(self.valid_items)

    @property
    def needs_validation_count(self) -> int:
        return self.resumed_needs_validation + len(self.needs_validation)

    @property
    def error_count(self) -> int:
        return self.resumed_errors + self.api_errors + self.database_errors

    @property
    def is_finished(self) -> bool:
        return self.phase in {RunPhase.COMPLETED, RunPhase.INTERRUPTED, RunPhase.FAILED}

    def record_error(self, detail: ErrorDetail) -> None:
        if detail.kind == "database_error":
            self.database_errors += 1
        else:
            self.api_errors += 1
        self.errors.append(detail)

    def to_checkpoint(self) -> BatchCheckpoint:
        return BatchCheckpoint(
            last_processed_index=self.next_index,
            total_items=self.total_items,
            valid_count=self.valid_count,
            needs_validation_count=self.needs_validation_count,
            error_count=self.error_count,
        ).stamped()
