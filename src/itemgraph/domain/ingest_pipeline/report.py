"""Summary of a finished (or aborted) ingest run."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .state import BatchResult, ErrorDetail, RunPhase, RunState


@dataclass(frozen=True, slots=True)
class RunReport:
    generated_at: datetime
    phase: RunPhase
    total_items: int
    processed: int
    resumed_from: int
    valid_count: int
    needs_validation_count: int
    success_rate: int
    duration_seconds: float
    total_batches: int
    average_batch_seconds: float
    items_per_second: float
    api_errors: int
    database_errors: int
    errors: tuple[ErrorDetail, ...]
    batch_results: tuple[BatchResult, ...]
    failure: str | None = None


def build_run_report(
    state: RunState,
    *,
    duration_seconds: float,
    now: datetime | None = None,
) -> RunReport:
    """Derive report figures from ``state``.

    Totals include counts restored from a checkpoint; throughput only covers
    items handled by this process.
    """

    batches = len(state.batch_results)
    batch_time = sum(result.duration_seconds for result in state.batch_results)
    processed = state.processed
    return RunReport(
        generated_at=now or datetime.now(UTC),
        phase=state.phase,
        total_items=state.total_items,
        processed=processed,
        resumed_from=state.start_index,
        valid_count=state.valid_count,
        needs_validation_count=state.needs_validation_count,
        success_rate=round(100 * state.valid_count / processed) if processed else 0,
        duration_seconds=duration_seconds,
        total_batches=batches,
        average_batch_seconds=batch_time / batches if batches else 0.0,
        items_per_second=state.processed_this_run / duration_seconds
        if duration_seconds > 0
        else 0.0,
        api_errors=state.api_errors,
        database_errors=state.database_errors,
        errors=tuple(state.errors),
        batch_results=tuple(state.batch_results),
        failure=state.failure,
    )
