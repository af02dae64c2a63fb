"""Checkpointed batch coordinator for catalog ingest runs."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from itemgraph.config.ingest import IngestConfig

from .delays import exponential_backoff, next_delay
from .state import BatchResult, ErrorDetail, NeedsValidation, RunPhase, RunState

if TYPE_CHECKING:
    from collections.abc import Sequence

    from itemgraph.domain.model import ItemRecord
    from itemgraph.domain.ports import CheckpointStore, ItemValidator

    from .graph_writer import GraphWriter, GraphWriteResult

log = getLogger(__name__)

MISSING_RESULT_REASON = "No validation result returned"

Sleep = Callable[[float], None]
Monotonic = Callable[[], float]
StopRequested = Callable[[], bool]


class PipelineAbortedError(RuntimeError):
    """Raised when an error escapes batch-level recovery.

    Carries the run state at the time of failure so callers can report how far
    the run got and where a resumed run will pick up.
    """

    def __init__(self, message: str, *, state: RunState) -> None:
        super().__init__(message)
        self.state = state


class PipelineInterruptedError(PipelineAbortedError):
    """Raised at a batch boundary after a stop was requested.

    The checkpoint already points at the first unprocessed item.
    """


@dataclass(slots=True)
class _BatchOutcome:
    valid: list[ItemRecord] = field(default_factory=list["ItemRecord"])
    needs_validation: list[NeedsValidation] = field(default_factory=list[NeedsValidation])
    failed_requests: int = 0
    write: GraphWriteResult | None = None


class BatchCoordinator:
    """Drive validation and graph writes one batch at a time.

    Batches never overlap: each one is validated, written, checkpointed and
    followed by a pause before the next starts. The pause grows with the number
    of API errors seen so far.
    """

    def __init__(
        self,
        *,
        validator: ItemValidator,
        checkpoints: CheckpointStore,
        writer: GraphWriter | None = None,
        config: IngestConfig | None = None,
        sleep: Sleep = time.sleep,
        monotonic: Monotonic = time.monotonic,
        stop_requested: StopRequested | None = None,
    ) -> None:
        self._validator = validator
        self._checkpoints = checkpoints
        self._writer = writer
        self._config = config or IngestConfig()
        self._sleep = sleep
        self._monotonic = monotonic
        self._stop_requested = stop_requested or (lambda: False)

    @property
    def config(self) -> IngestConfig:
        return self._config

    def prepare(self, total_items: int, *, resume: bool) -> RunState:
        """Decide whether to resume from the stored checkpoint or start over."""

        checkpoint = self._checkpoints.load()
        if checkpoint is not None and resume and checkpoint.matches(total_items):
            log.info(
                "Resuming from checkpoint: %s/%s items processed "
                "(valid=%s, needs_validation=%s, saved_at=%s)",
                checkpoint.last_processed_index,
                checkpoint.total_items,
                checkpoint.valid_count,
                checkpoint.needs_validation_count,
                checkpoint.saved_at,
            )
            return RunState.resumed(checkpoint)

        if checkpoint is not None:
            if checkpoint.matches(total_items):
                log.info(
                    "Found checkpoint at %s/%s; starting fresh (pass --resume to continue)",
                    checkpoint.last_processed_index,
                    checkpoint.total_items,
                )
            else:
                log.info(
                    "Discarding stale checkpoint for %s items (current catalog has %s)",
                    checkpoint.total_items,
                    total_items,
                )
            self._checkpoints.clear()
        return RunState.fresh(total_items)

    def run(self, items: Sequence[ItemRecord], *, resume: bool = False) -> RunState:
        state = RunState.fresh(len(items))
        try:
            state = self.prepare(len(items), resume=resume)
            self._run_batches(items, state)
        except PipelineInterruptedError:
            raise
        except Exception as exc:
            state.phase = RunPhase.FAILED
            state.failure = f"{type(exc).__name__}: {exc}"
            log.exception("Ingest run aborted after %s/%s items", state.processed, len(items))
            raise PipelineAbortedError(state.failure, state=state) from exc

        self._checkpoints.clear()
        state.phase = RunPhase.COMPLETED
        log.info(
            "Ingest run completed: processed=%s, valid=%s, needs_validation=%s, "
            "api_errors=%s, database_errors=%s",
            state.processed,
            state.valid_count,
            state.needs_validation_count,
            state.api_errors,
            state.database_errors,
        )
        return state

    def _run_batches(self, items: Sequence[ItemRecord], state: RunState) -> None:
        batch_size = self._config.batch_size
        total = len(items)
        total_batches = -(-total // batch_size)
        log.info(
            "Processing %s items in batches of %s starting at index %s (dry_run=%s)",
            total,
            batch_size,
            state.next_index,
            self._config.dry_run,
        )

        for offset in range(state.next_index, total, batch_size):
            batch = list(items[offset : offset + batch_size])
            batch_index = offset // batch_size + 1
            log.info("Batch %s/%s: %s items", batch_index, total_batches, len(batch))

            self._run_batch(state, batch, batch_index)

            previous = state.next_index
            state.next_index = offset + len(batch)
            self._maybe_checkpoint(state, previous)
            self._maybe_report_progress(state, previous)

            if state.next_index < total and self._stop_requested():
                self._interrupt(state)

            if state.next_index < total:
                delay = next_delay(
                    self._config.base_delay_seconds,
                    state.api_errors,
                    max_delay=self._config.max_delay_seconds,
                )
                if delay > self._config.base_delay_seconds:
                    log.warning("API errors detected, backing off %.1fs before next batch", delay)
                else:
                    log.debug("Waiting %.1fs before next batch", delay)
                self._sleep(delay)

    def _run_batch(self, state: RunState, batch: list[ItemRecord], batch_index: int) -> None:
        started = self._monotonic()
        retries = self._config.batch_retries
        outcome: _BatchOutcome | None = None
        last_error: Exception | None = None

        for attempt in range(retries + 1):
            if attempt > 0:
                delay = exponential_backoff(
                    attempt,
                    base=self._config.batch_retry_delay_seconds,
                    cap=self._config.batch_retry_delay_seconds * 2**retries,
                )
                log.info(
                    "Retrying batch %s, attempt %s/%s after %.1fs",
                    batch_index,
                    attempt,
                    retries,
                    delay,
                )
                self._sleep(delay)
            try:
                outcome = self._process_batch(batch)
                break
            except Exception as exc:  # noqa: BLE001
                last_error = exc
                log.warning("Batch %s attempt %s failed: %s", batch_index, attempt + 1, exc)

        if outcome is None:
            reason = f"Batch failed after {retries} retries: {last_error}"
            outcome = _BatchOutcome(
                needs_validation=[NeedsValidation(item=item, reason=reason) for item in batch]
            )
            state.record_error(
                ErrorDetail(
                    kind="batch_error",
                    message=str(last_error),
                    batch_index=batch_index,
                    item_ids=tuple(item.identifier for item in batch),
                    retry_count=retries,
                )
            )

        self._apply(state, outcome, batch_index)
        duration = self._monotonic() - started
        state.batch_results.append(
            BatchResult(
                batch_index=batch_index,
                item_count=len(batch),
                valid_count=len(outcome.valid),
                invalid_count=len(outcome.needs_validation),
                duration_seconds=duration,
            )
        )
        log.info(
            "Batch %s done in %.2fs: %s valid, %s need validation",
            batch_index,
            duration,
            len(outcome.valid),
            len(outcome.needs_validation),
        )

    def _process_batch(self, batch: list[ItemRecord]) -> _BatchOutcome:
        validation = self._validator.validate(batch)
        by_id = {result.identifier: result for result in validation.results}

        outcome = _BatchOutcome(failed_requests=validation.failed_requests)
        for item in batch:
            result = by_id.get(item.identifier)
            if result is None:
                outcome.needs_validation.append(NeedsValidation(item, MISSING_RESULT_REASON))
            elif result.is_valid:
                outcome.valid.append(item)
            else:
                outcome.needs_validation.append(NeedsValidation(item, result.reason))

        if outcome.valid and self._writer is not None and not self._config.dry_run:
            outcome.write = self._writer.write(outcome.valid)
        return outcome

    def _apply(self, state: RunState, outcome: _BatchOutcome, batch_index: int) -> None:
        state.valid_items.extend(outcome.valid)
        state.needs_validation.extend(outcome.needs_validation)

        if outcome.failed_requests:
            state.record_error(
                ErrorDetail(
                    kind="api_error",
                    message=f"{outcome.failed_requests} market lookup(s) gave up",
                    batch_index=batch_index,
                    item_ids=tuple(entry.item.identifier for entry in outcome.needs_validation),
                )
            )

        write = outcome.write
        if write is not None:
            if write.ok:
                log.info("Wrote %s items to the graph store", write.items_written)
            else:
                state.record_error(
                    ErrorDetail(
                        kind="database_error",
                        message="; ".join(write.errors),
                        batch_index=batch_index,
                        item_ids=tuple(write.failed_item_ids),
                    )
                )

    def _maybe_checkpoint(self, state: RunState, previous: int) -> None:
        interval = self._config.checkpoint_interval
        if state.next_index >= state.total_items:
            return
        if state.next_index // interval <= previous // interval:
            return
        self._checkpoints.save(state.to_checkpoint())
        log.info("Checkpoint saved at %s/%s items", state.next_index, state.total_items)

    def _interrupt(self, state: RunState) -> None:
        self._checkpoints.save(state.to_checkpoint())
        state.phase = RunPhase.INTERRUPTED
        message = f"Stopped after {state.next_index}/{state.total_items} items"
        log.warning("%s; checkpoint saved, rerun with --resume to continue", message)
        raise PipelineInterruptedError(message, state=state)

    def _maybe_report_progress(self, state: RunState, previous: int) -> None:
        interval = self._config.progress_interval
        if state.next_index // interval <= previous // interval:
            return
        durations = [result.duration_seconds for result in state.batch_results]
        elapsed = sum(durations)
        rate = state.processed_this_run / elapsed if elapsed > 0 else 0.0
        remaining = state.total_items - state.next_index
        eta_minutes = (remaining / rate) / 60 if rate > 0 else 0.0
        log.info(
            "Progress: %s/%s items (%.0f%%), valid=%s, %.1f items/s, ~%.0f min remaining, "
            "api_errors=%s, database_errors=%s",
            state.next_index,
            state.total_items,
            100 * state.next_index / state.total_items if state.total_items else 100.0,
            state.valid_count,
            rate,
            eta_minutes,
            state.api_errors,
            state.database_errors,
        )


__all__ = ["BatchCoordinator", "PipelineAbortedError", "PipelineInterruptedError"]
