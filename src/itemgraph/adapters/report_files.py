"""Write run artefacts (valid items, needs-validation list, run report) as JSON."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from itemgraph.config.storage import (
    NEEDS_VALIDATION_FILENAME,
    REPORT_FILENAME,
    VALID_ITEMS_FILENAME,
)
from itemgraph.domain.ingest_pipeline.report import build_run_report

from .json_files import write_json_atomic

if TYPE_CHECKING:
    from datetime import datetime
    from pathlib import Path

    from itemgraph.domain.ingest_pipeline.report import RunReport
    from itemgraph.domain.ingest_pipeline.state import (
        BatchResult,
        ErrorDetail,
        NeedsValidation,
        RunState,
    )
    from itemgraph.domain.model import ItemRecord

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EmittedReport:
    report: RunReport
    valid_items_path: Path
    needs_validation_path: Path
    report_path: Path


def valid_item_payload(item: ItemRecord) -> dict[str, object]:
    return {
        "id": item.identifier,
        "name": item.raw_display_name,
        "cleanedName": item.canonical_name,
        "category": item.category,
        "tier": item.tier,
        "subcategory": item.subcategory,
        "enchantment": item.enchantment_level,
    }


def needs_validation_payload(entry: NeedsValidation) -> dict[str, object]:
    item = entry.item
    return {
        "id": item.identifier,
        "name": item.raw_display_name,
        "category": item.category,
        "tier": item.tier,
        "subcategory": item.subcategory,
        "reason": entry.reason,
    }


def _error_payload(detail: ErrorDetail) -> dict[str, object]:
    return {
        "type": detail.kind,
        "message": detail.message,
        "batchIndex": detail.batch_index,
        "itemIds": list(detail.item_ids),
        "retryCount": detail.retry_count,
        "timestamp": detail.occurred_at.isoformat(),
    }


def _batch_payload(result: BatchResult) -> dict[str, object]:
    return {
        "batchIndex": result.batch_index,
        "itemCount": result.item_count,
        "validCount": result.valid_count,
        "invalidCount": result.invalid_count,
        "durationSeconds": round(result.duration_seconds, 3),
    }


def report_payload(report: RunReport) -> dict[str, object]:
    return {
        "timestamp": report.generated_at.isoformat(),
        "status": str(report.phase),
        "failure": report.failure,
        "summary": {
            "totalItems": report.total_items,
            "totalItemsProcessed": report.processed,
            "resumedFromIndex": report.resumed_from,
            "validItems": report.valid_count,
            "needsValidationItems": report.needs_validation_count,
            "successRate": report.success_rate,
            "processingTimeSeconds": round(report.duration_seconds),
        },
        "performance": {
            "totalBatches": report.total_batches,
            "averageBatchTimeSeconds": round(report.average_batch_seconds, 3),
            "itemsPerSecond": round(report.items_per_second, 2),
        },
        "errors": {
            "apiErrors": report.api_errors,
            "databaseErrors": report.database_errors,
            "errorDetails": [_error_payload(detail) for detail in report.errors],
        },
        "batchResults": [_batch_payload(result) for result in report.batch_results],
    }


class ReportEmitter:
    """Serialise a run into the output directory.

    The item lists hold what this process handled; when a run was resumed the
    summary counts also include what earlier processes recorded in the
    checkpoint.
    """

    def __init__(self, output_dir: Path) -> None:
        self._output_dir = output_dir

    def emit(
        self,
        state: RunState,
        *,
        duration_seconds: float,
        now: datetime | None = None,
    ) -> EmittedReport:
        report = build_run_report(state, duration_seconds=duration_seconds, now=now)
        timestamp = report.generated_at.isoformat()

        valid_path = self._output_dir / VALID_ITEMS_FILENAME
        write_json_atomic(
            valid_path,
            {
                "timestamp": timestamp,
                "count": len(state.valid_items),
                "items": [valid_item_payload(item) for item in state.valid_items],
            },
        )

        needs_path = self._output_dir / NEEDS_VALIDATION_FILENAME
        write_json_atomic(
            needs_path,
            {
                "timestamp": timestamp,
                "count": len(state.needs_validation),
                "items": [needs_validation_payload(entry) for entry in state.needs_validation],
            },
        )

        report_path = self._output_dir / REPORT_FILENAME
        write_json_atomic(report_path, report_payload(report))

        log.info(
            "Wrote %s (%s items), %s (%s items) and %s",
            valid_path.name,
            len(state.valid_items),
            needs_path.name,
            len(state.needs_validation),
            report_path.name,
        )
        return EmittedReport(
            report=report,
            valid_items_path=valid_path,
            needs_validation_path=needs_path,
            report_path=report_path,
        )
