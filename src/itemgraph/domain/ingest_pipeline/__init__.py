"""Batch ingest pipeline: records, coordination, pacing and graph projection."""

from __future__ import annotations

from .coordinator import BatchCoordinator, PipelineAbortedError, PipelineInterruptedError
from .delays import exponential_backoff, next_delay
from .graph_writer import GraphWriter, GraphWriteResult
from .records import build_item_record, build_item_records
from .report import RunReport, build_run_report
from .state import BatchResult, ErrorDetail, NeedsValidation, RunPhase, RunState

__all__ = [
    "BatchCoordinator",
    "BatchResult",
    "ErrorDetail",
    "GraphWriteResult",
    "GraphWriter",
    "NeedsValidation",
    "PipelineAbortedError",
    "PipelineInterruptedError",
    "RunPhase",
    "RunReport",
    "RunState",
    "build_item_record",
    "build_item_records",
    "build_run_report",
    "exponential_backoff",
    "next_delay",
]
