"""Application orchestration entry points."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from itemgraph.adapters.catalog import read_catalog
from itemgraph.adapters.checkpoint_file import FileCheckpointStore
from itemgraph.adapters.market_data import MarketDataClient
from itemgraph.adapters.report_files import EmittedReport, ReportEmitter
from itemgraph.adapters.sqlalchemy import SqlAlchemyGraphStore, configured_engine, startup
from itemgraph.config.env import env_bool
from itemgraph.config.ingest import get_ingest_config
from itemgraph.config.storage import get_graph_database_uri, get_storage_config
from itemgraph.domain.ingest_pipeline import (
    BatchCoordinator,
    GraphWriter,
    PipelineAbortedError,
    build_item_records,
)
from itemgraph.domain.ingest_pipeline.graph_writer import (
    CATEGORY,
    ITEM,
    ITEM_TYPE,
    SUBCATEGORY,
    TIER,
)

if TYPE_CHECKING:
    from pathlib import Path

    from itemgraph.config.ingest import IngestConfig
    from itemgraph.config.storage import StorageConfig
    from itemgraph.domain.ingest_pipeline import RunState
    from itemgraph.domain.ports import GraphStore, ItemValidator

type GraphBackend = Literal["sqlite", "neo4j"]

Sleep = Callable[[float], None]
Monotonic = Callable[[], float]

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IngestRunResult:
    state: RunState
    emitted: EmittedReport


def run_catalog_ingest(
    *,
    catalog_path: Path | None = None,
    output_dir: Path | None = None,
    resume: bool | None = None,
    dry_run: bool = False,
    batch_size: int | None = None,
    graph_batch_size: int | None = None,
    graph_backend: GraphBackend = "sqlite",
    validator: ItemValidator | None = None,
    graph_store: GraphStore | None = None,
    storage: StorageConfig | None = None,
    config: IngestConfig | None = None,
    sleep: Sleep = time.sleep,
    monotonic: Monotonic = time.monotonic,
    stop_requested: Callable[[], bool] | None = None,
) -> IngestRunResult:
    """Parse the catalog, validate it batch by batch and project it into the graph.

    Reports are written both on success and when the run aborts; in the latter
    case the ``PipelineAbortedError`` is re-raised after the reports exist.
    ``stop_requested`` is polled between batches; once it returns True the run
    checkpoints and raises ``PipelineInterruptedError``.
    """

    storage_config = storage or get_storage_config(output_dir=output_dir)
    ingest_config = (config or get_ingest_config()).with_overrides(
        batch_size=batch_size,
        graph_batch_size=graph_batch_size,
        dry_run=dry_run or None,
    )
    should_resume = env_bool("ITEMGRAPH_RESUME") if resume is None else resume

    entries = read_catalog(
        catalog_path,
        search_dir=storage_config.resolve_catalog_dir(),
        locale=ingest_config.locale,
    )
    items = build_item_records(entries)
    log.info(
        "Starting catalog ingest: items=%s, batch_size=%s, graph_batch_size=%s, "
        "resume=%s, dry_run=%s, backend=%s",
        len(items),
        ingest_config.batch_size,
        ingest_config.graph_batch_size,
        should_resume,
        ingest_config.dry_run,
        graph_backend,
    )

    emitter = ReportEmitter(storage_config.ensure_output_dir())
    store, close_store = graph_store, None
    if store is None and not ingest_config.dry_run:
        store, close_store = _open_graph_store(graph_backend, storage_config)
    writer = (
        GraphWriter(store, batch_size=ingest_config.graph_batch_size)
        if store is not None
        else None
    )
    coordinator = BatchCoordinator(
        validator=validator or MarketDataClient(),
        checkpoints=FileCheckpointStore(storage_config.checkpoint_path()),
        writer=writer,
        config=ingest_config,
        sleep=sleep,
        monotonic=monotonic,
        stop_requested=stop_requested,
    )

    started = monotonic()
    try:
        state = coordinator.run(items, resume=should_resume)
    except PipelineAbortedError as exc:
        emitter.emit(exc.state, duration_seconds=monotonic() - started)
        raise
    finally:
        if close_store is not None:
            close_store()

    emitted = emitter.emit(state, duration_seconds=monotonic() - started)
    log.info(
        "Finished catalog ingest: valid=%s, needs_validation=%s, success_rate=%s%%",
        emitted.report.valid_count,
        emitted.report.needs_validation_count,
        emitted.report.success_rate,
    )
    return IngestRunResult(state=state, emitted=emitted)


def _open_graph_store(
    backend: GraphBackend,
    storage: StorageConfig,
) -> tuple[GraphStore, Callable[[], None] | None]:
    if backend == "neo4j":
        from itemgraph.adapters.neo4j_store import Neo4jGraphStore  # noqa: PLC0415
        from itemgraph.config.neo4j import get_neo4j_config  # noqa: PLC0415

        neo4j_store = Neo4jGraphStore.from_config(get_neo4j_config())
        neo4j_store.ensure_constraints((ITEM, CATEGORY, SUBCATEGORY, TIER, ITEM_TYPE))
        return neo4j_store, neo4j_store.close

    engine = configured_engine() or startup(database_uri=get_graph_database_uri(storage=storage))
    log.info("Using SQL graph store at %s", engine.url.render_as_string(hide_password=True))
    return SqlAlchemyGraphStore(engine), None
