"""Batch sizing, pacing and checkpoint defaults for catalog ingest runs."""

from __future__ import annotations

from dataclasses import dataclass, replace

from .env import env_float, env_int, env_str
from .errors import ConfigurationError

DEFAULT_VALIDATION_BATCH_SIZE = 200
MAX_VALIDATION_BATCH_SIZE = 500
DEFAULT_GRAPH_BATCH_SIZE = 25
MAX_GRAPH_BATCH_SIZE = 50
DEFAULT_BASE_DELAY_SECONDS = 3.0
DEFAULT_MAX_DELAY_SECONDS = 15.0
DEFAULT_BATCH_RETRIES = 3
DEFAULT_BATCH_RETRY_DELAY_SECONDS = 2.0
DEFAULT_CHECKPOINT_INTERVAL = 1000
DEFAULT_PROGRESS_INTERVAL = 500
DEFAULT_LOCALE = "EN-US"


@dataclass(frozen=True, slots=True)
class IngestConfig:
    """Knobs for a single ingest run.

    ``batch_size`` (API validation) and ``graph_batch_size`` (graph writes) are
    tuned independently; graph transactions cost more per item.
    """

    batch_size: int = DEFAULT_VALIDATION_BATCH_SIZE
    graph_batch_size: int = DEFAULT_GRAPH_BATCH_SIZE
    base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS
    max_delay_seconds: float = DEFAULT_MAX_DELAY_SECONDS
    batch_retries: int = DEFAULT_BATCH_RETRIES
    batch_retry_delay_seconds: float = DEFAULT_BATCH_RETRY_DELAY_SECONDS
    checkpoint_interval: int = DEFAULT_CHECKPOINT_INTERVAL
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL
    locale: str = DEFAULT_LOCALE
    dry_run: bool = False

    def __post_init__(self) -> None:
        if not 1 <= self.batch_size <= MAX_VALIDATION_BATCH_SIZE:
            raise ConfigurationError(
                f"batch_size must be between 1 and {MAX_VALIDATION_BATCH_SIZE}"
            )
        if not 1 <= self.graph_batch_size <= MAX_GRAPH_BATCH_SIZE:
            raise ConfigurationError(
                f"graph_batch_size must be between 1 and {MAX_GRAPH_BATCH_SIZE}"
            )
        if self.checkpoint_interval < 1 or self.progress_interval < 1:
            raise ConfigurationError("checkpoint and progress intervals must be positive")
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ConfigurationError("max_delay_seconds must not be below base_delay_seconds")

    def with_overrides(
        self,
        *,
        batch_size: int | None = None,
        graph_batch_size: int | None = None,
        dry_run: bool | None = None,
    ) -> IngestConfig:
        return replace(
            self,
            batch_size=self.batch_size if batch_size is None else batch_size,
            graph_batch_size=(
                self.graph_batch_size if graph_batch_size is None else graph_batch_size
            ),
            dry_run=self.dry_run if dry_run is None else dry_run,
        )


def get_ingest_config() -> IngestConfig:
    return IngestConfig(
        batch_size=env_int("ITEMGRAPH_BATCH_SIZE", DEFAULT_VALIDATION_BATCH_SIZE),
        graph_batch_size=env_int("ITEMGRAPH_GRAPH_BATCH_SIZE", DEFAULT_GRAPH_BATCH_SIZE),
        base_delay_seconds=env_float("ITEMGRAPH_BATCH_DELAY", DEFAULT_BASE_DELAY_SECONDS),
        max_delay_seconds=env_float("ITEMGRAPH_MAX_BATCH_DELAY", DEFAULT_MAX_DELAY_SECONDS),
        checkpoint_interval=env_int(
            "ITEMGRAPH_CHECKPOINT_INTERVAL", DEFAULT_CHECKPOINT_INTERVAL, minimum=1
        ),
        locale=env_str("ITEMGRAPH_LOCALE", DEFAULT_LOCALE),
    )
