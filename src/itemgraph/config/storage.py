"""Filesystem locations for catalogs, outputs, checkpoints and the graph database."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "itemgraph"
DEFAULT_GRAPH_DB_FILENAME: Final[str] = "item-graph.db"
OUTPUTS_DIR_NAME: Final[str] = "outputs"
CHECKPOINT_FILENAME: Final[str] = "processing-progress.json"
VALID_ITEMS_FILENAME: Final[str] = "valid-items.json"
NEEDS_VALIDATION_FILENAME: Final[str] = "needs-validation.json"
REPORT_FILENAME: Final[str] = "processing-report.json"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    output_dir: Path | None = None
    catalog_dir: Path | None = None
    graph_db_filename: str = DEFAULT_GRAPH_DB_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def ensure_data_dir(self) -> Path:
        data_dir = self.resolve_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def resolve_output_dir(self) -> Path:
        if self.output_dir is not None:
            return self.output_dir.expanduser().resolve()
        return self.resolve_data_dir() / OUTPUTS_DIR_NAME

    def ensure_output_dir(self) -> Path:
        output_dir = self.resolve_output_dir()
        output_dir.mkdir(parents=True, exist_ok=True)
        return output_dir

    def resolve_catalog_dir(self) -> Path:
        if self.catalog_dir is not None:
            return self.catalog_dir.expanduser().resolve()
        return Path.cwd()

    def checkpoint_path(self) -> Path:
        return self.resolve_output_dir() / CHECKPOINT_FILENAME

    def graph_db_path(self, *, ensure: bool = True) -> Path:
        base = self.ensure_data_dir() if ensure else self.resolve_data_dir()
        return base / self.graph_db_filename

    def graph_database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.graph_db_path()}"


def _default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def get_storage_config(*, output_dir: Path | None = None) -> StorageConfig:
    env_dir = os.getenv("ITEMGRAPH_DATA_DIR")
    data_dir = Path(env_dir) if env_dir else _default_data_dir()
    env_output = os.getenv("ITEMGRAPH_OUTPUT_DIR")
    resolved_output = output_dir or (Path(env_output) if env_output else None)
    env_catalog = os.getenv("ITEMGRAPH_CATALOG_DIR")
    return StorageConfig(
        data_dir=data_dir,
        output_dir=resolved_output,
        catalog_dir=Path(env_catalog) if env_catalog else None,
    )


def get_graph_database_uri(*, storage: StorageConfig | None = None) -> str:
    env_uri = os.getenv("ITEMGRAPH_GRAPH_DATABASE_URI")
    if env_uri:
        return env_uri
    storage_config = storage or get_storage_config()
    return storage_config.graph_database_uri()
