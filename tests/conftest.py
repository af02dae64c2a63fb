from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.pool import StaticPool

from itemgraph.adapters.sqlalchemy import SqlAlchemyGraphStore, create_all_tables, shutdown
from itemgraph.config import StorageConfig

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith(("ITEMGRAPH_", "NEO4J_")):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()
        shutdown()


@pytest.fixture
def graph_store(sqlite_engine: Engine) -> SqlAlchemyGraphStore:
    return SqlAlchemyGraphStore(sqlite_engine)


@pytest.fixture
def storage_config(tmp_path: Path) -> StorageConfig:
    return StorageConfig(
        data_dir=tmp_path / "data",
        output_dir=tmp_path / "outputs",
        catalog_dir=tmp_path,
    )
