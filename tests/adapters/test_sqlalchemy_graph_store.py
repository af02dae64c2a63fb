from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest

from itemgraph.adapters.sqlalchemy import (
    SqlAlchemyGraphStore,
    StartupError,
    configured_engine,
    shutdown,
    startup,
)
from itemgraph.domain.ingest_pipeline import GraphWriter
from itemgraph.domain.ports import GraphStoreError, NodeRef
from tests.helpers.items import make_item

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

ITEM = NodeRef("Item", "id")
CATEGORY = NodeRef("Category", "name")
TIER = NodeRef("Tier", "level")


def test_upsert_nodes_merges_properties(graph_store: SqlAlchemyGraphStore) -> None:
    graph_store.upsert_nodes("Item", "id", [{"id": "T4_HIDE", "name": "Hide", "tier": 4}])
    graph_store.upsert_nodes("Item", "id", [{"id": "T4_HIDE", "name": "Rugged Hide"}])

    assert graph_store.count_nodes("Item") == 1
    assert graph_store.get_node("Item", "T4_HIDE") == {
        "id": "T4_HIDE",
        "name": "Rugged Hide",
        "tier": 4,
    }


def test_nodes_with_same_key_and_different_labels_are_distinct(
    graph_store: SqlAlchemyGraphStore,
) -> None:
    graph_store.upsert_nodes("Category", "name", [{"name": "leather"}])
    graph_store.upsert_nodes("Subcategory", "name", [{"name": "leather"}])

    assert graph_store.count_nodes() == 2
    assert graph_store.count_nodes("Category") == 1


def test_upsert_nodes_requires_key(graph_store: SqlAlchemyGraphStore) -> None:
    with pytest.raises(GraphStoreError, match="missing key property"):
        graph_store.upsert_nodes("Item", "id", [{"name": "anonymous"}])


def test_upsert_edges_is_idempotent(graph_store: SqlAlchemyGraphStore) -> None:
    graph_store.upsert_nodes("Item", "id", [{"id": "T4_HIDE"}, {"id": "T5_HIDE"}])
    graph_store.upsert_nodes("Category", "name", [{"name": "resource"}])
    pairs = [("T4_HIDE", "resource"), ("T5_HIDE", "resource"), ("T4_HIDE", "resource")]

    first = graph_store.upsert_edges("BELONGS_TO", ITEM, CATEGORY, pairs)
    second = graph_store.upsert_edges("BELONGS_TO", ITEM, CATEGORY, pairs)

    assert first == second == 2
    assert graph_store.count_edges("BELONGS_TO") == 2
    assert graph_store.neighbours("BELONGS_TO", ITEM, "T4_HIDE") == ["resource"]


def test_upsert_edges_accepts_integer_keys(graph_store: SqlAlchemyGraphStore) -> None:
    graph_store.upsert_nodes("Item", "id", [{"id": "T4_HIDE"}])
    graph_store.upsert_nodes("Tier", "level", [{"level": 4, "name": "Tier 4"}])

    written = graph_store.upsert_edges("HAS_TIER", ITEM, TIER, [("T4_HIDE", 4)])

    assert written == 1
    assert graph_store.neighbours("HAS_TIER", ITEM, "T4_HIDE") == ["4"]
    assert graph_store.get_node("Tier", 4) == {"level": 4, "name": "Tier 4"}


def test_upsert_edges_skips_missing_endpoints(
    graph_store: SqlAlchemyGraphStore,
    caplog: pytest.LogCaptureFixture,
) -> None:
    graph_store.upsert_nodes("Item", "id", [{"id": "T4_HIDE"}])

    with caplog.at_level(logging.WARNING):
        written = graph_store.upsert_edges(
            "BELONGS_TO", ITEM, CATEGORY, [("T4_HIDE", "resource")]
        )

    assert written == 0
    assert graph_store.count_edges() == 0
    assert "missing endpoints" in caplog.text


def test_graph_writer_projection_is_idempotent(graph_store: SqlAlchemyGraphStore) -> None:
    items = [
        make_item("T4_HIDE", "Adept's Rugged Hide"),
        make_item("T4_HIDE@1", "Adept's Rugged Hide @1"),
        make_item("T5_2H_CLAYMORE", "Expert's Claymore"),
    ]
    writer = GraphWriter(graph_store, clock=lambda: datetime(2025, 3, 1, tzinfo=UTC))

    first = writer.write(items)
    counts = (graph_store.count_nodes(), graph_store.count_edges())
    second = writer.write(items)

    assert first.ok
    assert second.ok
    assert counts == (11, 13)
    assert (graph_store.count_nodes(), graph_store.count_edges()) == counts
    assert graph_store.neighbours("ENCHANTED_FROM", ITEM, "T4_HIDE@1") == ["T4_HIDE"]


def test_startup_registers_engine_once(sqlite_engine: Engine) -> None:
    assert startup(engine=sqlite_engine) is sqlite_engine
    assert configured_engine() is sqlite_engine

    with pytest.raises(StartupError, match="already initialised"):
        startup(engine=sqlite_engine)

    assert startup(engine=sqlite_engine, force=True) is sqlite_engine
    assert isinstance(SqlAlchemyGraphStore(), SqlAlchemyGraphStore)


def test_store_without_engine_requires_startup() -> None:
    shutdown()

    with pytest.raises(StartupError, match="not initialised"):
        SqlAlchemyGraphStore()
