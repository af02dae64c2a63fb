from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest

from itemgraph.domain.ingest_pipeline import GraphWriter
from itemgraph.domain.ingest_pipeline.graph_writer import enchantment_pairs, item_properties
from tests.helpers.items import FakeGraphStore, make_item

if TYPE_CHECKING:
    from itemgraph.domain.model import ItemRecord

FIXED_NOW = datetime(2025, 3, 1, 12, tzinfo=UTC)


def _items() -> list[ItemRecord]:
    return [
        make_item("T4_HIDE", "Adept's Rugged Hide"),
        make_item("T4_HIDE@1", "Adept's Rugged Hide @1"),
        make_item("T5_2H_CLAYMORE", "Expert's Claymore"),
    ]


def _writer(store: FakeGraphStore, *, batch_size: int = 25) -> GraphWriter:
    return GraphWriter(store, batch_size=batch_size, clock=lambda: FIXED_NOW)


def test_write_projects_items_and_taxonomy() -> None:
    store = FakeGraphStore()

    result = _writer(store).write(_items())

    assert result.ok
    assert result.items_written == 3
    assert result.edges_written == 13
    assert store.count_nodes("Item") == 3
    assert store.count_nodes("Category") == 2
    assert store.count_nodes("Subcategory") == 2
    assert store.count_nodes("Tier") == 2
    assert store.count_nodes("ItemType") == 2
    assert ("ENCHANTED_FROM", "Item", "T4_HIDE@1", "Item", "T4_HIDE") in store.edges
    assert ("HAS_TIER", "Item", "T5_2H_CLAYMORE", "Tier", "5") in store.edges
    assert store.nodes[("Tier", "4")] == {"level": 4, "name": "Tier 4"}


def test_item_node_carries_canonical_and_raw_names() -> None:
    store = FakeGraphStore()

    _writer(store).write(_items())

    node = store.nodes[("Item", "T4_HIDE@1")]
    assert node["name"] == "Rugged Hide"
    assert node["original_name"] == "Adept's Rugged Hide @1"
    assert node["enchantment"] == 1
    assert node["last_updated"] == FIXED_NOW.isoformat()


def test_write_is_idempotent() -> None:
    store = FakeGraphStore()
    writer = _writer(store)

    writer.write(_items())
    nodes, edges = store.count_nodes(), store.count_edges()
    writer.write(_items())

    assert store.count_nodes() == nodes
    assert store.count_edges() == edges


def test_untiered_items_get_no_tier_edge() -> None:
    store = FakeGraphStore()

    _writer(store).write([make_item("UNIQUE_HIDEOUT", "Hideout")])

    assert store.count_nodes("Tier") == 0
    assert store.count_edges("HAS_TIER") == 0
    assert store.count_edges("BELONGS_TO") == 1


def test_failed_sub_batch_does_not_stop_later_ones() -> None:
    def fail_on_base_hide(label: str, rows: Sequence[object]) -> bool:
        return label == "Item" and any(
            isinstance(row, dict) and row.get("id") == "T4_HIDE" for row in rows
        )

    store = FakeGraphStore(fail_on=fail_on_base_hide)

    result = _writer(store, batch_size=1).write(_items())

    assert not result.ok
    assert result.failed_batches == 1
    assert result.failed_item_ids == ["T4_HIDE"]
    assert result.items_written == 2
    assert store.count_edges("ENCHANTED_FROM") == 0


def test_enchantment_pairs_need_base_in_batch() -> None:
    items = [make_item("T4_HIDE@1"), make_item("T5_HIDE@2"), make_item("T5_HIDE")]

    assert enchantment_pairs(items) == [("T5_HIDE@2", "T5_HIDE")]


def test_item_properties_shape() -> None:
    properties = item_properties(make_item("T5_HIDE@1", "Rugged Hide"), updated_at=FIXED_NOW)

    assert properties == {
        "id": "T5_HIDE@1",
        "name": "Rugged Hide",
        "original_name": "Rugged Hide",
        "category": "resource",
        "subcategory": "leather",
        "tier": 5,
        "enchantment": 1,
        "item_type": "Hide",
        "last_updated": "2025-03-01T12:00:00+00:00",
    }


def test_writer_rejects_non_positive_batch_size() -> None:
    with pytest.raises(ValueError, match="batch_size"):
        GraphWriter(FakeGraphStore(), batch_size=0)
