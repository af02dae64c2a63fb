"""Idempotent projection of validated items into the graph store."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Final

from itemgraph.domain.ports.graph import GraphStoreError, NodeRef
from itemgraph.domain.taxonomy import base_identifier

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from itemgraph.domain.model import ItemRecord
    from itemgraph.domain.ports.graph import GraphStore, NodeKey, NodeProperties

log = getLogger(__name__)

ITEM: Final = NodeRef("Item", "id")
CATEGORY: Final = NodeRef("Category", "name")
SUBCATEGORY: Final = NodeRef("Subcategory", "name")
TIER: Final = NodeRef("Tier", "level")
ITEM_TYPE: Final = NodeRef("ItemType", "name")

BELONGS_TO: Final = "BELONGS_TO"
HAS_SUBCATEGORY: Final = "HAS_SUBCATEGORY"
HAS_TIER: Final = "HAS_TIER"
IS_TYPE: Final = "IS_TYPE"
ENCHANTED_FROM: Final = "ENCHANTED_FROM"

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class GraphWriteResult:
    """Counters for one ``GraphWriter.write`` call."""

    items_written: int = 0
    edges_written: int = 0
    failed_batches: int = 0
    failed_item_ids: list[str] = field(default_factory=list[str])
    errors: list[str] = field(default_factory=list[str])

    @property
    def ok(self) -> bool:
        return self.failed_batches == 0


def item_properties(item: ItemRecord, *, updated_at: datetime) -> dict[str, object]:
    return {
        "id": item.identifier,
        "name": item.canonical_name,
        "original_name": item.raw_display_name,
        "category": item.category,
        "subcategory": item.subcategory,
        "tier": item.tier,
        "enchantment": item.enchantment_level,
        "item_type": item.type_label,
        "last_updated": updated_at.isoformat(),
    }


def enchantment_pairs(items: Sequence[ItemRecord]) -> list[tuple[str, str]]:
    """Pair each enchanted item with its base when the base is in ``items``."""

    present = {item.identifier for item in items}
    pairs: list[tuple[str, str]] = []
    for item in items:
        if not item.is_enchanted:
            continue
        base_id = base_identifier(item.identifier)
        if base_id != item.identifier and base_id in present:
            pairs.append((item.identifier, base_id))
    return pairs


class GraphWriter:
    """Write validated items and their taxonomy edges in small sub-batches.

    A sub-batch that fails is logged and counted; later sub-batches still run.
    Enchantment edges are written last, only between items whose sub-batches
    succeeded.
    """

    def __init__(
        self,
        store: GraphStore,
        *,
        batch_size: int = 25,
        clock: Clock = _utcnow,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self._store = store
        self._batch_size = batch_size
        self._clock = clock

    def write(self, items: Sequence[ItemRecord]) -> GraphWriteResult:
        result = GraphWriteResult()
        unique = list({item.identifier: item for item in items}.values())
        written: list[ItemRecord] = []

        for offset in range(0, len(unique), self._batch_size):
            chunk = unique[offset : offset + self._batch_size]
            try:
                result.edges_written += self._write_chunk(chunk)
            except GraphStoreError as exc:
                log.error(  # noqa: TRY400
                    "Graph write failed for items %s..%s: %s",
                    chunk[0].identifier,
                    chunk[-1].identifier,
                    exc,
                )
                result.failed_batches += 1
                result.failed_item_ids.extend(item.identifier for item in chunk)
                result.errors.append(str(exc))
                continue
            written.extend(chunk)
            result.items_written += len(chunk)

        result.edges_written += self._write_enchantments(written, result)
        return result

    def _write_chunk(self, chunk: Sequence[ItemRecord]) -> int:
        updated_at = self._clock()
        self._store.upsert_nodes(
            ITEM.label,
            ITEM.key,
            [item_properties(item, updated_at=updated_at) for item in chunk],
        )

        edges = 0
        edges += self._link(
            chunk, CATEGORY, BELONGS_TO, lambda item: item.category, _named_node
        )
        edges += self._link(
            chunk, SUBCATEGORY, HAS_SUBCATEGORY, lambda item: item.subcategory, _named_node
        )
        edges += self._link(
            [item for item in chunk if item.tier > 0],
            TIER,
            HAS_TIER,
            lambda item: item.tier,
            _tier_node,
        )
        edges += self._link(
            [item for item in chunk if item.type_label],
            ITEM_TYPE,
            IS_TYPE,
            lambda item: item.type_label,
            _named_node,
        )
        return edges

    def _link[TKey: (str, int)](
        self,
        items: Sequence[ItemRecord],
        target: NodeRef,
        rel_type: str,
        key_of: Callable[[ItemRecord], TKey],
        node_of: Callable[[TKey], NodeProperties],
    ) -> int:
        if not items:
            return 0
        values = _distinct(key_of(item) for item in items)
        self._store.upsert_nodes(target.label, target.key, [node_of(value) for value in values])
        pairs: list[tuple[NodeKey, NodeKey]] = [
            (item.identifier, key_of(item)) for item in items
        ]
        return self._store.upsert_edges(rel_type, ITEM, target, pairs)

    def _write_enchantments(self, written: Sequence[ItemRecord], result: GraphWriteResult) -> int:
        pairs = enchantment_pairs(written)
        if not pairs:
            return 0
        edges = 0
        for offset in range(0, len(pairs), self._batch_size):
            chunk: list[tuple[NodeKey, NodeKey]] = list(pairs[offset : offset + self._batch_size])
            try:
                edges += self._store.upsert_edges(ENCHANTED_FROM, ITEM, ITEM, chunk)
            except GraphStoreError as exc:
                log.error("Enchantment edge write failed: %s", exc)  # noqa: TRY400
                result.failed_batches += 1
                result.errors.append(str(exc))
        return edges


def _distinct[T](values: Iterable[T]) -> list[T]:
    return list(dict.fromkeys(values))


def _named_node(name: str) -> NodeProperties:
    return {"name": name}


def _tier_node(level: int) -> NodeProperties:
    return {"level": level, "name": f"Tier {level}"}
