"""Ports for the graph store consumed by the graph writer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


class GraphStoreError(RuntimeError):
    """Raised by graph store adapters when a write cannot be applied."""


@dataclass(frozen=True, slots=True)
class NodeRef:
    """Address of a node by label and unique key property."""

    label: str
    key: str


type NodeKey = str | int
type NodeProperties = Mapping[str, object]


@runtime_checkable
class GraphStore(Protocol):
    """Upsert contract for a property graph.

    Both upserts must be safe to call repeatedly with identical arguments: a
    node is identified by ``(label, key property value)`` and an edge by its
    type plus both endpoint keys.
    """

    def upsert_nodes(self, label: str, key: str, rows: Sequence[NodeProperties]) -> int: ...

    def upsert_edges(
        self,
        rel_type: str,
        start: NodeRef,
        end: NodeRef,
        pairs: Sequence[tuple[NodeKey, NodeKey]],
    ) -> int: ...

    def count_nodes(self, label: str | None = None) -> int: ...

    def count_edges(self, rel_type: str | None = None) -> int: ...


__all__ = ["GraphStore", "GraphStoreError", "NodeKey", "NodeProperties", "NodeRef"]
