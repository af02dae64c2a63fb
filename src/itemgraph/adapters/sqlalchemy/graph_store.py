"""SQLAlchemy implementation of the graph store port."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError

from itemgraph.config.storage import get_graph_database_uri
from itemgraph.domain.ports.graph import GraphStore, GraphStoreError

from .tables import create_all_tables, graph_edge_table, graph_node_table

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence

    from sqlalchemy.engine import Connection, Engine

    from itemgraph.domain.ports.graph import NodeKey, NodeProperties, NodeRef

log = getLogger(__name__)

_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class StartupError(RuntimeError):
    """Raised when the SQLAlchemy graph store is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    engine: Engine | None = None


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Create the engine and the graph tables."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy graph store already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(database_uri or get_graph_database_uri())
    if resolved_engine.dialect.name not in _INSERTS:
        raise StartupError(f"Unsupported database dialect: {resolved_engine.dialect.name}")
    create_all_tables(resolved_engine)
    _STATE.engine = resolved_engine
    return resolved_engine


def configured_engine() -> Engine | None:
    return _STATE.engine


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class SqlAlchemyGraphStore:
    """Property graph kept in two tables: ``graph_node`` and ``graph_edge``.

    Nodes are unique per ``(label, key value)``; repeated upserts merge new
    properties over stored ones. Edges are unique per type and endpoint pair,
    and are only created when both endpoint nodes exist.
    """

    def __init__(self, engine: Engine | None = None) -> None:
        resolved = engine or _STATE.engine
        if resolved is None:
            raise StartupError(
                "SQLAlchemy graph store not initialised. Call "
                "itemgraph.adapters.sqlalchemy.startup() or pass an engine."
            )
        self._engine = resolved
        self._insert = _INSERTS[resolved.dialect.name]

    def upsert_nodes(self, label: str, key: str, rows: Sequence[NodeProperties]) -> int:
        if not rows:
            return 0
        payloads: dict[str, dict[str, object]] = {}
        for row in rows:
            if row.get(key) is None:
                raise GraphStoreError(f"{label} row is missing key property {key!r}")
            payloads[str(row[key])] = dict(row)

        try:
            with self._engine.begin() as conn:
                existing = conn.execute(
                    select(graph_node_table.c.key, graph_node_table.c.properties).where(
                        graph_node_table.c.label == label,
                        graph_node_table.c.key.in_(list(payloads)),
                    )
                ).all()
                for node_key, properties in existing:
                    payloads[node_key] = {**properties, **payloads[node_key]}

                stmt = self._insert(graph_node_table).values(
                    [
                        {"label": label, "key": node_key, "properties": properties}
                        for node_key, properties in payloads.items()
                    ]
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=["label", "key"],
                    set_={"properties": stmt.excluded.properties},
                )
                conn.execute(stmt)
        except SQLAlchemyError as exc:
            raise GraphStoreError(f"Upserting {len(payloads)} {label} nodes failed: {exc}") from exc
        return len(payloads)

    def upsert_edges(
        self,
        rel_type: str,
        start: NodeRef,
        end: NodeRef,
        pairs: Sequence[tuple[NodeKey, NodeKey]],
    ) -> int:
        if not pairs:
            return 0
        wanted = list(dict.fromkeys((str(start_key), str(end_key)) for start_key, end_key in pairs))

        try:
            with self._engine.begin() as conn:
                start_ids = _node_ids(conn, start.label, {pair[0] for pair in wanted})
                end_ids = _node_ids(conn, end.label, {pair[1] for pair in wanted})
                values = [
                    {"rel_type": rel_type, "start_id": start_ids[s], "end_id": end_ids[e]}
                    for s, e in wanted
                    if s in start_ids and e in end_ids
                ]
                if values:
                    stmt = self._insert(graph_edge_table).values(values)
                    stmt = stmt.on_conflict_do_nothing(
                        index_elements=["rel_type", "start_id", "end_id"]
                    )
                    conn.execute(stmt)
        except SQLAlchemyError as exc:
            msg = f"Upserting {len(wanted)} {rel_type} edges failed: {exc}"
            raise GraphStoreError(msg) from exc

        skipped = len(wanted) - len(values)
        if skipped:
            log.warning("Skipped %s %s edges with missing endpoints", skipped, rel_type)
        return len(values)

    def count_nodes(self, label: str | None = None) -> int:
        stmt = select(func.count()).select_from(graph_node_table)
        if label is not None:
            stmt = stmt.where(graph_node_table.c.label == label)
        with self._engine.connect() as conn:
            return conn.execute(stmt).scalar_one()

    def count_edges(self, rel_type: str | None = None) -> int:
        stmt = select(func.count()).select_from(graph_edge_table)
        if rel_type is not None:
            stmt = stmt.where(graph_edge_table.c.rel_type == rel_type)
        with self._engine.connect() as conn:
            return conn.execute(stmt).scalar_one()

    def get_node(self, label: str, key_value: NodeKey) -> dict[str, object] | None:
        stmt = select(graph_node_table.c.properties).where(
            graph_node_table.c.label == label,
            graph_node_table.c.key == str(key_value),
        )
        with self._engine.connect() as conn:
            properties = conn.execute(stmt).scalar_one_or_none()
        return dict(properties) if properties is not None else None

    def neighbours(self, rel_type: str, start: NodeRef, key_value: NodeKey) -> list[str]:
        """Return the key values of nodes reached from one node over ``rel_type``."""

        start_node = graph_node_table.alias("start_node")
        end_node = graph_node_table.alias("end_node")
        stmt = (
            select(end_node.c.key)
            .select_from(graph_edge_table)
            .join(start_node, graph_edge_table.c.start_id == start_node.c.id)
            .join(end_node, graph_edge_table.c.end_id == end_node.c.id)
            .where(
                graph_edge_table.c.rel_type == rel_type,
                start_node.c.label == start.label,
                start_node.c.key == str(key_value),
            )
            .order_by(end_node.c.key)
        )
        with self._engine.connect() as conn:
            return list(conn.execute(stmt).scalars())


def _node_ids(conn: Connection, label: str, keys: Collection[str]) -> dict[str, int]:
    rows = conn.execute(
        select(graph_node_table.c.key, graph_node_table.c.id).where(
            graph_node_table.c.label == label,
            graph_node_table.c.key.in_(list(keys)),
        )
    ).all()
    return {node_key: node_id for node_key, node_id in rows}


if TYPE_CHECKING:
    _store_check: GraphStore = SqlAlchemyGraphStore()
