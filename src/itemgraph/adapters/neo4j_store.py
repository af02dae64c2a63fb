"""Neo4j implementation of the graph store port.

Imported only when the neo4j backend is selected; needs the ``neo4j`` extra.
"""

from __future__ import annotations

import re
from logging import getLogger
from typing import TYPE_CHECKING, Final

from neo4j import GraphDatabase
from neo4j.exceptions import DriverError, Neo4jError

from itemgraph.domain.ports.graph import GraphStore, GraphStoreError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from neo4j import Driver, ManagedTransaction

    from itemgraph.config.neo4j import Neo4jConfig
    from itemgraph.domain.ports.graph import NodeKey, NodeProperties, NodeRef

log = getLogger(__name__)

_IDENTIFIER: Final = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _checked(name: str) -> str:
    # labels, property keys and relationship types cannot be query parameters
    if not _IDENTIFIER.match(name):
        raise GraphStoreError(f"Invalid graph identifier: {name!r}")
    return name


def open_driver(config: Neo4jConfig) -> Driver:
    return GraphDatabase.driver(config.uri, auth=(config.user, config.password))


class Neo4jGraphStore:
    """Write nodes and edges with ``UNWIND ... MERGE`` in one transaction per call."""

    def __init__(self, driver: Driver, *, database: str | None = None) -> None:
        self._driver = driver
        self._database = database

    @classmethod
    def from_config(cls, config: Neo4jConfig) -> Neo4jGraphStore:
        return cls(open_driver(config), database=config.database)

    def close(self) -> None:
        self._driver.close()

    def ensure_constraints(self, refs: Iterable[NodeRef]) -> None:
        for ref in refs:
            label, key = _checked(ref.label), _checked(ref.key)
            query = (
                f"CREATE CONSTRAINT {label.lower()}_{key}_unique IF NOT EXISTS "
                f"FOR (n:{label}) REQUIRE n.{key} IS UNIQUE"
            )
            self._write(query, {})
            log.debug("Ensured uniqueness constraint on :%s(%s)", label, key)

    def upsert_nodes(self, label: str, key: str, rows: Sequence[NodeProperties]) -> int:
        if not rows:
            return 0
        label, key = _checked(label), _checked(key)
        query = (
            "UNWIND $rows AS row "
            f"MERGE (n:{label} {{{key}: row.{key}}}) "
            "SET n += row "
            "RETURN count(n) AS written"
        )
        return self._write(query, {"rows": [dict(row) for row in rows]})

    def upsert_edges(
        self,
        rel_type: str,
        start: NodeRef,
        end: NodeRef,
        pairs: Sequence[tuple[NodeKey, NodeKey]],
    ) -> int:
        if not pairs:
            return 0
        query = (
            "UNWIND $pairs AS pair "
            f"MATCH (a:{_checked(start.label)} {{{_checked(start.key)}: pair.start}}) "
            f"MATCH (b:{_checked(end.label)} {{{_checked(end.key)}: pair.end}}) "
            f"MERGE (a)-[r:{_checked(rel_type)}]->(b) "
            "RETURN count(r) AS written"
        )
        rows = [{"start": start_key, "end": end_key} for start_key, end_key in pairs]
        return self._write(query, {"pairs": rows})

    def count_nodes(self, label: str | None = None) -> int:
        pattern = f"(n:{_checked(label)})" if label else "(n)"
        return self._read(f"MATCH {pattern} RETURN count(n) AS total")

    def count_edges(self, rel_type: str | None = None) -> int:
        pattern = f"()-[r:{_checked(rel_type)}]->()" if rel_type else "()-[r]->()"
        return self._read(f"MATCH {pattern} RETURN count(r) AS total")

    def _write(self, query: str, parameters: dict[str, object]) -> int:
        def work(tx: ManagedTransaction) -> int:
            record = tx.run(query, parameters).single()
            return int(record[0]) if record is not None else 0

        try:
            with self._driver.session(database=self._database) as session:
                return session.execute_write(work)
        except (Neo4jError, DriverError) as exc:
            raise GraphStoreError(f"Neo4j write failed: {exc}") from exc

    def _read(self, query: str) -> int:
        def work(tx: ManagedTransaction) -> int:
            record = tx.run(query).single()
            return int(record[0]) if record is not None else 0

        try:
            with self._driver.session(database=self._database) as session:
                return session.execute_read(work)
        except (Neo4jError, DriverError) as exc:
            raise GraphStoreError(f"Neo4j read failed: {exc}") from exc


if TYPE_CHECKING:
    _store_check: GraphStore = Neo4jGraphStore(GraphDatabase.driver("bolt://localhost"))
