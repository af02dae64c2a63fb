"""Relational layout of the property graph."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    UniqueConstraint,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = getLogger(__name__)

metadata = MetaData()

graph_node_table = Table(
    "graph_node",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("label", String(64), nullable=False),
    # key property value, stringified so Tier levels and identifiers share one column
    Column("key", String(255), nullable=False),
    Column("properties", JSON, nullable=False),
    UniqueConstraint("label", "key", name="uq_graph_node_label_key"),
)

graph_edge_table = Table(
    "graph_edge",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("rel_type", String(64), nullable=False),
    Column(
        "start_id",
        Integer,
        ForeignKey("graph_node.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "end_id",
        Integer,
        ForeignKey("graph_node.id", ondelete="CASCADE"),
        nullable=False,
    ),
    UniqueConstraint("rel_type", "start_id", "end_id", name="uq_graph_edge_endpoints"),
    Index("ix_graph_edge_end", "end_id", "rel_type"),
)


def create_all_tables(engine: Engine) -> None:
    """Create the graph tables if they do not exist yet."""

    log.info("Creating graph tables")
    metadata.create_all(engine)
