"""SQLAlchemy adapter package for the graph store."""

from __future__ import annotations

from .graph_store import (
    SqlAlchemyGraphStore,
    StartupError,
    configured_engine,
    shutdown,
    startup,
)
from .tables import create_all_tables, graph_edge_table, graph_node_table, metadata

__all__ = [
    "SqlAlchemyGraphStore",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "graph_edge_table",
    "graph_node_table",
    "metadata",
    "shutdown",
    "startup",
]
