"""Domain port definitions for adapters."""

from __future__ import annotations

from .checkpoint import CheckpointStore
from .graph import GraphStore, GraphStoreError, NodeKey, NodeProperties, NodeRef
from .validation import ItemValidator

__all__ = [
    "CheckpointStore",
    "GraphStore",
    "GraphStoreError",
    "ItemValidator",
    "NodeKey",
    "NodeProperties",
    "NodeRef",
]
