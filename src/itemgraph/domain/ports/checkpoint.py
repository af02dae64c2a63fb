"""Port for the durable checkpoint used to resume interrupted runs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from itemgraph.domain.model import BatchCheckpoint


@runtime_checkable
class CheckpointStore(Protocol):
    """Single-slot checkpoint persistence.

    ``load`` returns ``None`` both when nothing was saved and when the stored
    payload cannot be parsed.
    """

    def load(self) -> BatchCheckpoint | None: ...

    def save(self, checkpoint: BatchCheckpoint) -> None: ...

    def clear(self) -> None: ...


__all__ = ["CheckpointStore"]
