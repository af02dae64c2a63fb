"""JSON file implementation of the checkpoint port."""

from __future__ import annotations

import json
from datetime import datetime
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from itemgraph.domain.model import BatchCheckpoint

from .json_files import write_json_atomic

if TYPE_CHECKING:
    from pathlib import Path

log = getLogger(__name__)


class CheckpointPayload(BaseModel):
    """On-disk shape of ``processing-progress.json``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    saved_at: datetime | None = Field(default=None, alias="savedAt")
    last_processed_index: int = Field(alias="lastProcessedIndex", ge=0)
    total_items: int = Field(alias="totalItems", ge=0)
    valid_count: int = Field(default=0, alias="validCount", ge=0)
    needs_validation_count: int = Field(default=0, alias="needsValidationCount", ge=0)
    error_count: int = Field(default=0, alias="errorCount", ge=0)

    @classmethod
    def from_checkpoint(cls, checkpoint: BatchCheckpoint) -> CheckpointPayload:
        return cls(
            saved_at=checkpoint.saved_at,
            last_processed_index=checkpoint.last_processed_index,
            total_items=checkpoint.total_items,
            valid_count=checkpoint.valid_count,
            needs_validation_count=checkpoint.needs_validation_count,
            error_count=checkpoint.error_count,
        )

    def to_checkpoint(self) -> BatchCheckpoint:
        return BatchCheckpoint(
            last_processed_index=self.last_processed_index,
            total_items=self.total_items,
            valid_count=self.valid_count,
            needs_validation_count=self.needs_validation_count,
            error_count=self.error_count,
            saved_at=self.saved_at,
        )


class FileCheckpointStore:
    """Keep the single resume checkpoint in one JSON file."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> BatchCheckpoint | None:
        if not self._path.is_file():
            return None
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            return CheckpointPayload.model_validate(raw).to_checkpoint()
        except ValueError as exc:
            log.warning("Ignoring unreadable checkpoint %s: %s", self._path, exc)
            return None

    def save(self, checkpoint: BatchCheckpoint) -> None:
        payload = CheckpointPayload.from_checkpoint(checkpoint)
        write_json_atomic(self._path, payload.model_dump(mode="json", by_alias=True))
        log.debug("Checkpoint written to %s", self._path)

    def clear(self) -> None:
        if self._path.exists():
            self._path.unlink()
            log.debug("Checkpoint %s removed", self._path)