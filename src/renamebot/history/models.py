"""Rename history data models."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HistoryEntry(BaseModel):
    """One applied mapping.

    Attributes:
        source: Path the file had before the batch ran.
        destination: Path the action produced.
        action: Filesystem action that was applied.
        backup: Where an overwritten file at ``destination`` was moved aside.
        reverted: Whether the entry has been reverted.
        reverted_at: When the entry was reverted.
    """

    source: Path
    destination: Path
    action: str
    backup: Optional[Path] = None
    reverted: bool = False
    reverted_at: Optional[datetime] = None


class HistoryBatch(BaseModel):
    """Entries applied together by one rename run."""

    id: str = Field(default_factory=lambda: uuid4().hex[:12])
    timestamp: datetime = Field(default_factory=_utcnow)
    action: str
    entries: List[HistoryEntry] = Field(default_factory=list)

    @property
    def reverted(self) -> bool:
        return bool(self.entries) and all(entry.reverted for entry in self.entries)

    @property
    def pending(self) -> list[HistoryEntry]:
        return [entry for entry in self.entries if not entry.reverted]


class History(BaseModel):
    """Persisted rename log, oldest batch first."""

    version: int = 1
    batches: List[HistoryBatch] = Field(default_factory=list)


__all__ = ["HistoryEntry", "HistoryBatch", "History"]
