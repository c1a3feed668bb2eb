"""Rename plan and execution data models."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field


class RenameAction(str, Enum):
    """How a mapping is applied to the filesystem."""

    MOVE = "move"
    COPY = "copy"
    SYMLINK = "symlink"
    HARDLINK = "hardlink"
    TEST = "test"


class ConflictPolicy(str, Enum):
    """What happens when a destination is already taken."""

    SKIP = "skip"
    OVERWRITE = "overwrite"
    APPEND_NUMBER = "append_number"
    FAIL = "fail"


class RenameMapping(BaseModel):
    """A planned source to destination rename.

    Attributes:
        source: Current file path.
        destination: Target path.
        action: Filesystem action used to apply the mapping.
        conflict_applied: Indicates whether conflict resolution changed the mapping.
        overwrite: Whether an existing destination file will be replaced.
        note: Optional explanation, e.g. the conflict resolution applied.
        score: Match score that produced the mapping, when it came from matching.
    """

    source: Path
    destination: Path
    action: RenameAction = RenameAction.MOVE
    conflict_applied: bool = False
    overwrite: bool = False
    note: Optional[str] = None
    score: Optional[float] = None


class SkippedMapping(BaseModel):
    """A mapping that was dropped during planning or conflict resolution."""

    mapping: RenameMapping
    reason: str


class UnmatchedFile(BaseModel):
    """A file that could not be matched, with the reason."""

    path: Path
    reason: str


class RenamePlan(BaseModel):
    """Validated rename batch ready for execution.

    Attributes:
        mappings: Accepted mappings in execution order; destinations are unique.
        skipped: Mappings dropped by conflict resolution.
        unmatched: Files that produced no mapping.
        notes: Human-readable planning notes.
    """

    mappings: List[RenameMapping] = Field(default_factory=list)
    skipped: List[SkippedMapping] = Field(default_factory=list)
    unmatched: List[UnmatchedFile] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)

    @property
    def conflicts(self) -> int:
        return sum(1 for mapping in self.mappings if mapping.conflict_applied) + len(self.skipped)


class ExecutionStatus(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


class ExecutionResult(BaseModel):
    """Outcome of applying (or reverting) one mapping.

    Attributes:
        source: Path the operation started from.
        destination: Path the operation targeted.
        action: Action that was attempted.
        status: Applied, skipped or failed.
        final_path: Where the file ended up.
        backup: Where an overwritten destination was moved aside, if any.
        error: Failure or skip reason.
    """

    source: Path
    destination: Path
    action: RenameAction
    status: ExecutionStatus
    final_path: Optional[Path] = None
    backup: Optional[Path] = None
    error: Optional[str] = None


class ExecutionReport(BaseModel):
    """Per-mapping results of a batch, plus the history batch that recorded it.

    Attributes:
        results: One result per mapping, skipped mappings included.
        batch_id: History batch id(s), comma separated.
        history_error: Why applied mappings could not be recorded, if they were not.
    """

    results: List[ExecutionResult] = Field(default_factory=list)
    batch_id: Optional[str] = None
    history_error: Optional[str] = None

    def _with_status(self, status: ExecutionStatus) -> list[ExecutionResult]:
        return [result for result in self.results if result.status is status]

    @property
    def applied(self) -> list[ExecutionResult]:
        return self._with_status(ExecutionStatus.APPLIED)

    @property
    def skipped(self) -> list[ExecutionResult]:
        return self._with_status(ExecutionStatus.SKIPPED)

    @property
    def failed(self) -> list[ExecutionResult]:
        return self._with_status(ExecutionStatus.FAILED)

    @property
    def final_paths(self) -> list[Path]:
        return [result.final_path for result in self.applied if result.final_path is not None]


__all__ = [
    "RenameAction",
    "ConflictPolicy",
    "RenameMapping",
    "SkippedMapping",
    "UnmatchedFile",
    "RenamePlan",
    "ExecutionStatus",
    "ExecutionResult",
    "ExecutionReport",
]
