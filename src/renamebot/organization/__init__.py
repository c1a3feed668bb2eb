"""Rename planning, conflict resolution and execution."""

from .conflicts import FILESYSTEM_LOCK, ConflictError, ConflictResolver
from .executor import RenameExecutor
from .models import (
    ConflictPolicy,
    ExecutionReport,
    ExecutionResult,
    ExecutionStatus,
    RenameAction,
    RenameMapping,
    RenamePlan,
    SkippedMapping,
    UnmatchedFile,
)
from .planner import RenamePlanner

__all__ = [
    "ConflictError",
    "ConflictPolicy",
    "ConflictResolver",
    "ExecutionReport",
    "ExecutionResult",
    "ExecutionStatus",
    "FILESYSTEM_LOCK",
    "RenameAction",
    "RenameExecutor",
    "RenameMapping",
    "RenamePlan",
    "RenamePlanner",
    "SkippedMapping",
    "UnmatchedFile",
]
