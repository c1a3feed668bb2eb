"""Apply rename plans and revert recorded batches."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Optional, Sequence
from uuid import uuid4

from renamebot.history import HistoryEntry, HistoryError, HistoryRepository

from .conflicts import FILESYSTEM_LOCK, is_case_rename, is_occupied
from .models import (
    ExecutionReport,
    ExecutionResult,
    ExecutionStatus,
    RenameAction,
    RenameMapping,
    RenamePlan,
)

LOGGER = logging.getLogger(__name__)


class RenameExecutor:
    """Apply rename plans with per-mapping failure isolation.

    A failing mapping is reported and the batch continues. Applied mappings are
    recorded in the history repository (when one is configured) so they can be
    reverted later. A destination replaced under the ``overwrite`` policy is moved
    aside to a hidden backup next to it, and revert puts it back.
    """

    def __init__(self, history: Optional[HistoryRepository] = None) -> None:
        self.history = history

    def apply(self, plan: RenamePlan) -> ExecutionReport:
        """Apply every mapping in ``plan`` in order.

        The history is read before any file is touched, so an unreadable history
        stops the batch early. A history that cannot be written afterwards is
        reported on :attr:`ExecutionReport.history_error` together with the results.

        Args:
            plan: Plan produced by the planner or the conflict resolver.

        Returns:
            ExecutionReport: One result per mapping, skipped mappings included.

        Raises:
            HistoryError: If the history cannot be read before the batch starts.
        """
        report = ExecutionReport()
        if self.history is not None and plan.mappings:
            self.history.load()

        with FILESYSTEM_LOCK:
            for mapping in plan.mappings:
                report.results.append(self._apply_mapping(mapping))

        for skipped in plan.skipped:
            report.results.append(
                ExecutionResult(
                    source=skipped.mapping.source,
                    destination=skipped.mapping.destination,
                    action=skipped.mapping.action,
                    status=ExecutionStatus.SKIPPED,
                    error=skipped.reason,
                )
            )

        try:
            report.batch_id = self._record(report)
        except HistoryError as exc:
            LOGGER.error("Applied renames were not recorded in the history: %s", exc)
            report.history_error = str(exc)

        LOGGER.info(
            "Rename batch finished: %d applied, %d skipped, %d failed",
            len(report.applied),
            len(report.skipped),
            len(report.failed),
        )
        return report

    def _record(self, report: ExecutionReport) -> Optional[str]:
        applied = [
            result
            for result in report.applied
            if result.action is not RenameAction.TEST and result.final_path is not None
        ]
        if not applied or self.history is None:
            return None
        # One batch per action so revert knows how to undo every entry.
        batch_ids = []
        for action in dict.fromkeys(result.action for result in applied):
            results = [result for result in applied if result.action is action]
            batch = self.history.record(
                action.value,
                [(result.source, result.destination) for result in results],
                backups={
                    result.destination: result.backup
                    for result in results
                    if result.backup is not None
                },
            )
            batch_ids.append(batch.id)
        return ",".join(batch_ids)

    def revert(
        self,
        entries: Sequence[tuple[str, HistoryEntry]],
        *,
        dry_run: bool = False,
        action: RenameAction | str = RenameAction.MOVE,
    ) -> ExecutionReport:
        """Undo recorded history entries, in the order given.

        Moves are moved back to their original path; copies and links are removed.
        An entry whose original path is occupied again, or whose destination is
        gone, is reported as failed and left untouched.

        Args:
            entries: Batch id and entry pairs, newest first.
            dry_run: Only report what would be reverted.
            action: How a moved file gets back to its original path. ``move`` undoes
                the entry. ``copy``, ``symlink`` and ``hardlink`` restore the original
                path from the renamed file and leave the entry pending. ``test``
                behaves like ``dry_run``.

        Returns:
            ExecutionReport: One result per entry.
        """
        restore = RenameAction(action)
        dry_run = dry_run or restore is RenameAction.TEST
        report = ExecutionReport()
        reverted: dict[str, list[Path]] = {}
        with FILESYSTEM_LOCK:
            for batch_id, entry in entries:
                result = self._revert_entry(entry, dry_run=dry_run, restore=restore)
                report.results.append(result)
                undone = RenameAction(entry.action) is not RenameAction.MOVE
                if result.status is ExecutionStatus.APPLIED and (
                    undone or restore is RenameAction.MOVE
                ):
                    reverted.setdefault(batch_id, []).append(entry.destination)

        if self.history is not None:
            try:
                for batch_id, destinations in reverted.items():
                    self.history.mark_reverted(batch_id, destinations)
            except HistoryError as exc:
                LOGGER.error("Reverted entries were not marked in the history: %s", exc)
                report.history_error = str(exc)
        return report

    # ------------------------------------------------------------------ #
    # Single mapping helpers                                             #
    # ------------------------------------------------------------------ #

    def _apply_mapping(self, mapping: RenameMapping) -> ExecutionResult:
        result = ExecutionResult(
            source=mapping.source,
            destination=mapping.destination,
            action=mapping.action,
            status=ExecutionStatus.FAILED,
        )
        if mapping.action is RenameAction.TEST:
            LOGGER.info("[test] %s -> %s", mapping.source, mapping.destination)
            result.status = ExecutionStatus.SKIPPED
            result.error = "test action; no changes made"
            return result

        try:
            if not is_occupied(mapping.source):
                raise FileNotFoundError(f"Source path is missing: {mapping.source}")
            if is_occupied(mapping.destination) and not is_case_rename(
                mapping.source, mapping.destination
            ):
                if not mapping.overwrite:
                    raise FileExistsError(f"Destination already exists: {mapping.destination}")
                result.backup = self._move_aside(mapping.destination)
            mapping.destination.parent.mkdir(parents=True, exist_ok=True)
            try:
                self._perform(mapping)
            except OSError:
                if result.backup is not None and not is_occupied(mapping.destination):
                    os.replace(result.backup, mapping.destination)
                    result.backup = None
                raise
        except OSError as exc:
            LOGGER.warning("Failed to %s %s: %s", mapping.action.value, mapping.source, exc)
            result.error = str(exc)
            return result

        LOGGER.debug("%s %s -> %s", mapping.action.value, mapping.source, mapping.destination)
        result.status = ExecutionStatus.APPLIED
        result.final_path = mapping.destination
        return result

    @staticmethod
    def _move_aside(destination: Path) -> Path:
        if destination.is_dir() and not destination.is_symlink():
            raise IsADirectoryError(f"Refusing to overwrite directory: {destination}")
        backup = backup_path(destination)
        os.replace(destination, backup)
        LOGGER.debug("Moved overwritten %s aside to %s", destination, backup)
        return backup

    def _perform(self, mapping: RenameMapping) -> None:
        source, destination = mapping.source, mapping.destination
        if mapping.action is RenameAction.MOVE:
            shutil.move(str(source), str(destination))
        elif mapping.action is RenameAction.COPY:
            shutil.copy2(source, destination)
        elif mapping.action is RenameAction.SYMLINK:
            destination.symlink_to(source.absolute())
        elif mapping.action is RenameAction.HARDLINK:
            os.link(source, destination)
        else:
            raise ValueError(f"Unsupported rename action: {mapping.action}")

    def _revert_entry(
        self, entry: HistoryEntry, *, dry_run: bool, restore: RenameAction
    ) -> ExecutionResult:
        recorded = RenameAction(entry.action)
        result = ExecutionResult(
            source=entry.destination,
            destination=entry.source,
            action=restore if recorded is RenameAction.MOVE else recorded,
            status=ExecutionStatus.FAILED,
        )
        try:
            if not is_occupied(entry.destination):
                raise FileNotFoundError(f"Renamed file is missing: {entry.destination}")
            if entry.backup is not None and not is_occupied(entry.backup):
                raise FileNotFoundError(f"Overwritten file backup is missing: {entry.backup}")
            if recorded is RenameAction.MOVE:
                if is_occupied(entry.source):
                    raise FileExistsError(f"Original path is occupied: {entry.source}")
                if not dry_run:
                    entry.source.parent.mkdir(parents=True, exist_ok=True)
                    self._perform(
                        RenameMapping(
                            source=entry.destination,
                            destination=entry.source,
                            action=restore,
                        )
                    )
                result.final_path = entry.source
            else:
                if entry.destination.is_dir() and not entry.destination.is_symlink():
                    raise IsADirectoryError(f"Refusing to remove directory: {entry.destination}")
                if not dry_run:
                    entry.destination.unlink()
                result.final_path = entry.source if is_occupied(entry.source) else None
            vacated = recorded is not RenameAction.MOVE or restore is RenameAction.MOVE
            if entry.backup is not None and vacated and not dry_run:
                os.replace(entry.backup, entry.destination)
                LOGGER.debug("Restored overwritten %s", entry.destination)
        except OSError as exc:
            LOGGER.warning("Cannot revert %s: %s", entry.destination, exc)
            result.error = str(exc)
            return result

        result.status = ExecutionStatus.SKIPPED if dry_run else ExecutionStatus.APPLIED
        if dry_run:
            result.error = "dry run; no changes made"
        return result


def backup_path(destination: Path) -> Path:
    """Return an unused hidden sibling of ``destination`` to move it aside to."""
    while True:
        candidate = destination.with_name(
            f".{destination.name}.{uuid4().hex[:8]}.renamebot-backup"
        )
        if not is_occupied(candidate):
            return candidate


__all__ = ["RenameExecutor", "backup_path"]
