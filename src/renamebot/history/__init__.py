"""Rename history persistence used by revert."""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Mapping, Optional

from pydantic import ValidationError

from .errors import HistoryError, MissingHistoryError
from .models import History, HistoryBatch, HistoryEntry

LOGGER = logging.getLogger(__name__)

DEFAULT_HISTORY_PATH = Path("~/.renamebot/history.json")


def _key(path: Path) -> str:
    return str(Path(path).expanduser().absolute())


class HistoryRepository:
    """Manage the JSON file that records applied rename batches."""

    def __init__(self, path: Optional[Path] = None) -> None:
        """Initialize the repository.

        Args:
            path: Location of the history file. Defaults to ``~/.renamebot/history.json``.
        """
        self._path = Path(path or DEFAULT_HISTORY_PATH).expanduser()
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        """Return the path of the history file.

        Returns:
            Path: Location of the JSON history.
        """
        return self._path

    def load(self) -> History:
        """Load the persisted history.

        Returns:
            History: Stored batches, or an empty history when no file exists yet.

        Raises:
            HistoryError: If the file cannot be read or parsed.
        """
        if not self._path.exists():
            return History()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise HistoryError(f"Invalid rename history at {self._path}: {exc}") from exc
        except OSError as exc:
            raise HistoryError(f"Unable to read rename history {self._path}: {exc}") from exc
        try:
            return History.model_validate(data)
        except ValidationError as exc:
            raise HistoryError(f"Invalid rename history at {self._path}: {exc}") from exc

    def save(self, history: History) -> None:
        """Persist ``history`` to disk.

        Args:
            history: History model to serialize.

        Raises:
            HistoryError: If the file cannot be written.
        """
        payload = history.model_dump(mode="json")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            raise HistoryError(f"Unable to write rename history {self._path}: {exc}") from exc

    def record(
        self,
        action: str,
        pairs: Iterable[tuple[Path, Path]],
        *,
        backups: Optional[Mapping[Path, Path]] = None,
    ) -> HistoryBatch:
        """Append a batch of applied mappings.

        Args:
            action: Filesystem action used for the batch.
            pairs: Source and destination paths of every applied mapping.
            backups: Backup path of each overwritten destination, keyed by destination.

        Returns:
            HistoryBatch: The stored batch.

        Raises:
            HistoryError: If the history cannot be read or written.
        """
        moved_aside = {_key(path): Path(_key(backup)) for path, backup in (backups or {}).items()}
        batch = HistoryBatch(
            action=action,
            entries=[
                HistoryEntry(
                    source=Path(_key(source)),
                    destination=Path(_key(destination)),
                    action=action,
                    backup=moved_aside.get(_key(destination)),
                )
                for source, destination in pairs
            ],
        )
        with self._lock:
            history = self.load()
            history.batches.append(batch)
            self.save(history)
        LOGGER.debug("Recorded history batch %s with %d entries", batch.id, len(batch.entries))
        return batch

    def batches(self, limit: Optional[int] = None) -> list[HistoryBatch]:
        """Return stored batches, newest first.

        Args:
            limit: Maximum number of batches to return.

        Returns:
            list[HistoryBatch]: Batches ordered from newest to oldest.
        """
        ordered = list(reversed(self.load().batches))
        if limit is not None:
            ordered = ordered[:limit]
        return ordered

    def get_batch(self, batch_id: str) -> HistoryBatch:
        """Return the batch with ``batch_id``.

        Raises:
            MissingHistoryError: If no such batch exists.
        """
        for batch in self.load().batches:
            if batch.id == batch_id:
                return batch
        raise MissingHistoryError(f"No rename batch with id '{batch_id}'.")

    def last_batch(self) -> HistoryBatch:
        """Return the newest batch that still has entries to revert.

        Raises:
            MissingHistoryError: If every batch has been reverted.
        """
        for batch in self.batches():
            if batch.pending:
                return batch
        raise MissingHistoryError("No rename batch left to revert.")

    def find(self, paths: Iterable[Path]) -> list[tuple[str, HistoryEntry]]:
        """Return the newest pending entry whose destination is each path.

        Args:
            paths: Current file paths to look up.

        Returns:
            list[tuple[str, HistoryEntry]]: Batch id and entry pairs in revert order,
                newest first.

        Raises:
            MissingHistoryError: If a path has no pending history entry.
        """
        wanted = {_key(path) for path in paths}
        found: dict[str, tuple[str, HistoryEntry]] = {}
        for batch in self.batches():
            for entry in reversed(batch.pending):
                key = _key(entry.destination)
                if key in wanted and key not in found:
                    found[key] = (batch.id, entry)
        missing = [key for key in wanted if key not in found]
        if missing:
            raise MissingHistoryError(
                "No rename history for: " + ", ".join(sorted(missing))
            )
        return list(found.values())

    def pending_under(self, folder: Path) -> list[tuple[str, HistoryEntry]]:
        """Return pending entries whose destination lies below ``folder``, newest first."""
        root = Path(_key(folder))
        found: list[tuple[str, HistoryEntry]] = []
        for batch in self.batches():
            for entry in reversed(batch.pending):
                if root in Path(_key(entry.destination)).parents:
                    found.append((batch.id, entry))
        return found

    def mark_reverted(self, batch_id: str, destinations: Iterable[Path]) -> int:
        """Flag entries of ``batch_id`` as reverted.

        Args:
            batch_id: Identifier of the batch that owns the entries.
            destinations: Destinations of the reverted entries.

        Returns:
            int: Number of entries updated.
        """
        keys = {_key(path) for path in destinations}
        now = datetime.now(timezone.utc)
        updated = 0
        with self._lock:
            history = self.load()
            for batch in history.batches:
                if batch.id != batch_id:
                    continue
                for entry in batch.entries:
                    if not entry.reverted and _key(entry.destination) in keys:
                        entry.reverted = True
                        entry.reverted_at = now
                        updated += 1
            if updated:
                self.save(history)
        return updated


__all__ = [
    "HistoryRepository",
    "DEFAULT_HISTORY_PATH",
    "History",
    "HistoryBatch",
    "HistoryEntry",
    "HistoryError",
    "MissingHistoryError",
]
