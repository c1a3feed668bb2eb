"""Tests for the rename history repository."""

from pathlib import Path

import pytest

from renamebot.history import HistoryError, HistoryRepository, MissingHistoryError


def test_batches_are_listed_newest_first(tmp_path: Path) -> None:
    repository = HistoryRepository(tmp_path / "history.json")

    first = repository.record("move", [(tmp_path / "a", tmp_path / "b")])
    second = repository.record("copy", [(tmp_path / "c", tmp_path / "d")])

    assert [batch.id for batch in repository.batches()] == [second.id, first.id]
    assert repository.batches(limit=1)[0].action == "copy"
    assert repository.get_batch(first.id).entries[0].destination == tmp_path / "b"


def test_find_returns_newest_pending_entry(tmp_path: Path) -> None:
    repository = HistoryRepository(tmp_path / "history.json")
    older = repository.record("move", [(tmp_path / "a", tmp_path / "b")])
    newer = repository.record("move", [(tmp_path / "c", tmp_path / "b")])

    [(batch_id, entry)] = repository.find([tmp_path / "b"])
    assert batch_id == newer.id
    assert entry.source == tmp_path / "c"

    assert repository.mark_reverted(newer.id, [tmp_path / "b"]) == 1
    [(batch_id, _)] = repository.find([tmp_path / "b"])
    assert batch_id == older.id


def test_missing_paths_and_exhausted_history(tmp_path: Path) -> None:
    repository = HistoryRepository(tmp_path / "history.json")

    with pytest.raises(MissingHistoryError):
        repository.last_batch()
    with pytest.raises(MissingHistoryError):
        repository.find([tmp_path / "nothing"])
    with pytest.raises(MissingHistoryError):
        repository.get_batch("unknown")


def test_corrupt_history_raises(tmp_path: Path) -> None:
    path = tmp_path / "history.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(HistoryError):
        HistoryRepository(path).load()
