"""Tests for destination conflict resolution."""

import os
from pathlib import Path

import pytest

from renamebot.organization import (
    ConflictError,
    ConflictPolicy,
    ConflictResolver,
    RenameAction,
    RenameMapping,
)


def _touch(path: Path, text: str = "x") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def _mapping(source: Path, destination: Path, action: RenameAction = RenameAction.MOVE):
    return RenameMapping(source=source, destination=destination, action=action)


def test_duplicate_destinations_keep_the_first_mapping(tmp_path: Path) -> None:
    a = _touch(tmp_path / "a.mkv")
    b = _touch(tmp_path / "b.mkv")
    target = tmp_path / "out" / "Show.mkv"

    plan = ConflictResolver().resolve([_mapping(b, target), _mapping(a, target)])

    assert [m.source for m in plan.mappings] == [a]
    assert len(plan.skipped) == 1
    assert plan.skipped[0].mapping.source == b
    assert "already planned" in plan.skipped[0].reason
    assert plan.notes == ["Resolved 1 conflict(s) using 'skip'."]


def test_append_number_produces_unique_destinations(tmp_path: Path) -> None:
    sources = [_touch(tmp_path / f"{name}.mkv") for name in ("a", "b", "c")]
    target = _touch(tmp_path / "out" / "Show.mkv", "existing")
    _touch(tmp_path / "out" / "Show-1.mkv", "existing")

    plan = ConflictResolver("append_number").resolve(
        [_mapping(source, target) for source in sources]
    )

    destinations = [m.destination.name for m in plan.mappings]
    assert destinations == ["Show-2.mkv", "Show-3.mkv", "Show-4.mkv"]
    assert all(m.conflict_applied for m in plan.mappings)
    assert not plan.skipped


def test_overwrite_marks_mapping_and_refuses_batch_sources(tmp_path: Path) -> None:
    a = _touch(tmp_path / "a.mkv")
    existing = _touch(tmp_path / "existing.mkv")
    copy_source = _touch(tmp_path / "c.mkv")

    plan = ConflictResolver(ConflictPolicy.OVERWRITE).resolve(
        [
            _mapping(a, existing),
            _mapping(copy_source, a, RenameAction.COPY),
        ]
    )

    assert len(plan.mappings) == 2
    overwrite = next(m for m in plan.mappings if m.source == a)
    assert overwrite.overwrite

    copy_plan = ConflictResolver(ConflictPolicy.OVERWRITE).resolve(
        [
            _mapping(copy_source, a, RenameAction.COPY),
            _mapping(a, copy_source, RenameAction.COPY),
        ]
    )
    assert not copy_plan.mappings
    assert all("source in this batch" in item.reason for item in copy_plan.skipped)


def test_fail_policy_raises_before_any_change(tmp_path: Path) -> None:
    a = _touch(tmp_path / "a.mkv")
    b = _touch(tmp_path / "b.mkv")
    c = _touch(tmp_path / "c.mkv")
    occupied = _touch(tmp_path / "taken.mkv")

    with pytest.raises(ConflictError) as excinfo:
        ConflictResolver("fail").resolve(
            [_mapping(a, tmp_path / "free.mkv"), _mapping(b, occupied), _mapping(c, occupied)]
        )

    assert len(excinfo.value.conflicts) == 2
    assert a.exists() and b.exists() and c.exists()
    assert not (tmp_path / "free.mkv").exists()


def test_move_chain_is_ordered_so_vacated_paths_are_reused(tmp_path: Path) -> None:
    first = _touch(tmp_path / "1.mkv")
    second = _touch(tmp_path / "2.mkv")
    third = tmp_path / "3.mkv"

    plan = ConflictResolver().resolve([_mapping(first, second), _mapping(second, third)])

    assert [(m.source.name, m.destination.name) for m in plan.mappings] == [
        ("2.mkv", "3.mkv"),
        ("1.mkv", "2.mkv"),
    ]
    assert not plan.skipped


def test_copy_does_not_vacate_its_source(tmp_path: Path) -> None:
    first = _touch(tmp_path / "1.mkv")
    second = _touch(tmp_path / "2.mkv")

    plan = ConflictResolver().resolve(
        [_mapping(first, second), _mapping(second, tmp_path / "3.mkv", RenameAction.COPY)]
    )

    assert [m.source.name for m in plan.mappings] == ["2.mkv"]
    assert plan.skipped[0].reason == "destination already exists"


def test_swap_is_rejected_as_circular(tmp_path: Path) -> None:
    a = _touch(tmp_path / "a.mkv")
    b = _touch(tmp_path / "b.mkv")

    plan = ConflictResolver().resolve([_mapping(a, b), _mapping(b, a)])

    assert not plan.mappings
    assert {item.mapping.source for item in plan.skipped} == {a, b}


def test_missing_noop_and_duplicate_sources_are_skipped(tmp_path: Path) -> None:
    present = _touch(tmp_path / "present.mkv")

    plan = ConflictResolver().resolve(
        [
            _mapping(tmp_path / "missing.mkv", tmp_path / "x.mkv"),
            _mapping(present, present),
            _mapping(present, tmp_path / "y.mkv"),
        ]
    )

    reasons = sorted(item.reason for item in plan.skipped)
    assert reasons == [
        "file is already at its destination",
        "source already mapped in this batch",
        "source file is missing",
    ]
    assert plan.mappings == []


def test_hardlinked_destination_is_a_conflict(tmp_path: Path) -> None:
    source = _touch(tmp_path / "episode.mkv", "payload")
    linked = tmp_path / "Show - 1x01.mkv"
    os.link(source, linked)

    plan = ConflictResolver().resolve([_mapping(source, linked)])

    assert plan.mappings == []
    assert plan.skipped[0].reason == "destination is another link to the source file"

    plan = ConflictResolver(ConflictPolicy.OVERWRITE).resolve([_mapping(source, linked)])
    assert plan.mappings[0].overwrite


def test_case_only_rename_is_not_a_conflict(tmp_path: Path) -> None:
    source = _touch(tmp_path / "show.mkv")
    destination = tmp_path / "Show.mkv"

    plan = ConflictResolver().resolve([_mapping(source, destination)])

    assert [m.destination.name for m in plan.mappings] == ["Show.mkv"]
    assert plan.skipped == []
