"""Tests for the operation surface in `renamebot.service`."""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest
import yaml

from renamebot.commands import ExecCommand
from renamebot.config.models import RenamebotConfig
from renamebot.service import RenameService

CATALOG = {
    "series": [
        {
            "id": 1396,
            "title": "Breaking Bad",
            "year": 2008,
            "episodes": [
                {"id": 62086, "season": 1, "episode": 2, "title": "The Bag"},
                {"id": 62085, "season": 1, "episode": 1, "title": "Pilot"},
            ],
        }
    ]
}


def _service(tmp_path: Path) -> RenameService:
    catalog = tmp_path / "catalog.yaml"
    catalog.write_text(yaml.safe_dump(CATALOG), encoding="utf-8")
    config = RenamebotConfig()
    config.datasource.catalog_path = str(catalog)
    config.history.path = str(tmp_path / "history.json")
    return RenameService(config)


def test_rename_linear_pairs_files_in_sorted_order(tmp_path: Path) -> None:
    service = _service(tmp_path)
    media = tmp_path / "media"
    media.mkdir()
    for name in ("b.mkv", "a.mkv", "c.mkv"):
        (media / name).write_text(name, encoding="utf-8")

    outcome = service.rename_linear([media], query="Breaking Bad")

    assert (media / "Breaking Bad - S01E01 - Pilot.mkv").read_text(encoding="utf-8") == "a.mkv"
    assert (media / "Breaking Bad - S01E02 - The Bag.mkv").read_text(encoding="utf-8") == "b.mkv"
    assert (media / "c.mkv").exists()
    assert len(outcome.report.applied) == 2
    assert len(service.history.batches()) == 1


def test_fetch_episode_list_sorts_and_filters(tmp_path: Path) -> None:
    service = _service(tmp_path)

    assert service.fetch_episode_list("breaking bad") == [
        "Breaking Bad - S01E01 - Pilot",
        "Breaking Bad - S01E02 - The Bag",
    ]
    assert service.fetch_episode_list(
        "breaking bad", template="{t}", filter_expression="e == 2"
    ) == ["The Bag"]


def test_compute_then_check_reports_corruption(tmp_path: Path) -> None:
    service = _service(tmp_path)
    media = tmp_path / "Season 1"
    media.mkdir()
    first = media / "Show.S01E01.mkv"
    first.write_bytes(b"one")
    (media / "Show.S01E02.mkv").write_bytes(b"two")

    checksum = service.compute([media])

    assert checksum == (media / "Season 1.sfv").absolute()
    assert service.check([checksum]).ok

    first.write_bytes(b"changed")
    report = service.check([checksum])
    assert not report.ok
    assert [result.status for result in report.results].count("ok") == 1


def test_get_missing_subtitles_skips_videos_with_subtitles(tmp_path: Path) -> None:
    service = _service(tmp_path)
    media = tmp_path / "media"
    media.mkdir()
    (media / "Show.S01E01.mkv").write_bytes(b"")
    (media / "Show.S01E01.srt").write_text(
        "1\n00:00:01,000 --> 00:00:02,000\nHello\n", encoding="utf-8"
    )
    (media / "Other.S02E05.mkv").write_bytes(b"")

    results = service.get_missing_subtitles([media], strict=True)

    statuses = {result.video.name: result.status for result in results}
    assert statuses == {"Show.S01E01.mkv": "exists", "Other.S02E05.mkv": "unpaired"}


def test_revert_folder_only_touches_files_matching_the_filter(tmp_path: Path) -> None:
    service = _service(tmp_path)
    media = tmp_path / "media"
    media.mkdir()
    (media / "a.mkv").write_text("a", encoding="utf-8")
    (media / "b.avi").write_text("b", encoding="utf-8")
    out = tmp_path / "out"
    service.rename_mapping({media / "a.mkv": out / "A.mkv", media / "b.avi": out / "B.avi"})

    report = service.revert([out], filter_glob="*.mkv")

    assert [result.final_path for result in report.applied] == [media / "a.mkv"]
    assert (media / "a.mkv").exists()
    assert (out / "B.avi").exists()
    assert [entry.destination.name for entry in service.history.last_batch().pending] == [
        "B.avi"
    ]


def test_revert_with_copy_action_keeps_the_renamed_file(tmp_path: Path) -> None:
    service = _service(tmp_path)
    source = tmp_path / "a.mkv"
    source.write_text("a", encoding="utf-8")
    renamed = tmp_path / "Show" / "A.mkv"
    service.rename_mapping({source: renamed})

    preview = service.revert(last=True, action="test")
    assert preview.results[0].error == "dry run; no changes made"
    assert not source.exists()

    report = service.revert(last=True, action="copy")

    assert len(report.applied) == 1
    assert source.read_text(encoding="utf-8") == "a"
    assert renamed.read_text(encoding="utf-8") == "a"
    assert service.history.last_batch().pending


def test_execute_runs_only_for_files_matching_the_filter(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    calls: list[list[str]] = []

    def _runner(argv: list[str], **_: Any) -> SimpleNamespace:
        calls.append(argv)
        return SimpleNamespace(returncode=0)

    monkeypatch.setattr(
        "renamebot.service.ExecCommand",
        lambda template: ExecCommand(template, runner=_runner),
    )
    media = tmp_path / "media"
    media.mkdir()
    for name in ("a.mkv", "b.srt", "c.mkv"):
        (media / name).write_text(name, encoding="utf-8")

    codes = list(_service(tmp_path).execute([media], "echo {fn}", filter_glob="*.mkv"))

    assert codes == [0, 0]
    assert sorted(calls) == [["echo", "a"], ["echo", "c"]]


def test_fetch_episode_list_non_strict_lists_every_good_match(tmp_path: Path) -> None:
    catalog = dict(CATALOG)
    catalog["series"] = [
        *CATALOG["series"],
        {
            "id": 5000,
            "title": "Breaking Bad",
            "year": 2030,
            "episodes": [{"id": 5001, "season": 1, "episode": 1, "title": "Remake"}],
        },
    ]
    service = _service(tmp_path)
    Path(service.config.datasource.catalog_path).write_text(
        yaml.safe_dump(catalog), encoding="utf-8"
    )

    strict = service.fetch_episode_list("breaking bad", template="{t}")
    relaxed = service.fetch_episode_list("breaking bad", template="{t}", strict=False)

    assert sorted(strict) == ["Pilot", "The Bag"]
    assert sorted(relaxed) == ["Pilot", "Remake", "The Bag"]
