"""Tests for file name hint parsing and media discovery."""

from pathlib import Path

import pytest
from guessit.api import GuessitException

from renamebot.media import MediaScanner, is_subtitle_file, parse_hints
from renamebot.media import parser


@pytest.mark.parametrize(
    ("name", "title", "season", "episodes"),
    [
        ("Breaking.Bad.S01E02.720p.WEB-DL.x264-GROUP.mkv", "Breaking Bad", 1, (2,)),
        ("the_office_2x05.avi", "the office", 2, (5,)),
        ("Show Name Season 3 Episode 10.mp4", "Show Name", 3, (10,)),
        ("Firefly.S01E01E02.1080p.mkv", "Firefly", 1, (1, 2)),
    ],
)
def test_parse_hints_reads_episode_numbering(
    name: str, title: str, season: int, episodes: tuple[int, ...]
) -> None:
    hints = parse_hints(Path("/media") / name)

    assert hints.title == title
    assert hints.season == season
    assert hints.episodes == episodes
    assert hints.is_episode


def test_parse_hints_reads_movie_year_and_drops_noise() -> None:
    hints = parse_hints("/media/The.Matrix.1999.1080p.BluRay.x264.mkv")

    assert hints.title == "The Matrix"
    assert hints.year == 1999
    assert hints.season is None
    assert not hints.is_episode


def test_parse_hints_reads_absolute_numbering_and_group() -> None:
    hints = parse_hints("/anime/[SubGroup] Cowboy Bebop - 012 [1080p].mkv")

    assert hints.group == "SubGroup"
    assert hints.title == "Cowboy Bebop"
    assert hints.absolute == 12
    assert hints.season is None


def test_parse_hints_falls_back_to_series_folder() -> None:
    hints = parse_hints("/tv/Doctor Who (2005)/Season 02/S02E03.mkv")

    assert hints.title == "Doctor Who"
    assert hints.season == 2
    assert hints.episodes == (3,)


def test_parse_hints_survives_names_guessit_rejects(monkeypatch: pytest.MonkeyPatch) -> None:
    def _reject(name: str) -> dict:
        raise GuessitException(name, {})

    monkeypatch.setattr(parser, "guessit", _reject)

    hints = parse_hints("/media/odd name.mkv")

    assert hints.raw_name == "odd name"
    assert hints.title == ""
    assert hints.season is None
    assert hints.episodes == ()


def test_scanner_filters_directories_but_keeps_explicit_files(tmp_path: Path) -> None:
    show = tmp_path / "show"
    show.mkdir()
    (show / "Show.S01E01.mkv").write_bytes(b"a")
    (show / "notes.txt").write_text("ignored", encoding="utf-8")
    (show / ".hidden").mkdir()
    (show / ".hidden" / "Show.S01E02.mkv").write_bytes(b"b")
    extra = tmp_path / "readme.txt"
    extra.write_text("explicit", encoding="utf-8")

    files = MediaScanner().scan([show, extra, show / "Show.S01E01.mkv"])

    assert [item.path.name for item in files] == ["readme.txt", "Show.S01E01.mkv"]
    assert files[1].size_bytes == 1


def test_scanner_with_selector(tmp_path: Path) -> None:
    (tmp_path / "a.srt").write_text("1", encoding="utf-8")
    (tmp_path / "a.mkv").write_bytes(b"")

    files = MediaScanner(selector=is_subtitle_file).scan([tmp_path])

    assert [item.path.name for item in files] == ["a.srt"]
