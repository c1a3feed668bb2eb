"""Tests for subtitle parsing, conversion and pairing."""

from pathlib import Path

import pytest

from renamebot.media import MediaScanner, is_subtitle_file
from renamebot.subtitles import (
    SubtitleAligner,
    SubtitleFormatError,
    convert,
    decode,
    parse_srt,
    parse_vtt,
)

SRT = """1
00:00:01,500 --> 00:00:03,000
Hello there.

2
00:01:02,000 --> 00:01:04,250
General Kenobi!
"""


def test_parse_srt_and_convert_to_vtt() -> None:
    cues = parse_srt(SRT)

    assert [(cue.start, cue.end) for cue in cues] == [(1500, 3000), (62000, 64250)]
    vtt = convert(SRT, "srt", "vtt")
    assert vtt.startswith("WEBVTT\n\n00:00:01.500 --> 00:00:03.000\nHello there.")
    assert [cue.text for cue in parse_vtt(vtt)] == ["Hello there.", "General Kenobi!"]


def test_parse_vtt_skips_notes_and_requires_header() -> None:
    text = "WEBVTT\n\nNOTE a comment\n\n00:05.000 --> 00:06.000\nShort form\n"

    cues = parse_vtt(text)

    assert len(cues) == 1
    assert cues[0].start == 5000
    with pytest.raises(SubtitleFormatError):
        parse_vtt("00:05.000 --> 00:06.000\nno header\n")
    with pytest.raises(SubtitleFormatError):
        parse_srt("just some text")


def test_decode_falls_back_to_legacy_encodings() -> None:
    assert decode("café".encode("cp1252")) == "café"
    assert decode("\ufeffhi".encode("utf-8")) == "hi"


def _scan(root: Path):
    videos = MediaScanner().scan([root])
    subtitles = MediaScanner(selector=is_subtitle_file).scan([root])
    return videos, subtitles


def test_pairs_by_stem_then_episode_then_similarity(tmp_path: Path) -> None:
    (tmp_path / "Show.S01E01.mkv").write_bytes(b"")
    (tmp_path / "Show.S01E02.mkv").write_bytes(b"")
    (tmp_path / "Movie.Night.mkv").write_bytes(b"")
    (tmp_path / "Show.S01E01.en.srt").write_text(SRT, encoding="utf-8")
    (tmp_path / "show 1x02 subs.srt").write_text(SRT, encoding="utf-8")
    (tmp_path / "Movie Night (subtitles).srt").write_text(SRT, encoding="utf-8")
    videos, subtitles = _scan(tmp_path)

    pairs = SubtitleAligner(threshold=0.5).pair(videos, subtitles)
    strict = SubtitleAligner(threshold=0.5, strict=True).pair(videos, subtitles)

    named = {video.name: subtitle.path.name for video, subtitle in pairs.items()}
    assert named == {
        "Show.S01E01.mkv": "Show.S01E01.en.srt",
        "Show.S01E02.mkv": "show 1x02 subs.srt",
        "Movie.Night.mkv": "Movie Night (subtitles).srt",
    }
    assert tmp_path / "Movie.Night.mkv" not in strict


def test_get_subtitles_writes_converted_file(tmp_path: Path) -> None:
    (tmp_path / "Show.S01E01.mkv").write_bytes(b"")
    (tmp_path / "Show.S01E01.srt").write_text(SRT, encoding="utf-8")
    videos, subtitles = _scan(tmp_path)

    results = SubtitleAligner(language="de", output_format="vtt").get_subtitles(videos, subtitles)

    assert results[0].status == "written"
    written = tmp_path / "Show.S01E01.de.vtt"
    assert results[0].destination == written
    assert written.read_text(encoding="utf-8").startswith("WEBVTT")
    assert (tmp_path / "Show.S01E01.srt").exists()


def test_missing_subtitles_only_targets_videos_without_one(tmp_path: Path) -> None:
    (tmp_path / "A.S01E01.mkv").write_bytes(b"")
    (tmp_path / "A.S01E01.en.srt").write_text(SRT, encoding="utf-8")
    (tmp_path / "B.S01E05.mkv").write_bytes(b"")
    videos, subtitles = _scan(tmp_path)

    results = SubtitleAligner(strict=True).get_missing_subtitles(videos, subtitles)

    statuses = {result.video.name: result.status for result in results}
    assert statuses == {"A.S01E01.mkv": "exists", "B.S01E05.mkv": "unpaired"}
