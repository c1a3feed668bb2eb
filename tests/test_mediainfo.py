"""Tests for per-file information lines."""

import json
import subprocess
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from renamebot.formatting import FormatError
from renamebot.media import MediaInspector
from renamebot.media.streams import media_bindings, video_format
from renamebot.mediainfo import get_media_info

FFPROBE_OUTPUT = {
    "streams": [
        {"codec_type": "video", "codec_name": "hevc", "width": 1920, "height": 800},
        {"codec_type": "audio", "codec_name": "eac3", "channels": 6},
    ],
    "format": {"duration": "2712.48", "bit_rate": "4500000"},
}


class _FakeFfprobe:
    def __init__(self, *outcomes: Any) -> None:
        self.calls: list[list[str]] = []
        self.outcomes = list(outcomes)

    def __call__(self, argv: list[str], **_: Any) -> SimpleNamespace:
        self.calls.append(argv)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return SimpleNamespace(returncode=0, stdout=json.dumps(outcome))


def _inspector(*outcomes: Any) -> tuple[MediaInspector, _FakeFfprobe]:
    runner = _FakeFfprobe(*outcomes)
    return MediaInspector(runner=runner, which=lambda name: f"/usr/bin/{name}"), runner


def test_lines_follow_template_and_filter(tmp_path: Path) -> None:
    (tmp_path / "Show.S02E03.mkv").write_bytes(b"12345")
    (tmp_path / "notes.txt").write_text("hi", encoding="utf-8")
    files = sorted(tmp_path.iterdir())

    lines = list(get_media_info(files, "*.mkv", "{fn}: {size} {hn} {hs}x{he}"))

    assert lines == ["Show.S02E03: 5 Show 2x3"]


def test_default_template_lists_every_file(tmp_path: Path) -> None:
    (tmp_path / "a.srt").write_text("1", encoding="utf-8")

    lines = list(get_media_info([tmp_path / "a.srt"]))

    assert lines[0].startswith(f"{tmp_path / 'a.srt'} | 1 bytes |")


def test_invalid_template_raises(tmp_path: Path) -> None:
    with pytest.raises(FormatError):
        list(get_media_info([], template="{bogus}"))


def test_media_bindings_come_from_ffprobe(tmp_path: Path) -> None:
    video = tmp_path / "Movie.mkv"
    video.write_bytes(b"x")
    inspector, runner = _inspector(FFPROBE_OUTPUT)

    template = "{fn} {vf} {vc} {ac} {af} {resolution} {minutes}min"

    lines = list(get_media_info([video], template=template, inspector=inspector))

    assert lines == ["Movie 1080p hevc eac3 6ch 1920x800 45min"]
    assert runner.calls[0][0] == "ffprobe"
    assert runner.calls[0][-1] == str(video)


def test_templates_without_media_bindings_skip_ffprobe(tmp_path: Path) -> None:
    video = tmp_path / "Movie.mkv"
    video.write_bytes(b"x")
    inspector, runner = _inspector()

    assert list(get_media_info([video], template="{fn}", inspector=inspector)) == ["Movie"]
    assert runner.calls == []


def test_missing_ffprobe_leaves_media_bindings_empty(tmp_path: Path) -> None:
    video = tmp_path / "Movie.mkv"
    video.write_bytes(b"x")
    runner = _FakeFfprobe()
    inspector = MediaInspector(runner=runner, which=lambda name: None)

    lines = list(get_media_info([video], template="{fn} [{vf}]", inspector=inspector))

    assert lines == ["Movie []"]
    assert runner.calls == []


def test_ffprobe_retries_once_after_a_timeout(tmp_path: Path) -> None:
    video = tmp_path / "Movie.mkv"
    video.write_bytes(b"x")
    inspector, runner = _inspector(subprocess.TimeoutExpired("ffprobe", 5), FFPROBE_OUTPUT)

    assert inspector.bindings(video)["vc"] == "hevc"
    assert len(runner.calls) == 2

    timeout = subprocess.TimeoutExpired("ffprobe", 5)
    inspector, _ = _inspector(timeout, timeout)
    assert inspector.inspect(video) == {}


def test_media_bindings_tolerate_missing_streams() -> None:
    bindings = media_bindings({"format": {"duration": "N/A"}})

    assert set(bindings.values()) == {None}
    assert video_format(1280, 720) == "720p"
    assert video_format(3840, 1600) == "2160p"
    assert video_format(640, 360) == "360p"
