"""Tests for archive extraction."""

import io
import tarfile
import zipfile
from pathlib import Path

import pytest

from renamebot.archives import ArchiveError, ArchiveExtractor, safe_member_path


def _zip(path: Path, members: dict[str, bytes]) -> Path:
    with zipfile.ZipFile(path, "w") as handle:
        for name, data in members.items():
            handle.writestr(name, data)
    return path


def test_safe_member_path_rejects_escapes() -> None:
    assert safe_member_path("dir/./file.mkv").as_posix() == "dir/file.mkv"
    assert safe_member_path("../evil") is None
    assert safe_member_path("/etc/passwd") is None
    assert safe_member_path("C:\\evil.txt") is None


def test_extracts_into_folder_named_after_archive(tmp_path: Path) -> None:
    archive = _zip(tmp_path / "Show.S01.zip", {"e1.mkv": b"1", "sub/e1.srt": b"s"})

    result = ArchiveExtractor().extract(archive)

    assert result.output == tmp_path / "Show.S01"
    assert (tmp_path / "Show.S01" / "sub" / "e1.srt").read_bytes() == b"s"
    assert len(result.extracted) == 2


def test_filter_and_force_all(tmp_path: Path) -> None:
    archive = _zip(tmp_path / "pack.zip", {"movie.mkv": b"m", "readme.nfo": b"n"})

    filtered = ArchiveExtractor(member_filter="*.mkv").extract(archive, tmp_path / "one")
    everything = ArchiveExtractor(member_filter="*.mkv", force_all=True).extract(
        archive, tmp_path / "all"
    )

    assert [path.name for path in filtered.extracted] == ["movie.mkv"]
    assert filtered.skipped == [("readme.nfo", "excluded by filter")]
    assert sorted(path.name for path in everything.extracted) == ["movie.mkv", "readme.nfo"]


def test_conflict_policies(tmp_path: Path) -> None:
    archive = _zip(tmp_path / "pack.zip", {"movie.mkv": b"new"})
    output = tmp_path / "out"
    output.mkdir()
    (output / "movie.mkv").write_bytes(b"old")

    skipped = ArchiveExtractor().extract(archive, output)
    numbered = ArchiveExtractor(conflict="append_number").extract(archive, output)

    assert skipped.extracted == []
    assert (output / "movie.mkv").read_bytes() == b"old"
    assert numbered.extracted == [output / "movie-1.mkv"]
    with pytest.raises(ArchiveError):
        ArchiveExtractor(conflict="fail").extract(archive, output)

    ArchiveExtractor(conflict="overwrite").extract(archive, output)
    assert (output / "movie.mkv").read_bytes() == b"new"


def test_tar_links_and_traversal_are_rejected(tmp_path: Path) -> None:
    archive = tmp_path / "bad.tar.gz"
    with tarfile.open(archive, "w:gz") as handle:
        data = b"ok"
        info = tarfile.TarInfo("good.txt")
        info.size = len(data)
        handle.addfile(info, io.BytesIO(data))
        escape = tarfile.TarInfo("../escape.txt")
        escape.size = len(data)
        handle.addfile(escape, io.BytesIO(data))
        link = tarfile.TarInfo("link")
        link.type = tarfile.SYMTYPE
        link.linkname = "/etc/passwd"
        handle.addfile(link)

    result = ArchiveExtractor().extract(archive)

    assert result.output == tmp_path / "bad"
    assert [path.name for path in result.extracted] == ["good.txt"]
    assert dict(result.skipped) == {
        "../escape.txt": "unsafe member path",
        "link": "link or special member",
    }
    assert not (tmp_path / "escape.txt").exists()


def test_unreadable_archive_raises(tmp_path: Path) -> None:
    broken = tmp_path / "broken.zip"
    broken.write_bytes(b"not an archive")

    with pytest.raises(ArchiveError):
        ArchiveExtractor().extract(broken)
