"""Tests for checksum file creation and verification."""

import zlib
from pathlib import Path

import pytest

from renamebot.verification import HashType, VerificationError, check, compute, verify


def _media_dir(tmp_path: Path) -> Path:
    folder = tmp_path / "Season 1"
    folder.mkdir()
    (folder / "a.mkv").write_bytes(b"alpha")
    (folder / "b.mkv").write_bytes(b"bravo")
    return folder


def test_compute_sfv_names_file_after_common_folder(tmp_path: Path) -> None:
    folder = _media_dir(tmp_path)

    written = compute([folder / "b.mkv", folder / "a.mkv"])

    assert written == folder / "Season 1.sfv"
    crc = f"{zlib.crc32(b'alpha') & 0xFFFFFFFF:08X}"
    assert written.read_text(encoding="utf-8").splitlines()[0] == f"a.mkv {crc}"


@pytest.mark.parametrize("hash_type", [HashType.MD5, HashType.SHA1, HashType.SHA256])
def test_digest_files_verify_and_detect_changes(tmp_path: Path, hash_type: HashType) -> None:
    folder = _media_dir(tmp_path)
    target = tmp_path / f"sums{hash_type.extension}"
    written = compute([folder / "a.mkv", folder / "b.mkv"], hash_type, target)

    assert written == target
    assert "*Season 1/a.mkv" in written.read_text(encoding="utf-8")
    assert check([written])

    (folder / "b.mkv").write_bytes(b"tampered")
    report = verify([written])
    assert [result.status for result in report.results] == ["ok", "mismatch"]
    assert not report.ok


def test_media_file_is_checked_against_sibling_checksum(tmp_path: Path) -> None:
    folder = _media_dir(tmp_path)
    compute([folder / "a.mkv"], HashType.SFV, folder / "list.sfv")

    report = verify([folder / "a.mkv"])

    assert report.ok
    assert report.results[0].source.endswith("list.sfv")


def test_crc_tag_in_name_and_missing_entries(tmp_path: Path) -> None:
    crc = f"{zlib.crc32(b'payload') & 0xFFFFFFFF:08X}"
    tagged = tmp_path / f"[Group] Show - 01 [{crc}].mkv"
    tagged.write_bytes(b"payload")
    listing = tmp_path / "gone.sfv"
    listing.write_text("; comment\nmissing.mkv DEADBEEF\n", encoding="utf-8")

    report = verify([tagged, listing])

    assert [result.status for result in report.results] == ["ok", "missing"]


def test_verify_without_any_checksum_raises(tmp_path: Path) -> None:
    plain = tmp_path / "plain.mkv"
    plain.write_bytes(b"x")

    with pytest.raises(VerificationError):
        verify([plain])
