"""Checksum computation and verification (SFV, MD5, SHA-1, SHA-256)."""

from __future__ import annotations

import hashlib
import logging
import os
import re
import zlib
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Literal, Optional, Sequence

from pydantic import BaseModel, Field

LOGGER = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024
_CRC_TAG = re.compile(r"[\[(]([0-9A-Fa-f]{8})[\])]")
_SFV_LINE = re.compile(r"^(.+?)\s+([0-9A-Fa-f]{8})$")
_DIGEST_LINE = re.compile(r"^([0-9A-Fa-f]+)\s+[ *]?(.+)$")


class VerificationError(Exception):
    """Raised when checksums cannot be computed or nothing can be verified."""


class _Crc32:
    def __init__(self) -> None:
        self._value = 0

    def update(self, data: bytes) -> None:
        self._value = zlib.crc32(data, self._value)

    def hexdigest(self) -> str:
        return f"{self._value & 0xFFFFFFFF:08X}"


class HashType(str, Enum):
    """Supported checksum file types, named by their extension."""

    SFV = "sfv"
    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"

    @property
    def extension(self) -> str:
        return f".{self.value}"

    def new(self) -> Any:
        if self is HashType.SFV:
            return _Crc32()
        return hashlib.new(self.value)

    @classmethod
    def from_path(cls, path: Path) -> Optional["HashType"]:
        suffix = path.suffix.lower().lstrip(".")
        try:
            return cls(suffix)
        except ValueError:
            return None


class VerificationResult(BaseModel):
    """Outcome of verifying one file.

    Attributes:
        path: File that was checked.
        expected: Expected digest, when known.
        actual: Digest computed from the file, when it could be read.
        status: ``ok``, ``mismatch`` or ``missing``.
        source: Checksum file or ``name`` when the digest came from a CRC32 tag.
    """

    path: Path
    expected: Optional[str] = None
    actual: Optional[str] = None
    status: Literal["ok", "mismatch", "missing"]
    source: str


class VerificationReport(BaseModel):
    results: list[VerificationResult] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.results) and all(result.status == "ok" for result in self.results)


def compute_hash(path: Path, hash_type: HashType | str) -> str:
    """Return the digest of ``path`` as used in checksum files (CRC32 upper-case)."""
    hasher = HashType(hash_type).new()
    with Path(path).open("rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def _default_output(files: Sequence[Path], hash_type: HashType) -> Path:
    parent = Path(os.path.commonpath([str(path.parent) for path in files]))
    name = parent.name or "checksums"
    return parent / f"{name}{hash_type.extension}"


def compute(
    files: Iterable[Path],
    hash_type: HashType | str = HashType.SFV,
    output: Optional[Path] = None,
    encoding: str = "utf-8",
) -> Path:
    """Write a checksum file covering ``files``.

    Args:
        files: Files to hash.
        hash_type: Checksum file type.
        output: Checksum file path, or a directory to place it in. Defaults to the
            common parent directory of the files, named after that directory.
        encoding: Text encoding of the checksum file.

    Returns:
        Path: The checksum file that was written.

    Raises:
        VerificationError: If no files are given or one cannot be read.
    """
    hash_type = HashType(hash_type)
    paths = sorted({Path(path).absolute() for path in files})
    if not paths:
        raise VerificationError("No files to hash.")

    if output is None:
        target = _default_output(paths, hash_type)
    elif output.is_dir():
        target = output / f"{output.absolute().name or 'checksums'}{hash_type.extension}"
    else:
        target = output
    target = target.absolute()

    lines = []
    for path in paths:
        try:
            digest = compute_hash(path, hash_type)
        except OSError as exc:
            raise VerificationError(f"Cannot hash {path}: {exc}") from exc
        name = Path(os.path.relpath(path, target.parent)).as_posix()
        if hash_type is HashType.SFV:
            lines.append(f"{name} {digest}")
        else:
            lines.append(f"{digest} *{name}")
        LOGGER.debug("%s %s %s", hash_type.value, digest, path)

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text("\n".join(lines) + "\n", encoding=encoding)
    LOGGER.info("Wrote %d checksum(s) to %s", len(lines), target)
    return target


def _listed(checksum_file: Path, name: str) -> Path:
    return Path(os.path.normpath(checksum_file.absolute().parent / name))


def parse_checksum_file(path: Path, encoding: str = "utf-8") -> list[tuple[Path, str]]:
    """Return ``(file, digest)`` pairs listed in a checksum file."""
    hash_type = HashType.from_path(path)
    if hash_type is None:
        raise VerificationError(f"Unsupported checksum file: {path}")
    entries = []
    for raw in path.read_text(encoding=encoding, errors="replace").splitlines():
        line = raw.strip()
        if not line or line.startswith(";") or line.startswith("#"):
            continue
        if hash_type is HashType.SFV:
            match = _SFV_LINE.match(line)
            if match:
                entries.append((_listed(path, match.group(1)), match.group(2).upper()))
        else:
            match = _DIGEST_LINE.match(line)
            if match:
                entries.append((_listed(path, match.group(2)), match.group(1).lower()))
    return entries


def _verify_entry(
    path: Path, expected: str, hash_type: HashType, source: str
) -> VerificationResult:
    if not path.exists():
        return VerificationResult(path=path, expected=expected, status="missing", source=source)
    try:
        actual = compute_hash(path, hash_type)
    except OSError as exc:
        raise VerificationError(f"Cannot hash {path}: {exc}") from exc
    status = "ok" if actual.lower() == expected.lower() else "mismatch"
    return VerificationResult(
        path=path, expected=expected, actual=actual, status=status, source=source
    )


def _sibling_entries(path: Path, encoding: str) -> list[tuple[Path, HashType, str]]:
    found = []
    for hash_type in HashType:
        for checksum_file in sorted(path.parent.glob(f"*{hash_type.extension}")):
            for listed, digest in parse_checksum_file(checksum_file, encoding):
                if listed.absolute() == path.absolute():
                    found.append((checksum_file, hash_type, digest))
    return found


def verify(files: Iterable[Path], encoding: str = "utf-8") -> VerificationReport:
    """Verify checksum files, or media files against what describes them.

    Checksum files have every listed entry verified. Other files are checked
    against sibling checksum files that list them, or else against a ``[CRC32]``
    tag in their name.

    Raises:
        VerificationError: If none of the files can be verified.
    """
    report = VerificationReport()
    for raw in files:
        path = Path(raw).absolute()
        hash_type = HashType.from_path(path)
        if hash_type is not None:
            for listed, digest in parse_checksum_file(path, encoding):
                report.results.append(_verify_entry(listed, digest, hash_type, str(path)))
            continue

        siblings = _sibling_entries(path, encoding)
        if siblings:
            checksum_file, sibling_type, digest = siblings[0]
            report.results.append(_verify_entry(path, digest, sibling_type, str(checksum_file)))
            continue

        tags = _CRC_TAG.findall(path.name)
        if tags:
            report.results.append(
                _verify_entry(path, tags[-1].upper(), HashType.SFV, "name")
            )
            continue
        LOGGER.info("No checksum available for %s", path)

    if not report.results:
        raise VerificationError("No checksum information found for the given files.")
    for result in report.results:
        if result.status != "ok":
            LOGGER.warning("%s: %s", result.status, result.path)
    return report


def check(files: Iterable[Path], encoding: str = "utf-8") -> bool:
    """Return True when every verifiable file matches its checksum."""
    return verify(files, encoding).ok


__all__ = [
    "HashType",
    "VerificationError",
    "VerificationResult",
    "VerificationReport",
    "compute_hash",
    "compute",
    "parse_checksum_file",
    "verify",
    "check",
]
