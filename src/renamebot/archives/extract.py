"""Extract zip and tar archives with member filtering and conflict handling."""

from __future__ import annotations

import fnmatch
import logging
import re
import shutil
import tarfile
import zipfile
from functools import partial
from pathlib import Path, PurePosixPath
from typing import IO, Callable, Iterator, List, Optional, Tuple

from pydantic import BaseModel, Field

from renamebot.organization.conflicts import is_occupied, numbered_candidate
from renamebot.organization.models import ConflictPolicy

LOGGER = logging.getLogger(__name__)

_DRIVE = re.compile(r"^[A-Za-z]:")

ARCHIVE_SUFFIXES = (
    ".zip",
    ".tar",
    ".tar.gz",
    ".tgz",
    ".tar.bz2",
    ".tbz2",
    ".tar.xz",
    ".txz",
)


class ArchiveError(Exception):
    """Raised when an archive cannot be read or extraction must stop."""


class ExtractionResult(BaseModel):
    """Outcome of extracting one archive.

    Attributes:
        archive: Archive that was read.
        output: Directory members were written to.
        extracted: Paths written, in archive order.
        skipped: ``(member, reason)`` pairs for members left out.
    """

    archive: Path
    output: Path
    extracted: List[Path] = Field(default_factory=list)
    skipped: List[Tuple[str, str]] = Field(default_factory=list)


def is_archive(path: Path) -> bool:
    name = path.name.lower()
    return any(name.endswith(suffix) for suffix in ARCHIVE_SUFFIXES)


def archive_stem(path: Path) -> str:
    name = path.name
    for suffix in sorted(ARCHIVE_SUFFIXES, key=len, reverse=True):
        if name.lower().endswith(suffix):
            return name[: -len(suffix)] or name
    return path.stem


def safe_member_path(name: str) -> Optional[PurePosixPath]:
    """Return the relative path of a member, or None when it escapes the output."""
    normalized = name.replace("\\", "/")
    if normalized.startswith("/") or _DRIVE.match(normalized):
        return None
    member = PurePosixPath(normalized)
    parts = [part for part in member.parts if part not in ("", ".")]
    if not parts or any(part == ".." for part in parts):
        return None
    return PurePosixPath(*parts)


Opener = Callable[[], "_MemberReader"]


class ArchiveExtractor:
    """Extract archive members below an output directory.

    A glob ``member_filter`` restricts extraction to matching members; with
    ``force_all`` every member is extracted as soon as one of them matches. Members
    whose destination already exists are handled by the conflict policy.
    """

    def __init__(
        self,
        *,
        conflict: ConflictPolicy | str = ConflictPolicy.SKIP,
        member_filter: Optional[str] = None,
        force_all: bool = False,
    ) -> None:
        self.conflict = ConflictPolicy(conflict)
        self.member_filter = member_filter
        self.force_all = force_all

    def extract(self, archive: Path, output: Optional[Path] = None) -> ExtractionResult:
        """Extract ``archive`` into ``output`` (default: a folder named after it).

        Raises:
            ArchiveError: If the archive cannot be read, or the conflict policy is
                ``fail`` and a member destination exists.
        """
        archive = Path(archive).absolute()
        target = (output or archive.parent / archive_stem(archive)).absolute()
        result = ExtractionResult(archive=archive, output=target)

        members = self._members(archive)
        selected = self._select([name for name, _ in members])

        planned: list[tuple[str, Path, Opener]] = []
        claimed: set[Path] = set()
        for name, opener in members:
            relative = safe_member_path(name)
            if opener is None:
                result.skipped.append((name, "link or special member"))
                LOGGER.warning("Rejecting archive member %s in %s", name, archive)
                continue
            if relative is None:
                result.skipped.append((name, "unsafe member path"))
                LOGGER.warning("Rejecting unsafe archive member %s in %s", name, archive)
                continue
            if name not in selected:
                result.skipped.append((name, "excluded by filter"))
                continue
            destination = target.joinpath(*relative.parts)
            resolved = self._resolve(destination, claimed)
            if isinstance(resolved, str):
                result.skipped.append((name, resolved))
                continue
            claimed.add(resolved)
            planned.append((name, resolved, opener))

        conflicts = [reason for _, reason in result.skipped if reason.startswith("exists")]
        if self.conflict is ConflictPolicy.FAIL and conflicts:
            raise ArchiveError(
                f"{len(conflicts)} member(s) of {archive.name} already exist; nothing extracted."
            )

        for name, destination, opener in planned:
            destination.parent.mkdir(parents=True, exist_ok=True)
            if destination.is_symlink():
                destination.unlink()
            try:
                with opener() as source, destination.open("wb") as sink:
                    shutil.copyfileobj(source, sink)
            except (OSError, zipfile.BadZipFile, tarfile.TarError) as exc:
                raise ArchiveError(f"Cannot extract {name} from {archive}: {exc}") from exc
            result.extracted.append(destination)
        LOGGER.info("Extracted %d member(s) from %s", len(result.extracted), archive)
        return result

    def _select(self, names: list[str]) -> set[str]:
        if not self.member_filter:
            return set(names)
        pattern = self.member_filter.lower()
        matching = {
            name
            for name in names
            if fnmatch.fnmatch(name.lower(), pattern)
            or fnmatch.fnmatch(PurePosixPath(name).name.lower(), pattern)
        }
        if matching and self.force_all:
            return set(names)
        return matching

    def _resolve(self, destination: Path, claimed: set[Path]) -> Path | str:
        if destination not in claimed and not is_occupied(destination):
            return destination
        if self.conflict is ConflictPolicy.OVERWRITE and destination not in claimed:
            if destination.is_dir():
                return f"exists as a directory: {destination}"
            return destination
        if self.conflict is ConflictPolicy.APPEND_NUMBER:
            for counter in range(1, 1000):
                candidate = numbered_candidate(destination, counter)
                if candidate not in claimed and not is_occupied(candidate):
                    return candidate
        return f"exists: {destination}"

    def _members(self, archive: Path) -> list[tuple[str, Optional[Opener]]]:
        try:
            if zipfile.is_zipfile(archive):
                return list(self._zip_members(archive))
            if tarfile.is_tarfile(archive):
                return list(self._tar_members(archive))
        except (OSError, zipfile.BadZipFile, tarfile.TarError) as exc:
            raise ArchiveError(f"Cannot read archive {archive}: {exc}") from exc
        raise ArchiveError(f"Unsupported archive format: {archive}")

    def _zip_members(self, archive: Path) -> Iterator[tuple[str, Optional[Opener]]]:
        with zipfile.ZipFile(archive) as handle:
            names = [info.filename for info in handle.infolist() if not info.is_dir()]
        for name in names:
            yield name, partial(_MemberReader.from_zip, archive, name)

    def _tar_members(self, archive: Path) -> Iterator[tuple[str, Optional[Opener]]]:
        with tarfile.open(archive) as handle:
            members = handle.getmembers()
        for member in members:
            if member.isdir():
                continue
            if not member.isfile():
                yield member.name, None
                continue
            yield member.name, partial(_MemberReader.from_tar, archive, member.name)


class _MemberReader:
    """Stream one archive member while keeping its archive open."""

    def __init__(self, archive: zipfile.ZipFile | tarfile.TarFile, stream: IO[bytes]) -> None:
        self._archive = archive
        self._stream = stream

    @classmethod
    def from_zip(cls, path: Path, name: str) -> "_MemberReader":
        archive = zipfile.ZipFile(path)
        return cls(archive, archive.open(name))

    @classmethod
    def from_tar(cls, path: Path, name: str) -> "_MemberReader":
        archive = tarfile.open(path)
        stream = archive.extractfile(name)
        if stream is None:
            archive.close()
            raise ArchiveError(f"Archive member {name} has no content.")
        return cls(archive, stream)

    def read(self, size: int = -1) -> bytes:
        return self._stream.read(size)

    def __enter__(self) -> "_MemberReader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._stream.close()
        self._archive.close()


__all__ = [
    "ArchiveExtractor",
    "ArchiveError",
    "ExtractionResult",
    "is_archive",
    "archive_stem",
    "safe_member_path",
    "ARCHIVE_SUFFIXES",
]
