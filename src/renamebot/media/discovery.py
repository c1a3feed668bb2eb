"""Media file discovery."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, Iterator

from .models import MediaFile
from .parser import is_video_file, parse_hints

LOGGER = logging.getLogger(__name__)


def _is_hidden(path: Path) -> bool:
    return any(part.startswith(".") for part in path.parts if part not in (".", ".."))


class MediaScanner:
    """Discover media files below a set of input paths."""

    def __init__(
        self,
        *,
        recursive: bool = True,
        include_hidden: bool = False,
        selector: Callable[[Path], bool] = is_video_file,
    ) -> None:
        self.recursive = recursive
        self.include_hidden = include_hidden
        self.selector = selector

    def scan(self, paths: Iterable[Path]) -> list[MediaFile]:
        """Return media files under ``paths`` sorted by path, without duplicates.

        Explicitly listed files are always included, even when the selector would
        reject them; directories are filtered through the selector.
        """
        seen: dict[Path, MediaFile] = {}
        for path in self.iter_paths(paths):
            if path in seen:
                continue
            media = read_media_file(path)
            if media is not None:
                seen[path] = media
        return [seen[key] for key in sorted(seen)]

    def iter_paths(self, paths: Iterable[Path]) -> Iterator[Path]:
        """Yield absolute candidate file paths."""
        for raw in paths:
            root = Path(raw).expanduser().absolute()
            if root.is_file():
                yield root
                continue
            if not root.is_dir():
                LOGGER.warning("Skipping missing input path %s", root)
                continue
            children = root.rglob("*") if self.recursive else root.iterdir()
            for child in sorted(children):
                if not child.is_file():
                    continue
                if not self.include_hidden and _is_hidden(child.relative_to(root)):
                    continue
                if self.selector(child):
                    yield child


def read_media_file(path: Path) -> MediaFile | None:
    """Stat ``path`` and parse its hints; returns None when it cannot be read."""
    try:
        size = path.stat().st_size
    except OSError as exc:
        LOGGER.warning("Cannot read %s: %s", path, exc)
        return None
    return MediaFile(path=path, size_bytes=size, hints=parse_hints(path))


__all__ = ["MediaScanner", "read_media_file"]
