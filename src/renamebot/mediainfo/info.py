"""Render per-file information lines."""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path
from typing import Iterable, Iterator, Optional

from renamebot.formatting.bindings import file_bindings
from renamebot.formatting.formatter import KNOWN_BINDINGS, NameFormatter
from renamebot.media.discovery import read_media_file
from renamebot.media.streams import MediaInspector

LOGGER = logging.getLogger(__name__)

DEFAULT_INFO_FORMAT = "{f} | {size} bytes | {mime}"


def matches_glob(path: Path, pattern: Optional[str]) -> bool:
    """Return True when ``pattern`` is empty or matches the name or full path."""
    if not pattern:
        return True
    lowered = pattern.lower()
    return fnmatch.fnmatch(path.name.lower(), lowered) or fnmatch.fnmatch(
        path.as_posix().lower(), lowered
    )


def get_media_info(
    files: Iterable[Path],
    filter_glob: Optional[str] = None,
    template: str = DEFAULT_INFO_FORMAT,
    inspector: Optional[MediaInspector] = None,
) -> Iterator[str]:
    """Yield one rendered line per file matching ``filter_glob``.

    Args:
        files: Files to describe.
        filter_glob: Optional glob on the file name or path.
        template: Template over file bindings (``f``, ``fn``, ``ext``, ``size``, ...)
            and media bindings (``vc``, ``ac``, ``vf``, ``af``, ``resolution``,
            ``duration``, ``minutes``, ``bitrate``).
        inspector: ffprobe wrapper used for media bindings.

    Raises:
        FormatError: If the template is invalid.
    """
    formatter = NameFormatter(template, inspector=inspector)
    for path in files:
        path = Path(path)
        if not matches_glob(path, filter_glob):
            continue
        media = read_media_file(path)
        if media is None:
            continue
        bindings = dict.fromkeys(KNOWN_BINDINGS)
        bindings.update(file_bindings(path, media))
        if formatter.uses_media:
            bindings.update(formatter.inspector.bindings(path))
        yield formatter.render(bindings)


__all__ = ["get_media_info", "matches_glob", "DEFAULT_INFO_FORMAT"]
