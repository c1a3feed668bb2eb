"""Extract title, year and episode numbering hints from media file names.

Release-name parsing is delegated to guessit; this module maps its result onto
:class:`MediaHints` and falls back to the series folder when a name carries no title.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Mapping, Optional

from guessit import guessit
from guessit.api import GuessitException

from .models import MediaHints

LOGGER = logging.getLogger(__name__)

VIDEO_EXTENSIONS = frozenset(
    {
        ".avi",
        ".m2ts",
        ".m4v",
        ".mkv",
        ".mov",
        ".mp4",
        ".mpeg",
        ".mpg",
        ".ogm",
        ".ts",
        ".webm",
        ".wmv",
    }
)
SUBTITLE_EXTENSIONS = frozenset({".srt", ".vtt", ".sub", ".ass", ".ssa"})

_SEASON_FOLDER = re.compile(r"^(?:season|series|s)\s*\d+$|^specials$", re.IGNORECASE)


def guess(name: str) -> Mapping[str, Any]:
    """Run guessit on ``name``; an unparseable name yields an empty guess."""
    try:
        return guessit(name)
    except GuessitException as exc:
        LOGGER.debug("guessit could not parse %r: %s", name, exc)
        return {}


def _first_int(value: Any) -> Optional[int]:
    if isinstance(value, list):
        value = value[0] if value else None
    return value if isinstance(value, int) else None


def _int_list(value: Any) -> list[int]:
    values = value if isinstance(value, list) else [value]
    return [item for item in values if isinstance(item, int)]


def _text(value: Any) -> str:
    if isinstance(value, list):
        value = " ".join(str(item) for item in value)
    return str(value).strip() if value else ""


def parse_hints(path: Path | str) -> MediaHints:
    """Parse a media path into :class:`MediaHints`.

    Args:
        path: File path; only the name and parent folders are inspected.

    Returns:
        MediaHints: Parsed hints. The title falls back to the nearest parent folder
        that is not a season folder when the file name carries no title.
    """
    path = Path(path)
    known = VIDEO_EXTENSIONS | SUBTITLE_EXTENSIONS
    raw_name = path.stem if path.suffix.lower() in known else path.name

    result = guess(path.name)
    season = _first_int(result.get("season"))
    episodes = _int_list(result.get("episode"))
    absolute = _first_int(result.get("absolute_episode"))
    if season is None and episodes:
        # "Title - 012" style numbering carries no season
        absolute = absolute if absolute is not None else episodes[0]
        episodes = []

    title = _text(result.get("title"))
    if not title:
        title = _title_from_folders(path)

    return MediaHints(
        raw_name=raw_name,
        title=title,
        year=_first_int(result.get("year")),
        season=season,
        episodes=tuple(episodes),
        absolute=absolute,
        group=_text(result.get("release_group")) or None,
    )


def _title_from_folders(path: Path) -> str:
    for parent in path.parents:
        if not parent.name:
            break
        if _SEASON_FOLDER.match(parent.name.strip()):
            continue
        candidate = _text(guess(parent.name).get("title"))
        if candidate:
            return candidate
    return ""


def is_video_file(path: Path) -> bool:
    """Return True for recognized video extensions."""
    return path.suffix.lower() in VIDEO_EXTENSIONS


def is_subtitle_file(path: Path) -> bool:
    """Return True for recognized subtitle extensions."""
    return path.suffix.lower() in SUBTITLE_EXTENSIONS


__all__ = [
    "VIDEO_EXTENSIONS",
    "SUBTITLE_EXTENSIONS",
    "guess",
    "parse_hints",
    "is_video_file",
    "is_subtitle_file",
]
