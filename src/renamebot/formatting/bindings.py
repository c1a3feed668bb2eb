"""Template bindings for matches, records and plain files."""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Any, Optional, Sequence

from renamebot.datasources.models import MetadataRecord
from renamebot.media.models import MediaFile


def _episode_code(record: MetadataRecord, extras: Sequence[MetadataRecord]) -> Optional[str]:
    if record.season is None or record.episode is None:
        return None
    code = f"S{record.season:02d}E{record.episode:02d}"
    if extras:
        code += "".join(f"-E{extra.episode:02d}" for extra in extras if extra.episode is not None)
    return code


def _cross_code(record: MetadataRecord, extras: Sequence[MetadataRecord]) -> Optional[str]:
    if record.season is None or record.episode is None:
        return None
    code = f"{record.season}x{record.episode:02d}"
    if extras:
        code += "".join(f"-{extra.episode:02d}" for extra in extras if extra.episode is not None)
    return code


def record_bindings(
    record: MetadataRecord,
    extras: Sequence[MetadataRecord] = (),
) -> dict[str, Any]:
    """Return the bindings describing a metadata record.

    ``n`` title, ``y`` year, ``s`` season, ``e`` episode, ``s00e00`` and ``sxe``
    episode codes, ``t`` episode title, ``absolute``, ``id``, ``airdate`` and
    ``source``. Multi-episode extras extend the codes and join the titles.
    """
    titles = [record.episode_title, *(extra.episode_title for extra in extras)]
    episode_title = " & ".join(title for title in titles if title) or None
    return {
        "n": record.title,
        "y": record.year,
        "s": record.season,
        "e": record.episode,
        "s00e00": _episode_code(record, extras),
        "sxe": _cross_code(record, extras),
        "t": episode_title,
        "absolute": record.absolute,
        "id": record.id,
        "airdate": record.airdate.isoformat() if record.airdate else None,
        "source": record.datasource,
        "kind": record.kind,
    }


def file_bindings(path: Path, media: MediaFile | None = None) -> dict[str, Any]:
    """Return the bindings describing a file on disk.

    ``f`` absolute path, ``fn`` stem, ``ext`` extension without the dot, ``folder``
    parent directory, ``size`` in bytes, ``mime`` type, and the parsed hints as
    ``hn`` (title), ``hy`` (year), ``hs``/``he`` (season/episode) and ``group``.
    """
    mime, _ = mimetypes.guess_type(path.name)
    try:
        size: Optional[int] = media.size_bytes if media is not None else path.stat().st_size
    except OSError:
        size = None
    hints = media.hints if media is not None else None
    return {
        "f": str(path),
        "fn": path.stem,
        "ext": path.suffix.lstrip("."),
        "folder": str(path.parent),
        "size": size,
        "mime": mime,
        "hn": hints.title if hints else None,
        "hy": hints.year if hints else None,
        "hs": hints.season if hints else None,
        "he": hints.episodes[0] if hints and hints.episodes else None,
        "group": hints.group if hints else None,
    }


def match_bindings(
    media: MediaFile,
    record: MetadataRecord,
    extras: Sequence[MetadataRecord] = (),
) -> dict[str, Any]:
    """Return file bindings overlaid with record bindings."""
    bindings = file_bindings(media.path, media)
    bindings.update(record_bindings(record, extras))
    return bindings


__all__ = ["record_bindings", "file_bindings", "match_bindings"]
