"""Media file data models."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class MediaHints(BaseModel):
    """Information parsed from a media file name.

    Attributes:
        raw_name: File stem the hints were parsed from.
        title: Cleaned title guess.
        year: Release year when present in the name.
        season: Season number for episodic names.
        episodes: Episode numbers, more than one for multi-episode files.
        absolute: Absolute episode number for names without a season.
        group: Release group token.
    """

    model_config = ConfigDict(frozen=True)

    raw_name: str
    title: str = ""
    year: Optional[int] = None
    season: Optional[int] = None
    episodes: Tuple[int, ...] = ()
    absolute: Optional[int] = None
    group: Optional[str] = None

    @property
    def is_episode(self) -> bool:
        """Return True when the name carries episode numbering."""
        return bool(self.episodes) or self.absolute is not None


class MediaFile(BaseModel):
    """A media file read for one planning pass.

    Attributes:
        path: Absolute file path.
        size_bytes: File size at the time it was read.
        hints: Hints parsed from the file name.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    size_bytes: int = 0
    hints: MediaHints = Field(default_factory=lambda: MediaHints(raw_name=""))

    @property
    def name(self) -> str:
        return self.path.name


__all__ = ["MediaHints", "MediaFile"]
