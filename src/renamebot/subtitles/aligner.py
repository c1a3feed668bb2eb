"""Pair subtitle files with videos and write them next to their video."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Literal, Optional, Sequence

from pydantic import BaseModel

from renamebot.matching.similarity import similarity
from renamebot.media.models import MediaFile

from .formats import SubtitleFormatError, convert, decode

LOGGER = logging.getLogger(__name__)

SubtitleNaming = Literal["original", "match_video", "match_video_add_language_tag"]


class SubtitleResult(BaseModel):
    """Outcome for one video.

    Attributes:
        video: Video the subtitle belongs to.
        subtitle: Subtitle file that was paired, if any.
        destination: Path written, if any.
        status: ``written``, ``exists``, ``unpaired`` or ``failed``.
        reason: Explanation for anything but ``written``.
    """

    video: Path
    subtitle: Optional[Path] = None
    destination: Optional[Path] = None
    status: Literal["written", "exists", "unpaired", "failed"]
    reason: Optional[str] = None


def subtitle_format(path: Path) -> str:
    return path.suffix.lower().lstrip(".")


def has_subtitle(video: Path, language: str, extensions: Iterable[str]) -> bool:
    """Return True when a sibling subtitle for ``video`` and ``language`` exists."""
    stems = {video.stem, f"{video.stem}.{language}"}
    for extension in extensions:
        for stem in stems:
            if video.with_name(f"{stem}{extension}").exists():
                return True
    return False


class SubtitleAligner:
    """Match local subtitle files to videos and write them under a naming scheme.

    Pairing prefers an exact stem match (``Show.S01E01.mkv`` with
    ``Show.S01E01.srt`` or ``Show.S01E01.en.srt``), then matching season and
    episode hints. Outside strict mode the remaining subtitles are paired by title
    similarity when it reaches ``threshold``.
    """

    def __init__(
        self,
        *,
        language: str = "en",
        naming: SubtitleNaming = "match_video_add_language_tag",
        output_format: Literal["srt", "vtt"] = "srt",
        encoding: str = "utf-8",
        strict: bool = False,
        threshold: float = 0.6,
    ) -> None:
        self.language = language
        self.naming = naming
        self.output_format = output_format
        self.encoding = encoding
        self.strict = strict
        self.threshold = threshold

    def pair(
        self, videos: Sequence[MediaFile], subtitles: Sequence[MediaFile]
    ) -> dict[Path, MediaFile]:
        """Return the subtitle chosen for each video path.

        Each subtitle is used at most once. Videos are processed in the order given.
        """
        remaining = list(subtitles)
        pairs: dict[Path, MediaFile] = {}
        for strategy in (self._by_stem, self._by_episode, self._by_similarity):
            if strategy is self._by_similarity and self.strict:
                break
            for video in videos:
                if video.path in pairs or not remaining:
                    continue
                chosen = strategy(video, remaining)
                if chosen is not None:
                    pairs[video.path] = chosen
                    remaining.remove(chosen)
        return pairs

    def destination(self, video: Path, subtitle: Path, output: Optional[Path] = None) -> Path:
        """Return where the subtitle for ``video`` is written."""
        source_format = subtitle_format(subtitle)
        target_format = self.output_format if source_format in {"srt", "vtt"} else source_format
        if self.naming == "original":
            stem = subtitle.stem
        elif self.naming == "match_video":
            stem = video.stem
        else:
            stem = f"{video.stem}.{self.language}"
        directory = output if output is not None else video.parent
        return directory / f"{stem}.{target_format}"

    def get_subtitles(
        self,
        videos: Sequence[MediaFile],
        subtitles: Sequence[MediaFile],
        *,
        output: Optional[Path] = None,
    ) -> list[SubtitleResult]:
        """Pair and write subtitles for every video.

        Args:
            videos: Videos that should receive a subtitle.
            subtitles: Candidate subtitle files.
            output: Directory for written subtitles; defaults to the video's directory.

        Returns:
            list[SubtitleResult]: One result per video.
        """
        pairs = self.pair(videos, subtitles)
        results = []
        for video in videos:
            subtitle = pairs.get(video.path)
            if subtitle is None:
                results.append(
                    SubtitleResult(
                        video=video.path, status="unpaired", reason="no matching subtitle file"
                    )
                )
                continue
            results.append(self._write(video.path, subtitle.path, output))
        return results

    def get_missing_subtitles(
        self,
        videos: Sequence[MediaFile],
        subtitles: Sequence[MediaFile],
        *,
        output: Optional[Path] = None,
    ) -> list[SubtitleResult]:
        """Like :meth:`get_subtitles` but only for videos without a subtitle yet."""
        extensions = (".srt", ".vtt", ".sub", ".ass", ".ssa")
        missing = []
        results = []
        for video in videos:
            if has_subtitle(video.path, self.language, extensions):
                results.append(
                    SubtitleResult(
                        video=video.path,
                        status="exists",
                        reason=f"subtitle for '{self.language}' already present",
                    )
                )
            else:
                missing.append(video)
        results.extend(self.get_subtitles(missing, subtitles, output=output))
        return results

    def _write(self, video: Path, subtitle: Path, output: Optional[Path]) -> SubtitleResult:
        destination = self.destination(video, subtitle, output)
        result = SubtitleResult(
            video=video, subtitle=subtitle, destination=destination, status="failed"
        )
        if destination.exists() and destination.resolve() != subtitle.resolve():
            result.status = "exists"
            result.reason = f"{destination.name} already exists"
            return result
        try:
            text = decode(subtitle.read_bytes())
            converted = convert(text, subtitle_format(subtitle), subtitle_format(destination))
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_text(converted, encoding=self.encoding)
        except (OSError, UnicodeEncodeError, SubtitleFormatError) as exc:
            LOGGER.warning("Cannot write subtitle %s: %s", destination, exc)
            result.reason = str(exc)
            return result
        LOGGER.debug("Wrote subtitle %s for %s", destination, video)
        result.status = "written"
        return result

    def _by_stem(self, video: MediaFile, candidates: Sequence[MediaFile]) -> Optional[MediaFile]:
        stem = video.path.stem.lower()
        for candidate in candidates:
            name = candidate.path.stem.lower()
            if name == stem or name.rsplit(".", 1)[0] == stem:
                return candidate
        return None

    def _by_episode(self, video: MediaFile, candidates: Sequence[MediaFile]) -> Optional[MediaFile]:
        hints = video.hints
        if not hints.is_episode:
            return None
        for candidate in candidates:
            other = candidate.hints
            same_numbers = (
                other.season == hints.season and other.episodes[:1] == hints.episodes[:1]
                if hints.episodes
                else other.absolute == hints.absolute
            )
            if not same_numbers:
                continue
            if not hints.title or not other.title:
                return candidate
            if similarity(hints.title, other.title) >= self.threshold:
                return candidate
        return None

    def _by_similarity(
        self, video: MediaFile, candidates: Sequence[MediaFile]
    ) -> Optional[MediaFile]:
        scored = [
            (similarity(video.hints.raw_name, candidate.hints.raw_name), candidate)
            for candidate in candidates
        ]
        scored = [pair for pair in scored if pair[0] >= self.threshold]
        if not scored:
            return None
        scored.sort(key=lambda pair: (-pair[0], str(pair[1].path)))
        return scored[0][1]


__all__ = ["SubtitleAligner", "SubtitleResult", "SubtitleNaming", "has_subtitle"]
