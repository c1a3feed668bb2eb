"""SubRip and WebVTT parsing, conversion and decoding."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

_TIMING = re.compile(
    r"^\s*((?:\d+:)?\d{1,2}:\d{2}[,.]\d{1,3})\s*-->\s*((?:\d+:)?\d{1,2}:\d{2}[,.]\d{1,3})"
)
_BLOCK_SPLIT = re.compile(r"\n\s*\n")

FALLBACK_ENCODINGS = ("utf-8-sig", "cp1252", "latin-1")


class SubtitleFormatError(ValueError):
    """Raised when subtitle text cannot be parsed."""


@dataclass(frozen=True, slots=True)
class Cue:
    """One timed subtitle cue; times are in milliseconds."""

    start: int
    end: int
    text: str


def parse_timestamp(value: str) -> int:
    """Convert ``HH:MM:SS,mmm`` or ``MM:SS.mmm`` to milliseconds."""
    clock, _, fraction = value.replace(",", ".").partition(".")
    parts = [int(part) for part in clock.split(":")]
    while len(parts) < 3:
        parts.insert(0, 0)
    hours, minutes, seconds = parts
    millis = int(fraction.ljust(3, "0")[:3]) if fraction else 0
    return ((hours * 60 + minutes) * 60 + seconds) * 1000 + millis


def format_timestamp(millis: int, separator: str) -> str:
    hours, rest = divmod(millis, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    seconds, millis = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}{separator}{millis:03d}"


def _blocks(text: str) -> list[list[str]]:
    normalized = text.replace("\r\n", "\n").replace("\r", "\n").lstrip("\ufeff")
    return [block.split("\n") for block in _BLOCK_SPLIT.split(normalized.strip()) if block.strip()]


def _cue_from_lines(lines: list[str]) -> Cue | None:
    for index, line in enumerate(lines):
        match = _TIMING.match(line)
        if match:
            body = "\n".join(lines[index + 1 :]).strip("\n")
            return Cue(parse_timestamp(match.group(1)), parse_timestamp(match.group(2)), body)
    return None


def parse_srt(text: str) -> list[Cue]:
    """Parse SubRip text into cues.

    Raises:
        SubtitleFormatError: If no cue can be found.
    """
    cues = [cue for cue in map(_cue_from_lines, _blocks(text)) if cue is not None]
    if not cues and text.strip():
        raise SubtitleFormatError("No SubRip cues found.")
    return cues


def parse_vtt(text: str) -> list[Cue]:
    """Parse WebVTT text into cues, ignoring NOTE, STYLE and REGION blocks."""
    blocks = _blocks(text)
    if not blocks or not blocks[0][0].startswith("WEBVTT"):
        raise SubtitleFormatError("Missing WEBVTT header.")
    cues = []
    for lines in blocks[1:]:
        if lines[0].startswith(("NOTE", "STYLE", "REGION")):
            continue
        cue = _cue_from_lines(lines)
        if cue is not None:
            cues.append(cue)
    return cues


def format_srt(cues: Iterable[Cue]) -> str:
    blocks = []
    for number, cue in enumerate(cues, start=1):
        timing = f"{format_timestamp(cue.start, ',')} --> {format_timestamp(cue.end, ',')}"
        blocks.append(f"{number}\n{timing}\n{cue.text}")
    return "\n\n".join(blocks) + "\n"


def format_vtt(cues: Iterable[Cue]) -> str:
    blocks = ["WEBVTT"]
    for cue in cues:
        timing = f"{format_timestamp(cue.start, '.')} --> {format_timestamp(cue.end, '.')}"
        blocks.append(f"{timing}\n{cue.text}")
    return "\n\n".join(blocks) + "\n"


PARSERS = {"srt": parse_srt, "vtt": parse_vtt}
WRITERS = {"srt": format_srt, "vtt": format_vtt}


def convert(text: str, source_format: str, target_format: str) -> str:
    """Convert subtitle text between ``srt`` and ``vtt``.

    Text in the target format already, or in a format without a parser, is
    returned unchanged.
    """
    if source_format == target_format or source_format not in PARSERS:
        return text
    return WRITERS[target_format](PARSERS[source_format](text))


def decode(data: bytes, preferred: str | None = None) -> str:
    """Decode subtitle bytes, trying ``preferred`` and then common encodings."""
    encodings = ([preferred] if preferred else []) + list(FALLBACK_ENCODINGS)
    for encoding in encodings:
        try:
            return data.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            continue
    return data.decode("latin-1")


__all__ = [
    "Cue",
    "SubtitleFormatError",
    "parse_srt",
    "parse_vtt",
    "format_srt",
    "format_vtt",
    "convert",
    "decode",
    "parse_timestamp",
    "format_timestamp",
]
