"""Subtitle pairing, naming and format conversion."""

from .aligner import SubtitleAligner, SubtitleNaming, SubtitleResult, has_subtitle
from .formats import Cue, SubtitleFormatError, convert, decode, parse_srt, parse_vtt

__all__ = [
    "SubtitleAligner",
    "SubtitleNaming",
    "SubtitleResult",
    "has_subtitle",
    "Cue",
    "SubtitleFormatError",
    "convert",
    "decode",
    "parse_srt",
    "parse_vtt",
]
