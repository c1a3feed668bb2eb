"""Media discovery and file-name hint parsing."""

from .discovery import MediaScanner, read_media_file
from .models import MediaFile, MediaHints
from .parser import (
    SUBTITLE_EXTENSIONS,
    VIDEO_EXTENSIONS,
    is_subtitle_file,
    is_video_file,
    parse_hints,
)
from .streams import MEDIA_BINDINGS, MediaInspector

__all__ = [
    "MediaFile",
    "MediaHints",
    "MediaScanner",
    "read_media_file",
    "parse_hints",
    "is_video_file",
    "is_subtitle_file",
    "VIDEO_EXTENSIONS",
    "SUBTITLE_EXTENSIONS",
    "MediaInspector",
    "MEDIA_BINDINGS",
]
