"""Archive extraction."""

from .extract import (
    ARCHIVE_SUFFIXES,
    ArchiveError,
    ArchiveExtractor,
    ExtractionResult,
    archive_stem,
    is_archive,
    safe_member_path,
)

__all__ = [
    "ArchiveExtractor",
    "ArchiveError",
    "ExtractionResult",
    "archive_stem",
    "is_archive",
    "safe_member_path",
    "ARCHIVE_SUFFIXES",
]
