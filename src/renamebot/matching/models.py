"""Match data models."""

from __future__ import annotations

from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from renamebot.datasources.models import MetadataRecord
from renamebot.media.models import MediaFile


class Match(BaseModel):
    """Association of one media file with zero or one metadata record.

    Attributes:
        file: The media file being matched.
        record: Best record, or None when the file is unmatched.
        extra_records: Further episodes covered by a multi-episode file.
        score: Similarity score of the chosen (or best rejected) candidate.
        confident: Whether the score reached the configured threshold.
        reason: Explanation for unmatched files.
    """

    model_config = ConfigDict(frozen=True)

    file: MediaFile
    record: Optional[MetadataRecord] = None
    extra_records: Tuple[MetadataRecord, ...] = ()
    score: float = 0.0
    confident: bool = False
    reason: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.record is not None


class MatchReport(BaseModel):
    """Matches for a batch of files, in input order."""

    matches: List[Match] = Field(default_factory=list)

    @property
    def matched(self) -> list[Match]:
        return [match for match in self.matches if match.matched]

    @property
    def unmatched(self) -> list[Match]:
        return [match for match in self.matches if not match.matched]


__all__ = ["Match", "MatchReport"]
