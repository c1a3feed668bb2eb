"""Associate media files with metadata records."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from renamebot.datasources.models import MetadataRecord
from renamebot.media.models import MediaFile

from .models import Match, MatchReport
from .similarity import best_similarity, normalize_title

LOGGER = logging.getLogger(__name__)


class MatchEngine:
    """Pick the best record for each file by title similarity and numbering.

    Matching is a pure function of the files and the record snapshot: candidates are
    ranked by score, then by lowest record id, so identical inputs always produce
    identical matches.
    """

    def __init__(
        self,
        *,
        threshold: float = 0.6,
        strict: bool = False,
        year_bonus: float = 0.1,
        year_penalty: float = 0.1,
    ) -> None:
        self.threshold = threshold
        self.strict = strict
        self.year_bonus = year_bonus
        self.year_penalty = year_penalty

    def match(self, files: Iterable[MediaFile], records: Sequence[MetadataRecord]) -> MatchReport:
        """Match every file against ``records``.

        Args:
            files: Media files to match; the report keeps their order.
            records: Candidate records from the query resolver.

        Returns:
            MatchReport: One match per file, unmatched files included.
        """
        report = MatchReport()
        for media in files:
            match = self.match_file(media, records)
            if match.matched:
                LOGGER.debug("Matched %s -> %s (%.2f)", media.name, match.record.title, match.score)
            else:
                LOGGER.info("No match for %s: %s", media.name, match.reason)
            report.matches.append(match)
        return report

    def match_file(self, media: MediaFile, records: Sequence[MetadataRecord]) -> Match:
        """Return the match for a single file."""
        candidates: list[tuple[float, MetadataRecord]] = []
        for record in records:
            score = self.score(media, record)
            if score is not None:
                candidates.append((score, record))

        if not candidates:
            return Match(file=media, reason=self._no_candidate_reason(media, records))

        candidates.sort(key=lambda pair: (-pair[0], pair[1].id, pair[1].sort_key()))
        best_score, best = candidates[0]

        if best_score < self.threshold:
            return Match(
                file=media,
                score=best_score,
                reason=(
                    f"best candidate '{best.title}' scored {best_score:.2f}, "
                    f"below threshold {self.threshold:.2f}"
                ),
            )

        if self.strict and len(candidates) > 1:
            runner_score, runner = candidates[1]
            if runner_score == best_score and normalize_title(runner.title) != normalize_title(
                best.title
            ):
                return Match(
                    file=media,
                    score=best_score,
                    reason=f"ambiguous between '{best.title}' and '{runner.title}'",
                )

        return Match(
            file=media,
            record=best,
            extra_records=tuple(self._extra_episodes(media, best, records)),
            score=best_score,
            confident=True,
        )

    def match_linear(
        self, files: Sequence[MediaFile], records: Sequence[MetadataRecord]
    ) -> MatchReport:
        """Pair files with records by position, ignoring names.

        Files beyond the end of the record list are reported unmatched.
        """
        report = MatchReport()
        for index, media in enumerate(files):
            if index < len(records):
                report.matches.append(
                    Match(file=media, record=records[index], score=1.0, confident=True)
                )
            else:
                report.matches.append(
                    Match(file=media, reason=f"no record left at position {index + 1}")
                )
        return report

    def score(self, media: MediaFile, record: MetadataRecord) -> Optional[float]:
        """Return the score of ``record`` for ``media``, or None when it is not eligible."""
        hints = media.hints
        if record.kind == "episode":
            if not self._numbers_agree(media, record):
                return None
        elif hints.is_episode:
            return None

        score = best_similarity(hints.title, record.titles) if hints.title else 0.0
        if hints.year is not None and record.year is not None:
            if hints.year == record.year:
                score += self.year_bonus
            elif record.kind == "movie" and abs(hints.year - record.year) > 1:
                score -= self.year_penalty
        return round(min(1.0, max(0.0, score)), 6)

    def _numbers_agree(self, media: MediaFile, record: MetadataRecord) -> bool:
        hints = media.hints
        if hints.season is not None and hints.episodes:
            return record.season == hints.season and record.episode == hints.episodes[0]
        if hints.absolute is not None:
            return record.absolute == hints.absolute
        return False

    def _extra_episodes(
        self,
        media: MediaFile,
        best: MetadataRecord,
        records: Sequence[MetadataRecord],
    ) -> list[MetadataRecord]:
        if best.kind != "episode" or len(media.hints.episodes) < 2:
            return []
        extras: list[MetadataRecord] = []
        for number in media.hints.episodes[1:]:
            for record in records:
                if (
                    record.kind == "episode"
                    and record.datasource == best.datasource
                    and record.series_id == best.series_id
                    and record.season == best.season
                    and record.episode == number
                ):
                    extras.append(record)
                    break
        return extras

    def _no_candidate_reason(self, media: MediaFile, records: Sequence[MetadataRecord]) -> str:
        if not records:
            return "no metadata records available"
        hints = media.hints
        if hints.is_episode:
            if hints.season is not None:
                number = f"S{hints.season:02d}E{hints.episodes[0]:02d}"
            else:
                number = f"absolute episode {hints.absolute}"
            return f"no record for {number}"
        if all(record.kind == "episode" for record in records):
            return "no episode numbers in file name"
        return "no eligible candidates"


__all__ = ["MatchEngine"]
