"""Build rename plans from match reports and explicit mappings."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Mapping, Optional

from renamebot.formatting.formatter import FormatError, NameFormatter
from renamebot.matching.models import MatchReport

from .conflicts import ConflictResolver
from .models import (
    ConflictPolicy,
    RenameAction,
    RenameMapping,
    RenamePlan,
    UnmatchedFile,
)

LOGGER = logging.getLogger(__name__)


class RenamePlanner:
    """Derive validated rename plans from matches.

    Episode matches are rendered with the episode template and movie matches with
    the movie template. The resulting mappings go through the conflict resolver, so
    a returned plan never contains two mappings with the same destination.
    """

    def __init__(
        self,
        *,
        episode_format: str,
        movie_format: str,
        action: RenameAction | str = RenameAction.MOVE,
        conflict: ConflictPolicy | str = ConflictPolicy.SKIP,
        output: Optional[Path] = None,
    ) -> None:
        self.episode_formatter = NameFormatter(episode_format)
        self.movie_formatter = NameFormatter(movie_format)
        self.action = RenameAction(action)
        self.resolver = ConflictResolver(conflict)
        self.output = output

    def build_plan(self, report: MatchReport) -> RenamePlan:
        """Produce a plan for every matched file in ``report``.

        Args:
            report: Matches returned by the match engine.

        Returns:
            RenamePlan: Resolved mappings, skipped mappings and unmatched files.

        Raises:
            ConflictError: If the conflict policy is ``fail`` and a conflict exists.
        """
        mappings: list[RenameMapping] = []
        unmatched: list[UnmatchedFile] = []

        for match in report.matches:
            if match.record is None:
                unmatched.append(
                    UnmatchedFile(path=match.file.path, reason=match.reason or "no match")
                )
                continue
            formatter = (
                self.episode_formatter
                if match.record.kind == "episode"
                else self.movie_formatter
            )
            try:
                destination = formatter.destination(
                    match.file, match.record, match.extra_records, output=self.output
                )
            except FormatError as exc:
                LOGGER.warning("Cannot format %s: %s", match.file.path, exc)
                unmatched.append(UnmatchedFile(path=match.file.path, reason=str(exc)))
                continue
            mappings.append(
                RenameMapping(
                    source=match.file.path,
                    destination=destination,
                    action=self.action,
                    score=match.score,
                )
            )

        plan = self.resolver.resolve(mappings)
        plan.unmatched = unmatched
        return plan

    def plan_mapping(self, pairs: Mapping[Path, Path] | Iterable[tuple[Path, Path]]) -> RenamePlan:
        """Produce a plan from explicit source to destination pairs.

        Relative destinations are resolved against the output directory, or the
        source's directory when no output is configured.
        """
        items = pairs.items() if isinstance(pairs, Mapping) else pairs
        mappings = []
        for source, destination in items:
            source = Path(source).expanduser()
            destination = Path(destination).expanduser()
            if not destination.is_absolute():
                base = self.output if self.output is not None else source.parent
                destination = base / destination
            mappings.append(
                RenameMapping(source=source, destination=destination, action=self.action)
            )
        return self.resolver.resolve(mappings)


__all__ = ["RenamePlanner"]
