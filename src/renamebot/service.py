"""Operation surface shared by the CLI: rename, revert and companion tasks."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Iterator, Literal, Mapping, Optional, Sequence

from renamebot.archives import ArchiveExtractor, ExtractionResult, is_archive
from renamebot.commands import ExecCommand
from renamebot.config.models import RenamebotConfig
from renamebot.datasources import Datasource, MetadataRecord, SortOrder, create_datasource
from renamebot.formatting import NameFormatter, RecordFilter, file_bindings, record_bindings
from renamebot.history import HistoryRepository
from renamebot.matching import MatchEngine, MatchReport
from renamebot.media import MediaFile, MediaInspector, MediaScanner, is_subtitle_file
from renamebot.mediainfo import DEFAULT_INFO_FORMAT, get_media_info, matches_glob
from renamebot.organization import (
    ExecutionReport,
    RenameAction,
    RenameExecutor,
    RenamePlan,
    RenamePlanner,
)
from renamebot.query import QueryCache, QueryResolver, QueryResult, queries_from_files
from renamebot.subtitles import SubtitleAligner, SubtitleNaming, SubtitleResult
from renamebot.verification import HashType, VerificationReport, compute, verify

LOGGER = logging.getLogger(__name__)

DEFAULT_LIST_FORMAT = "{n} - {s00e00} - {t}"


@dataclass
class RenameOutcome:
    """Everything produced by one rename run.

    Attributes:
        matches: Match report, empty for explicit mappings.
        plan: Resolved plan that was executed.
        report: Execution results.
        query_errors: Datasource errors keyed by query.
        exec_codes: Exit codes of the post-rename command, if one ran.
    """

    plan: RenamePlan
    report: ExecutionReport
    matches: MatchReport = field(default_factory=MatchReport)
    query_errors: dict[str, str] = field(default_factory=dict)
    exec_codes: list[int] = field(default_factory=list)


class RenameService:
    """High-level operations wired from a resolved configuration.

    Datasources are created lazily by name and share one query cache, so repeated
    operations in one process reuse search and fetch responses.
    """

    def __init__(
        self,
        config: RenamebotConfig,
        *,
        datasource: Optional[Datasource] = None,
        history: Optional[HistoryRepository] = None,
    ) -> None:
        self.config = config
        self.history = history or HistoryRepository(Path(config.history.path))
        self.cache = QueryCache(
            max_size=config.query.cache_size, ttl_seconds=config.query.cache_ttl_seconds
        )
        self._datasources: dict[str, Datasource] = {}
        if datasource is not None:
            self._datasources[datasource.name] = datasource
            self._default_datasource: Optional[str] = datasource.name
        else:
            self._default_datasource = None

    # ------------------------------------------------------------------ #
    # Building blocks                                                    #
    # ------------------------------------------------------------------ #

    def datasource(self, name: Optional[str] = None) -> Datasource:
        """Return the datasource called ``name``, or the configured default."""
        selected = (name or self._default_datasource or self.config.datasource.provider).lower()
        if selected not in self._datasources:
            self._datasources[selected] = create_datasource(selected, self.config.datasource)
        return self._datasources[selected]

    def discover(self, paths: Iterable[Path], *, recursive: bool = True) -> list[MediaFile]:
        """Return the video files below ``paths``."""
        return MediaScanner(recursive=recursive).scan(paths)

    def resolve_records(
        self,
        files: Sequence[MediaFile],
        *,
        query: Optional[str] = None,
        datasource: Optional[str] = None,
        order: SortOrder = SortOrder.AIRDATE,
        locale: Optional[str] = None,
        strict: Optional[bool] = None,
        filter_expression: Optional[str] = None,
    ) -> QueryResult:
        """Resolve candidate records for ``files`` (or for an explicit query).

        Records rejected by ``filter_expression`` are removed from the result.
        """
        resolver = QueryResolver(
            self.datasource(datasource),
            workers=self.config.query.workers,
            threshold=self.config.matching.threshold,
            max_results=self.config.datasource.max_results,
            cache=self.cache,
        )
        queries = [query] if query else queries_from_files(files)
        result = resolver.resolve(
            queries,
            order=order,
            locale=locale or self.config.datasource.language,
            strict=self.config.matching.strict if strict is None else strict,
        )
        record_filter = RecordFilter(filter_expression)
        if record_filter:
            result.records = [
                record for record in result.records if record_filter(record_bindings(record))
            ]
        return result

    def planner(
        self,
        *,
        action: Optional[str] = None,
        conflict: Optional[str] = None,
        output: Optional[Path] = None,
        episode_format: Optional[str] = None,
        movie_format: Optional[str] = None,
    ) -> RenamePlanner:
        options = self.config.rename
        configured_output = Path(options.output).expanduser() if options.output else None
        return RenamePlanner(
            episode_format=episode_format or options.episode_format,
            movie_format=movie_format or options.movie_format,
            action=action or options.action,
            conflict=conflict or options.conflict,
            output=output if output is not None else configured_output,
        )

    # ------------------------------------------------------------------ #
    # Rename and revert                                                  #
    # ------------------------------------------------------------------ #

    def rename(
        self,
        paths: Iterable[Path],
        *,
        query: Optional[str] = None,
        datasource: Optional[str] = None,
        order: SortOrder = SortOrder.AIRDATE,
        locale: Optional[str] = None,
        strict: Optional[bool] = None,
        filter_expression: Optional[str] = None,
        action: Optional[str] = None,
        conflict: Optional[str] = None,
        output: Optional[Path] = None,
        episode_format: Optional[str] = None,
        movie_format: Optional[str] = None,
        exec_template: Optional[str] = None,
    ) -> RenameOutcome:
        """Match files against datasource records and rename them.

        Args:
            paths: Files or directories to rename.
            query: Explicit query; derived from file names when omitted.
            datasource: Datasource name; defaults to the configured provider.
            order: Episode numbering used when fetching records.
            locale: Datasource locale.
            strict: Overrides ``matching.strict``.
            filter_expression: Record filter such as ``s == 1``.
            action: Overrides ``rename.action``.
            conflict: Overrides ``rename.conflict``.
            output: Output directory for relative destinations.
            episode_format: Overrides ``rename.episode_format``.
            movie_format: Overrides ``rename.movie_format``.
            exec_template: Command run for renamed files after the batch.

        Returns:
            RenameOutcome: Matches, plan and execution results.

        Raises:
            ConflictError: If the conflict policy is ``fail`` and a conflict exists.
            DatasourceError: If the datasource cannot be created.
            FormatError: If a template or filter is invalid.
        """
        planner = self.planner(
            action=action,
            conflict=conflict,
            output=output,
            episode_format=episode_format,
            movie_format=movie_format,
        )
        files = self.discover(paths)
        resolved = self.resolve_records(
            files,
            query=query,
            datasource=datasource,
            order=order,
            locale=locale,
            strict=strict,
            filter_expression=filter_expression,
        )
        engine = MatchEngine(
            threshold=self.config.matching.threshold,
            strict=self.config.matching.strict if strict is None else strict,
        )
        matches = engine.match(files, resolved.records)
        return self._apply(planner, matches, resolved.errors, exec_template)

    def rename_linear(
        self,
        paths: Iterable[Path],
        *,
        query: str,
        datasource: Optional[str] = None,
        order: SortOrder = SortOrder.AIRDATE,
        locale: Optional[str] = None,
        filter_expression: Optional[str] = None,
        action: Optional[str] = None,
        conflict: Optional[str] = None,
        output: Optional[Path] = None,
        episode_format: Optional[str] = None,
        movie_format: Optional[str] = None,
        exec_template: Optional[str] = None,
    ) -> RenameOutcome:
        """Pair files in sorted order with the records of ``query`` in sort order."""
        planner = self.planner(
            action=action,
            conflict=conflict,
            output=output,
            episode_format=episode_format,
            movie_format=movie_format,
        )
        files = self.discover(paths)
        resolved = self.resolve_records(
            files,
            query=query,
            datasource=datasource,
            order=order,
            locale=locale,
            filter_expression=filter_expression,
        )
        records = sorted(resolved.records, key=MetadataRecord.sort_key)
        matches = MatchEngine().match_linear(files, records)
        return self._apply(planner, matches, resolved.errors, exec_template)

    def rename_mapping(
        self,
        pairs: Mapping[Path, Path] | Iterable[tuple[Path, Path]],
        *,
        action: Optional[str] = None,
        conflict: Optional[str] = None,
        output: Optional[Path] = None,
    ) -> RenameOutcome:
        """Rename files according to explicit source to destination pairs."""
        planner = self.planner(action=action, conflict=conflict, output=output)
        plan = planner.plan_mapping(pairs)
        report = RenameExecutor(self.history).apply(plan)
        return RenameOutcome(plan=plan, report=report)

    def revert(
        self,
        paths: Optional[Iterable[Path]] = None,
        *,
        last: bool = False,
        dry_run: bool = False,
        filter_glob: Optional[str] = None,
        action: Optional[str] = None,
    ) -> ExecutionReport:
        """Revert renamed files, or the whole most recent batch with ``last``.

        A folder in ``paths`` selects every pending entry renamed into it. Only
        entries whose current path matches ``filter_glob`` are reverted.

        Raises:
            MissingHistoryError: If a path has no history or nothing is left to revert.
        """
        if last or paths is None:
            batch = self.history.last_batch()
            entries = [(batch.id, entry) for entry in reversed(batch.pending)]
        else:
            paths = list(paths)
            folders = [path for path in paths if path.is_dir()]
            entries = self.history.find([path for path in paths if not path.is_dir()])
            for folder in folders:
                entries.extend(self.history.pending_under(folder))
        if filter_glob:
            entries = [item for item in entries if matches_glob(item[1].destination, filter_glob)]
        LOGGER.debug("Reverting %d history entries", len(entries))
        return RenameExecutor(self.history).revert(
            entries, dry_run=dry_run, action=action or RenameAction.MOVE
        )

    def _apply(
        self,
        planner: RenamePlanner,
        matches: MatchReport,
        errors: dict[str, str],
        exec_template: Optional[str],
    ) -> RenameOutcome:
        plan = planner.build_plan(matches)
        report = RenameExecutor(self.history).apply(plan)
        outcome = RenameOutcome(plan=plan, report=report, matches=matches, query_errors=errors)
        if exec_template and report.final_paths:
            outcome.exec_codes = list(self.execute(report.final_paths, exec_template))
        return outcome

    # ------------------------------------------------------------------ #
    # Companion operations                                               #
    # ------------------------------------------------------------------ #

    def fetch_episode_list(
        self,
        query: str,
        *,
        template: str = DEFAULT_LIST_FORMAT,
        filter_expression: Optional[str] = None,
        datasource: Optional[str] = None,
        order: SortOrder = SortOrder.AIRDATE,
        locale: Optional[str] = None,
        strict: bool = True,
    ) -> list[str]:
        """Render one line per record returned for ``query``.

        With ``strict`` only records from the best search result are listed;
        otherwise every search result above the match threshold contributes.
        """
        formatter = NameFormatter(template)
        resolved = self.resolve_records(
            [],
            query=query,
            datasource=datasource,
            order=order,
            locale=locale,
            strict=strict,
            filter_expression=filter_expression,
        )
        records = sorted(resolved.records, key=MetadataRecord.sort_key)
        return [formatter.render(record_bindings(record)) for record in records]

    def get_media_info(
        self,
        paths: Iterable[Path],
        *,
        filter_glob: Optional[str] = None,
        template: str = DEFAULT_INFO_FORMAT,
    ) -> Iterator[str]:
        files = MediaScanner(selector=lambda _: True).iter_paths(paths)
        return get_media_info(files, filter_glob, template)

    def execute(
        self,
        paths: Iterable[Path],
        template: str,
        *,
        filter_glob: Optional[str] = None,
    ) -> Iterator[int]:
        """Run ``template`` for the files matching ``filter_glob`` and yield exit codes."""
        command = ExecCommand(template)
        media = [
            item
            for item in MediaScanner(selector=lambda _: True).scan(paths)
            if matches_glob(item.path, filter_glob)
        ]
        inspector = MediaInspector() if command.uses_media else None
        items = []
        for item in media:
            bindings = file_bindings(item.path, item)
            if inspector is not None:
                bindings.update(inspector.bindings(item.path))
            items.append(bindings)
        return command.run(items)

    def get_subtitles(
        self,
        paths: Iterable[Path],
        *,
        missing_only: bool = False,
        language: Optional[str] = None,
        naming: Optional[SubtitleNaming] = None,
        output_format: Optional[Literal["srt", "vtt"]] = None,
        encoding: Optional[str] = None,
        strict: Optional[bool] = None,
        output: Optional[Path] = None,
    ) -> list[SubtitleResult]:
        """Pair subtitle files found below ``paths`` with the videos there."""
        options = self.config.subtitles
        aligner = SubtitleAligner(
            language=language or options.language,
            naming=naming or options.naming,
            output_format=output_format or options.format,
            encoding=encoding or options.encoding,
            strict=self.config.matching.strict if strict is None else strict,
            threshold=self.config.matching.threshold,
        )
        paths = list(paths)
        videos = self.discover(paths)
        subtitles = MediaScanner(selector=is_subtitle_file).scan(paths)
        if missing_only:
            return aligner.get_missing_subtitles(videos, subtitles, output=output)
        return aligner.get_subtitles(videos, subtitles, output=output)

    def get_missing_subtitles(self, paths: Iterable[Path], **options: Any) -> list[SubtitleResult]:
        """Like :meth:`get_subtitles` for videos that have no subtitle yet."""
        return self.get_subtitles(paths, missing_only=True, **options)

    def check(self, paths: Iterable[Path]) -> VerificationReport:
        """Verify checksum files or media files.

        Raises:
            VerificationError: If nothing can be verified.
        """
        files = MediaScanner(selector=lambda _: True).iter_paths(paths)
        return verify(files, self.config.hashing.encoding)

    def compute(
        self,
        paths: Iterable[Path],
        *,
        hash_type: Optional[str] = None,
        output: Optional[Path] = None,
        encoding: Optional[str] = None,
    ) -> Path:
        """Write a checksum file for the media files below ``paths``."""
        files = [media.path for media in self.discover(paths)]
        return compute(
            files,
            HashType(hash_type or self.config.hashing.hash_type),
            output,
            encoding or self.config.hashing.encoding,
        )

    def extract(
        self,
        paths: Iterable[Path],
        *,
        output: Optional[Path] = None,
        conflict: Optional[str] = None,
        member_filter: Optional[str] = None,
        force_all: bool = False,
    ) -> list[ExtractionResult]:
        """Extract every archive below ``paths``.

        Raises:
            ArchiveError: If an archive cannot be read or the policy is ``fail``.
        """
        extractor = ArchiveExtractor(
            conflict=conflict or self.config.rename.conflict,
            member_filter=member_filter,
            force_all=force_all,
        )
        archives = MediaScanner(selector=is_archive).iter_paths(paths)
        return [extractor.extract(archive, output) for archive in archives]


__all__ = ["RenameService", "RenameOutcome", "DEFAULT_LIST_FORMAT"]
