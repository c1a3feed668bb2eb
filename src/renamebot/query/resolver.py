"""Resolve free-text queries into candidate metadata records."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Iterable, Optional

from renamebot.datasources.base import Datasource, DatasourceError
from renamebot.datasources.models import MetadataRecord, SearchResult, SortOrder
from renamebot.matching.similarity import best_similarity, normalize_title
from renamebot.media.models import MediaFile

from .cache import QueryCache

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class QueryResult:
    """Outcome of resolving a set of queries.

    Attributes:
        records: De-duplicated candidate records in deterministic order.
        selected: Search results whose records were fetched, keyed by query.
        errors: Datasource error messages keyed by query.
        unresolved: Queries that produced no records.
    """

    records: list[MetadataRecord] = field(default_factory=list)
    selected: dict[str, list[SearchResult]] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)
    unresolved: list[str] = field(default_factory=list)


class QueryResolver:
    """Dispatch datasource queries on a bounded worker pool."""

    def __init__(
        self,
        datasource: Datasource,
        *,
        workers: int = 4,
        threshold: float = 0.6,
        max_results: int = 5,
        cache: QueryCache | None = None,
    ) -> None:
        self.datasource = datasource
        self.workers = max(1, workers)
        self.threshold = threshold
        self.max_results = max(1, max_results)
        self.cache: QueryCache = cache if cache is not None else QueryCache()

    def resolve(
        self,
        queries: Iterable[str],
        *,
        order: SortOrder = SortOrder.AIRDATE,
        locale: Optional[str] = None,
        strict: bool = False,
    ) -> QueryResult:
        """Search every distinct query and fetch the records of the best results.

        Args:
            queries: Free-text queries; blanks and duplicates are ignored.
            order: Episode numbering passed to the datasource.
            locale: Optional locale passed to the datasource.
            strict: Keep only the top-ranked result that reaches the threshold.

        Returns:
            QueryResult: Records merged across queries plus per-query errors.
        """
        distinct = sorted({query.strip() for query in queries if query and query.strip()})
        result = QueryResult()
        if not distinct:
            return result

        merged: dict[tuple[str, str, int], MetadataRecord] = {}
        with ThreadPoolExecutor(max_workers=min(self.workers, len(distinct))) as executor:
            futures = {
                executor.submit(self._resolve_one, query, order, locale, strict): query
                for query in distinct
            }
            for future in as_completed(futures):
                query = futures[future]
                try:
                    selected, records = future.result()
                except DatasourceError as exc:
                    LOGGER.warning("Query %r failed on %s: %s", query, self.datasource.name, exc)
                    result.errors[query] = str(exc)
                    continue
                result.selected[query] = selected
                if not records:
                    result.unresolved.append(query)
                for record in records:
                    merged.setdefault(record.key, record)

        result.records = sorted(merged.values(), key=MetadataRecord.sort_key)
        result.unresolved.sort()
        LOGGER.info(
            "Resolved %d quer%s into %d record(s)",
            len(distinct),
            "y" if len(distinct) == 1 else "ies",
            len(result.records),
        )
        return result

    def search(self, query: str, locale: Optional[str] = None) -> list[SearchResult]:
        """Run a cached datasource search."""
        key = ("search", self.datasource.name, normalize_title(query), locale)
        return self.cache.get_or_load(key, lambda: self.datasource.search(query, locale))

    def fetch(
        self,
        selected: SearchResult,
        order: SortOrder = SortOrder.AIRDATE,
        locale: Optional[str] = None,
    ) -> list[MetadataRecord]:
        """Run a cached datasource fetch."""
        key = ("fetch", selected.datasource, selected.kind, selected.id, order.value, locale)
        return self.cache.get_or_load(
            key, lambda: self.datasource.fetch_records(selected, order, locale)
        )

    def rank(
        self, query: str, results: Iterable[SearchResult]
    ) -> list[tuple[float, SearchResult]]:
        """Score search results against ``query``, best first, ties by lowest id."""
        scored = [(best_similarity(query, item.titles), item) for item in results]
        scored.sort(key=lambda pair: (-pair[0], pair[1].id))
        return scored

    def select(
        self, query: str, results: Iterable[SearchResult], *, strict: bool
    ) -> list[SearchResult]:
        """Pick the search results whose records are worth fetching."""
        ranked = self.rank(query, results)
        accepted = [item for score, item in ranked if score >= self.threshold]
        if strict:
            return accepted[:1]
        if not accepted and ranked:
            return [ranked[0][1]]
        return accepted[: self.max_results]

    def _resolve_one(
        self,
        query: str,
        order: SortOrder,
        locale: Optional[str],
        strict: bool,
    ) -> tuple[list[SearchResult], list[MetadataRecord]]:
        selected = self.select(query, self.search(query, locale), strict=strict)
        records: list[MetadataRecord] = []
        for item in selected:
            records.extend(self.fetch(item, order, locale))
        LOGGER.debug("Query %r selected %s", query, [item.title for item in selected])
        return selected, records


def queries_from_files(files: Iterable[MediaFile]) -> list[str]:
    """Derive distinct queries from file title hints, in sorted order."""
    seen: dict[str, str] = {}
    for media in files:
        title = media.hints.title.strip()
        if title:
            seen.setdefault(normalize_title(title), title)
    return [seen[key] for key in sorted(seen)]


__all__ = ["QueryResolver", "QueryResult", "queries_from_files"]
