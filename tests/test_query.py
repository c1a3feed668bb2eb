"""Tests for the query cache and concurrent query resolution."""

import threading
from typing import Optional

import pytest

from renamebot.datasources import (
    Datasource,
    DatasourceError,
    MetadataRecord,
    SearchResult,
    SortOrder,
)
from renamebot.query import QueryCache, QueryResolver


class _FakeDatasource(Datasource):
    name = "fake"

    def __init__(self) -> None:
        self.searches: list[str] = []
        self.fetches: list[int] = []
        self._lock = threading.Lock()
        self.series = {
            "Breaking Bad": 1,
            "Breaking Badly": 2,
            "Better Call Saul": 3,
        }

    def search(self, query: str, locale: Optional[str] = None) -> list[SearchResult]:
        with self._lock:
            self.searches.append(query)
        if query == "offline":
            raise DatasourceError("service unavailable")
        return [
            SearchResult(datasource=self.name, kind="series", id=series_id, title=title)
            for title, series_id in self.series.items()
        ]

    def fetch_records(
        self,
        result: SearchResult,
        order: SortOrder = SortOrder.AIRDATE,
        locale: Optional[str] = None,
    ) -> list[MetadataRecord]:
        with self._lock:
            self.fetches.append(result.id)
        return [
            MetadataRecord(
                datasource=self.name,
                kind="episode",
                id=result.id * 100 + episode,
                title=result.title,
                season=1,
                episode=episode,
                series_id=result.id,
            )
            for episode in (2, 1)
        ]


def test_cache_expires_and_evicts() -> None:
    now = [0.0]
    cache: QueryCache[str] = QueryCache(max_size=2, ttl_seconds=10, clock=lambda: now[0])

    cache.put("a", "1")
    cache.put("b", "2")
    assert cache.get("a") == "1"
    now[0] = 5.0
    cache.put("c", "3")

    assert cache.get("b") is None
    assert cache.stats.evictions == 1
    now[0] = 11.0
    assert cache.get("a") is None
    assert cache.get("c") == "3"
    assert len(cache) == 1


def test_cache_without_ttl_keeps_entries_until_evicted() -> None:
    now = [0.0]
    cache: QueryCache[str] = QueryCache(max_size=1, ttl_seconds=0, clock=lambda: now[0])

    cache.put("a", "1")
    now[0] = 1_000_000.0
    assert cache.get("a") == "1"

    cache.put("b", "2")
    assert cache.get("a") is None
    assert cache.stats.evictions == 1


def test_cache_does_not_store_failed_loads() -> None:
    cache: QueryCache[int] = QueryCache()

    def _fail() -> int:
        raise DatasourceError("boom")

    with pytest.raises(DatasourceError):
        cache.get_or_load("key", _fail)
    assert cache.get_or_load("key", lambda: 7) == 7


def test_resolve_merges_records_in_deterministic_order() -> None:
    source = _FakeDatasource()
    resolver = QueryResolver(source, workers=4, threshold=0.95)

    result = resolver.resolve(["breaking bad", "Breaking Bad ", "better call saul", ""])

    assert sorted(result.selected) == ["Breaking Bad", "better call saul", "breaking bad"]
    assert [(r.series_id, r.episode) for r in result.records] == [(1, 1), (1, 2), (3, 1), (3, 2)]
    assert result.errors == {}


def test_strict_keeps_only_the_best_result() -> None:
    resolver = QueryResolver(_FakeDatasource(), threshold=0.7)

    loose = resolver.resolve(["breaking bad"])
    strict = resolver.resolve(["breaking bad"], strict=True)

    assert {r.series_id for r in loose.records} == {1, 2}
    assert {r.series_id for r in strict.records} == {1}


def test_failed_query_is_reported_without_aborting_others() -> None:
    resolver = QueryResolver(_FakeDatasource(), threshold=0.95)

    result = resolver.resolve(["offline", "better call saul"])

    assert result.errors == {"offline": "service unavailable"}
    assert {r.series_id for r in result.records} == {3}


def test_repeated_queries_hit_the_shared_cache() -> None:
    source = _FakeDatasource()
    cache: QueryCache = QueryCache()
    resolver = QueryResolver(source, threshold=0.95, cache=cache)

    resolver.resolve(["breaking bad"])
    QueryResolver(source, threshold=0.95, cache=cache).resolve(["Breaking  Bad"])

    assert source.searches == ["breaking bad"]
    assert source.fetches == [1]
    assert cache.stats.hits >= 2
