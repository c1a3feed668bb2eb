"""Tests for the catalog and TMDb datasources."""

from pathlib import Path
from typing import Any

import pytest
import requests
import yaml

from renamebot.config.models import DatasourceSettings
from renamebot.datasources import (
    CatalogDatasource,
    DatasourceError,
    SortOrder,
    TMDbClient,
    TMDbEpisodeDatasource,
    TMDbMovieDatasource,
    create_datasource,
)

CATALOG = {
    "series": [
        {
            "id": 10,
            "title": "Breaking Bad",
            "year": 2008,
            "episodes": [
                {"id": 102, "season": 1, "episode": 2, "title": "Cat's in the Bag..."},
                {"id": 101, "season": 1, "episode": 1, "title": "Pilot"},
                {"id": 100, "season": 0, "episode": 1, "title": "Special"},
            ],
        }
    ],
    "movies": [{"id": 603, "title": "The Matrix", "year": 1999}],
}


def _catalog_file(tmp_path: Path) -> Path:
    path = tmp_path / "catalog.yaml"
    path.write_text(yaml.safe_dump(CATALOG), encoding="utf-8")
    return path


def test_catalog_search_ranks_best_title_first(tmp_path: Path) -> None:
    source = CatalogDatasource(_catalog_file(tmp_path))

    results = source.search("matrix")

    assert [item.title for item in results] == ["The Matrix", "Breaking Bad"]
    assert results[0].kind == "movie"


def test_catalog_fetch_orders_episodes(tmp_path: Path) -> None:
    source = CatalogDatasource(_catalog_file(tmp_path))
    series = next(item for item in source.search("breaking bad") if item.kind == "series")

    airdate = source.fetch_records(series)
    absolute = source.fetch_records(series, SortOrder.ABSOLUTE)

    assert [(r.season, r.episode) for r in airdate] == [(0, 1), (1, 1), (1, 2)]
    numbered = {record.id: record.absolute for record in absolute}
    assert numbered == {100: None, 101: 1, 102: 2}


def test_catalog_reports_invalid_file(tmp_path: Path) -> None:
    broken = tmp_path / "catalog.yaml"
    broken.write_text("series: [{id: not-a-number}]", encoding="utf-8")

    with pytest.raises(DatasourceError):
        CatalogDatasource(broken).search("anything")


def test_create_datasource_requires_catalog_path() -> None:
    with pytest.raises(DatasourceError):
        create_datasource("catalog", DatasourceSettings())
    with pytest.raises(DatasourceError):
        create_datasource("imdb", DatasourceSettings())


class _FakeResponse:
    def __init__(self, status: int, payload: Any = None, headers: dict | None = None) -> None:
        self.status_code = status
        self._payload = payload
        self.headers = headers or {}

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self) -> Any:
        return self._payload


class _FakeSession:
    def __init__(self, responses: dict[str, list[_FakeResponse]]) -> None:
        self.responses = responses
        self.calls: list[tuple[str, dict]] = []

    def get(self, url: str, params: dict, timeout: float) -> _FakeResponse:
        endpoint = url.split("/3", 1)[1]
        self.calls.append((endpoint, params))
        return self.responses[endpoint].pop(0)


def _client(session: _FakeSession, sleeps: list[float]) -> TMDbClient:
    return TMDbClient(
        "key", session=session, sleep=sleeps.append, retries=3  # type: ignore[arg-type]
    )


def test_tmdb_client_retries_after_rate_limit() -> None:
    matrix = {"id": 603, "title": "The Matrix", "release_date": "1999-03-30"}
    session = _FakeSession(
        {
            "/search/movie": [
                _FakeResponse(429, headers={"Retry-After": "2"}),
                _FakeResponse(200, {"results": [matrix]}),
            ]
        }
    )
    sleeps: list[float] = []

    results = TMDbMovieDatasource(_client(session, sleeps)).search("matrix", "de-DE")

    assert sleeps == [2.0]
    assert results[0].year == 1999
    assert session.calls[-1][1]["language"] == "de-DE"
    assert session.calls[-1][1]["api_key"] == "key"


def test_tmdb_client_gives_up_after_repeated_connection_errors() -> None:
    class _DownSession(_FakeSession):
        def get(self, url: str, params: dict, timeout: float) -> _FakeResponse:
            self.calls.append((url, params))
            raise requests.ConnectionError("connection refused")

    session = _DownSession({})
    sleeps: list[float] = []

    with pytest.raises(DatasourceError, match="after 3 attempts"):
        _client(session, sleeps).get("/search/movie", {"query": "heat"})

    assert len(session.calls) == 3
    assert len(sleeps) == 2
    assert all(0 <= delay <= 30 for delay in sleeps)


def test_tmdb_client_reports_exhausted_rate_limit() -> None:
    session = _FakeSession({"/search/movie": [_FakeResponse(429)] * 3})
    sleeps: list[float] = []

    with pytest.raises(DatasourceError, match="rate limit"):
        _client(session, sleeps).get("/search/movie")

    assert len(sleeps) == 2


def test_tmdb_client_raises_on_http_error() -> None:
    session = _FakeSession({"/search/tv": [_FakeResponse(401)]})

    with pytest.raises(DatasourceError):
        TMDbEpisodeDatasource(_client(session, [])).search("lost")


def test_tmdb_episode_fetch_reads_every_season() -> None:
    lost = {"id": 5, "name": "Lost", "first_air_date": "2004-09-22"}
    details = {**lost, "seasons": [{"season_number": 2}, {"season_number": 1}]}
    pilot = {"id": 51, "episode_number": 1, "name": "Pilot", "air_date": "2004-09-22"}
    season_two = {"id": 61, "episode_number": 1, "name": "Man of Science"}
    session = _FakeSession(
        {
            "/search/tv": [_FakeResponse(200, {"results": [lost]})],
            "/tv/5": [_FakeResponse(200, details)],
            "/tv/5/season/1": [_FakeResponse(200, {"episodes": [pilot]})],
            "/tv/5/season/2": [_FakeResponse(200, {"episodes": [season_two]})],
        }
    )
    source = TMDbEpisodeDatasource(_client(session, []))

    series = source.search("lost")[0]
    records = source.fetch_records(series)

    assert [(r.season, r.episode, r.episode_title) for r in records] == [
        (1, 1, "Pilot"),
        (2, 1, "Man of Science"),
    ]
    assert records[0].airdate is not None and records[0].airdate.year == 2004
    assert records[0].year == 2004


def test_tmdb_requires_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TMDB_API_KEY", raising=False)

    with pytest.raises(DatasourceError):
        TMDbClient(None)
