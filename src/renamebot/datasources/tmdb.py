"""TMDb movie and TV datasources."""

from __future__ import annotations

import logging
import os
import time
from datetime import date
from typing import Any, Callable, Optional

import requests
from tenacity import (
    RetryCallState,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)
from tenacity.wait import wait_base

from .base import Datasource, DatasourceError
from .models import MetadataRecord, SearchResult, SortOrder, apply_sort_order

LOGGER = logging.getLogger(__name__)

TMDB_BASE_URL = "https://api.themoviedb.org/3"
API_KEY_ENV = "TMDB_API_KEY"


def _year(value: Any) -> Optional[int]:
    if isinstance(value, str) and len(value) >= 4 and value[:4].isdigit():
        return int(value[:4])
    return None


def _date(value: Any) -> Optional[date]:
    if not isinstance(value, str) or not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


class RateLimitError(DatasourceError):
    """Raised for HTTP 429 responses; carries the ``Retry-After`` delay when given."""

    def __init__(self, retry_after: Optional[float] = None) -> None:
        self.retry_after = retry_after
        message = "TMDb rate limit exceeded"
        if retry_after is not None:
            message += f"; retry after {retry_after:g}s"
        super().__init__(message)


_RETRYABLE = (RateLimitError, requests.ConnectionError, requests.Timeout)


class _RetryAfterOrBackoff(wait_base):
    """Wait for ``Retry-After`` when the API sent one, else back off with jitter."""

    def __init__(self, max_wait: float) -> None:
        self._backoff = wait_random_exponential(multiplier=1, max=max_wait)

    def __call__(self, retry_state: RetryCallState) -> float:
        outcome = retry_state.outcome
        error = outcome.exception() if outcome is not None else None
        if isinstance(error, RateLimitError) and error.retry_after is not None:
            return error.retry_after
        return self._backoff(retry_state)


class TMDbClient:
    """Minimal TMDb v3 HTTP client with retry and rate-limit handling."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        language: str = "en-US",
        timeout: float = 10,
        retries: int = 3,
        max_wait: float = 30,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
        base_url: str = TMDB_BASE_URL,
    ) -> None:
        self.api_key = api_key or os.environ.get(API_KEY_ENV)
        if not self.api_key:
            raise DatasourceError(
                f"TMDb API key not found. Set datasource.api_key or the {API_KEY_ENV} "
                "environment variable."
            )
        self.language = language
        self.timeout = timeout
        self.retries = max(1, retries)
        self.session = session or requests.Session()
        self._base_url = base_url.rstrip("/")
        self._retrying = Retrying(
            retry=retry_if_exception_type(_RETRYABLE),
            wait=_RetryAfterOrBackoff(max_wait),
            stop=stop_after_attempt(self.retries),
            sleep=sleep,
            before_sleep=before_sleep_log(LOGGER, logging.INFO),
            reraise=True,
        )

    def get(self, endpoint: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Issue a GET request and return the decoded JSON body.

        Rate-limit responses and connection errors are retried up to ``retries``
        attempts; other HTTP errors fail immediately.

        Raises:
            DatasourceError: When every attempt fails or the API rejects the request.
        """
        try:
            response = self._retrying.copy()(self._request, endpoint, params)
        except _RETRYABLE as exc:
            raise DatasourceError(
                f"TMDb request {endpoint} failed after {self.retries} attempts: {exc}"
            ) from exc

        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise DatasourceError(f"TMDb request {endpoint} failed: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise DatasourceError(f"TMDb returned invalid JSON for {endpoint}") from exc

    def _request(self, endpoint: str, params: dict[str, Any] | None) -> requests.Response:
        query = {"api_key": self.api_key, "language": self.language, **(params or {})}
        LOGGER.debug("GET %s", endpoint)
        response = self.session.get(
            f"{self._base_url}{endpoint}", params=query, timeout=self.timeout
        )
        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After", "")
            raise RateLimitError(float(retry_after) if retry_after.isdigit() else None)
        return response


class TMDbMovieDatasource(Datasource):
    """Movie search and lookup on TMDb."""

    name = "tmdb"

    def __init__(self, client: TMDbClient) -> None:
        self.client = client

    def search(self, query: str, locale: Optional[str] = None) -> list[SearchResult]:
        params: dict[str, Any] = {"query": query}
        if locale:
            params["language"] = locale
        payload = self.client.get("/search/movie", params)
        results: list[SearchResult] = []
        for item in payload.get("results", []):
            title = item.get("title") or item.get("original_title")
            if not title or "id" not in item:
                continue
            original = item.get("original_title")
            results.append(
                SearchResult(
                    datasource=self.name,
                    kind="movie",
                    id=int(item["id"]),
                    title=title,
                    year=_year(item.get("release_date")),
                    alternate_titles=(original,) if original and original != title else (),
                )
            )
        return results

    def fetch_records(
        self,
        result: SearchResult,
        order: SortOrder = SortOrder.AIRDATE,
        locale: Optional[str] = None,
    ) -> list[MetadataRecord]:
        return [
            MetadataRecord(
                datasource=self.name,
                kind="movie",
                id=result.id,
                title=result.title,
                year=result.year,
                alternate_titles=result.alternate_titles,
            )
        ]


class TMDbEpisodeDatasource(Datasource):
    """TV series search and episode lists on TMDb."""

    name = "tmdb-tv"

    def __init__(self, client: TMDbClient) -> None:
        self.client = client

    def search(self, query: str, locale: Optional[str] = None) -> list[SearchResult]:
        params: dict[str, Any] = {"query": query}
        if locale:
            params["language"] = locale
        payload = self.client.get("/search/tv", params)
        results: list[SearchResult] = []
        for item in payload.get("results", []):
            title = item.get("name") or item.get("original_name")
            if not title or "id" not in item:
                continue
            original = item.get("original_name")
            results.append(
                SearchResult(
                    datasource=self.name,
                    kind="series",
                    id=int(item["id"]),
                    title=title,
                    year=_year(item.get("first_air_date")),
                    alternate_titles=(original,) if original and original != title else (),
                )
            )
        return results

    def fetch_records(
        self,
        result: SearchResult,
        order: SortOrder = SortOrder.AIRDATE,
        locale: Optional[str] = None,
    ) -> list[MetadataRecord]:
        params = {"language": locale} if locale else None
        details = self.client.get(f"/tv/{result.id}", params)
        season_numbers = sorted(
            int(season["season_number"])
            for season in details.get("seasons", [])
            if season.get("season_number") is not None
        )

        records: list[MetadataRecord] = []
        for season_number in season_numbers:
            season = self.client.get(f"/tv/{result.id}/season/{season_number}", params)
            for episode in season.get("episodes", []):
                if "id" not in episode or episode.get("episode_number") is None:
                    continue
                records.append(
                    MetadataRecord(
                        datasource=self.name,
                        kind="episode",
                        id=int(episode["id"]),
                        title=details.get("name") or result.title,
                        year=_year(details.get("first_air_date")) or result.year,
                        season=season_number,
                        episode=int(episode["episode_number"]),
                        episode_title=episode.get("name"),
                        series_id=result.id,
                        airdate=_date(episode.get("air_date")),
                        alternate_titles=result.alternate_titles,
                    )
                )
        LOGGER.debug("Fetched %d episodes for %s", len(records), result.title)
        return apply_sort_order(records, order)


__all__ = ["TMDbClient", "TMDbMovieDatasource", "TMDbEpisodeDatasource", "TMDB_BASE_URL"]
