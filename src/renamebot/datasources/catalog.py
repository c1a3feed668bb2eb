"""Datasource backed by a local YAML or JSON catalog file.

The catalog holds a metadata snapshot, which keeps matching reproducible and lets
the tool run without network access::

    series:
      - id: 1396
        title: Breaking Bad
        year: 2008
        alternate_titles: [Breaking Bad (US)]
        episodes:
          - {id: 62085, season: 1, episode: 1, title: Pilot, airdate: 2008-01-20}
    movies:
      - {id: 603, title: The Matrix, year: 1999}
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import date
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from renamebot.matching.similarity import best_similarity

from .base import Datasource, DatasourceError
from .models import MetadataRecord, SearchResult, SortOrder, apply_sort_order

LOGGER = logging.getLogger(__name__)


class _CatalogModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class CatalogEpisode(_CatalogModel):
    id: int
    season: int
    episode: int
    title: Optional[str] = None
    absolute: Optional[int] = None
    airdate: Optional[date] = None


class CatalogSeries(_CatalogModel):
    id: int
    title: str
    year: Optional[int] = None
    alternate_titles: List[str] = Field(default_factory=list)
    episodes: List[CatalogEpisode] = Field(default_factory=list)


class CatalogMovie(_CatalogModel):
    id: int
    title: str
    year: Optional[int] = None
    alternate_titles: List[str] = Field(default_factory=list)


class Catalog(_CatalogModel):
    series: List[CatalogSeries] = Field(default_factory=list)
    movies: List[CatalogMovie] = Field(default_factory=list)


class CatalogDatasource(Datasource):
    """Answer queries from a catalog file loaded on first use."""

    name = "catalog"

    def __init__(self, path: Path | str | None = None, *, catalog: Catalog | None = None) -> None:
        if path is None and catalog is None:
            raise DatasourceError(
                "The catalog datasource needs a catalog file; set datasource.catalog_path."
            )
        self._path = Path(path).expanduser() if path is not None else None
        self._catalog = catalog
        self._lock = threading.Lock()

    @property
    def catalog(self) -> Catalog:
        with self._lock:
            if self._catalog is None:
                self._catalog = self._load()
            return self._catalog

    def search(self, query: str, locale: Optional[str] = None) -> list[SearchResult]:
        results: list[SearchResult] = []
        for series in self.catalog.series:
            results.append(
                SearchResult(
                    datasource=self.name,
                    kind="series",
                    id=series.id,
                    title=series.title,
                    year=series.year,
                    alternate_titles=tuple(series.alternate_titles),
                )
            )
        for movie in self.catalog.movies:
            results.append(
                SearchResult(
                    datasource=self.name,
                    kind="movie",
                    id=movie.id,
                    title=movie.title,
                    year=movie.year,
                    alternate_titles=tuple(movie.alternate_titles),
                )
            )
        # every entry is returned; the score only decides presentation order
        results.sort(key=lambda item: (-best_similarity(query, item.titles), item.id))
        return results

    def fetch_records(
        self,
        result: SearchResult,
        order: SortOrder = SortOrder.AIRDATE,
        locale: Optional[str] = None,
    ) -> list[MetadataRecord]:
        if result.kind == "movie":
            movie = next((item for item in self.catalog.movies if item.id == result.id), None)
            if movie is None:
                raise DatasourceError(f"Movie {result.id} is not in the catalog.")
            return [
                MetadataRecord(
                    datasource=self.name,
                    kind="movie",
                    id=movie.id,
                    title=movie.title,
                    year=movie.year,
                    alternate_titles=tuple(movie.alternate_titles),
                )
            ]

        series = next((item for item in self.catalog.series if item.id == result.id), None)
        if series is None:
            raise DatasourceError(f"Series {result.id} is not in the catalog.")
        records = [
            MetadataRecord(
                datasource=self.name,
                kind="episode",
                id=episode.id,
                title=series.title,
                year=series.year,
                season=episode.season,
                episode=episode.episode,
                absolute=episode.absolute,
                episode_title=episode.title,
                series_id=series.id,
                airdate=episode.airdate,
                alternate_titles=tuple(series.alternate_titles),
            )
            for episode in series.episodes
        ]
        return apply_sort_order(records, order)

    def _load(self) -> Catalog:
        assert self._path is not None
        LOGGER.debug("Loading catalog from %s", self._path)
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise DatasourceError(f"Cannot read catalog {self._path}: {exc}") from exc

        try:
            if self._path.suffix.lower() == ".json":
                raw = json.loads(text)
            else:
                raw = yaml.safe_load(text)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise DatasourceError(f"Invalid catalog data in {self._path}: {exc}") from exc

        try:
            return Catalog.model_validate(raw or {})
        except ValidationError as exc:
            raise DatasourceError(f"Invalid catalog data in {self._path}: {exc}") from exc


__all__ = ["CatalogDatasource", "Catalog", "CatalogSeries", "CatalogEpisode", "CatalogMovie"]
