"""Metadata datasources."""

from __future__ import annotations

from renamebot.config.models import DatasourceSettings

from .base import Datasource, DatasourceError
from .catalog import CatalogDatasource
from .models import MetadataRecord, SearchResult, SortOrder, apply_sort_order
from .tmdb import TMDbClient, TMDbEpisodeDatasource, TMDbMovieDatasource

DATASOURCE_NAMES = ("catalog", "tmdb", "tmdb-tv")


def create_datasource(name: str | None, settings: DatasourceSettings) -> Datasource:
    """Instantiate the datasource called ``name`` (defaults to ``settings.provider``).

    Raises:
        DatasourceError: If the name is unknown or the datasource is misconfigured.
    """
    selected = (name or settings.provider).lower()
    if selected == "catalog":
        return CatalogDatasource(settings.catalog_path)
    if selected in {"tmdb", "tmdb-tv"}:
        client = TMDbClient(
            settings.api_key,
            language=settings.language,
            timeout=settings.timeout_seconds,
            retries=settings.retries,
        )
        if selected == "tmdb":
            return TMDbMovieDatasource(client)
        return TMDbEpisodeDatasource(client)
    raise DatasourceError(
        f"Unknown datasource '{selected}'. Choose one of: {', '.join(DATASOURCE_NAMES)}."
    )


__all__ = [
    "Datasource",
    "DatasourceError",
    "CatalogDatasource",
    "TMDbClient",
    "TMDbMovieDatasource",
    "TMDbEpisodeDatasource",
    "MetadataRecord",
    "SearchResult",
    "SortOrder",
    "apply_sort_order",
    "create_datasource",
    "DATASOURCE_NAMES",
]
