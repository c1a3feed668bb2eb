"""Metadata models shared by all datasources."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict


class SortOrder(str, Enum):
    """Episode numbering scheme used when fetching records."""

    AIRDATE = "airdate"
    ABSOLUTE = "absolute"


class SearchResult(BaseModel):
    """A show or movie returned by a datasource search.

    Attributes:
        datasource: Name of the datasource that produced the result.
        kind: ``series`` for episodic results, ``movie`` otherwise.
        id: Datasource identifier.
        title: Primary title.
        year: First air or release year.
        alternate_titles: Other known titles.
    """

    model_config = ConfigDict(frozen=True)

    datasource: str
    kind: Literal["series", "movie"]
    id: int
    title: str
    year: Optional[int] = None
    alternate_titles: Tuple[str, ...] = ()

    @property
    def titles(self) -> Tuple[str, ...]:
        return (self.title, *self.alternate_titles)


class MetadataRecord(BaseModel):
    """A single episode or movie that files can be matched against.

    Attributes:
        datasource: Name of the datasource that produced the record.
        kind: ``episode`` or ``movie``.
        id: Datasource identifier of the episode or movie.
        title: Series title for episodes, movie title for movies.
        year: First air year of the series or release year of the movie.
        season: Season number for episodes.
        episode: Episode number within the season.
        absolute: Absolute episode number across seasons.
        episode_title: Title of the episode.
        series_id: Identifier of the parent series.
        airdate: Original air date.
        alternate_titles: Other known titles of the series or movie.
    """

    model_config = ConfigDict(frozen=True)

    datasource: str
    kind: Literal["episode", "movie"]
    id: int
    title: str
    year: Optional[int] = None
    season: Optional[int] = None
    episode: Optional[int] = None
    absolute: Optional[int] = None
    episode_title: Optional[str] = None
    series_id: Optional[int] = None
    airdate: Optional[date] = None
    alternate_titles: Tuple[str, ...] = ()

    @property
    def titles(self) -> Tuple[str, ...]:
        return (self.title, *self.alternate_titles)

    @property
    def key(self) -> tuple[str, str, int]:
        """Identity used to de-duplicate records across queries."""
        return (self.datasource, self.kind, self.id)

    def sort_key(self) -> tuple:
        return (
            self.datasource,
            self.series_id if self.series_id is not None else self.id,
            self.season if self.season is not None else -1,
            self.episode if self.episode is not None else -1,
            self.id,
        )


def apply_sort_order(records: list[MetadataRecord], order: SortOrder) -> list[MetadataRecord]:
    """Return episode records arranged for ``order``.

    Airdate order keeps season/episode numbering. Absolute order sorts by absolute
    number, assigning a running index per series to records that lack one. Specials
    (season 0) never receive an absolute number.
    """
    ordered = sorted(records, key=MetadataRecord.sort_key)
    if order is SortOrder.AIRDATE:
        return ordered

    counters: dict[tuple[str, int | None], int] = {}
    numbered: list[MetadataRecord] = []
    for record in ordered:
        if record.kind != "episode" or record.season == 0:
            numbered.append(record)
            continue
        series = (record.datasource, record.series_id)
        counters[series] = counters.get(series, 0) + 1
        if record.absolute is None:
            record = record.model_copy(update={"absolute": counters[series]})
        numbered.append(record)

    return sorted(
        numbered,
        key=lambda item: (
            item.datasource,
            item.series_id if item.series_id is not None else item.id,
            item.absolute if item.absolute is not None else 1_000_000,
            item.id,
        ),
    )


__all__ = ["SortOrder", "SearchResult", "MetadataRecord", "apply_sort_order"]
