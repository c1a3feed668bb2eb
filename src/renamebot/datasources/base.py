"""Datasource contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from .models import MetadataRecord, SearchResult, SortOrder


class DatasourceError(Exception):
    """Raised when a datasource cannot answer a query."""


class Datasource(ABC):
    """A metadata provider that can be searched and fetched from.

    Implementations must be safe to call from several worker threads at once.
    """

    name: str = "datasource"

    @abstractmethod
    def search(self, query: str, locale: Optional[str] = None) -> list[SearchResult]:
        """Return shows or movies whose titles answer ``query``.

        Raises:
            DatasourceError: If the provider cannot be reached or replies with an error.
        """

    @abstractmethod
    def fetch_records(
        self,
        result: SearchResult,
        order: SortOrder = SortOrder.AIRDATE,
        locale: Optional[str] = None,
    ) -> list[MetadataRecord]:
        """Return the matchable records behind ``result``.

        Series results expand to their episode records; movie results yield a
        single movie record.

        Raises:
            DatasourceError: If the records cannot be retrieved.
        """

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"


__all__ = ["Datasource", "DatasourceError"]
