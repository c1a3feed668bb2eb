"""Concurrent query resolution against datasources."""

from .cache import CacheStats, QueryCache
from .resolver import QueryResolver, QueryResult, queries_from_files

__all__ = ["CacheStats", "QueryCache", "QueryResolver", "QueryResult", "queries_from_files"]
