"""Rename history errors."""


class HistoryError(Exception):
    """Base exception for rename history operations."""


class MissingHistoryError(HistoryError):
    """Raised when a requested history batch or entry does not exist."""
