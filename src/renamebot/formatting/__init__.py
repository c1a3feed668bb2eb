"""Destination templates, line formatting and record filters."""

from .bindings import file_bindings, match_bindings, record_bindings
from .filters import Condition, RecordFilter
from .formatter import KNOWN_BINDINGS, FormatError, NameFormatter, sanitize_component

__all__ = [
    "NameFormatter",
    "FormatError",
    "KNOWN_BINDINGS",
    "RecordFilter",
    "Condition",
    "file_bindings",
    "match_bindings",
    "record_bindings",
    "sanitize_component",
]
